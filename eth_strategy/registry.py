"""Action registry.

Keeps the allow-list of (target contract, function selector) pairs
the dispatcher may call, and the parameter roles each call must satisfy.

The registry is plain data. Access control and events are handled
by the contract owning it, see :py:class:`eth_strategy.strategy.Strategy`.
"""

import bisect
from dataclasses import dataclass, field
from typing import NamedTuple

from eth_typing import ChecksumAddress
from hexbytes import HexBytes

from eth_strategy.abi import normalise_selector
from eth_strategy.errors import (
    ActionIndexOutOfBounds,
    ActionNotFound,
    ActionParamRoleAlreadyExists,
    ActionParamRoleNotFound,
    SelectorAlreadyExists,
)


class ParamRole(NamedTuple):
    """Constraint on one argument of an approved call."""

    #: Zero-based 32 byte word offset into the ABI encoded arguments
    index: int

    #: The argument must be the address of the caller
    only_sender: bool


#: Registry key
ActionKey = tuple[ChecksumAddress, bytes]


@dataclass
class ActionRegistry:
    """Approved actions and their parameter roles."""

    #: Target -> selectors in insertion order, removal swaps with the last one
    actions: dict[ChecksumAddress, list[HexBytes]] = field(default_factory=dict)

    #: (target, selector) -> parameter roles sorted by index
    param_roles: dict[ActionKey, list[ParamRole]] = field(default_factory=dict)

    def has_action(self, target: ChecksumAddress, selector: bytes) -> bool:
        return normalise_selector(selector) in self.actions.get(target, [])

    def add_action(self, target: ChecksumAddress, selector: bytes):
        """Approve a call.

        :raise SelectorAlreadyExists:
            The pair is already registered
        """
        selector = normalise_selector(selector)
        selectors = self.actions.setdefault(target, [])
        if selector in selectors:
            raise SelectorAlreadyExists(target, selector)
        selectors.append(selector)

    def remove_action(self, target: ChecksumAddress, selector: bytes):
        """Remove an approved call and all its parameter roles.

        :raise ActionNotFound:
            The pair is not registered
        """
        selector = normalise_selector(selector)
        selectors = self.actions.get(target, [])
        if selector not in selectors:
            raise ActionNotFound(target, selector)

        # Swap and pop
        position = selectors.index(selector)
        selectors[position] = selectors[-1]
        selectors.pop()
        if not selectors:
            del self.actions[target]

        self.param_roles.pop((target, bytes(selector)), None)

    def get_actions(self, target: ChecksumAddress) -> list[HexBytes]:
        return list(self.actions.get(target, []))

    def get_action(self, target: ChecksumAddress, index: int) -> HexBytes:
        selectors = self.actions.get(target, [])
        if index >= len(selectors):
            raise ActionIndexOutOfBounds(target, index)
        return selectors[index]

    def actions_length(self, target: ChecksumAddress) -> int:
        return len(self.actions.get(target, []))

    def add_param_role(self, target: ChecksumAddress, selector: bytes, index: int, only_sender: bool):
        """Add a parameter constraint for an approved call.

        :raise ActionNotFound:
            Parameter roles can be only added to registered actions

        :raise ActionParamRoleAlreadyExists:
            There is already a role for the parameter index
        """
        selector = normalise_selector(selector)
        if not self.has_action(target, selector):
            raise ActionNotFound(target, selector)

        roles = self.param_roles.setdefault((target, bytes(selector)), [])
        if any(r.index == index for r in roles):
            raise ActionParamRoleAlreadyExists(target, selector, index)

        bisect.insort(roles, ParamRole(index=index, only_sender=only_sender))

    def remove_param_role(self, target: ChecksumAddress, selector: bytes, index: int):
        """Remove a parameter constraint.

        :raise ActionParamRoleNotFound:
            No role for the parameter index
        """
        selector = normalise_selector(selector)
        roles = self.param_roles.get((target, bytes(selector)), [])
        for role in roles:
            if role.index == index:
                roles.remove(role)
                return
        raise ActionParamRoleNotFound(target, selector, index)

    def get_param_roles(self, target: ChecksumAddress, selector: bytes) -> list[ParamRole]:
        """Parameter roles in ascending index order."""
        selector = normalise_selector(selector)
        return list(self.param_roles.get((target, bytes(selector)), []))
