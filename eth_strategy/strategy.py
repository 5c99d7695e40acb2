"""Strategy: permissioned action execution.

An operator registers which (target, selector) calls are allowed and
which call arguments must be the caller. Anyone can then ask the strategy
to perform such a call: per-call authorization is data in the registry,
not code.

- Role administration and fund recovery belong to :py:data:`~eth_strategy.access_control.DEFAULT_ADMIN_ROLE`

- Registry changes and pausing belong to :py:data:`~eth_strategy.access_control.OPERATOR_ROLE`

- :py:meth:`Strategy.execute` is open to everyone, gated by the pause flag
  and the parameter roles of the action

Example:

.. code-block:: python

    strategy = deploy_strategy(ledger, deployer, default_admin=admin, operator=operator)

    # Allow anyone to move the strategy tokens, but only to themselves
    selector = get_function_selector("transfer(address,uint256)")
    strategy.functions.addAction(token.address, selector).transact({"from": operator})
    strategy.functions.addActionParamRole(token.address, selector, 0, True).transact({"from": operator})

    payload = token.functions.transfer(user, amount).encode()
    strategy.functions.execute(token.address, selector, payload).transact({"from": user})

"""

import logging
from dataclasses import dataclass, field

from eth_typing import ChecksumAddress
from hexbytes import HexBytes

from eth_strategy.abi import SELECTOR_LENGTH, ZERO_ADDRESS, to_hex
from eth_strategy.access_control import DEFAULT_ADMIN_ROLE, OPERATOR_ROLE, AccessControl, RoleStorage
from eth_strategy.contract import SimulatedContract, external
from eth_strategy.custody import Custody
from eth_strategy.errors import ExecuteFailed, InvalidAddress, InvalidData
from eth_strategy.ledger import Message
from eth_strategy.pausable import Pausable
from eth_strategy.registry import ActionRegistry, ParamRole
from eth_strategy.validator import validate_param_roles

logger = logging.getLogger(__name__)


@dataclass
class StrategyStorage:
    """All persistent state of a strategy."""

    roles: RoleStorage = field(default_factory=RoleStorage)

    paused: bool = False

    registry: ActionRegistry = field(default_factory=ActionRegistry)


class Strategy(AccessControl, Pausable, Custody, SimulatedContract):
    """Generic action registry and dispatcher.

    Constructor arguments: default admin, operator.
    """

    storage_class = StrategyStorage

    def constructor(self, msg: Message, default_admin: ChecksumAddress, operator: ChecksumAddress):
        if default_admin == ZERO_ADDRESS:
            raise InvalidAddress("defaultAdmin")
        if operator == ZERO_ADDRESS:
            raise InvalidAddress("operator")
        self._grant_role(DEFAULT_ADMIN_ROLE, default_admin, msg.sender)
        self._grant_role(OPERATOR_ROLE, operator, msg.sender)

    def _check_pauser(self, msg: Message):
        self._check_role(OPERATOR_ROLE, msg.sender)

    def _check_custodian(self, msg: Message):
        self._check_role(DEFAULT_ADMIN_ROLE, msg.sender)

    def receive(self, msg: Message) -> HexBytes:
        logger.debug("Strategy %s received %d native from %s", self.address, msg.value, msg.sender)
        return HexBytes(b"")

    @external("addAction(address,bytes4)")
    def add_action(self, msg: Message, target: ChecksumAddress, selector: bytes):
        self._check_role(OPERATOR_ROLE, msg.sender)
        self.storage.registry.add_action(target, selector)
        logger.info("Strategy %s: added action %s on %s", self.address, to_hex(selector), target)
        self.emit("ActionAdded", target=target, selector=HexBytes(selector))

    @external("removeAction(address,bytes4)")
    def remove_action(self, msg: Message, target: ChecksumAddress, selector: bytes):
        self._check_role(OPERATOR_ROLE, msg.sender)
        self.storage.registry.remove_action(target, selector)
        logger.info("Strategy %s: removed action %s on %s", self.address, to_hex(selector), target)
        self.emit("ActionRemoved", target=target, selector=HexBytes(selector))

    @external("getActions(address)", returns=["bytes4[]"], mutability="view")
    def get_actions(self, msg: Message, target: ChecksumAddress) -> list[bytes]:
        return self.storage.registry.get_actions(target)

    @external("actions(address,uint256)", returns=["bytes4"], mutability="view")
    def actions(self, msg: Message, target: ChecksumAddress, index: int) -> bytes:
        return self.storage.registry.get_action(target, index)

    @external("actionsLength(address)", returns=["uint256"], mutability="view")
    def actions_length(self, msg: Message, target: ChecksumAddress) -> int:
        return self.storage.registry.actions_length(target)

    @external("addActionParamRole(address,bytes4,uint256,bool)")
    def add_action_param_role(self, msg: Message, target: ChecksumAddress, selector: bytes, index: int, only_sender: bool):
        self._check_role(OPERATOR_ROLE, msg.sender)
        self.storage.registry.add_param_role(target, selector, index, only_sender)
        logger.info("Strategy %s: added param role %d (only sender: %s) for %s on %s", self.address, index, only_sender, to_hex(selector), target)
        self.emit("ActionParamRoleAdded", target=target, selector=HexBytes(selector), index=index, onlySender=only_sender)

    @external("removeActionParamRole(address,bytes4,uint256)")
    def remove_action_param_role(self, msg: Message, target: ChecksumAddress, selector: bytes, index: int):
        self._check_role(OPERATOR_ROLE, msg.sender)
        self.storage.registry.remove_param_role(target, selector, index)
        logger.info("Strategy %s: removed param role %d for %s on %s", self.address, index, to_hex(selector), target)
        self.emit("ActionParamRoleRemoved", target=target, selector=HexBytes(selector), index=index)

    @external("getActionParamRoles(address,bytes4)", returns=["(uint256,bool)[]"], mutability="view")
    def get_action_param_roles(self, msg: Message, target: ChecksumAddress, selector: bytes) -> list[ParamRole]:
        return self.storage.registry.get_param_roles(target, selector)

    @external("execute(address,bytes4,bytes)", returns=["bytes"])
    def execute(self, msg: Message, target: ChecksumAddress, selector: bytes, data: bytes) -> bytes:
        """Perform an approved call.

        All checks are done before the call is made.

        :return:
            Raw return data of the target call
        """
        self._require_not_paused()

        registry = self.storage.registry
        if len(data) < SELECTOR_LENGTH or bytes(data[:SELECTOR_LENGTH]) != bytes(selector) or not registry.has_action(target, selector):
            raise InvalidData(data)

        validate_param_roles(target, selector, data, msg.sender, registry.get_param_roles(target, selector))

        logger.debug("Strategy %s: executing %s on %s for %s", self.address, to_hex(selector), target, msg.sender)
        result = self.ledger.call(self.address, target, data)
        if not result.success:
            raise ExecuteFailed(target, selector, result.error)

        self.emit("ActionExecuted", target=target, data=HexBytes(data))
        return result.return_data
