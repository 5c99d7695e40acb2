"""Role based access control.

OpenZeppelin ``AccessControl`` semantics for simulated contracts:

- Roles are 32 byte identifiers, membership is a set of accounts per role

- :py:data:`DEFAULT_ADMIN_ROLE` administrates all roles

- Revoking or renouncing the last administrator is refused,
  so role administration can never be locked out
"""

import logging
from dataclasses import dataclass, field

from eth_typing import ChecksumAddress, HexAddress
from hexbytes import HexBytes
from web3 import Web3

from eth_strategy.abi import to_hex
from eth_strategy.contract import external
from eth_strategy.errors import AccessControlBadConfirmation, AccessControlUnauthorizedAccount, LastAdminRemoval
from eth_strategy.ledger import Message

logger = logging.getLogger(__name__)


#: Administrator role, 32 zero bytes
DEFAULT_ADMIN_ROLE = HexBytes(b"\x00" * 32)

#: Operator role, manages the action registry and the pause flag
OPERATOR_ROLE = HexBytes(Web3.keccak(text="OPERATOR_ROLE"))


@dataclass
class RoleStorage:
    """Role membership.

    Role -> members in grant order.
    """

    members: dict[bytes, list[ChecksumAddress]] = field(default_factory=dict)

    def has_role(self, role: bytes, account: ChecksumAddress) -> bool:
        return account in self.members.get(bytes(role), [])

    def add(self, role: bytes, account: ChecksumAddress) -> bool:
        """:return: True if membership changed"""
        members = self.members.setdefault(bytes(role), [])
        if account in members:
            return False
        members.append(account)
        return True

    def remove(self, role: bytes, account: ChecksumAddress) -> bool:
        """:return: True if membership changed"""
        members = self.members.get(bytes(role), [])
        if account not in members:
            return False
        members.remove(account)
        return True

    def count(self, role: bytes) -> int:
        return len(self.members.get(bytes(role), []))


class AccessControl:
    """Mixin for :py:class:`eth_strategy.contract.SimulatedContract`.

    The contract storage must have a ``roles`` field of :py:class:`RoleStorage`.
    """

    def _check_role(self, role: bytes, account: ChecksumAddress):
        if not self.storage.roles.has_role(role, account):
            raise AccessControlUnauthorizedAccount(account, role)

    def _grant_role(self, role: bytes, account: ChecksumAddress, sender: ChecksumAddress):
        if self.storage.roles.add(role, account):
            logger.info("Contract %s granted role %s to %s", self.address, to_hex(role), account)
            self.emit("RoleGranted", role=HexBytes(role), account=account, sender=sender)

    def _revoke_role(self, role: bytes, account: ChecksumAddress, sender: ChecksumAddress):
        roles = self.storage.roles
        if not roles.has_role(role, account):
            return
        if bytes(role) == bytes(DEFAULT_ADMIN_ROLE) and roles.count(role) == 1:
            raise LastAdminRemoval(account)
        roles.remove(role, account)
        logger.info("Contract %s revoked role %s from %s", self.address, to_hex(role), account)
        self.emit("RoleRevoked", role=HexBytes(role), account=account, sender=sender)

    @external("DEFAULT_ADMIN_ROLE()", returns=["bytes32"], mutability="view")
    def default_admin_role(self, msg: Message) -> bytes:
        return DEFAULT_ADMIN_ROLE

    @external("OPERATOR_ROLE()", returns=["bytes32"], mutability="view")
    def operator_role(self, msg: Message) -> bytes:
        return OPERATOR_ROLE

    @external("hasRole(bytes32,address)", returns=["bool"], mutability="view")
    def has_role(self, msg: Message, role: bytes, account: HexAddress) -> bool:
        return self.storage.roles.has_role(role, account)

    @external("getRoleAdmin(bytes32)", returns=["bytes32"], mutability="view")
    def get_role_admin(self, msg: Message, role: bytes) -> bytes:
        return DEFAULT_ADMIN_ROLE

    @external("getRoleMemberCount(bytes32)", returns=["uint256"], mutability="view")
    def get_role_member_count(self, msg: Message, role: bytes) -> int:
        return self.storage.roles.count(role)

    @external("grantRole(bytes32,address)")
    def grant_role(self, msg: Message, role: bytes, account: ChecksumAddress):
        self._check_role(DEFAULT_ADMIN_ROLE, msg.sender)
        self._grant_role(role, account, msg.sender)

    @external("revokeRole(bytes32,address)")
    def revoke_role(self, msg: Message, role: bytes, account: ChecksumAddress):
        self._check_role(DEFAULT_ADMIN_ROLE, msg.sender)
        self._revoke_role(role, account, msg.sender)

    @external("renounceRole(bytes32,address)")
    def renounce_role(self, msg: Message, role: bytes, account: ChecksumAddress):
        if account != msg.sender:
            raise AccessControlBadConfirmation(account, msg.sender)
        self._revoke_role(role, account, msg.sender)
