"""Single owner access control.

Contracts using :py:class:`Ownable` need an ``owner`` address in their storage.
"""

import logging

from eth_typing import ChecksumAddress

from eth_strategy.abi import ZERO_ADDRESS
from eth_strategy.contract import external
from eth_strategy.errors import OwnableInvalidOwner, OwnableUnauthorizedAccount
from eth_strategy.ledger import Message

logger = logging.getLogger(__name__)


class Ownable:
    """Mixin for :py:class:`eth_strategy.contract.SimulatedContract`."""

    def _init_owner(self, owner: ChecksumAddress):
        if owner == ZERO_ADDRESS:
            raise OwnableInvalidOwner(owner)
        self._transfer_ownership(owner)

    def _check_owner(self, msg: Message):
        if msg.sender != self.storage.owner:
            raise OwnableUnauthorizedAccount(msg.sender)

    def _transfer_ownership(self, new_owner: ChecksumAddress):
        previous = self.storage.owner
        self.storage.owner = new_owner
        logger.info("Contract %s ownership transferred %s -> %s", self.address, previous, new_owner)
        self.emit("OwnershipTransferred", previousOwner=previous, newOwner=new_owner)

    @external("owner()", returns=["address"], mutability="view")
    def owner(self, msg: Message) -> ChecksumAddress:
        return self.storage.owner

    @external("transferOwnership(address)")
    def transfer_ownership(self, msg: Message, new_owner: ChecksumAddress):
        self._check_owner(msg)
        if new_owner == ZERO_ADDRESS:
            raise OwnableInvalidOwner(new_owner)
        self._transfer_ownership(new_owner)

    @external("renounceOwnership()")
    def renounce_ownership(self, msg: Message):
        self._check_owner(msg)
        self._transfer_ownership(ZERO_ADDRESS)
