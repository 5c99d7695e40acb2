"""Global pause flag.

Contracts using :py:class:`Pausable` need a ``paused`` boolean in their storage.
Who may pause is decided by the contract, see ``_check_pauser()``.
"""

import logging

from eth_strategy.contract import external
from eth_strategy.errors import EnforcedPause, ExpectedPause
from eth_strategy.ledger import Message

logger = logging.getLogger(__name__)


class Pausable:
    """Mixin for :py:class:`eth_strategy.contract.SimulatedContract`."""

    def _check_pauser(self, msg: Message):
        raise NotImplementedError()

    def _require_not_paused(self):
        if self.storage.paused:
            raise EnforcedPause()

    def _require_paused(self):
        if not self.storage.paused:
            raise ExpectedPause()

    @external("paused()", returns=["bool"], mutability="view")
    def paused(self, msg: Message) -> bool:
        return self.storage.paused

    @external("pause()")
    def pause(self, msg: Message):
        self._check_pauser(msg)
        self._require_not_paused()
        self.storage.paused = True
        logger.info("Contract %s paused by %s", self.address, msg.sender)
        self.emit("Paused", account=msg.sender)

    @external("unpause()")
    def unpause(self, msg: Message):
        self._check_pauser(msg)
        self._require_paused()
        self.storage.paused = False
        logger.info("Contract %s unpaused by %s", self.address, msg.sender)
        self.emit("Unpaused", account=msg.sender)
