"""Fund recovery.

Contracts using :py:class:`Custody` can send out any ERC-20 or native balance they hold.
Who may do it is decided by the contract, see ``_check_custodian()``.

Withdrawals are not gated by the pause flag, so funds can be rescued
from a paused contract.
"""

import logging

from eth_typing import ChecksumAddress

from eth_strategy.abi import EMPTY_SELECTOR
from eth_strategy.contract import external
from eth_strategy.errors import ExecuteFailed
from eth_strategy.ledger import Message
from eth_strategy.token import TRANSFER_SELECTOR, TRANSFER_SIGNATURE

logger = logging.getLogger(__name__)


def is_successful_transfer(return_data: bytes) -> bool:
    """SafeERC20 rule: no return data or an ABI encoded true."""
    if len(return_data) == 0:
        return True
    return int.from_bytes(return_data[:32], "big") == 1


class Custody:
    """Mixin for :py:class:`eth_strategy.contract.SimulatedContract`."""

    def _check_custodian(self, msg: Message):
        raise NotImplementedError()

    @external("withdrawERC20(address,address,uint256)")
    def withdraw_erc20(self, msg: Message, token: ChecksumAddress, to: ChecksumAddress, amount: int):
        """Move tokens out of the contract.

        :raise ExecuteFailed:
            There is no contract at the token address, the transfer reverted or it returned false
        """
        self._check_custodian(msg)
        if self.ledger.get_contract(token) is None:
            raise ExecuteFailed(token, TRANSFER_SELECTOR)
        result = self.call_contract(token, TRANSFER_SIGNATURE, to, amount)
        if not result.success or not is_successful_transfer(result.return_data):
            raise ExecuteFailed(token, TRANSFER_SELECTOR, result.error)
        logger.info("Contract %s: withdrew %d of token %s to %s", self.address, amount, token, to)
        self.emit("ERC20Withdrawn", token=token, to=to, amount=amount)

    @external("withdrawETH(address,uint256)")
    def withdraw_eth(self, msg: Message, to: ChecksumAddress, amount: int):
        self._check_custodian(msg)
        result = self.ledger.call(self.address, to, b"", amount)
        if not result.success:
            raise ExecuteFailed(to, EMPTY_SELECTOR, result.error)
        logger.info("Contract %s: withdrew %d native to %s", self.address, amount, to)
        self.emit("ETHWithdrawn", to=to, amount=amount)
