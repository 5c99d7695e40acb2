"""Aave v3 style lending pool interface.

HypurrFi and HyperLend pools both expose the Aave v3 ``Pool`` supply and withdraw functions:

- `supply(address asset, uint256 amount, address onBehalfOf, uint16 referralCode) <https://github.com/aave/aave-v3-core/blob/e0bfed13240adeb7f05cb6cbe5e7ce78657f0621/contracts/protocol/pool/Pool.sol#L145>`__

- `withdraw(address asset, uint256 amount, address to) <https://github.com/aave/aave-v3-core/blob/e0bfed13240adeb7f05cb6cbe5e7ce78657f0621/contracts/protocol/pool/Pool.sol#L198>`__

:py:class:`MockPool` is a minimal pool for tests: it keeps supplied assets
and mints a receipt token (aToken) 1:1.
"""

import logging
from dataclasses import dataclass

from eth_typing import ChecksumAddress, HexAddress
from hexbytes import HexBytes
from web3 import Web3

from eth_strategy.abi import ZERO_ADDRESS, encode_with_signature, get_function_selector
from eth_strategy.contract import SimulatedContract, external
from eth_strategy.errors import InvalidAddress
from eth_strategy.ledger import Message
from eth_strategy.token import TRANSFER_FROM_SIGNATURE, TRANSFER_SIGNATURE

logger = logging.getLogger(__name__)


SUPPLY_SIGNATURE = "supply(address,uint256,address,uint16)"

WITHDRAW_SIGNATURE = "withdraw(address,uint256,address)"

#: ABI types of supply() arguments
SUPPLY_ARGUMENT_TYPES = ["address", "uint256", "address", "uint16"]

#: ABI types of withdraw() arguments
WITHDRAW_ARGUMENT_TYPES = ["address", "uint256", "address"]

#: ``0x617ba037``
SUPPLY_SELECTOR = get_function_selector(SUPPLY_SIGNATURE)

#: ``0x69328dec``
WITHDRAW_SELECTOR = get_function_selector(WITHDRAW_SIGNATURE)


def encode_supply(
    asset: HexAddress | str,
    amount: int,
    on_behalf_of: HexAddress | str,
    referral_code: int = 0,
) -> HexBytes:
    """Build a pool ``supply()`` call payload.

    :param asset:
        Reserve token, e.g. USDT

    :param amount:
        Raw token amount

    :param on_behalf_of:
        Who receives the aTokens

    :param referral_code:
        Aave referral programme code, usually 0
    """
    return encode_with_signature(
        SUPPLY_SIGNATURE,
        [Web3.to_checksum_address(asset), amount, Web3.to_checksum_address(on_behalf_of), referral_code],
    )


def encode_withdraw(
    asset: HexAddress | str,
    amount: int,
    to: HexAddress | str,
) -> HexBytes:
    """Build a pool ``withdraw()`` call payload.

    :param to:
        Who receives the withdrawn reserve tokens
    """
    return encode_with_signature(
        WITHDRAW_SIGNATURE,
        [Web3.to_checksum_address(asset), amount, Web3.to_checksum_address(to)],
    )


@dataclass
class MockPoolStorage:
    #: Receipt token minted on supply
    a_token: ChecksumAddress = ZERO_ADDRESS


class MockPool(SimulatedContract):
    """Lending pool with 1:1 receipt tokens and no interest.

    The pool must own the aToken so that it can mint and burn.

    Constructor arguments: aToken.
    """

    storage_class = MockPoolStorage

    def constructor(self, msg: Message, a_token: ChecksumAddress):
        if a_token == ZERO_ADDRESS:
            raise InvalidAddress("aToken")
        self.storage.a_token = a_token

    @external("aToken()", returns=["address"], mutability="view")
    def a_token(self, msg: Message) -> ChecksumAddress:
        return self.storage.a_token

    @external(SUPPLY_SIGNATURE)
    def supply(self, msg: Message, asset: ChecksumAddress, amount: int, on_behalf_of: ChecksumAddress, referral_code: int):
        self.call_contract_or_revert(asset, TRANSFER_FROM_SIGNATURE, msg.sender, self.address, amount)
        self.call_contract_or_revert(self.storage.a_token, "mint(address,uint256)", on_behalf_of, amount)
        logger.debug("Pool %s: %s supplied %d of %s on behalf of %s", self.address, msg.sender, amount, asset, on_behalf_of)
        self.emit("Supply", reserve=asset, user=msg.sender, onBehalfOf=on_behalf_of, amount=amount, referralCode=referral_code)

    @external(WITHDRAW_SIGNATURE, returns=["uint256"])
    def withdraw(self, msg: Message, asset: ChecksumAddress, amount: int, to: ChecksumAddress) -> int:
        self.call_contract_or_revert(self.storage.a_token, "burn(address,uint256)", msg.sender, amount)
        self.call_contract_or_revert(asset, TRANSFER_SIGNATURE, to, amount)
        logger.debug("Pool %s: %s withdrew %d of %s to %s", self.address, msg.sender, amount, asset, to)
        self.emit("Withdraw", reserve=asset, user=msg.sender, to=to, amount=amount)
        return amount
