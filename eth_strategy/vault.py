"""MaxYieldUSDT vault.

A fixed-action router between two Aave v3 style lending venues on HyperEVM,
`HypurrFi <https://www.hypurr.fi/>`__ and `HyperLend <https://hyperlend.finance/>`__.

- Users pick one of four :py:class:`VaultAction` codes and pass the pool call payload

- The payload asset must be the configured USDT and the position account must be the caller

- The vault pulls the user tokens, forwards the call to the pool and emits a typed event
  with the pool call arguments

- The owner can pause execution and sweep any token balance out of the vault at any time

Example:

.. code-block:: python

    payload = encode_supply(usdt.address, amount, user, 0)
    usdt.functions.approve(vault.address, amount).transact({"from": user})
    vault.functions.execute(VaultAction.HypurrfiSupplyUSDT, payload).transact({"from": user})

"""

import enum
import logging
from dataclasses import dataclass
from typing import NamedTuple

from eth_typing import ChecksumAddress
from hexbytes import HexBytes

from eth_strategy.abi import ABI_DECODING_ERRORS, SELECTOR_LENGTH, ZERO_ADDRESS, decode_arguments, split_call_data
from eth_strategy.contract import SimulatedContract, external
from eth_strategy.custody import Custody
from eth_strategy.errors import InvalidAction, InvalidAddress, InvalidData, NotOwner, TokenNotAllowed
from eth_strategy.lending_pool import (
    SUPPLY_ARGUMENT_TYPES,
    SUPPLY_SELECTOR,
    SUPPLY_SIGNATURE,
    WITHDRAW_ARGUMENT_TYPES,
    WITHDRAW_SELECTOR,
    WITHDRAW_SIGNATURE,
)
from eth_strategy.ledger import Message
from eth_strategy.ownable import Ownable
from eth_strategy.pausable import Pausable
from eth_strategy.token import APPROVE_SIGNATURE, TRANSFER_FROM_SIGNATURE

logger = logging.getLogger(__name__)


class VaultAction(enum.IntEnum):
    """Action codes accepted by :py:meth:`MaxYieldUSDT.execute`."""

    HypurrfiSupplyUSDT = 0
    HypurrfiWithdrawUSDT = 1
    HyperlendSupplyUSDT = 2
    HyperlendWithdrawUSDT = 3

    def is_supply(self) -> bool:
        return self in (VaultAction.HypurrfiSupplyUSDT, VaultAction.HyperlendSupplyUSDT)

    def is_hypurrfi(self) -> bool:
        return self in (VaultAction.HypurrfiSupplyUSDT, VaultAction.HypurrfiWithdrawUSDT)


class SupplyArgs(NamedTuple):
    asset: ChecksumAddress
    amount: int
    on_behalf_of: ChecksumAddress
    referral_code: int


class WithdrawArgs(NamedTuple):
    asset: ChecksumAddress
    amount: int
    to: ChecksumAddress


@dataclass
class MaxYieldUSDTStorage:
    owner: ChecksumAddress = ZERO_ADDRESS

    paused: bool = False

    hypurrfi_pool: ChecksumAddress = ZERO_ADDRESS

    hyperlend_pool: ChecksumAddress = ZERO_ADDRESS

    usdt: ChecksumAddress = ZERO_ADDRESS

    hypurrfi_a_token: ChecksumAddress = ZERO_ADDRESS

    hyperlend_a_token: ChecksumAddress = ZERO_ADDRESS


def _decode_pool_payload(data: bytes, expected_selector: bytes, types: list[str]) -> tuple:
    if len(data) < SELECTOR_LENGTH:
        raise InvalidData(data)
    selector, args = split_call_data(data)
    if selector != expected_selector:
        raise InvalidData(data)
    try:
        return decode_arguments(types, args)
    except ABI_DECODING_ERRORS as e:
        raise InvalidData(data) from e


def decode_supply_payload(data: bytes) -> SupplyArgs:
    """Decode a pool ``supply()`` payload.

    :raise InvalidData:
        Not a supply call
    """
    return SupplyArgs(*_decode_pool_payload(data, SUPPLY_SELECTOR, SUPPLY_ARGUMENT_TYPES))


def decode_withdraw_payload(data: bytes) -> WithdrawArgs:
    """Decode a pool ``withdraw()`` payload.

    :raise InvalidData:
        Not a withdraw call
    """
    return WithdrawArgs(*_decode_pool_payload(data, WITHDRAW_SELECTOR, WITHDRAW_ARGUMENT_TYPES))


class MaxYieldUSDT(Ownable, Pausable, Custody, SimulatedContract):
    """USDT vault routing between HypurrFi and HyperLend.

    Constructor arguments: owner, HypurrFi pool, HyperLend pool, USDT,
    HypurrFi aToken, HyperLend aToken. None of the addresses can be changed later.
    """

    storage_class = MaxYieldUSDTStorage

    def constructor(
        self,
        msg: Message,
        owner: ChecksumAddress,
        hypurrfi_pool: ChecksumAddress,
        hyperlend_pool: ChecksumAddress,
        usdt: ChecksumAddress,
        hypurrfi_a_token: ChecksumAddress,
        hyperlend_a_token: ChecksumAddress,
    ):
        self._init_owner(owner)

        addresses = {
            "hypurrfiPool": hypurrfi_pool,
            "hyperlendPool": hyperlend_pool,
            "usdt": usdt,
            "hypurrfiAToken": hypurrfi_a_token,
            "hyperlendAToken": hyperlend_a_token,
        }
        for name, address in addresses.items():
            if address == ZERO_ADDRESS:
                raise InvalidAddress(name)

        s = self.storage
        s.hypurrfi_pool = hypurrfi_pool
        s.hyperlend_pool = hyperlend_pool
        s.usdt = usdt
        s.hypurrfi_a_token = hypurrfi_a_token
        s.hyperlend_a_token = hyperlend_a_token

    def _check_pauser(self, msg: Message):
        self._check_owner(msg)

    def _check_custodian(self, msg: Message):
        self._check_owner(msg)

    def receive(self, msg: Message) -> HexBytes:
        return HexBytes(b"")

    @external("hypurrfiPool()", returns=["address"], mutability="view")
    def hypurrfi_pool(self, msg: Message) -> ChecksumAddress:
        return self.storage.hypurrfi_pool

    @external("hyperlendPool()", returns=["address"], mutability="view")
    def hyperlend_pool(self, msg: Message) -> ChecksumAddress:
        return self.storage.hyperlend_pool

    @external("usdt()", returns=["address"], mutability="view")
    def usdt(self, msg: Message) -> ChecksumAddress:
        return self.storage.usdt

    @external("hypurrfiAToken()", returns=["address"], mutability="view")
    def hypurrfi_a_token(self, msg: Message) -> ChecksumAddress:
        return self.storage.hypurrfi_a_token

    @external("hyperlendAToken()", returns=["address"], mutability="view")
    def hyperlend_a_token(self, msg: Message) -> ChecksumAddress:
        return self.storage.hyperlend_a_token

    def _get_venue(self, action: VaultAction) -> tuple[ChecksumAddress, ChecksumAddress]:
        """:return: (pool, aToken) for the action"""
        s = self.storage
        if action.is_hypurrfi():
            return s.hypurrfi_pool, s.hypurrfi_a_token
        return s.hyperlend_pool, s.hyperlend_a_token

    def _supply(self, msg: Message, action: VaultAction, data: bytes):
        args = decode_supply_payload(data)
        if args.asset != self.storage.usdt:
            raise TokenNotAllowed(args.asset)
        if args.on_behalf_of != msg.sender:
            raise NotOwner(args.on_behalf_of, msg.sender)

        pool, _ = self._get_venue(action)
        self.call_contract_or_revert(args.asset, TRANSFER_FROM_SIGNATURE, msg.sender, self.address, args.amount)
        self.call_contract_or_revert(args.asset, APPROVE_SIGNATURE, pool, args.amount)
        self.call_contract_or_revert(pool, SUPPLY_SIGNATURE, *args)

        logger.info("Vault %s: %s %d for %s", self.address, action.name, args.amount, msg.sender)
        self.emit(action.name, asset=args.asset, amount=args.amount, onBehalfOf=args.on_behalf_of, referralCode=args.referral_code)

    def _withdraw(self, msg: Message, action: VaultAction, data: bytes):
        args = decode_withdraw_payload(data)
        if args.asset != self.storage.usdt:
            raise TokenNotAllowed(args.asset)
        if args.to != msg.sender:
            raise NotOwner(args.to, msg.sender)

        pool, a_token = self._get_venue(action)
        self.call_contract_or_revert(a_token, TRANSFER_FROM_SIGNATURE, msg.sender, self.address, args.amount)
        self.call_contract_or_revert(pool, WITHDRAW_SIGNATURE, *args)

        logger.info("Vault %s: %s %d for %s", self.address, action.name, args.amount, msg.sender)
        self.emit(action.name, asset=args.asset, amount=args.amount, to=args.to)

    @external("execute(uint8,bytes)")
    def execute(self, msg: Message, action: int, data: bytes):
        """Run one of the four vault actions for the caller."""
        self._require_not_paused()

        try:
            action = VaultAction(action)
        except ValueError as e:
            raise InvalidAction(action) from e

        if action.is_supply():
            self._supply(msg, action, data)
        else:
            self._withdraw(msg, action, data)
