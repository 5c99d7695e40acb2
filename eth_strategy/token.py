"""ERC-20 tokens on the simulated ledger.

- :py:class:`ERC20` with OpenZeppelin v5 semantics

- :py:class:`MockERC20` owner-mintable token for tests

- :py:func:`fetch_erc20_details` to work with token amounts in decimal units
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Union

from eth_typing import ChecksumAddress, HexAddress
from web3 import Web3

from eth_strategy.abi import ZERO_ADDRESS, get_function_selector
from eth_strategy.contract import SimulatedContract, external
from eth_strategy.errors import (
    ArithmeticOverflow,
    ContractRevert,
    ERC20InsufficientAllowance,
    ERC20InsufficientBalance,
    ERC20InvalidReceiver,
)
from eth_strategy.ledger import Ledger, Message
from eth_strategy.ownable import Ownable

logger = logging.getLogger(__name__)


#: Largest uint256, also the infinite allowance
MAX_UINT256 = 2**256 - 1

TRANSFER_SIGNATURE = "transfer(address,uint256)"

TRANSFER_FROM_SIGNATURE = "transferFrom(address,address,uint256)"

APPROVE_SIGNATURE = "approve(address,uint256)"

#: ``0xa9059cbb``
TRANSFER_SELECTOR = get_function_selector(TRANSFER_SIGNATURE)


class TokenDetailError(Exception):
    """Cannot extract token details for an ERC-20 token for some reason."""


@dataclass
class ERC20Storage:
    name: str = ""

    symbol: str = ""

    decimals: int = 18

    total_supply: int = 0

    balances: dict[ChecksumAddress, int] = field(default_factory=dict)

    #: (owner, spender) -> allowance
    allowances: dict[tuple[ChecksumAddress, ChecksumAddress], int] = field(default_factory=dict)


class ERC20(SimulatedContract):
    """Fungible token.

    Constructor arguments: name, symbol, decimals.
    """

    storage_class = ERC20Storage

    def constructor(self, msg: Message, name: str, symbol: str, decimals: int = 18):
        self.storage.name = name
        self.storage.symbol = symbol
        self.storage.decimals = decimals

    def _update(self, sender: ChecksumAddress, receiver: ChecksumAddress, amount: int):
        s = self.storage
        if sender == ZERO_ADDRESS:
            if s.total_supply + amount > MAX_UINT256:
                raise ArithmeticOverflow(f"Total supply of {s.symbol} would overflow")
            s.total_supply += amount
        else:
            balance = s.balances.get(sender, 0)
            if balance < amount:
                raise ERC20InsufficientBalance(sender, balance, amount)
            s.balances[sender] = balance - amount

        if receiver == ZERO_ADDRESS:
            s.total_supply -= amount
        else:
            s.balances[receiver] = s.balances.get(receiver, 0) + amount

        self.emit("Transfer", **{"from": sender, "to": receiver, "value": amount})

    def _mint(self, account: ChecksumAddress, amount: int):
        if account == ZERO_ADDRESS:
            raise ERC20InvalidReceiver(account)
        self._update(ZERO_ADDRESS, account, amount)

    def _burn(self, account: ChecksumAddress, amount: int):
        self._update(account, ZERO_ADDRESS, amount)

    def _spend_allowance(self, owner: ChecksumAddress, spender: ChecksumAddress, amount: int):
        allowance = self.storage.allowances.get((owner, spender), 0)
        if allowance == MAX_UINT256:
            return
        if allowance < amount:
            raise ERC20InsufficientAllowance(spender, allowance, amount)
        self.storage.allowances[(owner, spender)] = allowance - amount

    @external("name()", returns=["string"], mutability="view")
    def name(self, msg: Message) -> str:
        return self.storage.name

    @external("symbol()", returns=["string"], mutability="view")
    def symbol(self, msg: Message) -> str:
        return self.storage.symbol

    @external("decimals()", returns=["uint8"], mutability="view")
    def decimals(self, msg: Message) -> int:
        return self.storage.decimals

    @external("totalSupply()", returns=["uint256"], mutability="view")
    def total_supply(self, msg: Message) -> int:
        return self.storage.total_supply

    @external("balanceOf(address)", returns=["uint256"], mutability="view")
    def balance_of(self, msg: Message, account: ChecksumAddress) -> int:
        return self.storage.balances.get(account, 0)

    @external("allowance(address,address)", returns=["uint256"], mutability="view")
    def allowance(self, msg: Message, owner: ChecksumAddress, spender: ChecksumAddress) -> int:
        return self.storage.allowances.get((owner, spender), 0)

    @external(TRANSFER_SIGNATURE, returns=["bool"])
    def transfer(self, msg: Message, to: ChecksumAddress, amount: int) -> bool:
        if to == ZERO_ADDRESS:
            raise ERC20InvalidReceiver(to)
        self._update(msg.sender, to, amount)
        return True

    @external(APPROVE_SIGNATURE, returns=["bool"])
    def approve(self, msg: Message, spender: ChecksumAddress, amount: int) -> bool:
        self.storage.allowances[(msg.sender, spender)] = amount
        self.emit("Approval", owner=msg.sender, spender=spender, value=amount)
        return True

    @external(TRANSFER_FROM_SIGNATURE, returns=["bool"])
    def transfer_from(self, msg: Message, sender: ChecksumAddress, to: ChecksumAddress, amount: int) -> bool:
        if to == ZERO_ADDRESS:
            raise ERC20InvalidReceiver(to)
        self._spend_allowance(sender, msg.sender, amount)
        self._update(sender, to, amount)
        return True


@dataclass
class MockERC20Storage(ERC20Storage):
    owner: ChecksumAddress = ZERO_ADDRESS


class MockERC20(Ownable, ERC20):
    """Test token the owner can mint and burn.

    Receipt tokens of :py:class:`eth_strategy.lending_pool.MockPool` are
    instances of this, with the ownership transferred to the pool.
    """

    storage_class = MockERC20Storage

    def constructor(self, msg: Message, name: str, symbol: str, decimals: int = 18):
        super().constructor(msg, name, symbol, decimals)
        self._init_owner(msg.sender)

    @external("mint(address,uint256)")
    def mint(self, msg: Message, to: ChecksumAddress, amount: int):
        self._check_owner(msg)
        self._mint(to, amount)

    @external("burn(address,uint256)")
    def burn(self, msg: Message, account: ChecksumAddress, amount: int):
        self._check_owner(msg)
        self._burn(account, amount)


def create_token(
    ledger: Ledger,
    deployer: str,
    name: str,
    symbol: str,
    supply: int = 0,
    decimals: int = 18,
) -> MockERC20:
    """Deploys a new ERC-20 token on the ledger.

    Example:

    .. code-block::

        # Deploys an ERC-20 token where 100,000 tokens are allocated ato the deployer address
        token = create_token(ledger, deployer, "Tether USD", "USDT", 100_000 * 10**6, 6)
        print(f"Deployed token contract address is {token.address}")

    :param deployer:
        Deployer account as 0x address. Will be the token owner.

    :param supply: Token starting supply as raw units.

        E.g. ``500 * 10**18`` to have 500 tokens minted to the deployer
        at the start.

    :param decimals: How many decimals ERC-20 token values have
    """
    token = ledger.deploy(MockERC20, deployer, name, symbol, decimals)
    if supply:
        token.functions.mint(deployer, supply).transact({"from": deployer})
    logger.info("Created token %s (%s) at %s", name, symbol, token.address)
    return token


@dataclass
class TokenDetails:
    """ERC-20 token Python presentation.

    - A helper class to work with ERC-20 tokens.

    - Deal with token value decimal conversions.
    """

    #: The token contract
    contract: ERC20

    #: Token name e.g. ``Tether USD``
    name: str

    #: Token symbol e.g. ``USDT``
    symbol: str

    #: Token supply as raw units
    total_supply: int

    #: Number of decimals
    decimals: int

    def __repr__(self):
        return f"<{self.name} ({self.symbol}) at {self.contract.address}, {self.decimals} decimals>"

    @property
    def address(self) -> ChecksumAddress:
        return self.contract.address

    def convert_to_decimals(self, raw_amount: int) -> Decimal:
        """Convert raw token units to decimals.

        Example:

        .. code-block:: python

            details = fetch_erc20_details(ledger, usdt.address)
            assert details.convert_to_decimals(1) == Decimal("0.000001")

        """
        assert type(raw_amount) == int, f"Got {type(raw_amount)}, expected int: {raw_amount}"
        return Decimal(raw_amount) / Decimal(10**self.decimals)

    def convert_to_raw(self, decimal_amount: Decimal) -> int:
        """Convert decimalised token amount to raw uint256.

        Example:

        .. code-block:: python

            # Convert 1.0 USDT to raw unit with 6 decimals
            assert details.convert_to_raw(1) == 1_000_000

        """
        return int(decimal_amount * 10**self.decimals)

    def fetch_balance_of(self, address: HexAddress | str) -> Decimal:
        """Get an address token balance.

        :return:
            Converted to decimal using :py:meth:`convert_to_decimal`
        """
        address = Web3.to_checksum_address(address)
        raw_amount = self.contract.functions.balanceOf(address).call()
        return self.convert_to_decimals(raw_amount)


def fetch_erc20_details(ledger: Ledger, token_address: Union[HexAddress, str]) -> TokenDetails:
    """Read token details from the ledger.

    :raise TokenDetailError:
        If the address is not a token contract
    """
    contract = ledger.get_contract(token_address)
    if not isinstance(contract, ERC20):
        raise TokenDetailError(f"Address {token_address} is not an ERC-20 token")

    try:
        return TokenDetails(
            contract=contract,
            name=contract.functions.name().call(),
            symbol=contract.functions.symbol().call(),
            total_supply=contract.functions.totalSupply().call(),
            decimals=contract.functions.decimals().call(),
        )
    except ContractRevert as e:
        raise TokenDetailError(f"Could not read token details for {token_address}") from e
