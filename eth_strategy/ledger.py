"""In-process transactional ledger.

Runs :py:class:`eth_strategy.contract.SimulatedContract` instances
with all-or-nothing semantics of a blockchain transaction:

- Every transaction and every nested message call is journaled

- A :py:class:`eth_strategy.errors.ContractRevert` restores the state
  as it was before the failed call, including native balances and event logs

- Top-level reverts are raised to the caller, nested call failures are returned
  as :py:class:`CallResult` like Solidity low-level ``call()``

Example:

.. code-block:: python

    ledger = Ledger()
    deployer = ledger.create_account(balance=10**18)
    token = ledger.deploy(MockERC20, deployer, "Tether USD", "USDT", 6)
    token.functions.mint(deployer, 1000 * 10**6).transact({"from": deployer})
    assert token.functions.balanceOf(deployer).call() == 1000 * 10**6

"""

import copy
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterator, Type

from eth_account import Account
from eth_typing import ChecksumAddress, HexAddress
from hexbytes import HexBytes
from web3 import Web3

from eth_strategy.abi import ZERO_ADDRESS, present_solidity_args, to_hex
from eth_strategy.errors import ContractRevert, InsufficientNativeBalance

if TYPE_CHECKING:
    from eth_strategy.contract import SimulatedContract


logger = logging.getLogger(__name__)


#: Chain id of the local test chain
DEFAULT_CHAIN_ID = 1337


@dataclass(frozen=True)
class Message:
    """Call context visible to a contract function.

    Solidity ``msg.sender`` and ``msg.value``.
    """

    sender: ChecksumAddress

    value: int = 0


@dataclass
class EventLog:
    """One emitted contract event."""

    #: Emitting contract
    address: ChecksumAddress

    #: Event name, e.g. ``ActionExecuted``
    event: str

    #: Event arguments by name
    args: dict[str, Any]

    #: Position in the ledger log
    log_index: int


@dataclass
class CallResult:
    """Outcome of a nested message call."""

    success: bool

    return_data: HexBytes

    #: The revert if the call failed
    error: ContractRevert | None = None


@dataclass
class TxReceipt:
    """Transaction receipt.

    Failed transactions get a receipt with ``status == 0`` and no logs.
    """

    tx_hash: HexBytes

    #: 1 for success, 0 for revert
    status: int

    from_address: ChecksumAddress

    to: ChecksumAddress | None

    logs: list[EventLog] = field(default_factory=list)

    #: Set for deployments
    contract_address: ChecksumAddress | None = None

    return_data: HexBytes = HexBytes(b"")

    error: ContractRevert | None = None

    def get_events(self, event: str) -> list[EventLog]:
        """Get all events of a name emitted in this transaction."""
        return [log for log in self.logs if log.event == event]


@dataclass
class LedgerSnapshot:
    """Everything needed to undo a failed call."""

    storage: dict[ChecksumAddress, Any]

    balances: dict[ChecksumAddress, int]

    contracts: dict[ChecksumAddress, "SimulatedContract"]

    log_count: int


class Ledger:
    """Sequential transaction processor for simulated contracts.

    - Single threaded: one operation at a time, in the order they are called

    - Contract state lives in :py:attr:`storage`, one aggregate per contract,
      so it can be journaled
    """

    def __init__(self, chain_id: int = DEFAULT_CHAIN_ID):
        self.chain_id = chain_id

        #: Address -> contract instance
        self.contracts: dict[ChecksumAddress, "SimulatedContract"] = {}

        #: Address -> contract storage aggregate
        self.storage: dict[ChecksumAddress, Any] = {}

        #: Native token balances
        self.balances: dict[ChecksumAddress, int] = {}

        #: Transaction counts per sender
        self.nonces: dict[ChecksumAddress, int] = {}

        #: All events of successful transactions
        self.logs: list[EventLog] = []

        #: All processed transactions, including failed ones
        self.receipts: list[TxReceipt] = []

    def __repr__(self):
        return f"<Ledger chain {self.chain_id}, {len(self.contracts)} contracts, {len(self.receipts)} transactions>"

    def create_account(self, balance: int = 0) -> ChecksumAddress:
        """Create a new random account.

        :param balance:
            Native token balance to give for the account
        """
        address = Web3.to_checksum_address(Account.create().address)
        self.balances[address] = balance
        return address

    def get_balance(self, address: HexAddress | str) -> int:
        """Native token balance."""
        return self.balances.get(Web3.to_checksum_address(address), 0)

    def set_balance(self, address: HexAddress | str, amount: int):
        """Set native balance of any account.

        Test chain cheat code, like ``anvil_setBalance``.
        """
        assert amount >= 0
        self.balances[Web3.to_checksum_address(address)] = amount

    def get_nonce(self, address: HexAddress | str) -> int:
        return self.nonces.get(Web3.to_checksum_address(address), 0)

    def get_contract(self, address: HexAddress | str) -> "SimulatedContract | None":
        return self.contracts.get(Web3.to_checksum_address(address))

    def snapshot(self) -> LedgerSnapshot:
        return LedgerSnapshot(
            storage=copy.deepcopy(self.storage),
            balances=dict(self.balances),
            contracts=dict(self.contracts),
            log_count=len(self.logs),
        )

    def restore(self, snapshot: LedgerSnapshot):
        """Undo everything done after the snapshot."""
        storage = {}
        for address, saved in snapshot.storage.items():
            current = self.storage.get(address)
            if current is not None:
                # Keep the object identity, running calls may hold a reference
                current.__dict__.update(saved.__dict__)
                storage[address] = current
            else:
                storage[address] = saved
        self.storage = storage
        self.balances = snapshot.balances
        self.contracts = snapshot.contracts
        del self.logs[snapshot.log_count :]

    @contextmanager
    def journal(self) -> Iterator[LedgerSnapshot]:
        """Roll back all changes if a revert happens inside the block."""
        snapshot = self.snapshot()
        try:
            yield snapshot
        except ContractRevert:
            self.restore(snapshot)
            raise

    def emit(self, address: ChecksumAddress, event: str, args: dict[str, Any]) -> EventLog:
        """Record an event emitted by a contract."""
        log = EventLog(address=address, event=event, args=args, log_index=len(self.logs))
        self.logs.append(log)
        logger.debug("Event %s from %s: %s", event, address, present_solidity_args(list(args.values())))
        return log

    def _use_nonce(self, sender: ChecksumAddress) -> int:
        nonce = self.nonces.get(sender, 0)
        self.nonces[sender] = nonce + 1
        return nonce

    def _move_value(self, sender: ChecksumAddress, to: ChecksumAddress, value: int):
        assert value >= 0, f"Negative value {value}"
        if value == 0:
            return
        balance = self.balances.get(sender, 0)
        if balance < value:
            raise InsufficientNativeBalance(sender, balance, value)
        self.balances[sender] = balance - value
        self.balances[to] = self.balances.get(to, 0) + value

    def _execute(self, sender: ChecksumAddress, to: ChecksumAddress, data: bytes, value: int) -> HexBytes:
        self._move_value(sender, to, value)
        contract = self.contracts.get(to)
        if contract is None:
            # Plain account, nothing to run
            return HexBytes(b"")
        return contract.handle_call(Message(sender=sender, value=value), HexBytes(data))

    def deploy(
        self,
        contract_class: Type["SimulatedContract"],
        deployer: HexAddress | str,
        *constructor_args,
        value: int = 0,
    ) -> "SimulatedContract":
        """Deploy a new contract.

        The contract address is derived from the deployer and its nonce.

        :raise ContractRevert:
            If the constructor fails. Nothing is left behind.
        """
        deployer = Web3.to_checksum_address(deployer)
        nonce = self._use_nonce(deployer)
        address = Web3.to_checksum_address(Web3.keccak(HexBytes(deployer) + nonce.to_bytes(32, "big"))[12:])
        tx_hash = HexBytes(Web3.keccak(HexBytes(deployer) + nonce.to_bytes(32, "big") + b"deploy"))
        log_start = len(self.logs)

        try:
            with self.journal():
                contract = contract_class(self, address)
                self.contracts[address] = contract
                self.storage[address] = contract_class.create_storage()
                self._move_value(deployer, address, value)
                contract.constructor(Message(sender=deployer, value=value), *constructor_args)
        except ContractRevert as e:
            logger.debug("Deployment of %s by %s failed: %s", contract_class.__name__, deployer, e)
            self.receipts.append(TxReceipt(tx_hash=tx_hash, status=0, from_address=deployer, to=None, error=e))
            raise

        receipt = TxReceipt(
            tx_hash=tx_hash,
            status=1,
            from_address=deployer,
            to=None,
            logs=self.logs[log_start:],
            contract_address=address,
        )
        self.receipts.append(receipt)
        logger.debug("Deployed %s at %s", contract_class.__name__, address)
        return contract

    def call(
        self,
        sender: HexAddress | str,
        to: HexAddress | str,
        data: bytes,
        value: int = 0,
    ) -> CallResult:
        """Nested message call from a contract.

        Never raises a revert: a failed call is rolled back and reported in the result.
        """
        sender = Web3.to_checksum_address(sender)
        to = Web3.to_checksum_address(to)
        snapshot = self.snapshot()
        try:
            return_data = self._execute(sender, to, data, value)
        except ContractRevert as e:
            self.restore(snapshot)
            logger.debug("Call %s -> %s, data %s failed: %s", sender, to, to_hex(data[:4]), e)
            return CallResult(success=False, return_data=HexBytes(b""), error=e)
        return CallResult(success=True, return_data=return_data)

    def transact(
        self,
        sender: HexAddress | str,
        to: HexAddress | str,
        data: bytes = b"",
        value: int = 0,
    ) -> TxReceipt:
        """Process a top-level transaction.

        :raise ContractRevert:
            The transaction reverted. All its effects have been rolled back
            and a failed receipt is recorded in :py:attr:`receipts`.
        """
        sender = Web3.to_checksum_address(sender)
        to = Web3.to_checksum_address(to)
        nonce = self._use_nonce(sender)
        tx_hash = HexBytes(Web3.keccak(HexBytes(sender) + nonce.to_bytes(32, "big")))
        log_start = len(self.logs)

        try:
            with self.journal():
                return_data = self._execute(sender, to, data, value)
        except ContractRevert as e:
            logger.debug("Transaction %s from %s to %s reverted: %s", to_hex(tx_hash), sender, to, e)
            self.receipts.append(TxReceipt(tx_hash=tx_hash, status=0, from_address=sender, to=to, error=e))
            raise

        receipt = TxReceipt(
            tx_hash=tx_hash,
            status=1,
            from_address=sender,
            to=to,
            logs=self.logs[log_start:],
            return_data=return_data,
        )
        self.receipts.append(receipt)
        return receipt

    def static_call(
        self,
        sender: HexAddress | str | None,
        to: HexAddress | str,
        data: bytes,
        value: int = 0,
    ) -> HexBytes:
        """Read-only call.

        Like ``eth_call``: state changes are always discarded.

        :raise ContractRevert:
            If the call reverts
        """
        sender = Web3.to_checksum_address(sender or ZERO_ADDRESS)
        to = Web3.to_checksum_address(to)
        snapshot = self.snapshot()
        try:
            return self._execute(sender, to, data, value)
        finally:
            self.restore(snapshot)
