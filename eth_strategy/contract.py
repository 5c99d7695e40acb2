"""Simulated contracts with an ABI call surface.

Contracts are Python classes whose ABI-callable functions are
marked with :py:func:`external`. Calls arrive as raw call data
and are dispatched by the 4 byte selector, like the EVM does.

The :py:attr:`SimulatedContract.functions` proxy mimics the web3.py
``Contract.functions`` interface:

.. code-block:: python

    token.functions.transfer(user, 100).transact({"from": deployer})
    balance = token.functions.balanceOf(user).call()
    payload = token.functions.transfer(user, 100).encode()

"""

import logging
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, Any, Callable, Literal, Sequence

from eth_typing import ChecksumAddress
from hexbytes import HexBytes

from eth_strategy.abi import (
    ABI_DECODING_ERRORS,
    SELECTOR_LENGTH,
    decode_arguments,
    encode_arguments,
    encode_with_signature,
    get_function_selector,
    parse_function_signature,
)
from eth_strategy.errors import FunctionNotFound, InvalidData, NonPayable
from eth_strategy.ledger import CallResult, Message, TxReceipt

if TYPE_CHECKING:
    from eth_strategy.ledger import Ledger


logger = logging.getLogger(__name__)


#: Solidity function state mutability
Mutability = Literal["nonpayable", "payable", "view"]


@dataclass(frozen=True)
class ExternalFunction:
    """ABI description of one contract function."""

    #: Function name, e.g. ``transfer``
    name: str

    #: Canonical signature, e.g. ``transfer(address,uint256)``
    signature: str

    selector: HexBytes

    input_types: tuple[str, ...]

    output_types: tuple[str, ...]

    mutability: Mutability

    #: Python method implementing the function
    method_name: str

    def encode_output(self, result: Any) -> HexBytes:
        if not self.output_types:
            return HexBytes(b"")
        if len(self.output_types) == 1:
            return HexBytes(encode_arguments(self.output_types, [result]))
        return HexBytes(encode_arguments(self.output_types, result))

    def decode_output(self, data: bytes) -> Any:
        if not self.output_types:
            return None
        decoded = decode_arguments(self.output_types, data)
        if len(decoded) == 1:
            return decoded[0]
        return decoded


def external(
    signature: str,
    returns: Sequence[str] = (),
    mutability: Mutability = "nonpayable",
) -> Callable:
    """Mark a method callable through the contract ABI.

    The method receives :py:class:`eth_strategy.ledger.Message`
    as the first argument after ``self``, followed by the decoded call arguments.

    :param signature:
        Canonical Solidity signature

    :param returns:
        ABI types of the return values

    :param mutability:
        ``view`` functions are used for reads, ``payable`` functions accept native value
    """
    name, input_types = parse_function_signature(signature)

    def decorator(func):
        func.__external__ = ExternalFunction(
            name=name,
            signature=signature,
            selector=get_function_selector(signature),
            input_types=tuple(input_types),
            output_types=tuple(returns),
            mutability=mutability,
            method_name=func.__name__,
        )
        return func

    return decorator


class BoundContractFunction:
    """A contract function with its arguments.

    Like web3.py ``ContractFunction`` prepared for a call.
    """

    def __init__(self, contract: "SimulatedContract", fn: ExternalFunction, *args):
        self.contract = contract
        self.fn = fn
        self.args = tuple(args)

    def __repr__(self):
        return f"<{self.fn.signature} on {self.contract.address} args {self.args}>"

    @property
    def address(self) -> ChecksumAddress:
        return self.contract.address

    @property
    def fn_name(self) -> str:
        return self.fn.name

    @property
    def selector(self) -> HexBytes:
        return self.fn.selector

    def encode(self) -> HexBytes:
        """Encode function selector + its arguments as data payload."""
        return HexBytes(self.fn.selector + encode_arguments(self.fn.input_types, self.args))

    def call(self, tx: dict | None = None) -> Any:
        """Read the function result without persisting any changes.

        :param tx:
            Optional ``{"from": address, "value": int}``

        :return:
            Decoded return value, unwrapped if there is only one
        """
        tx = tx or {}
        data = self.contract.ledger.static_call(tx.get("from"), self.address, self.encode(), tx.get("value", 0))
        return self.fn.decode_output(data)

    def transact(self, tx: dict) -> TxReceipt:
        """Execute as a transaction.

        :param tx:
            ``{"from": address}`` with optional ``"value"``

        :raise eth_strategy.errors.ContractRevert:
            If the transaction reverts
        """
        assert "from" in tx, f"Transaction needs a sender: {tx}"
        return self.contract.ledger.transact(tx["from"], self.address, self.encode(), tx.get("value", 0))


class ContractFunctions:
    """Attribute access to contract functions by their ABI name."""

    def __init__(self, contract: "SimulatedContract"):
        self._contract = contract

    def __getattr__(self, name: str) -> Callable[..., BoundContractFunction]:
        fn = self._contract.get_function_by_name(name)
        if fn is None:
            raise AttributeError(f"{self._contract.__class__.__name__} has no external function {name}")
        return partial(BoundContractFunction, self._contract, fn)


class SimulatedContract:
    """Base class for contracts running on :py:class:`eth_strategy.ledger.Ledger`.

    - Subclasses declare their persistent state as a dataclass in :py:attr:`storage_class`

    - All state must be kept in :py:attr:`storage`, so that the ledger can roll it back

    - Constructor logic goes to :py:meth:`constructor`
    """

    #: Dataclass type for the contract persistent state
    storage_class: type | None = None

    #: Selector -> function, built for each subclass
    abi: dict[bytes, ExternalFunction] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        abi = {}
        # Walk the MRO so that mixins contribute their functions
        for klass in reversed(cls.__mro__):
            for value in vars(klass).values():
                fn = getattr(value, "__external__", None)
                if fn is not None:
                    abi[bytes(fn.selector)] = fn
        cls.abi = abi

    def __init__(self, ledger: "Ledger", address: ChecksumAddress):
        self.ledger = ledger
        self.address = address

    def __repr__(self):
        return f"<{self.__class__.__name__} at {self.address}>"

    @classmethod
    def create_storage(cls) -> Any:
        assert cls.storage_class is not None, f"{cls.__name__} does not declare storage_class"
        return cls.storage_class()

    @classmethod
    def get_function_by_name(cls, name: str) -> ExternalFunction | None:
        for fn in cls.abi.values():
            if fn.name == name:
                return fn
        return None

    @property
    def storage(self) -> Any:
        """The persistent state of this contract.

        Always look it up through the ledger, as a revert may replace the object.
        """
        return self.ledger.storage[self.address]

    @property
    def functions(self) -> ContractFunctions:
        return ContractFunctions(self)

    def constructor(self, msg: Message, *args):
        """Initialise storage on deployment."""

    def receive(self, msg: Message) -> HexBytes:
        """Plain native token transfer with no call data.

        Reverts unless the subclass overrides.
        """
        raise FunctionNotFound(self.address, b"\x00" * SELECTOR_LENGTH)

    def handle_call(self, msg: Message, data: HexBytes) -> HexBytes:
        """Dispatch a raw call to the matching external function."""
        if len(data) == 0:
            return self.receive(msg)

        if len(data) < SELECTOR_LENGTH:
            raise FunctionNotFound(self.address, data.rjust(SELECTOR_LENGTH, b"\x00"))

        selector = bytes(data[:SELECTOR_LENGTH])
        fn = self.abi.get(selector)
        if fn is None:
            raise FunctionNotFound(self.address, selector)

        if msg.value > 0 and fn.mutability != "payable":
            raise NonPayable(self.address, selector, msg.value)

        try:
            args = decode_arguments(fn.input_types, data[SELECTOR_LENGTH:])
        except ABI_DECODING_ERRORS as e:
            raise InvalidData(data) from e

        result = getattr(self, fn.method_name)(msg, *args)
        return fn.encode_output(result)

    def emit(self, event: str, **args):
        """Emit a contract event."""
        self.ledger.emit(self.address, event, args)

    def call_contract(self, to: str, function_signature: str, *args, value: int = 0) -> CallResult:
        """Low-level call to another contract.

        Failures are returned, not raised.
        """
        data = encode_with_signature(function_signature, list(args))
        return self.ledger.call(self.address, to, data, value)

    def call_contract_or_revert(self, to: str, function_signature: str, *args, value: int = 0) -> HexBytes:
        """Call another contract and bubble up its revert.

        Like a Solidity interface call.
        """
        result = self.call_contract(to, function_signature, *args, value=value)
        if not result.success:
            raise result.error
        return result.return_data
