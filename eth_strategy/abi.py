"""ABI encode and decode helpers.

Deal with Solidity function selectors and raw call payloads
the same way the EVM sees them: a 4 byte selector followed by
32 byte argument words.
"""

from typing import Any, Sequence

import eth_abi
from eth_abi.exceptions import DecodingError
from eth_typing import ChecksumAddress, HexStr
from hexbytes import HexBytes
from web3 import Web3

#: Ethereum 0x0000000000000000000000000000000000000000 address as a string.
ZERO_ADDRESS_STR = "0x0000000000000000000000000000000000000000"

#: Ethereum 0x0000000000000000000000000000000000000000 address
ZERO_ADDRESS = ZERO_ADDRESS_STR

#: How many bytes a Solidity function selector takes
SELECTOR_LENGTH = 4

#: ABI head slot size
WORD_SIZE = 32

#: Selector used when there is no function call, e.g. plain native token transfers
EMPTY_SELECTOR = HexBytes(b"\x00" * SELECTOR_LENGTH)

#: What eth_abi may raise for a malformed payload, e.g. a dynamic length word past any real size
ABI_DECODING_ERRORS = (DecodingError, OverflowError, ValueError)


def split_argument_types(types_text: str) -> list[str]:
    """Split a comma separated ABI type list.

    Commas inside tuple types are not split points.

    Example:

    .. code-block:: python

        assert split_argument_types("address,(uint256,bool)[]") == ["address", "(uint256,bool)[]"]

    """
    types = []
    depth = 0
    current = ""
    for c in types_text:
        if c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
        if c == "," and depth == 0:
            types.append(current.strip())
            current = ""
        else:
            current += c

    if current.strip():
        types.append(current.strip())

    assert depth == 0, f"Unbalanced parenthesis in ABI types: {types_text}"
    return types


def parse_function_signature(function_signature: str) -> tuple[str, list[str]]:
    """Split ``transfer(address,uint256)`` to a name and argument types.

    :return:
        Tuple (function name, list of argument ABI types)
    """
    assert "(" in function_signature and function_signature.endswith(")"), f"Not a function signature: {function_signature}"
    name = function_signature[: function_signature.find("(")]
    types_text = function_signature[function_signature.find("(") + 1 : -1]
    return name, split_argument_types(types_text)


def get_function_selector(function_signature: str) -> HexBytes:
    """Get Solidity function selector.

    Example:

    .. code-block:: python

        selector = get_function_selector("transfer(address,uint256)")
        assert selector.hex() == "a9059cbb"

    :param function_signature:
        Canonical Solidity signature, no spaces or argument names.

    :return:
        First 32-bit (4 bytes) keccak hash.
    """
    assert " " not in function_signature, f"Signature must be in canonical form: {function_signature}"
    return HexBytes(Web3.keccak(text=function_signature)[:SELECTOR_LENGTH])


def normalise_selector(selector: bytes | HexBytes | str) -> HexBytes:
    """Accept a selector in any format we see in tests and configuration.

    :param selector:
        Raw bytes or ``0x`` prefixed hex string like ``0x12345678``.
    """
    selector = HexBytes(selector)
    assert len(selector) == SELECTOR_LENGTH, f"Selector must be {SELECTOR_LENGTH} bytes, got {selector.hex()}"
    return selector


def prepare_abi_value(abi_type: str, value: Any) -> Any:
    """Convert Python friendly values to something eth_abi accepts.

    - ``bytes`` and ``bytesN`` arguments can be given as hex strings

    - Addresses are checksummed
    """
    if abi_type.startswith("bytes") and not abi_type.endswith("]") and isinstance(value, str):
        return HexBytes(value)
    if abi_type == "address" and isinstance(value, str):
        return Web3.to_checksum_address(value)
    return value


def encode_arguments(types: Sequence[str], args: Sequence) -> bytes:
    """ABI encode argument values."""
    assert len(types) == len(args), f"Expected {len(types)} arguments for {types}, got {len(args)}"
    values = [prepare_abi_value(t, a) for t, a in zip(types, args)]
    return eth_abi.encode(list(types), values)


def encode_with_signature(function_signature: str, args: Sequence) -> HexBytes:
    """Mimic Solidity's abi.encodeWithSignature() in Python.

    Example:

    .. code-block:: python

            payload = encode_with_signature("transfer(address,uint256)", [user, 100 * 10**6])
            assert payload[0:4] == get_function_selector("transfer(address,uint256)")

    :param function_signature:
        Solidity function signature that can be hashed to a selector.

        ABI fill be extractd from this signature.

    :param args:
        Argument values to be encoded.
    """
    assert type(args) in (tuple, list)
    _, arg_types = parse_function_signature(function_signature)
    return HexBytes(get_function_selector(function_signature) + encode_arguments(arg_types, args))


def normalise_decoded_value(abi_type: str, value: Any) -> Any:
    """eth_abi may return lowercased addresses depending on the version."""
    if abi_type == "address":
        return Web3.to_checksum_address(value)
    if abi_type == "address[]":
        return [Web3.to_checksum_address(v) for v in value]
    return value


def decode_arguments(types: Sequence[str], data: bytes) -> tuple:
    """ABI decode argument values.

    :raise:
        One of :py:data:`ABI_DECODING_ERRORS` if the data does not match the types
    """
    decoded = eth_abi.decode(list(types), bytes(data))
    return tuple(normalise_decoded_value(t, v) for t, v in zip(types, decoded))


def split_call_data(data: bytes) -> tuple[HexBytes, HexBytes]:
    """Split call payload to selector and argument payload.

    :return:
        Tuple (selector, encoded arguments)
    """
    assert len(data) >= SELECTOR_LENGTH, f"Call data too short: {HexBytes(data).hex()}"
    return HexBytes(data[:SELECTOR_LENGTH]), HexBytes(data[SELECTOR_LENGTH:])


def read_argument_word(data: bytes, index: int) -> bytes | None:
    """Read one 32 byte argument word from call data.

    Word offset is counted from the end of the selector,
    like Solidity ``calldataload(4 + index * 32)``.

    :param index:
        Zero-based argument slot

    :return:
        The word, or ``None`` if the payload is not long enough
    """
    start = SELECTOR_LENGTH + index * WORD_SIZE
    end = start + WORD_SIZE
    if end > len(data):
        return None
    return bytes(data[start:end])


def decode_address_word(word: bytes) -> ChecksumAddress:
    """Interpret a 32 byte ABI word as an address.

    :raise ValueError:
        The upper 12 bytes are not zero, so the word is not a clean address
    """
    assert len(word) == WORD_SIZE, f"Expected {WORD_SIZE} bytes, got {len(word)}"
    if any(word[: WORD_SIZE - 20]):
        raise ValueError(f"Word has dirty address padding: 0x{word.hex()}")
    (address,) = decode_arguments(["address"], word)
    return address


def to_hex(data: bytes) -> HexStr:
    """Format bytes as ``0x`` prefixed hex.

    HexBytes.hex() prefix differs between versions, so do it by hand.
    """
    return HexStr("0x" + bytes(data).hex())


def _hexify(s: Any):
    if type(s) in (list, tuple):
        return str([_hexify(x) for x in s])
    if isinstance(s, str):
        return s
    elif isinstance(s, bytes):
        return to_hex(s)
    return str(s)


def present_solidity_args(a: list | tuple | Any) -> str:
    """Try make Solidity call args human readable.

    Make sure we display bytes as hex.

    Example:

    .. code-block:: python

        logger.info(
            "Executing %s on %s, args: %s",
            selector.hex(),
            target,
            present_solidity_args(args),
        )
    """
    return _hexify(a)
