"""ABI helpers."""

import pytest
from hexbytes import HexBytes
from web3 import Web3

from eth_strategy.abi import (
    decode_address_word,
    encode_with_signature,
    get_function_selector,
    normalise_selector,
    parse_function_signature,
    present_solidity_args,
    read_argument_word,
    split_argument_types,
    split_call_data,
    to_hex,
)

USER = Web3.to_checksum_address("0x1234567890123456789012345678901234567890")


def test_function_selector():
    assert to_hex(get_function_selector("transfer(address,uint256)")) == "0xa9059cbb"
    assert to_hex(get_function_selector("supply(address,uint256,address,uint16)")) == "0x617ba037"
    assert to_hex(get_function_selector("withdraw(address,uint256,address)")) == "0x69328dec"


def test_split_tuple_types():
    """Commas inside tuples do not split."""
    assert split_argument_types("address,(uint256,bool)[]") == ["address", "(uint256,bool)[]"]
    assert split_argument_types("") == []
    assert parse_function_signature("getActionParamRoles(address,bytes4)") == ("getActionParamRoles", ["address", "bytes4"])


def test_encode_with_signature():
    payload = encode_with_signature("transfer(address,uint256)", [USER, 100])
    selector, args = split_call_data(payload)
    assert selector == get_function_selector("transfer(address,uint256)")
    assert len(args) == 64
    assert read_argument_word(payload, 1) == (100).to_bytes(32, "big")
    assert decode_address_word(read_argument_word(payload, 0)) == USER


def test_read_argument_word_past_payload():
    payload = encode_with_signature("transfer(address,uint256)", [USER, 100])
    assert read_argument_word(payload, 2) is None
    assert read_argument_word(payload[:40], 1) is None


def test_dirty_address_padding():
    word = b"\x01" + b"\x00" * 11 + HexBytes(USER)
    with pytest.raises(ValueError):
        decode_address_word(word)


def test_normalise_selector():
    assert normalise_selector("0x12345678") == HexBytes("0x12345678")
    assert normalise_selector(b"\x12\x34\x56\x78") == HexBytes("0x12345678")


def test_present_solidity_args():
    assert present_solidity_args([b"\x12\x34", 1, "foo"]) == str(["0x1234", "1", "foo"])
