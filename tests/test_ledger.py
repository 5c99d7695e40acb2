"""Transaction processing and rollback."""

import pytest
from web3 import Web3

from eth_strategy.errors import ERC20InsufficientBalance, FunctionNotFound, InsufficientNativeBalance, NonPayable
from eth_strategy.ledger import Ledger
from eth_strategy.token import TRANSFER_SIGNATURE, MockERC20, create_token
from eth_strategy.abi import encode_with_signature


def test_create_account(ledger: Ledger):
    account = ledger.create_account(balance=5)
    assert Web3.is_checksum_address(account)
    assert ledger.get_balance(account) == 5
    assert ledger.get_balance(account.lower()) == 5


def test_deploy_address_from_nonce(ledger: Ledger, deployer: str):
    """Every deployment gets a new address and uses a nonce."""
    token_1 = ledger.deploy(MockERC20, deployer, "Token 1", "ONE", 18)
    token_2 = ledger.deploy(MockERC20, deployer, "Token 2", "TWO", 18)
    assert token_1.address != token_2.address
    assert ledger.get_nonce(deployer) == 2
    assert ledger.get_contract(token_1.address) is token_1
    assert ledger.receipts[-1].contract_address == token_2.address


def test_transaction_receipt_logs(ledger: Ledger, deployer: str, user: str, mock_token: MockERC20):
    mock_token.functions.mint(deployer, 100).transact({"from": deployer})
    receipt = mock_token.functions.transfer(user, 40).transact({"from": deployer})
    assert receipt.status == 1
    transfers = receipt.get_events("Transfer")
    assert len(transfers) == 1
    assert transfers[0].args == {"from": deployer, "to": user, "value": 40}
    assert transfers[0].address == mock_token.address


def test_failed_transaction_rolls_back(ledger: Ledger, deployer: str, user: str, mock_token: MockERC20):
    """A revert leaves no trace except a failed receipt and the used nonce."""
    mock_token.functions.mint(deployer, 100).transact({"from": deployer})
    log_count = len(ledger.logs)
    nonce = ledger.get_nonce(deployer)

    with pytest.raises(ERC20InsufficientBalance) as exc_info:
        mock_token.functions.transfer(user, 101).transact({"from": deployer})

    assert exc_info.value.balance == 100
    assert exc_info.value.needed == 101
    assert mock_token.functions.balanceOf(deployer).call() == 100
    assert len(ledger.logs) == log_count
    assert ledger.get_nonce(deployer) == nonce + 1
    assert ledger.receipts[-1].status == 0
    assert isinstance(ledger.receipts[-1].error, ERC20InsufficientBalance)


def test_nested_call_failure_is_returned(ledger: Ledger, deployer: str, user: str, mock_token: MockERC20):
    """Low-level calls report failures instead of raising."""
    payload = encode_with_signature(TRANSFER_SIGNATURE, [user, 1])
    result = ledger.call(deployer, mock_token.address, payload)
    assert not result.success
    assert isinstance(result.error, ERC20InsufficientBalance)
    assert result.return_data == b""


def test_static_call_discards_changes(ledger: Ledger, deployer: str, user: str, mock_token: MockERC20):
    mock_token.functions.mint(deployer, 100).transact({"from": deployer})
    assert mock_token.functions.transfer(user, 50).call({"from": deployer}) is True
    assert mock_token.functions.balanceOf(user).call() == 0


def test_native_transfer(ledger: Ledger, deployer: str, user: str):
    before = ledger.get_balance(user)
    receipt = ledger.transact(deployer, user, value=10**18)
    assert receipt.status == 1
    assert ledger.get_balance(user) == before + 10**18


def test_native_transfer_insufficient_balance(ledger: Ledger, user: str, attacker: str):
    ledger.set_balance(attacker, 1)
    with pytest.raises(InsufficientNativeBalance):
        ledger.transact(attacker, user, value=2)
    assert ledger.get_balance(attacker) == 1


def test_unknown_function(ledger: Ledger, deployer: str, mock_token: MockERC20):
    with pytest.raises(FunctionNotFound):
        ledger.transact(deployer, mock_token.address, bytes.fromhex("deadbeef"))


def test_value_to_non_payable(ledger: Ledger, deployer: str, user: str, mock_token: MockERC20):
    payload = encode_with_signature(TRANSFER_SIGNATURE, [user, 0])
    with pytest.raises(NonPayable):
        ledger.transact(deployer, mock_token.address, payload, value=1)


def test_token_without_receive(ledger: Ledger, deployer: str, mock_token: MockERC20):
    """Contracts reject plain native transfers unless they have receive()."""
    with pytest.raises(FunctionNotFound):
        ledger.transact(deployer, mock_token.address, value=1)


def test_create_token_with_supply(ledger: Ledger, deployer: str):
    token = create_token(ledger, deployer, "Tether USD", "USDT", 1000 * 10**6, 6)
    assert token.functions.balanceOf(deployer).call() == 1000 * 10**6
