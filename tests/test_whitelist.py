"""Whitelisting helpers."""

import pytest

from eth_strategy.errors import ActionParamRoleInvalid, SelectorAlreadyExists
from eth_strategy.lending_pool import SUPPLY_SELECTOR, SUPPLY_SIGNATURE, MockPool, encode_supply
from eth_strategy.registry import ParamRole
from eth_strategy.strategy import Strategy
from eth_strategy.token import TRANSFER_SELECTOR, MockERC20, create_token
from eth_strategy.whitelist import get_action_param_roles, whitelist_action


def test_whitelist_transfer(strategy: Strategy, mock_token: MockERC20, deployer: str, operator: str, user: str, attacker: str):
    receipts = whitelist_action(strategy, operator, mock_token.address, "transfer(address,uint256)", sender_indexes=[0])
    assert len(receipts) == 2
    assert get_action_param_roles(strategy, mock_token.address, TRANSFER_SELECTOR) == [ParamRole(0, True)]

    mock_token.functions.mint(strategy.address, 100).transact({"from": deployer})

    data = mock_token.functions.transfer(user, 60).encode()
    strategy.functions.execute(mock_token.address, TRANSFER_SELECTOR, data).transact({"from": user})
    assert mock_token.functions.balanceOf(user).call() == 60

    data = mock_token.functions.transfer(user, 40).encode()
    with pytest.raises(ActionParamRoleInvalid):
        strategy.functions.execute(mock_token.address, TRANSFER_SELECTOR, data).transact({"from": attacker})


def test_whitelist_twice(strategy: Strategy, mock_token: MockERC20, operator: str):
    whitelist_action(strategy, operator, mock_token.address, "transfer(address,uint256)")
    with pytest.raises(SelectorAlreadyExists):
        whitelist_action(strategy, operator, mock_token.address, "transfer(address,uint256)")


def test_whitelist_pool_supply(ledger, strategy: Strategy, deployer: str, operator: str, user: str, attacker: str):
    """Strategy supplies its own tokens to a pool on behalf of the caller only."""
    usdt = create_token(ledger, deployer, "Tether USD", "USDT", decimals=6)
    a_token = create_token(ledger, deployer, "A Token", "AUSDT", decimals=6)
    pool = ledger.deploy(MockPool, deployer, a_token.address)
    a_token.functions.transferOwnership(pool.address).transact({"from": deployer})

    usdt.functions.mint(strategy.address, 500).transact({"from": deployer})
    whitelist_action(strategy, operator, usdt.address, "approve(address,uint256)")
    whitelist_action(strategy, operator, pool.address, SUPPLY_SIGNATURE, sender_indexes=[2])
    assert get_action_param_roles(strategy, pool.address, SUPPLY_SELECTOR) == [ParamRole(2, True)]

    approve = usdt.functions.approve(pool.address, 500).encode()
    strategy.functions.execute(usdt.address, approve[:4], approve).transact({"from": user})

    with pytest.raises(ActionParamRoleInvalid):
        strategy.functions.execute(pool.address, SUPPLY_SELECTOR, encode_supply(usdt.address, 500, attacker)).transact({"from": user})

    strategy.functions.execute(pool.address, SUPPLY_SELECTOR, encode_supply(usdt.address, 500, user)).transact({"from": user})
    assert a_token.functions.balanceOf(user).call() == 500
    assert usdt.functions.balanceOf(pool.address).call() == 500
