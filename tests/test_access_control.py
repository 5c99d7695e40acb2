"""Role administration on a strategy."""

import pytest

from eth_strategy.abi import to_hex
from eth_strategy.access_control import DEFAULT_ADMIN_ROLE, OPERATOR_ROLE
from eth_strategy.errors import AccessControlBadConfirmation, AccessControlUnauthorizedAccount, LastAdminRemoval
from eth_strategy.strategy import Strategy


def test_role_identifiers(strategy: Strategy):
    assert strategy.functions.DEFAULT_ADMIN_ROLE().call() == b"\x00" * 32
    assert to_hex(strategy.functions.OPERATOR_ROLE().call()) == "0x97667070c54ef182b0f5858b034beac1b6f3089aa2d3188bb1e8929f4fa9b929"
    assert strategy.functions.getRoleAdmin(OPERATOR_ROLE).call() == DEFAULT_ADMIN_ROLE


def test_initial_roles(strategy: Strategy, default_admin: str, operator: str, deployer: str):
    """Constructor grants exactly the given accounts."""
    assert strategy.functions.hasRole(DEFAULT_ADMIN_ROLE, default_admin).call()
    assert strategy.functions.hasRole(OPERATOR_ROLE, operator).call()
    assert not strategy.functions.hasRole(DEFAULT_ADMIN_ROLE, deployer).call()
    assert strategy.functions.getRoleMemberCount(DEFAULT_ADMIN_ROLE).call() == 1


def test_grant_and_revoke(strategy: Strategy, default_admin: str, user: str):
    receipt = strategy.functions.grantRole(OPERATOR_ROLE, user).transact({"from": default_admin})
    assert strategy.functions.hasRole(OPERATOR_ROLE, user).call()
    assert receipt.get_events("RoleGranted")[0].args == {"role": OPERATOR_ROLE, "account": user, "sender": default_admin}

    receipt = strategy.functions.revokeRole(OPERATOR_ROLE, user).transact({"from": default_admin})
    assert not strategy.functions.hasRole(OPERATOR_ROLE, user).call()
    assert len(receipt.get_events("RoleRevoked")) == 1


def test_grant_twice_is_noop(strategy: Strategy, default_admin: str, operator: str):
    receipt = strategy.functions.grantRole(OPERATOR_ROLE, operator).transact({"from": default_admin})
    assert receipt.get_events("RoleGranted") == []
    assert strategy.functions.getRoleMemberCount(OPERATOR_ROLE).call() == 1


def test_non_admin_cannot_grant(strategy: Strategy, user: str):
    with pytest.raises(AccessControlUnauthorizedAccount, match=f"AccessControl: account {user.lower()} is missing role {to_hex(DEFAULT_ADMIN_ROLE)}") as exc_info:
        strategy.functions.grantRole(OPERATOR_ROLE, user).transact({"from": user})
    assert exc_info.value.account == user
    assert exc_info.value.role == DEFAULT_ADMIN_ROLE


def test_operator_is_not_admin(strategy: Strategy, operator: str, user: str):
    with pytest.raises(AccessControlUnauthorizedAccount):
        strategy.functions.grantRole(OPERATOR_ROLE, user).transact({"from": operator})


def test_renounce_own_role(strategy: Strategy, operator: str):
    strategy.functions.renounceRole(OPERATOR_ROLE, operator).transact({"from": operator})
    assert not strategy.functions.hasRole(OPERATOR_ROLE, operator).call()


def test_renounce_for_other_account(strategy: Strategy, operator: str, user: str):
    with pytest.raises(AccessControlBadConfirmation):
        strategy.functions.renounceRole(OPERATOR_ROLE, operator).transact({"from": user})


def test_last_admin_cannot_leave(strategy: Strategy, default_admin: str, user: str):
    """Role administration must always have someone in charge."""
    with pytest.raises(LastAdminRemoval):
        strategy.functions.revokeRole(DEFAULT_ADMIN_ROLE, default_admin).transact({"from": default_admin})

    with pytest.raises(LastAdminRemoval):
        strategy.functions.renounceRole(DEFAULT_ADMIN_ROLE, default_admin).transact({"from": default_admin})

    # With a second admin the first one can go
    strategy.functions.grantRole(DEFAULT_ADMIN_ROLE, user).transact({"from": default_admin})
    strategy.functions.renounceRole(DEFAULT_ADMIN_ROLE, default_admin).transact({"from": default_admin})
    assert not strategy.functions.hasRole(DEFAULT_ADMIN_ROLE, default_admin).call()
    assert strategy.functions.hasRole(DEFAULT_ADMIN_ROLE, user).call()
