"""Shared fixtures.

Every test gets a fresh ledger with funded accounts.
"""

from dataclasses import dataclass

import pytest
from eth_typing import ChecksumAddress

from eth_strategy.contract import SimulatedContract, external
from eth_strategy.deployment import deploy_strategy
from eth_strategy.ledger import Ledger, Message
from eth_strategy.strategy import Strategy
from eth_strategy.token import TRANSFER_SIGNATURE, MockERC20, create_token

#: Native balance of test accounts
ACCOUNT_BALANCE = 100 * 10**18


@dataclass
class NoStorage:
    pass


class FalseReturningToken(SimulatedContract):
    """Non-reverting token that reports every transfer as failed."""

    storage_class = NoStorage

    @external(TRANSFER_SIGNATURE, returns=["bool"])
    def transfer(self, msg: Message, to: ChecksumAddress, amount: int) -> bool:
        return False


@pytest.fixture()
def ledger() -> Ledger:
    """Set up a local unit testing ledger."""
    return Ledger()


@pytest.fixture()
def deployer(ledger: Ledger) -> str:
    """Deploys contracts and owns the mock tokens."""
    return ledger.create_account(ACCOUNT_BALANCE)


@pytest.fixture()
def default_admin(ledger: Ledger) -> str:
    return ledger.create_account(ACCOUNT_BALANCE)


@pytest.fixture()
def operator(ledger: Ledger) -> str:
    return ledger.create_account(ACCOUNT_BALANCE)


@pytest.fixture()
def user(ledger: Ledger) -> str:
    return ledger.create_account(ACCOUNT_BALANCE)


@pytest.fixture()
def attacker(ledger: Ledger) -> str:
    return ledger.create_account(ACCOUNT_BALANCE)


@pytest.fixture()
def strategy(ledger: Ledger, deployer: str, default_admin: str, operator: str) -> Strategy:
    return deploy_strategy(ledger, deployer, default_admin=default_admin, operator=operator)


@pytest.fixture()
def mock_token(ledger: Ledger, deployer: str) -> MockERC20:
    """18 decimals token, mintable by the deployer."""
    return create_token(ledger, deployer, "Mock Token", "MTK")


@pytest.fixture()
def false_returning_token(ledger: Ledger, deployer: str) -> FalseReturningToken:
    return ledger.deploy(FalseReturningToken, deployer)
