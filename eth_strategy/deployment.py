"""Deploy strategies and vaults on a ledger."""

import logging

from eth_typing import HexAddress
from web3 import Web3

from eth_strategy.config import MaxYieldUSDTConfig, get_explorer_address_link
from eth_strategy.ledger import Ledger
from eth_strategy.strategy import Strategy
from eth_strategy.vault import MaxYieldUSDT

logger = logging.getLogger(__name__)


def deploy_strategy(
    ledger: Ledger,
    deployer: HexAddress | str,
    default_admin: HexAddress | str | None = None,
    operator: HexAddress | str | None = None,
) -> Strategy:
    """Deploy a new strategy.

    Example:

    .. code-block:: python

        strategy = deploy_strategy(ledger, deployer)
        assert strategy.functions.hasRole(OPERATOR_ROLE, deployer).call()

    :param deployer:
        Account paying for the deployment

    :param default_admin:
        Administrator, defaults to the deployer

    :param operator:
        Registry operator, defaults to the deployer
    """
    deployer = Web3.to_checksum_address(deployer)
    default_admin = Web3.to_checksum_address(default_admin or deployer)
    operator = Web3.to_checksum_address(operator or deployer)
    strategy = ledger.deploy(Strategy, deployer, default_admin, operator)
    logger.info(
        "Strategy deployed at %s, admin %s, operator %s, explorer %s",
        strategy.address,
        default_admin,
        operator,
        get_explorer_address_link(ledger.chain_id, strategy.address),
    )
    return strategy


def deploy_max_yield_usdt(
    ledger: Ledger,
    deployer: HexAddress | str,
    config: MaxYieldUSDTConfig,
    owner: HexAddress | str | None = None,
) -> MaxYieldUSDT:
    """Deploy a new MaxYieldUSDT vault.

    :param config:
        Venue and asset addresses

    :param owner:
        Vault owner, defaults to the deployer
    """
    deployer = Web3.to_checksum_address(deployer)
    owner = Web3.to_checksum_address(owner or deployer)
    vault = ledger.deploy(MaxYieldUSDT, deployer, owner, *config.get_constructor_args())
    logger.info(
        "MaxYieldUSDT deployed at %s, owner %s, explorer %s",
        vault.address,
        owner,
        get_explorer_address_link(ledger.chain_id, vault.address),
    )
    return vault
