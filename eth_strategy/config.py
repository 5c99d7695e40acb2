"""Network and deployment configuration.

- Known networks with their chain ids

- Production HyperEVM addresses of the MaxYieldUSDT venues

- Deployer key from the environment

Environment variables:

- ``DEPLOYER_PRIVATE_KEY``: hex private key, ``0x`` prefix optional

- ``MAX_YIELD_HYPURRFI_POOL``, ``MAX_YIELD_HYPERLEND_POOL``, ``MAX_YIELD_USDT``,
  ``MAX_YIELD_HYPURRFI_A_TOKEN``, ``MAX_YIELD_HYPERLEND_A_TOKEN``: override a vault address
"""

import logging
import os
from typing import NamedTuple

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_typing import ChecksumAddress, HexAddress
from eth_utils import is_hex_address
from web3 import Web3

from eth_strategy.abi import ZERO_ADDRESS
from eth_strategy.errors import InvalidAddress

logger = logging.getLogger(__name__)


class NetworkConfig(NamedTuple):
    """One deployment target."""

    chain_id: int

    #: Shorthand name used in scripts and logs
    name: str

    #: Block explorer, ``None`` if there is none
    explorer_url: str | None

    #: Real funds at stake
    live: bool


#: Chain id -> network
NETWORKS: dict[int, NetworkConfig] = {
    1337: NetworkConfig(1337, "local", None, False),
    44787: NetworkConfig(44787, "celo_testnet", "https://alfajores.celoscan.io", True),
    42220: NetworkConfig(42220, "celo_mainnet", "https://celoscan.io", True),
    999: NetworkConfig(999, "hyperevm", "https://hyperevmscan.io", True),
}

#: Manually maintained shorthand names for the supported chains
CHAIN_NAMES = {chain_id: network.name for chain_id, network in NETWORKS.items()}


def get_chain_name(chain_id: int) -> str:
    """Get chain name, or a placeholder for chains we do not know."""
    return CHAIN_NAMES.get(chain_id, f"Unknown chain {chain_id}")


def get_network(chain_id: int) -> NetworkConfig:
    """:raise KeyError: Unsupported chain"""
    return NETWORKS[chain_id]


def get_explorer_address_link(chain_id: int, address: HexAddress | str) -> str | None:
    """Get a block explorer link to an address.

    :return:
        ``None`` if the chain has no explorer, like the local ledger
    """
    network = NETWORKS.get(chain_id)
    if network is None or network.explorer_url is None:
        return None
    return f"{network.explorer_url}/address/{address}"


class MaxYieldUSDTConfig(NamedTuple):
    """Venue and asset addresses for :py:class:`eth_strategy.vault.MaxYieldUSDT`.

    Defaults are the production HyperEVM deployments.
    """

    hypurrfi_pool: ChecksumAddress = "0xceCcE0EB9DD2Ef7996e01e25DD70e461F918A14b"

    hyperlend_pool: ChecksumAddress = "0x00A89d7a5A02160f20150EbEA7a2b5E4879A1A8b"

    usdt: ChecksumAddress = "0xB8CE59FC3717ada4C02eaDF9682A9e934F625ebb"

    hypurrfi_a_token: ChecksumAddress = "0x1Ca7e21B2dAa5Ab2eB9de7cf8f34dCf9c8683007"

    hyperlend_a_token: ChecksumAddress = "0x10982ad645D5A112606534d8567418Cf64c14cB5"

    def validate(self):
        """Check all addresses are usable.

        :raise InvalidAddress:
            Naming the first bad field
        """
        for name, address in self._asdict().items():
            if not is_hex_address(address) or address == ZERO_ADDRESS:
                raise InvalidAddress(name)

    def get_constructor_args(self) -> list[ChecksumAddress]:
        """Vault constructor arguments after the owner."""
        return [Web3.to_checksum_address(a) for a in self]


def read_max_yield_usdt_config(env: dict[str, str] | None = None) -> MaxYieldUSDTConfig:
    """Read vault addresses, with environment overrides.

    :param env:
        Environment variables, ``os.environ`` by default

    :raise InvalidAddress:
        An override is not an address
    """
    if env is None:
        env = os.environ

    overrides = {}
    for field in MaxYieldUSDTConfig._fields:
        value = env.get(f"MAX_YIELD_{field.upper()}")
        if value:
            value = value.strip()
            if not is_hex_address(value):
                raise InvalidAddress(field)
            overrides[field] = Web3.to_checksum_address(value)
            logger.info("Vault %s overridden from environment: %s", field, overrides[field])

    config = MaxYieldUSDTConfig(**overrides)
    config.validate()
    return config


def normalise_private_key(raw_key: str | None) -> str | None:
    """Add a missing ``0x`` prefix and reject keys of the wrong length.

    :return:
        ``0x`` prefixed 32 byte hex key, or ``None``
    """
    if not raw_key:
        return None
    key = raw_key.strip()
    if not key.startswith("0x"):
        key = f"0x{key}"
    if len(key) != 66:
        return None
    return key


def read_deployer_private_key(env: dict[str, str] | None = None) -> LocalAccount | None:
    """Read the deployer account from ``DEPLOYER_PRIVATE_KEY``.

    Missing or malformed keys are ignored, so that commands not
    touching live networks work without one.

    :return:
        The account, or ``None``
    """
    if env is None:
        env = os.environ

    key = normalise_private_key(env.get("DEPLOYER_PRIVATE_KEY"))
    if key is None:
        logger.debug("No usable DEPLOYER_PRIVATE_KEY set")
        return None

    try:
        account: LocalAccount = Account.from_key(key)
    except ValueError:
        logger.debug("DEPLOYER_PRIVATE_KEY is not a valid private key")
        return None

    logger.info("Deployer account is %s", account.address)
    return account
