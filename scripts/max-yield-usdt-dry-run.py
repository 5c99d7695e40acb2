"""MaxYieldUSDT dry run.

- Deploys mock USDT, two mock lending pools and the vault on a local ledger

- Supplies USDT to HypurrFi, moves it to HyperLend and withdraws

- Prints balances after each step

To run:

.. code-block:: shell

    python scripts/max-yield-usdt-dry-run.py

Set ``LOG_LEVEL=debug`` to see every contract call.
"""

import logging
import os

from eth_strategy.config import MaxYieldUSDTConfig, get_chain_name, read_deployer_private_key
from eth_strategy.deployment import deploy_max_yield_usdt
from eth_strategy.ledger import Ledger
from eth_strategy.lending_pool import MockPool, encode_supply, encode_withdraw
from eth_strategy.token import create_token, fetch_erc20_details
from eth_strategy.vault import VaultAction

logging.basicConfig(level=os.environ.get("LOG_LEVEL", "info").upper())

ledger = Ledger()
print(f"Running on {get_chain_name(ledger.chain_id)} ledger")

# Use the real deployer address if we have one, it does not need funds here
account = read_deployer_private_key()
if account:
    deployer = account.address
    ledger.set_balance(deployer, 10**18)
else:
    deployer = ledger.create_account(balance=10**18)

usdt = create_token(ledger, deployer, "Tether USD", "USDT", 10_000 * 10**6, 6)
hypurrfi_a_token = create_token(ledger, deployer, "HypurrFi USDT", "hyUSDT", decimals=6)
hyperlend_a_token = create_token(ledger, deployer, "HyperLend USDT", "hlUSDT", decimals=6)
hypurrfi_pool = ledger.deploy(MockPool, deployer, hypurrfi_a_token.address)
hyperlend_pool = ledger.deploy(MockPool, deployer, hyperlend_a_token.address)
hypurrfi_a_token.functions.transferOwnership(hypurrfi_pool.address).transact({"from": deployer})
hyperlend_a_token.functions.transferOwnership(hyperlend_pool.address).transact({"from": deployer})

config = MaxYieldUSDTConfig(
    hypurrfi_pool=hypurrfi_pool.address,
    hyperlend_pool=hyperlend_pool.address,
    usdt=usdt.address,
    hypurrfi_a_token=hypurrfi_a_token.address,
    hyperlend_a_token=hyperlend_a_token.address,
)
vault = deploy_max_yield_usdt(ledger, deployer, config)

tokens = [fetch_erc20_details(ledger, t.address) for t in (usdt, hypurrfi_a_token, hyperlend_a_token)]


def print_balances(step: str):
    balances = ", ".join(f"{t.fetch_balance_of(deployer)} {t.symbol}" for t in tokens)
    print(f"{step}: {balances}")


print_balances("Start")

amount = 2_500 * 10**6

usdt.functions.approve(vault.address, amount).transact({"from": deployer})
vault.functions.execute(VaultAction.HypurrfiSupplyUSDT, encode_supply(usdt.address, amount, deployer)).transact({"from": deployer})
print_balances("Supplied to HypurrFi")

hypurrfi_a_token.functions.approve(vault.address, amount).transact({"from": deployer})
vault.functions.execute(VaultAction.HypurrfiWithdrawUSDT, encode_withdraw(usdt.address, amount, deployer)).transact({"from": deployer})
usdt.functions.approve(vault.address, amount).transact({"from": deployer})
vault.functions.execute(VaultAction.HyperlendSupplyUSDT, encode_supply(usdt.address, amount, deployer)).transact({"from": deployer})
print_balances("Moved to HyperLend")

hyperlend_a_token.functions.approve(vault.address, amount).transact({"from": deployer})
vault.functions.execute(VaultAction.HyperlendWithdrawUSDT, encode_withdraw(usdt.address, amount, deployer)).transact({"from": deployer})
print_balances("Withdrawn")

print(f"Processed {len(ledger.receipts)} transactions, all done")
