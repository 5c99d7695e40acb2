"""Permissioned action dispatch and yield routing vault on a simulated ledger.

- :py:mod:`eth_strategy.strategy` for the generic action registry and dispatcher

- :py:mod:`eth_strategy.vault` for the fixed four-action USDT vault

- :py:mod:`eth_strategy.ledger` for the transactional execution environment
"""
