"""Strategy whitelisting helpers.

Register an action with its parameter roles in one go:

.. code-block:: python

    # Anyone may call supply() through the strategy,
    # but the onBehalfOf argument must be themselves
    whitelist_action(
        strategy,
        operator,
        pool.address,
        "supply(address,uint256,address,uint16)",
        sender_indexes=[2],
    )

"""

import logging
from typing import Iterable

from eth_typing import HexAddress
from web3 import Web3

from eth_strategy.abi import get_function_selector, normalise_selector, parse_function_signature, to_hex
from eth_strategy.ledger import TxReceipt
from eth_strategy.registry import ParamRole
from eth_strategy.strategy import Strategy

logger = logging.getLogger(__name__)


def whitelist_action(
    strategy: Strategy,
    operator: HexAddress | str,
    target: HexAddress | str,
    signature: str,
    sender_indexes: Iterable[int] = (),
) -> list[TxReceipt]:
    """Approve a call on a strategy.

    :param operator:
        Account holding the operator role

    :param target:
        Contract to call

    :param signature:
        Canonical Solidity signature of the function

    :param sender_indexes:
        Argument positions that must be the caller address

    :return:
        Receipts of all transactions done
    """
    target = Web3.to_checksum_address(target)
    _, arg_types = parse_function_signature(signature)
    selector = get_function_selector(signature)

    receipts = [strategy.functions.addAction(target, selector).transact({"from": operator})]
    logger.info("Whitelisted %s (%s) on %s", signature, to_hex(selector), target)

    for index in sender_indexes:
        assert index < len(arg_types), f"{signature} has no argument {index}"
        assert arg_types[index] == "address", f"Argument {index} of {signature} is {arg_types[index]}, not an address"
        receipts.append(strategy.functions.addActionParamRole(target, selector, index, True).transact({"from": operator}))
        logger.info("Argument %d of %s must be the caller", index, signature)

    return receipts


def get_action_param_roles(
    strategy: Strategy,
    target: HexAddress | str,
    selector: bytes | str,
) -> list[ParamRole]:
    """Read parameter roles of an action.

    :return:
        Roles in ascending argument index order
    """
    roles = strategy.functions.getActionParamRoles(Web3.to_checksum_address(target), normalise_selector(selector)).call()
    return [ParamRole(index=index, only_sender=only_sender) for index, only_sender in roles]
