"""Parameter role validation.

Check a raw call payload against the parameter roles
registered for the called action.
"""

import logging
from typing import Iterable

from eth_typing import ChecksumAddress

from eth_strategy.abi import decode_address_word, read_argument_word, to_hex
from eth_strategy.errors import ActionParamRoleInvalid
from eth_strategy.registry import ParamRole

logger = logging.getLogger(__name__)


def decode_param_account(data: bytes, index: int) -> ChecksumAddress | None:
    """Read the argument at a word index as an account.

    :return:
        The address, or ``None`` if the payload is too short
        or the word is not a clean address
    """
    word = read_argument_word(data, index)
    if word is None:
        return None
    try:
        return decode_address_word(word)
    except ValueError:
        return None


def validate_param_roles(
    target: ChecksumAddress,
    selector: bytes,
    data: bytes,
    sender: ChecksumAddress,
    param_roles: Iterable[ParamRole],
):
    """Check all parameter roles of a call.

    - Roles are checked in ascending index order, the first failure stops

    - ``only_sender`` roles require the argument to be the caller address

    - Roles with ``only_sender=False`` do not constrain anything yet

    :raise ActionParamRoleInvalid:
        First failing parameter
    """
    for role in sorted(param_roles):
        if not role.only_sender:
            continue

        account = decode_param_account(data, role.index)
        if account != sender:
            logger.debug(
                "Parameter %d of %s on %s is %s, expected caller %s",
                role.index,
                to_hex(selector),
                target,
                account,
                sender,
            )
            raise ActionParamRoleInvalid(target, selector, role.index)
