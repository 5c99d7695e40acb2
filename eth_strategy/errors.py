"""Contract revert errors.

Every failing contract operation raises a subclass of :py:class:`ContractRevert`.
The ledger rolls back all state changes of the failed call before
the error reaches the caller.

Errors are grouped by what went wrong:

- :py:class:`ConfigurationError` - bad constructor arguments

- :py:class:`AuthorizationError` - missing role or ownership

- :py:class:`RegistryConflictError` - duplicate add, missing remove target

- :py:class:`ValidationError` - malformed payload or a call argument the rules do not allow

- :py:class:`ExternalCallFailure` - the downstream contract call reverted

- :py:class:`StateError` - operation not allowed in the current pause or role state

Each error carries the structured context of the failure as attributes,
so the failed call can be diagnosed without replaying it.
"""

from eth_typing import HexAddress
from hexbytes import HexBytes

from eth_strategy.abi import to_hex


class ContractRevert(Exception):
    """Base class for all contract reverts.

    Mirrors a Solidity custom error: the class name is the error name.
    """

    @property
    def error_name(self) -> str:
        return self.__class__.__name__

    def get_solidity_reason_message(self) -> str:
        return self.args[0] if self.args else self.error_name


class ConfigurationError(ContractRevert):
    """Invalid construction or deployment arguments."""


class AuthorizationError(ContractRevert):
    """The caller lacks the role or ownership the operation needs."""


class RegistryConflictError(ContractRevert):
    """Registry entry already exists or is missing."""


class ValidationError(ContractRevert):
    """Call data or its arguments were rejected before any external effect."""


class ExternalCallFailure(ContractRevert):
    """A downstream contract call failed."""


class StateError(ContractRevert):
    """Operation is not possible in the current contract state."""


class InvalidAddress(ConfigurationError):
    """Zero address given where a real contract or account is needed."""

    def __init__(self, field: str = ""):
        super().__init__(f"Invalid address for {field}" if field else "Invalid address")
        self.field = field


class OwnableInvalidOwner(ConfigurationError):
    def __init__(self, owner: HexAddress):
        super().__init__(f"Ownable: invalid owner {owner}")
        self.owner = owner


class AccessControlUnauthorizedAccount(AuthorizationError):
    """Account does not hold the role.

    Message follows OpenZeppelin AccessControl revert string.
    """

    def __init__(self, account: HexAddress, role: bytes):
        super().__init__(f"AccessControl: account {account.lower()} is missing role {to_hex(role)}")
        self.account = account
        self.role = HexBytes(role)


class AccessControlBadConfirmation(AuthorizationError):
    """Roles can be renounced only for self."""

    def __init__(self, account: HexAddress, sender: HexAddress):
        super().__init__(f"AccessControl: can only renounce roles for self, {sender} tried to renounce for {account}")
        self.account = account
        self.sender = sender


class OwnableUnauthorizedAccount(AuthorizationError):
    def __init__(self, account: HexAddress):
        super().__init__(f"Ownable: caller {account} is not the owner")
        self.account = account


class SelectorAlreadyExists(RegistryConflictError):
    def __init__(self, target: HexAddress, selector: bytes):
        super().__init__(f"Selector {to_hex(selector)} already exists for target {target}")
        self.target = target
        self.selector = HexBytes(selector)


class ActionNotFound(RegistryConflictError):
    def __init__(self, target: HexAddress, selector: bytes):
        super().__init__(f"Action {to_hex(selector)} not found for target {target}")
        self.target = target
        self.selector = HexBytes(selector)


class ActionParamRoleAlreadyExists(RegistryConflictError):
    def __init__(self, target: HexAddress, selector: bytes, index: int):
        super().__init__(f"Param role at index {index} already exists for {target} {to_hex(selector)}")
        self.target = target
        self.selector = HexBytes(selector)
        self.index = index


class ActionParamRoleNotFound(RegistryConflictError):
    def __init__(self, target: HexAddress, selector: bytes, index: int):
        super().__init__(f"Param role at index {index} not found for {target} {to_hex(selector)}")
        self.target = target
        self.selector = HexBytes(selector)
        self.index = index


class ActionIndexOutOfBounds(ValidationError):
    def __init__(self, target: HexAddress, index: int):
        super().__init__(f"No action at position {index} for target {target}")
        self.target = target
        self.index = index


class InvalidData(ValidationError):
    """Call payload is malformed or does not match a registered action."""

    def __init__(self, data: bytes):
        super().__init__(f"Invalid call data: {to_hex(data)}")
        self.data = HexBytes(data)


class ActionParamRoleInvalid(ValidationError):
    """A call argument failed its parameter role check."""

    def __init__(self, target: HexAddress, selector: bytes, index: int):
        super().__init__(f"Parameter {index} of {to_hex(selector)} on {target} must be the caller")
        self.target = target
        self.selector = HexBytes(selector)
        self.index = index


class TokenNotAllowed(ValidationError):
    def __init__(self, token: HexAddress):
        super().__init__(f"Token not allowed: {token}")
        self.token = token


class NotOwner(ValidationError):
    """The position account in the payload is not the caller."""

    def __init__(self, account: HexAddress, sender: HexAddress):
        super().__init__(f"Account {account} in the payload is not the caller {sender}")
        self.account = account
        self.sender = sender


class InvalidAction(ValidationError):
    def __init__(self, action: int):
        super().__init__(f"Unknown action code {action}")
        self.action = action


class FunctionNotFound(ValidationError):
    """Contract does not have a function for the selector, and no fallback."""

    def __init__(self, address: HexAddress, selector: bytes):
        super().__init__(f"Contract {address} has no function {to_hex(selector)}")
        self.address = address
        self.selector = HexBytes(selector)


class NonPayable(ValidationError):
    def __init__(self, address: HexAddress, selector: bytes, value: int):
        super().__init__(f"Function {to_hex(selector)} on {address} does not accept value {value}")
        self.address = address
        self.selector = HexBytes(selector)
        self.value = value


class InsufficientNativeBalance(ValidationError):
    def __init__(self, account: HexAddress, balance: int, needed: int):
        super().__init__(f"Account {account} has native balance {balance}, needed {needed}")
        self.account = account
        self.balance = balance
        self.needed = needed


class ERC20InsufficientBalance(ValidationError):
    def __init__(self, sender: HexAddress, balance: int, needed: int):
        super().__init__(f"ERC20: transfer amount {needed} exceeds balance {balance} of {sender}")
        self.sender = sender
        self.balance = balance
        self.needed = needed


class ERC20InsufficientAllowance(ValidationError):
    def __init__(self, spender: HexAddress, allowance: int, needed: int):
        super().__init__(f"ERC20: insufficient allowance {allowance} for {spender}, needed {needed}")
        self.spender = spender
        self.allowance = allowance
        self.needed = needed


class ERC20InvalidReceiver(ValidationError):
    def __init__(self, receiver: HexAddress):
        super().__init__(f"ERC20: invalid receiver {receiver}")
        self.receiver = receiver


class ArithmeticOverflow(ValidationError):
    """Solidity 0.8 checked arithmetic panic."""


class ExecuteFailed(ExternalCallFailure):
    """The dispatched call or a custody transfer failed."""

    def __init__(self, target: HexAddress, selector: bytes, reason: ContractRevert | None = None):
        message = f"Execution of {to_hex(selector)} on {target} failed"
        if reason is not None:
            message += f": {reason.get_solidity_reason_message()}"
        super().__init__(message)
        self.target = target
        self.selector = HexBytes(selector)
        self.reason = reason


class EnforcedPause(StateError):
    def __init__(self):
        super().__init__("Pausable: paused")


class ExpectedPause(StateError):
    def __init__(self):
        super().__init__("Pausable: not paused")


class LastAdminRemoval(StateError):
    """Removing the last administrator would lock role administration forever."""

    def __init__(self, account: HexAddress):
        super().__init__(f"AccessControl: cannot remove the last admin {account}")
        self.account = account
