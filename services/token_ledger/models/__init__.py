"""Token ledger data models."""

from services.token_ledger.models.errors import (
    ERROR_MESSAGES,
    AuthorizationError,
    ConfigurationError,
    ErrorCode,
    ErrorKind,
    InvariantViolationError,
    PolicyMismatchError,
    TokenLedgerError,
)
from services.token_ledger.models.forest import (
    AccountUpdate,
    PermissionsUpdate,
    iter_post_order,
)
from services.token_ledger.models.operations import EMPTY_ADDRESS, AuthRequired, OperationId
from services.token_ledger.models.state import TokenState
from services.token_ledger.models.transaction import TransactionContext

__all__ = [
    # Errors
    "ERROR_MESSAGES",
    "AuthorizationError",
    "ConfigurationError",
    "ErrorCode",
    "ErrorKind",
    "InvariantViolationError",
    "PolicyMismatchError",
    "TokenLedgerError",
    # Forest
    "AccountUpdate",
    "PermissionsUpdate",
    "iter_post_order",
    # Operations
    "EMPTY_ADDRESS",
    "AuthRequired",
    "OperationId",
    # State
    "TokenState",
    "TransactionContext",
]
