"""
Token Ledger Errors
===================

Every rejection is a typed exception raised before any ledger mutation.

Kinds:
- ConfigurationError: bad local input (record count, operation id, flag selector)
- AuthorizationError: missing or invalid signatures, stale transactions
- PolicyMismatchError: the sideloaded proof's assumptions are stale or wrong
- InvariantViolationError: malformed batch or ledger invariant broken

Version: 0.1.0
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Error taxonomy."""

    CONFIGURATION = "configuration"
    AUTHORIZATION = "authorization"
    POLICY_MISMATCH = "policy_mismatch"
    INVARIANT_VIOLATION = "invariant_violation"


class ErrorCode(str, Enum):
    """Specific rejection reasons."""

    # Configuration
    INVALID_RECORD_COUNT = "invalid_record_count"
    INVALID_POLICY_INDEX = "invalid_policy_index"
    INVALID_PACKED_POLICY = "invalid_packed_policy"
    INVALID_OPERATION_ID = "invalid_operation_id"
    INVALID_REGISTRY_HEIGHT = "invalid_registry_height"
    INVALID_FLAG_SELECTOR = "invalid_flag_selector"
    INVALID_AMOUNT = "invalid_amount"
    INVALID_DECIMALS = "invalid_decimals"
    ALREADY_INITIALIZED = "already_initialized"
    NOT_INITIALIZED = "not_initialized"

    # Authorization
    MISSING_SIGNATURE = "missing_signature"
    INVALID_SIGNATURE = "invalid_signature"
    STALE_TRANSACTION = "stale_transaction"

    # Policy mismatch
    SIDELOAD_REQUIRED_USE_PROOF_VARIANT = "sideload_required_use_proof_variant"
    REGISTRY_OUT_OF_SYNC = "registry_out_of_sync"
    MISSING_KEY_FOR_OPERATION = "missing_key_for_operation"
    UNREGISTERED_KEY = "unregistered_key"
    RECIPIENT_MISMATCH = "recipient_mismatch"
    TOKEN_ID_MISMATCH = "token_id_mismatch"
    WRONG_NATIVE_ASSET_ID = "wrong_native_asset_id"
    NATIVE_BALANCE_MISMATCH = "native_balance_mismatch"
    TOKEN_BALANCE_MISMATCH = "token_balance_mismatch"
    NATIVE_NONCE_MISMATCH = "native_nonce_mismatch"
    TOKEN_NONCE_MISMATCH = "token_nonce_mismatch"
    INVALID_PROOF = "invalid_proof"

    # Invariant violation
    NO_TRANSFER_FROM_CIRCULATION = "no_transfer_from_circulation"
    PERMISSION_CHANGE_NOT_ALLOWED = "permission_change_not_allowed"
    FLASH_MINT_DETECTED = "flash_mint_detected"
    UNBALANCED_BATCH = "unbalanced_batch"
    INSUFFICIENT_BALANCE = "insufficient_balance"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_RECORD_COUNT: "Invalid configuration: expected exactly 4 policy records",
    ErrorCode.INVALID_POLICY_INDEX: "Invalid configuration: policy segment index must be 0-3",
    ErrorCode.INVALID_PACKED_POLICY: "Invalid configuration: packed policy must fit in 28 bits",
    ErrorCode.INVALID_OPERATION_ID: (
        "Invalid operation id: must be 1 (Mint), 2 (Burn), 3 (Transfer) or 4 (BatchApprove)"
    ),
    ErrorCode.INVALID_REGISTRY_HEIGHT: (
        "Invalid configuration: registry is too small to hold every operation id"
    ),
    ErrorCode.INVALID_FLAG_SELECTOR: "Invalid configuration: unknown policy flag",
    ErrorCode.INVALID_AMOUNT: "Invalid amount: must be a positive integer",
    ErrorCode.INVALID_DECIMALS: "Invalid decimals: must fit in 8 bits",
    ErrorCode.ALREADY_INITIALIZED: "Token contract is already initialized",
    ErrorCode.NOT_INITIALIZED: "Token contract has not been initialized",
    ErrorCode.MISSING_SIGNATURE: "Unauthorized: required signature is missing",
    ErrorCode.INVALID_SIGNATURE: "Unauthorized: signature does not match the transaction commitment",
    ErrorCode.STALE_TRANSACTION: "Unauthorized: fee payer nonce does not match the ledger",
    ErrorCode.SIDELOAD_REQUIRED_USE_PROOF_VARIANT: (
        "Sideloaded proof verification is enabled for this operation; use the proof variant"
    ),
    ErrorCode.REGISTRY_OUT_OF_SYNC: (
        "Verification failed: off-chain key registry is out of sync with on-chain root"
    ),
    ErrorCode.MISSING_KEY_FOR_OPERATION: (
        "Missing verification key: no key registered for this operation"
    ),
    ErrorCode.UNREGISTERED_KEY: (
        "Verification failed: provided verification key does not match registered hash"
    ),
    ErrorCode.RECIPIENT_MISMATCH: "Verification failed: proof address does not match the account",
    ErrorCode.TOKEN_ID_MISMATCH: "Verification failed: proof token id does not match this token",
    ErrorCode.WRONG_NATIVE_ASSET_ID: "Verification failed: expected the native asset token id (1)",
    ErrorCode.NATIVE_BALANCE_MISMATCH: (
        "Verification failed: native balance changed between proof generation and verification"
    ),
    ErrorCode.TOKEN_BALANCE_MISMATCH: (
        "Verification failed: token balance changed between proof generation and verification"
    ),
    ErrorCode.NATIVE_NONCE_MISMATCH: (
        "Verification failed: native nonce changed between proof generation and verification"
    ),
    ErrorCode.TOKEN_NONCE_MISMATCH: (
        "Verification failed: token nonce changed between proof generation and verification"
    ),
    ErrorCode.INVALID_PROOF: "Verification failed: proof is not valid for the verification key",
    ErrorCode.NO_TRANSFER_FROM_CIRCULATION: (
        "Invalid operation: cannot transfer to or from the circulation tracking account"
    ),
    ErrorCode.PERMISSION_CHANGE_NOT_ALLOWED: (
        "Permission denied: cannot modify access or receive permissions on token accounts"
    ),
    ErrorCode.FLASH_MINT_DETECTED: (
        "Transaction invalid: flash-minting detected; order debits before credits"
    ),
    ErrorCode.UNBALANCED_BATCH: "Transaction invalid: token debits and credits do not sum to zero",
    ErrorCode.INSUFFICIENT_BALANCE: "Transaction invalid: debit exceeds account balance",
}


class TokenLedgerError(Exception):
    """
    Base class for all token ledger rejections.

    Attributes:
        code: Specific reason
        operation: Operation being evaluated, if any
        details: Extra context (offending node index, owner, values)
    """

    kind: ErrorKind

    def __init__(
        self,
        code: ErrorCode,
        *,
        operation: Any = None,
        **details: Any,
    ) -> None:
        self.code = code
        self.operation = operation
        self.details = details
        super().__init__(ERROR_MESSAGES[code])

    @property
    def message(self) -> str:
        return ERROR_MESSAGES[self.code]

    def to_dict(self) -> dict[str, Any]:
        details = dict(self.details)
        if self.operation is not None:
            details["operation"] = getattr(self.operation, "name", str(self.operation))
        return {
            "success": False,
            "error": self.message,
            "error_code": self.code.value,
            "error_kind": self.kind.value,
            "details": details or None,
        }


class ConfigurationError(TokenLedgerError):
    """Local programming or input error; never retried."""

    kind = ErrorKind.CONFIGURATION


class AuthorizationError(TokenLedgerError):
    """Missing or invalid authorization; resubmit with correct signatures."""

    kind = ErrorKind.AUTHORIZATION


class PolicyMismatchError(TokenLedgerError):
    """Proof assumptions are stale or wrong; regenerate the proof."""

    kind = ErrorKind.POLICY_MISMATCH


class InvariantViolationError(TokenLedgerError):
    """Malformed batch or broken ledger invariant."""

    kind = ErrorKind.INVARIANT_VIOLATION
