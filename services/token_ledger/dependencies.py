"""
Token Ledger Dependencies
=========================

Process-wide token contract and transaction context construction.

Version: 0.1.0
"""

from typing import Any

from shared.auth import SignedRequest, transaction_commitment
from shared.blockchain import NATIVE_ASSET_ID, get_ledger_client
from shared.config import settings
from shared.logging import bind_transaction, get_logger

from services.token_ledger.models.transaction import TransactionContext
from services.token_ledger.services.gate import FungibleToken


logger = get_logger(__name__)

# Global contract instance
_token: FungibleToken | None = None


def get_token() -> FungibleToken:
    """
    Get the token contract served by this process.

    Returns:
        FungibleToken bound to the configured ledger and contract address
    """
    global _token

    if _token is None:
        _token = FungibleToken(get_ledger_client(), settings.token.address)
        logger.info(
            "token_contract_bound",
            address=_token.address,
            token_id=str(_token.token_id),
        )

    return _token


def set_token(token: FungibleToken) -> None:
    """Serve a custom contract instance."""
    global _token
    _token = token


def reset_token() -> None:
    """Reset the contract to be re-bound."""
    global _token
    _token = None


def build_context(
    token: FungibleToken,
    operation: str,
    arguments: dict[str, Any],
    signed: SignedRequest,
) -> TransactionContext:
    """
    Build the transaction context of a signed request.

    The commitment covers the operation, its arguments and the fee payer's
    current nonce, so signatures from an earlier transaction never match.

    Raises:
        AuthorizationError: On invalid signatures or a missing fee payer signature
    """
    nonce = token.ledger.read_nonce(signed.fee_payer, NATIVE_ASSET_ID)
    commitment = transaction_commitment(operation, arguments, signed.fee_payer, nonce)

    bind_transaction(operation, signed.fee_payer, commitment)

    return TransactionContext.from_signatures(
        fee_payer=signed.fee_payer,
        fee_payer_nonce=nonce,
        commitment=commitment,
        signatures=signed.signatures,
    )
