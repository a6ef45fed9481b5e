"""
Authentication Module
=====================

Transaction signatures for the token ledger.

Features:
- Full transaction commitments
- Commitment signatures encoded as JWTs
- FastAPI dependencies for signed requests

Usage:
    from shared.auth import transaction_commitment, sign_commitment, verify_signature

    commitment = transaction_commitment("mint", {"recipient": r, "amount": 10}, fee_payer, nonce)
    signature = sign_commitment("B62qadmin...", commitment)

    assert verify_signature(signature, commitment) == "B62qadmin..."
"""

from shared.auth.signatures import (
    SignatureClaims,
    decode_signature,
    sign_commitment,
    transaction_commitment,
    verify_signature,
)
from shared.auth.dependencies import SignedRequest, get_fee_payer, get_signed_request

__all__ = [
    # Signatures
    "SignatureClaims",
    "decode_signature",
    "sign_commitment",
    "transaction_commitment",
    "verify_signature",
    # Dependencies
    "SignedRequest",
    "get_fee_payer",
    "get_signed_request",
]
