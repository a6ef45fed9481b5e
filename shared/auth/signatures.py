"""
Transaction Signatures
======================

Signatures over transaction commitments, encoded as JWTs.

A signature names its signer in ``sub`` and the commitment it authorizes in
``cmt``. Because the commitment covers the whole transaction, a signature
cannot be lifted into a different transaction.

Version: 0.1.0
"""

import hashlib
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from pydantic import BaseModel, Field

from shared.config import settings
from shared.logging import get_logger
from shared.zk.models import canonical_json


logger = get_logger(__name__)

SIGNATURE_TOKEN_TYPE = "tx_signature"


class SignatureClaims(BaseModel):
    """Decoded signature payload."""

    sub: str = Field(..., description="Signing principal")
    commitment: str = Field(..., description="Transaction commitment")
    exp: datetime = Field(..., description="Expiration time")
    iat: datetime = Field(default_factory=lambda: datetime.now(UTC), description="Issued at")


def transaction_commitment(
    operation: str,
    arguments: dict[str, Any],
    fee_payer: str,
    fee_payer_nonce: int,
) -> str:
    """
    Compute the full commitment of a transaction.

    Args:
        operation: Contract method name
        arguments: JSON-serializable method arguments
        fee_payer: Account paying for and sequencing the transaction
        fee_payer_nonce: Fee payer's current native nonce

    Returns:
        str: SHA-256 hex digest of the canonical transaction encoding
    """
    payload = {
        "operation": operation,
        "arguments": arguments,
        "fee_payer": fee_payer,
        "fee_payer_nonce": fee_payer_nonce,
    }
    return hashlib.sha256(canonical_json(payload)).hexdigest()


def sign_commitment(
    principal: str,
    commitment: str,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Sign a transaction commitment on behalf of ``principal``.

    Args:
        principal: Account authorizing the transaction
        commitment: Transaction commitment to authorize
        expires_delta: Custom validity window (default from settings)

    Returns:
        str: Encoded signature token
    """
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(minutes=settings.signature.expire_minutes))

    encoded = jwt.encode(
        {
            "sub": principal,
            "cmt": commitment,
            "exp": expire,
            "iat": now,
            "token_type": SIGNATURE_TOKEN_TYPE,
        },
        settings.signature.secret_key.get_secret_value(),
        algorithm=settings.signature.algorithm,
    )

    logger.debug(
        "commitment_signed",
        principal=principal,
        commitment=commitment,
        expires_at=expire.isoformat(),
    )

    return encoded


def decode_signature(token: str) -> SignatureClaims | None:
    """
    Decode and validate a signature token.

    Returns:
        SignatureClaims, or None if the token is malformed, expired or not a
        transaction signature
    """
    try:
        payload = jwt.decode(
            token,
            settings.signature.secret_key.get_secret_value(),
            algorithms=[settings.signature.algorithm],
        )
    except JWTError as e:
        logger.warning("signature_decode_failed", error=str(e))
        return None

    if payload.get("token_type") != SIGNATURE_TOKEN_TYPE or "cmt" not in payload:
        logger.warning("signature_type_mismatch", actual=payload.get("token_type"))
        return None

    return SignatureClaims(
        sub=payload["sub"],
        commitment=payload["cmt"],
        exp=datetime.fromtimestamp(payload["exp"], tz=UTC),
        iat=datetime.fromtimestamp(payload.get("iat", 0), tz=UTC),
    )


def verify_signature(token: str, commitment: str) -> str | None:
    """
    Check that ``token`` signs ``commitment``.

    Returns:
        The signing principal, or None if the signature is invalid or was
        produced for another commitment
    """
    claims = decode_signature(token)
    if claims is None:
        return None

    if claims.commitment != commitment:
        logger.warning(
            "signature_commitment_mismatch",
            principal=claims.sub,
            expected=commitment,
            actual=claims.commitment,
        )
        return None

    return claims.sub
