"""
FastAPI Signature Dependencies
==============================

Dependency injection for signed transaction requests.

Clients send the fee payer in ``X-Fee-Payer`` and one ``X-Signature`` header
per signing principal.

Version: 0.1.0
"""

from typing import Annotated

from fastapi import Header, HTTPException, status
from pydantic import BaseModel, Field

from shared.logging import get_logger


logger = get_logger(__name__)


class SignedRequest(BaseModel):
    """Fee payer and raw signatures attached to a request."""

    fee_payer: str = Field(..., min_length=1, description="Fee payer address")
    signatures: list[str] = Field(default_factory=list, description="Signature tokens")


async def get_signed_request(
    x_fee_payer: Annotated[str | None, Header()] = None,
    x_signature: Annotated[list[str] | None, Header()] = None,
) -> SignedRequest:
    """
    Extract the fee payer and signatures from request headers.

    Raises:
        HTTPException: 401 if no fee payer is given
    """
    if not x_fee_payer:
        logger.warning("fee_payer_missing")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-Fee-Payer header is required",
        )

    return SignedRequest(fee_payer=x_fee_payer, signatures=x_signature or [])


async def get_fee_payer(
    x_fee_payer: Annotated[str | None, Header()] = None,
) -> str:
    """Require only the fee payer, for commitment previews."""
    if not x_fee_payer:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-Fee-Payer header is required",
        )
    return x_fee_payer
