"""
Token Contract State
====================

Persisted state of a token contract.

Version: 0.1.0
"""

from typing import Any

from pydantic import BaseModel, Field


class TokenState(BaseModel):
    """On-chain layout of the token contract."""

    address: str = Field(..., min_length=1, description="Contract address")
    token_id: int = Field(..., ge=0, description="Token id derived from the address")
    decimals: int = Field(..., ge=0, le=255)
    admin: str = Field(..., min_length=1)
    packed_policy: int = Field(..., ge=0, lt=1 << 28)
    registry_root: str = Field(..., min_length=64, max_length=64)

    def to_ledger(self) -> dict[str, Any]:
        return self.model_dump()

    @classmethod
    def from_ledger(cls, data: dict[str, Any]) -> "TokenState":
        return cls.model_validate(data)
