"""
Sideloaded Proof Data Models
============================

Pydantic models for sideloaded proofs and their verification keys.

A sideloaded proof attests to a point-in-time snapshot of two accounts owned
by the same address: its native-asset account and its account on a custom
token. Proofs are immutable once generated.

Version: 1.0.0
"""

import hashlib
import json
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def canonical_json(data: Any) -> bytes:
    """Deterministic JSON encoding used for digests."""
    return json.dumps(data, sort_keys=True, separators=(",", ":")).encode()


class VerificationKey(BaseModel):
    """Verification key of a sideloaded circuit; only its hash lives on-chain."""

    model_config = ConfigDict(frozen=True)

    data: str = Field(..., min_length=1, description="Serialized verification key")

    @property
    def hash(self) -> str:
        """SHA-256 hex digest of the serialized key."""
        return hashlib.sha256(self.data.encode()).hexdigest()


class AccountSnapshot(BaseModel):
    """Account state captured when the proof was generated."""

    model_config = ConfigDict(frozen=True)

    owner: str
    token_id: int = Field(..., ge=0)
    balance: int = Field(default=0, ge=0)
    nonce: int = Field(default=0, ge=0)


class PublicInput(BaseModel):
    """Standard public input of a sideloaded proof."""

    model_config = ConfigDict(frozen=True)

    token_id: int = Field(..., ge=0)
    address: str


class PublicOutput(BaseModel):
    """Standard public output: account snapshots plus the frozen values."""

    model_config = ConfigDict(frozen=True)

    native_account: AccountSnapshot
    token_account: AccountSnapshot
    native_balance: int = Field(..., ge=0)
    token_balance: int = Field(..., ge=0)
    native_nonce: int = Field(..., ge=0)
    token_nonce: int = Field(..., ge=0)


class SideloadedProof(BaseModel):
    """A proof over ``PublicInput`` / ``PublicOutput`` with an opaque proof blob."""

    model_config = ConfigDict(frozen=True)

    public_input: PublicInput
    public_output: PublicOutput
    proof: str = Field(..., description="Opaque proof encoding")

    def statement(self) -> bytes:
        """Canonical encoding of the public statement the proof attests to."""
        return canonical_json(
            {
                "public_input": self.public_input.model_dump(),
                "public_output": self.public_output.model_dump(),
            }
        )


class VerificationResult(BaseModel):
    """Result of proof verification."""

    valid: bool
    key_hash: str | None = None
    verified_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    verification_time_ms: int = Field(..., ge=0)

    # Error info
    error: str | None = None
