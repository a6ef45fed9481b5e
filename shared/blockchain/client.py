"""
Ledger Client Interface
=======================

Abstract base class and models for the account ledger the token contract
runs on.

Reads are pure lookups over the client's current snapshot. Writes go through
``commit``, which applies a whole transaction or nothing.

Version: 0.1.0
"""

import hashlib
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from shared.config import settings, BlockchainMode
from shared.logging import get_logger

logger = get_logger(__name__)

# The chain's base settlement currency always uses token id 1
NATIVE_ASSET_ID = 1

# BN254 scalar field order
FIELD_ORDER = 21888242871839275222246405745257275088548364400416034343698204186575808495617


def derive_token_id(address: str) -> int:
    """
    Derive the token id owned by a contract address.

    Uses SHA-256 and reduces mod field order. Never collides with
    ``NATIVE_ASSET_ID`` in practice.
    """
    digest = hashlib.sha256(f"token:{address}".encode()).digest()
    return int.from_bytes(digest, "big") % FIELD_ORDER


class LedgerError(ValueError):
    """A transaction the ledger itself refuses to apply."""


class BalanceChange(BaseModel):
    """Signed balance delta for one account on one token."""

    owner: str = Field(..., min_length=1)
    token_id: int = Field(..., ge=0)
    amount: int


class LedgerTransaction(BaseModel):
    """
    Set of balance changes applied atomically.

    The fee payer's native nonce is bumped once; every account debited on a
    non-native token has its token-account nonce bumped as well.
    """

    commitment: str = Field(..., description="Full transaction commitment")
    fee_payer: str
    changes: list[BalanceChange] = Field(default_factory=list)


class LedgerEvent(BaseModel):
    """Event emitted by a contract."""

    address: str
    name: str
    payload: dict[str, Any] = Field(default_factory=dict)
    commitment: str | None = None
    block_number: int | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class LedgerClient(ABC):
    """
    Abstract base class for ledger clients.

    Implements the Strategy pattern for different ledger modes.
    """

    @property
    @abstractmethod
    def mode(self) -> BlockchainMode:
        """Get the ledger mode."""
        ...

    @abstractmethod
    def health_check(self) -> dict[str, Any]:
        """Check ledger health."""
        ...

    # =========================================================================
    # Accounts
    # =========================================================================

    @abstractmethod
    def read_balance(self, owner: str, token_id: int) -> int:
        """Current balance of ``owner`` on ``token_id`` (0 for unknown accounts)."""
        ...

    @abstractmethod
    def read_nonce(self, owner: str, token_id: int) -> int:
        """Current nonce of ``owner``'s account on ``token_id``."""
        ...

    @abstractmethod
    def commit(self, transaction: LedgerTransaction) -> int:
        """
        Apply a transaction atomically.

        Args:
            transaction: Balance changes bound to one commitment

        Returns:
            Block number the transaction landed in

        Raises:
            LedgerError: If any resulting balance would be negative or the
                commitment was already applied. Nothing is written.
        """
        ...

    # =========================================================================
    # Contract state and events
    # =========================================================================

    @abstractmethod
    def read_state(self, address: str) -> dict[str, Any] | None:
        """On-chain state of the contract at ``address``, if deployed."""
        ...

    @abstractmethod
    def write_state(self, address: str, state: dict[str, Any]) -> None:
        """Replace the on-chain state of the contract at ``address``."""
        ...

    @abstractmethod
    def emit_event(
        self,
        address: str,
        name: str,
        payload: dict[str, Any],
        commitment: str | None = None,
    ) -> LedgerEvent:
        """Record a contract event."""
        ...

    @abstractmethod
    def get_events(self, address: str, limit: int = 100) -> list[LedgerEvent]:
        """Events of a contract, oldest first."""
        ...


# Global client instance
_client: LedgerClient | None = None


def get_ledger_client() -> LedgerClient:
    """
    Get the configured ledger client instance.

    Returns:
        LedgerClient instance based on settings
    """
    global _client

    if _client is None:
        mode = settings.blockchain.mode

        if mode == BlockchainMode.MOCK:
            from shared.blockchain.mock import MockLedgerClient

            _client = MockLedgerClient()
        elif mode in (BlockchainMode.DEVNET, BlockchainMode.MAINNET):
            raise NotImplementedError(
                f"Ledger mode '{mode.value}' not yet implemented. "
                "Use BLOCKCHAIN_MODE=mock for development."
            )
        else:
            raise ValueError(f"Unknown ledger mode: {mode}")

        logger.info(
            "ledger_client_initialized",
            mode=mode.value,
        )

    return _client


def set_ledger_client(client: LedgerClient) -> None:
    """
    Set a custom ledger client.

    Args:
        client: LedgerClient instance
    """
    global _client
    _client = client
    logger.info(
        "ledger_client_set",
        mode=client.mode.value,
    )


def reset_ledger_client() -> None:
    """Reset the client to be re-initialized."""
    global _client
    _client = None
