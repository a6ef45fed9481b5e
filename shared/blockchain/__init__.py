"""
Blockchain Module
=================

Abstraction layer for the account ledger.

Supports:
- Mock (development/testing)
- Devnet / Mainnet (not yet implemented)

Features:
- Token balances and account nonces
- Atomic, commitment-bound transactions
- Contract state and event log
- Indexed Merkle map for authenticated registries

Usage:
    from shared.blockchain import get_ledger_client, NATIVE_ASSET_ID

    ledger = get_ledger_client()
    balance = ledger.read_balance("B62q...", NATIVE_ASSET_ID)
"""

from shared.blockchain.client import (
    NATIVE_ASSET_ID,
    BalanceChange,
    LedgerClient,
    LedgerError,
    LedgerEvent,
    LedgerTransaction,
    derive_token_id,
    get_ledger_client,
    reset_ledger_client,
    set_ledger_client,
)
from shared.blockchain.merkle import IndexedMerkleMap
from shared.blockchain.mock import MockLedgerClient

__all__ = [
    # Client
    "LedgerClient",
    "get_ledger_client",
    "set_ledger_client",
    "reset_ledger_client",
    "derive_token_id",
    "NATIVE_ASSET_ID",
    # Models
    "BalanceChange",
    "LedgerTransaction",
    "LedgerEvent",
    "LedgerError",
    # Primitives
    "IndexedMerkleMap",
    # Implementations
    "MockLedgerClient",
]
