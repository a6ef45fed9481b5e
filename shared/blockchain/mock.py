"""
Mock Ledger Client
==================

In-memory ledger implementation for development and testing.

Version: 0.1.0
"""

import copy
from collections import defaultdict
from typing import Any

from shared.blockchain.client import (
    NATIVE_ASSET_ID,
    LedgerClient,
    LedgerError,
    LedgerEvent,
    LedgerTransaction,
)
from shared.config import BlockchainMode
from shared.logging import get_logger

logger = get_logger(__name__)

Account = tuple[str, int]


class MockLedgerClient(LedgerClient):
    """
    In-memory mock ledger.

    Simulates accounts, contract state and events without any chain
    infrastructure. Data is stored in memory and lost on restart.
    """

    def __init__(self) -> None:
        """Initialize mock ledger with empty storage."""
        self._block_number = 1000

        self._balances: dict[Account, int] = defaultdict(int)
        self._nonces: dict[Account, int] = defaultdict(int)
        self._states: dict[str, dict[str, Any]] = {}
        self._events: dict[str, list[LedgerEvent]] = defaultdict(list)
        self._commitments: set[str] = set()

        logger.debug("mock_ledger_initialized")

    @property
    def mode(self) -> BlockchainMode:
        return BlockchainMode.MOCK

    def health_check(self) -> dict[str, Any]:
        """Check mock ledger health."""
        return {
            "status": "healthy",
            "mode": self.mode.value,
            "block_number": self._block_number,
            "accounts": len(self._balances),
            "contracts": len(self._states),
        }

    def _next_block(self) -> int:
        self._block_number += 1
        return self._block_number

    # =========================================================================
    # Accounts
    # =========================================================================

    def read_balance(self, owner: str, token_id: int) -> int:
        return self._balances.get((owner, token_id), 0)

    def read_nonce(self, owner: str, token_id: int) -> int:
        return self._nonces.get((owner, token_id), 0)

    def commit(self, transaction: LedgerTransaction) -> int:
        """Apply every change of ``transaction`` or none of them."""
        if transaction.commitment in self._commitments:
            raise LedgerError(f"Commitment already applied: {transaction.commitment}")

        # Changes apply in order to a scratch copy; no balance may dip below zero
        pending: dict[Account, int] = {}
        for change in transaction.changes:
            account = (change.owner, change.token_id)
            balance = pending.get(account, self.read_balance(*account)) + change.amount
            if balance < 0:
                raise LedgerError(
                    f"Insufficient balance for {change.owner} on token {change.token_id}"
                )
            pending[account] = balance

        self._balances.update(pending)
        self._nonces[(transaction.fee_payer, NATIVE_ASSET_ID)] += 1
        debited = {
            (c.owner, c.token_id)
            for c in transaction.changes
            if c.amount < 0 and c.token_id != NATIVE_ASSET_ID
        }
        for account in debited:
            self._nonces[account] += 1

        self._commitments.add(transaction.commitment)
        block_number = self._next_block()

        logger.debug(
            "mock_transaction_committed",
            commitment=transaction.commitment,
            changes=len(transaction.changes),
            block_number=block_number,
        )

        return block_number

    # =========================================================================
    # Contract state and events
    # =========================================================================

    def read_state(self, address: str) -> dict[str, Any] | None:
        state = self._states.get(address)
        return copy.deepcopy(state) if state is not None else None

    def write_state(self, address: str, state: dict[str, Any]) -> None:
        self._states[address] = copy.deepcopy(state)

    def emit_event(
        self,
        address: str,
        name: str,
        payload: dict[str, Any],
        commitment: str | None = None,
    ) -> LedgerEvent:
        event = LedgerEvent(
            address=address,
            name=name,
            payload=payload,
            commitment=commitment,
            block_number=self._block_number,
        )
        self._events[address].append(event)
        return event

    def get_events(self, address: str, limit: int = 100) -> list[LedgerEvent]:
        return list(self._events.get(address, []))[-limit:]

    # =========================================================================
    # Test Utilities
    # =========================================================================

    def fund(self, owner: str, amount: int, token_id: int = NATIVE_ASSET_ID) -> None:
        """Credit an account directly, bypassing any contract (for testing)."""
        self._balances[(owner, token_id)] += amount
        logger.debug("mock_account_funded", owner=owner, token_id=token_id, amount=amount)

    def clear_all(self) -> None:
        """Clear all mock data (for testing)."""
        self._balances.clear()
        self._nonces.clear()
        self._states.clear()
        self._events.clear()
        self._commitments.clear()
        self._block_number = 1000
        logger.debug("mock_ledger_cleared")

    def get_stats(self) -> dict[str, int]:
        """Get storage statistics."""
        return {
            "accounts": len(self._balances),
            "contracts": len(self._states),
            "events": sum(len(v) for v in self._events.values()),
            "block_number": self._block_number,
        }
