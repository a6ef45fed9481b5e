"""
Unit tests for mock ledger client.
"""

import pytest

from shared.blockchain import (
    NATIVE_ASSET_ID,
    BalanceChange,
    LedgerError,
    LedgerTransaction,
    MockLedgerClient,
    derive_token_id,
    get_ledger_client,
    reset_ledger_client,
)
from shared.blockchain.client import FIELD_ORDER
from shared.config import BlockchainMode


TOKEN = derive_token_id("B62qcontract")


class TestMockLedgerClient:
    """Tests for MockLedgerClient."""

    @pytest.fixture
    def client(self) -> MockLedgerClient:
        """Create a fresh mock client for each test."""
        client = MockLedgerClient()
        client.clear_all()
        return client

    def test_client_mode(self, client: MockLedgerClient) -> None:
        assert client.mode == BlockchainMode.MOCK

    def test_unknown_accounts_are_empty(self, client: MockLedgerClient) -> None:
        assert client.read_balance("B62qnobody", TOKEN) == 0
        assert client.read_nonce("B62qnobody", NATIVE_ASSET_ID) == 0

    def test_commit_applies_changes(self, client: MockLedgerClient) -> None:
        client.fund("alice", 100, TOKEN)

        block = client.commit(
            LedgerTransaction(
                commitment="c1",
                fee_payer="alice",
                changes=[
                    BalanceChange(owner="alice", token_id=TOKEN, amount=-40),
                    BalanceChange(owner="bob", token_id=TOKEN, amount=40),
                ],
            )
        )

        assert block > 1000
        assert client.read_balance("alice", TOKEN) == 60
        assert client.read_balance("bob", TOKEN) == 40

    def test_commit_bumps_nonces(self, client: MockLedgerClient) -> None:
        client.fund("alice", 100, TOKEN)

        client.commit(
            LedgerTransaction(
                commitment="c1",
                fee_payer="payer",
                changes=[
                    BalanceChange(owner="alice", token_id=TOKEN, amount=-10),
                    BalanceChange(owner="bob", token_id=TOKEN, amount=10),
                ],
            )
        )

        assert client.read_nonce("payer", NATIVE_ASSET_ID) == 1
        assert client.read_nonce("alice", TOKEN) == 1
        assert client.read_nonce("bob", TOKEN) == 0

    def test_overdraft_writes_nothing(self, client: MockLedgerClient) -> None:
        client.fund("alice", 5, TOKEN)

        with pytest.raises(LedgerError):
            client.commit(
                LedgerTransaction(
                    commitment="c1",
                    fee_payer="alice",
                    changes=[
                        BalanceChange(owner="bob", token_id=TOKEN, amount=10),
                        BalanceChange(owner="alice", token_id=TOKEN, amount=-10),
                    ],
                )
            )

        assert client.read_balance("alice", TOKEN) == 5
        assert client.read_balance("bob", TOKEN) == 0
        assert client.read_nonce("alice", NATIVE_ASSET_ID) == 0

    def test_debit_checked_before_later_credit(self, client: MockLedgerClient) -> None:
        with pytest.raises(LedgerError):
            client.commit(
                LedgerTransaction(
                    commitment="c1",
                    fee_payer="alice",
                    changes=[
                        BalanceChange(owner="alice", token_id=TOKEN, amount=-500),
                        BalanceChange(owner="alice", token_id=TOKEN, amount=500),
                    ],
                )
            )

        assert client.read_balance("alice", TOKEN) == 0
        assert client.read_nonce("alice", NATIVE_ASSET_ID) == 0

    def test_credit_then_debit_in_order(self, client: MockLedgerClient) -> None:
        client.commit(
            LedgerTransaction(
                commitment="c1",
                fee_payer="alice",
                changes=[
                    BalanceChange(owner="alice", token_id=TOKEN, amount=30),
                    BalanceChange(owner="alice", token_id=TOKEN, amount=-30),
                ],
            )
        )

        assert client.read_balance("alice", TOKEN) == 0

    def test_duplicate_commitment_rejected(self, client: MockLedgerClient) -> None:
        tx = LedgerTransaction(commitment="c1", fee_payer="alice")
        client.commit(tx)

        with pytest.raises(LedgerError):
            client.commit(tx)

    def test_state_is_copied(self, client: MockLedgerClient) -> None:
        state = {"admin": "alice"}
        client.write_state("contract", state)
        state["admin"] = "mallory"

        stored = client.read_state("contract")
        assert stored == {"admin": "alice"}

        stored["admin"] = "mallory"
        assert client.read_state("contract") == {"admin": "alice"}

    def test_events(self, client: MockLedgerClient) -> None:
        for i in range(5):
            client.emit_event("contract", "Mint", {"amount": i})

        events = client.get_events("contract", limit=3)

        assert len(events) == 3
        assert events[-1].payload["amount"] == 4
        assert client.get_events("other") == []

    def test_health_check(self, client: MockLedgerClient) -> None:
        health = client.health_check()

        assert health["status"] == "healthy"
        assert health["mode"] == "mock"

    def test_clear_all(self, client: MockLedgerClient) -> None:
        client.fund("alice", 10)
        client.write_state("contract", {})
        client.clear_all()

        assert client.get_stats() == {
            "accounts": 0,
            "contracts": 0,
            "events": 0,
            "block_number": 1000,
        }


class TestTokenIds:
    """Tests for token id derivation."""

    def test_deterministic(self) -> None:
        assert derive_token_id("B62qcontract") == TOKEN

    def test_distinct_per_address(self) -> None:
        assert derive_token_id("B62qother") != TOKEN

    def test_in_field_and_not_native(self) -> None:
        assert 0 <= TOKEN < FIELD_ORDER
        assert TOKEN != NATIVE_ASSET_ID


class TestClientSelection:
    """Tests for get_ledger_client."""

    def test_mock_mode_returns_mock(self) -> None:
        reset_ledger_client()
        try:
            assert isinstance(get_ledger_client(), MockLedgerClient)
            assert get_ledger_client() is get_ledger_client()
        finally:
            reset_ledger_client()
