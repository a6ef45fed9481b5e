"""
Tests for the proof policy verifier.
"""

from unittest.mock import MagicMock

import pytest

from shared.blockchain import NATIVE_ASSET_ID, MockLedgerClient, derive_token_id
from shared.zk import (
    AccountSnapshot,
    DigestProofBackend,
    SideloadedProof,
    SideloadProver,
    VerificationKey,
    generate_verification_key,
)

from services.token_ledger.models import EMPTY_ADDRESS, ErrorCode, OperationId, PolicyMismatchError
from services.token_ledger.services.codec import PolicyFlag, PolicyRecord
from services.token_ledger.services.proof_policy import ProofPolicyStatus, ProofPolicyVerifier
from services.token_ledger.services.registry import KeyRegistry


TOKEN = derive_token_id("B62qcontract")
ALICE = "B62qalice"
VERIFY_ALL = PolicyRecord(**{flag.value: True for flag in PolicyFlag})


@pytest.fixture
def ledger() -> MockLedgerClient:
    client = MockLedgerClient()
    client.fund(ALICE, 1_000, NATIVE_ASSET_ID)
    client.fund(ALICE, 250, TOKEN)
    return client


@pytest.fixture
def key() -> VerificationKey:
    return generate_verification_key("burn")


@pytest.fixture
def registry(key: VerificationKey) -> KeyRegistry:
    return KeyRegistry.from_entries({OperationId.BURN: key.hash})


@pytest.fixture
def verifier(ledger: MockLedgerClient) -> ProofPolicyVerifier:
    return ProofPolicyVerifier(ledger, DigestProofBackend())


@pytest.fixture
def proof(ledger: MockLedgerClient, key: VerificationKey) -> SideloadedProof:
    return SideloadProver(key).prove_account_state(ledger, ALICE, TOKEN)


def run(
    verifier: ProofPolicyVerifier,
    record: PolicyRecord,
    registry: KeyRegistry,
    proof: SideloadedProof,
    key: VerificationKey,
    *,
    root: str | None = None,
    recipient: str = ALICE,
    operation: OperationId = OperationId.BURN,
):
    return verifier.verify(
        record=record,
        operation_id=operation,
        registry_root=registry.root if root is None else root,
        registry_replica=registry,
        proof=proof,
        candidate_key=key,
        expected_recipient=recipient,
        expected_token_id=TOKEN,
    )


def expect_rejection(code: ErrorCode, *args, **kwargs) -> None:
    with pytest.raises(PolicyMismatchError) as exc_info:
        run(*args, **kwargs)
    assert exc_info.value.code == code


class TestShortcut:
    """Verification off must not evaluate anything."""

    def test_skipped_without_touching_inputs(self, proof: SideloadedProof) -> None:
        ledger = MagicMock()
        backend = MagicMock()
        registry = MagicMock()
        verifier = ProofPolicyVerifier(ledger, backend)

        outcome = verifier.verify(
            record=PolicyRecord(),
            operation_id=OperationId.MINT,
            registry_root="garbage",
            registry_replica=registry,
            proof=proof,
            candidate_key=generate_verification_key(),
            expected_recipient="nobody",
            expected_token_id=0,
        )

        assert outcome.status == ProofPolicyStatus.SKIPPED
        assert outcome.verified is False
        ledger.read_balance.assert_not_called()
        backend.verify.assert_not_called()
        registry.root_matches.assert_not_called()

    def test_match_flags_are_inert(
        self,
        verifier: ProofPolicyVerifier,
        proof: SideloadedProof,
    ) -> None:
        record = VERIFY_ALL.with_flag(PolicyFlag.SHOULD_VERIFY, False)

        outcome = run(verifier, record, KeyRegistry(), proof, generate_verification_key(), root="x")

        assert outcome.status == ProofPolicyStatus.SKIPPED


class TestChecks:
    """Each check and its reason, in order."""

    def test_accepts_fresh_proof(self, verifier, registry, proof, key) -> None:
        outcome = run(verifier, VERIFY_ALL, registry, proof, key)

        assert outcome.status == ProofPolicyStatus.VERIFIED
        assert outcome.key_hash == key.hash

    def test_registry_out_of_sync(self, verifier, registry, proof, key) -> None:
        expect_rejection(
            ErrorCode.REGISTRY_OUT_OF_SYNC,
            verifier, VERIFY_ALL, registry, proof, key,
            root=KeyRegistry().root,
        )

    def test_missing_key_for_operation(self, verifier, registry, proof, key) -> None:
        expect_rejection(
            ErrorCode.MISSING_KEY_FOR_OPERATION,
            verifier, VERIFY_ALL, registry, proof, key,
            operation=OperationId.TRANSFER,
        )

    def test_unregistered_key(self, verifier, registry, proof) -> None:
        expect_rejection(
            ErrorCode.UNREGISTERED_KEY,
            verifier, VERIFY_ALL, registry, proof, generate_verification_key(),
        )

    def test_registry_checked_before_key(self, verifier, registry, proof) -> None:
        expect_rejection(
            ErrorCode.REGISTRY_OUT_OF_SYNC,
            verifier, VERIFY_ALL, registry, proof, generate_verification_key(),
            root=KeyRegistry().root,
        )

    def test_recipient_mismatch(self, verifier, registry, proof, key) -> None:
        expect_rejection(
            ErrorCode.RECIPIENT_MISMATCH,
            verifier, VERIFY_ALL, registry, proof, key,
            recipient="B62qbob",
        )

    def test_recipient_ignored_when_not_required(self, verifier, registry, proof, key) -> None:
        record = VERIFY_ALL.with_flag(PolicyFlag.REQUIRE_RECIPIENT_MATCH, False)

        outcome = run(verifier, record, registry, proof, key, recipient=EMPTY_ADDRESS)

        assert outcome.verified

    def test_token_id_mismatch(self, verifier, registry, ledger, key) -> None:
        proof = SideloadProver(key).prove_account_state(ledger, ALICE, TOKEN + 1)

        expect_rejection(ErrorCode.TOKEN_ID_MISMATCH, verifier, VERIFY_ALL, registry, proof, key)

    def test_native_asset_always_checked(self, verifier, registry, ledger, key) -> None:
        prover = SideloadProver(key)
        snapshot = prover.snapshot(ledger, ALICE, TOKEN)
        snapshot.native_account = AccountSnapshot(owner=ALICE, token_id=2, balance=1_000)
        proof = prover.prove_snapshot(snapshot)

        expect_rejection(
            ErrorCode.WRONG_NATIVE_ASSET_ID,
            verifier, PolicyRecord(should_verify=True), registry, proof, key,
        )

    def test_native_balance_mismatch(self, verifier, registry, ledger, proof, key) -> None:
        ledger.fund(ALICE, 1, NATIVE_ASSET_ID)

        expect_rejection(ErrorCode.NATIVE_BALANCE_MISMATCH, verifier, VERIFY_ALL, registry, proof, key)

    def test_token_balance_mismatch(self, verifier, registry, ledger, proof, key) -> None:
        ledger.fund(ALICE, 1, TOKEN)

        expect_rejection(ErrorCode.TOKEN_BALANCE_MISMATCH, verifier, VERIFY_ALL, registry, proof, key)

    def test_native_nonce_mismatch(self, verifier, registry, ledger, proof, key) -> None:
        from shared.blockchain import LedgerTransaction

        ledger.commit(LedgerTransaction(commitment="bump", fee_payer=ALICE))

        expect_rejection(ErrorCode.NATIVE_NONCE_MISMATCH, verifier, VERIFY_ALL, registry, proof, key)

    def test_token_nonce_mismatch(self, verifier, registry, ledger, proof, key) -> None:
        from shared.blockchain import BalanceChange, LedgerTransaction

        ledger.commit(
            LedgerTransaction(
                commitment="spend",
                fee_payer="B62qpayer",
                changes=[
                    BalanceChange(owner=ALICE, token_id=TOKEN, amount=-1),
                    BalanceChange(owner="B62qbob", token_id=TOKEN, amount=1),
                ],
            )
        )
        ledger.fund(ALICE, 1, TOKEN)

        expect_rejection(ErrorCode.TOKEN_NONCE_MISMATCH, verifier, VERIFY_ALL, registry, proof, key)

    def test_stale_values_ignored_when_not_required(
        self, verifier, registry, ledger, proof, key
    ) -> None:
        ledger.fund(ALICE, 1, TOKEN)
        record = VERIFY_ALL.with_flag(PolicyFlag.REQUIRE_TOKEN_BALANCE_MATCH, False)

        assert run(verifier, record, registry, proof, key).verified

    def test_invalid_proof(self, verifier, registry, proof, key) -> None:
        forged = proof.model_copy(update={"proof": "00" * 32})

        expect_rejection(ErrorCode.INVALID_PROOF, verifier, VERIFY_ALL, registry, forged, key)
