"""
Proof Policy Verifier
=====================

Decides whether a sideloaded proof satisfies an operation's policy record.

When the record's ``should_verify`` flag is off nothing is evaluated. When
it is on, checks run in a fixed order and the first failure aborts with a
PolicyMismatchError:

1. Registry replica root equals the on-chain root
2. Replica holds a key for the operation
3. Candidate key hash equals the registered hash
4. Proof address equals the expected recipient (if required)
5. Token snapshot token id equals this token's id (if required)
6. Native snapshot is on the native asset
7. Frozen balances and nonces equal the current ledger values (as required)
8. Proof verifies against the candidate key

Version: 0.1.0
"""

from dataclasses import dataclass
from enum import Enum

from shared.blockchain import NATIVE_ASSET_ID, LedgerClient
from shared.logging import get_logger
from shared.zk import ProofBackend, SideloadedProof, VerificationKey

from services.token_ledger.models.errors import ErrorCode, PolicyMismatchError
from services.token_ledger.models.operations import OperationId
from services.token_ledger.services.codec import PolicyRecord
from services.token_ledger.services.registry import KeyRegistry


logger = get_logger(__name__)


class ProofPolicyStatus(str, Enum):
    """How a policy check concluded."""

    SKIPPED = "skipped"
    VERIFIED = "verified"


@dataclass(frozen=True)
class ProofPolicyOutcome:
    """Result of a successful policy check."""

    status: ProofPolicyStatus
    operation_id: OperationId
    key_hash: str | None = None
    verification_time_ms: int = 0

    @property
    def verified(self) -> bool:
        return self.status == ProofPolicyStatus.VERIFIED


class ProofPolicyVerifier:
    """
    Runs the proof policy protocol against a ledger snapshot.

    Args:
        ledger: Source of current account balances and nonces
        backend: Cryptographic proof verifier
    """

    def __init__(self, ledger: LedgerClient, backend: ProofBackend) -> None:
        self.ledger = ledger
        self.backend = backend

    def _reject(self, code: ErrorCode, operation_id: OperationId, **details) -> None:
        logger.warning(
            "proof_policy_rejected",
            operation=operation_id.name,
            error_code=code.value,
            **details,
        )
        raise PolicyMismatchError(code, operation=operation_id, **details)

    def verify(
        self,
        record: PolicyRecord,
        operation_id: OperationId,
        registry_root: str,
        registry_replica: KeyRegistry,
        proof: SideloadedProof,
        candidate_key: VerificationKey,
        expected_recipient: str,
        expected_token_id: int,
    ) -> ProofPolicyOutcome:
        """
        Check ``proof`` against ``record``.

        Args:
            record: Policy record of the operation
            operation_id: Operation being authorized
            registry_root: On-chain registry root
            registry_replica: Caller-supplied registry replica
            proof: Sideloaded proof
            candidate_key: Verification key the caller claims is registered
            expected_recipient: Address the proof must be about
            expected_token_id: Id of this contract's token

        Returns:
            ProofPolicyOutcome, SKIPPED when verification is off

        Raises:
            PolicyMismatchError: On the first failed check
        """
        if not record.should_verify:
            return ProofPolicyOutcome(status=ProofPolicyStatus.SKIPPED, operation_id=operation_id)

        if not registry_replica.root_matches(registry_root):
            self._reject(
                ErrorCode.REGISTRY_OUT_OF_SYNC,
                operation_id,
                expected_root=registry_root,
                replica_root=registry_replica.root,
            )

        registered = registry_replica.get(operation_id)
        if registered is None:
            self._reject(ErrorCode.MISSING_KEY_FOR_OPERATION, operation_id)

        if candidate_key.hash != registered:
            self._reject(
                ErrorCode.UNREGISTERED_KEY,
                operation_id,
                key_hash=candidate_key.hash,
            )

        public_input = proof.public_input
        output = proof.public_output

        if record.require_recipient_match and public_input.address != expected_recipient:
            self._reject(
                ErrorCode.RECIPIENT_MISMATCH,
                operation_id,
                expected=expected_recipient,
                actual=public_input.address,
            )

        if record.require_token_id_match and output.token_account.token_id != expected_token_id:
            self._reject(
                ErrorCode.TOKEN_ID_MISMATCH,
                operation_id,
                actual=output.token_account.token_id,
            )

        if output.native_account.token_id != NATIVE_ASSET_ID:
            self._reject(
                ErrorCode.WRONG_NATIVE_ASSET_ID,
                operation_id,
                actual=output.native_account.token_id,
            )

        self._check_frozen_state(record, operation_id, proof)

        result = self.backend.verify(proof, candidate_key)
        if not result.valid:
            self._reject(ErrorCode.INVALID_PROOF, operation_id, reason=result.error)

        logger.info(
            "proof_policy_verified",
            operation=operation_id.name,
            key_hash=candidate_key.hash,
            verification_time_ms=result.verification_time_ms,
        )

        return ProofPolicyOutcome(
            status=ProofPolicyStatus.VERIFIED,
            operation_id=operation_id,
            key_hash=candidate_key.hash,
            verification_time_ms=result.verification_time_ms,
        )

    def _check_frozen_state(
        self,
        record: PolicyRecord,
        operation_id: OperationId,
        proof: SideloadedProof,
    ) -> None:
        output = proof.public_output
        native = output.native_account
        token = output.token_account

        checks = [
            (
                record.require_native_balance_match,
                ErrorCode.NATIVE_BALANCE_MISMATCH,
                output.native_balance,
                lambda: self.ledger.read_balance(native.owner, native.token_id),
            ),
            (
                record.require_token_balance_match,
                ErrorCode.TOKEN_BALANCE_MISMATCH,
                output.token_balance,
                lambda: self.ledger.read_balance(token.owner, token.token_id),
            ),
            (
                record.require_native_nonce_match,
                ErrorCode.NATIVE_NONCE_MISMATCH,
                output.native_nonce,
                lambda: self.ledger.read_nonce(native.owner, native.token_id),
            ),
            (
                record.require_token_nonce_match,
                ErrorCode.TOKEN_NONCE_MISMATCH,
                output.token_nonce,
                lambda: self.ledger.read_nonce(token.owner, token.token_id),
            ),
        ]

        for required, code, frozen, read_current in checks:
            if not required:
                continue
            current = read_current()
            if current != frozen:
                self._reject(code, operation_id, frozen=frozen, current=current)
