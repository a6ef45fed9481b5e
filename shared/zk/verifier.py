"""
Sideloaded Proof Verification
=============================

Proof backends consumed by the token contract as an opaque
``verify(proof, key)`` capability.

Version: 1.0.0
"""

import hashlib
import hmac
import time
from abc import ABC, abstractmethod

from shared.logging import get_logger
from shared.zk.models import SideloadedProof, VerificationKey, VerificationResult

logger = get_logger(__name__)


def proof_digest(proof: SideloadedProof, key: VerificationKey) -> str:
    """Digest binding a verification key to a proof's public statement."""
    return hashlib.sha256(key.data.encode() + b"\x00" + proof.statement()).hexdigest()


class ProofBackend(ABC):
    """Pure, terminating, side-effect-free proof verification."""

    @abstractmethod
    def verify(self, proof: SideloadedProof, key: VerificationKey) -> VerificationResult:
        """
        Verify ``proof`` against ``key``.

        Args:
            proof: The sideloaded proof
            key: Full verification key (only its hash is registered on-chain)

        Returns:
            VerificationResult with verification status
        """
        ...


class DigestProofBackend(ProofBackend):
    """
    Hash-commitment proof system.

    A proof is valid when its blob equals the SHA-256 commitment of the key
    and the public statement, which is what ``SideloadProver`` emits.
    """

    def verify(self, proof: SideloadedProof, key: VerificationKey) -> VerificationResult:
        start_time = time.perf_counter()

        expected = proof_digest(proof, key)
        is_valid = hmac.compare_digest(expected, proof.proof)

        verification_time_ms = int((time.perf_counter() - start_time) * 1000)

        logger.debug(
            "sideloaded_proof_verified",
            key_hash=key.hash,
            valid=is_valid,
            verification_time_ms=verification_time_ms,
        )

        return VerificationResult(
            valid=is_valid,
            key_hash=key.hash,
            verification_time_ms=verification_time_ms,
            error=None if is_valid else "Proof does not match verification key and statement",
        )
