"""
Sideloaded Proof Module
=======================

Proof models, generation and verification for sideloaded proofs.

Usage:
    from shared.zk import SideloadProver, DigestProofBackend, generate_verification_key

    key = generate_verification_key()
    prover = SideloadProver(key)
    proof = prover.prove_account_state(ledger, address="B62q...", token_id=token_id)

    result = DigestProofBackend().verify(proof, key)

Version: 1.0.0
"""

from shared.zk.models import (
    AccountSnapshot,
    PublicInput,
    PublicOutput,
    SideloadedProof,
    VerificationKey,
    VerificationResult,
)
from shared.zk.prover import SideloadProver, SnapshotInput, generate_verification_key
from shared.zk.verifier import DigestProofBackend, ProofBackend, proof_digest


__all__ = [
    # Prover
    "SideloadProver",
    "SnapshotInput",
    "generate_verification_key",
    # Verifier
    "ProofBackend",
    "DigestProofBackend",
    "proof_digest",
    # Models
    "AccountSnapshot",
    "PublicInput",
    "PublicOutput",
    "SideloadedProof",
    "VerificationKey",
    "VerificationResult",
]
