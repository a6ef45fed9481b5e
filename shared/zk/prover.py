"""
Sideloaded Proof Generation
===========================

Generates sideloaded proofs for the bundled hash-commitment proof system.

The prover snapshots an owner's native and custom-token accounts from a
ledger client, freezes the observed balances and nonces in the public output
and commits to the statement with the verification key.

Version: 1.0.0
"""

import secrets
from dataclasses import dataclass

from shared.blockchain.client import NATIVE_ASSET_ID, LedgerClient
from shared.logging import get_logger
from shared.zk.models import (
    AccountSnapshot,
    PublicInput,
    PublicOutput,
    SideloadedProof,
    VerificationKey,
)
from shared.zk.verifier import proof_digest


logger = get_logger(__name__)


def generate_verification_key(label: str = "sideload") -> VerificationKey:
    """Create a fresh random verification key."""
    return VerificationKey(data=f"{label}:{secrets.token_hex(32)}")


@dataclass
class SnapshotInput:
    """Input for an account-state proof."""

    address: str
    token_id: int
    native_account: AccountSnapshot
    token_account: AccountSnapshot


class SideloadProver:
    """
    Sideloaded proof generator.

    Usage:
        prover = SideloadProver(key)

        proof = prover.prove_account_state(
            ledger,
            address="B62q...",
            token_id=token.token_id,
        )
    """

    def __init__(self, key: VerificationKey) -> None:
        self.key = key

    def snapshot(self, ledger: LedgerClient, address: str, token_id: int) -> SnapshotInput:
        """Capture the current native and token account of ``address``."""
        return SnapshotInput(
            address=address,
            token_id=token_id,
            native_account=AccountSnapshot(
                owner=address,
                token_id=NATIVE_ASSET_ID,
                balance=ledger.read_balance(address, NATIVE_ASSET_ID),
                nonce=ledger.read_nonce(address, NATIVE_ASSET_ID),
            ),
            token_account=AccountSnapshot(
                owner=address,
                token_id=token_id,
                balance=ledger.read_balance(address, token_id),
                nonce=ledger.read_nonce(address, token_id),
            ),
        )

    def prove(self, public_input: PublicInput, public_output: PublicOutput) -> SideloadedProof:
        """
        Prove an arbitrary statement.

        Args:
            public_input: Token id and address the proof is about
            public_output: Account snapshots and frozen values

        Returns:
            SideloadedProof bound to this prover's key
        """
        unsigned = SideloadedProof(
            public_input=public_input,
            public_output=public_output,
            proof="",
        )
        proof = unsigned.model_copy(update={"proof": proof_digest(unsigned, self.key)})

        logger.debug(
            "sideloaded_proof_generated",
            address=public_input.address,
            token_id=public_input.token_id,
            key_hash=self.key.hash,
        )

        return proof

    def prove_snapshot(self, snapshot: SnapshotInput) -> SideloadedProof:
        """Prove a captured snapshot, freezing its balances and nonces."""
        return self.prove(
            PublicInput(token_id=snapshot.token_id, address=snapshot.address),
            PublicOutput(
                native_account=snapshot.native_account,
                token_account=snapshot.token_account,
                native_balance=snapshot.native_account.balance,
                token_balance=snapshot.token_account.balance,
                native_nonce=snapshot.native_account.nonce,
                token_nonce=snapshot.token_account.nonce,
            ),
        )

    def prove_account_state(
        self,
        ledger: LedgerClient,
        address: str,
        token_id: int,
    ) -> SideloadedProof:
        """Snapshot ``address`` on ``ledger`` and prove it."""
        return self.prove_snapshot(self.snapshot(ledger, address, token_id))
