"""Token ledger core: policy codec, key registry, proof policy, batch approval, operation gate."""

from services.token_ledger.services.batch import BatchApprovalResult, BatchApprover
from services.token_ledger.services.codec import PackedPolicy, PolicyFlag, PolicyRecord
from services.token_ledger.services.gate import FungibleToken
from services.token_ledger.services.proof_policy import (
    ProofPolicyOutcome,
    ProofPolicyStatus,
    ProofPolicyVerifier,
)
from services.token_ledger.services.registry import (
    KeyRegistry,
    empty_registry_root,
    parse_operation_id,
)

__all__ = [
    "BatchApprovalResult",
    "BatchApprover",
    "FungibleToken",
    "KeyRegistry",
    "PackedPolicy",
    "PolicyFlag",
    "PolicyRecord",
    "ProofPolicyOutcome",
    "ProofPolicyStatus",
    "ProofPolicyVerifier",
    "empty_registry_root",
    "parse_operation_id",
]
