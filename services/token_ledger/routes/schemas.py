"""
Token Ledger API Schemas
========================

Request and response models shared by the token ledger routes.

Every signed operation has a request model; its JSON dump is the
``arguments`` part of the transaction commitment.
"""

from typing import Annotated, Any

from pydantic import BaseModel, Field

from shared.config import settings
from shared.zk import SideloadedProof, VerificationKey

from services.token_ledger.models.forest import AccountUpdate
from services.token_ledger.services.codec import PolicyRecord
from services.token_ledger.services.registry import KeyRegistry


KeyHash = Annotated[str, Field(pattern=r"^[0-9a-fA-F]{64}$")]


# ============================================================================
# Token Operations
# ============================================================================


class ProofBundle(BaseModel):
    """Sideloaded proof, its verification key and the caller's registry replica."""

    proof: SideloadedProof
    verification_key: str = Field(..., min_length=1, description="Serialized verification key")
    registry: dict[int, KeyHash] = Field(
        default_factory=dict,
        description="Registry replica as {operation_id: key_hash}",
    )

    def proof_args(self) -> tuple[SideloadedProof, VerificationKey, KeyRegistry]:
        return (
            self.proof,
            VerificationKey(data=self.verification_key),
            KeyRegistry.from_entries(self.registry),
        )


class MintRequest(BaseModel):
    recipient: str = Field(..., min_length=1)
    amount: int


class MintWithProofRequest(MintRequest, ProofBundle):
    pass


class BurnRequest(BaseModel):
    owner: str = Field(..., min_length=1, description="Account burned from")
    amount: int


class BurnWithProofRequest(BurnRequest, ProofBundle):
    pass


class TransferRequest(BaseModel):
    sender: str = Field(..., min_length=1)
    receiver: str = Field(..., min_length=1)
    amount: int


class TransferWithProofRequest(TransferRequest, ProofBundle):
    pass


class ApproveBatchRequest(BaseModel):
    forest: list[AccountUpdate] = Field(default_factory=list)


class ApproveBatchWithProofRequest(ApproveBatchRequest, ProofBundle):
    pass


class OperationResponse(BaseModel):
    """Result of a committed operation."""

    success: bool = True
    operation: str
    commitment: str
    block_number: int | None = None
    message: str


class BatchResponse(OperationResponse):
    token_updates: int
    nodes_visited: int


# ============================================================================
# Administration
# ============================================================================


class InitializeRequest(BaseModel):
    admin: str = Field(..., min_length=1)
    decimals: int = Field(default_factory=lambda: settings.token.default_decimals)
    records: list[PolicyRecord] | None = Field(
        None,
        description="Mint, Burn, Transfer and BatchApprove records; defaults when omitted",
    )


class SetAdminRequest(BaseModel):
    admin: str = Field(..., min_length=1)


class RegistryUpdateRequest(BaseModel):
    operation_id: int
    key_hash: KeyHash
    registry: dict[int, KeyHash] = Field(default_factory=dict)


class RegistryUpdateResponse(BaseModel):
    success: bool = True
    commitment: str
    root: str
    registry: dict[int, str]


class PolicyUpdateRequest(BaseModel):
    operation_id: int
    record: PolicyRecord


class PolicyFlagRequest(BaseModel):
    operation_id: int
    flag: str
    value: bool


class PolicyResponse(BaseModel):
    """Packed policy and its decoded records."""

    packed_policy: int
    records: dict[str, PolicyRecord]


class CommitmentRequest(BaseModel):
    operation: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class CommitmentResponse(BaseModel):
    commitment: str
    fee_payer: str
    fee_payer_nonce: int


# Request model of every signed operation, keyed by operation name
OPERATION_REQUESTS: dict[str, type[BaseModel]] = {
    "mint": MintRequest,
    "mint_with_proof": MintWithProofRequest,
    "burn": BurnRequest,
    "burn_with_proof": BurnWithProofRequest,
    "transfer": TransferRequest,
    "transfer_with_proof": TransferWithProofRequest,
    "approve_batch": ApproveBatchRequest,
    "approve_batch_with_proof": ApproveBatchWithProofRequest,
    "initialize": InitializeRequest,
    "set_admin": SetAdminRequest,
    "update_registry_entry": RegistryUpdateRequest,
    "update_policy_record": PolicyUpdateRequest,
    "update_policy_flag": PolicyFlagRequest,
}


def commitment_arguments(request: BaseModel) -> dict[str, Any]:
    """Canonical arguments of a request, as committed to."""
    return request.model_dump(mode="json")
