"""
Administration Routes
=====================

API endpoints for contract initialization, the admin role, the
verification key registry and the proof policy.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from shared.auth import SignedRequest, get_signed_request
from shared.logging import get_logger

from services.token_ledger.dependencies import build_context, get_token
from services.token_ledger.models.operations import OperationId
from services.token_ledger.routes.schemas import (
    InitializeRequest,
    OperationResponse,
    PolicyFlagRequest,
    PolicyResponse,
    PolicyUpdateRequest,
    RegistryUpdateRequest,
    RegistryUpdateResponse,
    SetAdminRequest,
    commitment_arguments,
)
from services.token_ledger.services.codec import PackedPolicy
from services.token_ledger.services.gate import FungibleToken
from services.token_ledger.services.registry import KeyRegistry


logger = get_logger(__name__)
router = APIRouter()

Token = Annotated[FungibleToken, Depends(get_token)]
Signed = Annotated[SignedRequest, Depends(get_signed_request)]


def policy_response(policy: PackedPolicy) -> PolicyResponse:
    return PolicyResponse(
        packed_policy=policy.value,
        records={op.name: policy.record_for(op) for op in OperationId},
    )


@router.post("/initialize", response_model=OperationResponse)
async def initialize(request: InitializeRequest, token: Token, signed: Signed) -> OperationResponse:
    """
    Initialize the token contract.

    Must be signed by the contract account. Callable once.
    """
    tx = build_context(token, "initialize", commitment_arguments(request), signed)
    state = token.initialize(tx, request.admin, request.decimals, request.records)

    return OperationResponse(
        operation="initialize",
        commitment=tx.commitment,
        message=f"Token {state.address} initialized with admin {state.admin}",
    )


@router.post("/admin", response_model=OperationResponse)
async def set_admin(request: SetAdminRequest, token: Token, signed: Signed) -> OperationResponse:
    """Hand the admin role to another account. Requires the current admin's signature."""
    tx = build_context(token, "set_admin", commitment_arguments(request), signed)
    token.set_admin(tx, request.admin)

    return OperationResponse(
        operation="set_admin",
        commitment=tx.commitment,
        message=f"Admin set to {request.admin}",
    )


@router.post("/registry", response_model=RegistryUpdateResponse)
async def update_registry_entry(
    request: RegistryUpdateRequest,
    token: Token,
    signed: Signed,
) -> RegistryUpdateResponse:
    """
    Register the verification key hash of an operation.

    The request carries the caller's registry replica, which must match the
    on-chain root. The updated replica is returned.
    """
    tx = build_context(token, "update_registry_entry", commitment_arguments(request), signed)
    updated = token.update_registry_entry(
        tx,
        request.operation_id,
        request.key_hash,
        KeyRegistry.from_entries(request.registry),
    )

    return RegistryUpdateResponse(
        commitment=tx.commitment,
        root=updated.root,
        registry=updated.entries(),
    )


@router.post("/policy", response_model=PolicyResponse)
async def update_policy_record(
    request: PolicyUpdateRequest,
    token: Token,
    signed: Signed,
) -> PolicyResponse:
    """Replace the policy record of one operation."""
    tx = build_context(token, "update_policy_record", commitment_arguments(request), signed)
    return policy_response(token.update_policy_record(tx, request.operation_id, request.record))


@router.post("/policy-flag", response_model=PolicyResponse)
async def update_policy_flag(
    request: PolicyFlagRequest,
    token: Token,
    signed: Signed,
) -> PolicyResponse:
    """Set a single flag of one operation's policy record."""
    tx = build_context(token, "update_policy_flag", commitment_arguments(request), signed)
    return policy_response(
        token.update_policy_flag(tx, request.operation_id, request.flag, request.value)
    )
