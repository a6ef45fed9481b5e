"""
Token Operation Routes
======================

API endpoints for minting, burning, transferring and batch approval.

Each request carries the fee payer in ``X-Fee-Payer`` and one
``X-Signature`` header per signer. Signatures are made over the commitment
returned by ``POST /commitment`` for the same operation and body.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError

from shared.auth import SignedRequest, get_fee_payer, get_signed_request, transaction_commitment
from shared.blockchain import NATIVE_ASSET_ID
from shared.logging import get_logger

from services.token_ledger.dependencies import build_context, get_token
from services.token_ledger.routes.schemas import (
    OPERATION_REQUESTS,
    ApproveBatchRequest,
    ApproveBatchWithProofRequest,
    BatchResponse,
    BurnRequest,
    BurnWithProofRequest,
    CommitmentRequest,
    CommitmentResponse,
    MintRequest,
    MintWithProofRequest,
    OperationResponse,
    TransferRequest,
    TransferWithProofRequest,
    commitment_arguments,
)
from services.token_ledger.services.gate import FungibleToken


logger = get_logger(__name__)
router = APIRouter()

Token = Annotated[FungibleToken, Depends(get_token)]
Signed = Annotated[SignedRequest, Depends(get_signed_request)]


# ============================================================================
# Commitments
# ============================================================================


@router.post("/commitment", response_model=CommitmentResponse)
async def preview_commitment(
    request: CommitmentRequest,
    token: Token,
    fee_payer: Annotated[str, Depends(get_fee_payer)],
) -> CommitmentResponse:
    """
    Compute the commitment a signer must sign for an operation.

    The arguments are validated against the operation's request body, so
    the commitment matches the one the operation endpoint recomputes.
    """
    model = OPERATION_REQUESTS.get(request.operation)
    if model is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown operation: {request.operation}",
        )

    try:
        arguments = commitment_arguments(model.model_validate(request.arguments))
    except ValidationError as e:
        logger.warning("commitment_arguments_invalid", operation=request.operation)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid arguments for {request.operation}: {e.error_count()} error(s)",
        ) from e
    nonce = token.ledger.read_nonce(fee_payer, NATIVE_ASSET_ID)

    return CommitmentResponse(
        commitment=transaction_commitment(request.operation, arguments, fee_payer, nonce),
        fee_payer=fee_payer,
        fee_payer_nonce=nonce,
    )


# ============================================================================
# Mint
# ============================================================================


@router.post("/mint", response_model=OperationResponse)
async def mint(request: MintRequest, token: Token, signed: Signed) -> OperationResponse:
    """Mint tokens to a recipient. Requires the admin's signature."""
    tx = build_context(token, "mint", commitment_arguments(request), signed)
    block_number = token.mint(tx, request.recipient, request.amount)

    return OperationResponse(
        operation="mint",
        commitment=tx.commitment,
        block_number=block_number,
        message=f"Minted {request.amount} to {request.recipient}",
    )


@router.post("/mint-with-proof", response_model=OperationResponse)
async def mint_with_proof(
    request: MintWithProofRequest,
    token: Token,
    signed: Signed,
) -> OperationResponse:
    """Mint tokens after the Mint proof policy accepts the sideloaded proof."""
    tx = build_context(token, "mint_with_proof", commitment_arguments(request), signed)
    block_number = token.mint_with_proof(
        tx, request.recipient, request.amount, *request.proof_args()
    )

    return OperationResponse(
        operation="mint_with_proof",
        commitment=tx.commitment,
        block_number=block_number,
        message=f"Minted {request.amount} to {request.recipient}",
    )


# ============================================================================
# Burn
# ============================================================================


@router.post("/burn", response_model=OperationResponse)
async def burn(request: BurnRequest, token: Token, signed: Signed) -> OperationResponse:
    """Burn tokens from an account. Requires the owner's signature."""
    tx = build_context(token, "burn", commitment_arguments(request), signed)
    block_number = token.burn(tx, request.owner, request.amount)

    return OperationResponse(
        operation="burn",
        commitment=tx.commitment,
        block_number=block_number,
        message=f"Burned {request.amount} from {request.owner}",
    )


@router.post("/burn-with-proof", response_model=OperationResponse)
async def burn_with_proof(
    request: BurnWithProofRequest,
    token: Token,
    signed: Signed,
) -> OperationResponse:
    tx = build_context(token, "burn_with_proof", commitment_arguments(request), signed)
    block_number = token.burn_with_proof(tx, request.owner, request.amount, *request.proof_args())

    return OperationResponse(
        operation="burn_with_proof",
        commitment=tx.commitment,
        block_number=block_number,
        message=f"Burned {request.amount} from {request.owner}",
    )


# ============================================================================
# Transfer
# ============================================================================


@router.post("/transfer", response_model=OperationResponse)
async def transfer(request: TransferRequest, token: Token, signed: Signed) -> OperationResponse:
    """Transfer tokens between holders. Requires the sender's signature."""
    tx = build_context(token, "transfer", commitment_arguments(request), signed)
    block_number = token.transfer(tx, request.sender, request.receiver, request.amount)

    return OperationResponse(
        operation="transfer",
        commitment=tx.commitment,
        block_number=block_number,
        message=f"Transferred {request.amount} from {request.sender} to {request.receiver}",
    )


@router.post("/transfer-with-proof", response_model=OperationResponse)
async def transfer_with_proof(
    request: TransferWithProofRequest,
    token: Token,
    signed: Signed,
) -> OperationResponse:
    tx = build_context(token, "transfer_with_proof", commitment_arguments(request), signed)
    block_number = token.transfer_with_proof(
        tx, request.sender, request.receiver, request.amount, *request.proof_args()
    )

    return OperationResponse(
        operation="transfer_with_proof",
        commitment=tx.commitment,
        block_number=block_number,
        message=f"Transferred {request.amount} from {request.sender} to {request.receiver}",
    )


# ============================================================================
# Batch Approval
# ============================================================================


@router.post("/approve", response_model=BatchResponse)
async def approve_batch(
    request: ApproveBatchRequest,
    token: Token,
    signed: Signed,
) -> BatchResponse:
    """
    Approve a forest of account updates.

    Requires the signature of every account the batch debits on this token.
    """
    tx = build_context(token, "approve_batch", commitment_arguments(request), signed)
    result = token.approve_batch(tx, request.forest)

    return BatchResponse(
        operation="approve_batch",
        commitment=tx.commitment,
        token_updates=len(result.token_updates),
        nodes_visited=result.nodes_visited,
        message="Batch approved",
    )


@router.post("/approve-with-proof", response_model=BatchResponse)
async def approve_batch_with_proof(
    request: ApproveBatchWithProofRequest,
    token: Token,
    signed: Signed,
) -> BatchResponse:
    tx = build_context(token, "approve_batch_with_proof", commitment_arguments(request), signed)
    result = token.approve_batch_with_proof(tx, request.forest, *request.proof_args())

    return BatchResponse(
        operation="approve_batch_with_proof",
        commitment=tx.commitment,
        token_updates=len(result.token_updates),
        nodes_visited=result.nodes_visited,
        message="Batch approved",
    )
