"""
State Query Routes
==================

Read-only API endpoints over the token contract's state.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from shared.blockchain import LedgerEvent
from shared.config import settings

from services.token_ledger.dependencies import get_token
from services.token_ledger.routes.admin import policy_response
from services.token_ledger.routes.schemas import PolicyResponse
from services.token_ledger.services.gate import FungibleToken


router = APIRouter()

Token = Annotated[FungibleToken, Depends(get_token)]


class TokenInfoResponse(BaseModel):
    address: str
    token_id: str
    symbol: str
    src: str
    initialized: bool


class BalanceResponse(BaseModel):
    owner: str
    balance: int


class EventsResponse(BaseModel):
    events: list[LedgerEvent]
    total: int


@router.get("/token", response_model=TokenInfoResponse)
async def get_token_info(token: Token) -> TokenInfoResponse:
    """Contract address and token id. The id is a decimal string."""
    return TokenInfoResponse(
        address=token.address,
        token_id=str(token.get_token_id()),
        symbol=settings.token.symbol,
        src=settings.token.src,
        initialized=token.is_initialized,
    )


@router.get("/policy", response_model=PolicyResponse)
async def get_policy(token: Token) -> PolicyResponse:
    return policy_response(token.get_packed_policy())


@router.get("/registry-root")
async def get_registry_root(token: Token) -> dict[str, str]:
    return {"registry_root": token.get_registry_root()}


@router.get("/balance/{owner}", response_model=BalanceResponse)
async def get_balance(owner: str, token: Token) -> BalanceResponse:
    return BalanceResponse(owner=owner, balance=token.get_balance_of(owner))


@router.get("/circulating")
async def get_circulating(token: Token) -> dict[str, int]:
    return {"circulating": token.get_circulating()}


@router.get("/decimals")
async def get_decimals(token: Token) -> dict[str, int]:
    return {"decimals": token.get_decimals()}


@router.get("/admin")
async def get_admin(token: Token) -> dict[str, str]:
    return {"admin": token.get_admin()}


@router.get("/events", response_model=EventsResponse)
async def get_events(
    token: Token,
    limit: int = Query(100, ge=1, le=1000),
) -> dict[str, Any]:
    """Contract events, oldest first."""
    events = token.get_events(limit=limit)
    return {"events": events, "total": len(events)}
