"""
Test Configuration
==================

Pytest fixtures for token ledger tests.
"""

import os
import uuid
from collections.abc import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment
os.environ["ENVIRONMENT"] = "testing"
os.environ["BLOCKCHAIN_MODE"] = "mock"

from shared.blockchain import NATIVE_ASSET_ID, MockLedgerClient  # noqa: E402
from shared.config import settings  # noqa: E402

from services.token_ledger.models import TransactionContext  # noqa: E402
from services.token_ledger.services import FungibleToken  # noqa: E402


CONTRACT = settings.token.address
ADMIN = "B62qadmin000000000000000000000000000000000000000000000000"
ALICE = "B62qalice000000000000000000000000000000000000000000000000"
BOB = "B62qbob00000000000000000000000000000000000000000000000000"

TxFactory = Callable[..., TransactionContext]


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for async tests."""
    return "asyncio"


@pytest.fixture
def ledger() -> MockLedgerClient:
    """Fresh in-memory ledger."""
    client = MockLedgerClient()
    client.clear_all()
    return client


@pytest.fixture
def make_tx(ledger: MockLedgerClient) -> TxFactory:
    """
    Build transaction contexts signed by the given principals.

    The fee payer defaults to the first signer and its nonce is read from
    the ledger, so each context is current when created.
    """

    def factory(*signers: str, fee_payer: str | None = None) -> TransactionContext:
        payer = fee_payer or (signers[0] if signers else ADMIN)
        return TransactionContext(
            fee_payer=payer,
            fee_payer_nonce=ledger.read_nonce(payer, NATIVE_ASSET_ID),
            commitment=uuid.uuid4().hex,
            signers=frozenset(signers) | {payer},
        )

    return factory


@pytest.fixture
def token(ledger: MockLedgerClient) -> FungibleToken:
    """Undeployed token contract."""
    return FungibleToken(ledger, CONTRACT)


@pytest.fixture
def initialized_token(token: FungibleToken, make_tx: TxFactory) -> FungibleToken:
    """Token contract initialized with default policies and an empty registry."""
    token.initialize(make_tx(CONTRACT), admin=ADMIN, decimals=9)
    return token


@pytest_asyncio.fixture
async def token_ledger_client() -> AsyncGenerator[AsyncClient, None]:
    """Create test client for the Token Ledger Service over a fresh ledger."""
    from shared.blockchain import reset_ledger_client, set_ledger_client
    from services.token_ledger.dependencies import reset_token
    from services.token_ledger.main import app

    reset_token()
    set_ledger_client(MockLedgerClient())

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    reset_token()
    reset_ledger_client()
