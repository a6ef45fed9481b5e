"""
Token Ledger Service - Main Application
=======================================

FastAPI application for the configurable fungible token contract.

Version: 0.1.0
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from services.token_ledger.dependencies import get_token
from services.token_ledger.models.errors import (
    AuthorizationError,
    ConfigurationError,
    InvariantViolationError,
    PolicyMismatchError,
    TokenLedgerError,
)
from services.token_ledger.routes import admin, operations, queries
from shared.config import settings
from shared.logging import get_logger, setup_logging
from shared.models.common import ErrorResponse, HealthResponse


# Setup logging
setup_logging(
    log_level=settings.log_level.value,
    json_logs=settings.is_production,
    service_name="token-ledger",
)

logger = get_logger(__name__)

ERROR_STATUS: dict[type[TokenLedgerError], int] = {
    ConfigurationError: status.HTTP_400_BAD_REQUEST,
    AuthorizationError: status.HTTP_401_UNAUTHORIZED,
    PolicyMismatchError: status.HTTP_409_CONFLICT,
    InvariantViolationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    """Application lifespan manager."""
    logger.info(
        "token_ledger_service_starting",
        environment=settings.environment.value,
        port=settings.ports.token_ledger,
    )

    try:
        token = get_token()
        logger.info(
            "ledger_connected",
            mode=token.ledger.mode.value,
            initialized=token.is_initialized,
        )
    except Exception as e:
        logger.error("startup_failed", error=str(e))
        raise

    yield

    logger.info("token_ledger_service_shutting_down")


# Create FastAPI application
app = FastAPI(
    title="Sideload Token Ledger",
    description="Fungible token with proof-gated operations and batch approval",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins_list,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """
    Service health check.

    Returns health status of the service and its ledger.
    """
    token = get_token()
    components: dict[str, dict[str, Any]] = {
        "ledger": token.ledger.health_check(),
        "contract": {
            "status": "healthy" if token.is_initialized else "uninitialized",
            "address": token.address,
        },
    }

    return HealthResponse(
        status="healthy" if components["ledger"].get("status") == "healthy" else "degraded",
        service="token-ledger",
        version="0.1.0",
        components=components,
    )


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": "Sideload Token Ledger",
        "version": "0.1.0",
        "docs": "/docs",
    }


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(
    operations.router,
    prefix="/api/v1/token",
    tags=["Token Operations"],
)

app.include_router(
    admin.router,
    prefix="/api/v1/admin",
    tags=["Administration"],
)

app.include_router(
    queries.router,
    prefix="/api/v1/state",
    tags=["State"],
)


# ============================================================================
# Error Handlers
# ============================================================================


@app.exception_handler(TokenLedgerError)
async def token_ledger_exception_handler(request: Request, exc: TokenLedgerError) -> JSONResponse:
    """Map rejections to their HTTP status."""
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)

    logger.warning(
        "operation_rejected",
        error_code=exc.code.value,
        error_kind=exc.kind.value,
        status_code=status_code,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(**exc.to_dict()).model_dump(mode="json"),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions."""
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.detail,
            "status_code": exc.status_code,
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "Internal server error",
            "status_code": 500,
        },
    )


# ============================================================================
# Run with Uvicorn
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.token_ledger.main:app",
        host="0.0.0.0",
        port=settings.ports.token_ledger,
        reload=settings.debug,
        log_level=settings.log_level.value.lower(),
    )
