"""
Token Ledger Shared Library
===========================

Common utilities, configurations, and abstractions shared by the services.

Modules:
    - config: Configuration management with Pydantic Settings
    - logging: Structured logging with structlog
    - auth: Transaction commitments and signatures
    - blockchain: Ledger interface (mock/devnet/mainnet) and Merkle map
    - zk: Sideloaded proofs, prover and verifier
    - models: Shared Pydantic models

Version: 0.1.0
"""

__version__ = "0.1.0"

from shared.config import settings
from shared.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
    "__version__",
]
