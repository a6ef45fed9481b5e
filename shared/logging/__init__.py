"""
Logging Module
==============

Structured logging using structlog with JSON output for production
and colored console output for development.

Usage:
    from shared.logging import get_logger, setup_logging

    # Setup at application start
    setup_logging()

    # Get logger for a module
    logger = get_logger(__name__)

    # Log with context
    logger.info("token_transferred", sender="B62qA...", receiver="B62qB...", amount=10)
    logger.warning("proof_policy_rejected", code="registry_out_of_sync")
"""

from shared.logging.logger import bind_transaction, get_logger, setup_logging


__all__ = [
    "bind_transaction",
    "get_logger",
    "setup_logging",
]
