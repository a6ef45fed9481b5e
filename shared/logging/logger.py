"""
Logger Implementation
=====================

structlog configuration for the token ledger.

Processor chain:
- transaction context (operation, fee payer, commitment) merged from contextvars
- credentials and signature blobs redacted
- field elements above 2**53 rendered as decimal strings for JSON consumers
- digests shortened in console output only

Version: 0.1.0
"""

import logging
import re
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import EventDict, Processor


if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger


SERVICE_VERSION = "0.1.0"

# Key fragments whose values never reach the log output
SENSITIVE_KEYS = ("secret", "signature", "authorization", "private_key")

# Largest integer a JSON double holds exactly
MAX_SAFE_INTEGER = 2**53 - 1

DIGEST_PATTERN = re.compile(r"^[0-9a-f]{64}$")
DIGEST_PREFIX = 12

REDACTED = "***REDACTED***"


def _walk(value: Any, leaf: Any) -> Any:
    if isinstance(value, dict):
        return {k: _walk(v, leaf) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_walk(v, leaf) for v in value]
    return leaf(value)


def _service_context(service_name: str) -> Processor:
    def add_service_context(
        logger: logging.Logger,
        method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        event_dict.setdefault("service", service_name)
        event_dict.setdefault("version", SERVICE_VERSION)
        return event_dict

    return add_service_context


def redact_credentials(
    logger: logging.Logger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Replace values under credential-like keys, at any depth."""

    def redact(d: dict[str, Any]) -> dict[str, Any]:
        result = {}
        for key, value in d.items():
            if any(s in key.lower() for s in SENSITIVE_KEYS):
                result[key] = REDACTED
            elif isinstance(value, dict):
                result[key] = redact(value)
            else:
                result[key] = value
        return result

    return redact(event_dict)


def stringify_field_elements(
    logger: logging.Logger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Render integers beyond the JSON-safe range (token ids, large amounts) as decimal strings."""

    def convert(value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool) and abs(value) > MAX_SAFE_INTEGER:
            return str(value)
        return value

    return {key: _walk(value, convert) for key, value in event_dict.items()}


def abbreviate_digests(
    logger: logging.Logger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Shorten 32-byte hex digests (commitments, key hashes, roots) for the console."""

    def shorten(value: Any) -> Any:
        if isinstance(value, str) and DIGEST_PATTERN.match(value):
            return value[:DIGEST_PREFIX] + "..."
        return value

    return {key: _walk(value, shorten) for key, value in event_dict.items()}


def setup_logging(
    log_level: str = "INFO",
    json_logs: bool = False,
    service_name: str = "token-ledger",
) -> None:
    """
    Configure structlog for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: JSON lines with full digests instead of the console renderer
        service_name: Name of the service for context
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    for noisy_logger in ["httpx", "httpcore", "asyncio"]:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _service_context(service_name),
        redact_credentials,
        stringify_field_elements,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_logs:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        shared_processors.extend([structlog.dev.set_exc_info, abbreviate_digests])
        renderer = structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.RichTracebackFormatter(
                show_locals=False,
                max_frames=10,
            ),
        )

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    root_handler = logging.StreamHandler(sys.stdout)
    root_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(root_handler)


def get_logger(name: str | None = None) -> "BoundLogger":
    """
    Get a structured logger instance.

    Example:
        logger = get_logger(__name__)
        logger.info("token_minted", recipient="B62q...", amount=1000)
    """
    return structlog.stdlib.get_logger(name)


def bind_transaction(operation: str, fee_payer: str, commitment: str) -> None:
    """
    Make a transaction the logging context of the current request.

    Context from an earlier transaction on the same task is dropped, so
    every entry logged while the transaction is processed carries exactly
    its operation, fee payer and commitment.
    """
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        operation=operation,
        fee_payer=fee_payer,
        commitment=commitment,
    )
