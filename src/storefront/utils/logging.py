"""Logging configuration for the storefront cart core.

Standard library handlers carry the output; structlog renders it. Library
code only ever calls ``structlog.get_logger(__name__)``; applications call
``configure_logging()`` once at startup.

Cart log lines are keyed by the shopper's bearer token, so credentials are
masked before any renderer sees them.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

LOG_FILE = "storefront.log"
ERROR_LOG_FILE = "storefront_error.log"

# Event keys that may carry a bearer token
CREDENTIAL_KEYS = frozenset({"authorization", "token", "cart_owner"})

_QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "protean", "uvicorn.access")


def get_log_level() -> str:
    """Get log level based on environment."""
    env = (os.getenv("ENV") or os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()

    level_map = {
        "production": "INFO",
        "staging": "INFO",
        "development": "DEBUG",
        "test": "WARNING",
    }

    return os.getenv("LOG_LEVEL", level_map.get(env, "INFO"))


def mask_credential(value: Any) -> Any:
    """Keep a short prefix of a token so log lines stay correlatable."""
    if not isinstance(value, str) or value == "anonymous":
        return value
    _, _, token = value.rpartition(" ")
    return f"{token[:4]}***" if len(token) > 4 else "***"


def redact_credentials(_logger, _method_name: str, event_dict: dict) -> dict:
    """structlog processor: mask bearer tokens bound to the event."""
    for key in CREDENTIAL_KEYS.intersection(event_dict):
        event_dict[key] = mask_credential(event_dict[key])
    return event_dict


def _rotating_handler(path: Path, level: int | str) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def setup_stdlib_logging(log_dir: str | Path = "logs") -> None:
    """Console plus rotating files (everything, and errors only) under ``log_dir``."""
    log_level = get_log_level()
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [
        console_handler,
        _rotating_handler(log_dir / LOG_FILE, log_level),
        _rotating_handler(log_dir / ERROR_LOG_FILE, logging.ERROR),
    ]

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_structlog() -> None:
    """Configure structlog for structured logging."""
    env = os.getenv("ENVIRONMENT", "development").lower()

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        redact_credentials,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if env in ["production", "staging"]:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.RichTracebackFormatter(
                    show_locals=False,
                    max_frames=2,
                ),
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(log_dir: str | Path = "logs") -> None:
    """Configure all logging for the application."""
    setup_stdlib_logging(log_dir)
    setup_structlog()


def bind_cart_context(**kwargs: Any) -> None:
    """Attach context (cart owner, request path...) to every subsequent log line."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_cart_context() -> None:
    structlog.contextvars.clear_contextvars()
