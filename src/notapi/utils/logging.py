"""
Logging configuration and utilities for NotAPI.

Everything logs through structlog. In ``text`` mode events are rendered
for a rich console; in ``json`` mode they are written as one JSON object
per line for the hosting platform's log collector. Standard library
loggers (aiohttp, discord.py) are routed to the same destination.

Features:
- Timed upstream calls for the SpamWatch and Genius clients
- Timed provider invocations, keyed by a short correlation id
- Service-bound loggers
"""

import logging
import sys
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional
from urllib.parse import urlparse

import structlog
from rich.console import Console
from rich.logging import RichHandler

from notapi.config import LoggingConfig

# Header names whose values never reach the logs.
SENSITIVE_HEADERS = ("authorization", "token", "key", "secret", "cookie")

# Noisy third-party loggers and the level they are held at.
EXTERNAL_LOGGERS = {
    "discord": logging.WARNING,
    "discord.gateway": logging.INFO,
    "discord.http": logging.WARNING,
    "aiohttp.access": logging.WARNING,
    "aiohttp.client": logging.WARNING,
    "aiohttp.server": logging.INFO,
}


def setup_logging(config: LoggingConfig) -> None:
    """
    Set up application logging based on configuration.

    Args:
        config: Logging configuration settings

    Example:
        ```python
        app_config = load_config()
        setup_logging(app_config.logging)

        logger = get_logger(__name__)
        logger.info("Gateway started", version="0.1.0")
        ```
    """
    level = getattr(logging, config.level)
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)

    shared = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if config.format == "json":
        handler: logging.Handler = logging.StreamHandler(sys.stdout)
        renderer = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        handler = RichHandler(
            console=Console(stderr=True, width=120),
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        renderer = [_render_text]

    handler.setLevel(level)
    root.addHandler(handler)

    structlog.configure(
        processors=shared + renderer,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    configure_external_loggers()


def _render_text(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> str:
    """Render an event as ``message (key=value, ...)`` for the rich handler."""
    message = str(event_dict.pop("event", ""))
    extras = [
        f"{key}={value}"
        for key, value in event_dict.items()
        if key not in {"timestamp", "level"}
    ]
    if extras:
        message += f" ({', '.join(extras)})"
    return message


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """
    Get a configured logger instance.

    Example:
        ```python
        logger = get_logger(__name__)
        logger.info("Provider invoked", provider="morse", ip="203.0.113.7")
        ```
    """
    return structlog.get_logger(name)


def get_service_logger(service_name: str) -> structlog.BoundLogger:
    """Logger bound with ``service=service_name`` (spamwatch, genius, discord, keepalive)."""
    return get_logger(f"service.{service_name}").bind(service=service_name)


def log_error(error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
    """
    Log an exception with its type, message and any extra context.

    Args:
        error: The exception that occurred
        context: Additional context information
    """
    get_logger().error(
        "Exception occurred",
        error_type=type(error).__name__,
        error_message=str(error),
        **(context or {}),
    )


def generate_correlation_id() -> str:
    """Short random id tying together the log lines of one operation."""
    return uuid.uuid4().hex[:8]


def mask_headers(headers: Optional[Dict[str, str]]) -> Dict[str, str]:
    """Copy of ``headers`` with credentials reduced to their last 4 characters."""
    masked = {}
    for key, value in (headers or {}).items():
        if any(word in key.lower() for word in SENSITIVE_HEADERS):
            masked[key] = f"***{value[-4:]}" if len(value) > 8 else "***"
        else:
            masked[key] = value
    return masked


@dataclass
class UpstreamCall:
    """Timing record for one outbound request, filled in by the caller."""

    service: str
    method: str
    url: str
    correlation_id: str = field(default_factory=generate_correlation_id)
    status: int = 0
    size: Optional[int] = None
    started: float = field(default_factory=time.perf_counter)

    def record(self, status: int, size: Optional[int] = None) -> None:
        self.status = status
        self.size = size

    @property
    def elapsed_ms(self) -> float:
        return round((time.perf_counter() - self.started) * 1000, 2)


@contextmanager
def upstream_call(
    service: str,
    method: str,
    url: str,
    headers: Optional[Dict[str, str]] = None,
) -> Iterator[UpstreamCall]:
    """
    Log an outbound HTTP call to an external service.

    The request is logged at debug level when the block is entered. The
    outcome is logged when it exits: info for 2xx/3xx, warning for 4xx,
    error for 5xx or when no response was recorded. Exceptions propagate.

    Example:
        ```python
        with upstream_call("spamwatch", "GET", url) as call:
            async with session.get(url) as response:
                body = await response.text()
                call.record(response.status, len(body))
        ```
    """
    logger = get_service_logger(service)
    parsed = urlparse(url)
    call = UpstreamCall(service=service, method=method, url=url)
    logger.debug("HTTP request initiated",
                 method=method, host=parsed.netloc, path=parsed.path,
                 headers=mask_headers(headers), correlation_id=call.correlation_id)
    try:
        yield call
    except Exception as e:
        logger.error("HTTP request failed",
                     path=parsed.path, response_time_ms=call.elapsed_ms,
                     error=str(e) or type(e).__name__, correlation_id=call.correlation_id)
        raise

    if call.status == 0 or call.status >= 500:
        log = logger.error
    elif call.status >= 400:
        log = logger.warning
    else:
        log = logger.info
    log("HTTP response received",
        path=parsed.path, status_code=call.status, response_time_ms=call.elapsed_ms,
        response_size_bytes=call.size, correlation_id=call.correlation_id)


@contextmanager
def log_operation_timing(operation_name: str, **context: Any) -> Iterator[str]:
    """
    Time a block and log how it ended.

    Yields the correlation id, taken from ``context`` when supplied.

    Example:
        ```python
        with log_operation_timing("provider_invocation", provider="morse"):
            result = await queue.submit(...)
        ```
    """
    correlation_id = context.pop("correlation_id", None) or generate_correlation_id()
    logger = get_logger().bind(operation=operation_name, correlation_id=correlation_id, **context)
    started = time.perf_counter()
    logger.debug(f"Starting {operation_name}")
    try:
        yield correlation_id
    except Exception as e:
        logger.error(f"Failed {operation_name}",
                     duration_ms=round((time.perf_counter() - started) * 1000, 2),
                     error_type=type(e).__name__, error_message=str(e))
        raise
    logger.info(f"Completed {operation_name}",
                duration_ms=round((time.perf_counter() - started) * 1000, 2))


def configure_external_loggers() -> None:
    """Hold chatty third-party loggers at the levels in EXTERNAL_LOGGERS."""
    for name, level in EXTERNAL_LOGGERS.items():
        logging.getLogger(name).setLevel(level)
