"""Logging for the ordering service.

structlog produces the events; stdlib handlers deliver them. Both our own
loggers and third-party stdlib loggers (uvicorn, protean, redis) go through
the same ``ProcessorFormatter`` so every line carries the same fields.

- console: JSON in production/staging, coloured key=value elsewhere
  (``ORDERING_LOG_FORMAT`` forces either)
- ``<log_dir>/ordering.log``: every line as JSON, rotated at 10 MB
- ``<log_dir>/ordering_error.log``: ERROR and above only

Modules take their logger from ``get_logger(__name__)``. Request-scoped
fields (path, user) are bound with ``add_context`` by the HTTP middleware.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

from ordering.settings import OrderingSettings, get_settings

SERVICE_NAME = "localeats-ordering"

_LEVEL_BY_ENVIRONMENT = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}
_QUIET_LOGGERS = ("asyncio", "urllib3", "httpx", "redis", "watchfiles")
_ROTATE_BYTES = 10 * 1024 * 1024


def environment() -> str:
    return os.getenv("PROTEAN_ENV", "development").lower()


def resolve_level(settings: OrderingSettings) -> str:
    return (settings.log_level or _LEVEL_BY_ENVIRONMENT.get(environment(), "INFO")).upper()


def wants_json(settings: OrderingSettings) -> bool:
    if settings.log_format != "auto":
        return settings.log_format == "json"
    return environment() in ("production", "staging")


def _add_service(_, __, event_dict: dict) -> dict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _add_service,
        structlog.processors.StackInfoRenderer(),
    ]


def _formatter(json_output: bool) -> structlog.stdlib.ProcessorFormatter:
    if json_output:
        renderers = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderers = [
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=3),
            )
        ]
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(),
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *renderers],
    )


def _file_handler(path: Path, level: int | str, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(path, maxBytes=_ROTATE_BYTES, backupCount=5, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def configure_logging(settings: OrderingSettings | None = None) -> None:
    """Install handlers on the root logger and point structlog at them."""
    settings = settings or get_settings()
    level = resolve_level(settings)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(_formatter(wants_json(settings)))
    handlers: list[logging.Handler] = [console]

    if settings.log_dir:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        json_formatter = _formatter(json_output=True)
        handlers.append(_file_handler(log_dir / "ordering.log", level, json_formatter))
        handlers.append(_file_handler(log_dir / "ordering_error.log", logging.ERROR, json_formatter))

    root = logging.getLogger()
    root.handlers = handlers
    root.setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.stdlib.get_logger(name)


def add_context(**kwargs: Any) -> None:
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
