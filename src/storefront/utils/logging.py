"""Logging setup shared by the web app, the Engine runner and the CLI.

Stdlib handlers carry the output and structlog formats it; domain modules
only ever call ``structlog.get_logger(__name__)``. Level, renderer and the
optional log directory come from ``Settings`` (``LOG_LEVEL``, ``LOG_FORMAT``,
``LOG_DIR``).
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import structlog

from storefront.config import Settings, get_settings

_DEFAULT_LEVELS = {"production": "INFO", "staging": "INFO", "test": "WARNING"}
_NOISY_LOGGERS = ("urllib3", "asyncio", "protean", "redis", "uvicorn.access")
_MAX_BYTES = 10 * 1024 * 1024


def resolve_level(settings: Settings) -> str:
    """``LOG_LEVEL`` when set, otherwise a default for the environment (DEBUG locally)."""
    if settings.LOG_LEVEL:
        return settings.LOG_LEVEL.upper()
    return _DEFAULT_LEVELS.get(settings.ENVIRONMENT.lower(), "DEBUG")


def _renderer(settings: Settings):
    fmt = settings.LOG_FORMAT
    if fmt == "auto":
        fmt = "json" if settings.ENVIRONMENT.lower() in ("production", "staging") else "console"
    if fmt == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def _rotating(filename: Path) -> RotatingFileHandler:
    return RotatingFileHandler(filename, maxBytes=_MAX_BYTES, backupCount=5, encoding="utf-8")


def _handlers(level: str, log_dir: str | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        handlers.append(_rotating(path / "storefront.log"))
        errors = _rotating(path / "storefront_error.log")
        errors.setLevel(logging.ERROR)
        handlers.append(errors)
    for handler in handlers[:2]:
        handler.setLevel(level)
    return handlers


def configure_logging(settings: Settings | None = None) -> str:
    """Install handlers and structlog processors. Returns the effective level."""
    settings = settings or get_settings()
    level = resolve_level(settings)

    root = logging.getLogger()
    root.handlers = _handlers(level, settings.LOG_DIR)
    root.setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _renderer(settings),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    return level


def bind_request(request_id: str, path: str, **extra) -> None:
    """Start a fresh log context for one HTTP request."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, path=path, **extra)
