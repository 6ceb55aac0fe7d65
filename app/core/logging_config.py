"""
Logging for the ledger service.

structlog builds the event dicts and hands them to stdlib ``logging``, so every
logger is a real named ``logging.Logger``: levels are set per name (``app``,
``app.audit``) and third-party records go through the same renderer.
"""

import logging
import sys

import structlog
from structlog.types import Processor

from app.core.config import settings

_HANDLER_NAME = "centre-ledger"
_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "sqlalchemy", "asyncio")


def _renderer() -> Processor:
    if settings.is_development:
        return structlog.dev.ConsoleRenderer(colors=True)
    return structlog.processors.JSONRenderer()


def _build_handler(pre_chain: list) -> logging.Handler:
    render: list = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
    if not settings.is_development:
        render.append(structlog.processors.format_exc_info)
    render.append(_renderer())

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(foreign_pre_chain=pre_chain, processors=render)
    )
    return handler


def setup_logging() -> None:
    """Route structlog through stdlib logging. Safe to call more than once."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    pre_chain: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *pre_chain,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(_build_handler(pre_chain))
    root.setLevel(log_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("app").setLevel(log_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
