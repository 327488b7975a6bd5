"""Structured logging for Clientbook.

structlog renders every line. Standard library records (uvicorn, SQLAlchemy,
the access log) are routed through the same ``ProcessorFormatter`` so one
process writes one format: JSON in production, coloured console otherwise.
"""
# ruff: noqa: ARG001  # Processor signatures required by structlog API

import logging
import sys
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor

from clientbook.config.settings import Settings, get_settings
from clientbook.core.context import get_current_context_or_none

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Keys whose values never reach a log sink
SENSITIVE_KEYS = frozenset({"password", "access_token", "token", "authorization", "api_token"})

# Third-party loggers that get our handler instead of their own
ADOPTED_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error", "sqlalchemy")

QUIET_LOGGERS = {"sqlalchemy": logging.WARNING, "sqlalchemy.engine": logging.WARNING}


def add_request_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp entries logged during a request with its id, client and user.

    Values passed explicitly to the log call take precedence.
    """
    ctx = get_current_context_or_none()
    if ctx is None:
        return event_dict

    for key, value in ctx.to_log_dict().items():
        if value is not None:
            event_dict.setdefault(key, value)
    return event_dict


def add_environment_info(environment: str) -> Processor:
    """Build a processor stamping every entry with ``environment``."""

    def processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict["environment"] = environment
        return event_dict

    return processor


def drop_color_message_key(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    # uvicorn duplicates its message with ANSI codes under this key
    event_dict.pop("color_message", None)
    return event_dict


def mask_sensitive_fields(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    for key in SENSITIVE_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def _shared_processors(json_format: bool, environment: str) -> list[Processor]:
    processors: list[Processor] = [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        add_request_context,
        add_environment_info(environment),
        drop_color_message_key,
        mask_sensitive_fields,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if json_format:
        processors.append(structlog.processors.format_exc_info)
    return processors


def _install_handler(formatter: logging.Formatter, level: int) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in ADOPTED_LOGGERS:
        adopted = logging.getLogger(name)
        adopted.handlers = [handler]
        adopted.propagate = False
    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)


def setup_logging(
    log_level: LogLevel | None = None,
    json_format: bool | None = None,
    *,
    settings: Settings | None = None,
) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        log_level: Minimum level; defaults to ``settings.log_level``
        json_format: Force JSON or console output; defaults to
            ``settings.log_json``, falling back to JSON in production only
        settings: Settings to read defaults and the environment from;
            the cached global settings when omitted
    """
    settings = settings or get_settings()
    if json_format is None:
        json_format = settings.log_json if settings.log_json is not None else settings.is_production
    level = logging.getLevelName((log_level or settings.log_level).upper())
    if not isinstance(level, int):
        level = logging.INFO

    shared = _shared_processors(json_format, settings.ENVIRONMENT)
    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _install_handler(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        ),
        level,
    )


class LogContext:
    """Bind key/value pairs to every entry logged inside the block.

    Example:
        with LogContext(customer_uuid=str(customer.uuid)):
            logger.info("welcome_notification_sent")
    """

    def __init__(self, **values: Any):
        self.values = values

    def __enter__(self) -> "LogContext":
        structlog.contextvars.bind_contextvars(**self.values)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        structlog.contextvars.unbind_contextvars(*self.values)
