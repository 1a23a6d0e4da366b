"""Structlog configuration that renders exceptions as Squash documents.

In JSON mode every record carrying ``exc_info`` (from structlog or from plain
:mod:`logging`) gets an ``exception`` field built by
:class:`~squashtrace.exceptions.SquashExceptionProcessor` instead of a
rendered traceback string.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Callable
from typing import Any

import orjson
import structlog
from structlog.contextvars import merge_contextvars

from squashtrace.exceptions import SquashExceptionProcessor
from squashtrace.redaction import IvarRedactor


def _orjson_serializer(
    obj: object,
    default: Callable[[Any], Any] | None = None,
    **_kw: object,
) -> str:
    """Serialize *obj* to a JSON string using orjson.

    Instance fields may hold arbitrary objects; *default* (``repr`` based in
    structlog's :class:`~structlog.processors.JSONRenderer`) renders them.
    """
    if default is None:
        return orjson.dumps(obj, option=orjson.OPT_NON_STR_KEYS).decode()
    return orjson.dumps(obj, default=default, option=orjson.OPT_NON_STR_KEYS).decode()


def _to_logging_level(level_name: str) -> int:
    """Convert a human-readable level name to its :mod:`logging` constant."""
    upper_level = level_name.upper()
    if upper_level == "WARN":
        return logging.WARNING
    result: int = getattr(logging, upper_level, logging.INFO)
    return result


def _stream_isatty(stream: Any) -> bool:
    """Check if *stream* is connected to a terminal."""
    try:
        result: bool = stream.isatty()
        return result
    except (AttributeError, ValueError):
        return False


def _build_shared_processors() -> list[structlog.types.Processor]:
    return [
        merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging(
    *,
    level: str = "INFO",
    json_logs: bool = True,
    stream: Any = None,
    redact_ivars: bool = True,
) -> None:
    """Configure structlog and the root logger.

    Parameters
    ----------
    level:
        Minimum log level (e.g. ``"DEBUG"``, ``"INFO"``).
    json_logs:
        ``True`` for JSON output with Squash exception documents, ``False``
        for colored console output with rendered tracebacks.
    stream:
        Output stream.  Defaults to ``sys.stdout``.
    redact_ivars:
        Mask sensitive instance fields with
        :class:`~squashtrace.redaction.IvarRedactor`.
    """
    if stream is None:
        stream = sys.stdout

    shared_processors = _build_shared_processors()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(_to_logging_level(level)),
        cache_logger_on_first_use=True,
    )

    formatter_processors: list[structlog.types.Processor] = [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
    ]
    if json_logs:
        redactor = IvarRedactor() if redact_ivars else None
        formatter_processors.append(SquashExceptionProcessor(redactor=redactor))
        formatter_processors.append(
            structlog.processors.JSONRenderer(serializer=_orjson_serializer),
        )
    else:
        formatter_processors.append(
            structlog.dev.ConsoleRenderer(colors=_stream_isatty(stream)),
        )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=formatter_processors,
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(_to_logging_level(level))
    root.addHandler(handler)


def setup_logging() -> None:
    """Application-level logging setup.

    Reads environment variables:

    - ``LOG_LEVEL`` (default: ``"INFO"``)
    - ``JSON_LOGS`` (``"0"`` = console, default: ``"1"`` = JSON)
    - ``SQUASH_REDACT_IVARS`` (``"0"`` disables instance-field redaction)
    """
    configure_logging(
        level=os.environ.get("LOG_LEVEL", "INFO"),
        json_logs=os.environ.get("JSON_LOGS", "1") != "0",
        redact_ivars=os.environ.get("SQUASH_REDACT_IVARS", "1") != "0",
    )
