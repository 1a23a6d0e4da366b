"""squashtrace — Squash-format exception documents for crash reporting."""

from squashtrace.backtrace import ORIGIN_TAG, get_backtraces
from squashtrace.config import configure_logging, setup_logging
from squashtrace.exceptions import SquashExceptionProcessor, exception_document
from squashtrace.ivars import DEFAULT_EXCLUDED_PREFIXES, get_ivars
from squashtrace.nested import NestedException, populate_nested_exceptions
from squashtrace.redaction import DEFAULT_SENSITIVE_KEYS, IvarRedactor

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_EXCLUDED_PREFIXES",
    "DEFAULT_SENSITIVE_KEYS",
    "IvarRedactor",
    "NestedException",
    "ORIGIN_TAG",
    "SquashExceptionProcessor",
    "configure_logging",
    "exception_document",
    "get_backtraces",
    "get_ivars",
    "populate_nested_exceptions",
    "setup_logging",
]
