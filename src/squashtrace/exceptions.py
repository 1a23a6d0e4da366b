"""Squash exception documents and the structlog processor that emits them.

:func:`exception_document` builds the occurrence fragment Squash expects for a
single exception: type, message, backtraces, instance fields, and the chain of
parent exceptions.  :class:`SquashExceptionProcessor` attaches that document
to log events carrying ``exc_info``.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from typing import Any, TypeAlias

from squashtrace.backtrace import get_backtraces
from squashtrace.ivars import get_ivars
from squashtrace.nested import (
    NestedException,
    error_message,
    populate_nested_exceptions,
    qualified_name,
)

Redactor: TypeAlias = Callable[[dict[str, Any]], dict[str, Any]]


def exception_document(
    error: BaseException | None,
    *,
    redactor: Redactor | None = None,
) -> dict[str, Any] | None:
    """Return the Squash document for *error*, or ``None`` when there is no error."""
    if error is None:
        return None

    nested: list[NestedException] = []
    populate_nested_exceptions(nested, error)

    document: dict[str, Any] = {
        "class_name": qualified_name(error),
        "message": error_message(error),
        "backtraces": get_backtraces(error),
        "ivars": get_ivars(error),
        "parent_exceptions": [n.to_dict() for n in nested],
    }
    if redactor is not None:
        document = redactor(document)
    return document


def _coerce_exc_info(exc_info: Any) -> BaseException | None:
    """Return the exception described by an ``exc_info`` value, if any."""
    if isinstance(exc_info, BaseException):
        return exc_info
    if exc_info is True:
        exc_info = sys.exc_info()
    if not isinstance(exc_info, tuple) or len(exc_info) != 3 or exc_info[0] is None:
        return None
    error = exc_info[1]
    return error if isinstance(error, BaseException) else None


class SquashExceptionProcessor:
    """Replace ``exc_info`` with a Squash ``exception`` document.

    Parameters
    ----------
    redactor:
        Optional callable applied to every document before it is attached,
        e.g. :class:`~squashtrace.redaction.IvarRedactor`.
    key:
        Event-dict key the document is stored under.
    """

    def __init__(
        self,
        *,
        redactor: Redactor | None = None,
        key: str = "exception",
    ) -> None:
        self._redactor = redactor
        self._key = key

    def __call__(
        self,
        _logger: Any,
        _method_name: str,
        event_dict: dict[str, Any],
    ) -> dict[str, Any]:
        exc_info = event_dict.get("exc_info")
        if not exc_info:
            return event_dict

        error = _coerce_exc_info(exc_info)
        if error is None:
            return event_dict

        event_dict[self._key] = exception_document(error, redactor=self._redactor)
        event_dict.pop("exc_info", None)
        return event_dict
