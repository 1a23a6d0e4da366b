"""Cause-chain traversal.

Follows the chain of underlying exceptions (``raise ... from ...`` and implicit
context) and records each cause as a :class:`NestedException`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from squashtrace.backtrace import ThreadEntry, get_backtraces
from squashtrace.ivars import get_ivars

log = structlog.get_logger(__name__)

MAX_CAUSE_DEPTH = 100


def qualified_name(error: BaseException) -> str:
    """Return ``module.QualName`` for *error*'s type (bare name for builtins)."""
    cls = type(error)
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def error_message(error: BaseException) -> str | None:
    """Return ``str(error)``, or ``None`` when the exception has no arguments."""
    if not error.args:
        return None
    return str(error)


def get_cause(error: BaseException) -> BaseException | None:
    """Return the exception *error* was raised from, explicit or implicit."""
    cause = error.__cause__
    if cause is None and not error.__suppress_context__:
        cause = error.__context__
    return cause


@dataclass(frozen=True)
class NestedException:
    """One exception in a cause chain."""

    class_name: str
    message: str | None
    backtraces: list[ThreadEntry] | None
    ivars: dict[str, Any] | None

    @classmethod
    def from_exception(cls, error: BaseException) -> NestedException:
        return cls(
            class_name=qualified_name(error),
            message=error_message(error),
            backtraces=get_backtraces(error),
            ivars=get_ivars(error),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "class_name": self.class_name,
            "message": self.message,
            "backtraces": self.backtraces,
            "ivars": self.ivars,
        }


def populate_nested_exceptions(
    nested: list[NestedException],
    error: BaseException | None,
    *,
    max_depth: int = MAX_CAUSE_DEPTH,
) -> None:
    """Append every cause of *error* to *nested*, nearest cause first.

    *error* itself is not appended.  Each exception is visited at most once,
    so a cyclic chain ends after its last distinct cause, and at most
    *max_depth* causes are recorded.
    """
    if error is None:
        return

    seen = {id(error)}
    depth = 0
    cause = get_cause(error)
    while cause is not None:
        if id(cause) in seen:
            log.debug("cause chain cycle detected", exception_type=qualified_name(cause))
            return
        if depth >= max_depth:
            log.debug("cause chain truncated", max_depth=max_depth)
            return
        seen.add(id(cause))
        nested.append(NestedException.from_exception(cause))
        depth += 1
        cause = get_cause(cause)
