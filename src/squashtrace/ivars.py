"""Instance-field snapshots of exceptions.

Fields come from one of two sources:

*   ``describe_fields()`` — an optional method an exception type can define to
    choose exactly what it exposes to crash reports.
*   Reflection over the instance: its ``__dict__`` plus the ``__slots__``
    declared directly on its type.  Class attributes and interpreter-managed
    dunder attributes (``__notes__``) are never included.

Reading a field never aborts the snapshot: a failed read is reported as a
placeholder string under the field's name.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

import structlog

log = structlog.get_logger(__name__)

# Attributes injected by proxy generators in test doubles.
CGLIB_PREFIX = "CGLIB"

DEFAULT_EXCLUDED_PREFIXES: tuple[str, ...] = (CGLIB_PREFIX,)

_SLOT_INTERNALS = frozenset({"__dict__", "__weakref__"})


def _is_dunder(name: str) -> bool:
    return name.startswith("__") and name.endswith("__")


def _mangle(cls: type, name: str) -> str:
    """Apply private name mangling the way the compiler does for slots."""
    if name.startswith("__") and not _is_dunder(name):
        return f"_{cls.__name__.lstrip('_')}{name}"
    return name


def _declared_slots(cls: type) -> Iterator[str]:
    slots = cls.__dict__.get("__slots__", ())
    if isinstance(slots, str):
        slots = (slots,)
    for name in slots:
        if name not in _SLOT_INTERNALS:
            yield _mangle(cls, name)


def _read_failure(exc: Exception) -> str:
    return f"Exception accessing field: {exc!r}"


def _reflect_fields(error: BaseException) -> Iterator[tuple[str, Any]]:
    """Yield ``(name, value)`` for every instance field of *error*."""
    instance_dict: dict[str, Any] = getattr(error, "__dict__", {})
    for name, value in instance_dict.items():
        # Interpreter-managed state such as ``__notes__`` is not a field.
        if not _is_dunder(name):
            yield name, value

    for name in _declared_slots(type(error)):
        if name in instance_dict:
            continue
        try:
            yield name, getattr(error, name)
        except Exception as exc:
            yield name, _read_failure(exc)


def _described_fields(error: BaseException) -> Iterable[tuple[str, Any]] | None:
    """Return the fields *error* exposes itself, or ``None`` to fall back."""
    describe = getattr(error, "describe_fields", None)
    if not callable(describe):
        return None
    try:
        return dict(describe()).items()
    except Exception:
        log.warning(
            "describe_fields failed, falling back to reflection",
            exception_type=type(error).__qualname__,
            exc_info=True,
        )
        return None


def get_ivars(
    error: BaseException | None,
    *,
    excluded_prefixes: tuple[str, ...] = DEFAULT_EXCLUDED_PREFIXES,
) -> dict[str, Any] | None:
    """Return the instance fields of *error*, or ``None`` when there is no error.

    Names starting with any of *excluded_prefixes* are skipped.  Values are
    stored as-is; the encoder decides how to represent them.
    """
    if error is None:
        return None

    fields = _described_fields(error)
    if fields is None:
        fields = _reflect_fields(error)

    ivars: dict[str, Any] = {}
    for name, value in fields:
        if not isinstance(name, str) or name.startswith(excluded_prefixes):
            continue
        ivars[name] = value
    return ivars
