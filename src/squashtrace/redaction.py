"""Sensitive field redaction for exception reports.

Exceptions often carry credentials as attributes (a failed login's
``password``, a client's ``api_key``).  :class:`IvarRedactor` masks those
values in the ``ivars`` of a report and of every parent exception before the
report leaves the process.
"""

from __future__ import annotations

from typing import Any

DEFAULT_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "passwd",
        "secret",
        "token",
        "api_key",
        "apikey",
        "access_token",
        "refresh_token",
        "authorization",
        "cookie",
        "session_id",
        "credit_card",
        "private_key",
    }
)


class IvarRedactor:
    """Mask sensitive instance fields in an exception document.

    Parameters
    ----------
    sensitive_keys:
        Lower-cased field names whose values are fully replaced.
        Defaults to :data:`DEFAULT_SENSITIVE_KEYS`.
    replacement:
        The replacement string used for redacted values.
    """

    def __init__(
        self,
        *,
        sensitive_keys: frozenset[str] | None = None,
        replacement: str = "[REDACTED]",
    ) -> None:
        self._keys = sensitive_keys if sensitive_keys is not None else DEFAULT_SENSITIVE_KEYS
        self._replacement = replacement

    def __call__(self, document: dict[str, Any]) -> dict[str, Any]:
        memo: dict[int, Any] = {}
        self._redact_ivars(document, memo)
        for parent in document.get("parent_exceptions") or ():
            self._redact_ivars(parent, memo)
        return document

    def _redact_ivars(self, record: dict[str, Any], memo: dict[int, Any]) -> None:
        ivars = record.get("ivars")
        if isinstance(ivars, dict):
            record["ivars"] = self._redact_value(ivars, memo)

    def _redact_value(self, value: Any, memo: dict[int, Any]) -> Any:
        """Return a masked copy of *value*, recursing into dicts and lists.

        Values are shared with the live exception, so containers are copied,
        never mutated.  *memo* maps each source container's id to its copy:
        a container reached twice (shared between fields or exceptions, or
        through a back-reference) resolves to the same masked copy.
        """
        obj_id = id(value)
        if obj_id in memo:
            return memo[obj_id]
        if isinstance(value, dict):
            copied: dict[Any, Any] = {}
            memo[obj_id] = copied
            for key, item in value.items():
                if isinstance(key, str) and key.lower() in self._keys:
                    copied[key] = self._replacement
                else:
                    copied[key] = self._redact_value(item, memo)
            return copied
        if isinstance(value, list):
            copied_list: list[Any] = []
            memo[obj_id] = copied_list
            copied_list.extend(self._redact_value(item, memo) for item in value)
            return copied_list
        return value
