"""Tests for squashtrace.redaction."""

from __future__ import annotations

from squashtrace.redaction import DEFAULT_SENSITIVE_KEYS, IvarRedactor


def _doc(ivars: dict, *parents: dict) -> dict:
    return {
        "class_name": "ValueError",
        "message": None,
        "backtraces": None,
        "ivars": ivars,
        "parent_exceptions": [{"class_name": "KeyError", "ivars": p} for p in parents],
    }


class TestIvarRedactor:
    def test_redacts_sensitive_ivars(self) -> None:
        result = IvarRedactor()(_doc({"password": "s3cret", "user": "alice"}))
        assert result["ivars"]["password"] == "[REDACTED]"
        assert result["ivars"]["user"] == "alice"

    def test_case_insensitive_key_matching(self) -> None:
        result = IvarRedactor()(_doc({"Password": "s3cret", "TOKEN": "abc"}))
        assert result["ivars"]["Password"] == "[REDACTED]"
        assert result["ivars"]["TOKEN"] == "[REDACTED]"

    def test_redacts_parent_exception_ivars(self) -> None:
        result = IvarRedactor()(_doc({}, {"api_key": "k"}, {"status": 500}))
        assert result["parent_exceptions"][0]["ivars"]["api_key"] == "[REDACTED]"
        assert result["parent_exceptions"][1]["ivars"]["status"] == 500

    def test_redacts_nested_values_without_mutating_source(self) -> None:
        config = {"endpoint": "https://pay", "secret": "xyz"}
        result = IvarRedactor()(_doc({"config": config}))
        assert result["ivars"]["config"]["secret"] == "[REDACTED]"
        assert config["secret"] == "xyz"

    def test_source_ivars_dict_untouched(self) -> None:
        ivars = {"token": "abc"}
        result = IvarRedactor()(_doc(ivars))
        assert result["ivars"]["token"] == "[REDACTED]"
        assert ivars["token"] == "abc"

    def test_redacts_inside_lists(self) -> None:
        result = IvarRedactor()(_doc({"attempts": [{"password": "a"}, {"password": "b"}]}))
        assert result["ivars"]["attempts"] == [
            {"password": "[REDACTED]"},
            {"password": "[REDACTED]"},
        ]

    def test_custom_sensitive_keys_and_replacement(self) -> None:
        redactor = IvarRedactor(sensitive_keys=frozenset({"email"}), replacement="***")
        result = redactor(_doc({"email": "a@b.com", "password": "visible"}))
        assert result["ivars"]["email"] == "***"
        assert result["ivars"]["password"] == "visible"

    def test_missing_ivars_tolerated(self) -> None:
        doc = {"class_name": "ValueError", "ivars": None, "parent_exceptions": []}
        assert IvarRedactor()(doc)["ivars"] is None

    def test_cyclic_dict_back_reference_is_redacted(self) -> None:
        inner: dict = {"password": "s3cret"}
        inner["self"] = inner
        result = IvarRedactor()(_doc({"state": inner}))
        state = result["ivars"]["state"]
        assert state["password"] == "[REDACTED]"
        assert state["self"] is state
        assert state["self"]["password"] == "[REDACTED]"
        assert inner["password"] == "s3cret"

    def test_dict_shared_between_ivars_is_redacted_everywhere(self) -> None:
        shared = {"password": "hunter2"}
        result = IvarRedactor()(_doc({"a": shared, "b": shared}))
        assert result["ivars"]["a"]["password"] == "[REDACTED]"
        assert result["ivars"]["b"]["password"] == "[REDACTED]"
        assert shared["password"] == "hunter2"

    def test_dict_shared_with_parent_exception_is_redacted(self) -> None:
        ctx = {"api_key": "sk_live", "region": "eu"}
        result = IvarRedactor()(_doc({"ctx": ctx}, {"ctx": ctx}))
        assert result["ivars"]["ctx"]["api_key"] == "[REDACTED]"
        assert result["parent_exceptions"][0]["ivars"]["ctx"]["api_key"] == "[REDACTED]"
        assert result["parent_exceptions"][0]["ivars"]["ctx"]["region"] == "eu"

    def test_list_shared_between_ivars_is_redacted_everywhere(self) -> None:
        attempts = [{"token": "t1"}]
        result = IvarRedactor()(_doc({"first": attempts, "again": attempts}))
        assert result["ivars"]["first"] == [{"token": "[REDACTED]"}]
        assert result["ivars"]["again"] == [{"token": "[REDACTED]"}]

    def test_cyclic_list_does_not_crash(self) -> None:
        lst: list = ["hello"]
        lst.append(lst)
        result = IvarRedactor()(_doc({"data": lst}))
        assert result["ivars"]["data"][0] == "hello"
        assert result["ivars"]["data"][1] is result["ivars"]["data"]

    def test_default_keys_cover_common_secrets(self) -> None:
        for key in ("password", "token", "api_key", "secret", "authorization", "private_key"):
            assert key in DEFAULT_SENSITIVE_KEYS
