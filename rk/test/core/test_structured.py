from __future__ import annotations

from rk.core.structured import (
    as_obj_list,
    as_str_dict,
    get_bool,
    get_list,
    get_raw_str,
    get_str,
    get_table,
    is_str_dict,
)


def test_is_str_dict() -> None:
    assert is_str_dict({"a": 1})
    assert is_str_dict({})
    assert not is_str_dict({1: "a"})
    assert not is_str_dict(["a"])


def test_as_str_dict_and_as_obj_list() -> None:
    assert as_str_dict({"a": 1}) == {"a": 1}
    assert as_str_dict("nope") is None
    assert as_obj_list([1, "a"]) == [1, "a"]
    assert as_obj_list({"a": 1}) is None


def test_get_str_strips_and_rejects_empty() -> None:
    table: dict[str, object] = {"name": "  feat ", "blank": "   ", "num": 3}
    assert get_str(table, "name") == "feat"
    assert get_str(table, "blank") is None
    assert get_str(table, "num") is None
    assert get_str(table, "missing") is None


def test_get_raw_str_keeps_whitespace() -> None:
    table: dict[str, object] = {"pattern": " ^version = (.*) ", "empty": ""}
    assert get_raw_str(table, "pattern") == " ^version = (.*) "
    assert get_raw_str(table, "empty") == ""
    assert get_raw_str(table, "missing") is None


def test_get_bool_accepts_quoted_booleans() -> None:
    table: dict[str, object] = {"a": True, "b": "false", "c": " TRUE ", "d": "yes", "e": 1}
    assert get_bool(table, "a") is True
    assert get_bool(table, "b") is False
    assert get_bool(table, "c") is True
    assert get_bool(table, "d") is None
    assert get_bool(table, "e") is None
    assert get_bool(table, "missing") is None


def test_get_table_and_get_list() -> None:
    table: dict[str, object] = {"github": {"enabled": True}, "targets": [{"path": "VERSION"}]}
    assert get_table(table, "github") == {"enabled": True}
    assert get_table(table, "targets") is None
    assert get_list(table, "targets") == [{"path": "VERSION"}]
    assert get_list(table, "github") is None
