"""Tests for rk.core.result module."""

import pytest

from rk.core.result import Err, Ok, Result, is_err, is_ok


class TestOk:
    """Tests for Ok type."""

    def test_create_ok(self) -> None:
        result = Ok(42)
        assert result.value == 42

    def test_ok_is_ok(self) -> None:
        result = Ok(42)
        assert result.is_ok() is True
        assert result.is_err() is False

    def test_ok_unwrap(self) -> None:
        assert Ok("v1.2.3").unwrap() == "v1.2.3"

    def test_ok_unwrap_or_ignores_default(self) -> None:
        assert Ok(42).unwrap_or(0) == 42

    def test_ok_map(self) -> None:
        """Ok.map() transforms the value."""
        assert Ok(21).map(lambda x: x * 2) == Ok(42)

    def test_ok_map_err_is_identity(self) -> None:
        result = Ok(42)
        assert result.map_err(lambda e: f"error: {e}") == Ok(42)

    def test_ok_repr(self) -> None:
        assert repr(Ok(42)) == "Ok(42)"
        assert repr(Ok("v1")) == "Ok('v1')"


class TestErr:
    """Tests for Err type."""

    def test_create_err(self) -> None:
        result = Err("boom")
        assert result.error == "boom"

    def test_err_is_err(self) -> None:
        result = Err("boom")
        assert result.is_err() is True
        assert result.is_ok() is False

    def test_err_unwrap_raises(self) -> None:
        with pytest.raises(ValueError, match="called unwrap on Err"):
            Err("boom").unwrap()

    def test_err_unwrap_or_returns_default(self) -> None:
        assert Err("boom").unwrap_or(7) == 7

    def test_err_map_is_identity(self) -> None:
        result = Err("boom")
        assert result.map(lambda x: x * 2) == Err("boom")

    def test_err_map_err(self) -> None:
        assert Err("boom").map_err(str.upper) == Err("BOOM")

    def test_err_repr(self) -> None:
        assert repr(Err("boom")) == "Err('boom')"


class TestTypeGuards:
    def test_is_ok(self) -> None:
        result: Result[int, str] = Ok(1)
        assert is_ok(result)
        assert not is_err(result)

    def test_is_err(self) -> None:
        result: Result[int, str] = Err("no")
        assert is_err(result)
        assert not is_ok(result)

    def test_pattern_matching(self) -> None:
        def describe(result: Result[str, str]) -> str:
            match result:
                case Ok(value):
                    return f"ok {value}"
                case Err(error):
                    return f"err {error}"

        assert describe(Ok("v1.0.0")) == "ok v1.0.0"
        assert describe(Err("tag exists")) == "err tag exists"

    def test_equality_and_hash(self) -> None:
        assert Ok(1) == Ok(1)
        assert Ok(1) != Err(1)
        assert len({Ok(1), Ok(1), Err(1)}) == 2
