from __future__ import annotations

from pydantic import ValidationError
import pytest

from chainkit import build_registry, paths
from chainkit.callbacks import callback_arity, invoke_callback
from chainkit.config import RegistrySettings, load_settings
from chainkit.errors import ChainkitError, InvalidNumberError, NotWritableError, coerce_positive_integer
from chainkit.memo import BoundedMemo


@pytest.mark.unit
def test_load_settings_defaults_and_environment() -> None:
    assert load_settings({}) == RegistrySettings()
    settings = load_settings(
        {
            "CHAINKIT_MODULES": "es6, enumerable",
            "CHAINKIT_MEMOIZE_LIMIT": "5",
            "CHAINKIT_GENERIC_NAMESPACE": " Object ",
        }
    )
    assert settings.modules == ("es6", "enumerable")
    assert settings.memoize_limit == 5
    assert settings.generic_namespace == "Object"
    assert load_settings({"CHAINKIT_MODULES": ""}).modules == ()
    assert load_settings({}, modules=("es7",)).modules == ("es7",)


@pytest.mark.unit
def test_invalid_settings_are_rejected() -> None:
    with pytest.raises(ValidationError):
        load_settings({"CHAINKIT_MEMOIZE_LIMIT": "0"})
    settings = RegistrySettings()
    with pytest.raises(ValidationError):
        settings.modules = ()


@pytest.mark.unit
def test_build_registry_honors_settings() -> None:
    registry = build_registry(RegistrySettings(modules=("es6",), memoize_limit=7))
    assert registry.loaded_modules == ("es6",)
    assert "min" not in registry.Array
    assert registry.Array.host.static.has("from_")
    assert paths.path_memo.limit == 7
    build_registry(RegistrySettings())
    assert paths.path_memo.limit == 1000


@pytest.mark.unit
def test_bounded_memo_resets_wholesale() -> None:
    calls: list[str] = []

    def upper(key: str) -> str:
        calls.append(key)
        return key.upper()

    memo = BoundedMemo(upper, limit=2)
    assert memo("a") == "A"
    assert memo("a") == "A"
    memo("b")
    assert len(memo) == 2
    memo("c")
    assert len(memo) == 1
    assert memo.resets == 1
    assert "a" not in memo
    assert calls == ["a", "b", "c"]


@pytest.mark.unit
def test_callbacks_receive_what_they_accept() -> None:
    assert invoke_callback(lambda value: value, 1, 2, 3) == 1
    assert invoke_callback(lambda value, index: (value, index), 1, 2, 3) == (1, 2)
    assert invoke_callback(lambda *args: args, 1, 2) == (1, 2)
    assert callback_arity(len) == 1
    assert callback_arity(lambda a, b, c=1: 0) == 3


@pytest.mark.unit
def test_coerce_positive_integer() -> None:
    assert coerce_positive_integer(None) == 0
    assert coerce_positive_integer(3.7) == 3
    assert coerce_positive_integer("4") == 4
    for bad in (-1, "x", float("inf")):
        with pytest.raises(InvalidNumberError):
            coerce_positive_integer(bad)


@pytest.mark.unit
def test_error_codes_and_bases() -> None:
    error = NotWritableError((1,), 0)
    assert isinstance(error, ChainkitError)
    assert isinstance(error, TypeError)
    assert error.code == "E_NOT_WRITABLE"
    assert error.key == 0
