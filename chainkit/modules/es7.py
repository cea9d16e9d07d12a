"""ES7-style Array polyfill: ``includes`` with SameValueZero equality."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING
import math

from chainkit.classify import is_number

if TYPE_CHECKING:
    from chainkit.namespaces.registry import NamespaceRegistry


def same_value_zero(a: Any, b: Any) -> bool:
    """Strict equality where NaN equals NaN and 0.0 equals -0.0."""
    if isinstance(a, float) and math.isnan(a):
        return isinstance(b, float) and math.isnan(b)
    if isinstance(a, bool) or isinstance(b, bool):
        return a is b
    if is_number(a) and is_number(b):
        return a == b
    if isinstance(a, (str, bytes)):
        return type(a) is type(b) and a == b
    return a is b


def array_includes(arr: Any, search: Any, from_index: int | None = None) -> bool:
    if isinstance(arr, str):
        return search in arr[from_index or 0:]
    length = len(arr)
    start = from_index or 0
    if start < 0:
        start = max(0, start + length)
    return any(same_value_zero(search, arr[index]) for index in range(start, length))


def register(registry: "NamespaceRegistry") -> None:
    registry["Array"].define_instance_polyfill({"includes": array_includes})
