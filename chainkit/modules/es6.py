"""ES6-style Array polyfills: ``from_``, ``find`` and ``find_index``."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, TYPE_CHECKING
import math

from chainkit.callbacks import invoke_callback
from chainkit.classify import is_number
from chainkit.errors import ArgumentError, InvalidNumberError, assert_callable, coerce_positive_integer

if TYPE_CHECKING:
    from chainkit.namespaces.registry import NamespaceRegistry

# Largest length an array-like may declare.
MAX_ARRAY_LENGTH = 2**32 - 1


def _array_like_length(value: Any) -> int:
    # NaN and negative lengths read as empty.
    if is_number(value) and (math.isnan(value) or value < 0):
        return 0
    length = coerce_positive_integer(value)
    if length > MAX_ARRAY_LENGTH:
        raise InvalidNumberError(value)
    return length


def _array_like_items(source: Any) -> list[Any]:
    if isinstance(source, Mapping):
        length = _array_like_length(source.get("length"))
        return [source.get(index, source.get(str(index))) for index in range(length)]
    if isinstance(source, (Sequence, Iterable)):
        return list(source)
    return []


def array_from(source: Any, mapper: Any = None) -> list[Any]:
    """Build a list from a sequence, an iterable or an array-like mapping.

    Array-like mappings declare a ``length`` key and hold items under index
    keys; missing indexes read as None.
    """
    if mapper is not None:
        assert_callable(mapper)
    if source is None:
        raise ArgumentError("Object required")
    items = _array_like_items(source)
    if mapper is None:
        return items
    return [invoke_callback(mapper, item, index) for index, item in enumerate(items)]


def array_find(arr: Any, fn: Any) -> Any:
    assert_callable(fn)
    for index, value in enumerate(arr):
        if invoke_callback(fn, value, index, arr):
            return value
    return None


def array_find_index(arr: Any, fn: Any) -> int:
    assert_callable(fn)
    for index, value in enumerate(arr):
        if invoke_callback(fn, value, index, arr):
            return index
    return -1


def register(registry: "NamespaceRegistry") -> None:
    array = registry["Array"]
    array.define_static_polyfill({"from_": array_from})
    array.define_instance_polyfill({"find": array_find, "find_index": array_find_index})
