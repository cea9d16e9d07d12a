"""Shared enumeration helpers: mapping shortcuts, aggregates and min/max/least/most."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Iterator
import math

from chainkit.callbacks import invoke_callback
from chainkit.classify import HOLE, is_sequence
from chainkit.errors import ComparisonError, NotCallableError, assert_argument
from chainkit.matchers import Matcher, compile_matcher, serialize
from chainkit.paths import deep_get


class _Missing:
    """Marker for an argument that was not passed at all."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()

# Option flags carried by operations that replace same-named host methods.
ENHANCE_FLAGS = ("enhance", "enhance_array")


def entries(obj: Any) -> Iterator[tuple[Any, Any]]:
    """Yield ``(key, value)`` pairs, skipping holes in sequences."""
    if isinstance(obj, Mapping):
        yield from obj.items()
    elif is_sequence(obj):
        for index, value in enumerate(obj):
            if value is not HOLE:
                yield index, value
    elif hasattr(obj, "__dict__"):
        yield from vars(obj).items()


def map_with_shortcuts(value: Any, mapper: Any, key: Any = None, container: Any = None) -> Any:
    """Apply ``mapper`` to ``value``.

    A callable is called with ``(value, key, container)``; a list maps to a
    list of results; a name whose member is callable calls it; any other
    value is read as a deep path.
    """
    if mapper is None or mapper == "":
        return value
    if callable(mapper):
        return invoke_callback(mapper, value, key, container)
    if isinstance(mapper, list):
        return [map_with_shortcuts(value, item, key, container) for item in mapper]
    if isinstance(value, Mapping):
        member = value.get(mapper) if isinstance(mapper, (str, int)) else None
    elif isinstance(mapper, str):
        member = getattr(value, mapper, None)
    else:
        member = None
    if callable(member):
        return member()
    return deep_get(value, mapper)


def enhanced_matcher(spec: Any) -> Matcher:
    """Functions are used as plain predicates; other values are compiled."""
    if callable(spec):
        return lambda value, key=None, container=None: invoke_callback(spec, value, key, container)
    return compile_matcher(spec)


def enhanced_mapper(mapper: Any) -> Callable[..., Any]:
    if callable(mapper):
        return lambda value, key=None, container=None: invoke_callback(mapper, value, key, container)
    if mapper is None:
        raise NotCallableError(mapper)
    return lambda value, key=None, container=None: map_with_shortcuts(value, mapper, key, container)


def require(argument: Any) -> Any:
    assert_argument(argument is not MISSING)
    return argument


def enumerate_with_mapping(obj: Any, mapper: Any) -> Iterator[tuple[Any, Any]]:
    for key, value in entries(obj):
        yield key, map_with_shortcuts(value, mapper, key, obj)


def split_all_and_map(all: Any, mapper: Any) -> tuple[bool, Any]:
    """``all`` is optional: a non-boolean in its place is the mapping shortcut."""
    if isinstance(all, bool):
        return all, mapper
    return False, all if all is not None else mapper


# ----------------- Aggregates -----------------


def sum_of(obj: Any, mapper: Any = None) -> Any:
    total = 0
    for _, value in enumerate_with_mapping(obj, mapper):
        total += value
    return total


def average_of(obj: Any, mapper: Any = None) -> Any:
    total = 0
    count = 0
    for _, value in enumerate_with_mapping(obj, mapper):
        total += value
        count += 1
    return total / (count or 1)


def median_of(obj: Any, mapper: Any = None) -> Any:
    values = [value for _, value in enumerate_with_mapping(obj, mapper)]
    if not values:
        return 0
    values.sort(key=lambda value: value or 0)
    middle = math.trunc(len(values) / 2)
    if len(values) % 2:
        return values[middle]
    return (values[middle - 1] + values[middle]) / 2


# ----------------- Min / max / least / most -----------------

_UNSET: Any = object()


def reduced_min_max_result(result: list[Any] | None, obj: Any, all: bool, as_object: bool) -> Any:
    if as_object and all:
        # The winners are keys: rebuild the mapping they came from.
        return {key: obj[key] for key in result or ()}
    if not all:
        return result[0] if result else None
    return result


def min_or_max(
    obj: Any,
    all: Any = False,
    mapper: Any = None,
    *,
    maximum: bool = False,
    as_object: bool = False,
) -> Any:
    """Element (or key, with ``as_object``) with the smallest or largest mapped value.

    Ties keep the first winner unless ``all`` is set, in which case every
    tied element is returned in enumeration order.
    """
    all, mapper = split_all_and_map(all, mapper)
    result: list[Any] = []
    edge = _UNSET
    for key, mapped in enumerate_with_mapping(obj, mapper):
        if mapped is None:
            raise ComparisonError()
        winner = key if as_object else obj[key]
        if edge is not _UNSET and mapped == edge:
            result.append(winner)
        elif edge is _UNSET or (maximum and mapped > edge) or (not maximum and mapped < edge):
            result = [winner]
            edge = mapped
    return reduced_min_max_result(result, obj, all, as_object)


def least_or_most(
    obj: Any,
    all: Any = False,
    mapper: Any = None,
    *,
    most: bool = False,
    as_object: bool = False,
) -> Any:
    """Element(s) whose mapped value occurs the fewest or most times."""
    all, mapper = split_all_and_map(all, mapper)
    groups: dict[str, list[Any]] = {}
    refs: list[Any] = []
    for key, mapped in enumerate_with_mapping(obj, mapper):
        groups.setdefault(serialize(mapped, refs), []).append(key if as_object else obj[key])

    winner = min_or_max(groups, all, len, maximum=most, as_object=True)
    if all:
        result = [item for members in winner.values() for item in members]
    else:
        result = groups.get(winner) if winner is not None else None
    return reduced_min_max_result(result, obj, all, as_object)
