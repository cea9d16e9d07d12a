"""Array namespace operations: enhanced matching and mapping plus aggregates."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

from chainkit.modules.enumerable.support import (
    ENHANCE_FLAGS,
    MISSING,
    average_of,
    enhanced_mapper,
    enhanced_matcher,
    entries,
    least_or_most,
    median_of,
    min_or_max,
    require,
    sum_of,
)

if TYPE_CHECKING:
    from chainkit.namespaces.registry import NamespaceRegistry


def array_map(arr, mapper=MISSING) -> list[Any]:
    """Map each element; a path string or list of paths is a shortcut.

    >>> array_map([{"name": "a"}, {"name": "b"}], "name")
    ['a', 'b']
    """
    fn = enhanced_mapper(require(mapper))
    return [fn(value, index, arr) for index, value in entries(arr)]


def array_some(arr, spec=MISSING) -> bool:
    matcher = enhanced_matcher(require(spec))
    return any(matcher(value, index, arr) for index, value in entries(arr))


def array_every(arr, spec=MISSING) -> bool:
    matcher = enhanced_matcher(require(spec))
    return all(matcher(value, index, arr) for index, value in entries(arr))


def array_filter(arr, spec=MISSING) -> list[Any]:
    matcher = enhanced_matcher(require(spec))
    return [value for index, value in entries(arr) if matcher(value, index, arr)]


def array_find(arr, spec=MISSING) -> Any:
    matcher = enhanced_matcher(require(spec))
    for index, value in entries(arr):
        if matcher(value, index, arr):
            return value
    return None


def array_find_index(arr, spec=MISSING) -> int:
    matcher = enhanced_matcher(require(spec))
    for index, value in entries(arr):
        if matcher(value, index, arr):
            return index
    return -1


def array_none(arr, spec=MISSING) -> bool:
    return not array_some(arr, spec)


def array_count(arr, spec=MISSING) -> int:
    """Number of elements matching ``spec``, or the length without one."""
    if spec is MISSING:
        return len(arr)
    return len(array_filter(arr, spec))


def array_min(arr, all=False, mapper=None):
    return min_or_max(arr, all, mapper)


def array_max(arr, all=False, mapper=None):
    return min_or_max(arr, all, mapper, maximum=True)


def array_least(arr, all=False, mapper=None):
    return least_or_most(arr, all, mapper)


def array_most(arr, all=False, mapper=None):
    return least_or_most(arr, all, mapper, most=True)


def array_sum(arr, mapper=None):
    return sum_of(arr, mapper)


def array_average(arr, mapper=None):
    return average_of(arr, mapper)


def array_median(arr, mapper=None):
    return median_of(arr, mapper)


def register(registry: "NamespaceRegistry") -> None:
    array = registry["Array"]
    array.define_instance(
        {
            "map": array_map,
            "some": array_some,
            "every": array_every,
            "filter": array_filter,
            "find": array_find,
            "find_index": array_find_index,
        },
        ENHANCE_FLAGS,
    )
    array.define_instance(
        {
            "none": array_none,
            "count": array_count,
            "min": array_min,
            "max": array_max,
            "least": array_least,
            "most": array_most,
            "sum": array_sum,
            "average": array_average,
            "median": array_median,
        }
    )
