"""Object namespace operations over mapping values; results carry keys."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

from chainkit.callbacks import invoke_callback
from chainkit.errors import assert_callable
from chainkit.matchers import compile_matcher
from chainkit.modules.enumerable.support import (
    MISSING,
    average_of,
    entries,
    least_or_most,
    map_with_shortcuts,
    median_of,
    min_or_max,
    sum_of,
)

if TYPE_CHECKING:
    from chainkit.namespaces.registry import NamespaceRegistry


def object_for_each(obj, fn):
    assert_callable(fn)
    for key, value in list(entries(obj)):
        invoke_callback(fn, value, key, obj)
    return obj


def object_map(obj, mapper=None) -> dict:
    return {key: map_with_shortcuts(value, mapper, key, obj) for key, value in entries(obj)}


def object_some(obj, spec=None) -> bool:
    matcher = compile_matcher(spec)
    return any(matcher(value, key, obj) for key, value in entries(obj))


def object_every(obj, spec=None) -> bool:
    matcher = compile_matcher(spec)
    return all(matcher(value, key, obj) for key, value in entries(obj))


def object_find(obj, spec=None) -> Any:
    """Key of the first value matching ``spec``, or None."""
    matcher = compile_matcher(spec)
    for key, value in entries(obj):
        if matcher(value, key, obj):
            return key
    return None


def object_filter(obj, spec=None) -> dict:
    matcher = compile_matcher(spec)
    return {key: value for key, value in entries(obj) if matcher(value, key, obj)}


def object_reduce(obj, fn, initial=MISSING):
    """Fold values left to right; without ``initial`` the first value seeds it."""
    accumulator = None if initial is MISSING else initial
    started = initial is not MISSING
    for key, value in entries(obj):
        if not started:
            accumulator = value
            started = True
            continue
        accumulator = invoke_callback(fn, accumulator, value, key, obj)
    return accumulator


def object_count(obj, spec=None) -> int:
    matcher = compile_matcher(spec)
    return sum(1 for key, value in entries(obj) if matcher(value, key, obj))


def object_none(obj, spec=None) -> bool:
    return not object_some(obj, spec)


def object_sum(obj, mapper=None):
    return sum_of(obj, mapper)


def object_average(obj, mapper=None):
    return average_of(obj, mapper)


def object_median(obj, mapper=None):
    return median_of(obj, mapper)


def object_min(obj, all=False, mapper=None):
    return min_or_max(obj, all, mapper, as_object=True)


def object_max(obj, all=False, mapper=None):
    return min_or_max(obj, all, mapper, maximum=True, as_object=True)


def object_least(obj, all=False, mapper=None):
    return least_or_most(obj, all, mapper, as_object=True)


def object_most(obj, all=False, mapper=None):
    return least_or_most(obj, all, mapper, most=True, as_object=True)


def register(registry: "NamespaceRegistry") -> None:
    registry["Object"].define_instance_and_static(
        {
            "for_each": object_for_each,
            "map": object_map,
            "some": object_some,
            "every": object_every,
            "filter": object_filter,
            "reduce": object_reduce,
            "find": object_find,
            "count": object_count,
            "none": object_none,
            "sum": object_sum,
            "average": object_average,
            "median": object_median,
            "min": object_min,
            "max": object_max,
            "least": object_least,
            "most": object_most,
        }
    )
