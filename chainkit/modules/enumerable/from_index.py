"""
``*_from_index`` operations: array iteration starting at an arbitrary index.

Every operation is called as ``op(arr, start_index, [loop], fn, [extra])``.
A negative start counts from the end. With ``loop`` set, iteration wraps
around and continues up to ``start_index - 1``; callbacks always receive the
element's real index. The right-to-left reduction walks downward from the
start instead.
"""

from __future__ import annotations

from typing import Any, Callable, TYPE_CHECKING
import functools

from chainkit.callbacks import invoke_callback
from chainkit.classify import HOLE
from chainkit.errors import assert_callable, assert_sequence
from chainkit.modules.enumerable.support import MISSING, enhanced_mapper, enhanced_matcher, require

if TYPE_CHECKING:
    from chainkit.namespaces.registry import NamespaceRegistry


def _parse_arguments(args: list[Any]) -> tuple[bool, Any, Any]:
    position = 0
    loop = False
    if args and isinstance(args[0], bool):
        loop = args[0]
        position = 1
    fn = args[position] if position < len(args) else MISSING
    extra = args[position + 1] if position + 1 < len(args) else MISSING
    return loop, fn, extra


def _visit_order(length: int, start: int | None, loop: bool, from_right: bool) -> list[int]:
    start = start or 0
    if start < 0:
        start += length
    if from_right:
        start = min(length - 1, max(-1, start))
        order = list(range(start, -1, -1))
        if loop:
            order.extend(range(length - 1, start, -1))
        return order
    start = min(length, max(0, start))
    order = list(range(start, length))
    if loop:
        order.extend(range(0, start))
    return order


def _visits(arr, start, loop, from_right=False) -> list[tuple[int, Any]]:
    assert_sequence(arr)
    visits = []
    for index in _visit_order(len(arr), start, loop, from_right):
        if arr[index] is not HOLE:
            visits.append((index, arr[index]))
    return visits


def for_each_from_index(arr, start_index, args):
    loop, fn, _ = _parse_arguments(args)
    assert_callable(require(fn))
    for index, value in _visits(arr, start_index, loop):
        invoke_callback(fn, value, index, arr)
    return arr


def map_from_index(arr, start_index, args) -> list[Any]:
    loop, mapper, _ = _parse_arguments(args)
    fn = enhanced_mapper(require(mapper))
    return [fn(value, index, arr) for index, value in _visits(arr, start_index, loop)]


def _matching(arr, start_index, args) -> tuple[Callable[..., Any], list[tuple[int, Any]]]:
    loop, spec, _ = _parse_arguments(args)
    matcher = enhanced_matcher(require(spec))
    return matcher, _visits(arr, start_index, loop)


def filter_from_index(arr, start_index, args) -> list[Any]:
    matcher, visits = _matching(arr, start_index, args)
    return [value for index, value in visits if matcher(value, index, arr)]


def some_from_index(arr, start_index, args) -> bool:
    matcher, visits = _matching(arr, start_index, args)
    return any(matcher(value, index, arr) for index, value in visits)


def every_from_index(arr, start_index, args) -> bool:
    matcher, visits = _matching(arr, start_index, args)
    return all(matcher(value, index, arr) for index, value in visits)


def find_from_index(arr, start_index, args) -> Any:
    matcher, visits = _matching(arr, start_index, args)
    for index, value in visits:
        if matcher(value, index, arr):
            return value
    return None


def find_index_from_index(arr, start_index, args) -> int:
    matcher, visits = _matching(arr, start_index, args)
    for index, value in visits:
        if matcher(value, index, arr):
            return index
    return -1


def _reduce(arr, start_index, args, from_right: bool):
    loop, fn, initial = _parse_arguments(args)
    assert_callable(require(fn))
    visits = _visits(arr, start_index, loop, from_right)

    def step(accumulator, visit):
        index, value = visit
        return invoke_callback(fn, accumulator, value, index, arr)

    if initial is MISSING:
        if not visits:
            raise TypeError("Reduce of empty sequence with no initial value")
        return functools.reduce(step, visits[1:], visits[0][1])
    return functools.reduce(step, visits, initial)


def reduce_from_index(arr, start_index, args):
    return _reduce(arr, start_index, args, from_right=False)


def reduce_right_from_index(arr, start_index, args):
    return _reduce(arr, start_index, args, from_right=True)


def register(registry: "NamespaceRegistry") -> None:
    # The receiver and the start index are fixed; the rest is collected.
    registry["Array"].define_instance_with_arguments(
        {
            "for_each_from_index": for_each_from_index,
            "map_from_index": map_from_index,
            "some_from_index": some_from_index,
            "every_from_index": every_from_index,
            "find_index_from_index": find_index_from_index,
            "reduce_from_index": reduce_from_index,
            "filter_from_index": filter_from_index,
            "find_from_index": find_from_index,
            "reduce_right_from_index": reduce_right_from_index,
        },
        arity=2,
    )
