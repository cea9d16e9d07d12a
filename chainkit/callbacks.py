"""Calling user callbacks with as many positional arguments as they accept."""

from __future__ import annotations

from typing import Any, Callable
import inspect

from chainkit.memo import BoundedMemo


def _positional_arity(fn: Callable[..., Any]) -> int | None:
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        # Builtins without a signature get the value only.
        return 1

    count = 0
    for parameter in signature.parameters.values():
        kind = parameter.kind
        if kind == inspect.Parameter.VAR_POSITIONAL:
            return None
        if kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            count += 1
    return count


arity_memo: BoundedMemo[Callable[..., Any], int | None] = BoundedMemo(_positional_arity)


def callback_arity(fn: Callable[..., Any]) -> int | None:
    """Number of positional arguments ``fn`` accepts, None when variadic."""
    try:
        hash(fn)
    except TypeError:
        return _positional_arity(fn)
    return arity_memo(fn)


def invoke_callback(fn: Callable[..., Any], *args: Any) -> Any:
    """Call ``fn`` with the leading ``args`` its signature can take.

    Iteration callbacks are offered ``(value, index, container)``; a
    one-parameter lambda simply receives the value.
    """
    arity = callback_arity(fn)
    if arity is None:
        return fn(*args)
    return fn(*args[:arity])
