"""
Matcher compilation, structural equality and canonical serialization.

A match specification is turned into a predicate ``(value, index, container)``:

- functions are used directly,
- compiled patterns test the string form of the candidate,
- dates compare timestamps,
- plain dicts are fuzzy templates matched key by key,
- anything else falls back to :func:`is_equal`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Callable, Literal
import math
import re

import canonicaljson

from chainkit.callbacks import invoke_callback
from chainkit.classify import (
    ARRAY,
    BOOLEAN,
    DATE,
    ERROR,
    MAP,
    NUMBER,
    OBJECT,
    REGEXP,
    SET,
    STRING,
    classify,
    is_object_type,
    is_plain_object,
    is_primitive,
    is_serializable,
)
from chainkit.memo import BoundedMemo

MatchKind = Literal["literal", "pattern", "date", "predicate", "fuzzy"]
Matcher = Callable[..., bool]


# ----------------- Equality -----------------


def _numbers_equal(a: Any, b: Any) -> bool:
    if isinstance(a, float) and math.isnan(a):
        return isinstance(b, float) and math.isnan(b)
    if a != b:
        return False
    if a == 0:
        # 0.0 and -0.0 are equal numerically but not as values.
        return math.copysign(1.0, a) == math.copysign(1.0, b)
    return True


def _on_stack(stack: list[Any], value: Any) -> bool:
    if not isinstance(value, (dict, list, tuple)):
        return False
    return any(entry is value for entry in stack)


def _keys(value: Any) -> list[Any]:
    if isinstance(value, dict):
        return list(value.keys())
    return list(range(len(value)))


def _contains(container: Any, key: Any) -> bool:
    if isinstance(container, dict):
        return key in container
    return isinstance(key, int) and 0 <= key < len(container)


def _residual(value: Any, tag: str) -> str:
    if isinstance(value, dict):
        return "dict"
    if isinstance(value, list):
        return "list"
    if isinstance(value, tuple):
        return "tuple"
    if tag == DATE:
        return value.isoformat()
    if tag == REGEXP:
        return f"/{value.pattern}/{value.flags}"
    return str(value)


def _object_is_equal(a: Any, b: Any, tag: str, stack: list[Any]) -> bool:
    if isinstance(a, (dict, list, tuple)):
        if len(a) != len(b):
            return False
        count = 0
        for key in _keys(a):
            value = a[key]
            cyclic = _on_stack(stack, value)
            stack.append(value)
            try:
                if not cyclic and (not _contains(b, key) or not is_equal(value, b[key], stack)):
                    return False
            finally:
                stack.pop()
            count += 1
        if count != len(b):
            return False
    return _residual(a, tag) == _residual(b, tag)


def _error_string(error: BaseException) -> str:
    return f"{type(error).__name__}: {error}"


def is_equal(a: Any, b: Any, stack: list[Any] | None = None) -> bool:
    """Structural equality with sign-aware zero and cycle-safe traversal.

    Values of different classification are never equal, so ``5`` does not
    equal ``"5"`` and ``True`` does not equal ``1``. Instances of arbitrary
    classes are only equal to themselves.
    """
    if a is b:
        return True
    tag_a = classify(a)
    tag_b = classify(b)
    if tag_a != tag_b:
        return False
    if stack is None:
        stack = []

    if tag_a == NUMBER:
        return _numbers_equal(a, b)
    if is_serializable(a, tag_a) and is_serializable(b, tag_b):
        return _object_is_equal(a, b, tag_a, stack)
    if tag_a == SET:
        refs: list[Any] = []
        return len(a) == len(b) and is_equal(_ordered(a, refs), _ordered(b, refs), stack)
    if tag_a == MAP:
        return len(a) == len(b) and is_equal(
            [[key, value] for key, value in a.items()],
            [[key, value] for key, value in b.items()],
            stack,
        )
    if tag_a == ERROR:
        return _error_string(a) == _error_string(b)
    return False


# ----------------- Serialization -----------------


def _number_text(value: Any) -> str:
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value == 0 and math.copysign(1.0, value) < 0:
            return "-0"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def _reference(value: Any, refs: list[Any]) -> list[Any]:
    for index, ref in enumerate(refs):
        if ref is value:
            return ["ref", index]
    refs.append(value)
    return ["ref", len(refs) - 1]


def _normalize(value: Any, refs: list[Any], stack: list[Any]) -> Any:
    tag = classify(value)
    if value is None:
        return ["Null"]
    if tag == NUMBER:
        return [NUMBER, _number_text(value)]
    if tag in (BOOLEAN, STRING):
        return [tag, value]
    if not is_serializable(value, tag):
        return _reference(value, refs)
    if tag == DATE:
        return [DATE, type(value).__name__, value.isoformat()]
    if tag == REGEXP:
        return [REGEXP, str(value.pattern), value.flags]

    if isinstance(value, dict):
        keys = sorted(value.keys(), key=str)
        kind = OBJECT
    else:
        keys = list(range(len(value)))
        kind = ARRAY
    entries = []
    for key in keys:
        item = value[key]
        cyclic = _on_stack(stack, item)
        stack.append(item)
        try:
            entries.append([str(key), "CYC" if cyclic else _normalize(item, refs, stack)])
        finally:
            stack.pop()
    return [kind, type(value).__name__, entries]


def serialize(value: Any, refs: list[Any] | None = None) -> str:
    """Canonical token unique to the type, class and value of ``value``.

    Values that cannot be compared by value (functions, class instances,
    sets) are recorded in ``refs`` and serialized as their index there, so
    the caller decides how long reference identities stay stable.
    """
    if refs is None:
        refs = []
    payload = _normalize(value, refs, [value])
    return canonicaljson.encode_canonical_json(payload).decode("utf-8")


def _ordered(values: Any, refs: list[Any]) -> list[Any]:
    return sorted(values, key=lambda item: serialize(item, refs))


# ----------------- Matchers -----------------


def _timestamp(value: Any) -> float | None:
    if isinstance(value, datetime):
        return value.timestamp()
    if isinstance(value, date):
        return datetime.combine(value, time()).timestamp()
    stamp = getattr(value, "timestamp", None)
    if callable(stamp):
        return stamp()
    return None


def _member(value: Any, key: Any) -> Any:
    if isinstance(value, Mapping):
        return value.get(key)
    if isinstance(value, (list, tuple)):
        if isinstance(key, int) and -len(value) <= key < len(value):
            return value[key]
        return None
    return getattr(value, str(key), None)


def _pattern_matcher(pattern: re.Pattern) -> Matcher:
    def match(value: Any, index: Any = None, container: Any = None) -> bool:
        return pattern.search(str(value)) is not None

    return match


def _date_matcher(moment: date) -> Matcher:
    expected = _timestamp(moment)

    def match(value: Any, index: Any = None, container: Any = None) -> bool:
        return value is not None and _timestamp(value) == expected

    return match


def _function_matcher(fn: Callable[..., Any]) -> Matcher:
    def match(value: Any, index: Any = None, container: Any = None) -> bool:
        return value is fn or bool(invoke_callback(fn, value, index, container))

    return match


def _fuzzy_matcher(template: dict) -> Matcher:
    matchers: dict[Any, Matcher] = {}

    def match(value: Any, index: Any = None, container: Any = None) -> bool:
        if not is_object_type(value):
            return False
        for key, expected in template.items():
            matcher = matchers.get(key)
            if matcher is None:
                matcher = matchers[key] = compile_matcher(expected)
            if not matcher(_member(value, key), index, container):
                return False
        return True

    return match


def _default_matcher(expected: Any) -> Matcher:
    def match(value: Any, index: Any = None, container: Any = None) -> bool:
        return is_equal(value, expected)

    return match


def match_kind(spec: Any) -> MatchKind:
    if not is_primitive(spec):
        if isinstance(spec, re.Pattern):
            return "pattern"
        if isinstance(spec, date):
            return "date"
        if callable(spec):
            return "predicate"
        if is_plain_object(spec):
            return "fuzzy"
    return "literal"


@dataclass(frozen=True)
class MatchSpec:
    """Tagged match specification."""

    kind: MatchKind
    value: Any

    @classmethod
    def of(cls, spec: Any) -> "MatchSpec":
        if isinstance(spec, MatchSpec):
            return spec
        return cls(kind=match_kind(spec), value=spec)

    def compile(self) -> Matcher:
        if self.kind == "pattern":
            return _pattern_matcher(self.value)
        if self.kind == "date":
            return _date_matcher(self.value)
        if self.kind == "predicate":
            return _function_matcher(self.value)
        if self.kind == "fuzzy":
            return _fuzzy_matcher(self.value)
        return _default_matcher(self.value)


def _compile_cached(key: tuple[type, str, Any]) -> Matcher:
    return MatchSpec.of(key[2]).compile()


matcher_memo: BoundedMemo[tuple[type, str, Any], Matcher] = BoundedMemo(_compile_cached)


def compile_matcher(spec: Any) -> Matcher:
    """Compile ``spec`` into a predicate ``(value, index=None, container=None)``.

    Primitive literals, patterns and dates are memoized by type and repr so
    that ``0.0`` and ``-0.0`` or ``1`` and ``True`` never share a matcher.
    """
    match_spec = MatchSpec.of(spec)
    if match_spec.kind in ("literal", "pattern", "date") and (
        is_primitive(match_spec.value) or match_spec.kind != "literal"
    ):
        value = match_spec.value
        return matcher_memo((type(value), repr(value), value))
    return match_spec.compile()
