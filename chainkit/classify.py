"""Runtime value classification shared by dispatch, paths and matchers."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any
import numbers
import re

# Classification tags for the built-in value categories.
NULL = "Null"
BOOLEAN = "Boolean"
NUMBER = "Number"
STRING = "String"
DATE = "Date"
REGEXP = "RegExp"
FUNCTION = "Function"
ARRAY = "Array"
OBJECT = "Object"
SET = "Set"
MAP = "Map"
ERROR = "Error"

# Values of these classifications can be compared and serialized by value.
SERIALIZABLE_TAGS = frozenset({BOOLEAN, NUMBER, STRING, DATE, REGEXP, ARRAY})


class _Hole:
    """Marker for an absent index in a sequence."""

    _instance: "_Hole | None" = None

    def __new__(cls) -> "_Hole":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "HOLE"

    def __bool__(self) -> bool:
        return False


HOLE = _Hole()


def classify(value: Any) -> str:
    """Return the classification tag for ``value``.

    This is the single open-ended classification step: values outside the
    built-in categories are tagged with their type name so that a namespace
    registered under that name can claim them.
    """
    if value is None:
        return NULL
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, numbers.Real):
        return NUMBER
    if isinstance(value, str):
        return STRING
    if isinstance(value, date):
        return DATE
    if isinstance(value, re.Pattern):
        return REGEXP
    if isinstance(value, (list, tuple)):
        return ARRAY
    if isinstance(value, dict):
        return OBJECT
    if isinstance(value, Mapping):
        return MAP
    if isinstance(value, (set, frozenset)):
        return SET
    if isinstance(value, BaseException):
        return ERROR
    if callable(value):
        return FUNCTION
    return type(value).__name__


def is_primitive(value: Any) -> bool:
    return value is None or isinstance(value, (str, bytes, bool, numbers.Number))


def is_object_type(value: Any) -> bool:
    """True for structured values that can be addressed by key or attribute."""
    if is_primitive(value) or value is HOLE:
        return False
    if isinstance(value, (Mapping, list, tuple)):
        return True
    return not callable(value)


def is_plain_object(value: Any) -> bool:
    return isinstance(value, dict)


def is_serializable(value: Any, tag: str | None = None) -> bool:
    """True when ``value`` may be compared and serialized by value.

    Functions, sets, non-dict mappings and instances of arbitrary classes
    are excluded and handled by reference or by their own rules.
    """
    tag = tag or classify(value)
    return tag in SERIALIZABLE_TAGS or (tag == OBJECT and is_plain_object(value))


def is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)
