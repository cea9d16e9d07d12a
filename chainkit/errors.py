"""chainkit error taxonomy and argument assertions."""

from __future__ import annotations

from typing import Any
import math
import numbers


class ChainkitError(Exception):
    """Base class for every error raised by chainkit."""

    code = "E_CHAINKIT"


class ArgumentError(ChainkitError, TypeError):
    """Raised when a required predicate or function argument is omitted."""

    code = "E_ARGUMENT_REQUIRED"

    def __init__(self, message: str = "Argument required"):
        super().__init__(message)


class NotCallableError(ChainkitError, TypeError):
    """Raised when a non-callable is passed where a function is required."""

    code = "E_NOT_CALLABLE"

    def __init__(self, value: Any, message: str | None = None):
        type_name = type(value).__name__
        super().__init__(message or f"Function is not callable (got {type_name})")
        self.value_type = type_name


class SequenceRequiredError(ChainkitError, TypeError):
    """Raised when a non-sequence is passed where a sequence is required."""

    code = "E_SEQUENCE_REQUIRED"

    def __init__(self, value: Any):
        super().__init__(f"Sequence required (got {type(value).__name__})")


class NotWritableError(ChainkitError, TypeError):
    """Raised when writing through a primitive or immutable container."""

    code = "E_NOT_WRITABLE"

    def __init__(self, container: Any, key: Any = None):
        detail = f"Property cannot be written on {type(container).__name__}"
        if key is not None:
            detail = f"{detail} (key {key!r})"
        super().__init__(detail)
        self.key = key


class DisambiguationError(ChainkitError, TypeError):
    """Raised when a chainable call cannot be resolved to a namespace."""

    code = "E_DISAMBIGUATION"

    def __init__(self, method_name: str, raw: Any):
        super().__init__(f"Cannot resolve namespace for {raw!r} calling '{method_name}'")
        self.method_name = method_name


class ComparisonError(ChainkitError, TypeError):
    """Raised when min/max style comparisons meet an undefined mapped value."""

    code = "E_COMPARISON"

    def __init__(self, message: str = "Cannot compare with None"):
        super().__init__(message)


class InvalidNumberError(ChainkitError, ValueError):
    """Raised when a required positive integer argument is invalid."""

    code = "E_INVALID_NUMBER"

    def __init__(self, value: Any):
        super().__init__(f"Invalid number: {value!r}")
        self.value = value


class UnknownOperationError(ChainkitError, AttributeError):
    """Raised when an operation name is not defined for a namespace."""

    code = "E_UNKNOWN_OPERATION"

    def __init__(self, namespace: str, method_name: str):
        super().__init__(f"Unknown operation '{method_name}' in namespace '{namespace}'")
        self.namespace = namespace
        self.method_name = method_name


class PathSyntaxError(ChainkitError, ValueError):
    """Raised when a deep path string cannot be parsed."""

    code = "E_PATH_SYNTAX"

    def __init__(self, path: str, detail: str = ""):
        message = f"Invalid path {path!r}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.path = path


class DuplicateNamespaceError(ChainkitError, ValueError):
    """Raised when a namespace name is registered twice on one registry."""

    code = "E_DUPLICATE_NAMESPACE"

    def __init__(self, name: str):
        super().__init__(f"Namespace already registered: {name}")
        self.name = name


def assert_argument(exists: bool) -> None:
    if not exists:
        raise ArgumentError()


def assert_callable(value: Any) -> None:
    if not callable(value):
        raise NotCallableError(value)


def assert_sequence(value: Any) -> None:
    if not isinstance(value, (list, tuple)):
        raise SequenceRequiredError(value)


def assert_writable(container: Any, key: Any = None) -> None:
    # Strings, numbers and None never take writes; tuples and frozensets are immutable.
    if container is None or isinstance(
        container, (str, bytes, bool, numbers.Number, tuple, frozenset)
    ):
        raise NotWritableError(container, key)


def coerce_positive_integer(value: Any) -> int:
    """Coerce ``value`` to a non-negative integer.

    ``None`` and other falsy values coerce to 0. Negative, non-finite and
    non-numeric values raise InvalidNumberError. Fractions are truncated.
    """
    if not value:
        return 0
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        try:
            number = float(value)
        except (TypeError, ValueError) as exc:
            raise InvalidNumberError(value) from exc
    else:
        number = float(value)
    if number < 0 or not math.isfinite(number):
        raise InvalidNumberError(value)
    return math.trunc(number)
