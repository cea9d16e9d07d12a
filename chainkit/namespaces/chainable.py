"""Chainable value wrappers and runtime disambiguation of colliding names."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable
import functools
import logging

from chainkit.errors import DisambiguationError, UnknownOperationError

if TYPE_CHECKING:
    from chainkit.namespaces.registry import NamespaceRegistry

logger = logging.getLogger(__name__)

# A chainable method takes the chainable itself, then the call arguments.
ChainableMethod = Callable[..., "Chainable"]


class Chainable:
    """Immutable holder of one raw value whose operations return chainables."""

    __slots__ = ("raw",)

    namespace_name: str = "Chainable"
    _operations: dict[str, ChainableMethod] = {}
    _fallback: type["Chainable"] | None = None

    def __init__(self, raw: Any = None) -> None:
        object.__setattr__(self, "raw", raw)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    @classmethod
    def _find(cls, name: str) -> ChainableMethod | None:
        method = cls._operations.get(name)
        if method is None and cls._fallback is not None:
            method = cls._fallback._operations.get(name)
        return method

    @classmethod
    def _lookup(cls, name: str) -> ChainableMethod:
        method = cls._find(name)
        if method is None:
            raise UnknownOperationError(cls.namespace_name, name)
        return method

    @classmethod
    def _operation_names(cls) -> list[str]:
        names = set(cls._operations)
        if cls._fallback is not None:
            names.update(cls._fallback._operations)
        return sorted(names)

    def invoke(self, name: str, *args: Any, **kwargs: Any) -> "Chainable":
        return self._lookup(name)(self, *args, **kwargs)

    def __getattr__(self, name: str) -> Callable[..., "Chainable"]:
        if name.startswith("__"):
            raise AttributeError(name)
        return functools.partial(self._lookup(name), self)

    def value_of(self) -> Any:
        return self.raw

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Chainable):
            return type(self) is type(other) and self.raw == other.raw
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{self.namespace_name}({self.raw!r})"


def new_chainable_class(name: str, fallback: type[Chainable] | None = None) -> type[Chainable]:
    """Create a chainable type with its own, initially empty, operation table."""
    return type(
        f"{name}Chainable",
        (Chainable,),
        {"__slots__": (), "namespace_name": name, "_operations": {}, "_fallback": fallback},
    )


def wrap_with_chainable_result(fn: Callable[..., Any], default: type[Chainable]) -> ChainableMethod:
    """Run ``fn`` against the raw value and wrap the result in ``default``."""

    def chained(chainable: Chainable, *args: Any, **kwargs: Any) -> Chainable:
        return default(fn(chainable.raw, *args, **kwargs))

    chained.__name__ = getattr(fn, "__name__", "chained")
    return chained


def disambiguation_thunk(registry: "NamespaceRegistry", name: str) -> ChainableMethod:
    """Method for the default chainable that picks the namespace at call time."""

    def disambiguate(chainable: Chainable, *args: Any, **kwargs: Any) -> Chainable:
        namespace = registry.namespace_for(chainable.raw)
        method = namespace.chainable._lookup(name)
        if getattr(method, "disambiguate", False):
            raise DisambiguationError(name, chainable.raw)
        return method(chainable, *args, **kwargs)

    disambiguate.disambiguate = True  # type: ignore[attr-defined]
    disambiguate.__name__ = name
    return disambiguate


def define_chainable_method(
    registry: "NamespaceRegistry",
    chainable: type[Chainable],
    name: str,
    fn: Callable[..., Any],
) -> None:
    """Register ``fn`` under ``name`` on ``chainable`` and the default chainable.

    The default chainable keeps the direct method for a name seen once; a
    second definition from anywhere turns it into a disambiguation thunk,
    which is never replaced afterwards.
    """
    default = registry.default_chainable
    wrapped = wrap_with_chainable_result(fn, default)
    existing = default._operations.get(name)
    if existing is None:
        default._operations[name] = wrapped
    elif not getattr(existing, "disambiguate", False):
        logger.debug("Operation '%s' collides; dispatching on runtime type", name)
        default._operations[name] = disambiguation_thunk(registry, name)
    chainable._operations[name] = wrapped
