"""Stable extension API contracts: operation descriptors, extend options and host slots."""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from typing import Any, Callable, Literal
import functools
import inspect
import types

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from chainkit.errors import assert_callable

OperationFn = Callable[..., Any]
Role = Literal["static", "instance"]

# Option names that operations may carry as flags.
KNOWN_FLAGS = frozenset({"enhance", "enhance_string", "enhance_array"})


@dataclass(frozen=True)
class OperationDescriptor:
    """One named operation of a namespace.

    ``fn`` is the static form and always takes the receiver (if any) as its
    first argument. ``instance`` is the form installed on instance targets
    and carried by chainables; it is None for static-only operations.
    """

    name: str
    fn: OperationFn
    instance: OperationFn | None = None
    is_static: bool = False
    flags: tuple[str, ...] = ()
    collects_arguments: bool = False
    arity: int = 0

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        assert_callable(self.fn)
        return self.fn(*args, **kwargs)

    def renamed(self, name: str) -> "OperationDescriptor":
        return OperationDescriptor(
            name=name,
            fn=self.fn,
            instance=self.instance,
            is_static=self.is_static,
            flags=self.flags,
            collects_arguments=self.collects_arguments,
            arity=self.arity,
        )


def collect_arguments(fn: OperationFn, arity: int) -> OperationFn:
    """Wrap ``fn`` so arguments past ``arity`` arrive as one trailing list.

    Missing fixed arguments are padded with None.
    """

    @functools.wraps(fn)
    def collected(*args: Any) -> Any:
        fixed = list(args[:arity])
        fixed.extend([None] * (arity - len(fixed)))
        assert_callable(fn)
        return fn(*fixed, list(args[arity:]))

    return collected


class ExtendOptions(BaseModel):
    """Options accepted by ``extend``; camelCase names are accepted too."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
        frozen=True,
    )

    methods: tuple[str, ...] | None = None
    except_: tuple[Any, ...] = Field(default=(), alias="except")
    namespaces: tuple[Any, ...] | None = None
    enhance: bool = True
    enhance_string: bool = True
    enhance_array: bool = True
    object_prototype: bool | None = None

    @field_validator("methods", "except_", "namespaces", mode="before")
    @classmethod
    def _as_tuple(cls, value):
        if value is None:
            return value
        if isinstance(value, (list, tuple, set, frozenset)):
            return tuple(value)
        return (value,)

    @property
    def unfiltered(self) -> bool:
        return self.methods is None

    def restricted_to(self, method_name: str) -> "ExtendOptions":
        return self.model_copy(update={"methods": (method_name,)})

    def flag_disabled(self, flags: tuple[str, ...]) -> bool:
        return any(getattr(self, flag, True) is False for flag in flags)


def coerce_options(options: ExtendOptions | Mapping[str, Any] | str | None) -> ExtendOptions:
    if options is None:
        return ExtendOptions()
    if isinstance(options, ExtendOptions):
        return options
    if isinstance(options, str):
        return ExtendOptions(methods=(options,))
    return ExtendOptions.model_validate(dict(options))


# ----------------- Host targets -----------------


class HostTarget:
    """Adapter over an externally owned place operations get installed on."""

    def has(self, name: str) -> bool:
        raise NotImplementedError

    def get(self, name: str) -> Any:
        raise NotImplementedError

    def install(self, name: str, fn: OperationFn) -> None:
        raise NotImplementedError

    def owns(self, candidate: Any) -> bool:
        return candidate is self


class MappingTarget(HostTarget):
    """Host target backed by a mutable mapping of name to callable."""

    def __init__(self, entries: MutableMapping[str, Any] | None = None) -> None:
        self.entries: MutableMapping[str, Any] = {} if entries is None else entries

    def has(self, name: str) -> bool:
        return bool(self.entries.get(name))

    def get(self, name: str) -> Any:
        return self.entries.get(name)

    def install(self, name: str, fn: OperationFn) -> None:
        self.entries[name] = fn

    def owns(self, candidate: Any) -> bool:
        return candidate is self or candidate is self.entries

    def __repr__(self) -> str:
        return f"MappingTarget({sorted(self.entries)!r})"


class ClassTarget(HostTarget):
    """Host target installing onto a class, as methods or staticmethods."""

    def __init__(self, cls: type, static: bool) -> None:
        self.cls = cls
        self.static = static

    def has(self, name: str) -> bool:
        return bool(getattr(self.cls, name, None))

    def get(self, name: str) -> Any:
        return getattr(self.cls, name, None)

    def install(self, name: str, fn: OperationFn) -> None:
        setattr(self.cls, name, staticmethod(fn) if self.static else fn)

    def owns(self, candidate: Any) -> bool:
        return candidate is self or candidate is self.cls

    def __repr__(self) -> str:
        role = "static" if self.static else "instance"
        return f"ClassTarget({self.cls.__name__}, {role})"


class AttributeTarget(HostTarget):
    """Host target installing attributes on a plain object or module."""

    def __init__(self, obj: Any) -> None:
        self.obj = obj

    def has(self, name: str) -> bool:
        return bool(getattr(self.obj, name, None))

    def get(self, name: str) -> Any:
        return getattr(self.obj, name, None)

    def install(self, name: str, fn: OperationFn) -> None:
        setattr(self.obj, name, fn)

    def owns(self, candidate: Any) -> bool:
        return candidate is self or candidate is self.obj


_INSTANCE_MEMBER_TYPES = (
    types.FunctionType,
    types.MethodDescriptorType,
    types.WrapperDescriptorType,
)
_STATIC_MEMBER_TYPES = (staticmethod, classmethod, types.ClassMethodDescriptorType)


def public_members(native_type: type, role: Role) -> dict[str, Any]:
    """Public callables of ``native_type`` usable in the given role."""
    member_types = _STATIC_MEMBER_TYPES if role == "static" else _INSTANCE_MEMBER_TYPES
    members: dict[str, Any] = {}
    for name in dir(native_type):
        if name.startswith("_"):
            continue
        raw = inspect.getattr_static(native_type, name)
        if isinstance(raw, member_types):
            members[name] = getattr(native_type, name)
    return members


@dataclass
class HostSlot:
    """The static and instance targets a namespace extends onto."""

    static: HostTarget
    instance: HostTarget

    @classmethod
    def for_types(cls, native_types: tuple[type, ...] = ()) -> "HostSlot":
        static_entries: dict[str, Any] = {}
        instance_entries: dict[str, Any] = {}
        if native_types:
            static_entries.update(public_members(native_types[0], "static"))
            instance_entries.update(public_members(native_types[0], "instance"))
        return cls(static=MappingTarget(static_entries), instance=MappingTarget(instance_entries))

    @classmethod
    def for_class(cls, host: type) -> "HostSlot":
        return cls(static=ClassTarget(host, static=True), instance=ClassTarget(host, static=False))

    @classmethod
    def for_object(cls, static: Any, instance: Any) -> "HostSlot":
        return cls(static=AttributeTarget(static), instance=AttributeTarget(instance))

    def target(self, role: Role) -> HostTarget:
        return self.static if role == "static" else self.instance

    def owns(self, candidate: Any) -> bool:
        return candidate is self or self.static.owns(candidate) or self.instance.owns(candidate)
