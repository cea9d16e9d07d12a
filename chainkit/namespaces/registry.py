"""Namespace registry: method definition, extension onto hosts and dispatch."""

from __future__ import annotations

from collections import OrderedDict
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping
import importlib
import logging
import re
import types

from chainkit.classify import (
    ARRAY,
    DATE,
    FUNCTION,
    NUMBER,
    OBJECT,
    REGEXP,
    STRING,
    classify,
)
from chainkit.config import RegistrySettings
from chainkit.errors import DuplicateNamespaceError, UnknownOperationError
from chainkit.namespaces.api import (
    ExtendOptions,
    HostSlot,
    OperationDescriptor,
    OperationFn,
    Role,
    coerce_options,
    collect_arguments,
    public_members,
)
from chainkit.namespaces.chainable import (
    Chainable,
    define_chainable_method,
    new_chainable_class,
)

logger = logging.getLogger(__name__)

# Native value types and classification tags of the built-in namespaces.
NATIVE_TYPES: dict[str, tuple[type, ...]] = {
    "Object": (dict,),
    "Number": (int, float),
    "String": (str,),
    "Array": (list, tuple),
    "Date": (datetime,),
    "RegExp": (re.Pattern,),
    "Function": (types.FunctionType, types.BuiltinFunctionType, types.MethodType),
}
NATIVE_CLASSIFICATIONS: dict[str, tuple[str, ...]] = {
    "Object": (OBJECT,),
    "Number": (NUMBER,),
    "String": (STRING,),
    "Array": (ARRAY,),
    "Date": (DATE,),
    "RegExp": (REGEXP,),
    "Function": (FUNCTION,),
}

# Generic-namespace names that are never installed on its instance target.
RESTRICTED_OBJECT_METHODS = frozenset({"get", "set"})

Methods = Mapping[str, OperationFn]
Arity = int | Mapping[str, int]


def _collect_define_options(
    methods: Methods | str,
    fn: OperationFn | tuple[str, ...] | None,
    flags: Iterable[str] | None,
) -> tuple[dict[str, OperationFn], tuple[str, ...]]:
    if isinstance(methods, str):
        entries = {methods: fn}
    else:
        entries = dict(methods)
        # (methods, flags) form: the second positional slot carries the flags.
        if flags is None and fn is not None and not callable(fn):
            flags = fn
    if isinstance(flags, str):
        flags = (flags,)
    return entries, tuple(flags or ())


def _native_caller(name: str) -> OperationFn:
    def call(raw: Any, *args: Any, **kwargs: Any) -> Any:
        return getattr(raw, name)(*args, **kwargs)

    call.__name__ = name
    return call


def _declared_arity(arity: Arity | None, name: str) -> int:
    if arity is None:
        return 0
    if isinstance(arity, Mapping):
        return int(arity.get(name, 0))
    return int(arity)


class Namespace:
    """Per-type container of operations and their host installation state."""

    def __init__(
        self,
        registry: "NamespaceRegistry",
        name: str,
        native_types: tuple[type, ...],
        host: HostSlot,
        chainable: type[Chainable],
    ) -> None:
        self.registry = registry
        self.name = name
        self.native_types = native_types
        self.host = host
        self.chainable = chainable
        self.operations: OrderedDict[str, OperationDescriptor] = OrderedDict()
        self.active = False
        self.active_options: ExtendOptions | None = None

    def __repr__(self) -> str:
        return f"Namespace({self.name!r}, {len(self.operations)} operations)"

    @property
    def is_generic(self) -> bool:
        return self is self.registry.generic

    # ----------------- Defining -----------------

    def _define(
        self,
        methods: Methods | str,
        fn: OperationFn | tuple[str, ...] | None,
        flags: Iterable[str] | None,
        *,
        static: bool,
        instance: bool,
        collects_arguments: bool = False,
        arity: Arity | None = None,
    ) -> "Namespace":
        entries, flag_names = _collect_define_options(methods, fn, flags)
        for name, method in entries.items():
            declared = _declared_arity(arity, name) if collects_arguments else 0
            static_form = collect_arguments(method, declared) if collects_arguments else method
            descriptor = OperationDescriptor(
                name=name,
                fn=static_form,
                instance=static_form if instance else None,
                is_static=static,
                flags=flag_names,
                collects_arguments=collects_arguments,
                arity=declared,
            )
            self._set_operation(name, descriptor)
            if self.active:
                # Activated namespaces install new operations right away.
                self.extend(self.active_options.restricted_to(name))
        return self

    def _set_operation(self, name: str, descriptor: OperationDescriptor) -> None:
        if hasattr(type(self), name) or name in self.__dict__:
            logger.warning(
                "Operation %s.%s is shadowed by a Namespace attribute; call it through invoke()",
                self.name,
                name,
            )
        self.operations[name] = descriptor
        if descriptor.instance is not None:
            define_chainable_method(self.registry, self.chainable, name, descriptor.instance)

    def define_static(self, methods, fn=None, flags=None) -> "Namespace":
        """Define operations that extend onto the static host target."""
        return self._define(methods, fn, flags, static=True, instance=False)

    def define_instance(self, methods, fn=None, flags=None) -> "Namespace":
        """Define operations taking the receiver first, installed as instance methods."""
        return self._define(methods, fn, flags, static=False, instance=True)

    def define_instance_and_static(self, methods, fn=None, flags=None) -> "Namespace":
        return self._define(methods, fn, flags, static=True, instance=True)

    def define_static_with_arguments(self, methods, fn=None, flags=None, *, arity: Arity | None = None) -> "Namespace":
        """Like :meth:`define_static`, gathering arguments past ``arity`` into a list."""
        return self._define(
            methods, fn, flags, static=True, instance=False, collects_arguments=True, arity=arity
        )

    def define_instance_with_arguments(self, methods, fn=None, flags=None, *, arity: Arity | None = None) -> "Namespace":
        """Like :meth:`define_instance`; the receiver counts toward ``arity``."""
        return self._define(
            methods, fn, flags, static=False, instance=True, collects_arguments=True, arity=arity
        )

    def _polyfill(self, role: Role, methods, fn, override: bool) -> dict[str, OperationFn]:
        entries, _ = _collect_define_options(methods, fn, None)
        target = self.host.target(role)
        for name, method in entries.items():
            if not override and target.has(name):
                logger.debug("Polyfill %s.%s skipped: host already defines it", self.name, name)
                continue
            target.install(name, method)
        return entries

    def define_static_polyfill(self, methods, fn=None, override: bool = False) -> "Namespace":
        """Install onto the static host target unless it already has the name."""
        self._polyfill("static", methods, fn, override)
        return self

    def define_instance_polyfill(self, methods, fn=None, override: bool = False) -> "Namespace":
        """Install onto the instance host target unless present; chainables always get it."""
        entries = self._polyfill("instance", methods, fn, override)
        for name, method in entries.items():
            define_chainable_method(self.registry, self.chainable, name, method)
        return self

    def alias(self, new_name: str, source: str | OperationFn) -> "Namespace":
        if isinstance(source, str):
            if source not in self.operations:
                raise UnknownOperationError(self.name, source)
            descriptor = self.operations[source].renamed(new_name)
        else:
            descriptor = OperationDescriptor(name=new_name, fn=source, is_static=True)
        self._set_operation(new_name, descriptor)
        return self

    # ----------------- Extending -----------------

    def matches(self, candidate: Any) -> bool:
        """True when ``candidate`` designates this namespace in extend options."""
        if candidate is self or candidate == self.name:
            return True
        if isinstance(candidate, type) and candidate in self.native_types:
            return True
        return self.host.owns(candidate)

    def _object_restricted(self, name: str, role: Role) -> bool:
        return (
            self.is_generic
            and role == "instance"
            and (not self.registry.allow_object_prototype or name in RESTRICTED_OBJECT_METHODS)
        )

    def _can_extend(self, name: str, descriptor: OperationDescriptor, role: Role, options: ExtendOptions) -> bool:
        if self._object_restricted(name, role):
            return False
        # Flags only matter when the host already has an entry of that name.
        if descriptor.flags and self.host.target(role).has(name) and options.flag_disabled(descriptor.flags):
            return False
        return name not in options.except_

    def _excepted(self, options: ExtendOptions) -> bool:
        # Strings in "except" name methods; anything else names a namespace.
        if any(not isinstance(candidate, str) and self.matches(candidate) for candidate in options.except_):
            return True
        if options.namespaces is not None:
            return not any(self.matches(candidate) for candidate in options.namespaces)
        return False

    def extend(self, options: ExtendOptions | Mapping[str, Any] | str | None = None) -> "Namespace":
        """Install this namespace's operations onto its host slot.

        Without a ``methods`` filter the namespace also becomes active, so
        operations defined later are installed as they are defined.
        """
        options = coerce_options(options)
        if self._excepted(options):
            logger.debug("Namespace %s excepted from extend", self.name)
            return self
        if self.is_generic and options.object_prototype is not None:
            self.registry.allow_object_prototype = options.object_prototype

        static_methods: dict[str, OperationFn] = {}
        instance_methods: dict[str, OperationFn] = {}
        names = options.methods if options.methods is not None else tuple(self.operations)
        for name in names:
            descriptor = self.operations.get(name)
            if descriptor is None:
                continue
            if descriptor.instance is not None and self._can_extend(name, descriptor, "instance", options):
                instance_methods[name] = descriptor.instance
            if descriptor.is_static and self._can_extend(name, descriptor, "static", options):
                static_methods[name] = descriptor.fn

        for name, method in static_methods.items():
            self.host.static.install(name, method)
        for name, method in instance_methods.items():
            self.host.instance.install(name, method)
        logger.debug(
            "Extended %s: %d static, %d instance operations",
            self.name,
            len(static_methods),
            len(instance_methods),
        )

        if options.unfiltered:
            self.active = True
            self.active_options = options
        return self

    # ----------------- Calling -----------------

    def get_operation(self, name: str) -> OperationDescriptor:
        try:
            return self.operations[name]
        except KeyError:
            raise UnknownOperationError(self.name, name) from None

    def invoke(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Call the static form of ``name``."""
        return self.get_operation(name)(*args, **kwargs)

    def __getattr__(self, name: str) -> Callable[..., Any]:
        """Operation descriptor by name.

        Only reached for names that are not Namespace attributes; ``invoke``
        works for every operation name.
        """
        if name.startswith("_"):
            raise AttributeError(name)
        operations = self.__dict__.get("operations")
        if operations is None or name not in operations:
            raise UnknownOperationError(self.__dict__.get("name", "?"), name)
        return operations[name]

    def __contains__(self, name: object) -> bool:
        return name in self.operations

    def chain(self, raw: Any) -> Chainable:
        return self.chainable(raw)


class NamespaceRegistry:
    """Registry of namespaces with classification-based dispatch."""

    def __init__(self, settings: RegistrySettings | None = None) -> None:
        self.settings = settings or RegistrySettings()
        self.namespaces: OrderedDict[str, Namespace] = OrderedDict()
        self.default_chainable = new_chainable_class("Chainable")
        self.generic: Namespace | None = None
        self.allow_object_prototype = False
        self._by_classification: dict[str, Namespace] = {}
        self._loaded_modules: list[str] = []

    @property
    def loaded_modules(self) -> tuple[str, ...]:
        return tuple(self._loaded_modules)

    def setup(self) -> "NamespaceRegistry":
        """Create the native namespaces, generic namespace first."""
        names = list(self.settings.native_namespaces)
        generic_name = self.settings.generic_namespace
        if generic_name in names:
            names.remove(generic_name)
        for name in [generic_name, *names]:
            if name not in self.namespaces:
                self.create_namespace(
                    name,
                    native_types=NATIVE_TYPES.get(name, ()),
                    classifications=NATIVE_CLASSIFICATIONS.get(name),
                )
        return self

    def create_namespace(
        self,
        name: str,
        native_types: Iterable[type] = (),
        host: HostSlot | None = None,
        classifications: Iterable[str] | None = None,
    ) -> Namespace:
        if name in self.namespaces:
            raise DuplicateNamespaceError(name)
        native_types = tuple(native_types)
        is_generic = self.generic is None and name == self.settings.generic_namespace
        fallback = None if is_generic or self.generic is None else self.generic.chainable
        namespace = Namespace(
            registry=self,
            name=name,
            native_types=native_types,
            host=host or HostSlot.for_types(native_types),
            chainable=new_chainable_class(name, fallback),
        )
        self.namespaces[name] = namespace
        if is_generic:
            self.generic = namespace
        for tag in classifications if classifications is not None else (name,):
            # First registrant wins.
            self._by_classification.setdefault(tag, namespace)
        if native_types:
            self._map_native_to_chainable(namespace, native_types[0])
        logger.debug("Created namespace %s (%s)", name, ", ".join(t.__name__ for t in native_types))
        return namespace

    def _map_native_to_chainable(self, namespace: Namespace, native_type: type) -> None:
        for name in public_members(native_type, "instance"):
            define_chainable_method(self, namespace.chainable, name, _native_caller(name))

    def namespace_for(self, raw: Any) -> Namespace:
        """The namespace owning ``raw``'s classification, else the generic one."""
        namespace = None
        if raw is not None:
            namespace = self._by_classification.get(classify(raw))
        if namespace is None:
            if self.generic is None:
                raise UnknownOperationError(self.settings.generic_namespace, "<dispatch>")
            namespace = self.generic
        return namespace

    def extend(self, options: ExtendOptions | Mapping[str, Any] | str | None = None) -> "NamespaceRegistry":
        """Extend every namespace with the same options."""
        options = coerce_options(options)
        for namespace in self.namespaces.values():
            namespace.extend(options)
        return self

    def chain(self, raw: Any) -> Chainable:
        """Wrap ``raw`` in the default chainable."""
        return self.default_chainable(raw)

    def load_module(self, name: str) -> None:
        if name in self._loaded_modules:
            return
        module = importlib.import_module(f"chainkit.modules.{name}")
        module.register(self)
        self._loaded_modules.append(name)
        logger.debug("Loaded module %s", name)

    def load_modules(self, names: Iterable[str] | None = None) -> "NamespaceRegistry":
        for name in names if names is not None else self.settings.modules:
            self.load_module(name)
        return self

    def __getitem__(self, name: str) -> Namespace:
        return self.namespaces[name]

    def __getattr__(self, name: str) -> Namespace:
        if name.startswith("_"):
            raise AttributeError(name)
        namespaces = self.__dict__.get("namespaces", {})
        if name in namespaces:
            return namespaces[name]
        raise AttributeError(f"No namespace named {name!r}")

    def __contains__(self, name: object) -> bool:
        return name in self.namespaces

    def __iter__(self):
        return iter(self.namespaces.values())
