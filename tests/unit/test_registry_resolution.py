from __future__ import annotations

import logging

import pytest

from chainkit import build_registry
from chainkit.config import RegistrySettings
from chainkit.errors import DuplicateNamespaceError, NotCallableError, UnknownOperationError
from chainkit.namespaces import ExtendOptions, HostSlot, NamespaceRegistry
from chainkit.namespaces.api import coerce_options


def _snapshot(registry: NamespaceRegistry) -> dict[str, tuple[dict, dict]]:
    return {
        namespace.name: (dict(namespace.host.static.entries), dict(namespace.host.instance.entries))
        for namespace in registry
    }


@pytest.mark.unit
def test_setup_creates_generic_namespace_first(bare_registry: NamespaceRegistry) -> None:
    names = [namespace.name for namespace in bare_registry]
    assert names[0] == "Object"
    assert bare_registry.Object.is_generic is True
    assert bare_registry.Array.is_generic is False
    assert set(names) == {"Object", "Number", "String", "Array", "Date", "RegExp", "Function"}


@pytest.mark.unit
def test_modules_load_in_configured_order(registry: NamespaceRegistry) -> None:
    assert registry.loaded_modules == ("es6", "es7", "enumerable")
    registry.load_module("es6")
    assert registry.loaded_modules == ("es6", "es7", "enumerable")
    with pytest.raises(ModuleNotFoundError):
        registry.load_module("does_not_exist")


@pytest.mark.unit
def test_duplicate_namespace_names_are_rejected(bare_registry: NamespaceRegistry) -> None:
    bare_registry.create_namespace("Widget")
    with pytest.raises(DuplicateNamespaceError):
        bare_registry.create_namespace("Widget")
    with pytest.raises(DuplicateNamespaceError):
        bare_registry.create_namespace("Array")


@pytest.mark.unit
def test_namespace_for_dispatches_on_classification(bare_registry: NamespaceRegistry) -> None:
    class Widget:
        pass

    widgets = bare_registry.create_namespace("Widget")
    assert bare_registry.namespace_for([1]) is bare_registry.Array
    assert bare_registry.namespace_for((1,)) is bare_registry.Array
    assert bare_registry.namespace_for("x") is bare_registry.String
    assert bare_registry.namespace_for(2.5) is bare_registry.Number
    assert bare_registry.namespace_for(Widget()) is widgets
    assert bare_registry.namespace_for(True) is bare_registry.Object
    assert bare_registry.namespace_for(None) is bare_registry.Object
    assert bare_registry.namespace_for(object()) is bare_registry.Object


@pytest.mark.unit
def test_define_and_invoke_static(bare_registry: NamespaceRegistry) -> None:
    ns = bare_registry.create_namespace("Widget")
    ns.define_static("double", lambda n: n * 2)
    assert ns.invoke("double", 4) == 8
    assert ns.double(4) == 8
    assert "double" in ns
    with pytest.raises(UnknownOperationError):
        ns.invoke("triple", 1)
    with pytest.raises(AttributeError):
        ns.triple


@pytest.mark.unit
def test_non_callable_fails_at_call_time(bare_registry: NamespaceRegistry) -> None:
    ns = bare_registry.create_namespace("Widget")
    ns.define_static("broken", 42)
    with pytest.raises(NotCallableError):
        ns.invoke("broken")


@pytest.mark.unit
def test_alias(bare_registry: NamespaceRegistry) -> None:
    ns = bare_registry.create_namespace("Widget")
    ns.define_static("double", lambda n: n * 2)
    ns.alias("twice", "double")
    ns.alias("answer", lambda: 42)
    assert ns.invoke("twice", 3) == 6
    assert ns.get_operation("twice").name == "twice"
    assert ns.invoke("answer") == 42
    with pytest.raises(UnknownOperationError):
        ns.alias("nothing", "missing")


@pytest.mark.unit
def test_collected_arguments(bare_registry: NamespaceRegistry) -> None:
    ns = bare_registry.create_namespace("Widget")
    ns.define_static_with_arguments("add_all", lambda first, rest: first + sum(rest), arity=1)
    assert ns.invoke("add_all", 1, 2, 3) == 6
    assert ns.invoke("add_all", 5) == 5

    ns.define_instance_with_arguments(
        {"join_all": lambda receiver, sep, rest: sep.join([receiver, *rest])}, arity=2
    )
    assert ns.invoke("join_all", "a", "-", "b", "c") == "a-b-c"
    descriptor = ns.get_operation("join_all")
    assert descriptor.collects_arguments is True
    assert descriptor.arity == 2

    ns.define_static_with_arguments(
        {"gather": lambda rest: rest, "split_first": lambda head, rest: (head, rest)},
        arity={"split_first": 1},
    )
    assert ns.invoke("gather", 1, 2) == [1, 2]
    assert ns.invoke("split_first", 1, 2) == (1, [2])


@pytest.mark.unit
def test_extend_installs_and_activates(bare_registry: NamespaceRegistry) -> None:
    ns = bare_registry.create_namespace("Widget")
    ns.define_static("double", lambda n: n * 2)
    ns.define_instance("size", lambda raw: len(raw))
    assert not ns.host.static.has("double")

    ns.extend()
    assert ns.active is True
    assert ns.active_options.unfiltered is True
    assert ns.host.static.get("double")(2) == 4
    assert ns.host.instance.get("size")("abc") == 3
    assert not ns.host.static.has("size")

    # Operations defined after activation are installed immediately.
    ns.define_static("triple", lambda n: n * 3)
    assert ns.host.static.get("triple")(2) == 6


@pytest.mark.unit
def test_extend_with_method_filter_does_not_activate(bare_registry: NamespaceRegistry) -> None:
    ns = bare_registry.create_namespace("Widget")
    ns.define_static({"a": lambda: "a", "b": lambda: "b"})
    ns.extend({"methods": ["a"]})
    assert ns.host.static.has("a")
    assert not ns.host.static.has("b")
    assert ns.active is False

    ns.extend("b")
    assert ns.host.static.has("b")
    assert ns.active is False


@pytest.mark.unit
def test_extend_is_idempotent(registry: NamespaceRegistry) -> None:
    registry.extend()
    first = _snapshot(registry)
    registry.extend()
    assert _snapshot(registry) == first


@pytest.mark.unit
def test_except_names_methods_with_strings(registry: NamespaceRegistry) -> None:
    registry.extend({"except": ["sum"]})
    assert not registry.Array.host.instance.has("sum")
    assert registry.Array.host.instance.has("median")
    assert not registry.Object.host.static.has("sum")
    assert registry.Array.active is True
    assert registry.Array.active_options.except_ == ("sum",)


@pytest.mark.unit
def test_active_reextension_keeps_exceptions(bare_registry: NamespaceRegistry) -> None:
    ns = bare_registry.create_namespace("Widget")
    ns.extend({"except": ["hidden"]})
    ns.define_static({"hidden": lambda: 1, "shown": lambda: 2})
    assert not ns.host.static.has("hidden")
    assert ns.host.static.has("shown")


@pytest.mark.unit
def test_except_and_namespaces_select_namespaces(registry: NamespaceRegistry) -> None:
    registry.extend({"except": [str]})
    assert registry.String.active is False
    assert registry.Array.active is True

    registry.extend(ExtendOptions(namespaces=[registry.String]))
    assert registry.String.active is True


@pytest.mark.unit
def test_namespaces_option_accepts_native_types(bare_registry: NamespaceRegistry) -> None:
    bare_registry.extend({"namespaces": [list]})
    assert bare_registry.Array.active is True
    assert bare_registry.String.active is False


@pytest.mark.unit
def test_flags_only_block_existing_host_entries(bare_registry: NamespaceRegistry) -> None:
    ns = bare_registry.create_namespace("Text", native_types=(str,))

    def shout(raw):
        return raw.upper() + "!"

    ns.define_instance({"upper": shout, "shout": shout}, ["enhance"])
    ns.extend({"enhance": False})
    assert ns.host.instance.get("upper") is str.upper
    assert ns.host.instance.get("shout") is shout

    ns.extend()
    assert ns.host.instance.get("upper") is shout


@pytest.mark.unit
def test_generic_instance_target_is_restricted(registry: NamespaceRegistry) -> None:
    obj = registry.Object
    registry.extend()
    assert obj.host.static.has("sum")
    assert not obj.host.instance.has("sum")

    obj.extend({"objectPrototype": True})
    assert registry.allow_object_prototype is True
    assert obj.host.instance.has("sum")

    obj.define_instance("get", lambda raw, key: raw[key])
    assert obj.host.instance.get("get") is dict.get


@pytest.mark.unit
def test_class_hosts(bare_registry: NamespaceRegistry) -> None:
    class Host:
        pass

    ns = bare_registry.create_namespace("Host", host=HostSlot.for_class(Host))
    ns.define_instance("describe", lambda obj: f"host:{type(obj).__name__}")
    ns.define_static("make", lambda: Host())
    ns.extend()
    assert Host().describe() == "host:Host"
    assert isinstance(Host.make(), Host)
    assert ns.matches(Host) is True

    other = bare_registry.create_namespace("Other", host=HostSlot.for_class(type("Other", (), {})))
    other.define_static("ping", lambda: "pong")
    bare_registry.extend({"except": [Host]})
    assert other.active is True


@pytest.mark.unit
def test_polyfills_install_only_when_absent(bare_registry: NamespaceRegistry) -> None:
    array = bare_registry.Array

    def first(source):
        return "first"

    def second(source):
        return "second"

    array.define_static_polyfill({"from_": first})
    array.define_static_polyfill({"from_": second})
    assert array.host.static.get("from_") is first
    array.define_static_polyfill({"from_": second}, override=True)
    assert array.host.static.get("from_") is second
    assert "from_" not in array


@pytest.mark.unit
def test_instance_polyfill_always_reaches_chainables(bare_registry: NamespaceRegistry) -> None:
    bare_registry.String.define_instance_polyfill({"upper": lambda raw: raw.upper() + "!"})
    assert bare_registry.String.host.instance.get("upper") is str.upper
    assert bare_registry.chain("abc").upper().raw == "ABC!"


@pytest.mark.unit
def test_extend_options_parsing() -> None:
    options = ExtendOptions.model_validate({"except": ["a"], "enhanceString": False})
    assert options.except_ == ("a",)
    assert options.enhance_string is False
    assert options.flag_disabled(("enhance", "enhance_string")) is True
    assert options.flag_disabled(("enhance",)) is False
    assert coerce_options("sum").methods == ("sum",)
    assert coerce_options(None).unfiltered is True
    assert coerce_options({"enhance_array": False}).enhance_array is False
    assert options.restricted_to("x").methods == ("x",)


@pytest.mark.unit
def test_shadowed_operation_names_warn(bare_registry: NamespaceRegistry, caplog: pytest.LogCaptureFixture) -> None:
    ns = bare_registry.create_namespace("Widget")
    with caplog.at_level(logging.WARNING, logger="chainkit.namespaces.registry"):
        ns.define_static("chain", lambda raw: "operation")
    assert "Widget.chain is shadowed" in caplog.text
    assert ns.invoke("chain", 1) == "operation"
    assert ns.chain(1).raw == 1


@pytest.mark.unit
def test_bundled_modules_do_not_shadow_namespace_attributes(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="chainkit.namespaces.registry"):
        build_registry(RegistrySettings())
    assert "shadowed" not in caplog.text
