from __future__ import annotations

import pytest

from chainkit.errors import DisambiguationError, UnknownOperationError
from chainkit.namespaces import NamespaceRegistry
from chainkit.namespaces.chainable import disambiguation_thunk


class Alpha:
    pass


class Beta:
    pass


@pytest.fixture
def pair(bare_registry: NamespaceRegistry):
    alpha = bare_registry.create_namespace("Alpha")
    beta = bare_registry.create_namespace("Beta")
    return bare_registry, alpha, beta


@pytest.mark.unit
def test_colliding_names_dispatch_on_runtime_type(pair) -> None:
    registry, alpha, beta = pair
    alpha.define_instance("describe", lambda raw: "alpha")
    beta.define_instance("describe", lambda raw: "beta")
    assert registry.chain(Alpha()).describe().raw == "alpha"
    assert registry.chain(Beta()).describe().raw == "beta"
    assert getattr(registry.default_chainable._operations["describe"], "disambiguate", False)


@pytest.mark.unit
def test_definition_order_does_not_matter(pair) -> None:
    registry, alpha, beta = pair
    beta.define_instance("describe", lambda raw: "beta")
    alpha.define_instance("describe", lambda raw: "alpha")
    assert registry.chain(Alpha()).describe().raw == "alpha"
    assert registry.chain(Beta()).describe().raw == "beta"


@pytest.mark.unit
def test_single_definition_is_called_directly(pair) -> None:
    registry, alpha, _ = pair
    alpha.define_instance("only_alpha", lambda raw: 1)
    assert registry.chain(Beta()).only_alpha().raw == 1


@pytest.mark.unit
def test_unclaimed_values_fall_back_to_generic(pair) -> None:
    registry, alpha, _ = pair
    registry.Object.define_instance("kind", lambda raw: "generic")
    alpha.define_instance("kind", lambda raw: "alpha")
    assert registry.chain(Alpha()).kind().raw == "alpha"
    assert registry.chain(object()).kind().raw == "generic"
    assert registry.chain(None).kind().raw == "generic"


@pytest.mark.unit
def test_missing_generic_operation_raises(pair) -> None:
    registry, alpha, beta = pair
    alpha.define_instance("shape", lambda raw: "alpha")
    beta.define_instance("shape", lambda raw: "beta")
    with pytest.raises(UnknownOperationError):
        registry.chain(object()).shape()
    with pytest.raises(AttributeError):
        registry.chain(1).nothing_named_this


@pytest.mark.unit
def test_thunk_resolving_to_thunk_raises(bare_registry: NamespaceRegistry) -> None:
    bare_registry.Object.chainable._operations["loop"] = disambiguation_thunk(bare_registry, "loop")
    bare_registry.default_chainable._operations["loop"] = disambiguation_thunk(bare_registry, "loop")
    with pytest.raises(DisambiguationError):
        bare_registry.chain(object()).loop()


@pytest.mark.unit
def test_namespace_chainables_fall_back_to_generic_table(bare_registry: NamespaceRegistry) -> None:
    bare_registry.Object.define_instance("tag", lambda raw: "obj")
    result = bare_registry.Array.chain([1]).tag()
    assert result.raw == "obj"
    assert type(result) is bare_registry.default_chainable


@pytest.mark.unit
def test_native_methods_are_chainable(bare_registry: NamespaceRegistry) -> None:
    assert bare_registry.chain("abc").invoke("upper").raw == "ABC"
    assert bare_registry.chain([1, 1, 2]).count(1).raw == 2
    assert bare_registry.chain("aab").count("a").raw == 2
    assert bare_registry.chain((1, 1)).count(1).raw == 2


@pytest.mark.unit
def test_chainables_are_immutable(bare_registry: NamespaceRegistry) -> None:
    chained = bare_registry.chain(1)
    with pytest.raises(AttributeError):
        chained.raw = 2
    with pytest.raises(AttributeError):
        del chained.raw
    assert chained.value_of() == 1
    assert chained == bare_registry.chain(1)
    assert repr(chained) == "Chainable(1)"


@pytest.mark.unit
def test_enumerable_chains(registry: NamespaceRegistry) -> None:
    assert registry.chain([3, 1, 2]).min().raw == 1
    assert registry.chain({"a": 3, "b": 1}).min().raw == "b"
    assert registry.chain([{"n": 2}, {"n": 1}]).map("n").min().raw == 1
    assert registry.chain([1, 2, 3]).find(lambda n: n > 1).raw == 2
    assert registry.chain([1, 2]).includes(2).raw is True
    assert registry.chain([1, 2, 3]).map_from_index(1, lambda n: n).raw == [2, 3]
