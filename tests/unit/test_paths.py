from __future__ import annotations

import pytest

from chainkit.classify import HOLE
from chainkit.errors import NotWritableError, PathSyntaxError, SequenceRequiredError
from chainkit.paths import Index, Key, Range, deep_get, deep_has, deep_set, parse_path


@pytest.mark.unit
def test_parse_path_steps() -> None:
    assert parse_path("a.b") == (Key("a"), Key("b"))
    assert parse_path("users[0].name") == (Key("users"), Index(0), Key("name"))
    assert parse_path("items[]") == (Key("items"), Index(None))
    assert parse_path("0..1") == (Range(0, 1),)
    assert parse_path("users[1..-1].name") == (Key("users"), Range(1, -1), Key("name"))
    assert parse_path("a['b']") == (Key("a"), Key("'b'"))
    assert parse_path(3) == (Index(3),)
    assert parse_path(["a", 0, "b.c"]) == (Key("a"), Index(0), Key("b.c"))


@pytest.mark.unit
@pytest.mark.parametrize("bad", ["a[", "a]", "a[b..c]"])
def test_malformed_paths_raise(bad: str) -> None:
    with pytest.raises(PathSyntaxError):
        parse_path(bad)
    assert issubclass(PathSyntaxError, ValueError)


@pytest.mark.unit
def test_deep_get_nested_and_missing() -> None:
    obj = {"a": {"b": [10, 20, {"c": "deep"}]}}
    assert deep_get(obj, "a.b[2].c") == "deep"
    assert deep_get(obj, "a.b[-1].c") == "deep"
    assert deep_get(obj, "a.x.y") is None
    assert deep_get(obj, None) is None
    assert deep_get({1: "one"}, "1") == "one"
    assert deep_get(["x", "y"], 1) == "y"


@pytest.mark.unit
def test_dot_access_never_wraps_negative_indexes() -> None:
    assert deep_get([1, 2, 3], "-1") is None
    assert deep_get([1, 2, 3], "[-1]") == 3


@pytest.mark.unit
def test_range_reads_are_inclusive() -> None:
    letters = ["a", "b", "c"]
    assert deep_get(letters, "0..1") == ["a", "b"]
    assert deep_get(letters, "1..-1") == ["b", "c"]
    assert deep_get(letters, "..1") == ["a", "b"]
    users = {"users": [{"n": 1}, {"n": 2}, {"n": 3}]}
    assert deep_get(users, "users[0..1].n") == [1, 2]


@pytest.mark.unit
def test_range_set_touches_only_the_range() -> None:
    arr = [{}, {}, {}]
    deep_set(arr, "0..1.foo", 5)
    assert arr == [{"foo": 5}, {"foo": 5}, {}]

    empty: list = []
    deep_set(empty, "0..1.foo", 5)
    assert empty == [{"foo": 5}, {"foo": 5}]


@pytest.mark.unit
def test_range_has_requires_every_element() -> None:
    assert deep_has([{"a": 1}, {"a": 2}], "0..1.a") is True
    assert deep_has([{"a": 1}, {}], "0..1.a") is False
    assert deep_has([], "0..1") is False


@pytest.mark.unit
def test_range_on_non_sequence_raises() -> None:
    with pytest.raises(SequenceRequiredError):
        deep_get({"a": 1}, "0..1")


@pytest.mark.unit
@pytest.mark.parametrize("path", ["a.b.c", "a.b[2].c", "list[0]", "x[1][0]"])
def test_set_then_get_round_trip(path: str) -> None:
    obj: dict = {}
    deep_set(obj, path, "value")
    assert deep_get(obj, path) == "value"
    assert deep_has(obj, path) is True


@pytest.mark.unit
def test_fill_creates_lists_before_indexes_and_pads_with_holes() -> None:
    obj: dict = {}
    deep_set(obj, "a.b[2].c", 1)
    assert obj["a"]["b"][:2] == [HOLE, HOLE]
    assert obj["a"]["b"][2] == {"c": 1}
    assert deep_has(obj, "a.b[0]") is False
    assert deep_get(obj, "a.b[0]") is None


@pytest.mark.unit
def test_push_syntax_appends() -> None:
    obj = {"items": [1]}
    assert deep_set(obj, "items[]", 2) is obj
    assert obj == {"items": [1, 2]}


@pytest.mark.unit
def test_writing_none_is_a_write() -> None:
    obj = {"a": 1}
    deep_set(obj, "a", None)
    assert obj == {"a": None}
    assert deep_has(obj, "a") is True


@pytest.mark.unit
def test_writes_through_primitives_and_tuples_fail() -> None:
    with pytest.raises(NotWritableError):
        deep_set({"a": 5}, "a.b", 1)
    with pytest.raises(NotWritableError):
        deep_set({"t": (1, 2)}, "t[0]", 5)
    assert issubclass(NotWritableError, TypeError)


@pytest.mark.unit
def test_own_versus_inherited_members() -> None:
    class Base:
        kind = "base"

    obj = Base()
    obj.name = "own"
    assert deep_has(obj, "name") is True
    assert deep_has(obj, "kind") is False
    assert deep_has(obj, "kind", inherited=True) is True
    assert deep_get(obj, "kind") is None
    assert deep_get(obj, "kind", inherited=True) == "base"

    deep_set(obj, "extra", 3)
    assert obj.extra == 3


@pytest.mark.unit
@pytest.mark.parametrize(
    "start, path",
    [
        ({}, "a[-1]"),
        ({}, "a.b[-2].c"),
        ([1], "[-3]"),
        ({"rows": [1]}, "rows[-2]"),
        ([1, 2], "-1"),
    ],
)
def test_unwritable_negative_indexes_leave_input_untouched(start, path: str) -> None:
    before = repr(start)
    with pytest.raises(NotWritableError):
        deep_set(start, path, 5)
    assert repr(start) == before


@pytest.mark.unit
def test_negative_indexes_inside_bounds_still_write() -> None:
    rows = {"rows": [1, 2, 3]}
    deep_set(rows, "rows[-1]", 9)
    assert rows == {"rows": [1, 2, 9]}
