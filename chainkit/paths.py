"""
Deep path resolution over nested mappings, sequences and objects.

Paths are dot-separated keys with optional bracket accessors and inclusive
ranges, for example ``users[0].name``, ``rows[-1]``, ``items[]`` (append on
set), ``0..1`` or ``users[1..-1].name``. Path strings are parsed with Lark
and the parsed steps are memoized.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping, MutableSequence
from dataclasses import dataclass
from typing import Any, Sequence, Union
import logging

from lark import Lark, Token, Transformer
from lark.exceptions import UnexpectedInput, VisitError

from chainkit.classify import HOLE, is_sequence
from chainkit.errors import (
    NotWritableError,
    PathSyntaxError,
    SequenceRequiredError,
    assert_sequence,
    assert_writable,
)
from chainkit.memo import BoundedMemo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Key:
    """Named member access (``a`` in ``a.b``)."""

    name: str


@dataclass(frozen=True)
class Index:
    """Bracket accessor; ``position`` is None for the ``[]`` append form."""

    position: int | None


@dataclass(frozen=True)
class Range:
    """Inclusive index range; an end of -1 runs through the last element."""

    start: int | None
    end: int | None


Step = Union[Key, Index, Range]
PathLike = Union[str, int, Sequence[Union[str, int]]]


# Lark grammar for deep paths
path_grammar = r"""
    path: segment ("." segment)*

    segment: KEY? accessor*             -> key_segment
           | KEY? RANGE KEY?            -> range_segment

    accessor: "[" KEY? "]"              -> index
            | "[" KEY? RANGE KEY? "]"   -> bracket_range

    RANGE: ".."
    KEY: /[^.\[\]]+/
"""


def _as_int(text: str) -> int | None:
    try:
        return int(text)
    except ValueError:
        return None


def _range_from(children: list[Token]) -> Range:
    bounds: list[int | None] = [None, None]
    side = 0
    for child in children:
        if child.type == "RANGE":
            side = 1
            continue
        number = _as_int(str(child))
        if number is None:
            raise PathSyntaxError(str(child), "range bounds must be integers")
        bounds[side] = number
    return Range(start=bounds[0], end=bounds[1])


class PathTransformer(Transformer):
    """Transform the parse tree into a flat tuple of steps"""

    def path(self, segments):
        steps: list[Step] = []
        for segment in segments:
            steps.extend(segment)
        return tuple(steps)

    def key_segment(self, children):
        if not children:
            return [Key("")]
        steps: list[Step] = []
        for child in children:
            if isinstance(child, Token):
                steps.append(Key(str(child)))
            else:
                steps.append(child)
        return steps

    def range_segment(self, children):
        return [_range_from(children)]

    def index(self, children):
        if not children:
            return Index(None)
        text = str(children[0])
        number = _as_int(text)
        # Non-numeric bracket content is a plain key: a["b"] style access.
        return Index(number) if number is not None else Key(text)

    def bracket_range(self, children):
        return _range_from(children)


path_parser = Lark(path_grammar, start="path", parser="lalr")


def _parse_path_string(path: str) -> tuple[Step, ...]:
    try:
        tree = path_parser.parse(path)
    except UnexpectedInput as exc:
        raise PathSyntaxError(path, str(exc).splitlines()[0]) from exc
    try:
        return PathTransformer().transform(tree)
    except VisitError as exc:
        if isinstance(exc.orig_exc, PathSyntaxError):
            raise PathSyntaxError(path, "range bounds must be integers") from exc.orig_exc
        raise


path_memo: BoundedMemo[str, tuple[Step, ...]] = BoundedMemo(_parse_path_string)


def parse_path(path: PathLike) -> tuple[Step, ...]:
    """Parse ``path`` into resolver steps.

    Strings go through the grammar (memoized); an int is a single index;
    a list or tuple is taken as already split keys.
    """
    if isinstance(path, str):
        return path_memo(path)
    if isinstance(path, int) and not isinstance(path, bool):
        return (Index(path),)
    if isinstance(path, (list, tuple)):
        return tuple(
            Index(part) if isinstance(part, int) and not isinstance(part, bool) else Key(str(part))
            for part in path
        )
    return (Key(str(path)),)


# ----------------- Container access -----------------


def _mapping_key(node: Mapping, key: Any) -> Any:
    if key in node:
        return key
    if isinstance(key, str):
        number = _as_int(key)
        if number is not None and number in node:
            return number
    elif isinstance(key, int) and str(key) in node:
        return str(key)
    return key


def _step_key(node: Any, step: Step, setting: bool) -> Any:
    if isinstance(step, Key):
        if isinstance(node, Mapping):
            return _mapping_key(node, step.name)
        if is_sequence(node) or isinstance(node, str):
            number = _as_int(step.name)
            # Dot access never wraps: "-1" only counts from the end in brackets.
            if setting and number is not None and number < 0:
                raise NotWritableError(node, step.name)
            return number if number is not None else step.name
        return step.name

    position = step.position
    if position is None:
        if not setting:
            return ""
        if not isinstance(node, MutableSequence):
            raise SequenceRequiredError(node)
        return len(node)
    if isinstance(node, Mapping):
        return _mapping_key(node, position)
    if position < 0 and (is_sequence(node) or isinstance(node, str)):
        position += len(node)
        if setting and position < 0:
            raise NotWritableError(node, step.position)
    return position


def _has_own(node: Any, key: Any, inherited: bool) -> bool:
    if node is None or node is HOLE:
        return False
    if isinstance(node, Mapping):
        if key in node:
            return True
        return inherited and isinstance(key, str) and hasattr(node, key)
    if is_sequence(node) or isinstance(node, str):
        if isinstance(key, int):
            return 0 <= key < len(node) and node[key] is not HOLE
        return inherited and hasattr(node, key)
    name = str(key)
    if inherited:
        return hasattr(node, name)
    if name in getattr(node, "__dict__", {}):
        return True
    return name in getattr(type(node), "__slots__", ()) and hasattr(node, name)


def _fetch(node: Any, key: Any) -> Any:
    if isinstance(node, Mapping) and key in node:
        return node[key]
    if (is_sequence(node) or isinstance(node, str)) and isinstance(key, int):
        value = node[key]
        return None if value is HOLE else value
    return getattr(node, str(key))


def _store(node: Any, key: Any, value: Any) -> None:
    assert_writable(node, key)
    if isinstance(node, MutableMapping):
        node[key] = value
    elif isinstance(node, Mapping):
        raise NotWritableError(node, key)
    elif isinstance(node, MutableSequence):
        if not isinstance(key, int):
            raise NotWritableError(node, key)
        length = len(node)
        if key >= length:
            node.extend([HOLE] * (key - length))
            node.append(value)
        else:
            node[key] = value
    else:
        setattr(node, str(key), value)


# ----------------- Resolution -----------------


def _resolve(
    obj: Any,
    steps: tuple[Step, ...],
    *,
    inherited: bool = False,
    has: bool = False,
    fill: bool = False,
    fill_last: bool = False,
    setting: bool = False,
    value: Any = None,
) -> Any:
    node = obj
    last = len(steps) - 1
    for position, step in enumerate(steps):
        if isinstance(step, Range):
            return _resolve_range(
                node,
                step,
                steps[position + 1:],
                inherited=inherited,
                has=has,
                setting=setting,
                value=value,
            )

        is_last = position == last
        key = _step_key(node, step, setting)
        exists = _has_own(node, key, inherited)

        # Intermediates are filled on write; the last step only on request.
        if fill and (not is_last or fill_last) and not exists:
            following = steps[position + 1] if not is_last else None
            if isinstance(following, (Index, Range)) or (fill_last and is_last):
                child: Any = []
            else:
                child = {}
            _store(node, key, child)
            node = child
            continue

        if has:
            if is_last or not exists:
                return exists
        elif setting and is_last:
            _store(node, key, value)

        node = _fetch(node, key) if exists else None
    return node


def _resolve_range(
    node: Any,
    step: Range,
    trailing: tuple[Step, ...],
    *,
    inherited: bool,
    has: bool,
    setting: bool,
    value: Any,
) -> Any:
    assert_sequence(node)
    length = len(node)
    start = step.start or 0
    if step.end is None or step.end == -1:
        end = length
    else:
        end = step.end + 1

    if setting:
        if start < 0:
            start += length
        if end < 0:
            end += length
        for index in range(max(0, start), end):
            _resolve(node, (Index(index),) + trailing, inherited=inherited, fill=True, setting=True, value=value)
        return node

    items = [None if item is HOLE else item for item in node[start:end]]
    if has:
        if not trailing:
            return bool(items)
        return bool(items) and all(_resolve(item, trailing, inherited=inherited, has=True) for item in items)
    if trailing:
        return [_resolve(item, trailing, inherited=inherited) for item in items]
    return items


def _check_writable(obj: Any, steps: tuple[Step, ...]) -> None:
    """Raise before anything is filled when an index in ``steps`` cannot be written."""
    node = obj
    for position, step in enumerate(steps):
        if isinstance(step, Range):
            return
        key = _step_key(node, step, setting=True)
        if not _has_own(node, key, False):
            # Everything after a missing step is created empty.
            for later in steps[position + 1:]:
                if isinstance(later, Range):
                    return
                if isinstance(later, Index) and later.position is not None and later.position < 0:
                    raise NotWritableError([], later.position)
            return
        node = _fetch(node, key)


def deep_get(obj: Any, path: PathLike | None, inherited: bool = False) -> Any:
    """Return the value at ``path`` inside ``obj`` or None when absent.

    Range segments return a list with any trailing path applied per element.
    With ``inherited`` set, attribute lookup through the class hierarchy is
    honored in addition to own keys.
    """
    if path is None:
        return None
    return _resolve(obj, parse_path(path), inherited=inherited)


def deep_has(obj: Any, path: PathLike | None, inherited: bool = False) -> bool:
    """Return True when ``path`` exists inside ``obj``."""
    if path is None:
        return False
    return bool(_resolve(obj, parse_path(path), inherited=inherited, has=True))


def deep_set(obj: Any, path: PathLike | None, value: Any) -> Any:
    """Write ``value`` at ``path``, creating missing intermediates, and return ``obj``.

    Missing intermediates become lists when the next step is an index or a
    range and dicts otherwise. ``[]`` appends; ranges write every index.
    """
    if path is None:
        return obj
    steps = parse_path(path)
    logger.debug("deep_set %r (%d steps)", path, len(steps))
    _check_writable(obj, steps)
    _resolve(obj, steps, fill=True, setting=True, value=value)
    return obj
