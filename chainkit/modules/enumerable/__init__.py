"""Enumerable module: array and mapping iteration, matching and aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING

from chainkit.modules.enumerable import array, from_index, mapping

if TYPE_CHECKING:
    from chainkit.namespaces.registry import NamespaceRegistry


def register(registry: "NamespaceRegistry") -> None:
    array.register(registry)
    mapping.register(registry)
    from_index.register(registry)
