"""Namespace registry, extension engine and chainable dispatch."""

from chainkit.namespaces.api import (
    AttributeTarget,
    ClassTarget,
    ExtendOptions,
    HostSlot,
    MappingTarget,
    OperationDescriptor,
)
from chainkit.namespaces.chainable import Chainable
from chainkit.namespaces.registry import Namespace, NamespaceRegistry

__all__ = [
    "AttributeTarget",
    "Chainable",
    "ClassTarget",
    "ExtendOptions",
    "HostSlot",
    "MappingTarget",
    "Namespace",
    "NamespaceRegistry",
    "OperationDescriptor",
]
