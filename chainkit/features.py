"""
This module defines the chainkit diagnostic features using a unified registry.
The CLI only drives the public API through these handlers.
"""

from typing import (
    Dict,
    Any,
    Callable,
    Optional,
    TypeVar,
    Generic,
)
from dataclasses import dataclass
import json
import logging
import re

from chainkit import build_registry
from chainkit.classify import HOLE
from chainkit.matchers import compile_matcher
from chainkit.namespaces import NamespaceRegistry
from chainkit.paths import deep_get, deep_set

logger = logging.getLogger("chainkit.features")

T = TypeVar("T")

AGGREGATES = ("min", "max", "least", "most", "sum", "average", "median", "count")


class OperationResult(Generic[T]):
    """Wrapper for operation results with success/error handling"""

    def __init__(
        self, success: bool, data: Optional[T] = None, error: Optional[str] = None
    ):
        self.success = success
        self.data = data
        self.error = error


@dataclass
class Feature:
    """A named diagnostic feature"""

    name: str
    description: str
    handler: Callable


class FeatureRegistry:
    """Registry for all chainkit features"""

    _features: Dict[str, Feature] = {}

    @classmethod
    def register(cls, feature: Feature) -> Feature:
        """Register a new feature"""
        cls._features[feature.name] = feature
        return feature

    @classmethod
    def get_feature(cls, name: str) -> Optional[Feature]:
        """Get a feature by name"""
        return cls._features.get(name)

    @classmethod
    def get_all_features(cls) -> Dict[str, Feature]:
        """Get all registered features"""
        return cls._features.copy()


def to_jsonable(value: Any) -> Any:
    """Replace holes and non-JSON values so results can be printed."""
    if value is HOLE:
        return None
    if isinstance(value, dict):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return repr(value)


def _registry(registry: Optional[NamespaceRegistry]) -> NamespaceRegistry:
    return registry if registry is not None else build_registry()


# ----------------- Feature Handlers -----------------


def handle_version(**kwargs) -> OperationResult[Dict[str, str]]:
    """Handle version request"""
    from chainkit.version import get_version

    return OperationResult[Dict[str, str]](
        success=True, data={"version": get_version()}
    )


def handle_namespaces(
    registry: Optional[NamespaceRegistry] = None, **kwargs
) -> OperationResult[Dict[str, Any]]:
    """Summarize every namespace of a freshly built registry"""
    registry = _registry(registry)
    namespaces = {
        namespace.name: {
            "operations": len(namespace.operations),
            "active": namespace.active,
            "native_types": [t.__name__ for t in namespace.native_types],
            "generic": namespace.is_generic,
        }
        for namespace in registry
    }
    return OperationResult[Dict[str, Any]](
        success=True,
        data={"namespaces": namespaces, "modules": list(registry.loaded_modules)},
    )


def handle_operations(
    namespace: str, registry: Optional[NamespaceRegistry] = None, **kwargs
) -> OperationResult[Dict[str, Any]]:
    """List the operations of one namespace"""
    registry = _registry(registry)
    if namespace not in registry:
        return OperationResult[Dict[str, Any]](
            success=False, error=f"Unknown namespace: {namespace}"
        )
    operations = {
        name: {
            "static": descriptor.is_static,
            "instance": descriptor.instance is not None,
            "flags": list(descriptor.flags),
            "collects_arguments": descriptor.collects_arguments,
        }
        for name, descriptor in registry[namespace].operations.items()
    }
    return OperationResult[Dict[str, Any]](
        success=True, data={"namespace": namespace, "operations": operations}
    )


def handle_get(document: str, path: str, **kwargs) -> OperationResult[Dict[str, Any]]:
    """Read a deep path from a JSON document"""
    try:
        value = deep_get(json.loads(document), path)
    except (ValueError, TypeError) as e:
        return OperationResult[Dict[str, Any]](success=False, error=str(e))
    return OperationResult[Dict[str, Any]](
        success=True, data={"path": path, "value": to_jsonable(value)}
    )


def handle_set(
    document: str, path: str, value: str, **kwargs
) -> OperationResult[Dict[str, Any]]:
    """Write a JSON value at a deep path of a JSON document"""
    try:
        result = deep_set(json.loads(document), path, json.loads(value))
    except (ValueError, TypeError) as e:
        return OperationResult[Dict[str, Any]](success=False, error=str(e))
    return OperationResult[Dict[str, Any]](
        success=True, data={"path": path, "document": to_jsonable(result)}
    )


def handle_match(
    spec: str, value: str, pattern: bool = False, **kwargs
) -> OperationResult[Dict[str, Any]]:
    """Match a JSON value against a JSON spec, or a regular expression"""
    try:
        compiled_spec = re.compile(spec) if pattern else json.loads(spec)
        candidate = json.loads(value)
    except (ValueError, re.error) as e:
        return OperationResult[Dict[str, Any]](success=False, error=str(e))
    matched = compile_matcher(compiled_spec)(candidate)
    return OperationResult[Dict[str, Any]](success=True, data={"matched": bool(matched)})


def handle_aggregate(
    operation: str,
    document: str,
    map: Optional[str] = None,
    all: bool = False,
    registry: Optional[NamespaceRegistry] = None,
    **kwargs,
) -> OperationResult[Dict[str, Any]]:
    """Run an enumerable aggregate over a JSON array or object"""
    if operation not in AGGREGATES:
        return OperationResult[Dict[str, Any]](
            success=False,
            error=f"Unknown aggregate '{operation}' (expected one of {', '.join(AGGREGATES)})",
        )
    registry = _registry(registry)
    try:
        data = json.loads(document)
        namespace = registry.namespace_for(data)
        if operation == "count":
            args = () if map is None else (map,)
        elif operation in ("sum", "average", "median"):
            args = (map,)
        else:
            args = (all, map)
        result = namespace.invoke(operation, data, *args)
    except (ValueError, TypeError, AttributeError) as e:
        return OperationResult[Dict[str, Any]](success=False, error=str(e))
    return OperationResult[Dict[str, Any]](
        success=True,
        data={"operation": operation, "namespace": namespace.name, "result": to_jsonable(result)},
    )


# ----------------- Feature Registration -----------------

version_feature = FeatureRegistry.register(
    Feature(
        name="version",
        description="Show the chainkit version",
        handler=handle_version,
    )
)

namespaces_feature = FeatureRegistry.register(
    Feature(
        name="namespaces",
        description="List namespaces and loaded modules",
        handler=handle_namespaces,
    )
)

operations_feature = FeatureRegistry.register(
    Feature(
        name="operations",
        description="List the operations of a namespace",
        handler=handle_operations,
    )
)

get_feature = FeatureRegistry.register(
    Feature(
        name="get",
        description="Read a deep path from a JSON document",
        handler=handle_get,
    )
)

set_feature = FeatureRegistry.register(
    Feature(
        name="set",
        description="Write a value at a deep path of a JSON document",
        handler=handle_set,
    )
)

match_feature = FeatureRegistry.register(
    Feature(
        name="match",
        description="Match a JSON value against a spec",
        handler=handle_match,
    )
)

aggregate_feature = FeatureRegistry.register(
    Feature(
        name="aggregate",
        description="Run an enumerable aggregate over a JSON document",
        handler=handle_aggregate,
    )
)
