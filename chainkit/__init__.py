"""chainkit: namespaced operation registry with chainable dispatch."""

from __future__ import annotations

import logging

from chainkit import callbacks, matchers, paths
from chainkit.config import RegistrySettings, load_settings
from chainkit.namespaces import Chainable, ExtendOptions, HostSlot, Namespace, NamespaceRegistry
from chainkit.version import __version__

logger = logging.getLogger(__name__)


def build_registry(settings: RegistrySettings | None = None) -> NamespaceRegistry:
    """Create a registry, run its setup and load the configured modules in order."""
    settings = settings or load_settings()
    for memo in (paths.path_memo, matchers.matcher_memo, callbacks.arity_memo):
        memo.limit = settings.memoize_limit
    registry = NamespaceRegistry(settings).setup()
    registry.load_modules()
    logger.debug(
        "Registry ready: %d namespaces, modules %s",
        len(registry.namespaces),
        ", ".join(registry.loaded_modules) or "none",
    )
    return registry


__all__ = [
    "Chainable",
    "ExtendOptions",
    "HostSlot",
    "Namespace",
    "NamespaceRegistry",
    "RegistrySettings",
    "__version__",
    "build_registry",
    "load_settings",
]
