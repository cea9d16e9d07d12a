"""Shared pytest fixtures for chainkit tests."""

from __future__ import annotations

from pathlib import Path
import sys

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from chainkit import build_registry  # noqa: E402
from chainkit.config import RegistrySettings  # noqa: E402
from chainkit.namespaces import NamespaceRegistry  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unit: fast tests without external resources")


@pytest.fixture
def registry() -> NamespaceRegistry:
    """A fully built registry with the default modules loaded."""
    return build_registry(RegistrySettings())


@pytest.fixture
def bare_registry() -> NamespaceRegistry:
    """Native namespaces only, no modules."""
    return NamespaceRegistry(RegistrySettings()).setup()
