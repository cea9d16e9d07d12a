"""Registry settings and their environment overrides."""

from __future__ import annotations

from typing import Mapping
import os

from pydantic import BaseModel, ConfigDict, Field, field_validator

from chainkit.memo import DEFAULT_MEMOIZE_LIMIT

GENERIC_NAMESPACE_ENV = "CHAINKIT_GENERIC_NAMESPACE"
MODULES_ENV = "CHAINKIT_MODULES"
MEMOIZE_LIMIT_ENV = "CHAINKIT_MEMOIZE_LIMIT"

# Object goes first so the generic namespace exists before the others.
DEFAULT_NATIVE_NAMESPACES = ("Object", "Number", "String", "Array", "Date", "RegExp", "Function")
DEFAULT_MODULES = ("es6", "es7", "enumerable")


class RegistrySettings(BaseModel):
    """Settings consumed by :func:`chainkit.build_registry`."""

    model_config = ConfigDict(frozen=True)

    generic_namespace: str = "Object"
    native_namespaces: tuple[str, ...] = DEFAULT_NATIVE_NAMESPACES
    modules: tuple[str, ...] = DEFAULT_MODULES
    memoize_limit: int = Field(default=DEFAULT_MEMOIZE_LIMIT, gt=0)

    @field_validator("native_namespaces", "modules", mode="before")
    @classmethod
    def _split_names(cls, value):
        if isinstance(value, str):
            return tuple(part.strip() for part in value.split(",") if part.strip())
        return value


def load_settings(environ: Mapping[str, str] | None = None, **overrides) -> RegistrySettings:
    """Build settings from environment variables, then explicit overrides."""
    env = os.environ if environ is None else environ
    values: dict[str, object] = {}
    if env.get(GENERIC_NAMESPACE_ENV):
        values["generic_namespace"] = env[GENERIC_NAMESPACE_ENV].strip()
    if env.get(MODULES_ENV) is not None:
        values["modules"] = env[MODULES_ENV]
    if env.get(MEMOIZE_LIMIT_ENV):
        values["memoize_limit"] = env[MEMOIZE_LIMIT_ENV]
    values.update(overrides)
    return RegistrySettings(**values)
