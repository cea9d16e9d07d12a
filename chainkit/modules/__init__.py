"""Per-type modules. Each exposes ``register(registry)``."""
