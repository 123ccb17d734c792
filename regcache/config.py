"""Cache configuration.

Values come from an optional YAML file and are then overridden by
environment variables:

- ``REGCACHE_PREFIX`` -- value entry prefix
- ``REGCACHE_DEFAULT_REGISTRY`` -- registry used when none is selected
- ``REGCACHE_STORE`` -- path of the JSON store file
- ``REGCACHE_QUOTA`` -- store capacity in characters
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from regcache.cache import DEFAULT_PREFIX, DEFAULT_REGISTRY
from regcache.errors import ConfigError
from regcache.stores.file_store import JsonFileStore
from regcache.stores.memory import DEFAULT_QUOTA

DEFAULT_STORE_PATH = Path.home() / ".regcache" / "store.json"

ENV_VARS = {
    "prefix": "REGCACHE_PREFIX",
    "default_registry": "REGCACHE_DEFAULT_REGISTRY",
    "store_path": "REGCACHE_STORE",
    "quota": "REGCACHE_QUOTA",
}


@dataclass
class CacheConfig:
    """Settings for building a :class:`~regcache.cache.RegistryCache`."""

    prefix: str = DEFAULT_PREFIX
    default_registry: str = DEFAULT_REGISTRY
    store_path: Path = DEFAULT_STORE_PATH
    quota: int = DEFAULT_QUOTA

    def __post_init__(self) -> None:
        self.store_path = Path(self.store_path).expanduser()
        try:
            self.quota = int(self.quota)
        except (TypeError, ValueError):
            raise ConfigError(f"quota must be an integer, got {self.quota!r}") from None
        self.default_registry = str(self.default_registry).lower()
        self.validate()

    def validate(self) -> None:
        if not self.prefix:
            raise ConfigError("prefix must not be empty")
        if not self.default_registry:
            raise ConfigError("default_registry must not be empty")
        if self.default_registry.startswith(self.prefix):
            raise ConfigError(
                f"default_registry '{self.default_registry}' starts with prefix '{self.prefix}'"
            )
        if self.quota <= 0:
            raise ConfigError(f"quota must be positive, got {self.quota}")

    def open_store(self) -> JsonFileStore:
        return JsonFileStore(self.store_path, quota=self.quota)


def load_config(path: str | Path | None = None) -> CacheConfig:
    """Load configuration from a YAML file (if given) plus environment overrides."""
    values: dict = {}
    if path is not None:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        unknown = set(data) - set(ENV_VARS)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        values.update(data)

    for field_name, env_name in ENV_VARS.items():
        if env_name in os.environ:
            values[field_name] = os.environ[env_name]

    return CacheConfig(**values)
