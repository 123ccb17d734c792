"""regcache — registry-indexed caching over a string key-value store.

Values are grouped into named registries so that independent modules can
share one store without key collisions, and a whole registry can be listed
or wiped by name.
"""

from regcache.cache import DEFAULT_PREFIX, DEFAULT_REGISTRY, RegistryCache, Selection
from regcache.config import CacheConfig, load_config
from regcache.errors import (
    ConfigError,
    CorruptDirectory,
    EnumerationUnsupported,
    IdentifierCollision,
    InvalidKeyKind,
    InvalidRegistryName,
    RegCacheError,
    SelectionConsumed,
    StorageFull,
)
from regcache.stores import JsonFileStore, KeyValueStore, MemoryStore, storage_available

__version__ = "0.3.0"

__all__ = [
    "DEFAULT_PREFIX",
    "DEFAULT_REGISTRY",
    "RegistryCache",
    "Selection",
    "CacheConfig",
    "load_config",
    "ConfigError",
    "CorruptDirectory",
    "EnumerationUnsupported",
    "IdentifierCollision",
    "InvalidKeyKind",
    "InvalidRegistryName",
    "RegCacheError",
    "SelectionConsumed",
    "StorageFull",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "storage_available",
]
