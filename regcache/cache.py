"""Registry-indexed cache.

Each registry owns one directory entry in the store, named exactly like the
registry, holding a JSON object that maps normalized keys to identifiers.
Values live under ``prefix + identifier``. Human keys therefore never reach
the store, and a registry can be listed or cleared through its directory.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from regcache.errors import (
    ConfigError,
    CorruptDirectory,
    EnumerationUnsupported,
    IdentifierCollision,
    InvalidRegistryName,
    SelectionConsumed,
)
from regcache.keys import new_identifier, normalize_key
from regcache.stores.base import KeyValueStore, store_keys

if TYPE_CHECKING:
    from regcache.config import CacheConfig

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY = "global-cache"
DEFAULT_PREFIX = "_cache_"
MAX_ID_ATTEMPTS = 8

_MISSING = object()


class RegistryCache:
    """Facade over a key-value store that namespaces entries by registry.

    Every operation targets the default registry unless ``registry=`` is
    given, or unless it is called through a :class:`Selection` returned by
    :meth:`registry`. Misses return ``False``; invalid keys raise.
    """

    def __init__(
        self,
        store: KeyValueStore,
        prefix: str = DEFAULT_PREFIX,
        default_registry: str = DEFAULT_REGISTRY,
    ):
        if not prefix:
            raise ConfigError("prefix must not be empty")
        if not default_registry:
            raise ConfigError("default_registry must not be empty")
        default_registry = default_registry.lower()
        if default_registry.startswith(prefix):
            raise InvalidRegistryName(
                f"Default registry '{default_registry}' uses the reserved value prefix '{prefix}'"
            )
        self.store = store
        self.prefix = prefix
        self.default_registry = default_registry

    @classmethod
    def from_config(cls, config: CacheConfig, store: KeyValueStore | None = None) -> RegistryCache:
        """Build a cache from configuration, opening the configured store if none is given."""
        if store is None:
            store = config.open_store()
        return cls(store, prefix=config.prefix, default_registry=config.default_registry)

    # ------------------------------------------------------------------
    # Registry selection
    # ------------------------------------------------------------------

    def registry(self, name: str | None = None) -> Selection:
        """Select a registry for exactly one following operation."""
        return Selection(self, self._resolve_registry(name))

    r = registry

    def _resolve_registry(self, name: str | None) -> str:
        if not name:
            return self.default_registry
        name = normalize_key(name)
        if name.startswith(self.prefix):
            raise InvalidRegistryName(
                f"Registry name '{name}' uses the reserved value prefix '{self.prefix}'"
            )
        return name

    # ------------------------------------------------------------------
    # Directory access
    # ------------------------------------------------------------------

    def load_directory(self, registry: str) -> dict[str, str]:
        raw = self.store.get(registry)
        if raw is None:
            return {}
        try:
            directory = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("Directory entry '%s' is not valid JSON", registry)
            raise CorruptDirectory(registry, str(e)) from e
        if not isinstance(directory, dict) or not all(
            isinstance(v, str) for v in directory.values()
        ):
            logger.error("Directory entry '%s' is not a key-to-identifier object", registry)
            raise CorruptDirectory(registry, "expected an object of identifiers")
        return directory

    def save_directory(self, registry: str, directory: dict[str, str]) -> None:
        if not directory:
            self.store.remove(registry)
            logger.debug("Removed empty directory '%s'", registry)
            return
        self.store.set(registry, json.dumps(directory))

    def _value_key(self, identifier: str) -> str:
        return self.prefix + identifier

    def _mint_identifier(self, directory: dict[str, str]) -> str:
        taken = set(directory.values())
        for _ in range(MAX_ID_ATTEMPTS):
            identifier = new_identifier()
            if identifier in taken:
                continue
            if self.store.get(self._value_key(identifier)) is not None:
                continue
            return identifier
        raise IdentifierCollision(
            f"No unused identifier after {MAX_ID_ATTEMPTS} attempts"
        )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def set(self, key: str | int | float, value: Any = _MISSING, *, registry: str | None = None) -> bool:
        """Store ``value`` under ``key``; strings verbatim, anything else as JSON."""
        key = normalize_key(key)
        if not key or value is _MISSING:
            return False
        name = self._resolve_registry(registry)

        directory = self.load_directory(name)
        identifier = directory.get(key)
        if identifier is None:
            identifier = self._mint_identifier(directory)
            logger.debug("New identifier %s for '%s' in '%s'", identifier, key, name)

        raw = value if isinstance(value, str) else json.dumps(value)
        self.store.set(self._value_key(identifier), raw)

        directory[key] = identifier
        self.save_directory(name, directory)
        return True

    def get(self, key: str | int | float, as_json: bool = False, *, registry: str | None = None) -> Any:
        """Return the cached value, decoded from JSON if ``as_json``, or ``False`` on a miss."""
        key = normalize_key(key)
        name = self._resolve_registry(registry)

        identifier = self.load_directory(name).get(key)
        if identifier is None:
            return False
        raw = self.store.get(self._value_key(identifier))
        if raw is None:
            logger.warning("Value entry for '%s' in '%s' is missing", key, name)
            return False
        return json.loads(raw) if as_json else raw

    def get_all(self, as_json: bool = False, *, registry: str | None = None) -> dict[str, Any] | bool:
        """Return every key/value pair of the registry, or ``False`` if it has no directory."""
        name = self._resolve_registry(registry)
        if self.store.get(name) is None:
            return False

        result = {}
        for key, identifier in self.load_directory(name).items():
            raw = self.store.get(self._value_key(identifier))
            if raw is None:
                logger.warning("Skipping '%s' in '%s': value entry is missing", key, name)
                continue
            result[key] = json.loads(raw) if as_json else raw
        return result

    def has(self, key: str | int | float, *, registry: str | None = None) -> bool:
        """Return whether the registry's directory lists ``key``."""
        key = normalize_key(key)
        return key in self.load_directory(self._resolve_registry(registry))

    def unset(self, key: str | int | float, *, registry: str | None = None) -> bool:
        """Remove one entry. Returns ``False`` if the key was not cached."""
        key = normalize_key(key)
        name = self._resolve_registry(registry)

        directory = self.load_directory(name)
        identifier = directory.pop(key, None)
        if identifier is None:
            return False
        self.store.remove(self._value_key(identifier))
        self.save_directory(name, directory)
        return True

    def clear(self, *, registry: str | None = None) -> bool:
        """Remove every entry of the registry and its directory."""
        name = self._resolve_registry(registry)
        if self.store.get(name) is None:
            return False

        directory = self.load_directory(name)
        for identifier in directory.values():
            self.store.remove(self._value_key(identifier))
        self.store.remove(name)
        logger.debug("Cleared %d entries from '%s'", len(directory), name)
        return True

    def registries(self) -> list[str]:
        """Names of all registries that currently have a directory in the store."""
        keys = store_keys(self.store)
        if keys is None:
            raise EnumerationUnsupported(
                f"{type(self.store).__name__} cannot enumerate its keys"
            )
        return sorted(
            k for k in keys
            if not k.startswith(self.prefix) and _is_directory(self.store.get(k))
        )


def _is_directory(raw: str | None) -> bool:
    # The store is shared, so entries written by other code are skipped.
    if raw is None:
        return False
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return False
    return isinstance(data, dict) and bool(data) and all(isinstance(v, str) for v in data.values())


class Selection:
    """A registry choice that is good for exactly one operation.

    Obtained from :meth:`RegistryCache.registry`. Calling ``registry()`` again
    on a pending selection replaces the choice.
    """

    def __init__(self, cache: RegistryCache, name: str):
        self._cache = cache
        self.name = name
        self._consumed = False

    def __repr__(self) -> str:
        state = "consumed" if self._consumed else "pending"
        return f"Selection('{self.name}', {state})"

    def _take(self) -> str:
        if self._consumed:
            raise SelectionConsumed(
                f"Selection of registry '{self.name}' was already used; select it again"
            )
        self._consumed = True
        return self.name

    def registry(self, name: str | None = None) -> Selection:
        self._take()
        return self._cache.registry(name)

    r = registry

    def set(self, key: str | int | float, value: Any = _MISSING) -> bool:
        return self._cache.set(key, value, registry=self._take())

    def get(self, key: str | int | float, as_json: bool = False) -> Any:
        return self._cache.get(key, as_json, registry=self._take())

    def get_all(self, as_json: bool = False) -> dict[str, Any] | bool:
        return self._cache.get_all(as_json, registry=self._take())

    def has(self, key: str | int | float) -> bool:
        return self._cache.has(key, registry=self._take())

    def unset(self, key: str | int | float) -> bool:
        return self._cache.unset(key, registry=self._take())

    def clear(self) -> bool:
        return self._cache.clear(registry=self._take())
