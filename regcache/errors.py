"""Exception types raised by regcache.

Misses are not errors: lookups of absent keys or registries return ``False``.
Everything here signals a programmer error or a broken store.
"""


class RegCacheError(Exception):
    """Base exception for the package."""


class InvalidKeyKind(RegCacheError, TypeError):
    """Raised when a key is neither a string nor a number."""


class InvalidRegistryName(RegCacheError, ValueError):
    """Raised when a registry name would overlap the value entry namespace."""


class CorruptDirectory(RegCacheError, ValueError):
    """Raised when a registry's directory entry cannot be decoded."""

    def __init__(self, registry: str, reason: str):
        self.registry = registry
        self.reason = reason
        super().__init__(f"Directory for registry '{registry}' is corrupt: {reason}")


class IdentifierCollision(RegCacheError):
    """Raised when no unused identifier could be minted."""


class SelectionConsumed(RegCacheError, RuntimeError):
    """Raised when a registry selection is used for a second operation."""


class EnumerationUnsupported(RegCacheError):
    """Raised when an operation needs key enumeration the store lacks."""


class StorageFull(RegCacheError):
    """Raised by a store when a write would exceed its quota."""

    def __init__(self, key: str, required: int, quota: int):
        self.key = key
        self.required = required
        self.quota = quota
        super().__init__(
            f"Writing '{key}' needs {required} characters, store quota is {quota}"
        )


class ConfigError(RegCacheError, ValueError):
    """Raised when configuration values are invalid."""
