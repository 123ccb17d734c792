"""Key-value stores the cache can sit on.

Any object with ``get``/``set``/``remove`` works; the bundled stores add a
character quota and ``keys()`` enumeration.
"""

from regcache.stores.base import KeyValueStore, storage_available
from regcache.stores.file_store import JsonFileStore
from regcache.stores.memory import MemoryStore

__all__ = ["KeyValueStore", "storage_available", "JsonFileStore", "MemoryStore"]
