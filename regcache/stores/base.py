"""Store protocol and availability probe."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Protocol, runtime_checkable

from regcache.errors import StorageFull

logger = logging.getLogger(__name__)

PROBE_KEY = "__regcache_probe__"


@runtime_checkable
class KeyValueStore(Protocol):
    """Synchronous string-keyed store.

    ``keys()`` is optional; stores that cannot enumerate simply omit it.
    """

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


def store_keys(store: KeyValueStore) -> Iterable[str] | None:
    """Return the store's keys, or None when it cannot enumerate them."""
    keys = getattr(store, "keys", None)
    if not callable(keys):
        return None
    return keys()


def storage_available(store: KeyValueStore, probe_key: str = PROBE_KEY) -> bool:
    """Check that the store accepts a write, a read-back and a removal.

    Callers run this once before building a cache on top of the store.
    """
    try:
        store.set(probe_key, probe_key)
        ok = store.get(probe_key) == probe_key
        store.remove(probe_key)
    except (StorageFull, OSError) as e:
        logger.warning("Store %r is not usable: %s", store, e)
        return False
    if not ok:
        logger.warning("Store %r did not return the probe value", store)
    return ok
