"""In-process store with a character quota."""

from __future__ import annotations

from typing import Iterator, Optional

from regcache.errors import StorageFull

DEFAULT_QUOTA = 5_000_000


class MemoryStore:
    """Dict-backed store.

    Usage is the total length of all keys and values. A write that would
    push usage past ``quota`` raises :class:`StorageFull` and changes nothing.
    """

    def __init__(self, quota: int = DEFAULT_QUOTA, data: dict[str, str] | None = None):
        self.quota = quota
        self._data: dict[str, str] = dict(data or {})

    def __repr__(self) -> str:
        return f"{type(self).__name__}(entries={len(self._data)}, quota={self.quota})"

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    @property
    def usage(self) -> int:
        return sum(len(k) + len(v) for k, v in self._data.items())

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        value = str(value)
        current = self._data.get(key)
        freed = len(key) + len(current) if current is not None else 0
        required = self.usage - freed + len(key) + len(value)
        if required > self.quota:
            raise StorageFull(key, required, self.quota)
        self._data[key] = value
        try:
            self._persist()
        except OSError:
            if current is None:
                del self._data[key]
            else:
                self._data[key] = current
            raise

    def remove(self, key: str) -> None:
        current = self._data.pop(key, None)
        if current is None:
            return
        try:
            self._persist()
        except OSError:
            self._data[key] = current
            raise

    def keys(self) -> Iterator[str]:
        return iter(list(self._data))

    def _persist(self) -> None:
        """Hook for subclasses that keep a durable copy."""
