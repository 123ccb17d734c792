"""Persistent store backed by a single JSON file.

The whole mapping is rewritten on every mutation, so this suits the small,
quota-bound data sets the cache is meant for.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from regcache.stores.memory import DEFAULT_QUOTA, MemoryStore

logger = logging.getLogger(__name__)


class JsonFileStore(MemoryStore):
    """File-based store; the file holds one JSON object of string entries."""

    def __init__(self, path: str | Path, quota: int = DEFAULT_QUOTA):
        self.path = Path(path)
        super().__init__(quota=quota, data=self._load())

    def __repr__(self) -> str:
        return f"JsonFileStore(path='{self.path}', entries={len(self)})"

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Store file {self.path} does not hold a JSON object")
        bad = sorted(k for k, v in data.items() if not isinstance(v, str))
        if bad:
            raise ValueError(
                f"Store file {self.path} holds non-string values for: {', '.join(bad)}"
            )
        logger.debug("Loaded %d entries from %s", len(data), self.path)
        return data

    def _persist(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(self._data, f, indent=2)
        tmp.replace(self.path)
