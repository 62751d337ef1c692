"""
JSON-file backed list store.

Each store is a single JSON document holding an array of strings. The
file is read fully and rewritten fully; writes go to a temporary file in
the same directory followed by ``os.replace`` so readers never observe a
half-written document. An ``asyncio.Lock`` per store makes it the single
writer inside the process, and every mutation is a read-merge-write
under that lock.
"""

import asyncio
import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

from push_bridge.errors import StoreError

logger = logging.getLogger(__name__)


class JsonListStore:
    """
    Ordered, duplicate-free list of strings persisted as a JSON array.

    A missing file reads as empty. An unreadable or corrupt file reads as
    empty and is logged; it is replaced on the next successful write.
    """

    def __init__(self, path: Path | str, name: str = "store"):
        self._path = Path(path)
        self._name = name
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def name(self) -> str:
        return self._name

    # Synchronous file primitives, run in a worker thread under the lock

    def _read(self) -> list[str]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.error("Error loading %s from %s: %s", self._name, self._path, e)
            return []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("Corrupt %s file %s: %s", self._name, self._path, e)
            return []

        if not isinstance(data, list):
            logger.error(
                "Corrupt %s file %s: expected an array, got %s",
                self._name, self._path, type(data).__name__,
            )
            return []

        items = [item for item in data if isinstance(item, str)]
        if len(items) != len(data):
            logger.warning(
                "Skipped %d non-string entries in %s",
                len(data) - len(items), self._path,
            )
        return unique_in_order(items)

    def _write(self, items: list[str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(items, f, indent=2)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self._path)
            except BaseException:
                try:
                    os.unlink(tmp_path)
                except FileNotFoundError:
                    pass
                raise
        except OSError as e:
            raise StoreError(f"Error saving {self._name} to {self._path}: {e}") from e

    # Async API

    async def all(self) -> list[str]:
        """Return every item in insertion order."""
        async with self._lock:
            return await asyncio.to_thread(self._read)

    async def count(self) -> int:
        return len(await self.all())

    async def contains(self, item: str) -> bool:
        return item in await self.all()

    async def add(self, item: str) -> bool:
        """Append ``item`` if absent. Returns True if the file changed."""
        async with self._lock:
            items = await asyncio.to_thread(self._read)
            if item in items:
                return False
            items.append(item)
            await asyncio.to_thread(self._write, items)
            return True

    async def remove(self, item: str) -> bool:
        """Remove ``item`` if present. Returns True if the file changed."""
        return bool(await self.remove_many([item]))

    async def remove_many(self, items: Iterable[str]) -> list[str]:
        """Remove several items in one write. Returns the items actually removed."""
        targets = set(items)
        async with self._lock:
            current = await asyncio.to_thread(self._read)
            kept = [item for item in current if item not in targets]
            if len(kept) == len(current):
                return []
            await asyncio.to_thread(self._write, kept)
            return [item for item in current if item in targets]

    async def persist(self, items: Iterable[str]) -> list[str]:
        """Replace the whole document with ``items`` (deduplicated)."""
        async with self._lock:
            data = unique_in_order(items)
            await asyncio.to_thread(self._write, data)
            return data


def unique_in_order(items: Iterable[str]) -> list[str]:
    """Drop repeats, keeping the first occurrence."""
    return list(dict.fromkeys(items))
