"""Processed-ad ledger.

Ordered log of ad ids that already triggered a dispatch, capped to the
most recent entries. Oldest ids are evicted first.
"""

import asyncio
import logging
from collections.abc import Iterable
from pathlib import Path

from push_bridge.config.settings import Settings, get_settings
from push_bridge.storage.base import JsonListStore, unique_in_order

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = 500


def trim_to_retention(ids: list[str], retention: int = DEFAULT_RETENTION) -> list[str]:
    """Keep the ``retention`` most recently inserted ids."""
    if retention <= 0:
        return []
    return ids[-retention:]


class ProcessedLedger(JsonListStore):
    """
    Durable, size-bounded record of dispatched ad ids.

    ``record`` re-reads the file under the store lock and merges, so two
    writers never overwrite each other's ids.
    """

    def __init__(
        self,
        path: Path | str | None = None,
        retention: int | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        super().__init__(path or settings.processed_ads_path, name="processed ads")
        self._retention = retention or settings.processed_ads_retention

    @property
    def retention(self) -> int:
        return self._retention

    async def processed_ids(self) -> frozenset[str]:
        """Current membership set."""
        return frozenset(await self.all())

    async def record(self, ids: Iterable[str]) -> list[str]:
        """
        Append newly dispatched ids and write the trimmed ledger.

        Args:
            ids: Ids in dispatch order. Ids already present keep their
                original position.

        Returns:
            The ledger contents as written.
        """
        new_ids = list(ids)
        async with self._lock:
            merged = unique_in_order(await asyncio.to_thread(self._read) + new_ids)
            trimmed = trim_to_retention(merged, self._retention)
            if len(trimmed) < len(merged):
                logger.debug(
                    "Evicted %d oldest processed ad id(s)", len(merged) - len(trimmed),
                )
            await asyncio.to_thread(self._write, trimmed)
            return trimmed

    async def add(self, item: str) -> bool:
        if await self.contains(item):
            return False
        await self.record([item])
        return True

    async def persist(self, items: Iterable[str]) -> list[str]:
        return await super().persist(trim_to_retention(unique_in_order(items), self._retention))
