"""Tests for ProcessedLedger."""

import asyncio
import json

import pytest

from push_bridge.storage.ledger import ProcessedLedger, trim_to_retention


@pytest.fixture
def ledger(test_settings):
    return ProcessedLedger(settings=test_settings)


class TestTrimToRetention:
    """Tests for the pure trimming helper."""

    def test_keeps_most_recent(self):
        assert trim_to_retention(["a", "b", "c", "d"], 2) == ["c", "d"]

    def test_under_cap_unchanged(self):
        assert trim_to_retention(["a", "b"], 5) == ["a", "b"]

    def test_non_positive_cap_empties(self):
        assert trim_to_retention(["a"], 0) == []


class TestProcessedLedger:
    """Tests for ProcessedLedger."""

    def test_defaults_from_settings(self, ledger, test_settings):
        assert ledger.path == test_settings.data_dir / "processed_ads.json"
        assert ledger.retention == 500

    @pytest.mark.asyncio
    async def test_record_appends_in_order(self, ledger):
        await ledger.record(["a1", "a2"])
        await ledger.record(["a3"])

        assert await ledger.all() == ["a1", "a2", "a3"]
        assert json.loads(ledger.path.read_text(encoding="utf-8")) == ["a1", "a2", "a3"]

    @pytest.mark.asyncio
    async def test_record_never_duplicates(self, ledger):
        await ledger.record(["a1", "a2"])
        await ledger.record(["a2", "a1", "a3", "a3"])

        assert await ledger.all() == ["a1", "a2", "a3"]

    @pytest.mark.asyncio
    async def test_processed_ids_membership(self, ledger):
        await ledger.record(["a1"])

        processed = await ledger.processed_ids()

        assert "a1" in processed
        assert "a2" not in processed

    @pytest.mark.asyncio
    async def test_bounded_to_500_evicting_oldest(self, ledger):
        await ledger.record([f"ad-{i}" for i in range(450)])
        await ledger.record([f"ad-{i}" for i in range(450, 600)])

        ids = await ledger.all()

        assert len(ids) == 500
        assert ids[0] == "ad-100"
        assert ids[-1] == "ad-599"
        assert "ad-99" not in ids

    @pytest.mark.asyncio
    async def test_custom_retention(self, test_settings):
        ledger = ProcessedLedger(retention=3, settings=test_settings)

        await ledger.record(["a", "b", "c", "d", "e"])

        assert await ledger.all() == ["c", "d", "e"]

    @pytest.mark.asyncio
    async def test_persist_trims(self, test_settings):
        ledger = ProcessedLedger(retention=2, settings=test_settings)

        written = await ledger.persist(["a", "b", "c"])

        assert written == ["b", "c"]

    @pytest.mark.asyncio
    async def test_oversized_file_trimmed_on_next_write(self, ledger):
        ledger.path.write_text(json.dumps([f"old-{i}" for i in range(700)]), encoding="utf-8")

        await ledger.record(["new"])

        ids = await ledger.all()
        assert len(ids) == 500
        assert ids[-1] == "new"

    @pytest.mark.asyncio
    async def test_overlapping_writers_keep_both_sets(self, ledger):
        """Two cycles recording at once must not overwrite each other."""
        await asyncio.gather(
            ledger.record(["cycle1-a", "cycle1-b"]),
            ledger.record(["cycle2-a"]),
        )

        assert set(await ledger.all()) == {"cycle1-a", "cycle1-b", "cycle2-a"}

    @pytest.mark.asyncio
    async def test_two_instances_on_same_file_merge(self, test_settings):
        first = ProcessedLedger(settings=test_settings)
        second = ProcessedLedger(settings=test_settings)

        await first.record(["a"])
        await second.record(["b"])

        assert await first.all() == ["a", "b"]

    @pytest.mark.asyncio
    async def test_add_single_id(self, ledger):
        assert await ledger.add("a") is True
        assert await ledger.add("a") is False
        assert await ledger.all() == ["a"]
