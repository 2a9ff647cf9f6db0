"""
Unit tests for the session history store.
"""

import json
from unittest.mock import MagicMock

import pytest

from animus.core.constants import HISTORY_STORAGE_KEY
from animus.core.exceptions import DuplicateRecordError, StorageError
from animus.services.history_store import PERSISTENCE_WARNING, HistoryStore
from animus.shared_types.scan import ScanType


class TestAppend:
    """Test adding records."""

    @pytest.mark.asyncio
    async def test_append_newest_first_and_mirrored(self, storage, skin_record, symptom_record):
        store = HistoryStore(storage)

        await store.append(symptom_record)
        result = await store.append(skin_record)

        assert result.persisted
        assert result.warning is None
        assert [record.id for record in store.get_all()] == ["skin-1", "sym-1"]
        stored = storage.get_json(HISTORY_STORAGE_KEY)
        assert [item["id"] for item in stored] == ["skin-1", "sym-1"]
        assert stored[0]["scanType"] == "skin"

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self, storage, skin_record):
        store = HistoryStore(storage)
        await store.append(skin_record)

        with pytest.raises(DuplicateRecordError):
            await store.append(skin_record)
        assert len(store.get_all()) == 1

    @pytest.mark.asyncio
    async def test_storage_failure_keeps_record_in_memory(self, skin_record):
        storage = MagicMock()
        storage.set_json.side_effect = StorageError()
        store = HistoryStore(storage)

        result = await store.append(skin_record)

        assert not result.persisted
        assert result.warning == PERSISTENCE_WARNING
        assert store.get("skin-1") == skin_record

    @pytest.mark.asyncio
    async def test_snapshot_is_immutable(self, storage, skin_record):
        store = HistoryStore(storage)
        snapshot = store.get_all()

        await store.append(skin_record)

        assert snapshot == ()
        assert isinstance(store.get_all(), tuple)


class TestLoad:
    """Test restoring history from local storage."""

    @pytest.mark.asyncio
    async def test_round_trip_through_storage(self, storage, skin_record, vitals_record):
        first = HistoryStore(storage)
        await first.append(skin_record)
        await first.append(vitals_record)

        second = HistoryStore(storage)
        warnings = await second.load()

        assert warnings == []
        assert second.get_all() == first.get_all()

    @pytest.mark.asyncio
    async def test_malformed_items_skipped(self, storage, skin_record):
        storage.set_json(HISTORY_STORAGE_KEY, [skin_record.to_wire(), "junk", {"id": "x", "scanType": "nope"}])
        store = HistoryStore(storage)

        warnings = await store.load()

        assert [record.id for record in store.get_all()] == ["skin-1"]
        assert warnings == ["2 saved scan(s) could not be read and were skipped."]

    @pytest.mark.asyncio
    async def test_invalid_json_gives_empty_history(self, storage):
        storage.set_item(HISTORY_STORAGE_KEY, "{not json")
        store = HistoryStore(storage)

        await store.load()

        assert store.get_all() == ()

    @pytest.mark.asyncio
    async def test_unreadable_storage_warns(self):
        storage = MagicMock()
        storage.get_json.side_effect = StorageError()
        store = HistoryStore(storage)

        warnings = await store.load()

        assert store.get_all() == ()
        assert warnings == ["Saved scan history could not be loaded."]

    @pytest.mark.asyncio
    async def test_legacy_record_upgraded(self, storage):
        legacy = {
            "id": "1706781600000",
            "scanType": "symptom",
            "date": "2024-02-01T10:00:00.000Z",
            "scanData": {"symptoms": "headache"},
            "llmResponse": {"analysis": "Tension headache", "confidence": 0.7, "insights": "Rest"},
        }
        storage.set_item(HISTORY_STORAGE_KEY, json.dumps([legacy]))
        store = HistoryStore(storage)

        await store.load()

        record = store.get("1706781600000")
        assert record.scan_type == ScanType.SYMPTOM
        assert record.scan_data.symptoms == "headache"
        assert record.analysis_result.analysis == "Tension headache"
        assert record.date == "2024-02-01T10:00:00.000Z"

    @pytest.mark.asyncio
    async def test_duplicate_stored_ids_dropped(self, storage, skin_record):
        storage.set_json(HISTORY_STORAGE_KEY, [skin_record.to_wire(), skin_record.to_wire()])
        store = HistoryStore(storage)

        await store.load()

        assert len(store.get_all()) == 1


class TestAttachMedicalHistoryId:
    """Test linking records to created entries."""

    @pytest.mark.asyncio
    async def test_attach_updates_memory_and_storage(self, storage, skin_record):
        store = HistoryStore(storage)
        await store.append(skin_record)

        updated = await store.attach_medical_history_id("skin-1", "mh-1")

        assert updated.medical_history_id == "mh-1"
        assert store.get("skin-1").medical_history_id == "mh-1"
        assert storage.get_json(HISTORY_STORAGE_KEY)[0]["medicalHistoryId"] == "mh-1"

    @pytest.mark.asyncio
    async def test_unknown_record(self, storage):
        store = HistoryStore(storage)
        assert await store.attach_medical_history_id("missing", "mh-1") is None


class TestSubscribe:
    """Test change notifications."""

    @pytest.mark.asyncio
    async def test_listener_receives_snapshots(self, storage, skin_record):
        store = HistoryStore(storage)
        listener = MagicMock()
        store.subscribe(listener)

        await store.append(skin_record)

        listener.assert_called_once_with((skin_record,))

    @pytest.mark.asyncio
    async def test_unsubscribe(self, storage, skin_record):
        store = HistoryStore(storage)
        listener = MagicMock()
        unsubscribe = store.subscribe(listener)

        unsubscribe()
        unsubscribe()
        await store.append(skin_record)

        listener.assert_not_called()

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_block_others(self, storage, skin_record):
        store = HistoryStore(storage)
        good = MagicMock()
        store.subscribe(MagicMock(side_effect=RuntimeError("boom")))
        store.subscribe(good)

        await store.append(skin_record)

        good.assert_called_once()

    @pytest.mark.asyncio
    async def test_latest(self, storage, skin_record, symptom_record):
        store = HistoryStore(storage)
        assert store.latest() is None

        await store.append(symptom_record)
        await store.append(skin_record)

        assert store.latest() == skin_record
