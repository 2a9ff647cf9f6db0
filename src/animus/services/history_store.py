"""
Session-owned scan history store.

Holds the insertion-ordered (newest first) list of scan records for one
application session and mirrors every change to local storage. All
mutations go through a single lock so the stored blob and the in-memory
list never interleave.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from pydantic import ValidationError

from animus.core.constants import HISTORY_STORAGE_KEY
from animus.core.exceptions import AnimusError, DuplicateRecordError, StorageError
from animus.services.scan_normalizer import normalize_scan_response
from animus.services.storage_service import KeyValueStorage
from animus.shared_types.scan import ScanRecord
from animus.utils.datetime_utils import parse_iso_datetime

logger = logging.getLogger(__name__)

HistoryListener = Callable[[Tuple[ScanRecord, ...]], None]

PERSISTENCE_WARNING = "Your scan was added but could not be saved on this device. It may be lost if the app closes."


@dataclass(frozen=True)
class AppendResult:
    """Outcome of adding a record: the record plus whether it reached local storage."""
    record: ScanRecord
    persisted: bool
    warning: Optional[str] = None


class HistoryStore:
    """
    Explicit history store exposing append, get_all and subscribe.

    Lifecycle is owned by the application session; there is no module-level
    instance.
    """

    def __init__(self, storage: KeyValueStorage, storage_key: str = HISTORY_STORAGE_KEY) -> None:
        super().__init__()
        self.storage = storage
        self.storage_key = storage_key
        self._records: Tuple[ScanRecord, ...] = ()
        self._listeners: List[HistoryListener] = []
        self._lock = asyncio.Lock()

    async def load(self) -> List[str]:
        """
        Replace in-memory history with what local storage holds.

        Returns:
            Warnings for anything that could not be read (never raises)
        """
        warnings: List[str] = []
        async with self._lock:
            try:
                stored = self.storage.get_json(self.storage_key, default=[])
            except StorageError as e:
                logger.warning(f"Could not read scan history from local storage: {e}")
                warnings.append("Saved scan history could not be loaded.")
                stored = []

            if not isinstance(stored, list):
                logger.warning(f"Stored history is {type(stored).__name__}, expected list; ignoring")
                stored = []

            records: List[ScanRecord] = []
            seen_ids: set[str] = set()
            for index, item in enumerate(stored):
                record = self._parse_stored_record(item, index)
                if record is None:
                    continue
                if record.id in seen_ids:
                    logger.warning(f"Dropping duplicate stored scan {record.id}")
                    continue
                seen_ids.add(record.id)
                records.append(record)

            skipped = len(stored) - len(records)
            if skipped:
                warnings.append(f"{skipped} saved scan(s) could not be read and were skipped.")
            self._records = tuple(records)

        logger.info(f"Loaded {len(self._records)} scan record(s) from local storage")
        self._notify()
        return warnings

    async def append(self, record: ScanRecord) -> AppendResult:
        """
        Add a new scan record at the front of history.

        The updated list is written to local storage first; if that fails the
        record is still added in memory and the result carries a warning.

        Raises:
            DuplicateRecordError: If a record with the same id already exists
        """
        async with self._lock:
            if any(existing.id == record.id for existing in self._records):
                raise DuplicateRecordError(f"Scan {record.id} is already in history")
            updated = (record, *self._records)
            persisted, warning = self._mirror(updated)
            self._records = updated

        self._notify()
        return AppendResult(record=record, persisted=persisted, warning=warning)

    async def attach_medical_history_id(self, record_id: str, entry_id: Optional[str]) -> Optional[ScanRecord]:
        """
        Attach the id of a created medical history entry to a record.

        Returns:
            The updated record, or None if the record is not in history
        """
        async with self._lock:
            updated_record: Optional[ScanRecord] = None
            updated: List[ScanRecord] = []
            for record in self._records:
                if record.id == record_id:
                    if record.medical_history_id == entry_id:
                        return record
                    record = record.with_medical_history_id(entry_id)
                    updated_record = record
                updated.append(record)
            if updated_record is None:
                return None
            self._mirror(tuple(updated))
            self._records = tuple(updated)

        self._notify()
        return updated_record

    def get_all(self) -> Tuple[ScanRecord, ...]:
        """Snapshot of history, newest first."""
        return self._records

    def get(self, record_id: str) -> Optional[ScanRecord]:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def latest(self) -> Optional[ScanRecord]:
        return self._records[0] if self._records else None

    def subscribe(self, listener: HistoryListener) -> Callable[[], None]:
        """
        Register a listener called with the new snapshot after each change.

        Returns:
            Function that unsubscribes the listener (safe to call twice)
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _mirror(self, records: Tuple[ScanRecord, ...]) -> Tuple[bool, Optional[str]]:
        try:
            self.storage.set_json(self.storage_key, [record.to_wire() for record in records])
            return True, None
        except StorageError as e:
            logger.error(f"Failed to mirror scan history to local storage: {e}")
            return False, PERSISTENCE_WARNING

    def _notify(self) -> None:
        snapshot = self._records
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.exception(f"History listener failed: {e}")

    def _parse_stored_record(self, item: Any, index: int) -> Optional[ScanRecord]:
        if not isinstance(item, dict):
            logger.warning(f"Skipping stored history item {index}: not an object")
            return None
        try:
            if "analysisResult" not in item and "llmResponse" in item:
                return self._upgrade_legacy_record(item)
            return ScanRecord.model_validate(item)
        except (ValidationError, AnimusError, ValueError) as e:
            logger.warning(f"Skipping unreadable stored history item {index}: {e}")
            return None

    @staticmethod
    def _upgrade_legacy_record(item: dict[str, Any]) -> ScanRecord:
        # Older entries stored the raw AI response as llmResponse next to scanData
        raw_response = dict(item.get("llmResponse") or {})
        for key in ("_id", "date"):
            raw_response.pop(key, None)
        raw_response["_id"] = item.get("id")
        if item.get("date"):
            raw_response["date"] = item["date"]
        return normalize_scan_response(
            item.get("scanType", ""),
            raw_response,
            client_context=item.get("scanData") or {},
            captured_at=parse_iso_datetime(item.get("date")),
        )
