"""
History reconciliation.

Merges the locally cached scan records with the server's medical history
entries into one ordered history view. The server is authoritative for
condition, description, active flag and diagnosis date; the local cache is
the only source of scan payloads (image URLs, raw AI responses), which the
server never echoes back.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import httpx

from animus.core.constants import ALL_FILTER_VALUE
from animus.core.exceptions import RemoteFetchError
from animus.shared_types.history import HistoryItem, SyncStatus
from animus.shared_types.medical_history import MedicalHistoryEntry
from animus.shared_types.scan import ScanRecord, ScanType
from animus.utils.datetime_utils import EARLIEST_DATETIME, parse_iso_datetime
from animus.utils.dict_utils import first_non_empty

logger = logging.getLogger(__name__)

RemoteFetcher = Callable[[], Awaitable[Sequence[MedicalHistoryEntry]]]


@dataclass(frozen=True)
class ReconciledHistory:
    """
    The merged history plus how it was obtained.

    ``items`` is never modified; ``view`` returns filtered copies.
    """
    items: Tuple[HistoryItem, ...]
    remote_entries: Tuple[MedicalHistoryEntry, ...] = ()
    remote_available: bool = True

    def view(
        self,
        condition_filter: Optional[str] = None,
        scan_type: Optional[Union[ScanType, str]] = None,
    ) -> List[HistoryItem]:
        """
        Filtered view of the merged history.

        Args:
            condition_filter: Exact condition to keep; None or "All" keeps everything
            scan_type: Scan type to keep; None or "All" keeps everything
        """
        items: Iterable[HistoryItem] = self.items
        if condition_filter and condition_filter != ALL_FILTER_VALUE:
            items = [item for item in items if item.condition == condition_filter]
        if scan_type and scan_type != ALL_FILTER_VALUE:
            wanted = ScanType(scan_type)
            items = [item for item in items if item.scan_type == wanted]
        return list(items)

    def conditions(self) -> List[str]:
        """Distinct non-empty conditions in display order, for filter pickers."""
        seen: List[str] = []
        for item in self.items:
            if item.condition and item.condition not in seen:
                seen.append(item.condition)
        return seen

    def get(self, item_id: str) -> Optional[HistoryItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    @property
    def pending(self) -> List[HistoryItem]:
        return [item for item in self.items if item.sync_status == SyncStatus.PENDING]


def index_remote_entries(remote_entries: Iterable[MedicalHistoryEntry]) -> Dict[str, MedicalHistoryEntry]:
    """
    Index entries by reference_id, falling back to their own id.

    When several entries point at the same record the first one wins.
    """
    index: Dict[str, MedicalHistoryEntry] = {}
    for entry in remote_entries:
        key = entry.reference_id or entry.id
        if key is None:
            continue
        if key in index:
            logger.warning(f"Multiple medical history entries reference {key}; using the first")
            continue
        index[key] = entry
    return index


def reconcile(
    local_records: Sequence[ScanRecord],
    remote_entries: Sequence[MedicalHistoryEntry],
    remote_available: bool = True,
) -> ReconciledHistory:
    """
    Merge local scan records with remote medical history entries.

    Args:
        local_records: Cached records, newest first
        remote_entries: Entries fetched from the server
        remote_available: False when the remote list could not be fetched

    Returns:
        History sorted by effective date descending; ties keep insertion
        order (local records first, then remote-only entries)
    """
    remote_index = index_remote_entries(remote_entries)
    matched_keys: set[str] = set()
    merged: List[HistoryItem] = []

    for record in local_records:
        entry = remote_index.get(record.id)
        if entry is None and record.medical_history_id:
            entry = remote_index.get(record.medical_history_id)
        if entry is not None:
            matched_keys.add(entry.reference_id or entry.id or record.id)
            merged.append(_merge_synced(record, entry))
        else:
            merged.append(_local_only(record))

    for key, entry in remote_index.items():
        if key not in matched_keys:
            merged.append(_remote_only(entry))

    # sorted() is stable, so equal dates keep the insertion order built above
    ordered = sorted(merged, key=_sort_key, reverse=True)
    return ReconciledHistory(
        items=tuple(ordered),
        remote_entries=tuple(remote_entries),
        remote_available=remote_available,
    )


async def reconcile_with_remote(local_records: Sequence[ScanRecord], fetch_remote: RemoteFetcher) -> ReconciledHistory:
    """
    Fetch remote entries and reconcile; degrade to local-only on fetch failure.

    A failed fetch is logged and reported through ``remote_available``; it is
    never raised.
    """
    try:
        remote_entries = list(await fetch_remote())
    except (RemoteFetchError, httpx.HTTPError) as e:
        logger.warning(f"Medical history fetch failed, showing local history only: {e}")
        return reconcile(local_records, [], remote_available=False)
    return reconcile(local_records, remote_entries)


def _sort_key(item: HistoryItem):
    # reverse=True sort: newest first, undated last
    return parse_iso_datetime(item.effective_date) or EARLIEST_DATETIME


def _merge_synced(record: ScanRecord, entry: MedicalHistoryEntry) -> HistoryItem:
    local = _local_only(record)
    return HistoryItem(
        id=record.id,
        condition=first_non_empty(entry.condition, local.condition) or "",
        description=first_non_empty(entry.description, local.description) or "",
        sync_status=SyncStatus.SYNCED,
        is_active=entry.is_active,
        date_diagnosed=entry.date_diagnosed,
        date=record.date,
        scan_type=record.scan_type,
        scan_data=record.scan_data,
        analysis_result=record.analysis_result,
        raw_response=record.raw_response,
        medical_history_id=entry.id or record.medical_history_id,
    )


def _local_only(record: ScanRecord) -> HistoryItem:
    analysis = record.analysis_result
    return HistoryItem(
        id=record.id,
        condition=analysis.display_summary or record.scan_type.value,
        description=first_non_empty(analysis.insight_text, analysis.explanation) or "",
        sync_status=SyncStatus.PENDING,
        date=record.date,
        scan_type=record.scan_type,
        scan_data=record.scan_data,
        analysis_result=analysis,
        raw_response=record.raw_response,
        medical_history_id=record.medical_history_id,
    )


def _remote_only(entry: MedicalHistoryEntry) -> HistoryItem:
    return HistoryItem(
        id=entry.reference_id or entry.id or "",
        condition=entry.condition,
        description=entry.description,
        sync_status=SyncStatus.REMOTE_ONLY,
        is_active=entry.is_active,
        date_diagnosed=entry.date_diagnosed,
        date=entry.created_at,
        medical_history_id=entry.id,
    )
