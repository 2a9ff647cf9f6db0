"""
Shared types for reconciled history views.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from animus.shared_types.scan import AnalysisResult, ScanData, ScanType


class SyncStatus(str, Enum):
    """Where a history item's data came from."""
    SYNCED = "synced"  # local record with a server counterpart
    PENDING = "pending"  # local only, not yet on the server
    REMOTE_ONLY = "remote_only"  # server entry with no local record


@dataclass(frozen=True)
class HistoryItem:
    """
    One row of the reconciled history.

    Server fields (condition, description, is_active, date_diagnosed) win for
    synced items; local-only fields (scan_data, analysis, raw payload) come
    from the cached scan record.
    """
    id: str
    condition: str
    description: str
    sync_status: SyncStatus
    is_active: Optional[bool] = None
    date_diagnosed: Optional[str] = None
    date: Optional[str] = None  # scan capture date, or server created_at for remote-only items
    scan_type: Optional[ScanType] = None
    scan_data: Optional[ScanData] = None
    analysis_result: Optional[AnalysisResult] = None
    raw_response: Dict[str, Any] = field(default_factory=dict)
    medical_history_id: Optional[str] = None

    @property
    def effective_date(self) -> Optional[str]:
        return self.date_diagnosed or self.date

    @property
    def is_synced(self) -> bool:
        return self.sync_status != SyncStatus.PENDING

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format with camelCase keys."""
        result: Dict[str, Any] = {
            "id": self.id,
            "condition": self.condition,
            "description": self.description,
            "syncStatus": self.sync_status.value,
            "isActive": self.is_active,
            "dateDiagnosed": self.date_diagnosed,
            "date": self.date,
            "scanType": self.scan_type.value if self.scan_type else None,
        }
        if self.scan_data is not None:
            result["scanData"] = self.scan_data.to_wire()
        if self.analysis_result is not None:
            result["analysisResult"] = self.analysis_result.to_wire()
        if self.medical_history_id is not None:
            result["medicalHistoryId"] = self.medical_history_id
        return result
