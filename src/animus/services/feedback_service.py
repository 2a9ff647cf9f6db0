"""
AI feedback service.

Stores the user's helpful/unhelpful verdict on an analysis in the local
``aiFeedback`` blob. One verdict per result.
"""

import logging
from typing import Any, Dict, List, Optional

from animus.core.constants import FEEDBACK_STORAGE_KEY, FEEDBACK_TYPES
from animus.core.exceptions import StorageError
from animus.services.storage_service import KeyValueStorage
from animus.shared_types.results import OperationResult
from animus.shared_types.scan import CardiacScanData, ScanRecord, SymptomScanData
from animus.utils.datetime_utils import to_iso_string, utc_now

logger = logging.getLogger(__name__)


class FeedbackService:
    def __init__(self, storage: KeyValueStorage) -> None:
        super().__init__()
        self.storage = storage

    def list_feedback(self) -> List[Dict[str, Any]]:
        stored = self.storage.get_json(FEEDBACK_STORAGE_KEY, default=[])
        return stored if isinstance(stored, list) else []

    def feedback_for(self, result_id: str) -> Optional[Dict[str, Any]]:
        for entry in self.list_feedback():
            if isinstance(entry, dict) and entry.get("resultId") == result_id:
                return entry
        return None

    def record_feedback(self, record: ScanRecord, feedback_type: str) -> OperationResult[Dict[str, Any]]:
        """
        Store feedback for a record.

        Repeat feedback for the same record returns the first verdict
        unchanged. A storage failure is reported as a warning; the entry is
        still returned so the caller can acknowledge the feedback.
        """
        if feedback_type not in FEEDBACK_TYPES:
            raise ValueError(f"feedback_type must be one of {FEEDBACK_TYPES}, got {feedback_type!r}")

        try:
            existing = self.feedback_for(record.id)
            if existing is not None:
                return OperationResult.success(existing)
            all_feedback = self.list_feedback()
        except StorageError as e:
            logger.error(f"Failed to read AI feedback: {e}")
            all_feedback = []

        entry = {
            "resultId": record.id,
            "scanType": record.scan_type.value,
            "diagnosis": _diagnosis(record),
            "feedbackType": feedback_type,
            "timestamp": to_iso_string(utc_now()),
        }
        all_feedback.append(entry)
        try:
            self.storage.set_json(FEEDBACK_STORAGE_KEY, all_feedback)
        except StorageError as e:
            logger.error(f"Failed to store AI feedback: {e}")
            return OperationResult.success(entry, warnings=["Your feedback could not be saved on this device."])
        logger.info(f"AI feedback stored for {record.id}: {feedback_type}")
        return OperationResult.success(entry)


def _diagnosis(record: ScanRecord) -> str:
    scan_data = record.scan_data
    if isinstance(scan_data, SymptomScanData):
        return scan_data.symptoms
    if isinstance(scan_data, CardiacScanData) and scan_data.diagnosis:
        return scan_data.diagnosis
    return record.analysis_result.display_summary
