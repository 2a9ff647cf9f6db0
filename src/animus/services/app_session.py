"""
Application session.

Owns the per-session collaborators (local storage, API client, history store,
persistence gate and the feature services) and exposes the flows that span
several of them.
"""

import logging
from typing import List, Optional, Tuple

from animus.core.constants import TOKEN_STORAGE_KEY, USER_ID_STORAGE_KEY
from animus.core.exceptions import RemoteFetchError, StorageError
from animus.services.api_client import AnimusApiClient
from animus.services.chat_service import ChatService
from animus.services.feedback_service import FeedbackService
from animus.services.history_reconciler import ReconciledHistory, reconcile_with_remote
from animus.services.history_store import HistoryStore
from animus.services.persistence_gate import GateOutcome, GateState, MedicalHistoryGate
from animus.services.profile_service import ProfileService
from animus.services.report_service import ReportService
from animus.services.scan_submission_service import ImageUploader, ScanSubmissionService
from animus.services.storage_service import KeyValueStorage
from animus.shared_types.history import HistoryItem
from animus.shared_types.medical_history import MedicalHistoryEntry
from animus.shared_types.scan import ScanRecord

logger = logging.getLogger(__name__)


class AppSession:
    """
    Wires the services for one signed-in user.

    The bearer token and user id are read from local storage unless given.
    """

    def __init__(
        self,
        storage: Optional[KeyValueStorage] = None,
        api_client: Optional[AnimusApiClient] = None,
        image_uploader: Optional[ImageUploader] = None,
        user_id: Optional[str] = None,
    ) -> None:
        super().__init__()
        self.storage = storage or KeyValueStorage()
        self.api_client = api_client or AnimusApiClient(token=self._stored(TOKEN_STORAGE_KEY))
        self.user_id = user_id or self._stored(USER_ID_STORAGE_KEY)

        self.history = HistoryStore(self.storage)
        self.gate = MedicalHistoryGate(self.api_client, user_id=self.user_id, history_store=self.history)
        self.scans = ScanSubmissionService(self.api_client, self.history, image_uploader=image_uploader)
        self.reports = ReportService(self.api_client)
        self.feedback = FeedbackService(self.storage)
        self.chat = ChatService(self.api_client)
        self.profile = ProfileService(self.storage, self.api_client)

        self._remote_entries: Optional[Tuple[MedicalHistoryEntry, ...]] = None
        self._last_history: Optional[ReconciledHistory] = None

    async def start(self) -> List[str]:
        """Load cached history; returns load warnings."""
        return await self.history.load()

    async def refresh_history(
        self,
        condition_filter: Optional[str] = None,
        scan_type: Optional[str] = None,
    ) -> List[HistoryItem]:
        """
        Fetch remote entries and rebuild the merged history view.

        A failed fetch degrades to local-only history; the previously fetched
        remote entries are kept for the gate's existence check.
        """
        reconciled = await reconcile_with_remote(self.history.get_all(), self.api_client.get_medical_histories)
        if reconciled.remote_available:
            self._remote_entries = reconciled.remote_entries
        self._last_history = reconciled
        return reconciled.view(condition_filter=condition_filter, scan_type=scan_type)

    @property
    def last_history(self) -> Optional[ReconciledHistory]:
        return self._last_history

    async def open_report(self, record_id: str) -> Optional[GateOutcome]:
        """
        Run the persistence gate for a record when its report is opened.

        Remote entries are fetched first so the gate's existence check sees
        the server state; if the fetch fails, the last known entries are used.
        With no entries ever fetched, the record is not classified: a record
        already linked to an entry stays persisted and any other record
        reports ``failed`` so the next open retries.

        Returns:
            The gate outcome, or None if the record is not in history
        """
        record = self.history.get(record_id)
        if record is None:
            logger.warning(f"Report opened for unknown record {record_id}")
            return None

        try:
            self._remote_entries = tuple(await self.api_client.get_medical_histories())
        except RemoteFetchError as e:
            if self._remote_entries is None:
                logger.warning(f"Medical history unavailable; not classifying {record_id}: {e}")
                known = self.gate.known_outcome(record)
                if known is not None:
                    return known
                return GateOutcome(record_id=record.id, state=GateState.FAILED, error=e, network_called=True)
            logger.warning(f"Using cached medical history for {record_id}: {e}")

        return await self.gate.evaluate(record, remote_entries=self._remote_entries)

    def latest_record(self) -> Optional[ScanRecord]:
        return self.history.latest()

    def _stored(self, key: str) -> Optional[str]:
        try:
            return self.storage.get_item(key)
        except StorageError as e:
            logger.warning(f"Could not read {key} from local storage: {e}")
            return None
