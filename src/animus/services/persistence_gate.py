"""
Recommendation-triggered medical history persistence.

For each analyzed scan the gate asks the recommendation service whether the
analysis describes a genuine medical condition and, if it does, creates one
medical history entry referencing the scan. Each record moves through:

    pending -> requested -> persisted | skipped | failed

``failed`` is not terminal: the next evaluate() call for that record retries.
The gate never retries on its own.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional, TYPE_CHECKING

from animus.core.exceptions import AnimusError, RecommendationFetchError
from animus.services.api_client import AnimusApiClient
from animus.shared_types.medical_history import ClassificationResponse, MedicalHistoryEntry
from animus.shared_types.scan import ScanRecord
from animus.utils.dict_utils import first_non_empty

if TYPE_CHECKING:
    from animus.services.history_store import HistoryStore

logger = logging.getLogger(__name__)


class GateState(str, Enum):
    PENDING = "pending"
    REQUESTED = "requested"
    PERSISTED = "persisted"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class GateOutcome:
    """Where a record ended up after evaluation."""
    record_id: str
    state: GateState
    entry: Optional[MedicalHistoryEntry] = None
    classification: Optional[ClassificationResponse] = None
    error: Optional[AnimusError] = None
    network_called: bool = False

    @property
    def saved_to_history(self) -> bool:
        return self.state == GateState.PERSISTED


def build_classification_payload(record: ScanRecord, user_id: Optional[str]) -> Dict[str, Any]:
    """
    Request body for the recommendation classifier.

    ``vitalsId`` is the record id for every scan type, not only vitals.
    """
    return {
        "analysis": record.analysis_result.classification_text,
        "userId": user_id,
        "scanType": record.scan_type.value,
        "scanData": record.scan_data.to_wire(),
        "vitalsId": record.id,
    }


def build_history_entry(record: ScanRecord, classification: ClassificationResponse) -> MedicalHistoryEntry:
    """
    Entry to create for a record the classifier flagged.

    Classifier fields win; the record's own summary and insights fill gaps.
    """
    analysis = record.analysis_result
    return MedicalHistoryEntry(
        condition=first_non_empty(
            classification.condition,
            analysis.summary,
            analysis.analysis,
            analysis.short_summary,
            record.scan_type.value,
        ),
        description=first_non_empty(
            classification.recommendations,
            classification.insights,
            analysis.insight_text,
            analysis.explanation,
        ) or "",
        date_diagnosed=record.date,
        is_active=True,
        reference_id=record.id,
    )


class MedicalHistoryGate:
    """
    Decides, once per scan record, whether to create a medical history entry.

    At most one entry is created per record id: existing remote entries are
    checked before any request, entries this gate created are remembered for
    the session, and concurrent evaluations of the same record share a
    single in-flight task.
    """

    def __init__(
        self,
        api_client: AnimusApiClient,
        user_id: Optional[str] = None,
        history_store: Optional["HistoryStore"] = None,
    ) -> None:
        super().__init__()
        self.api_client = api_client
        self.user_id = user_id
        self.history_store = history_store
        self._states: Dict[str, GateState] = {}
        self._entries: Dict[str, MedicalHistoryEntry] = {}
        self._classifications: Dict[str, ClassificationResponse] = {}
        self._in_flight: Dict[str, asyncio.Task[GateOutcome]] = {}

    def state_of(self, record_id: str) -> GateState:
        state = self._states.get(record_id, GateState.PENDING)
        # Failed records are eligible again
        return GateState.PENDING if state == GateState.FAILED else state

    def is_eligible(self, record: ScanRecord) -> bool:
        """A record can be evaluated only when it has analysis text."""
        return bool(record.analysis_result.classification_text)

    async def evaluate(
        self,
        record: ScanRecord,
        remote_entries: Iterable[MedicalHistoryEntry] = (),
        on_settled: Optional[Callable[[GateOutcome], None]] = None,
        is_relevant: Optional[Callable[[], bool]] = None,
    ) -> GateOutcome:
        """
        Evaluate one record.

        Args:
            record: The scan record to evaluate
            remote_entries: Already-fetched medical history entries, used for
                the existence check before any request is sent
            on_settled: Called with the outcome once evaluation finishes
            is_relevant: Guard checked before calling ``on_settled``; when it
                returns False the late completion is dropped silently

        Returns:
            The outcome; failures are reported in it, never raised
        """
        outcome = await self._evaluate_once(record, remote_entries)
        if on_settled is not None and (is_relevant is None or is_relevant()):
            try:
                on_settled(outcome)
            except Exception as e:
                logger.exception(f"Gate completion callback failed for {record.id}: {e}")
        return outcome

    async def _evaluate_once(self, record: ScanRecord, remote_entries: Iterable[MedicalHistoryEntry]) -> GateOutcome:
        settled = self._settled_outcome(record, remote_entries)
        if settled is not None:
            return settled

        task = self._in_flight.get(record.id)
        if task is None:
            task = asyncio.create_task(self._classify_and_persist(record))
            self._in_flight[record.id] = task
            task.add_done_callback(lambda _task, record_id=record.id: self._in_flight.pop(record_id, None))
        # shield so one caller's cancellation doesn't cancel the shared request
        return await asyncio.shield(task)

    def known_outcome(self, record: ScanRecord) -> Optional[GateOutcome]:
        """
        Outcome that needs no remote state: a terminal state from this session,
        or a record already linked to a medical history entry.
        """
        state = self._states.get(record.id)
        if state == GateState.PERSISTED:
            return GateOutcome(
                record_id=record.id,
                state=GateState.PERSISTED,
                entry=self._entries.get(record.id),
                classification=self._classifications.get(record.id),
            )
        if state == GateState.SKIPPED:
            return GateOutcome(
                record_id=record.id,
                state=GateState.SKIPPED,
                classification=self._classifications.get(record.id),
            )
        if record.medical_history_id:
            logger.debug(f"Record {record.id} is already linked to {record.medical_history_id}")
            self._states[record.id] = GateState.PERSISTED
            return GateOutcome(record_id=record.id, state=GateState.PERSISTED)
        return None

    def _settled_outcome(self, record: ScanRecord, remote_entries: Iterable[MedicalHistoryEntry]) -> Optional[GateOutcome]:
        known = self.known_outcome(record)
        if known is not None:
            return known

        for entry in remote_entries:
            if entry.reference_id == record.id:
                logger.debug(f"Medical history entry already exists for {record.id}")
                self._states[record.id] = GateState.PERSISTED
                self._entries[record.id] = entry
                return GateOutcome(record_id=record.id, state=GateState.PERSISTED, entry=entry)

        if not self.is_eligible(record):
            logger.debug(f"Record {record.id} has no analysis text; nothing to classify")
            self._states[record.id] = GateState.SKIPPED
            return GateOutcome(record_id=record.id, state=GateState.SKIPPED)
        return None

    async def _classify_and_persist(self, record: ScanRecord) -> GateOutcome:
        self._states[record.id] = GateState.REQUESTED
        payload = build_classification_payload(record, self.user_id)
        try:
            classification = await self.api_client.get_recommendations(payload)
        except RecommendationFetchError as e:
            logger.warning(f"Classification failed for {record.id}; will retry on next evaluation")
            self._states[record.id] = GateState.FAILED
            return GateOutcome(record_id=record.id, state=GateState.FAILED, error=e, network_called=True)

        self._classifications[record.id] = classification
        if not classification.is_medical_condition:
            logger.info(f"Record {record.id} is not a medical condition; not saved to history")
            self._states[record.id] = GateState.SKIPPED
            return GateOutcome(
                record_id=record.id,
                state=GateState.SKIPPED,
                classification=classification,
                network_called=True,
            )

        try:
            entry = await self.api_client.create_medical_history(build_history_entry(record, classification))
        except RecommendationFetchError as e:
            self._states[record.id] = GateState.FAILED
            return GateOutcome(
                record_id=record.id,
                state=GateState.FAILED,
                classification=classification,
                error=e,
                network_called=True,
            )

        self._states[record.id] = GateState.PERSISTED
        self._entries[record.id] = entry
        logger.info(f"Saved {record.id} to medical history as '{entry.condition}'")

        if self.history_store is not None:
            await self.history_store.attach_medical_history_id(record.id, entry.id)

        return GateOutcome(
            record_id=record.id,
            state=GateState.PERSISTED,
            entry=entry,
            classification=classification,
            network_called=True,
        )
