"""
Profile, usage statistics and local data management.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

from animus.core.constants import (
    DEFAULT_USER_EMAIL,
    DEFAULT_USER_NAME,
    FEEDBACK_STORAGE_KEY,
    GOALS_STORAGE_KEY,
    HISTORY_STORAGE_KEY,
    REMINDERS_STORAGE_KEY,
    SCAN_GOAL_NAMES,
    SCAN_STREAK_STORAGE_KEY,
    SESSION_STORAGE_KEYS,
    TOTAL_SCANS_STORAGE_KEY,
    USER_EMAIL_STORAGE_KEY,
    USER_NAME_STORAGE_KEY,
)
from animus.core.exceptions import RemoteFetchError, StorageError
from animus.services.api_client import AnimusApiClient
from animus.services.storage_service import KeyValueStorage
from animus.shared_types.scan import ScanRecord
from animus.utils.datetime_utils import EARLIEST_DATETIME, parse_iso_datetime, to_iso_string, utc_now
from animus.utils.dict_utils import first_non_empty
from animus.utils.text_utils import parse_leading_int

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserProfile:
    name: str
    email: str
    from_server: bool = False


@dataclass(frozen=True)
class UsageStats:
    """Scan counts derived from local history, plus the stored streak and scan goal."""
    total_scans: int
    scans_by_type: Dict[str, int] = field(default_factory=dict)
    last_scan_date: Optional[str] = None
    streak: int = 0
    goal_target: int = 0
    goal_progress: int = 0

    @property
    def goal_achieved(self) -> bool:
        return self.goal_target > 0 and self.goal_progress >= self.goal_target

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalScans": self.total_scans,
            "scansByType": dict(self.scans_by_type),
            "lastScanDate": self.last_scan_date,
            "streak": self.streak,
            "goalTarget": self.goal_target,
            "goalProgress": self.goal_progress,
            "goalAchieved": self.goal_achieved,
        }


def find_scan_goal(goals: Any) -> Optional[Dict[str, Any]]:
    """First stored goal that counts scans, if any."""
    if not isinstance(goals, list):
        return None
    for goal in goals:
        if isinstance(goal, dict) and goal.get("name") in SCAN_GOAL_NAMES:
            return goal
    return None


def usage_stats(
    records: Sequence[ScanRecord],
    streak: int = 0,
    goal_target: int = 0,
    goal_progress: int = 0,
) -> UsageStats:
    """Compute usage statistics from history records."""
    counts = Counter(record.scan_type.value for record in records)
    last_scan_date: Optional[str] = None
    if records:
        latest = max(records, key=lambda record: parse_iso_datetime(record.date) or EARLIEST_DATETIME)
        last_scan_date = latest.date
    return UsageStats(
        total_scans=len(records),
        scans_by_type=dict(counts),
        last_scan_date=last_scan_date,
        streak=streak,
        goal_target=goal_target,
        goal_progress=goal_progress,
    )


class ProfileService:
    """
    User profile access plus export and cleanup of on-device data.
    """

    # Keys included in a data export, in export order
    EXPORT_KEYS = {
        "history": HISTORY_STORAGE_KEY,
        "reminders": REMINDERS_STORAGE_KEY,
        "goals": GOALS_STORAGE_KEY,
        "aiFeedback": FEEDBACK_STORAGE_KEY,
        "scanStreak": SCAN_STREAK_STORAGE_KEY,
        "totalScans": TOTAL_SCANS_STORAGE_KEY,
    }

    def __init__(self, storage: KeyValueStorage, api_client: Optional[AnimusApiClient] = None) -> None:
        super().__init__()
        self.storage = storage
        self.api_client = api_client

    async def get_profile(self) -> UserProfile:
        """
        Fetch the profile from the server, falling back to locally stored values.

        Never raises; the fallback ends at placeholder name and email.
        """
        if self.api_client is not None:
            try:
                body = await self.api_client.get_profile()
                name = first_non_empty(body.get("name"), body.get("userName"))
                email = first_non_empty(body.get("email"), body.get("userEmail"))
                if name or email:
                    return UserProfile(
                        name=name or self._stored(USER_NAME_STORAGE_KEY) or DEFAULT_USER_NAME,
                        email=email or self._stored(USER_EMAIL_STORAGE_KEY) or DEFAULT_USER_EMAIL,
                        from_server=True,
                    )
            except RemoteFetchError as e:
                logger.warning(f"Profile fetch failed, using stored profile: {e}")

        return UserProfile(
            name=self._stored(USER_NAME_STORAGE_KEY) or DEFAULT_USER_NAME,
            email=self._stored(USER_EMAIL_STORAGE_KEY) or DEFAULT_USER_EMAIL,
        )

    def load_usage_stats(self, records: Sequence[ScanRecord]) -> UsageStats:
        """
        Usage statistics for the profile page.

        The streak and the scan goal come from local storage. Goal progress is
        the stored scan counter; both goal numbers stay 0 when no scan goal is set.
        Unreadable storage counts as empty.
        """
        streak = parse_leading_int(self._stored(SCAN_STREAK_STORAGE_KEY))
        goal_target = goal_progress = 0
        try:
            goal = find_scan_goal(self.storage.get_json(GOALS_STORAGE_KEY))
        except StorageError as e:
            logger.warning(f"Could not read goals from local storage: {e}")
            goal = None
        if goal is not None:
            goal_target = parse_leading_int(goal.get("target"))
            goal_progress = parse_leading_int(self._stored(TOTAL_SCANS_STORAGE_KEY))
        return usage_stats(records, streak=streak, goal_target=goal_target, goal_progress=goal_progress)

    def export_data(self) -> Dict[str, Any]:
        """
        Collect all local user data into one JSON-serializable document.

        Raises:
            StorageError: If local storage cannot be read
        """
        export: Dict[str, Any] = {}
        for export_key, storage_key in self.EXPORT_KEYS.items():
            export[export_key] = self.storage.get_json(storage_key)
        export["exportDate"] = to_iso_string(utc_now())
        return export

    def clear_session_data(self) -> None:
        """Remove everything a logged-in session stored locally."""
        for key in SESSION_STORAGE_KEYS:
            self.storage.remove_item(key)
        logger.info("Cleared local session data")

    def _stored(self, key: str) -> Optional[str]:
        try:
            return self.storage.get_item(key)
        except StorageError as e:
            logger.warning(f"Could not read {key} from local storage: {e}")
            return None
