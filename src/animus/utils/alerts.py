"""
Alert presentation for operation results.

Maps client errors and warnings to dismissible alert messages. Kept separate
from the services so that no operation ever decides how a failure is shown.
"""

from dataclasses import dataclass
from typing import List, Optional

from animus.core.exceptions import AnimusError, RecommendationFetchError, StorageError
from animus.shared_types.results import OperationResult


@dataclass(frozen=True)
class AlertMessage:
    title: str
    message: str
    blocking: bool = True  # False for inline/non-blocking notices


def alert_for_error(error: Exception) -> AlertMessage:
    """Build the alert for an error; unknown exceptions get a generic message."""
    if isinstance(error, AnimusError):
        # Recommendation and storage failures never interrupt the flow
        blocking = not isinstance(error, (RecommendationFetchError, StorageError))
        return AlertMessage(title=error.user_title, message=error.user_message, blocking=blocking)
    return AlertMessage(title="Error", message="Something went wrong. Please try again.")


def alerts_for_result(result: OperationResult) -> List[AlertMessage]:
    """All alerts for a result: the error (if any) followed by non-blocking warnings."""
    alerts: List[AlertMessage] = []
    if result.error is not None:
        alerts.append(alert_for_error(result.error))
    for warning in result.warnings:
        alerts.append(AlertMessage(title=StorageError.user_title, message=warning, blocking=False))
    return alerts


def first_blocking_alert(result: OperationResult) -> Optional[AlertMessage]:
    for alert in alerts_for_result(result):
        if alert.blocking:
            return alert
    return None
