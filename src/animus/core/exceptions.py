"""
Error taxonomy for the Animus client.

Every error carries a short user-facing title and message so presentation
layers can turn it into a dismissible alert without inspecting the type.
"""

from typing import Optional


class AnimusError(Exception):
    """Base class for all client errors."""

    user_title = "Error"
    default_message = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def user_message(self) -> str:
        return self.message


class ScanInputError(AnimusError):
    """Raised when scan input is missing before anything is sent."""
    user_title = "Missing Input"
    default_message = "Please provide the information needed for this scan."


class UploadError(AnimusError):
    """Image hosting failed; the analysis call must not proceed."""
    user_title = "Image Upload Error"
    default_message = "Failed to upload image."


class BackendAnalysisError(AnimusError):
    """Scan-analysis endpoint returned non-2xx or a malformed body."""
    user_title = "Backend Error"
    default_message = "Failed to analyze scan."

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class IncompleteAnalysisError(BackendAnalysisError):
    """The analysis response carries no summary-bearing field."""
    user_title = "Analysis Error"
    default_message = "Could not analyze this scan. Please try again."


class RecommendationFetchError(AnimusError):
    """Classification or medical-history persistence failed; recoverable."""
    user_title = "Recommendations"
    default_message = "Failed to fetch recommendations"


class RemoteFetchError(AnimusError):
    """Fetching a remote list (medical history, reports, profile) failed."""
    user_title = "Connection Error"
    default_message = "Could not reach the server."


class StorageError(AnimusError):
    """Local key-value persistence failed."""
    user_title = "Storage Warning"
    default_message = "Your data could not be saved on this device."


class DuplicateRecordError(AnimusError, ValueError):
    """A scan record with the same id is already in history."""
    user_title = "Duplicate Scan"
    default_message = "This scan is already in your history."
