"""
Unit tests for alert presentation.
"""

from animus.core.exceptions import (
    BackendAnalysisError,
    IncompleteAnalysisError,
    RecommendationFetchError,
    UploadError,
)
from animus.shared_types.results import OperationResult
from animus.utils.alerts import alert_for_error, alerts_for_result, first_blocking_alert


class TestAlerts:
    """Test mapping errors and warnings to alerts."""

    def test_upload_error_is_blocking(self):
        alert = alert_for_error(UploadError())
        assert alert.title == "Image Upload Error"
        assert alert.blocking

    def test_backend_error_message(self):
        alert = alert_for_error(BackendAnalysisError("Model overloaded", status_code=503))
        assert alert.title == "Backend Error"
        assert alert.message == "Model overloaded"

    def test_incomplete_analysis_title(self):
        assert alert_for_error(IncompleteAnalysisError()).title == "Analysis Error"

    def test_recommendation_failure_never_blocks(self):
        """Classification failures must not block result display."""
        alert = alert_for_error(RecommendationFetchError())
        assert not alert.blocking
        assert alert.message == "Failed to fetch recommendations"

    def test_unknown_exception(self):
        assert alert_for_error(RuntimeError("boom")).message == "Something went wrong. Please try again."

    def test_result_alerts(self):
        result = OperationResult.success("value", warnings=["Could not save locally."])

        alerts = alerts_for_result(result)

        assert len(alerts) == 1
        assert not alerts[0].blocking
        assert first_blocking_alert(result) is None

    def test_failed_result(self):
        result = OperationResult.failure(UploadError())
        assert first_blocking_alert(result).title == "Image Upload Error"
        assert not result.ok
