"""
Services package for the Animus client.

This package contains the service classes behind each user-facing flow:
scan submission, history, medical history persistence, reports, feedback,
chat and profile.
"""

from .api_client import AnimusApiClient
from .app_session import AppSession
from .chat_service import ChatService, build_followup_prompt
from .feedback_service import FeedbackService
from .history_reconciler import ReconciledHistory, reconcile, reconcile_with_remote
from .history_store import AppendResult, HistoryStore
from .persistence_gate import GateOutcome, GateState, MedicalHistoryGate
from .profile_service import ProfileService, UsageStats, UserProfile, usage_stats
from .report_service import ReportService
from .scan_normalizer import normalize_scan_response
from .scan_submission_service import ImageUploader, ScanSubmissionService
from .storage_service import KeyValueStorage

__all__ = [
    "AnimusApiClient",
    "AppSession",
    "AppendResult",
    "ChatService",
    "FeedbackService",
    "GateOutcome",
    "GateState",
    "HistoryStore",
    "ImageUploader",
    "KeyValueStorage",
    "MedicalHistoryGate",
    "ProfileService",
    "ReconciledHistory",
    "ReportService",
    "ScanSubmissionService",
    "UsageStats",
    "UserProfile",
    "build_followup_prompt",
    "normalize_scan_response",
    "reconcile",
    "reconcile_with_remote",
    "usage_stats",
]
