"""
Shared type definitions for the Animus client.

This module contains the pydantic models and dataclasses that are passed
between the normalizer, reconciler, persistence gate and services.
"""

from animus.shared_types.scan import (
    AnalysisResult,
    CardiacScanData,
    EyeScanData,
    MedicalReportScanData,
    ScanData,
    ScanRecord,
    ScanType,
    SkinScanData,
    SymptomScanData,
    Urgency,
    VitalsScanData,
)
from animus.shared_types.medical_history import ClassificationResponse, MedicalHistoryEntry
from animus.shared_types.history import HistoryItem, SyncStatus
from animus.shared_types.results import OperationResult

__all__ = [
    "AnalysisResult",
    "CardiacScanData",
    "ClassificationResponse",
    "EyeScanData",
    "HistoryItem",
    "MedicalHistoryEntry",
    "MedicalReportScanData",
    "OperationResult",
    "ScanData",
    "ScanRecord",
    "ScanType",
    "SkinScanData",
    "SymptomScanData",
    "SyncStatus",
    "Urgency",
    "VitalsScanData",
]
