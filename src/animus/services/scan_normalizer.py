"""
Scan record normalization.

Each analysis endpoint answers in its own shape:

- eye, skin and medical report scans: short_summary, analysis, confidence,
  scan_details, insights
- vitals: analysis, confidence, scan_details, insights, ai
- symptom checks: analysis, confidence, scan_details, insights
- legacy cardiac responses: summary, topConditions, urgency, suggestions,
  explanation

This module folds all of them into one ScanRecord. It performs no I/O.
"""

import logging
import math
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Union

from animus.core.exceptions import BackendAnalysisError, IncompleteAnalysisError
from animus.shared_types.scan import SCAN_DATA_MODELS, AnalysisResult, ScanRecord, ScanType, Urgency
from animus.utils.datetime_utils import timestamp_id, to_iso_string, utc_now
from animus.utils.dict_utils import deep_merge
from animus.utils.text_utils import coerce_text, coerce_text_list

logger = logging.getLogger(__name__)

# Keys that can carry the headline text of an analysis
SUMMARY_KEYS = ("short_summary", "summary", "analysis", "message")

# Raw response keys that may be echoed into scan data when the caller didn't supply them
_ECHOED_SCAN_DATA_KEYS = ("symptoms", "imageUrl", "userContext", "diagnosis")


def has_summary(raw_response: Mapping[str, Any]) -> bool:
    """True if any summary-bearing key holds non-empty text."""
    return any(coerce_text(raw_response.get(key)) for key in SUMMARY_KEYS)


def coerce_confidence(value: Any, record_hint: str = "") -> Optional[float]:
    """
    Coerce a confidence value to a float in [0, 1].

    Out-of-range values are clamped and logged as a data-quality warning;
    unusable values become None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        logger.warning(f"Non-numeric confidence {value!r} ignored{record_hint}")
        return None
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        logger.warning(f"Non-numeric confidence {value!r} ignored{record_hint}")
        return None
    if math.isnan(confidence):
        logger.warning(f"NaN confidence ignored{record_hint}")
        return None
    if confidence < 0.0 or confidence > 1.0:
        clamped = min(1.0, max(0.0, confidence))
        logger.warning(f"Confidence {confidence} out of range, clamped to {clamped}{record_hint}")
        return clamped
    return confidence


def build_analysis_result(raw_response: Mapping[str, Any], record_hint: str = "") -> AnalysisResult:
    """Map whichever source keys are present onto a fully-populated AnalysisResult."""
    analysis = coerce_text(raw_response.get("analysis")) or coerce_text(raw_response.get("message"))
    urgency_value = raw_response.get("urgency")
    urgency = Urgency.parse(urgency_value)
    if urgency is None and urgency_value not in (None, ""):
        logger.warning(f"Unrecognized urgency {urgency_value!r} dropped{record_hint}")

    return AnalysisResult(
        summary=coerce_text(raw_response.get("summary")),
        analysis=analysis,
        short_summary=coerce_text(raw_response.get("short_summary")),
        explanation=coerce_text(raw_response.get("explanation")),
        scan_details=coerce_text(raw_response.get("scan_details", raw_response.get("scanDetails"))),
        insights=coerce_text(raw_response.get("insights")),
        suggestions=coerce_text(raw_response.get("suggestions")),
        ai=coerce_text(raw_response.get("ai")),
        confidence=coerce_confidence(raw_response.get("confidence"), record_hint),
        top_conditions=coerce_text_list(raw_response.get("topConditions", raw_response.get("top_conditions"))),
        urgency=urgency,
    )


def normalize_scan_response(
    scan_type: Union[ScanType, str],
    raw_response: Mapping[str, Any],
    client_context: Optional[Mapping[str, Any]] = None,
    captured_at: Optional[datetime] = None,
) -> ScanRecord:
    """
    Convert a raw analysis response into a ScanRecord.

    Args:
        scan_type: Kind of scan the response belongs to
        raw_response: Parsed JSON body from the analysis endpoint
        client_context: What the client sent or captured (image URL, user
            context, vitals readings, symptoms); camelCase or snake_case keys
        captured_at: Capture time used for fallback id and date (defaults to now)

    Returns:
        Normalized scan record

    Raises:
        BackendAnalysisError: If the body is not an object or is an error object
        IncompleteAnalysisError: If no summary-bearing field has any text
    """
    scan_type = ScanType(scan_type)
    if not isinstance(raw_response, Mapping):
        raise BackendAnalysisError("Unexpected response from analysis service")

    if not has_summary(raw_response):
        error_text = coerce_text(raw_response.get("error"))
        if error_text:
            raise BackendAnalysisError(error_text)
        raise IncompleteAnalysisError()

    captured_at = captured_at or utc_now()
    record_id = coerce_text(raw_response.get("_id")) or coerce_text(raw_response.get("id")) or timestamp_id(captured_at)
    record_hint = f" (scan {record_id}, {scan_type.value})"

    return ScanRecord(
        id=record_id,
        date=coerce_text(raw_response.get("date")) or to_iso_string(captured_at),
        scan_data=_build_scan_data(scan_type, raw_response, client_context or {}),
        analysis_result=build_analysis_result(raw_response, record_hint),
        raw_response=dict(raw_response),
    )


def _build_scan_data(scan_type: ScanType, raw_response: Mapping[str, Any], client_context: Mapping[str, Any]):
    echoed = {key: raw_response[key] for key in _ECHOED_SCAN_DATA_KEYS if key in raw_response}
    context = {key: value for key, value in client_context.items() if key not in ("scanType", "scan_type")}
    # client values win; empty ones fall back to what the server echoed
    data: Dict[str, Any] = deep_merge(echoed, context)
    if scan_type == ScanType.CARDIAC and not data.get("diagnosis"):
        conditions = coerce_text_list(raw_response.get("topConditions"))
        if conditions:
            data["diagnosis"] = conditions[0]
    return SCAN_DATA_MODELS[scan_type].model_validate(data)
