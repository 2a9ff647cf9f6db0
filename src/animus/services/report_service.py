"""
Health report generation service.

Renders the downloadable plain-text medical report for a scan record from a
Jinja2 template and saves the report to the server once per record.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from animus.core.constants import DEFAULT_USER_EMAIL, DEFAULT_USER_NAME, REPORT_DISCLAIMER
from animus.core.exceptions import RemoteFetchError
from animus.services.api_client import AnimusApiClient
from animus.shared_types.results import OperationResult
from animus.shared_types.scan import ScanRecord, ScanType, VitalsScanData
from animus.utils.datetime_utils import parse_iso_datetime, utc_now
from animus.utils.display_utils import format_confidence, scan_type_name

logger = logging.getLogger(__name__)


def scan_data_display(record: ScanRecord) -> str:
    """Human-readable dump of the scan's raw inputs."""
    scan_data = record.scan_data
    confidence = format_confidence(record.analysis_result.confidence)
    if isinstance(scan_data, VitalsScanData):
        readings = scan_data.readings()
        if not readings:
            return "N/A"
        return "\n".join(f"{_label(key)}: {value}" for key, value in readings.items())
    if record.scan_type == ScanType.SYMPTOM:
        return f'Symptoms Reported: "{scan_data.symptoms}"\nConfidence: {confidence}'
    if record.scan_type == ScanType.CARDIAC:
        return f"Diagnosis: {scan_data.diagnosis or 'N/A'}\nConfidence: {confidence}"
    diagnosis = record.analysis_result.short_summary or record.analysis_result.display_summary
    lines = [f"Diagnosis: {diagnosis or 'N/A'}", f"Confidence: {confidence}"]
    if scan_data.user_context:
        lines.append(f"Context: {scan_data.user_context}")
    return "\n".join(lines)


def _label(key: str) -> str:
    # "bpSystolic" -> "bp Systolic"
    return "".join(f" {char}" if char.isupper() else char for char in key).strip()


class ReportService:
    """
    Service for rendering and saving health reports.

    Uses a Jinja2 text template so the downloadable report and any other
    renderings share one layout.
    """

    TEMPLATE_NAME = "health_report.txt.j2"

    def __init__(self, api_client: Optional[AnimusApiClient] = None):
        """Initialize report service with template loader."""
        template_dir = Path(__file__).parent.parent / "templates"
        self.api_client = api_client
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(['html', 'xml']),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

        def format_datetime(value: Any) -> str:
            """Format an ISO timestamp as "YYYY-MM-DD HH:MM UTC"; unparseable values pass through."""
            dt = parse_iso_datetime(value)
            if dt is None:
                return str(value or "")
            return dt.strftime('%Y-%m-%d %H:%M UTC')

        self.env.filters['format_datetime'] = format_datetime
        self.env.filters['format_confidence'] = format_confidence

    def render_report(
        self,
        record: ScanRecord,
        user_name: Optional[str] = None,
        user_email: Optional[str] = None,
        recommendations: Optional[str] = None,
        generated_at: Optional[Any] = None,
    ) -> str:
        """
        Render the plain-text medical report for a record.

        Args:
            record: Scan record to report on
            user_name: Patient name (defaults to a generic name)
            user_email: Patient email (defaults to a placeholder)
            recommendations: Classifier recommendations, if already fetched
            generated_at: Generation timestamp (defaults to now)
        """
        template = self.env.get_template(self.TEMPLATE_NAME)
        return template.render(
            record=record,
            analysis=record.analysis_result,
            scan_type_name=scan_type_name(record.scan_type),
            scan_data_display=scan_data_display(record),
            user_name=user_name or DEFAULT_USER_NAME,
            user_email=user_email or DEFAULT_USER_EMAIL,
            recommendations=recommendations,
            generated_at=generated_at or utc_now(),
            disclaimer=REPORT_DISCLAIMER,
        )

    def build_report_payload(self, record: ScanRecord) -> Dict[str, Any]:
        """Server body for a health report; the full record travels as a JSON string."""
        return {
            "reportType": record.scan_type.value,
            "result": json.dumps(record.to_wire(), ensure_ascii=False),
            "doctorFeedback": "",
            "date": record.date,
        }

    async def save_report(
        self,
        record: ScanRecord,
        existing_reports: Optional[List[Dict[str, Any]]] = None,
    ) -> OperationResult[bool]:
        """
        Save the record's report to the server unless one already exists.

        Args:
            record: Scan record to save
            existing_reports: Already-fetched server reports; fetched when omitted

        Returns:
            True if a report was created, False if one already existed
        """
        if self.api_client is None:
            raise ValueError("ReportService needs an api_client to save reports")
        try:
            if existing_reports is None:
                existing_reports = await self.api_client.get_health_reports()
            if any(record.id in _report_ids(report) for report in existing_reports):
                logger.debug(f"Health report for {record.id} already saved")
                return OperationResult.success(False)
            await self.api_client.create_health_report(self.build_report_payload(record))
        except RemoteFetchError as e:
            logger.warning(f"Could not save health report for {record.id}: {e}")
            return OperationResult.failure(e)
        logger.info(f"Saved health report for {record.id}")
        return OperationResult.success(True)


def _report_ids(report: Dict[str, Any]) -> set[str]:
    """Every id a server report can be matched on: its own ids and the embedded record id."""
    ids = {str(report[key]) for key in ("id", "_id") if report.get(key) is not None}
    result = report.get("result")
    if isinstance(result, str):
        try:
            parsed = json.loads(result)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, dict) and parsed.get("id") is not None:
            ids.add(str(parsed["id"]))
    return ids
