"""
Scan submission flow.

Validates what the user entered, hosts the image through the configured
uploader (imaging scans), sends the scan for analysis, normalizes the
response and appends the record to history. A failure at any step stops the
flow and nothing is added to history.
"""

import logging
from typing import Any, Dict, Optional, Protocol, Union

from animus.core.exceptions import AnimusError, ScanInputError, UploadError
from animus.services.api_client import AnimusApiClient
from animus.services.history_store import HistoryStore
from animus.services.scan_normalizer import normalize_scan_response
from animus.shared_types.results import OperationResult
from animus.shared_types.scan import ScanRecord, ScanType
from animus.utils.vitals_utils import clean_numeric, parse_blood_pressure

logger = logging.getLogger(__name__)


class ImageUploader(Protocol):
    """Hosts a captured image and returns its public URL."""

    async def upload(self, image: Any) -> Optional[str]:
        ...


def build_vitals_payload(
    blood_pressure: str = "",
    pulse_rate: str = "",
    blood_oxygen: str = "",
    temperature: str = "",
) -> Dict[str, str]:
    """
    Turn free-form vitals input into the analysis request body.

    Raises:
        ScanInputError: If none of blood pressure, pulse or temperature was given
    """
    if not (blood_pressure or "").strip() and not (pulse_rate or "").strip() and not (temperature or "").strip():
        raise ScanInputError("Please enter at least blood pressure, pulse rate, or temperature.")
    bp_systolic, bp_diastolic = parse_blood_pressure(blood_pressure)
    return {
        "heartRate": clean_numeric(pulse_rate),
        "bpSystolic": bp_systolic,
        "bpDiastolic": bp_diastolic,
        "temperature": (temperature or "").strip(),
        "o2": (blood_oxygen or "").strip(),
    }


class ScanSubmissionService:
    """Runs one scan from user input to a stored ScanRecord."""

    def __init__(
        self,
        api_client: AnimusApiClient,
        history_store: HistoryStore,
        image_uploader: Optional[ImageUploader] = None,
    ) -> None:
        super().__init__()
        self.api_client = api_client
        self.history_store = history_store
        self.image_uploader = image_uploader

    async def submit_imaging_scan(
        self,
        scan_type: Union[ScanType, str],
        image: Any = None,
        image_url: Optional[str] = None,
        user_context: str = "",
    ) -> OperationResult[ScanRecord]:
        """
        Submit a skin, eye or medical report scan.

        Either ``image_url`` (already hosted) or ``image`` (uploaded through
        the configured uploader first) must be given.
        """
        scan_type = ScanType(scan_type)
        if not scan_type.is_imaging:
            raise ValueError(f"{scan_type.value} is not an imaging scan")
        try:
            hosted_url = image_url or await self._host_image(image)
        except AnimusError as e:
            return OperationResult.failure(e)

        context = {"imageUrl": hosted_url, "userContext": (user_context or "").strip()}
        return await self._analyze(scan_type, dict(context), context)

    async def submit_symptoms(self, symptoms: str) -> OperationResult[ScanRecord]:
        text = (symptoms or "").strip()
        if not text:
            return OperationResult.failure(ScanInputError("Please describe your symptoms to get an analysis."))
        return await self._analyze(ScanType.SYMPTOM, {"symptoms": text}, {"symptoms": text})

    async def submit_vitals(
        self,
        blood_pressure: str = "",
        pulse_rate: str = "",
        blood_oxygen: str = "",
        temperature: str = "",
    ) -> OperationResult[ScanRecord]:
        try:
            payload = build_vitals_payload(blood_pressure, pulse_rate, blood_oxygen, temperature)
        except ScanInputError as e:
            return OperationResult.failure(e)
        return await self._analyze(ScanType.VITALS, payload, payload)

    async def submit_cardiac(self, payload: Dict[str, Any], context: Optional[Dict[str, Any]] = None) -> OperationResult[ScanRecord]:
        return await self._analyze(ScanType.CARDIAC, payload, context or {})

    async def _host_image(self, image: Any) -> str:
        if image is None:
            raise ScanInputError("Please take a photo or select an image to analyze.")
        if self.image_uploader is None:
            raise UploadError("No image uploader is configured.")
        try:
            url = await self.image_uploader.upload(image)
        except AnimusError:
            raise
        except Exception as e:
            logger.error(f"Image upload error: {e}")
            raise UploadError(str(e) or None) from e
        if not url:
            raise UploadError("Image upload failed: No URL returned")
        return url

    async def _analyze(
        self,
        scan_type: ScanType,
        payload: Dict[str, Any],
        context: Dict[str, Any],
    ) -> OperationResult[ScanRecord]:
        try:
            response = await self.api_client.submit_scan(scan_type, payload)
            record = normalize_scan_response(scan_type, response, client_context=context)
            appended = await self.history_store.append(record)
        except AnimusError as e:
            logger.warning(f"{scan_type.value} scan failed: {e.message}")
            return OperationResult.failure(e)

        warnings = [appended.warning] if appended.warning else []
        return OperationResult.success(appended.record, warnings=warnings)
