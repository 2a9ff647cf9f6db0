"""
HTTP client for the Animus backend.

Covers the scan-analysis endpoints (one per scan type), the medical-history
store, the recommendation classifier, health reports, the profile and the
chat assistant. All calls are JSON over HTTPS with a bearer token.
"""

import logging
from typing import Any, Dict, List, Optional, Union

import httpx
from pydantic import ValidationError

from animus.core.config import ANIMUS_API_BASE_URL, ANIMUS_REQUEST_TIMEOUT_SECONDS
from animus.core.constants import (
    CHAT_ENDPOINT,
    HEALTH_REPORTS_ENDPOINT,
    MEDICAL_HISTORY_ENDPOINT,
    PROFILE_ENDPOINT,
    RECOMMENDATIONS_ENDPOINT,
    SCAN_ENDPOINTS,
)
from animus.core.exceptions import BackendAnalysisError, RecommendationFetchError, RemoteFetchError
from animus.shared_types.medical_history import ClassificationResponse, MedicalHistoryEntry
from animus.shared_types.scan import ScanType

logger = logging.getLogger(__name__)


class AnimusApiClient:
    """Async client for the Animus REST API."""

    DEFAULT_TOKEN_TYPE = "Bearer"

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = ANIMUS_API_BASE_URL,
        timeout: float = ANIMUS_REQUEST_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__()
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"{self.DEFAULT_TOKEN_TYPE} {self.token}"
        return headers

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            return await client.request(method, self._url(path), json=json, headers=self._headers())

    # Scan analysis

    async def submit_scan(self, scan_type: Union[ScanType, str], payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Send a scan for analysis.

        Args:
            scan_type: Which analysis endpoint to call
            payload: Request body ({imageUrl, userContext}, {symptoms} or vitals fields)

        Returns:
            Parsed response body

        Raises:
            BackendAnalysisError: On transport errors, non-2xx responses,
                non-object bodies or {error: ...} bodies
        """
        scan_type = ScanType(scan_type)
        path = SCAN_ENDPOINTS[scan_type.value]
        try:
            response = await self._request("POST", path, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"{scan_type.value} analysis request failed: {e}")
            raise BackendAnalysisError(f"Failed to analyze {scan_type.value.replace('_', ' ')}.") from e

        body = _json_or_none(response)
        if response.is_error:
            message = _error_message(body) or f"Analysis failed with status {response.status_code}"
            logger.warning(f"{scan_type.value} analysis returned {response.status_code}: {message}")
            raise BackendAnalysisError(message, status_code=response.status_code)
        if not isinstance(body, dict):
            raise BackendAnalysisError("Malformed response from analysis service", status_code=response.status_code)
        if body.get("error"):
            raise BackendAnalysisError(str(body["error"]), status_code=response.status_code)
        return body

    # Medical history

    async def get_medical_histories(self) -> List[MedicalHistoryEntry]:
        """
        Fetch the user's medical history entries.

        Raises:
            RemoteFetchError: On transport errors or non-2xx responses
        """
        body = await self._get_json(MEDICAL_HISTORY_ENDPOINT, "medical history")
        if not isinstance(body, list):
            logger.warning("Medical history response is not a list; treating as empty")
            return []

        entries: List[MedicalHistoryEntry] = []
        for item in body:
            try:
                entries.append(MedicalHistoryEntry.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed medical history entry: {e}")
        return entries

    async def create_medical_history(self, entry: MedicalHistoryEntry) -> MedicalHistoryEntry:
        """
        Create a medical history entry.

        Returns:
            The server's copy when it echoes one back, otherwise ``entry``

        Raises:
            RecommendationFetchError: If the entry could not be created
        """
        try:
            response = await self._request("POST", MEDICAL_HISTORY_ENDPOINT, json=entry.to_create_payload())
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to create medical history entry for {entry.reference_id}: {e}")
            raise RecommendationFetchError("Failed to save to medical history") from e

        body = _json_or_none(response)
        if isinstance(body, dict):
            try:
                created = MedicalHistoryEntry.model_validate(body)
                if created.condition:
                    return created
                return entry.model_copy(update={"id": created.id})
            except ValidationError:
                logger.warning("Unexpected medical history create response; keeping local copy")
        return entry

    # Recommendations

    async def get_recommendations(self, payload: Dict[str, Any]) -> ClassificationResponse:
        """
        Ask the recommendation service to classify a scan's analysis.

        Raises:
            RecommendationFetchError: On transport errors, non-2xx or malformed bodies
        """
        try:
            response = await self._request("POST", RECOMMENDATIONS_ENDPOINT, json=payload)
            response.raise_for_status()
            return ClassificationResponse.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as e:
            # ValidationError and JSON decode errors are both ValueErrors
            logger.warning(f"Recommendation request failed: {e}")
            raise RecommendationFetchError() from e

    # Health reports

    async def get_health_reports(self) -> List[Dict[str, Any]]:
        body = await self._get_json(HEALTH_REPORTS_ENDPOINT, "health reports")
        if not isinstance(body, list):
            return []
        return [item for item in body if isinstance(item, dict)]

    async def create_health_report(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self._request("POST", HEALTH_REPORTS_ENDPOINT, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to save health report: {e}")
            raise RemoteFetchError("Failed to save health report") from e
        body = _json_or_none(response)
        return body if isinstance(body, dict) else {}

    # Profile

    async def get_profile(self) -> Dict[str, Any]:
        body = await self._get_json(PROFILE_ENDPOINT, "profile")
        if not isinstance(body, dict):
            raise RemoteFetchError("Malformed profile response")
        return body

    # Chat

    async def chat(self, messages: List[Dict[str, str]], max_tokens: int) -> str:
        """
        Send a conversation to the assistant and return its reply.

        Raises:
            RemoteFetchError: On transport errors, non-2xx or replies without text
        """
        try:
            response = await self._request("POST", CHAT_ENDPOINT, json={"messages": messages, "maxTokens": max_tokens})
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise RemoteFetchError("Chat request failed") from e
        body = _json_or_none(response)
        reply = body.get("reply") if isinstance(body, dict) else None
        if not isinstance(reply, str) or not reply.strip():
            raise RemoteFetchError("Chat reply was empty")
        return reply

    async def _get_json(self, path: str, label: str) -> Any:
        try:
            response = await self._request("GET", path)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Failed to fetch {label}: {e}")
            raise RemoteFetchError(f"Could not load {label}.") from e
        body = _json_or_none(response)
        if body is None:
            raise RemoteFetchError(f"Malformed {label} response")
        return body


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _error_message(body: Any) -> Optional[str]:
    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return None
