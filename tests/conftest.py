"""
Test configuration and shared fixtures for the Animus client test suite.

Local storage runs on an in-memory SQLite database; every test gets a fresh
engine so no state leaks between tests. Network access is never used: HTTP
calls go through httpx.MockTransport or mocked clients.
"""

import json
from typing import Any, Callable, Dict, List

import httpx
import pytest

from animus.core.database import create_session_factory, create_storage_engine, create_tables, drop_tables
from animus.services.api_client import AnimusApiClient
from animus.services.scan_normalizer import normalize_scan_response
from animus.services.storage_service import KeyValueStorage
from animus.shared_types.medical_history import MedicalHistoryEntry
from animus.shared_types.scan import ScanRecord


@pytest.fixture
def db_engine():
    """Create a fresh in-memory storage engine with the schema applied."""
    engine = create_storage_engine("sqlite://")
    create_tables(engine)
    yield engine
    drop_tables(engine)
    engine.dispose()


@pytest.fixture
def storage(db_engine) -> KeyValueStorage:
    """Key-value storage backed by the in-memory engine."""
    return KeyValueStorage(create_session_factory(db_engine))


class RecordingHandler:
    """
    httpx.MockTransport handler that answers from a route table and records requests.

    Routes map "METHOD /path" to a response, a callable returning a response,
    or a list of responses consumed in order.
    """

    def __init__(self, routes: Dict[str, Any]):
        self.routes = routes
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = f"{request.method} {request.url.path}"
        route = self.routes.get(key)
        if route is None:
            return httpx.Response(404, json={"error": f"No route for {key}"})
        if isinstance(route, list):
            route = route.pop(0) if len(route) > 1 else route[0]
        if callable(route):
            return route(request)
        # Fresh copy so a route can answer more than once
        return httpx.Response(route.status_code, headers=route.headers, content=route.content)

    def calls_to(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def json_bodies(self, method: str, path: str) -> List[Any]:
        return [json.loads(r.content) for r in self.calls_to(method, path)]


@pytest.fixture
def make_api_client() -> Callable[[Dict[str, Any]], tuple]:
    """Factory returning (client, handler) for a route table."""

    def _make(routes: Dict[str, Any], token: str = "test-token"):
        handler = RecordingHandler(routes)
        client = AnimusApiClient(
            token=token,
            base_url="http://animus.test",
            timeout=5,
            transport=httpx.MockTransport(handler),
        )
        return client, handler

    return _make


@pytest.fixture
def skin_response() -> Dict[str, Any]:
    """Raw skin scan analysis response."""
    return {
        "_id": "skin-1",
        "short_summary": "Eczema",
        "analysis": "Patches consistent with atopic dermatitis.",
        "confidence": 0.87,
        "scan_details": "Left forearm, 3cm patch",
        "insights": "Moisturize twice daily",
        "date": "2024-02-01T10:00:00.000Z",
    }


@pytest.fixture
def skin_record(skin_response) -> ScanRecord:
    return normalize_scan_response(
        "skin",
        skin_response,
        client_context={"imageUrl": "https://img.example.com/skin-1.jpg", "userContext": "itchy"},
    )


@pytest.fixture
def symptom_record() -> ScanRecord:
    return normalize_scan_response(
        "symptom",
        {
            "_id": "sym-1",
            "analysis": "Likely seasonal flu.",
            "confidence": 0.6,
            "insights": "Rest and fluids",
            "date": "2024-01-01T09:00:00.000Z",
        },
        client_context={"symptoms": "fever and cough"},
    )


@pytest.fixture
def vitals_record() -> ScanRecord:
    return normalize_scan_response(
        "vitals",
        {
            "_id": "vit-1",
            "analysis": "Vitals within normal range.",
            "confidence": 0.9,
            "ai": "No concerns",
            "date": "2024-03-01T08:00:00.000Z",
        },
        client_context={"heartRate": "72", "bpSystolic": "120", "bpDiastolic": "80", "temperature": "98.6"},
    )


@pytest.fixture
def eczema_entry() -> MedicalHistoryEntry:
    return MedicalHistoryEntry.model_validate({
        "_id": "mh-1",
        "condition": "Eczema",
        "description": "Apply emollients",
        "dateDiagnosed": "2024-02-01",
        "isActive": True,
        "referenceId": "skin-1",
    })
