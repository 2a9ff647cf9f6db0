"""
Unit tests for the Animus REST client.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from animus.core.exceptions import BackendAnalysisError, RecommendationFetchError, RemoteFetchError
from animus.services.api_client import AnimusApiClient
from animus.shared_types.medical_history import MedicalHistoryEntry
from animus.shared_types.scan import ScanType, Urgency


class TestSubmitScan:
    """Test scan analysis calls."""

    @pytest.mark.asyncio
    async def test_posts_to_scan_type_endpoint(self, make_api_client):
        client, handler = make_api_client({
            "POST /api/skin-scan": httpx.Response(200, json={"short_summary": "Eczema"}),
        })

        body = await client.submit_scan(ScanType.SKIN, {"imageUrl": "https://img/1.jpg", "userContext": ""})

        assert body == {"short_summary": "Eczema"}
        request = handler.requests[0]
        assert str(request.url) == "http://animus.test/api/skin-scan"
        assert request.headers["Authorization"] == "Bearer test-token"
        assert json.loads(request.content) == {"imageUrl": "https://img/1.jpg", "userContext": ""}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("scan_type,path", [
        ("eye", "/api/eye-scan"),
        ("vitals", "/api/vitals"),
        ("symptom", "/api/symptom-report"),
        ("medical_report", "/api/medical-report"),
        ("cardiac", "/api/cardiac-scan"),
    ])
    async def test_endpoint_per_scan_type(self, make_api_client, scan_type, path):
        client, handler = make_api_client({f"POST {path}": httpx.Response(200, json={"analysis": "ok"})})

        await client.submit_scan(scan_type, {})

        assert handler.requests[0].url.path == path

    @pytest.mark.asyncio
    async def test_non_2xx_raises_with_server_message(self, make_api_client):
        client, _ = make_api_client({
            "POST /api/eye-scan": httpx.Response(500, json={"error": "Model overloaded"}),
        })

        with pytest.raises(BackendAnalysisError) as exc_info:
            await client.submit_scan("eye", {})
        assert exc_info.value.message == "Model overloaded"
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_error_body_with_200_raises(self, make_api_client):
        client, _ = make_api_client({"POST /api/vitals": httpx.Response(200, json={"error": "Bad vitals"})})

        with pytest.raises(BackendAnalysisError, match="Bad vitals"):
            await client.submit_scan("vitals", {})

    @pytest.mark.asyncio
    async def test_non_object_body_raises(self, make_api_client):
        client, _ = make_api_client({"POST /api/vitals": httpx.Response(200, json=["x"])})

        with pytest.raises(BackendAnalysisError):
            await client.submit_scan("vitals", {})

    @pytest.mark.asyncio
    async def test_transport_error_raises(self, make_api_client):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        client, _ = make_api_client({"POST /api/vitals": refuse})

        with pytest.raises(BackendAnalysisError):
            await client.submit_scan("vitals", {})

    @pytest.mark.asyncio
    @patch('animus.services.api_client.httpx.AsyncClient')
    async def test_uses_configured_timeout(self, mock_client_class):
        mock_response = MagicMock()
        mock_response.is_error = False
        mock_response.json.return_value = {"analysis": "ok"}

        mock_client = AsyncMock()
        mock_client.request.return_value = mock_response
        mock_client_class.return_value.__aenter__.return_value = mock_client

        client = AnimusApiClient(token=None, base_url="http://animus.test/", timeout=12)
        body = await client.submit_scan("symptom", {"symptoms": "cough"})

        assert body == {"analysis": "ok"}
        assert mock_client_class.call_args.kwargs["timeout"] == 12
        call_args = mock_client.request.call_args
        assert call_args[0] == ("POST", "http://animus.test/api/symptom-report")
        assert "Authorization" not in call_args.kwargs["headers"]


class TestMedicalHistory:
    """Test medical history endpoints."""

    @pytest.mark.asyncio
    async def test_get_entries(self, make_api_client):
        client, _ = make_api_client({
            "GET /api/medical-history": httpx.Response(200, json=[
                {"_id": "m1", "condition": "Flu", "referenceId": "A", "isActive": True},
                {"_id": "m2", "condition": "Asthma", "isActive": None},
                "garbage",
            ]),
        })

        entries = await client.get_medical_histories()

        assert [entry.id for entry in entries] == ["m1", "m2"]
        assert entries[0].reference_id == "A"
        assert entries[1].is_active is True

    @pytest.mark.asyncio
    async def test_non_list_body_is_empty(self, make_api_client):
        client, _ = make_api_client({"GET /api/medical-history": httpx.Response(200, json={"items": []})})
        assert await client.get_medical_histories() == []

    @pytest.mark.asyncio
    async def test_fetch_failure(self, make_api_client):
        client, _ = make_api_client({"GET /api/medical-history": httpx.Response(503)})

        with pytest.raises(RemoteFetchError):
            await client.get_medical_histories()

    @pytest.mark.asyncio
    async def test_create_keeps_local_copy_when_server_echo_is_sparse(self, make_api_client):
        client, handler = make_api_client({
            "POST /api/medical-history": httpx.Response(201, json={"_id": "m5"}),
        })
        entry = MedicalHistoryEntry(condition="Eczema", description="See dermatologist", reference_id="skin-1")

        created = await client.create_medical_history(entry)

        assert created.id == "m5"
        assert created.condition == "Eczema"
        assert handler.json_bodies("POST", "/api/medical-history") == [{
            "condition": "Eczema",
            "description": "See dermatologist",
            "isActive": True,
            "referenceId": "skin-1",
        }]

    @pytest.mark.asyncio
    async def test_create_failure(self, make_api_client):
        client, _ = make_api_client({"POST /api/medical-history": httpx.Response(400, json={"error": "bad"})})

        with pytest.raises(RecommendationFetchError):
            await client.create_medical_history(MedicalHistoryEntry(condition="Eczema"))


class TestRecommendations:
    """Test the classification endpoint."""

    @pytest.mark.asyncio
    async def test_parses_classification(self, make_api_client):
        client, handler = make_api_client({
            "POST /api/recommendations": httpx.Response(200, json={
                "urgency": "Medium",
                "recommendations": "See dermatologist",
                "isMedicalCondition": 1,
                "condition": "Eczema",
            }),
        })

        result = await client.get_recommendations({"analysis": "Rash", "userId": "u1"})

        assert result.is_medical_condition is True
        assert result.condition == "Eczema"
        assert result.urgency == Urgency.MEDIUM
        assert handler.json_bodies("POST", "/api/recommendations") == [{"analysis": "Rash", "userId": "u1"}]

    @pytest.mark.asyncio
    async def test_failure_raises_recommendation_error(self, make_api_client):
        client, _ = make_api_client({"POST /api/recommendations": httpx.Response(500)})

        with pytest.raises(RecommendationFetchError) as exc_info:
            await client.get_recommendations({})
        assert exc_info.value.message == "Failed to fetch recommendations"

    @pytest.mark.asyncio
    async def test_non_json_raises_recommendation_error(self, make_api_client):
        client, _ = make_api_client({"POST /api/recommendations": httpx.Response(200, text="<html>")})

        with pytest.raises(RecommendationFetchError):
            await client.get_recommendations({})


class TestOtherEndpoints:
    """Test reports, profile and chat."""

    @pytest.mark.asyncio
    async def test_health_reports(self, make_api_client):
        client, _ = make_api_client({
            "GET /api/health-reports": httpx.Response(200, json=[{"_id": "r1"}, 3]),
            "POST /api/health-reports": httpx.Response(201, json={"_id": "r2"}),
        })

        assert await client.get_health_reports() == [{"_id": "r1"}]
        assert await client.create_health_report({"reportType": "skin"}) == {"_id": "r2"}

    @pytest.mark.asyncio
    async def test_profile_malformed(self, make_api_client):
        client, _ = make_api_client({"GET /api/profile": httpx.Response(200, json=["x"])})

        with pytest.raises(RemoteFetchError):
            await client.get_profile()

    @pytest.mark.asyncio
    async def test_chat(self, make_api_client):
        client, handler = make_api_client({"POST /api/chat": httpx.Response(200, json={"reply": "Hello"})})

        reply = await client.chat([{"role": "user", "content": "Hi"}], max_tokens=100)

        assert reply == "Hello"
        assert handler.json_bodies("POST", "/api/chat")[0]["maxTokens"] == 100

    @pytest.mark.asyncio
    async def test_chat_empty_reply(self, make_api_client):
        client, _ = make_api_client({"POST /api/chat": httpx.Response(200, json={"reply": "  "})})

        with pytest.raises(RemoteFetchError):
            await client.chat([], max_tokens=100)
