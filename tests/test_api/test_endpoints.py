"""
API endpoint tests.

Covers:
- /health liveness check and request-id propagation
- POST /api/v1/insights/realtime (success, 400 error envelope)
- POST /api/v1/twin/simulate (heuristic-only, unknown category)
- /api/v1/scenarios list / defaults / sanitize
- POST /api/v1/matching/candidates
- POST /api/v1/compliance/scan (explicit segments and built segments)
- GET /api/v1/trends
- POST /api/v1/evidence/summarize
- POST /api/v1/negotiation/coach
- POST /api/v1/reports/draft
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from casecast.config import settings
from casecast.engine.blend import FALLBACK_RATIONALES, BlendOrchestrator, FallbackReason
from casecast.main import app
from casecast.services.registry import get_services
from casecast.store.trend_store import InMemoryTrendStore

API = "/api/v1"

THREAT_PAYLOAD = {
    "messages": [
        {"role": "assistant", "content": "How can we help?"},
        {"role": "user", "content": "전 남편에게 협박 문자를 계속 받고 있어요."},
        {"role": "user", "content": "소송 기한이 이번 주라서 너무 급해요."},
    ],
    "intake_summary": {"case_type": "Stalking", "urgency": "urgent"},
}


@pytest_asyncio.fixture
async def client():
    services = get_services()
    services._trend_store = InMemoryTrendStore()
    services._realtime_analyzer = None
    services._blend_orchestrator = BlendOrchestrator(estimator=services.twin_estimator, enabled=False)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["service"] == "casecast"
        assert body["environment"] == settings.environment

    def test_openapi_title_comes_from_settings(self):
        assert app.title == settings.app_name

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"
        assert response.headers["X-Response-Time"].endswith("ms")

    @pytest.mark.asyncio
    async def test_request_id_is_generated(self, client):
        response = await client.get("/health")
        assert response.headers["X-Request-ID"]


class TestInsightsEndpoint:
    @pytest.mark.asyncio
    async def test_realtime(self, client):
        response = await client.post(f"{API}/insights/realtime", json=THREAT_PAYLOAD)
        assert response.status_code == 200

        body = response.json()
        assert 0 <= body["risk_score"] <= 100
        assert {s["id"] for s in body["signals"]} >= {"violence-threat", "legal-deadline"}
        assert "urgency-priority" in [a["id"] for a in body["alerts"]]
        assert body["trends_degraded"] is False
        assert len(body["flow_simulation"]["phases"]) == 5

    @pytest.mark.asyncio
    async def test_realtime_records_trends(self, client):
        await client.post(f"{API}/insights/realtime", json=THREAT_PAYLOAD)
        response = await client.get(f"{API}/trends")

        assert response.status_code == 200
        body = response.json()
        assert body["degraded"] is False
        assert body["total"] == len(body["snapshots"])
        assert "violence-threat" in [s["signal_id"] for s in body["snapshots"]]

    @pytest.mark.asyncio
    async def test_empty_messages_is_400(self, client):
        response = await client.post(f"{API}/insights/realtime", json={"messages": []})
        assert response.status_code == 400

        error = response.json()["error"]
        assert error["code"] == "E1001"
        assert error["field"] == "messages"
        assert error["details"]["errors"]

    @pytest.mark.asyncio
    async def test_non_object_body_is_422(self, client):
        response = await client.post(f"{API}/insights/realtime", json=["not", "an", "object"])
        assert response.status_code == 422


class TestTwinEndpoint:
    @pytest.mark.asyncio
    async def test_simulate_heuristic_only(self, client):
        response = await client.post(f"{API}/twin/simulate", json={"scenario_category": "affair"})
        assert response.status_code == 200

        body = response.json()
        assert body["success_rate"] == 65
        assert body["confidence_label"] == "medium"
        assert body["source"] == "heuristic-only"
        assert body["rationale"] == FALLBACK_RATIONALES[FallbackReason.DISABLED]
        assert body["id"].startswith("twin_")

    @pytest.mark.asyncio
    async def test_unknown_category_is_400(self, client):
        response = await client.post(f"{API}/twin/simulate", json={"scenario_category": "kidnapping"})
        assert response.status_code == 400
        assert response.json()["error"]["field"] == "scenario_category"

    @pytest.mark.asyncio
    async def test_invalid_enum_is_422(self, client):
        response = await client.post(
            f"{API}/twin/simulate", json={"scenario_category": "affair", "weather": "hail"}
        )
        assert response.status_code == 422


class TestScenariosEndpoint:
    @pytest.mark.asyncio
    async def test_list(self, client):
        response = await client.get(f"{API}/scenarios")
        assert response.status_code == 200
        assert [c["id"] for c in response.json()] == ["affair", "corporate", "missing", "insurance"]

    @pytest.mark.asyncio
    async def test_defaults(self, client):
        response = await client.get(f"{API}/scenarios/corporate/defaults")
        assert response.status_code == 200
        body = response.json()
        assert body["dataLossWindow"] == 24
        assert body["cyberMonitoring"] is True
        assert body["securityMaturity"] == "intermediate"

    @pytest.mark.asyncio
    async def test_sanitize(self, client):
        response = await client.post(
            f"{API}/scenarios/corporate/sanitize",
            json={"dataLossWindow": "120h", "cyberMonitoring": "no", "bogus": 1},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["dataLossWindow"] == 96
        assert body["cyberMonitoring"] is False
        assert "bogus" not in body

    @pytest.mark.asyncio
    async def test_sanitize_without_body(self, client):
        response = await client.post(f"{API}/scenarios/affair/sanitize")
        assert response.status_code == 200
        assert response.json()["routinePredictability"] == "moderate"

    @pytest.mark.asyncio
    async def test_unknown_category_is_400(self, client):
        response = await client.get(f"{API}/scenarios/kidnapping/defaults")
        assert response.status_code == 400
        assert response.json()["error"]["field"] == "category"


class TestMatchingEndpoint:
    @pytest.mark.asyncio
    async def test_candidates(self, client):
        response = await client.post(f"{API}/matching/candidates", json={
            "candidates": [
                {"id": "a", "rating_average": 4.0, "success_rate": 70, "experience_years": 5,
                 "specialties": ["stalking"], "contact": {"name": "Investigator A"}},
                {"id": "b", "experience_years": 1},
            ],
            "context": {"keywords": ["stalking"], "overall_risk": "high"},
        })
        assert response.status_code == 200

        body = response.json()
        assert body["total_candidates"] == 2
        assert [r["candidate_id"] for r in body["results"]] == ["a", "b"]
        assert body["results"][0]["rank_bonus"] == 6
        assert body["results"][1]["name"] == "Unknown"


class TestComplianceEndpoint:
    @pytest.mark.asyncio
    async def test_scan_segments(self, client):
        response = await client.post(f"{API}/compliance/scan", json={"segments": [
            {"id": "s1", "label": "Chat", "text": "연락처는010-1234-5678입니다", "source": "Chat"},
        ]})
        assert response.status_code == 200
        body = response.json()
        assert body["overall_severity"] == "high"
        assert body["flagged_issues"][0]["id"] == "pii-phone-s1-1"

    @pytest.mark.asyncio
    async def test_scan_builds_segments(self, client):
        response = await client.post(f"{API}/compliance/scan", json={
            "conversation_summary": "Routine check.",
            "report_draft": "This is not legal advice.",
        })
        assert response.status_code == 200
        body = response.json()
        assert body["total_segments"] == 2
        assert body["clean_segments"] == 1
        assert body["flagged_issues"][0]["source"] == "Report Draft"


class TestEvidenceEndpoint:
    @pytest.mark.asyncio
    async def test_summarize(self, client):
        response = await client.post(f"{API}/evidence/summarize", json={"artifacts": [
            {"title": "Photo of the contract signing", "type": "image", "has_file": True},
        ]})
        assert response.status_code == 200
        body = response.json()
        assert body[0]["id"] == "artifact-0"
        assert body[0]["risk_level"] == "high"


class TestNegotiationEndpoint:
    @pytest.mark.asyncio
    async def test_coach(self, client):
        response = await client.post(f"{API}/negotiation/coach", json=THREAT_PAYLOAD)
        assert response.status_code == 200
        body = response.json()
        assert body["id"].startswith("coach-")
        assert body["tone_guidance"]["primary_tone"] == "Calm, empathetic tone"
        assert [s["id"] for s in body["scripted_responses"]] == ["trust-opening", "value-proposal"]
        assert body["risk_warnings"][0]["id"] == "general-prep"

    @pytest.mark.asyncio
    async def test_invalid_message_is_422(self, client):
        response = await client.post(f"{API}/negotiation/coach", json={"messages": [{"content": "hi"}]})
        assert response.status_code == 422


class TestReportsEndpoint:
    @pytest.mark.asyncio
    async def test_draft(self, client):
        response = await client.post(f"{API}/reports/draft", json={
            "intake_summary": {"case_title": "Harassment"},
            "transcript": [{"role": "user", "content": "Help me."}],
        })
        assert response.status_code == 200
        body = response.json()
        assert body["id"].startswith("report-")
        assert body["title"] == "Harassment"
        assert body["key_insights"] == ["Case: Harassment"]
        assert body["appendix_notes"] == ["Transcript excerpt:\nClient: Help me."]
        assert body["markdown"].startswith("# Harassment\n")
