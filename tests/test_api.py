"""HTTP surface through FastAPI's TestClient."""
import re
import pytest
from fastapi.testclient import TestClient
from conftest import USE_CASE, make_orchestrator, make_settings
from demogen.main import create_app


def _client(project, **overrides) -> TestClient:
    settings = make_settings(demo_app_path=str(project), **overrides)
    orchestrator = make_orchestrator(project, settings=settings)
    return TestClient(create_app(settings=settings, orchestrator=orchestrator))


@pytest.fixture
def client(project):
    with _client(project) as c:
        yield c


def test_generate_enhanced_completes(client):
    r = client.post("/api/v1/generate-demo-enhanced", json=USE_CASE, headers={"X-Caller-Id": "team-7"})

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    data = body["data"]
    assert re.fullmatch(r"[A-Za-z0-9_-]+", data["demoId"])
    assert data["status"] == "completed"
    assert data["createdBy"] == "team-7"
    assert data["progress"]["percentage"] == 100
    assert data["provenance"] == {"narrative": "offline", "component": "offline"}
    assert r.headers["X-Request-Id"] == body["requestId"]


def test_generate_enhanced_short_field_names(client):
    r = client.post("/api/v1/generate-demo-enhanced", json={
        "title": "Smart Loan Advisor",
        "capabilities": ["Credit scoring"],
        "generationPreferences": {"useV0": False, "useAzureOpenAI": False},
    })
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "completed"


def test_invalid_input_returns_400(client):
    r = client.post("/api/v1/generate-demo-enhanced", json={"useCaseTitle": "x", "keyCapabilities": []})

    assert r.status_code == 400
    body = r.json()
    assert body["error"] == "Invalid input"
    assert body["code"] == "VALIDATION_ERROR"
    assert body["message"]
    assert body["timestamp"]
    assert body["requestId"]


def test_disallowed_characters_rejected(client):
    r = client.post("/api/v1/generate-demo", json={
        "useCaseTitle": "<script>alert(1)</script>",
        "keyCapabilities": ["Credit scoring"],
    })
    assert r.status_code == 400


def test_unknown_demo_returns_404(client):
    r = client.get("/api/v1/demos/demo_does_not_exist")

    assert r.status_code == 404
    body = r.json()
    assert body["error"] == "Demo not found"
    assert body["code"] == "NOT_FOUND"


def test_get_and_status_after_generate(client):
    demo_id = client.post("/api/v1/generate-demo-enhanced", json=USE_CASE).json()["data"]["demoId"]

    r = client.get(f"/api/v1/demos/{demo_id}")
    assert r.status_code == 200
    assert r.json()["data"]["demoId"] == demo_id

    r = client.get(f"/api/v1/demo-status/{demo_id}")
    assert r.status_code == 200
    status = r.json()["data"]
    assert status["status"] == "completed"
    assert status["progress"]["steps"]["finalization"] == "completed"


def test_legacy_generate(client):
    r = client.post("/api/v1/generate-demo", json=USE_CASE)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["status"] == "completed"
    assert "export default function DemoApp" in data["componentSource"]
    assert data["generatedBy"]["narrative"] == "offline"


def test_preview(client):
    r = client.post("/api/v1/preview-ai-enhancements", json=USE_CASE)
    assert r.status_code == 200
    data = r.json()["data"]
    assert "confidence" in data
    assert data["enhancedContent"]["title"] == "Smart Loan Advisor"


def test_health(client):
    r = client.get("/api/v1/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "healthy"
    assert body["services"] == {"azureOpenAI": "not_configured", "v0": "not_configured"}
    assert body["target"]["valid"] is True


def test_service_stats(client):
    r = client.get("/api/v1/service-stats")
    assert r.status_code == 200
    assert r.json()["data"]["costs"]["currency"] == "USD"


def test_generation_rate_limit(project):
    with _client(project, rate_limit_enabled=True, generation_rate_limit_max_requests=1) as c:
        assert c.post("/api/v1/generate-demo-enhanced", json=USE_CASE).status_code == 200
        r = c.post("/api/v1/generate-demo-enhanced", json=USE_CASE)
        assert r.status_code == 429
        assert r.json()["code"] == "RATE_LIMIT_EXCEEDED"
        assert "Retry-After" in r.headers
        # non-generation paths keep their own budget
        assert c.get("/api/v1/health").status_code == 200
