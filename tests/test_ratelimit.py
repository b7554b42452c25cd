"""Request budgets enforced by slowapi on the API routes."""
from fastapi.testclient import TestClient
from conftest import USE_CASE, make_orchestrator, make_settings
from demogen.core.ratelimit import rate_limiter
from demogen.main import create_app


def _client(project, **overrides) -> TestClient:
    settings = make_settings(demo_app_path=str(project), rate_limit_enabled=True, **overrides)
    orchestrator = make_orchestrator(project, settings=settings)
    return TestClient(create_app(settings=settings, orchestrator=orchestrator))


def test_limits_come_from_settings():
    settings = make_settings(
        rate_limit_max_requests=50,
        rate_limit_window_seconds=600,
        generation_rate_limit_max_requests=5,
        generation_rate_limit_window_seconds=60,
    )
    assert settings.general_rate_limit == "50 per 600 second"
    assert settings.generation_rate_limit == "5 per 60 second"


def test_general_budget_covers_every_route(project):
    with _client(project, rate_limit_max_requests=2) as c:
        assert c.get("/api/v1/health").status_code == 200
        assert c.get("/api/v1/service-stats").status_code == 200
        r = c.get("/api/v1/health")
        assert r.status_code == 429
        body = r.json()
        assert body["code"] == "RATE_LIMIT_EXCEEDED"
        assert body["requestId"] == r.headers["X-Request-Id"]
        assert 0 < int(r.headers["Retry-After"]) <= 3600


def test_generation_budget_is_shared_by_generate_and_preview(project):
    with _client(project, generation_rate_limit_max_requests=2, generation_rate_limit_window_seconds=900) as c:
        assert c.post("/api/v1/preview-ai-enhancements", json=USE_CASE).status_code == 200
        assert c.post("/api/v1/generate-demo", json=USE_CASE).status_code == 200
        r = c.post("/api/v1/generate-demo-enhanced", json=USE_CASE)
        assert r.status_code == 429
        assert 0 < int(r.headers["Retry-After"]) <= 900
        assert c.get("/api/v1/service-stats").status_code == 200


def test_disabled_limiter_never_rejects(project):
    settings = make_settings(demo_app_path=str(project), rate_limit_max_requests=1)
    with TestClient(create_app(settings=settings, orchestrator=make_orchestrator(project, settings=settings))) as c:
        for _ in range(3):
            assert c.get("/api/v1/health").status_code == 200
    assert rate_limiter.limiter.enabled is False


def test_new_app_starts_with_fresh_budgets(project):
    with _client(project, rate_limit_max_requests=1) as c:
        assert c.get("/api/v1/health").status_code == 200
        assert c.get("/api/v1/health").status_code == 429
    with _client(project, rate_limit_max_requests=1) as c:
        assert c.get("/api/v1/health").status_code == 200
