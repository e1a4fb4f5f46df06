import httpx
import pytest
from fastapi.testclient import TestClient

from genai_gateway import main
from genai_gateway.core.errors import PaymentRequired
from genai_gateway.db.session import get_last_logs, insert_usage_log
from genai_gateway.schemas.response import UsageLogEntry
from genai_gateway.services import operations
from genai_gateway.services.llm_service import generate


@pytest.fixture
def upstream() -> dict:
    """Mutable holder for the handler answering provider calls."""
    return {"handler": lambda request: httpx.Response(500)}


@pytest.fixture
def api(upstream, transport_factory, monkeypatch):
    transport = transport_factory(lambda request: upstream["handler"](request))

    async def generate_via_transport(kind, request, **kwargs):
        kwargs.pop("client", None)
        async with transport.client() as client:
            return await generate(kind, request, client=client, **kwargs)

    monkeypatch.setattr(main, "generate", generate_via_transport)
    monkeypatch.setattr(operations, "generate", generate_via_transport)
    with TestClient(main.app) as client:
        yield client


def test_root_and_health_without_keys(api) -> None:
    assert api.get("/").json()["health"] == "/health"

    health = api.get("/health").json()
    assert health["status"] == "degraded"
    assert health["database"] == "connected"
    assert health["providers"]["openai"] == "missing_key"
    assert health["image_provider"] is None


def test_health_reports_image_provider(api, monkeypatch) -> None:
    monkeypatch.setenv("ZAI_API_KEY", "z")

    health = api.get("/health").json()

    assert health["status"] == "ok"
    assert health["providers"]["zai"] == "configured"
    assert health["image_provider"] == "zai"


def test_generate_text(api, upstream, monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk")
    upstream["handler"] = lambda request: httpx.Response(
        200, json={"choices": [{"message": {"content": "hi there"}}], "usage": {"total_tokens": 4}}
    )

    r = api.post("/generate", json={"kind": "text", "prompt": "hello", "model": "gpt-4o"})

    assert r.status_code == 200
    body = r.json()
    assert body["text"] == "hi there"
    assert body["provider_used"] == "openai"
    assert body["tokens_used"] == 4
    assert api.get("/admin/logs?limit=1").json()[0]["provider"] == "openai"


@pytest.mark.parametrize(("status", "expected"), [(429, 429), (402, 402), (401, 401), (500, 502)])
def test_generate_maps_provider_errors(api, upstream, monkeypatch, status, expected) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk")
    upstream["handler"] = lambda request: httpx.Response(status, text="upstream")

    r = api.post("/generate", json={"prompt": "hello", "model": "gpt-4o"})

    assert r.status_code == expected
    assert r.json()["detail"]


def test_generate_missing_key_is_400(api) -> None:
    r = api.post("/generate", json={"prompt": "hello", "model": "claude-3-5-sonnet-20241022"})
    assert r.status_code == 400
    assert "ANTHROPIC_API_KEY" in r.json()["detail"]


def test_generate_image_without_provider_is_503(api) -> None:
    r = api.post("/generate", json={"kind": "image", "prompt": "a cat"})
    assert r.status_code == 503


def test_generate_validates_body(api) -> None:
    assert api.post("/generate", json={"prompt": ""}).status_code == 422
    assert api.post("/generate", json={"prompt": "x" * 20_001}).status_code == 413


def test_structure_text_route(api, upstream, monkeypatch) -> None:
    monkeypatch.setenv("ZAI_API_KEY", "z")
    upstream["handler"] = lambda request: httpx.Response(
        200, json={"choices": [{"message": {"content": "Cleaned."}}]}
    )

    r = api.post("/structure-text", json={"content": "<div>" + "news " * 20 + "</div>"})

    assert r.status_code == 200
    assert r.json() == {"success": True, "content": "Cleaned.", "provider_used": "zai"}
    assert get_last_logs(1)[0]["operation"] == "structure-text"


def test_structure_text_payment_required(api, monkeypatch) -> None:
    async def broke(*args, **kwargs):
        raise PaymentRequired("zai")

    monkeypatch.setattr(main, "structure_text", broke)

    r = api.post("/structure-text", json={"content": "y" * 60})

    assert r.status_code == 402
    assert r.json()["detail"] == "Payment required. Please add credits to your workspace."


def test_structure_text_rejects_short_content(api) -> None:
    assert api.post("/structure-text", json={"content": "too short"}).status_code == 422


def test_stats_route(api) -> None:
    insert_usage_log(UsageLogEntry(provider="zai", model="GLM-4.7", operation="x", duration_ms=10, success=True))

    stats = api.get("/llm/stats", params={"time_range": "1h"}).json()

    assert stats["total_calls"] == 1
    assert stats["stats"][0]["provider"] == "zai"
    assert api.get("/llm/stats", params={"time_range": "2w"}).status_code == 422
