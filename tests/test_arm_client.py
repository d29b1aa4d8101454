"""Tests for the async ARM client against an httpx.MockTransport.

Covers:
- nextLink pagination and the page safety cap
- 403 surfaces as ArmAPIError; 404 is an empty result
- 429 retry honouring Retry-After, and giving up after MAX_RETRIES
- Safety guardian blocks secret-reading action URLs before any request
"""

import httpx
import pytest

from azure_governance_engine.arm.client import ArmAPIError, ArmClient
from azure_governance_engine.config import ARM_BASE_URL, MAX_RETRIES
from azure_governance_engine.safety.guardian import SafetyGuardian, SafetyViolation


def client_for(handler, **kwargs) -> ArmClient:
    return ArmClient(
        "test-token",
        SafetyGuardian(),
        transport=httpx.MockTransport(handler),
        initial_backoff=0,
        **kwargs,
    )


async def test_list_all_follows_next_link():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.params.get("page") == "2":
            return httpx.Response(200, json={"value": [{"name": "c"}]})
        return httpx.Response(200, json={
            "value": [{"name": "a"}, {"name": "b"}],
            "nextLink": f"{ARM_BASE_URL}/subscriptions?api-version=2022-12-01&page=2",
        })

    async with client_for(handler) as arm:
        items = await arm.list_all("/subscriptions", "2022-12-01")
        stats = arm.get_stats()

    assert [i["name"] for i in items] == ["a", "b", "c"]
    assert seen[0].headers["Authorization"] == "Bearer test-token"
    assert seen[0].url.params["api-version"] == "2022-12-01"
    assert stats["total_requests"] == 2


async def test_page_cap_stops_pagination(caplog):
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(200, json={
            "value": [{"n": calls}],
            "nextLink": f"{ARM_BASE_URL}/loop?page={calls + 1}",
        })

    async with client_for(handler, max_pages=3) as arm:
        items = await arm.list_all("/loop", "2023-01-01")

    assert len(items) == 3
    assert calls == 3
    assert "3-page cap" in caplog.text


async def test_forbidden_list_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"error": {"code": "AuthorizationFailed", "message": "no access"}})

    async with client_for(handler) as arm:
        with pytest.raises(ArmAPIError) as exc:
            await arm.list_all("/subscriptions/s/providers/Microsoft.Sql/servers", "2021-11-01")

    assert exc.value.status_code == 403
    assert "no access" in str(exc.value)


async def test_not_found_is_empty():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404)

    async with client_for(handler) as arm:
        assert await arm.list_all("/missing", "2023-01-01") == []
        data = await arm.get("/missing", "2023-01-01")

    assert data["_not_found"] is True


async def test_empty_body_is_empty_list():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"")

    async with client_for(handler) as arm:
        assert await arm.get("/empty", "2023-01-01") == {"value": []}


async def test_throttling_retries_then_succeeds():
    responses = [
        httpx.Response(429, headers={"Retry-After": "0"}),
        httpx.Response(503),
        httpx.Response(200, json={"value": [{"ok": True}]}),
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        return responses.pop(0)

    async with client_for(handler) as arm:
        items = await arm.list_all("/throttled", "2023-01-01")
        stats = arm.get_stats()

    assert items == [{"ok": True}]
    assert stats["throttle_events"] == 2
    assert stats["total_requests"] == 3


async def test_throttling_gives_up():
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(429, headers={"Retry-After": "0"})

    async with client_for(handler) as arm:
        with pytest.raises(ArmAPIError) as exc:
            await arm.get("/always-throttled", "2023-01-01")

    assert exc.value.status_code == 429
    assert calls == MAX_RETRIES + 1


async def test_server_error_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    async with client_for(handler) as arm:
        with pytest.raises(ArmAPIError) as exc:
            await arm.get("/broken", "2023-01-01")

    assert exc.value.status_code == 500


async def test_blocked_action_never_sent():
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(200, json={})

    guardian = SafetyGuardian()
    arm = ArmClient("t", guardian, transport=httpx.MockTransport(handler), initial_backoff=0)
    async with arm:
        with pytest.raises(SafetyViolation):
            await arm.get(
                "/subscriptions/s/resourceGroups/rg/providers/Microsoft.Storage/storageAccounts/a/listKeys",
                "2023-01-01",
            )

    assert calls == 0
    assert guardian.get_audit_record()["safety_guardian"]["status"] == "VIOLATIONS_DETECTED"


async def test_requires_context_manager():
    arm = client_for(lambda request: httpx.Response(200, json={}))
    with pytest.raises(RuntimeError):
        await arm.get("/x", "2023-01-01")
