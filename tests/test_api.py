"""HTTP surface tests: health, preflight, not-found, CORS on every response."""

import asyncio

import pytest


@pytest.mark.anyio
@pytest.mark.parametrize("path", ["/health", "/"])
async def test_health_endpoint(api_client, path):
    res = await api_client.get(path)
    assert res.status_code == 200
    assert res.headers["content-type"] == "application/json"
    data = res.json()
    assert data["ok"] is True
    assert isinstance(data["ts"], int)
    assert res.headers["access-control-allow-origin"] == "*"


@pytest.mark.anyio
async def test_health_timestamp_increases(api_client):
    first = (await api_client.get("/health")).json()["ts"]
    await asyncio.sleep(0.01)
    second = (await api_client.get("/health")).json()["ts"]
    assert second > first


@pytest.mark.anyio
async def test_health_never_contacts_upstream(api_client, upstream):
    await api_client.get("/health")
    assert upstream.requests == []


@pytest.mark.anyio
@pytest.mark.parametrize("path", ["/stream", "/health", "/does/not/exist", "/"])
async def test_preflight_any_path_is_204(api_client, path, upstream):
    res = await api_client.options(
        path,
        headers={
            "Origin": "https://player.example.com",
            "Access-Control-Request-Method": "GET",
            "Access-Control-Request-Headers": "Range",
        },
    )
    assert res.status_code == 204
    assert res.content == b""
    assert res.headers["access-control-allow-origin"] == "*"
    assert res.headers["access-control-allow-methods"] == "GET,HEAD,OPTIONS"
    assert res.headers["access-control-allow-headers"] == "Range,Content-Type,Origin"
    assert upstream.requests == []


@pytest.mark.anyio
async def test_preflight_without_origin_is_still_204(api_client):
    res = await api_client.options("/anything")
    assert res.status_code == 204


@pytest.mark.anyio
async def test_unknown_path_is_404_with_cors(api_client):
    res = await api_client.get("/nope")
    assert res.status_code == 404
    assert res.text == "Not found"
    assert res.headers["access-control-allow-origin"] == "*"
    assert res.headers["access-control-allow-methods"] == "GET,HEAD,OPTIONS"


@pytest.mark.anyio
@pytest.mark.parametrize("method", ["POST", "PUT", "DELETE", "PATCH"])
async def test_unsupported_method_is_404(api_client, upstream, method):
    res = await api_client.request(method, "/stream?url=https%3A%2F%2Fpixeldrain.dev%2Fa.mp4")
    assert res.status_code == 404
    assert res.text == "Not found"
    assert upstream.requests == []

