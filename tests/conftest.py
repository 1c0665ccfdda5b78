"""Test configuration: isolated settings and a recording mock upstream."""

import os

# Keep a developer's .env out of the test run; must be set before any
# streamrelay imports
os.environ["STREAM_RELAY_ENV_FILE"] = "/nonexistent/.env"

import httpx  # noqa: E402
import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from streamrelay.config import Settings  # noqa: E402
from streamrelay.main import create_app  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def relay_settings():
    return Settings(allowed_hosts="pixeldrain.dev,gofile.io", allowed_hosts_file="")


class MockUpstream:
    """Records every outbound request; answers with ``self.handler``."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.handler = lambda request: httpx.Response(200, content=b"")

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.handler(request)
        # A network transport hands the body over unread; so must we, or
        # the relay's aiter_raw() finds the stream already consumed.
        return httpx.Response(
            response.status_code,
            headers=response.headers,
            stream=httpx.ByteStream(response.content),
        )


@pytest.fixture
def upstream():
    return MockUpstream()


@pytest.fixture
async def api_client(relay_settings, upstream):
    app = create_app(relay_settings)
    app.state.upstream_client = httpx.AsyncClient(
        transport=httpx.MockTransport(upstream), follow_redirects=True,
    )
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    await app.state.upstream_client.aclose()
