"""Outbound side of the relay: target validation, header policy, fetch.

Header copying is allowlist-based in both directions so cookies, auth
headers and anything else not named below never cross the relay.
"""

import logging

import httpx
from starlette.datastructures import Headers

from streamrelay.config import Settings
from streamrelay.errors import AuthorizationError, ClientError, UpstreamError

logger = logging.getLogger("upstream")

# Inbound request headers passed to the upstream as-is.
_FORWARD_REQUEST_HEADERS = ("range", "accept")

# Upstream response headers passed back to the caller.
_FORWARD_RESPONSE_HEADERS = {
    "content-type",
    "content-length",
    "content-range",
    "accept-ranges",
    "content-encoding",
    "content-disposition",
    "content-language",
    "cache-control",
    "etag",
    "last-modified",
    "expires",
    "age",
}

EXPOSE_HEADERS = "Content-Length,Content-Range,Accept-Ranges,Content-Type"

_HOST_REQUIRED_SCHEMES = {"http", "https", "ws", "wss", "ftp"}


def create_upstream_client(settings: Settings) -> httpx.AsyncClient:
    timeout = httpx.Timeout(
        connect=settings.upstream_connect_timeout_s,
        read=settings.upstream_read_timeout_s,
        write=settings.upstream_write_timeout_s,
        pool=settings.upstream_pool_timeout_s,
    )
    limits = httpx.Limits(max_connections=settings.upstream_max_connections)
    # identity keeps Content-Length/Content-Range offsets true to the resource
    return httpx.AsyncClient(
        timeout=timeout,
        limits=limits,
        follow_redirects=settings.upstream_follow_redirects,
        headers={"Accept-Encoding": "identity"},
    )


def parse_target(raw: str | None) -> httpx.URL:
    """Parse the ``url`` query parameter into an absolute URL."""
    if not raw:
        raise ClientError("Missing url")
    try:
        url = httpx.URL(raw)
    except httpx.InvalidURL:
        raise ClientError("Invalid url")
    if not url.scheme:
        raise ClientError("Invalid url")
    # Hostless URLs such as mailto: or data: parse fine and then fail the
    # allowlist; web schemes without a host are malformed.
    if not url.raw_host and url.scheme in _HOST_REQUIRED_SCHEMES:
        raise ClientError("Invalid url")
    return url


def target_hostname(url: httpx.URL) -> str:
    # raw_host is the IDNA/punycode form, which is what the allowlist holds.
    return url.raw_host.decode("ascii")


def check_allowed(url: httpx.URL, allowlist: frozenset[str]) -> str:
    """Return the hostname if it is allowlisted, else raise."""
    hostname = target_hostname(url)
    if hostname not in allowlist:
        raise AuthorizationError("Host not allowed")
    return hostname


def forward_request_headers(inbound: Headers, fallback_user_agent: str) -> dict[str, str]:
    headers = {}
    for name in _FORWARD_REQUEST_HEADERS:
        value = inbound.get(name)
        if value:
            headers[name.capitalize()] = value
    headers["User-Agent"] = inbound.get("user-agent") or fallback_user_agent
    return headers


def forward_response_headers(upstream: httpx.Headers) -> dict[str, str]:
    headers = {}
    for key, value in upstream.items():
        if key.lower() in _FORWARD_RESPONSE_HEADERS:
            headers[key] = value
    headers["Access-Control-Allow-Origin"] = "*"
    headers["Access-Control-Expose-Headers"] = EXPOSE_HEADERS
    return headers


async def open_upstream(
    client: httpx.AsyncClient, url: httpx.URL, headers: dict[str, str]
) -> httpx.Response:
    """Send the outbound GET and return the response with its body unread.

    Only 2xx responses are returned; the caller owns closing them.
    """
    request = client.build_request("GET", url, headers=headers)
    try:
        response = await client.send(request, stream=True)
    except httpx.TimeoutException:
        logger.warning("Upstream timed out: %s", str(url)[:120])
        raise UpstreamError("Upstream timed out")
    except httpx.RequestError as e:
        logger.warning("Upstream unreachable: %s (%s)", str(url)[:120], e)
        raise UpstreamError(f"Upstream unreachable: {type(e).__name__}")

    if not response.is_success:
        # Body is discarded; closing frees the connection slot.
        await response.aclose()
        logger.info("Upstream returned %d for %s", response.status_code, str(url)[:120])
        raise UpstreamError(f"Upstream returned {response.status_code}")
    return response
