"""Allowlisted streaming relay for media players.

``/stream?url=<encoded>`` fetches the target from a trusted upstream host and
streams the body back with CORS headers so browser players (hls.js, dash.js,
plain <video>) can load manifests, segments and progressive files that the
upstream itself would refuse cross-origin.  Range requests pass through so
seeking works.
"""

import logging

import anyio
import httpx
from fastapi import APIRouter, Request
from fastapi.responses import Response, StreamingResponse

from streamrelay.pipe import BytePipe
from streamrelay.upstream import (
    check_allowed,
    forward_request_headers,
    forward_response_headers,
    open_upstream,
    parse_target,
)

logger = logging.getLogger("stream_proxy")

router = APIRouter()


async def _relay_body(upstream: httpx.Response, chunk_size: int, max_chunks: int):
    pipe = BytePipe(upstream.aiter_raw(chunk_size), max_chunks=max_chunks)
    try:
        async for chunk in pipe:
            yield chunk
    finally:
        # Runs on completion, upstream failure, or client disconnect.
        with anyio.CancelScope(shield=True):
            await pipe.aclose()
            await upstream.aclose()
        logger.debug("Relay closed after %d bytes", pipe.bytes_relayed)


@router.api_route("/stream", methods=["GET", "HEAD"])
async def stream(request: Request, url: str | None = None):
    """Validate, authorize, forward, relay."""
    settings = request.app.state.settings
    client: httpx.AsyncClient = request.app.state.upstream_client

    target = parse_target(url)
    hostname = check_allowed(target, settings.allowlist)

    upstream_headers = forward_request_headers(request.headers, settings.fallback_user_agent)
    upstream = await open_upstream(client, target, upstream_headers)

    headers = forward_response_headers(upstream.headers)
    logger.info(
        "%s %s -> %d (range=%s)",
        request.method, hostname, upstream.status_code,
        upstream_headers.get("Range", "-"),
    )

    if request.method == "HEAD":
        await upstream.aclose()
        return Response(status_code=upstream.status_code, headers=headers)

    return StreamingResponse(
        _relay_body(upstream, settings.relay_chunk_size, settings.relay_buffer_chunks),
        status_code=upstream.status_code,
        headers=headers,
    )
