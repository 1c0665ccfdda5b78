"""Outermost ASGI middleware: CORS on every response, preflight, catch-all.

Starlette's ``CORSMiddleware`` only decorates requests that carry an Origin
header and answers preflights with 200.  Browser players need the headers on
every response (including errors) and a bare 204 for any OPTIONS path, so
this middleware stamps them unconditionally.

It also owns the single fatal path: any exception that escapes the app
before the response starts is turned into ``500 Worker error: ...``.
"""

import logging

from starlette.datastructures import MutableHeaders
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from streamrelay.errors import InternalError, error_response

logger = logging.getLogger("cors")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,HEAD,OPTIONS",
    "Access-Control-Allow-Headers": "Range,Content-Type,Origin",
}


class RelayCORSMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if scope["method"] == "OPTIONS":
            response = Response(status_code=204, headers=CORS_HEADERS)
            await response(scope, receive, send)
            return

        response_started = False

        async def send_with_cors(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
                headers = MutableHeaders(scope=message)
                for key, value in CORS_HEADERS.items():
                    headers[key] = value
            await send(message)

        try:
            await self.app(scope, receive, send_with_cors)
        except Exception as exc:
            if response_started:
                # Headers are already on the wire; all we can do is drop
                # the connection.
                logger.exception("Stream aborted after response start: %s", scope.get("path"))
                return
            logger.exception("Unhandled error on %s %s", scope["method"], scope.get("path"))
            response = error_response(InternalError(f"Worker error: {exc}"))
            await response(scope, receive, send_with_cors)
