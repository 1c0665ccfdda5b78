"""Relay error taxonomy.

Every failure a request can hit maps to one of these. Handlers raise them and
the exception handler in ``main`` renders a short plain-text response.
"""

from fastapi import Request
from fastapi.responses import PlainTextResponse


class RelayError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ClientError(RelayError):
    """Missing or malformed input."""
    status_code = 400


class AuthorizationError(RelayError):
    """Target host is not on the allowlist."""
    status_code = 403


class UpstreamError(RelayError):
    """Upstream returned a non-2xx status or could not be reached."""
    status_code = 502


class InternalError(RelayError):
    status_code = 500


def error_response(exc: RelayError) -> PlainTextResponse:
    return PlainTextResponse(exc.message, status_code=exc.status_code)


async def relay_error_handler(request: Request, exc: RelayError) -> PlainTextResponse:
    return error_response(exc)
