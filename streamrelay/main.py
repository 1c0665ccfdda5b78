"""FastAPI application entrypoint: lifespan, routes, and error rendering."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from streamrelay.api.routes import router as health_router
from streamrelay.api.stream_proxy import router as stream_router
from streamrelay.config import Settings, _resolve_env_file, settings as default_settings
from streamrelay.cors import RelayCORSMiddleware
from streamrelay.errors import RelayError, relay_error_handler
from streamrelay.upstream import create_upstream_client

logging.basicConfig(
    level=default_settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    env_path = _resolve_env_file()
    logger.info(
        "Starting stream relay (env_file=%s, exists=%s)",
        env_path, env_path.exists(),
    )
    settings: Settings = app.state.settings
    settings.warn_insecure_defaults()

    # Tests may install their own client before startup.
    owns_client = getattr(app.state, "upstream_client", None) is None
    if owns_client:
        app.state.upstream_client = create_upstream_client(settings)

    logger.info(
        "Relay ready (connect_timeout=%.0fs, read_timeout=%.0fs)",
        settings.upstream_connect_timeout_s, settings.upstream_read_timeout_s,
    )
    yield

    logger.info("Shutting down")
    if owns_client:
        await app.state.upstream_client.aclose()
        app.state.upstream_client = None
    logger.info("Shutdown complete")


async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Unknown paths and wrong methods on known paths look the same to callers.
    if exc.status_code in (404, 405):
        return PlainTextResponse("Not found", status_code=404)
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code)


def create_app(settings: Settings | None = None) -> FastAPI:
    app = FastAPI(
        title="Stream Relay",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings or default_settings
    app.state.upstream_client = None

    app.add_exception_handler(RelayError, relay_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)

    # Outermost: preflight, CORS stamping and the 500 catch-all.
    app.add_middleware(RelayCORSMiddleware)

    app.include_router(health_router)
    app.include_router(stream_router)
    return app


app = create_app()


def run():
    """Console entry point."""
    import uvicorn

    uvicorn.run(
        "streamrelay.main:app",
        host=default_settings.host,
        port=default_settings.port,
        log_level=default_settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
