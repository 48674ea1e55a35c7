"""FastAPI application entry point with the Socket.IO server mounted alongside."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import socketio
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, settings
from middleware import (
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
)
from realtime.gateway import Gateway
from realtime.server import create_socket_server
from routers.client import mount_client
from routers.sessions import router as sessions_router
from services.presence import PresenceTracker
from services.session import SessionRegistry
from services.sweeper import SessionSweeper

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the expiry sweeper on startup and cancel it on shutdown."""
    sweeper: SessionSweeper = app.state.sweeper
    sweeper.start()
    logger.info("%s ready, accepting clients from %s",
                app.title, ", ".join(app.state.settings.cors_origins))
    yield
    await sweeper.stop()


def create_app(
    app_settings: Settings | None = None,
    registry: SessionRegistry | None = None,
    presence: PresenceTracker | None = None,
) -> FastAPI:
    """Build the application and its per-process state."""
    app_settings = app_settings or settings
    configure_logging(app_settings.log_level)

    registry = registry or SessionRegistry(ttl_seconds=app_settings.session_ttl_seconds)
    presence = presence or PresenceTracker()
    gateway = Gateway(registry, presence)

    app = FastAPI(
        title=app_settings.app_name,
        version=app_settings.app_version,
        debug=app_settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.registry = registry
    app.state.presence = presence
    app.state.gateway = gateway
    app.state.sio = create_socket_server(gateway, app_settings.cors_origins)
    app.state.sweeper = SessionSweeper(
        registry, app_settings.session_cleanup_interval_seconds
    )

    if app_settings.rate_limit_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            limit=app_settings.rate_limit,
            prefix=app_settings.api_prefix,
        )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(sessions_router, prefix=app_settings.api_prefix)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    # The SPA catch-all must be registered after every other route.
    if app_settings.serve_client:
        mount_client(app, app_settings.client_dist_dir, app_settings.api_prefix)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = "Not found" if exc.status_code == 404 else str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"error": message})

    @app.exception_handler(Exception)
    async def server_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    return app


def create_asgi_app(app: FastAPI) -> socketio.ASGIApp:
    """Wrap the FastAPI app so Socket.IO traffic is served on the same port."""
    return socketio.ASGIApp(
        app.state.sio,
        other_asgi_app=app,
        socketio_path=app.state.settings.socketio_path,
    )


app = create_app()
asgi_app = create_asgi_app(app)


def main() -> None:
    uvicorn.run(asgi_app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
