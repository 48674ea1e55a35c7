"""Application configuration."""

import os
from pathlib import Path

from pydantic import BaseModel


class Settings(BaseModel):
    """Application settings."""

    app_name: str = "Pair Coding API"
    app_version: str = "0.1.0"
    debug: bool = False
    cors_origins: list[str] = ["http://localhost:5173"]
    api_prefix: str = "/api"
    host: str = "0.0.0.0"
    port: int = 3001
    log_level: str = "INFO"

    # Session settings
    session_ttl_seconds: int = 24 * 60 * 60
    session_cleanup_interval_seconds: int = 60 * 60

    # Socket.IO settings
    socketio_path: str = "socket.io"

    # Rate limiting for API routes (limits string notation)
    rate_limit_enabled: bool = True
    rate_limit: str = "100 per 15 minutes"

    # Serve the built frontend (SPA) from this process
    serve_client: bool = False
    client_dist_dir: str = str(Path(__file__).resolve().parent.parent / "client" / "dist")


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """Build settings from defaults plus environment overrides."""
    env = os.environ if environ is None else environ
    overrides: dict[str, object] = {}
    if env.get("PORT"):
        overrides["port"] = int(env["PORT"])
    if env.get("HOST"):
        overrides["host"] = env["HOST"]
    if env.get("CLIENT_URL"):
        overrides["cors_origins"] = [
            origin.strip() for origin in env["CLIENT_URL"].split(",") if origin.strip()
        ]
    if env.get("LOG_LEVEL"):
        overrides["log_level"] = env["LOG_LEVEL"].upper()
    if env.get("RATE_LIMIT_ENABLED", "").lower() in ("0", "false", "no"):
        overrides["rate_limit_enabled"] = False
    if env.get("RATE_LIMIT"):
        overrides["rate_limit"] = env["RATE_LIMIT"]
    if env.get("CLIENT_DIST_DIR"):
        overrides["client_dist_dir"] = env["CLIENT_DIST_DIR"]
    serve_client = env.get("SERVE_CLIENT", "").lower() in ("1", "true", "yes")
    if serve_client or env.get("NODE_ENV") == "production":
        overrides["serve_client"] = True
    return Settings(**overrides)


settings = load_settings()
