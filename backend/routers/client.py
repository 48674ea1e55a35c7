"""Serve the built frontend from the API process.

Static files come straight from the dist directory; any other GET outside the
API prefix falls back to ``index.html`` so client-side routes such as
``/session/<id>`` load the app.
"""

import logging
from pathlib import Path

from fastapi import APIRouter, FastAPI, HTTPException
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

logger = logging.getLogger(__name__)


def build_client_router(dist_dir: Path, api_prefix: str) -> APIRouter:
    """Catch-all router resolving files in ``dist_dir`` with an SPA fallback."""
    root = dist_dir.resolve()
    index = root / "index.html"
    api_prefix = api_prefix.strip("/")
    router = APIRouter()

    @router.get("/{full_path:path}", include_in_schema=False)
    async def serve_client(full_path: str) -> FileResponse:
        if full_path == api_prefix or full_path.startswith(api_prefix + "/"):
            raise HTTPException(status_code=404)

        candidate = (root / full_path).resolve()
        if full_path and candidate.is_relative_to(root) and candidate.is_file():
            return FileResponse(candidate)
        if not index.is_file():
            raise HTTPException(status_code=404)
        return FileResponse(index)

    return router


def mount_client(app: FastAPI, dist_dir: str, api_prefix: str) -> bool:
    """Attach the frontend to ``app``. Must run after every other route."""
    root = Path(dist_dir)
    if not root.is_dir():
        logger.warning("Client build not found at %s; not serving the frontend", root)
        return False

    assets = root / "assets"
    if assets.is_dir():
        app.mount("/assets", StaticFiles(directory=assets), name="assets")
    app.include_router(build_client_router(root, api_prefix))
    logger.info("Serving client build from %s", root.resolve())
    return True
