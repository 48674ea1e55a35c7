"""Session router: create sessions and read their current state."""

import logging
import uuid

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from models.session_model import SessionCreated, SessionView
from services.session import SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


def get_registry(request: Request) -> SessionRegistry:
    """Resolve the registry owned by the running application."""
    return request.app.state.registry


@router.post("", status_code=201, response_model=SessionCreated)
async def create_session(
    registry: SessionRegistry = Depends(get_registry),
) -> SessionCreated:
    """Create a new coding session with a random UUID."""
    session = registry.create(str(uuid.uuid4()))
    logger.info("Created new session via API: %s", session.id)
    return SessionCreated(id=session.id)


@router.get("/{session_id}", response_model=SessionView)
async def get_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
):
    """Return the current code and language of a session."""
    session = registry.get(session_id)
    if session is None:
        logger.warning("Session not found: %s", session_id)
        return JSONResponse(status_code=404, content={"error": "Session not found"})
    return SessionView(id=session.id, code=session.code, language=session.language)
