"""Data models for collaborative coding sessions."""

from enum import Enum

from pydantic import BaseModel


DEFAULT_CODE = "// Start coding here...\n"


class Language(str, Enum):
    """Editor languages a session can be switched to."""
    JAVASCRIPT = "javascript"
    PYTHON = "python"
    OTHER = "other"

    @classmethod
    def values(cls) -> frozenset[str]:
        return frozenset(member.value for member in cls)


DEFAULT_LANGUAGE = Language.JAVASCRIPT


class SessionCreated(BaseModel):
    """Response body for session creation."""
    id: str
    message: str = "Session created successfully"


class SessionView(BaseModel):
    """Public view of a session as returned by the REST API."""
    id: str
    code: str
    language: str
