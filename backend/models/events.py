"""Real-time protocol: event names, error messages and payload models.

Inbound payloads are parsed into these models at the socket boundary, so the
gateway only ever sees structured data. Field names follow the wire format
(camelCase) through aliases.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Client -> server
JOIN_SESSION = "join-session"
CODE_CHANGE = "code-change"
LANGUAGE_CHANGE = "language-change"
OUTPUT_CHANGE = "output-change"
ACTIVITY_CHANGE = "activity-change"

# Server -> client
SESSION_STATE = "session-state"
CODE_UPDATE = "code-update"
LANGUAGE_UPDATE = "language-update"
OUTPUT_UPDATE = "output-update"
PRESENCE_UPDATE = "presence-update"
ERROR = "error"

# Error messages sent with the `error` event
ERR_SESSION_ID_REQUIRED = "Session ID is required"
ERR_SESSION_NOT_FOUND = "Session not found"
ERR_INVALID_CODE_CHANGE = "Invalid code change data"
ERR_UPDATE_CODE_FAILED = "Failed to update code"
ERR_INVALID_LANGUAGE_CHANGE = "Invalid language change data"
ERR_INVALID_LANGUAGE = "Invalid language selection"
ERR_UPDATE_LANGUAGE_FAILED = "Failed to update language"
ERR_INVALID_OUTPUT = "Invalid output data"


class InboundPayload(BaseModel):
    """Base for client payloads; unknown keys are ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    session_id: Optional[str] = Field(default=None, alias="sessionId")


class JoinSession(InboundPayload):
    """Payload of `join-session`."""


class CodeChange(InboundPayload):
    """Payload of `code-change`. An empty string is a valid buffer."""

    code: Optional[str] = None


class LanguageChange(InboundPayload):
    """Payload of `language-change`."""

    # Type is checked by the gateway so any non-enum value is a bad selection.
    language: Any = None


class OutputChange(InboundPayload):
    """Payload of `output-change`. Only the session id is required."""

    output: Any = ""
    error: Any = None
    is_running: Any = Field(default=False, alias="isRunning")

    @field_validator("output", mode="before")
    @classmethod
    def _default_output(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("is_running", mode="before")
    @classmethod
    def _default_is_running(cls, value: Any) -> Any:
        return False if value is None else value


class ActivityChange(InboundPayload):
    """Payload of `activity-change`."""

    is_active: Optional[bool] = Field(default=None, alias="isActive")


class PresenceUser(BaseModel):
    """One entry of a presence snapshot, keyed by a shortened connection id."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    is_active: bool = Field(alias="isActive")
    joined_at: str = Field(alias="joinedAt")


class PresenceSnapshot(BaseModel):
    """Aggregated presence state of one session room."""

    model_config = ConfigDict(populate_by_name=True)

    user_count: int = Field(default=0, alias="userCount")
    active_count: int = Field(default=0, alias="activeCount")
    users: list[PresenceUser] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
