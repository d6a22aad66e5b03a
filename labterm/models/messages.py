"""
WebSocket message models for client-server communication.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .session import SessionSnapshot


class ResponseType(str, Enum):
    """Types of messages sent to the client."""
    PROVISIONING = "provisioning"
    SNAPSHOT = "snapshot"
    TICK = "tick"
    TRANSCRIPT = "transcript"
    SESSION_ENDED = "session_ended"
    ERROR = "error"


class ClientAction(str, Enum):
    """Session controls a client may send instead of a keystroke."""
    COPY = "copy"
    PAUSE = "pause"
    RESUME = "resume"
    RESTART = "restart"
    END = "end"


class KeyEvent(BaseModel):
    """
    Keystroke from the terminal input.

    ``input`` carries the current value of the input line before the key is
    applied, so plain text edits travel as a replacement value.
    """

    key: Optional[str] = None
    input: Optional[str] = None
    action: Optional[ClientAction] = None


class ProvisioningStep(BaseModel):
    """One stage of the scripted environment startup."""

    progress: int = Field(..., ge=0, le=100)
    message: str


class ServerMessage(BaseModel):
    """Message from server to client."""

    type: ResponseType
    content: Optional[str] = None

    # For provisioning
    step: Optional[ProvisioningStep] = None

    # For snapshot
    snapshot: Optional[SessionSnapshot] = None

    # For tick
    remaining_seconds: Optional[int] = None
    time_display: Optional[str] = None

    timestamp: datetime = Field(default_factory=datetime.now)
