"""
LabTerm Data Models

Pydantic models for sessions and WebSocket messages.
"""

from .session import (
    Environment,
    LifecycleState,
    SessionCreate,
    SessionSnapshot,
    TimeLevel,
)
from .messages import (
    ClientAction,
    KeyEvent,
    ProvisioningStep,
    ResponseType,
    ServerMessage,
)

__all__ = [
    # Session
    "Environment",
    "LifecycleState",
    "SessionCreate",
    "SessionSnapshot",
    "TimeLevel",
    # Messages
    "ClientAction",
    "KeyEvent",
    "ProvisioningStep",
    "ResponseType",
    "ServerMessage",
]
