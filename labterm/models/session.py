"""
Session models for LabTerm.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class LifecycleState(str, Enum):
    """Lifecycle of a running lab session."""
    ACTIVE = "active"
    PAUSED = "paused"
    TERMINATED = "terminated"


class TimeLevel(str, Enum):
    """How urgent the remaining session time is."""
    OK = "ok"
    WARNING = "warning"
    CRITICAL = "critical"


class Environment(str, Enum):
    """Operating system flavor shown in the terminal banner."""
    UBUNTU = "ubuntu"
    CENTOS = "centos"
    ALPINE = "alpine"
    DEBIAN = "debian"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class SessionCreate(BaseModel):
    """Request to launch a lab session."""

    lab_id: str = Field(..., min_length=1, pattern=r"^[A-Za-z0-9_.-]+$")
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    environment: Optional[Environment] = None


class SessionSnapshot(BaseModel):
    """Everything a client needs to render the terminal."""

    session_id: str
    lab_id: str
    environment: Environment
    state: LifecycleState
    ready: bool = False
    current_path: str
    prompt: str
    scrollback: List[str]
    current_input: str = ""
    history_index: int = -1
    remaining_seconds: int
    time_display: str
    time_level: TimeLevel
    low_time: bool = False
    created_at: datetime = Field(default_factory=datetime.now)
