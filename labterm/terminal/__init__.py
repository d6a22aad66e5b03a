"""
LabTerm simulated terminal

Command registry, virtual path, line-editor session state and the session
countdown.
"""

from .commands import COMMANDS, CommandContext, CommandResult, execute
from .path import VirtualPath
from .session import TerminalSession, new_session
from .timer import CountdownTimer, format_time

__all__ = [
    "COMMANDS",
    "CommandContext",
    "CommandResult",
    "CountdownTimer",
    "TerminalSession",
    "VirtualPath",
    "execute",
    "format_time",
    "new_session",
]
