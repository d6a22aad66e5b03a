"""
Terminal session state for the simulated lab shell.

Holds the scrollback, the input line, command history and the virtual working
directory, and applies one transition per keystroke.
"""

from datetime import datetime, timezone
from typing import Callable, List, Optional

from ..config import get_settings
from ..logging_config import get_logger
from ..models.session import Environment
from . import commands
from .commands import CommandContext
from .path import VirtualPath

logger = get_logger("terminal.session")

ENTER = "Enter"
ARROW_UP = "ArrowUp"
ARROW_DOWN = "ArrowDown"
TAB = "Tab"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TerminalSession:
    """
    Interactive line editor over the command registry.

    Attributes:
        current_path: Virtual working directory
        scrollback: Lines shown in the terminal, oldest first
        command_history: Submitted commands, oldest first
        history_index: Cursor into command_history, -1 when not navigating
        current_input: Text in the input line
    """

    def __init__(
        self,
        session_id: str,
        lab_id: str,
        environment: Environment = Environment.UBUNTU,
        user: str = "user",
        hostname: str = "cloud-lab",
        home_path: str = "/home/user",
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.session_id = session_id
        self.lab_id = lab_id
        self.environment = environment
        self.user = user
        self.hostname = hostname
        self.home = VirtualPath.parse(home_path)
        self._clock = clock

        self.current_path = self.home
        self.scrollback: List[str] = self._welcome_banner()
        self.command_history: List[str] = []
        self.history_index = -1
        self.current_input = ""

    def _welcome_banner(self) -> List[str]:
        return [
            f"Welcome to {self.environment.display_name} Cloud Sandbox",
            f"Session ID: {self.session_id}",
            f"Lab Environment: {self.lab_id}",
            'Type "help" for available commands',
            "",
        ]

    @property
    def prompt(self) -> str:
        return f"{self.user}@{self.hostname}:{self.current_path.display(self.home)}$"

    # -------------------------------------------------------------------------
    # Keystrokes
    # -------------------------------------------------------------------------

    def set_input(self, text: str) -> None:
        """Replace the input line (plain typing, deletion, paste)."""
        self.current_input = text

    def handle_key(self, key: str) -> None:
        """Apply one keystroke. Keys without a transition are ignored."""
        if key == ENTER:
            self.submit()
        elif key == ARROW_UP:
            self.history_up()
        elif key == ARROW_DOWN:
            self.history_down()
        elif key == TAB:
            self.complete()

    def submit(self) -> None:
        """Run the input line as a command and clear it."""
        line = self.current_input.strip()
        self.current_input = ""
        if not line:
            return

        self.command_history.append(line)
        self.history_index = -1
        echo = f"{self.prompt} {line}"

        name, args = commands.parse_command_line(line)
        ctx = CommandContext(
            path=self.current_path,
            home=self.home,
            now=self._clock(),
            user=self.user,
            hostname=self.hostname,
        )
        result = commands.execute(name, args, ctx)

        if result.new_path is not None:
            self.current_path = result.new_path
        if result.clear:
            self.scrollback = []
            return
        self.scrollback.append(echo)
        self.scrollback.extend(result.lines)
        self.scrollback.append("")

    def history_up(self) -> None:
        if not self.command_history:
            return
        if self.history_index == -1:
            self.history_index = len(self.command_history) - 1
        else:
            self.history_index = max(0, self.history_index - 1)
        self.current_input = self.command_history[self.history_index]

    def history_down(self) -> None:
        if self.history_index == -1:
            return
        next_index = self.history_index + 1
        if next_index >= len(self.command_history):
            self.history_index = -1
            self.current_input = ""
        else:
            self.history_index = next_index
            self.current_input = self.command_history[next_index]

    def complete(self) -> None:
        match = commands.complete(self.current_input)
        if match is not None:
            self.current_input = match + " "

    # -------------------------------------------------------------------------
    # Session controls
    # -------------------------------------------------------------------------

    def restart(self) -> None:
        """Reset the screen and working directory; history is kept."""
        self.scrollback = [
            "Restarting environment...",
            "Environment restarted successfully!",
            f"Welcome to {self.environment.display_name} Cloud Sandbox",
            f"Session ID: {self.session_id}",
            "",
        ]
        self.current_path = self.home
        self.current_input = ""
        self.history_index = -1
        logger.info(f"Terminal restarted: {self.session_id}")

    def transcript(self) -> str:
        """Scrollback as plain text, for copy and download."""
        return "\n".join(self.scrollback)

    @property
    def transcript_filename(self) -> str:
        return f"terminal-session-{self.session_id}.txt"


def new_session(
    session_id: str,
    lab_id: str,
    environment: Optional[Environment] = None,
    **kwargs,
) -> TerminalSession:
    """Create a TerminalSession using the configured shell identity."""
    terminal = get_settings().terminal
    return TerminalSession(
        session_id=session_id,
        lab_id=lab_id,
        environment=environment or Environment(terminal.default_environment),
        user=terminal.user,
        hostname=terminal.hostname,
        home_path=terminal.home_path,
        **kwargs,
    )
