"""
Command registry for the simulated lab shell.

Every command maps to a handler that returns canned output. Handlers are pure
functions of the typed name, the argument list and a CommandContext; none of
them touch a real filesystem or process table.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from ..logging_config import get_logger
from .path import VirtualPath

logger = get_logger("terminal.commands")


@dataclass(frozen=True)
class CommandContext:
    """What a handler is allowed to see about the session."""
    path: VirtualPath
    home: VirtualPath
    now: datetime
    user: str = "user"
    hostname: str = "cloud-lab"


@dataclass(frozen=True)
class CommandResult:
    """
    Output of a single command.

    ``clear`` asks the session to wipe its scrollback instead of appending
    ``lines``. ``new_path`` is only ever set by ``cd``.
    """
    lines: Tuple[str, ...] = ()
    clear: bool = False
    new_path: Optional[VirtualPath] = None

    @classmethod
    def text(cls, *lines: str) -> "CommandResult":
        return cls(lines=tuple(lines))


Handler = Callable[[str, List[str], CommandContext], CommandResult]

# Commands offered by Tab completion
COMMON_COMMANDS = [
    "ls", "cd", "pwd", "cat", "mkdir", "touch",
    "docker", "kubectl", "python3", "node",
]

HELP_TEXT = (
    "Available commands:",
    "  ls [-la]       - List files and directories",
    "  cd <dir>       - Change directory",
    "  pwd            - Print working directory",
    "  cat <file>     - Display file contents",
    "  mkdir <dir>    - Create directory",
    "  touch <file>   - Create empty file",
    "  whoami         - Display current user",
    "  date           - Show current date and time",
    "  clear          - Clear terminal screen",
    "  ps aux         - List running processes",
    "  top            - Display running processes",
    "  df -h          - Show disk usage",
    "  free -h        - Show memory usage",
    "  uname -a       - System information",
    "  docker ps      - List Docker containers",
    "  kubectl get pods - List Kubernetes pods",
    "  python3        - Start Python interpreter",
    "  node           - Start Node.js REPL",
    "  vim <file>     - Edit file with Vim",
    "  nano <file>    - Edit file with Nano",
)

README_TEXT = (
    "# Cloud Lab Environment",
    "",
    "Welcome to your cloud sandbox! This environment includes:",
    "- Ubuntu 20.04 LTS",
    "- Docker & Kubernetes tools",
    "- Python 3.9 & Node.js 16",
    "- Development tools and editors",
)


# =============================================================================
# Handlers
# =============================================================================

def _help(name, args, ctx):
    return CommandResult(lines=HELP_TEXT)


def _ls(name, args, ctx):
    if "-la" in args or "-l" in args:
        return CommandResult.text(
            "total 24",
            f"drwxr-xr-x 5 {ctx.user} {ctx.user} 4096 Dec 15 10:30 .",
            "drwxr-xr-x 3 root root 4096 Dec 15 10:00 ..",
            f"-rw-r--r-- 1 {ctx.user} {ctx.user}  220 Dec 15 10:00 .bash_logout",
            f"-rw-r--r-- 1 {ctx.user} {ctx.user} 3771 Dec 15 10:00 .bashrc",
            f"-rw-r--r-- 1 {ctx.user} {ctx.user}  807 Dec 15 10:00 .profile",
            f"drwxr-xr-x 2 {ctx.user} {ctx.user} 4096 Dec 15 10:30 projects",
            f"drwxr-xr-x 2 {ctx.user} {ctx.user} 4096 Dec 15 10:30 scripts",
            f"-rw-r--r-- 1 {ctx.user} {ctx.user}  156 Dec 15 10:30 README.md",
        )
    return CommandResult.text("projects  scripts  README.md")


def _pwd(name, args, ctx):
    return CommandResult.text(str(ctx.path))


def _cd(name, args, ctx):
    if not args or args[0] == "~":
        return CommandResult(new_path=ctx.home)
    return CommandResult(new_path=ctx.path.resolve(args[0]))


def _whoami(name, args, ctx):
    return CommandResult.text(ctx.user)


def _date(name, args, ctx):
    return CommandResult.text(ctx.now.strftime("%a %b %d %H:%M:%S UTC %Y"))


def _clear(name, args, ctx):
    return CommandResult(clear=True)


def _uname(name, args, ctx):
    if "-a" in args:
        return CommandResult.text(
            f"Linux {ctx.hostname} 5.15.0-generic #72-Ubuntu SMP Tue Nov 23 20:14:38 UTC 2021 "
            "x86_64 x86_64 x86_64 GNU/Linux"
        )
    return CommandResult.text("Linux")


def _ps(name, args, ctx):
    return CommandResult.text(
        "  PID TTY          TIME CMD",
        " 1234 pts/0    00:00:00 bash",
        " 5678 pts/0    00:00:00 ps",
    )


def _top(name, args, ctx):
    return CommandResult.text(
        "top - 10:30:45 up 2:15, 1 user, load average: 0.15, 0.10, 0.05",
        "Tasks: 95 total, 1 running, 94 sleeping, 0 stopped, 0 zombie",
        "%Cpu(s): 15.2 us, 2.1 sy, 0.0 ni, 82.5 id, 0.2 wa, 0.0 hi, 0.0 si, 0.0 st",
        "MiB Mem : 2048.0 total, 1186.4 free, 861.6 used, 0.0 buff/cache",
        "",
        "  PID USER      PR  NI    VIRT    RES    SHR S  %CPU  %MEM     TIME+ COMMAND",
        f" 1234 {ctx.user:<9} 20   0   21.5m   4.2m   3.1m S   1.3   0.2   0:00.45 bash",
    )


def _df(name, args, ctx):
    if "-h" in args:
        return CommandResult.text(
            "Filesystem      Size  Used Avail Use% Mounted on",
            "/dev/sda1        20G  5.6G   13G  28% /",
            "tmpfs           1.0G     0  1.0G   0% /dev/shm",
            "/dev/sda2       100G   45G   50G  48% /home",
        )
    return CommandResult.text(
        "Filesystem     1K-blocks     Used Available Use% Mounted on",
        "/dev/sda1       20971520  5872026  13631488  28% /",
        "tmpfs            1048576        0   1048576   0% /dev/shm",
        "/dev/sda2      104857600 47185920  52428800  48% /home",
    )


def _free(name, args, ctx):
    if "-h" in args:
        return CommandResult.text(
            "               total        used        free      shared  buff/cache   available",
            "Mem:           2.0Gi       861Mi       1.2Gi       0.0Ki       0.0Ki       1.2Gi",
            "Swap:          2.0Gi       0.0Ki       2.0Gi",
        )
    return CommandResult.text(
        "               total        used        free      shared  buff/cache   available",
        "Mem:         2097152      882278     1214874           0           0     1214874",
        "Swap:        2097152           0     2097152",
    )


def _docker(name, args, ctx):
    if args[:1] == ["ps"]:
        return CommandResult.text(
            "CONTAINER ID   IMAGE          COMMAND                  CREATED         STATUS         PORTS                    NAMES",
            'abc123def456   nginx:latest   "/docker-entrypoint.…"   2 minutes ago   Up 2 minutes   0.0.0.0:80->80/tcp      web-server',
            'def456ghi789   redis:alpine   "docker-entrypoint.s…"   5 minutes ago   Up 5 minutes   6379/tcp                redis-cache',
        )
    return CommandResult.text("Docker version 20.10.21, build baeda1f")


def _kubectl(name, args, ctx):
    if args[:2] == ["get", "pods"]:
        return CommandResult.text(
            "NAME                     READY   STATUS    RESTARTS   AGE",
            "frontend-deployment-1    1/1     Running   0          5m",
            "backend-deployment-2     1/1     Running   0          5m",
            "database-deployment-3    1/1     Running   0          10m",
        )
    return CommandResult.text("Usage: kubectl get pods")


def _python3(name, args, ctx):
    return CommandResult.text(
        "Python 3.9.2 (default, Feb 28 2021, 17:03:44)",
        "[GCC 10.2.1 20210110] on linux",
        'Type "help", "copyright", "credits" or "license" for more information.',
        ">>> # Type exit() to return to shell",
    )


def _node(name, args, ctx):
    return CommandResult.text(
        "Welcome to Node.js v16.14.0.",
        'Type ".help" for more information.',
        "> // Type .exit to return to shell",
    )


def _cat(name, args, ctx):
    if not args:
        return CommandResult.text("cat: missing file operand")
    if args[0] == "README.md":
        return CommandResult(lines=README_TEXT)
    return CommandResult.text(f"cat: {args[0]}: No such file or directory")


def _mkdir(name, args, ctx):
    if not args:
        return CommandResult.text("mkdir: missing operand")
    return CommandResult.text(f"Directory '{args[0]}' created")


def _touch(name, args, ctx):
    if not args:
        return CommandResult.text("touch: missing file operand")
    return CommandResult.text(f"File '{args[0]}' created")


def _editor(name, args, ctx):
    if not args:
        return CommandResult.text(f"{name}: missing file operand")
    return CommandResult.text(
        f"Opening {args[0]} in {name}... (simulated)",
        "Press Ctrl+C to exit editor simulation",
    )


# Command dispatch table, keyed by lowercase command name
COMMANDS: Dict[str, Handler] = {
    "help": _help,
    "ls": _ls,
    "pwd": _pwd,
    "cd": _cd,
    "whoami": _whoami,
    "date": _date,
    "clear": _clear,
    "uname": _uname,
    "ps": _ps,
    "top": _top,
    "df": _df,
    "free": _free,
    "docker": _docker,
    "kubectl": _kubectl,
    "python3": _python3,
    "node": _node,
    "cat": _cat,
    "mkdir": _mkdir,
    "touch": _touch,
    "vim": _editor,
    "nano": _editor,
}


def not_found(name: str) -> CommandResult:
    """The two-line reply for anything outside the vocabulary."""
    return CommandResult.text(
        f"bash: {name}: command not found",
        'Type "help" to see available commands',
    )


def parse_command_line(line: str) -> Tuple[str, List[str]]:
    """Split a command line into its name and arguments."""
    parts = line.split()
    if not parts:
        return "", []
    return parts[0], parts[1:]


def execute(name: str, args: List[str], ctx: CommandContext) -> CommandResult:
    """
    Run one command against the registry.

    Args:
        name: Command name as typed; matched case-insensitively
        args: Arguments following the command name
        ctx: Session context (current path, home, timestamp)

    Returns:
        CommandResult with output lines, a clear signal or a new path
    """
    handler = COMMANDS.get(name.lower())
    if handler is None:
        logger.debug("Unknown command: %s", name)
        return not_found(name)
    return handler(name, args, ctx)


def complete(prefix: str) -> Optional[str]:
    """Return the single common command starting with ``prefix``, if unique."""
    matches = [cmd for cmd in COMMON_COMMANDS if cmd.startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    return None
