"""Tests for the command registry."""

from datetime import datetime, timezone

import pytest

from labterm.terminal.commands import (
    COMMANDS,
    COMMON_COMMANDS,
    CommandContext,
    complete,
    execute,
    not_found,
    parse_command_line,
)
from labterm.terminal.path import VirtualPath


HOME = VirtualPath.parse("/home/user")
NOW = datetime(2025, 12, 15, 10, 30, 0, tzinfo=timezone.utc)


def ctx(path: str = "/home/user") -> CommandContext:
    return CommandContext(path=VirtualPath.parse(path), home=HOME, now=NOW)


class TestRegistry:
    """Tests for registry-wide properties."""

    def test_vocabulary(self):
        """Test every documented command is registered."""
        expected = {
            "help", "ls", "pwd", "cd", "whoami", "date", "clear", "uname",
            "ps", "top", "df", "free", "docker", "kubectl", "python3", "node",
            "cat", "mkdir", "touch", "vim", "nano",
        }
        assert set(COMMANDS) == expected

    @pytest.mark.parametrize("name", sorted(COMMANDS))
    def test_recognized_commands_produce_output(self, name):
        """Test every command yields lines, a clear signal or a new path."""
        result = execute(name, [], ctx())
        assert result.lines or result.clear or result.new_path is not None

    @pytest.mark.parametrize("name", sorted(COMMANDS))
    def test_commands_are_deterministic(self, name):
        """Test the same inputs give the same result."""
        args = ["README.md"]
        assert execute(name, args, ctx()) == execute(name, args, ctx())

    def test_case_insensitive(self):
        """Test command names match regardless of case."""
        assert execute("PWD", [], ctx()).lines == ("/home/user",)
        assert execute("Ls", [], ctx()) == execute("ls", [], ctx())

    def test_parse_command_line(self):
        """Test splitting into name and arguments."""
        assert parse_command_line("  ls   -la  ") == ("ls", ["-la"])
        assert parse_command_line("kubectl get pods") == ("kubectl", ["get", "pods"])
        assert parse_command_line("   ") == ("", [])


class TestNotFound:
    """Tests for unrecognized commands."""

    @pytest.mark.parametrize("name", ["foobar", "rm", "sudo", "Exit"])
    def test_two_line_message(self, name):
        """Test the reply is exactly two lines naming the typed command."""
        result = execute(name, ["whatever"], ctx())
        assert result.lines == (
            f"bash: {name}: command not found",
            'Type "help" to see available commands',
        )
        assert result == not_found(name)
        assert not result.clear
        assert result.new_path is None


class TestCd:
    """Tests for cd path handling."""

    def test_no_args_goes_home(self):
        """Test bare cd returns home."""
        assert execute("cd", [], ctx("/var/log")).new_path == HOME

    def test_tilde_goes_home(self):
        """Test cd ~ returns home."""
        assert execute("cd", ["~"], ctx("/")).new_path == HOME

    def test_up_one_level(self):
        """Test cd .. drops the last segment."""
        assert str(execute("cd", [".."], ctx()).new_path) == "/home"

    def test_up_at_root_is_noop(self):
        """Test cd .. at root stays at root."""
        assert str(execute("cd", [".."], ctx("/")).new_path) == "/"

    @pytest.mark.parametrize("path", ["/", "/home", "/home/user", "/a/b/c/d"])
    def test_up_never_loses_leading_slash(self, path):
        """Test cd .. always yields a non-empty absolute path."""
        new_path = str(execute("cd", [".."], ctx(path)).new_path)
        assert new_path
        assert new_path.startswith("/")

    def test_absolute(self):
        """Test absolute targets replace the path."""
        assert str(execute("cd", ["/etc"], ctx()).new_path) == "/etc"

    def test_relative(self):
        """Test relative targets append a segment."""
        assert str(execute("cd", ["projects"], ctx()).new_path) == "/home/user/projects"


class TestCannedOutput:
    """Tests for individual command outputs."""

    def test_help_lists_commands(self):
        """Test help starts with the header and mentions each editor."""
        lines = execute("help", [], ctx()).lines
        assert lines[0] == "Available commands:"
        assert any("vim <file>" in line for line in lines)

    def test_ls_short_and_long(self):
        """Test ls with and without the long flag."""
        assert execute("ls", [], ctx()).lines == ("projects  scripts  README.md",)
        long_listing = execute("ls", ["-la"], ctx()).lines
        assert long_listing[0] == "total 24"
        assert execute("ls", ["-l"], ctx()).lines == long_listing

    def test_pwd_reports_current_path(self):
        """Test pwd echoes the context path."""
        assert execute("pwd", [], ctx("/var/log")).lines == ("/var/log",)

    def test_date_uses_context_time(self):
        """Test date formats the supplied timestamp."""
        assert execute("date", [], ctx()).lines == ("Mon Dec 15 10:30:00 UTC 2025",)

    def test_clear(self):
        """Test clear signals a scrollback reset."""
        result = execute("clear", [], ctx())
        assert result.clear
        assert result.lines == ()

    def test_uname(self):
        """Test uname with and without -a."""
        assert execute("uname", [], ctx()).lines == ("Linux",)
        assert execute("uname", ["-a"], ctx()).lines[0].startswith("Linux cloud-lab ")

    def test_docker(self):
        """Test docker ps lists containers, anything else prints the version."""
        assert execute("docker", ["ps"], ctx()).lines[0].startswith("CONTAINER ID")
        assert execute("docker", [], ctx()).lines == ("Docker version 20.10.21, build baeda1f",)

    def test_kubectl(self):
        """Test kubectl get pods lists pods."""
        lines = execute("kubectl", ["get", "pods"], ctx()).lines
        assert len(lines) == 4
        assert "frontend-deployment-1" in lines[1]

    def test_df_and_free_human_readable(self):
        """Test -h switches to human-readable sizes."""
        assert "20G" in execute("df", ["-h"], ctx()).lines[1]
        assert "1K-blocks" in execute("df", [], ctx()).lines[0]
        assert "2.0Gi" in execute("free", ["-h"], ctx()).lines[1]

    def test_cat(self):
        """Test cat of the README, a missing file and no operand."""
        assert execute("cat", ["README.md"], ctx()).lines[0] == "# Cloud Lab Environment"
        assert execute("cat", ["missingfile"], ctx()).lines == (
            "cat: missingfile: No such file or directory",
        )
        assert execute("cat", [], ctx()).lines == ("cat: missing file operand",)

    def test_mkdir_and_touch(self):
        """Test mkdir and touch echo the operand."""
        assert execute("mkdir", ["demo"], ctx()).lines == ("Directory 'demo' created",)
        assert execute("mkdir", [], ctx()).lines == ("mkdir: missing operand",)
        assert execute("touch", ["a.txt"], ctx()).lines == ("File 'a.txt' created",)
        assert execute("touch", [], ctx()).lines == ("touch: missing file operand",)

    @pytest.mark.parametrize("editor", ["vim", "nano"])
    def test_editors(self, editor):
        """Test editors open the named file in simulation."""
        assert execute(editor, ["app.py"], ctx()).lines == (
            f"Opening app.py in {editor}... (simulated)",
            "Press Ctrl+C to exit editor simulation",
        )
        assert execute(editor, [], ctx()).lines == (f"{editor}: missing file operand",)

    def test_commands_do_not_move_path(self):
        """Test only cd returns a new path."""
        for name in COMMANDS:
            if name != "cd":
                assert execute(name, ["x"], ctx()).new_path is None


class TestComplete:
    """Tests for Tab completion."""

    def test_unique_prefix(self):
        """Test a unique prefix completes."""
        assert complete("kub") == "kubectl"
        assert complete("do") == "docker"

    def test_ambiguous_prefix(self):
        """Test an ambiguous prefix does nothing."""
        assert complete("p") is None  # pwd, python3
        assert complete("") is None

    def test_no_match(self):
        """Test commands outside the common list are not completed."""
        assert complete("whoa") is None
        assert "whoami" not in COMMON_COMMANDS
