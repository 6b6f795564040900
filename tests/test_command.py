"""Tests for the command executors."""

from pathlib import Path

import pytest

from gitops_generator.command import (
    CmdExecutor,
    Command,
    Execution,
    ScriptedExecutor,
)
from gitops_generator.exceptions import CommandException, UnsupportedCommandError


def test_command_string() -> None:
    """Test rendering a command for debugging."""
    command = Command(["git", "commit", "-m", "Removed component a"])
    assert command.string == "git commit -m 'Removed component a'"
    assert str(command) == "git commit -m 'Removed component a'"


def test_command() -> None:
    """Test the output of a command."""
    assert Command(["echo", "Hello"]).run() == b"Hello\n"


def test_failed_command() -> None:
    """Test a failing command."""
    with pytest.raises(CommandException, match="exit status 1"):
        Command(["/bin/false"]).run()


def test_missing_command() -> None:
    """Test a command that does not exist."""
    with pytest.raises(CommandException):
        Command(["/does/not/exist"]).run()


def test_command_timeout() -> None:
    """Test a command that runs longer than its timeout."""
    with pytest.raises(CommandException, match="timed out"):
        Command(["sleep", "5"], timeout=0.1).run()


def test_cmd_executor(tmp_path: Path) -> None:
    """Test running git in a directory."""
    output = CmdExecutor().execute(str(tmp_path), "git", "--version")
    assert output.startswith(b"git version")


def test_cmd_executor_failure(tmp_path: Path) -> None:
    """Test the command output is kept on failure."""
    with pytest.raises(CommandException, match="exit status") as exc_info:
        CmdExecutor().execute(str(tmp_path), "git", "rev-parse", "HEAD")
    assert b"fatal" in exc_info.value.output


def test_cmd_executor_rm(tmp_path: Path) -> None:
    """Test removing a directory."""
    (tmp_path / "components" / "a").mkdir(parents=True)
    (tmp_path / "components" / "a" / "deployment.yaml").write_text("")

    CmdExecutor().execute(str(tmp_path), "rm", "-rf", "components/a")
    assert not (tmp_path / "components" / "a").exists()
    assert (tmp_path / "components").exists()


@pytest.mark.parametrize("command", ["ls", "bash", ""])
def test_unsupported_command(command: str) -> None:
    """Test that only git and rm may be run."""
    message = f'Unsupported command "{command}"'
    with pytest.raises(UnsupportedCommandError, match=message):
        CmdExecutor().execute("/", command)

    executor = ScriptedExecutor()
    with pytest.raises(UnsupportedCommandError):
        executor.execute("/", command)
    assert executor.executions == []


def test_scripted_executor() -> None:
    """Test replaying outputs and errors in order."""
    executor = ScriptedExecutor(
        outputs=["cloned", b"", "fatal: not a branch"],
        errors=[None, None, "exit status 128"],
    )
    assert executor.execute("/tmp", "git", "clone", "remote") == b"cloned"
    assert executor.execute("/tmp/repo", "git", "switch", "main") == b""
    with pytest.raises(CommandException, match="exit status 128") as exc_info:
        executor.execute("/tmp/repo", "git", "checkout", "-b", "main")
    assert exc_info.value.output == b"fatal: not a branch"

    # Running out of scripted results means success
    assert executor.execute("/tmp/repo", "rm", "-rf", "components") == b""

    assert executor.executions == [
        Execution("/tmp", "git", ["clone", "remote"]),
        Execution("/tmp/repo", "git", ["switch", "main"]),
        Execution("/tmp/repo", "git", ["checkout", "-b", "main"]),
        Execution("/tmp/repo", "rm", ["-rf", "components"]),
    ]
