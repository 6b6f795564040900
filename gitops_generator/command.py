"""Library for issuing git and rm commands against a local working tree.

The git sync driver never calls `subprocess` directly, it emits an `Execution`
to an `Executor`. The `CmdExecutor` runs the real process while the
`ScriptedExecutor` records every execution and replays scripted outputs and
errors so that a whole sync can be verified without touching a remote.
"""

from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
import logging
import os
import shlex
import subprocess
from pathlib import Path

from .exceptions import CommandException, UnsupportedCommandError

__all__ = [
    "CommandType",
    "Execution",
    "Executor",
    "CmdExecutor",
    "ScriptedExecutor",
]

_LOGGER = logging.getLogger(__name__)

UNSUPPORTED_CMD_MSG = 'Unsupported command "{}"'


class CommandType(str, Enum):
    """Commands that an executor is allowed to run."""

    GIT = "git"
    RM = "rm"


def supported_command(command: str) -> CommandType:
    """Return the CommandType for the command or raise if it is not supported."""
    try:
        return CommandType(command)
    except ValueError as err:
        raise UnsupportedCommandError(UNSUPPORTED_CMD_MSG.format(command)) from err


@dataclass
class Execution:
    """A record of a single command emitted to an executor."""

    base_dir: str
    """Working directory of the command."""

    command: str
    """The command name e.g. git."""

    args: list[str] = field(default_factory=list)
    """Arguments passed to the command."""


def format_path(path: Path) -> str:
    """Format path for debugging."""
    if path.is_absolute():
        cwd = Path.cwd()
        if path.is_relative_to(cwd):
            rel_path = str(path.relative_to(cwd))
            return f"{rel_path} (abs)"
    return str(path)


@dataclass
class Command:
    """An instance of a command to run."""

    cmd: list[str]
    """Array of command line arguments."""

    cwd: Path | None = None
    """Current working directory."""

    env: dict[str, str] | None = None
    """Environment variables for the subprocess."""

    timeout: float | None = None
    """Seconds to wait for the command, or None to wait forever."""

    @property
    def string(self) -> str:
        """Render the command as a single string."""
        return " ".join([shlex.quote(arg) for arg in self.cmd])

    def __str__(self) -> str:
        """Render as a debug string."""
        cwd: str = ""
        if self.cwd:
            cwd = f"({format_path(self.cwd)}) "
        return f"{cwd}{self.string}"

    def run(self) -> bytes:
        """Run the command, returning combined stdout and stderr."""
        _LOGGER.debug("Running command: %s", self)
        env = {
            **os.environ,
            **(self.env if self.env else {}),
        }
        try:
            proc = subprocess.run(
                self.cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                cwd=self.cwd,
                env=env,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as err:
            raise CommandException(
                f"Command '{self}' timed out", err.output or b""
            ) from err
        except OSError as err:
            raise CommandException(str(err)) from err
        if proc.returncode:
            _LOGGER.debug(
                "Command '%s' failed with return code %s: %s",
                self,
                proc.returncode,
                proc.stdout.decode("utf-8", errors="replace"),
            )
            raise CommandException(f"exit status {proc.returncode}", proc.stdout)
        return proc.stdout


class Executor(ABC):
    """Runs a command in a working directory."""

    @abstractmethod
    def execute(self, base_dir: str, command: str, *args: str) -> bytes:
        """Run the command and return its output.

        Raises `CommandException` carrying the command output on failure and
        `UnsupportedCommandError` for anything other than git or rm.
        """


class CmdExecutor(Executor):
    """Executor that runs the command as a local process."""

    def __init__(self, timeout: float | None = None) -> None:
        """Initialize CmdExecutor with an optional per-command timeout."""
        self._timeout = timeout

    def execute(self, base_dir: str, command: str, *args: str) -> bytes:
        cmd_type = supported_command(command)
        return Command(
            [cmd_type.value, *args],
            cwd=Path(base_dir) if base_dir else None,
            timeout=self._timeout,
        ).run()


class ScriptedExecutor(Executor):
    """Executor that records executions and replays scripted results.

    Outputs and errors are consumed in order, one of each per execution. A
    `None` error (or running out of scripted errors) means the command
    succeeded.
    """

    def __init__(
        self,
        outputs: Iterable[bytes | str] = (),
        errors: Iterable[str | Exception | None] = (),
    ) -> None:
        """Initialize ScriptedExecutor with the results to replay."""
        self._outputs = deque(
            out.encode() if isinstance(out, str) else out for out in outputs
        )
        self._errors = deque(errors)
        self.executions: list[Execution] = []

    def execute(self, base_dir: str, command: str, *args: str) -> bytes:
        cmd_type = supported_command(command)
        self.executions.append(Execution(base_dir, cmd_type.value, list(args)))
        output = self._outputs.popleft() if self._outputs else b""
        error = self._errors.popleft() if self._errors else None
        if error is None:
            return output
        if isinstance(error, CommandException):
            raise error
        raise CommandException(str(error), output)
