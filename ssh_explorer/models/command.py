"""Command execution data models."""

import shlex
from dataclasses import dataclass


@dataclass(frozen=True)
class CommandRequest:
    """A single remote command to run."""

    command: str
    working_dir: str | None = None
    input: bytes | None = None
    timeout: float | None = 30.0

    @property
    def shell_command(self) -> str:
        """Command line as sent to the remote shell."""
        if self.working_dir:
            return f"cd {shlex.quote(self.working_dir)} && {self.command}"
        return self.command


@dataclass(frozen=True)
class CommandResult:
    """Result of a remote command execution.

    Lines keep their terminators so ``output`` reproduces the stream exactly.
    """

    returncode: int
    stdout_lines: tuple[str, ...] = ()
    stderr_lines: tuple[str, ...] = ()

    @classmethod
    def from_output(cls, returncode: int, stdout: str, stderr: str = "") -> "CommandResult":
        """Build a result from whole stdout/stderr strings."""
        return cls(
            returncode=returncode,
            stdout_lines=tuple(stdout.splitlines(keepends=True)),
            stderr_lines=tuple(stderr.splitlines(keepends=True)),
        )

    @property
    def output(self) -> str:
        return "".join(self.stdout_lines)

    @property
    def error(self) -> str:
        return "".join(self.stderr_lines)

    @property
    def ok(self) -> bool:
        return self.returncode == 0
