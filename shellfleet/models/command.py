"""Command execution data models."""

from dataclasses import dataclass


@dataclass
class CommandResult:
    """Result of a remote command execution.

    A non-zero ``exit_code`` is a normal result; callers decide what it means.
    """

    command: str
    stdout: str
    stderr: str
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0
