"""Error types shared across prkit."""

from typing import List, Optional


class PrkitError(Exception):
    """Base class for errors reported to the user."""
    pass


class ExecutionError(PrkitError):
    """External command exited non-zero or could not be spawned."""

    def __init__(
        self,
        command: List[str],
        exit_code: int,
        stderr: str = "",
        stdout: str = "",
        message: Optional[str] = None,
    ):
        """Initialize execution error.

        Args:
            command: Command and arguments that failed
            exit_code: Process exit code (-1 when the process never started)
            stderr: Standard error of the failed process
            stdout: Standard output of the failed process
            message: Optional message overriding the default description
        """
        self.command = list(command)
        self.exit_code = exit_code
        self.stderr = stderr
        self.stdout = stdout
        super().__init__(message or self._describe())

    @property
    def command_line(self) -> str:
        """Command as a single printable line."""
        return " ".join(self.command)

    def _describe(self) -> str:
        if self.exit_code == -1:
            description = f"Failed to run '{self.command_line}'"
        else:
            description = f"Command '{self.command_line}' failed with exit code {self.exit_code}"
        details = self.stderr.strip() or self.stdout.strip()
        if details:
            description += f": {details}"
        return description


class AgentError(ExecutionError):
    """AI agent ran but did not produce usable output."""
    pass


class ParseError(PrkitError):
    """Output of git or gh did not have the expected shape."""
    pass


class UsageError(PrkitError):
    """Invalid or missing user input."""
    pass
