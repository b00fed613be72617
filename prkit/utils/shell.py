"""Shell command execution utilities."""

import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from prkit.errors import ExecutionError
from prkit.utils.logger import get_logger

logger = get_logger(__name__)


class ShellResult:
    """Shell command result."""

    def __init__(
        self,
        returncode: int,
        stdout: str,
        stderr: str,
        command: Sequence[str],
        cwd: Optional[Path] = None,
    ):
        """Initialize shell result.

        Args:
            returncode: Process return code
            stdout: Standard output
            stderr: Standard error
            command: Executed command and arguments
            cwd: Working directory
        """
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.command = list(command)
        self.cwd = cwd

    @property
    def success(self) -> bool:
        """Check if command succeeded."""
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Standard output without surrounding whitespace."""
        return self.stdout.strip()

    def lines(self) -> List[str]:
        """Non-empty, stripped lines of standard output."""
        return [line.strip() for line in self.stdout.splitlines() if line.strip()]

    def check(self) -> "ShellResult":
        """Check result and raise error if failed.

        Returns:
            Self for chaining

        Raises:
            ExecutionError: If command failed
        """
        if not self.success:
            raise ExecutionError(self.command, self.returncode, self.stderr, self.stdout)
        return self


def describe_command(command: str, args: Sequence[str], cwd: Optional[Path] = None) -> str:
    """Format the one-line announcement printed before a command runs."""
    description = " ".join([command, *args])
    if cwd is not None:
        description += f" 👉 {cwd}"
    return description


class ShellExecutor:
    """Runs external commands for the git, gh and agent integrations.

    Integrations only ever talk to this object, so tests can hand them a
    recording fake instead.
    """

    def __init__(self, env: Optional[Dict[str, str]] = None):
        """Initialize executor.

        Args:
            env: Environment for child processes (inherits the current one if None)
        """
        self.env = env

    def run(
        self,
        command: str,
        args: Sequence[str] = (),
        cwd: Optional[Union[str, Path]] = None,
        check: bool = True,
        title: Optional[str] = None,
        quiet: bool = False,
    ) -> ShellResult:
        """Run a command to completion and capture its output.

        Args:
            command: Executable name
            args: Command arguments
            cwd: Working directory
            check: Raise on non-zero exit
            title: Announcement to log instead of the full command line
            quiet: Only announce the command at debug level

        Returns:
            Command result

        Raises:
            ExecutionError: If the command cannot be started, or exits
                non-zero and check=True
        """
        cwd_path = Path(cwd) if cwd else None
        command_list = [command, *args]

        announcement = title or describe_command(command, args, cwd_path)
        if quiet:
            logger.debug(announcement)
        else:
            logger.info(announcement)

        try:
            completed = subprocess.run(
                command_list,
                cwd=cwd_path,
                env=self.env,
                capture_output=True,
                text=True,
            )
        except (FileNotFoundError, PermissionError, NotADirectoryError) as e:
            logger.error(f"Command not found: {command}")
            raise ExecutionError(command_list, -1, str(e)) from e

        result = ShellResult(
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            command=command_list,
            cwd=cwd_path,
        )

        if result.success:
            logger.debug(f"Command succeeded: {command}")
        else:
            logger.debug(f"Command failed with code {result.returncode}: {' '.join(command_list)}")
            if result.stderr:
                logger.debug(f"stderr: {result.stderr}")

        if check:
            result.check()

        return result

    def which(self, name: str) -> Optional[str]:
        """Return the path of an executable on PATH, or None."""
        return shutil.which(name)


def get_git_root(executor: Optional[ShellExecutor] = None) -> Optional[Path]:
    """Get git repository root directory.

    Returns:
        Git root path or None if not in a git repo
    """
    executor = executor or ShellExecutor()
    try:
        result = executor.run("git", ["rev-parse", "--show-toplevel"], check=False, quiet=True)
    except ExecutionError:
        return None
    if not result.success or not result.output:
        return None
    return Path(result.output)
