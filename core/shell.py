"""
Shell bridge for FsBridge.

Runs external commands (chmod, tar, gzip, ln) and captures their output.
Commands block the caller for the life of the process; no timeout is
applied, so a hung command hangs the caller.
"""

import subprocess
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence

from .errors import ShellCommandFailed
from .logger import AuditLogger, ActionType, ActionStatus

# Exit status a POSIX shell reports for a command it cannot find.
COMMAND_NOT_FOUND = 127


@dataclass(frozen=True)
class ShellResult:
    """
    Outcome of one external command.

    ``ignored`` is set on a failed result handed back to a caller that asked
    for failures to be returned instead of raised.
    """
    exit_code: int
    stdout: bytes
    stderr: bytes
    ignored: bool = False

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace").strip()

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")


class ShellBridge:
    """
    Runs external commands and maps non-zero exits to ShellCommandFailed.
    """

    def __init__(self, logger: Optional[AuditLogger] = None):
        """
        Initialize the shell bridge.

        Args:
            logger: Optional audit logger; every command is recorded when set
        """
        self.logger = logger

    def run(
        self,
        args: Sequence[str],
        cwd: Optional[str] = None,
        check: bool = True
    ) -> ShellResult:
        """
        Run a command and wait for it to finish.

        Args:
            args: Program and arguments
            cwd: Working directory for the command
            check: Raise on a non-zero exit instead of returning the result

        Returns:
            ShellResult with the exit code and captured output, marked
            ignored when it failed and check is False

        Raises:
            ShellCommandFailed: If check is True and the command failed
        """
        command: List[str] = [str(a) for a in args]
        try:
            completed = subprocess.run(command, capture_output=True, cwd=cwd)
            result = ShellResult(
                exit_code=completed.returncode,
                stdout=completed.stdout,
                stderr=completed.stderr,
            )
        except FileNotFoundError as e:
            result = ShellResult(
                exit_code=COMMAND_NOT_FOUND,
                stdout=b"",
                stderr=str(e).encode("utf-8"),
            )

        if self.logger is not None:
            self.logger.log_action(
                action_type=ActionType.EXECUTE,
                description=f"Ran: {' '.join(command)}",
                target=cwd,
                status=ActionStatus.EXECUTED if result.succeeded else ActionStatus.FAILED,
                result=f"exit {result.exit_code}",
                metadata={"stderr": result.stderr_text} if result.stderr else None
            )

        if check and not result.succeeded:
            raise ShellCommandFailed(
                f"Command '{' '.join(command)}' exited with code "
                f"{result.exit_code}: {result.stderr_text}",
                command=command,
                exit_code=result.exit_code,
                stderr=result.stderr_text,
            )
        if not result.succeeded:
            result = replace(result, ignored=True)

        return result

    def run_script(
        self,
        script: str,
        cwd: Optional[str] = None,
        check: bool = True
    ) -> ShellResult:
        """Run a bash script line, for pipelines such as ``gzip -dc | tar``."""
        return self.run(["bash", "-c", script], cwd=cwd, check=check)
