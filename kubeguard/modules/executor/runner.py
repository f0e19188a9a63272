"""
Bounded subprocess execution.

Each run launches exactly one process with an argv vector (never a shell),
merges stderr into stdout and enforces a hard deadline. On timeout or caller
cancellation the process is killed and reaped before control returns.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from kubeguard.modules.errors import ErrorKind
from kubeguard.modules.resolver.types import ResolvedCommand

logger = logging.getLogger("kubeguard.executor")

DEFAULT_MAX_OUTPUT_CHARS = 1_000_000


@dataclass(frozen=True)
class ExecutionResult:
    """
    Outcome of one process run.

    Attributes:
        output: Combined stdout and stderr; empty on timeout or launch failure
        error: Failure classification, None on success
        exit_code: Process exit status when it ran to completion
        message: Short diagnostic for failures that have no process output
    """

    output: str
    error: Optional[ErrorKind] = None
    exit_code: Optional[int] = None
    message: str = ""

    @property
    def success(self) -> bool:
        return self.error is None


class CommandExecutor:
    """Runs resolved commands. Stateless, so one instance serves every request."""

    def __init__(self, max_output_chars: int = DEFAULT_MAX_OUTPUT_CHARS):
        self.max_output_chars = max_output_chars

    async def run(self, command: ResolvedCommand) -> ExecutionResult:
        """
        Run a command to completion or deadline.

        Args:
            command: Validated command from the resolver

        Returns:
            ExecutionResult classifying the outcome

        Raises:
            asyncio.CancelledError: Re-raised after the process is killed
        """
        stdin_bytes = command.stdin.encode("utf-8") if command.stdin is not None else None

        try:
            proc = await asyncio.create_subprocess_exec(
                command.executable,
                *command.argv,
                stdin=asyncio.subprocess.PIPE if stdin_bytes is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            # FileNotFoundError and PermissionError included; never retried
            logger.error(f"Failed to launch {command.executable}: {e}")
            return ExecutionResult(
                output="",
                error=ErrorKind.LAUNCH_FAILED,
                message=f"failed to launch {command.executable}: {e.strerror or e}",
            )

        try:
            stdout_bytes, _ = await asyncio.wait_for(
                proc.communicate(stdin_bytes), timeout=command.timeout_seconds
            )
        except asyncio.TimeoutError:
            await self._kill(proc)
            logger.warning(
                f"{command.executable} {' '.join(command.argv[:2])} timed out "
                f"after {command.timeout_seconds}s"
            )
            return ExecutionResult(
                output="",
                error=ErrorKind.TIMEOUT,
                message=f"command timed out after {command.timeout_seconds}s",
            )
        except asyncio.CancelledError:
            await self._kill(proc)
            logger.info(f"{command.executable} cancelled by caller, process killed")
            raise

        output = self._decode(stdout_bytes or b"")
        if proc.returncode != 0:
            logger.debug(f"{command.executable} exited with status {proc.returncode}")
            return ExecutionResult(
                output=output,
                error=ErrorKind.EXECUTION_FAILED,
                exit_code=proc.returncode,
                message=f"command exited with status {proc.returncode}",
            )

        return ExecutionResult(output=output, exit_code=0)

    async def _kill(self, proc: asyncio.subprocess.Process) -> None:
        """Kill and reap, shielded so a second cancellation cannot leave a zombie."""
        if proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
        await asyncio.shield(proc.wait())

    def _decode(self, data: bytes) -> str:
        text = data.decode("utf-8", errors="replace")
        if len(text) > self.max_output_chars:
            removed = len(text) - self.max_output_chars
            text = text[: self.max_output_chars] + f"\n\n[Truncated: {removed} characters removed]"
        return text
