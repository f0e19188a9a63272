"""
Executor Module - Black Box Interface

Purpose: Run one resolved command under a deadline and classify the outcome
Interface: CommandExecutor.run() -> ExecutionResult
Hidden: Process launch, output capture, kill and reap on timeout or cancel

No process is reused and no state is shared between runs.
"""

from .runner import CommandExecutor, ExecutionResult

__all__ = ["CommandExecutor", "ExecutionResult"]
