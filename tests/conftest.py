"""
Shared pytest fixtures for kubeguard tests.

This module provides common fixtures including:
- ProcessMocker: Mock asyncio subprocess launches with canned responses
- RecordingTelemetry: Telemetry sink that keeps every event for assertions
- Gateway factory for building gateways with a given security config
"""

import asyncio
import os
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Pattern, Tuple, Union
from unittest.mock import patch

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from kubeguard.modules.gateway import InvocationGateway
from kubeguard.modules.security import SecurityConfig


# =============================================================================
# Subprocess Mocking Infrastructure
# =============================================================================

@dataclass
class ProcessResponse:
    """Represents a mocked process outcome."""
    output: str = ""
    returncode: int = 0
    delay: float = 0.0
    launch_error: Optional[OSError] = None


class FakeProcess:
    """Stands in for asyncio.subprocess.Process."""

    def __init__(self, response: ProcessResponse):
        self.response = response
        self.returncode: Optional[int] = None
        self.killed = False
        self.stdin_data: Optional[bytes] = None

    async def communicate(self, input: Optional[bytes] = None) -> Tuple[bytes, None]:
        self.stdin_data = input
        if self.response.delay:
            await asyncio.sleep(self.response.delay)
        self.returncode = self.response.returncode
        return self.response.output.encode("utf-8"), None

    def kill(self) -> None:
        self.killed = True
        self.returncode = -9

    async def wait(self) -> int:
        return self.returncode


@dataclass
class ProcessCall:
    """Record of a process launch made during testing."""
    command: List[str]
    kwargs: Dict[str, Any]
    process: Optional[FakeProcess] = None

    @property
    def full_command_str(self) -> str:
        return " ".join(self.command)


class ProcessMocker:
    """
    Mock asyncio.create_subprocess_exec with pattern-matched responses.

    Usage:
        async def test_get_pods(process_mocker):
            process_mocker.register("kubectl get pods", ProcessResponse(output="pod-list"))
            result = await executor.run(command)
            assert process_mocker.was_called_with("get pods")
    """

    def __init__(self):
        self._responses: List[Tuple[Union[str, Pattern], ProcessResponse]] = []
        self._call_history: List[ProcessCall] = []
        self._default_response = ProcessResponse(
            output="Error: mock not configured for this command", returncode=1
        )

    def register(self, pattern: Union[str, Pattern], response: ProcessResponse) -> "ProcessMocker":
        """
        Register a response for command lines matching the pattern.

        Args:
            pattern: String (substring match) or compiled regex
            response: ProcessResponse to use when matched

        Returns:
            self for chaining
        """
        self._responses.append((pattern, response))
        return self

    def set_default_response(self, response: ProcessResponse) -> "ProcessMocker":
        self._default_response = response
        return self

    async def create_subprocess_exec(self, program: str, *args: str, **kwargs) -> FakeProcess:
        command = [program, *args]
        call = ProcessCall(command=command, kwargs=kwargs)
        self._call_history.append(call)

        response = self._default_response
        command_str = call.full_command_str
        for pattern, candidate in self._responses:
            if isinstance(pattern, str):
                matched = pattern in command_str
            else:
                matched = bool(pattern.search(command_str))
            if matched:
                response = candidate
                break

        if response.launch_error is not None:
            raise response.launch_error

        call.process = FakeProcess(response)
        return call.process

    @property
    def calls(self) -> List[ProcessCall]:
        return self._call_history

    @property
    def call_count(self) -> int:
        return len(self._call_history)

    @property
    def last_call(self) -> ProcessCall:
        return self._call_history[-1]

    def was_called_with(self, pattern: str) -> bool:
        return any(pattern in call.full_command_str for call in self._call_history)


@pytest.fixture
def process_mocker():
    """
    Fixture that provides a ProcessMocker with asyncio.create_subprocess_exec patched.

    Nothing is ever launched for real while it is active.
    """
    mocker = ProcessMocker()
    with patch("asyncio.create_subprocess_exec", new=mocker.create_subprocess_exec):
        yield mocker


# =============================================================================
# Telemetry
# =============================================================================

@dataclass
class RecordingTelemetry:
    """Telemetry sink that keeps every event."""
    invocations: List[Tuple[str, str, bool]] = field(default_factory=list)
    startups: int = 0

    def track_tool_invocation(self, tool_name: str, operation: str, success: bool) -> None:
        self.invocations.append((tool_name, operation, success))

    def track_service_startup(self) -> None:
        self.startups += 1


class FailingTelemetry:
    """Telemetry sink whose every call raises."""

    def track_tool_invocation(self, tool_name: str, operation: str, success: bool) -> None:
        raise RuntimeError("telemetry backend unavailable")

    def track_service_startup(self) -> None:
        raise RuntimeError("telemetry backend unavailable")


@pytest.fixture
def telemetry():
    return RecordingTelemetry()


@pytest.fixture
def make_gateway(telemetry):
    """
    Factory for gateways with a recording telemetry sink.

    Usage:
        gateway = make_gateway(access_level="admin", allow_namespaces="prod")
    """

    def _make(
        access_level: str = "readonly",
        allow_namespaces: Optional[str] = None,
        additional_tools: Optional[str] = None,
        timeout_seconds: int = 60,
        **kwargs,
    ) -> InvocationGateway:
        config = SecurityConfig.from_settings(
            access_level=access_level,
            allow_namespaces=allow_namespaces,
            additional_tools=additional_tools,
            timeout_seconds=timeout_seconds,
        )
        kwargs.setdefault("telemetry", telemetry)
        return InvocationGateway(config, **kwargs)

    return _make


# =============================================================================
# Test Markers Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "process_mock: Tests using mocked subprocess launches"
    )
    config.addinivalue_line(
        "markers", "subprocess: Tests that launch real short-lived Python processes"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take a long time to run"
    )
