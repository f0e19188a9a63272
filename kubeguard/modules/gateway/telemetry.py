"""Telemetry sinks for invocation outcomes."""

import logging
import uuid
from typing import Protocol

logger = logging.getLogger("kubeguard.telemetry")


class TelemetrySink(Protocol):
    """Protocol for outcome reporting backends."""

    def track_tool_invocation(self, tool_name: str, operation: str, success: bool) -> None:
        """Record the outcome of one tool call."""
        ...

    def track_service_startup(self) -> None:
        """Record that the service started."""
        ...


class LoggingTelemetry:
    """Emits one structured log line per event."""

    def __init__(self, service_name: str = "kubeguard", service_version: str = "", device_id: str = ""):
        self.service_name = service_name
        self.service_version = service_version
        # Anonymous per-process identifier
        self.device_id = device_id or uuid.uuid4().hex

    def track_tool_invocation(self, tool_name: str, operation: str, success: bool) -> None:
        logger.info(
            f"tool_invocation tool.name={tool_name} tool.operation={operation} "
            f"tool.success={str(success).lower()} device.id={self.device_id}"
        )

    def track_service_startup(self) -> None:
        logger.info(
            f"service_startup service.name={self.service_name} "
            f"service.version={self.service_version} device.id={self.device_id}"
        )


class NullTelemetry:
    """Discards every event."""

    def track_tool_invocation(self, tool_name: str, operation: str, success: bool) -> None:
        pass

    def track_service_startup(self) -> None:
        pass
