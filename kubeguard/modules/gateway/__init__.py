"""
Gateway Module - Black Box Interface

Purpose: Single entry point that runs a tool call through the security pipeline
Interface: InvocationGateway.execute(), InvocationGateway.describe_tools()
Hidden: Stage ordering, error conversion, telemetry reporting

Protocol adapters call the gateway; they never reach the executor directly.
"""

from .gateway import InvocationGateway, InvocationResult, InvocationStage
from .telemetry import LoggingTelemetry, NullTelemetry, TelemetrySink

__all__ = [
    "InvocationGateway",
    "InvocationResult",
    "InvocationStage",
    "LoggingTelemetry",
    "NullTelemetry",
    "TelemetrySink",
]
