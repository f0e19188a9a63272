"""
Invocation gateway.

The single entry point for tool calls. Runs the pipeline

    RECEIVED -> ACCESS_CHECKED -> NAMESPACE_CHECKED -> RESOLVED -> EXECUTED

stopping at the first failure, and turns every outcome into an
InvocationResult. Each call is reported to the telemetry sink exactly once.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from kubeguard.modules.errors import ErrorKind, GatewayError
from kubeguard.modules.executor import CommandExecutor
from kubeguard.modules.gateway.telemetry import NullTelemetry, TelemetrySink
from kubeguard.modules.resolver import CommandRequest, CommandResolver
from kubeguard.modules.security import (
    AccessPolicy,
    NamespaceGuard,
    SecurityConfig,
    check_access,
    check_tool_enabled,
    request_resources,
)

logger = logging.getLogger("kubeguard.gateway")


class InvocationStage(str, Enum):
    """Pipeline stages in the order a request passes them."""

    RECEIVED = "received"
    ACCESS_CHECKED = "access_checked"
    NAMESPACE_CHECKED = "namespace_checked"
    RESOLVED = "resolved"
    EXECUTED = "executed"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class InvocationResult:
    """
    Outcome of one tool call.

    Attributes:
        text: Tool output on success; the tool's own diagnostics on a non-zero exit
        error: Failure kind, None on success
        message: Explanation of the failure
        stage: Last stage the request passed (SUCCEEDED on success)
    """

    text: str = ""
    error: Optional[ErrorKind] = None
    message: str = ""
    stage: InvocationStage = InvocationStage.RECEIVED

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def outcome(self) -> InvocationStage:
        return InvocationStage.SUCCEEDED if self.succeeded else InvocationStage.FAILED

    @property
    def error_text(self) -> str:
        """Caller-facing text for a failed call."""
        if self.succeeded:
            return ""
        parts = [f"{self.error.value}: {self.message}" if self.message else self.error.value]
        if self.text:
            parts.append(self.text)
        return "\n".join(parts)


class _Progress:
    """Last stage a request passed."""

    def __init__(self):
        self.stage = InvocationStage.RECEIVED


class InvocationGateway:
    """Composes access policy, namespace guard, resolver and executor."""

    def __init__(
        self,
        config: SecurityConfig,
        resolver: Optional[CommandResolver] = None,
        executor: Optional[CommandExecutor] = None,
        telemetry: Optional[TelemetrySink] = None,
        policy: Optional[AccessPolicy] = None,
    ):
        """
        Initialize gateway.

        Args:
            config: Immutable security configuration shared by all requests
            resolver: Command resolver; built from config when omitted
            executor: Subprocess executor
            telemetry: Outcome sink; events are discarded when omitted
            policy: Operation access table
        """
        self.config = config
        self.resolver = resolver or CommandResolver(default_timeout=config.timeout_seconds)
        self.executor = executor or CommandExecutor()
        self.telemetry = telemetry or NullTelemetry()
        self.policy = policy or AccessPolicy()
        self.guard = NamespaceGuard(config.allowed_namespaces)

    async def execute(self, request: CommandRequest) -> InvocationResult:
        """
        Run one tool call through the full pipeline.

        Never raises for a failed call. Cancellation is the one exception:
        the subprocess is killed, the call is recorded as failed and the
        cancellation propagates to the caller.

        Args:
            request: Tool call from the protocol adapter

        Returns:
            InvocationResult describing the outcome
        """
        progress = _Progress()
        result: Optional[InvocationResult] = None
        try:
            result = await self._run(request, progress)
        except GatewayError as e:
            logger.warning(
                f"Rejected {request.tool_name} {request.operation} "
                f"at {progress.stage.value}: {e.kind.value}: {e.reason}"
            )
            result = InvocationResult(error=e.kind, message=e.reason, stage=progress.stage)
        except asyncio.CancelledError:
            logger.info(f"{request.tool_name} {request.operation} cancelled by caller")
            raise
        except Exception as e:
            logger.exception(f"Unexpected error handling {request.tool_name} {request.operation}")
            result = InvocationResult(
                error=ErrorKind.INTERNAL_ERROR,
                message=f"internal error: {type(e).__name__}",
                stage=progress.stage,
            )
        finally:
            self._track(request, result is not None and result.succeeded)
        return result

    async def _run(self, request: CommandRequest, progress: _Progress) -> InvocationResult:
        check_tool_enabled(request.tool_name, self.config.enabled_tools)
        required = self.policy.required_level(
            request.tool_name, request.operation, request_resources(request.arguments)
        )
        check_access(self.config.access_level, required)
        progress.stage = InvocationStage.ACCESS_CHECKED

        scope = self.resolver.namespace_scope(request)
        namespace = self.guard.check(
            scope.requested,
            referenced=scope.referenced,
            all_namespaces=scope.all_namespaces,
            namespaced=scope.namespaced,
        )
        progress.stage = InvocationStage.NAMESPACE_CHECKED

        command = self.resolver.resolve(request, namespace)
        progress.stage = InvocationStage.RESOLVED
        logger.debug(f"Executing: {command}")

        execution = await self.executor.run(command)
        progress.stage = InvocationStage.EXECUTED

        if not execution.success:
            result = InvocationResult(
                text=execution.output,
                error=execution.error,
                message=execution.message,
                stage=progress.stage,
            )
            logger.warning(
                f"{request.tool_name} {request.operation} {result.outcome.value}: "
                f"{execution.error.value}: {execution.message}"
            )
            return result

        result = InvocationResult(text=execution.output, stage=InvocationStage.SUCCEEDED)
        logger.info(f"{request.tool_name} {request.operation} {result.outcome.value}")
        return result

    def _track(self, request: CommandRequest, success: bool) -> None:
        try:
            self.telemetry.track_tool_invocation(request.tool_name, request.operation, success)
        except Exception as e:
            logger.error(f"Telemetry sink failed: {e}")

    def describe_tools(self) -> List[Dict[str, Any]]:
        """
        Describe every enabled tool and its operations.

        Returns:
            One entry per enabled tool, listing each operation with its
            required access level and whether the current grant permits it
        """
        tools = []
        for tool_name in sorted(self.config.enabled_tools):
            strategy = self.resolver.strategies.get(tool_name)
            if strategy is None:
                continue
            operations = []
            for operation in strategy.supported_operations():
                required = self.policy.required_level(tool_name, operation)
                operations.append(
                    {
                        "name": operation,
                        "description": strategy.operations[operation].description,
                        "required_level": required.value,
                        "permitted": required <= self.config.access_level,
                    }
                )
            tools.append({"name": tool_name, "operations": operations})
        return tools
