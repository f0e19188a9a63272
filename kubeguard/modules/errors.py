"""
Error taxonomy shared by every stage of the invocation pipeline.

Policy and validation stages raise a GatewayError subclass; the executor
reports its outcomes as an ErrorKind on the ExecutionResult. The gateway
converts both into a typed result, so nothing escapes to the caller.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Typed failure outcome of a single invocation."""

    TOOL_NOT_ENABLED = "tool_not_enabled"
    ACCESS_DENIED = "access_denied"
    NAMESPACE_NOT_ALLOWED = "namespace_not_allowed"
    UNSUPPORTED_OPERATION = "unsupported_operation"
    INVALID_ARGUMENT = "invalid_argument"
    TIMEOUT = "timeout"
    EXECUTION_FAILED = "execution_failed"
    LAUNCH_FAILED = "launch_failed"
    INTERNAL_ERROR = "internal_error"


class GatewayError(Exception):
    """
    Base class for pipeline rejections.

    Attributes:
        kind: The ErrorKind reported to the caller.
        reason: Human-readable explanation.
    """

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class ToolNotEnabled(GatewayError):
    kind = ErrorKind.TOOL_NOT_ENABLED


class AccessDenied(GatewayError):
    kind = ErrorKind.ACCESS_DENIED


class NamespaceNotAllowed(GatewayError):
    kind = ErrorKind.NAMESPACE_NOT_ALLOWED


class UnsupportedOperation(GatewayError):
    kind = ErrorKind.UNSUPPORTED_OPERATION


class InvalidArgument(GatewayError):
    kind = ErrorKind.INVALID_ARGUMENT
