"""Request and command types that flow through the resolver."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple


@dataclass(frozen=True)
class CommandRequest:
    """
    One tool call as received from the protocol adapter.

    Attributes:
        tool_name: Tool to invoke, e.g. "kubectl"
        operation: Operation name, e.g. "get" or "rollout-restart"
        arguments: Untrusted argument mapping; keys are unique, order is irrelevant
    """

    tool_name: str
    operation: str
    arguments: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Read-only snapshot so later stages see exactly what was validated
        object.__setattr__(self, "arguments", MappingProxyType(dict(self.arguments)))


@dataclass(frozen=True)
class NamespaceScope:
    """Namespaces a request touches, extracted before validation."""

    requested: Optional[str] = None
    referenced: Tuple[str, ...] = ()
    all_namespaces: bool = False
    namespaced: bool = True


@dataclass(frozen=True)
class ResolvedCommand:
    """
    A validated external-process invocation, safe to execute.

    Attributes:
        executable: Binary name looked up on PATH
        argv: Arguments after the executable, one element per value
        timeout_seconds: Hard deadline for the process
        stdin: Text fed to the process, used for manifests only
    """

    executable: str
    argv: Tuple[str, ...]
    timeout_seconds: int
    stdin: Optional[str] = None

    @property
    def command_line(self) -> Tuple[str, ...]:
        return (self.executable,) + self.argv

    def __str__(self) -> str:
        return " ".join(self.command_line)
