"""
Resolver Module - Black Box Interface

Purpose: Turn a permitted, in-scope tool call into a safe argv vector
Interface: CommandResolver.resolve(), CommandResolver.namespace_scope()
Hidden: Per-tool operation tables, argument shapes, value character class

Resolution is pure: the same request always yields an equal command.
"""

from .base import OperationSpec, ToolStrategy
from .cilium import CiliumStrategy
from .helm import HelmStrategy
from .hubble import HubbleStrategy
from .kubectl import KubectlStrategy
from .resolver import CommandResolver
from .types import CommandRequest, NamespaceScope, ResolvedCommand

__all__ = [
    "CiliumStrategy",
    "CommandRequest",
    "CommandResolver",
    "HelmStrategy",
    "HubbleStrategy",
    "KubectlStrategy",
    "NamespaceScope",
    "OperationSpec",
    "ResolvedCommand",
    "ToolStrategy",
]
