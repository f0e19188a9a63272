"""Strategy registry that turns requests into commands."""

from typing import Dict, Iterable, Optional

from kubeguard.modules.errors import UnsupportedOperation
from kubeguard.modules.resolver.base import ToolStrategy
from kubeguard.modules.resolver.cilium import CiliumStrategy
from kubeguard.modules.resolver.helm import HelmStrategy
from kubeguard.modules.resolver.hubble import HubbleStrategy
from kubeguard.modules.resolver.kubectl import KubectlStrategy
from kubeguard.modules.resolver.types import CommandRequest, NamespaceScope, ResolvedCommand
from kubeguard.modules.security.config import DEFAULT_TIMEOUT_SECONDS


def default_strategies() -> Dict[str, ToolStrategy]:
    return {
        strategy.name: strategy
        for strategy in (KubectlStrategy(), HelmStrategy(), CiliumStrategy(), HubbleStrategy())
    }


class CommandResolver:
    """
    Resolves tool calls into validated commands.

    Holds no per-request state; a single instance is shared by all
    concurrent requests.
    """

    def __init__(
        self,
        default_timeout: int = DEFAULT_TIMEOUT_SECONDS,
        strategies: Optional[Iterable[ToolStrategy]] = None,
    ):
        """
        Initialize resolver.

        Args:
            default_timeout: Timeout for operations without an override
            strategies: Tool strategies to register; defaults to all known tools
        """
        self.default_timeout = default_timeout
        if strategies is None:
            self.strategies = default_strategies()
        else:
            self.strategies = {strategy.name: strategy for strategy in strategies}

    def strategy_for(self, tool_name: str) -> ToolStrategy:
        """
        Get the strategy registered for a tool.

        Raises:
            UnsupportedOperation: If no strategy handles the tool
        """
        strategy = self.strategies.get(tool_name)
        if strategy is None:
            raise UnsupportedOperation(f"no command grammar registered for tool '{tool_name}'")
        return strategy

    def namespace_scope(self, request: CommandRequest) -> NamespaceScope:
        """Namespaces the request touches, for the namespace guard."""
        return self.strategy_for(request.tool_name).namespace_scope(request)

    def resolve(self, request: CommandRequest, namespace: Optional[str] = None) -> ResolvedCommand:
        """
        Validate a request and build its command.

        Args:
            request: Tool call to resolve
            namespace: Effective namespace returned by the namespace guard

        Returns:
            ResolvedCommand ready for the executor

        Raises:
            UnsupportedOperation: If the tool or operation is unknown
            InvalidArgument: If any argument is rejected
        """
        strategy = self.strategy_for(request.tool_name)
        return strategy.resolve(request, namespace, self.default_timeout)
