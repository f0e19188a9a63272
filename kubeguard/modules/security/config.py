"""Process-wide security configuration."""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from kubeguard.modules.security.access import AccessLevel

DEFAULT_TOOL = "kubectl"
ADDITIONAL_TOOLS = ("helm", "cilium", "hubble")
AVAILABLE_TOOLS = (DEFAULT_TOOL,) + ADDITIONAL_TOOLS
DEFAULT_TIMEOUT_SECONDS = 60


def split_csv(value: Optional[str]) -> FrozenSet[str]:
    """Split a comma-delimited setting, trimming entries and dropping empties."""
    if not value:
        return frozenset()
    return frozenset(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class SecurityConfig:
    """
    Immutable security settings, built once at startup.

    Shared by reference between all concurrent requests; being frozen is
    what makes lock-free reads safe.

    Attributes:
        access_level: Highest tier any operation may require
        allowed_namespaces: Namespaces operations may target (empty = all)
        enabled_tools: Tools callers may invoke; always contains kubectl
        timeout_seconds: Default subprocess deadline
    """

    access_level: AccessLevel = AccessLevel.READ_ONLY
    allowed_namespaces: FrozenSet[str] = field(default_factory=frozenset)
    enabled_tools: FrozenSet[str] = field(default_factory=lambda: frozenset({DEFAULT_TOOL}))
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        # Normalise plain sets/lists passed by callers
        object.__setattr__(self, "allowed_namespaces", frozenset(self.allowed_namespaces))
        object.__setattr__(
            self, "enabled_tools", frozenset(self.enabled_tools) | {DEFAULT_TOOL}
        )

        unknown = self.enabled_tools - set(AVAILABLE_TOOLS)
        if unknown:
            raise ValueError(
                f"unsupported tools: {', '.join(sorted(unknown))}. "
                f"Available: {', '.join(AVAILABLE_TOOLS)}"
            )
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout must be a positive number of seconds, got {self.timeout_seconds}")

    @classmethod
    def from_settings(
        cls,
        access_level: str = AccessLevel.READ_ONLY.value,
        allow_namespaces: Optional[str] = None,
        additional_tools: Optional[str] = None,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
    ) -> "SecurityConfig":
        """
        Build the configuration from its textual settings.

        Args:
            access_level: One of readonly, readwrite, admin (case-sensitive)
            allow_namespaces: Comma-delimited namespaces; empty means all
            additional_tools: Comma-delimited subset of helm, cilium, hubble
            timeout_seconds: Default command timeout

        Raises:
            ValueError: If any setting is invalid
        """
        return cls(
            access_level=AccessLevel.parse(access_level),
            allowed_namespaces=split_csv(allow_namespaces),
            enabled_tools=split_csv(additional_tools) | {DEFAULT_TOOL},
            timeout_seconds=timeout_seconds,
        )

    @property
    def restricts_namespaces(self) -> bool:
        return bool(self.allowed_namespaces)

