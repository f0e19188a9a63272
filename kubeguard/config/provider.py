"""Configuration provider following Black Box Design principles."""
import os
from dataclasses import dataclass
from typing import Optional, Protocol

from kubeguard.modules.security import DEFAULT_TIMEOUT_SECONDS, SecurityConfig

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ServerConfig:
    """HTTP server configuration."""
    host: str
    port: int
    log_level: str
    collect_telemetry: bool


@dataclass
class GatewaySettings:
    """Textual security settings as supplied by the operator."""
    access_level: str
    allow_namespaces: Optional[str]
    additional_tools: Optional[str]
    timeout_seconds: int

    def to_security_config(self) -> SecurityConfig:
        """
        Build the immutable security configuration.

        Raises:
            ValueError: If any setting is invalid
        """
        return SecurityConfig.from_settings(
            access_level=self.access_level,
            allow_namespaces=self.allow_namespaces,
            additional_tools=self.additional_tools,
            timeout_seconds=self.timeout_seconds,
        )


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_server_config(self) -> ServerConfig:
        """Get server configuration."""
        ...

    def get_gateway_settings(self) -> GatewaySettings:
        """Get security settings."""
        ...


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'")


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_server_config(self) -> ServerConfig:
        """Get server configuration from environment variables."""
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        if log_level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"invalid LOG_LEVEL '{log_level}'. Valid values are: {', '.join(VALID_LOG_LEVELS)}"
            )

        return ServerConfig(
            host=os.getenv("KUBEGUARD_HOST", "127.0.0.1"),
            port=_int_env("KUBEGUARD_PORT", 8000),
            log_level=log_level,
            # Anything but an explicit "false" keeps telemetry on
            collect_telemetry=os.getenv("KUBEGUARD_COLLECT_TELEMETRY", "true").lower() != "false",
        )

    def get_gateway_settings(self) -> GatewaySettings:
        """Get security settings from environment variables."""
        return GatewaySettings(
            access_level=os.getenv("KUBEGUARD_ACCESS_LEVEL", "readonly"),
            allow_namespaces=os.getenv("KUBEGUARD_ALLOW_NAMESPACES"),
            additional_tools=os.getenv("KUBEGUARD_ADDITIONAL_TOOLS"),
            timeout_seconds=_int_env("KUBEGUARD_TIMEOUT", DEFAULT_TIMEOUT_SECONDS),
        )
