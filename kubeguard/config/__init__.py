"""Configuration loading and startup validation."""

from .provider import ConfigProvider, EnvConfigProvider, GatewaySettings, ServerConfig
from .validator import ConfigValidator

__all__ = ["ConfigProvider", "ConfigValidator", "EnvConfigProvider", "GatewaySettings", "ServerConfig"]
