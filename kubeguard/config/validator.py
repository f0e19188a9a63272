"""Startup validation of the server configuration."""

import logging
import shutil
from typing import Callable, List, Optional

from kubeguard.config.provider import ServerConfig
from kubeguard.modules.security import SecurityConfig

logger = logging.getLogger("kubeguard.config")

MAX_TIMEOUT_SECONDS = 3600


class ConfigValidator:
    """
    Collects every configuration problem before the server starts.

    Args:
        security: Parsed security configuration
        server: HTTP server settings
        which: Binary lookup, shutil.which unless overridden
    """

    def __init__(
        self,
        security: SecurityConfig,
        server: ServerConfig,
        which: Optional[Callable[[str], Optional[str]]] = None,
    ):
        self.security = security
        self.server = server
        self.which = which or shutil.which
        self.errors: List[str] = []

    def validate(self) -> bool:
        """Run all checks. Returns True when no errors were found."""
        self.errors = []
        self._validate_timeout()
        self._validate_transport()
        self._validate_tools()
        return not self.errors

    def _validate_timeout(self) -> None:
        if not 0 < self.security.timeout_seconds <= MAX_TIMEOUT_SECONDS:
            self.errors.append(
                f"timeout must be between 1 and {MAX_TIMEOUT_SECONDS} seconds, "
                f"got {self.security.timeout_seconds}"
            )

    def _validate_transport(self) -> None:
        if not self.server.host:
            self.errors.append("host must not be empty")
        if not 0 < self.server.port < 65536:
            self.errors.append(f"port must be between 1 and 65535, got {self.server.port}")

    def _validate_tools(self) -> None:
        for tool in sorted(self.security.enabled_tools):
            path = self.which(tool)
            if path is None:
                self.errors.append(f"{tool} binary not found on PATH")
            else:
                logger.debug(f"Found {tool} at {path}")

    def print_errors(self) -> None:
        for error in self.errors:
            logger.error(f"Configuration error: {error}")
