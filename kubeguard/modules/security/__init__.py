"""
Security Module - Black Box Interface

Purpose: Decide whether a tool call is permitted and narrow its namespace scope
Interface: AccessPolicy.required_level(), check_access(), check_tool_enabled(),
           NamespaceGuard.check(), SecurityConfig.from_settings()
Hidden: Operation level tables, privileged resource kinds, default namespace policy

Everything here is pure and safe to share across concurrent requests.
"""

from .access import (
    AccessLevel,
    AccessPolicy,
    check_access,
    check_tool_enabled,
    manifest_kinds,
    request_resources,
)
from .config import ADDITIONAL_TOOLS, AVAILABLE_TOOLS, DEFAULT_TIMEOUT_SECONDS, SecurityConfig
from .namespace import NamespaceGuard

__all__ = [
    "ADDITIONAL_TOOLS",
    "AVAILABLE_TOOLS",
    "DEFAULT_TIMEOUT_SECONDS",
    "AccessLevel",
    "AccessPolicy",
    "NamespaceGuard",
    "SecurityConfig",
    "check_access",
    "check_tool_enabled",
    "manifest_kinds",
    "request_resources",
]
