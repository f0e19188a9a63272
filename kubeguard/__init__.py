"""
kubeguard - Security Gateway for Kubernetes CLI Tools

Exposes kubectl (and optionally helm, cilium and hubble) as callable
operations for an external agent, while acting as a security boundary
between that agent and a live cluster.

Architecture:
- Each module is self-contained with clear interfaces
- Modules communicate only through their public exports
- The gateway is the single entry point for tool calls

Modules:
- security: Access levels, tool enablement, namespace scoping
- resolver: Per-tool command grammars and argument validation
- executor: Bounded subprocess execution
- gateway: Request pipeline and telemetry reporting
- api: HTTP request/response models
"""

__version__ = "1.0.0"
