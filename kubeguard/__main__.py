"""kubeguard command line entry point."""

import logging
import sys
from dataclasses import replace
from typing import Any, Dict, Optional

import click
import uvicorn
from dotenv import load_dotenv

from kubeguard import __version__
from kubeguard.config import ConfigProvider, ConfigValidator, EnvConfigProvider
from kubeguard.config.provider import VALID_LOG_LEVELS
from kubeguard.logging_config import configure_logging, get_logging_config
from kubeguard.main import create_app
from kubeguard.modules.gateway import InvocationGateway, LoggingTelemetry, NullTelemetry
from kubeguard.modules.security import ADDITIONAL_TOOLS, DEFAULT_TIMEOUT_SECONDS, SecurityConfig

load_dotenv()

logger = logging.getLogger("kubeguard.cli")


def build_gateway(security: SecurityConfig, collect_telemetry: bool = True) -> InvocationGateway:
    """Wire the gateway with its default resolver, executor and telemetry sink."""
    telemetry = LoggingTelemetry(service_version=__version__) if collect_telemetry else NullTelemetry()
    return InvocationGateway(security, telemetry=telemetry)


def _given(**values: Any) -> Dict[str, Any]:
    """Keep only the options passed on the command line."""
    return {name: value for name, value in values.items() if value is not None}


@click.command()
@click.option("--host", default=None, help="Address to bind the HTTP server to [env: KUBEGUARD_HOST]")
@click.option("--port", default=None, type=int, help="Port to bind the HTTP server to [env: KUBEGUARD_PORT]")
@click.option("--access-level", default=None, type=click.Choice(["readonly", "readwrite", "admin"]),
              help="Highest access level any operation may require [env: KUBEGUARD_ACCESS_LEVEL]")
@click.option("--allow-namespaces", default=None,
              help="Comma-separated namespaces operations may target, empty for all "
                   "[env: KUBEGUARD_ALLOW_NAMESPACES]")
@click.option("--additional-tools", default=None,
              help=f"Comma-separated tools to enable besides kubectl: {', '.join(ADDITIONAL_TOOLS)} "
                   "[env: KUBEGUARD_ADDITIONAL_TOOLS]")
@click.option("--timeout", default=None, type=int,
              help=f"Default command timeout in seconds, {DEFAULT_TIMEOUT_SECONDS} if unset [env: KUBEGUARD_TIMEOUT]")
@click.option("--log-level", default=None, type=click.Choice(VALID_LOG_LEVELS, case_sensitive=False),
              help="[env: LOG_LEVEL]")
@click.option("--no-collect-telemetry", is_flag=True, default=False,
              help="Do not log tool invocation outcomes [env: KUBEGUARD_COLLECT_TELEMETRY=false]")
@click.option("--skip-binary-check", is_flag=True, default=False,
              help="Start even if a tool binary is missing from PATH")
@click.version_option(__version__)
def main(
    host: Optional[str],
    port: Optional[int],
    access_level: Optional[str],
    allow_namespaces: Optional[str],
    additional_tools: Optional[str],
    timeout: Optional[int],
    log_level: Optional[str],
    no_collect_telemetry: bool,
    skip_binary_check: bool,
):
    """Serve cluster CLI tools behind an access-controlled gateway."""
    # Environment first, command line options override it
    provider: ConfigProvider = EnvConfigProvider()
    try:
        server = provider.get_server_config()
        settings = provider.get_gateway_settings()
    except ValueError as e:
        raise click.UsageError(str(e))

    server = replace(
        server, **_given(host=host, port=port, log_level=log_level.upper() if log_level else None)
    )
    if no_collect_telemetry:
        server = replace(server, collect_telemetry=False)
    settings = replace(
        settings,
        **_given(
            access_level=access_level,
            allow_namespaces=allow_namespaces,
            additional_tools=additional_tools,
            timeout_seconds=timeout,
        ),
    )

    configure_logging(server.log_level)

    try:
        security = settings.to_security_config()
    except ValueError as e:
        raise click.BadParameter(str(e))

    validator = ConfigValidator(security, server)
    if not validator.validate():
        validator.print_errors()
        missing_only = all(error.endswith("not found on PATH") for error in validator.errors)
        if not (skip_binary_check and missing_only):
            sys.exit(1)
        logger.warning("Continuing with missing tool binaries; calls to them will fail to launch")

    app = create_app(build_gateway(security, server.collect_telemetry))
    uvicorn.run(app, host=server.host, port=server.port, log_config=get_logging_config(server.log_level))


if __name__ == "__main__":
    main()
