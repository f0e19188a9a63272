"""
kubeguard - HTTP protocol adapter

Thin orchestration layer: builds the FastAPI application around an
InvocationGateway. All policy and execution logic lives in the modules.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response

from kubeguard import __version__
from kubeguard.modules.api import ToolCallRequest, ToolCallResponse, ToolListResponse
from kubeguard.modules.gateway import InvocationGateway
from kubeguard.modules.resolver import CommandRequest

logger = logging.getLogger("kubeguard.main")

DISCONNECT_POLL_SECONDS = 0.5
# nginx convention for "client closed request"
CLIENT_CLOSED_REQUEST = 499


async def cancel_on_disconnect(request: Request, task: asyncio.Task, interval: float) -> bool:
    """Cancel a running tool call once its client goes away. Returns True if it did."""
    while not task.done():
        if await request.is_disconnected():
            logger.info("Client disconnected, cancelling tool call")
            task.cancel()
            return True
        await asyncio.sleep(interval)
    return False


def create_app(gateway: InvocationGateway, disconnect_poll_seconds: float = DISCONNECT_POLL_SECONDS) -> FastAPI:
    """
    Create the API application.

    Args:
        gateway: Gateway every tool call goes through
        disconnect_poll_seconds: How often to check for client disconnects

    Returns:
        Configured FastAPI app with the gateway on app.state
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        config = app.state.gateway.config
        logger.info(
            f"Starting kubeguard {__version__} with access level '{config.access_level.value}', "
            f"tools: {', '.join(sorted(config.enabled_tools))}"
        )
        if config.restricts_namespaces:
            logger.info(f"Namespaces restricted to: {', '.join(sorted(config.allowed_namespaces))}")
        try:
            app.state.gateway.telemetry.track_service_startup()
        except Exception as e:
            logger.error(f"Telemetry sink failed: {e}")

        yield

        logger.info("kubeguard shutdown complete")

    app = FastAPI(
        title="kubeguard",
        description="Access-controlled gateway for cluster CLI tools",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.gateway = gateway
    app.state.disconnect_poll_seconds = disconnect_poll_seconds

    @app.get("/health")
    async def health_check():
        """Liveness probe."""
        return {"status": "ok", "version": __version__}

    @app.get("/tools", response_model=ToolListResponse)
    async def list_tools(request: Request):
        """
        List enabled tools and their operations.

        Each operation reports the access level it requires and whether the
        running server grants it.
        """
        gateway: InvocationGateway = request.app.state.gateway
        return {
            "access_level": gateway.config.access_level.value,
            "allowed_namespaces": sorted(gateway.config.allowed_namespaces),
            "tools": gateway.describe_tools(),
        }

    @app.post("/tools/{tool_name}", response_model=ToolCallResponse)
    async def call_tool(tool_name: str, payload: ToolCallRequest, request: Request):
        """
        Invoke one tool operation.

        Tool failures are returned with HTTP 200 and is_error set, like a
        tool-call error result. Only malformed bodies are rejected (422).
        """
        gateway: InvocationGateway = request.app.state.gateway
        call = CommandRequest(
            tool_name=tool_name, operation=payload.operation, arguments=payload.arguments
        )

        task = asyncio.create_task(gateway.execute(call))
        watcher = asyncio.create_task(
            cancel_on_disconnect(request, task, request.app.state.disconnect_poll_seconds)
        )
        try:
            result = await task
        except asyncio.CancelledError:
            disconnected = watcher.done() and not watcher.cancelled() and watcher.result()
            if not disconnected:
                raise
            # Nobody is listening for the result
            return Response(status_code=CLIENT_CLOSED_REQUEST)
        finally:
            watcher.cancel()

        return ToolCallResponse(
            is_error=not result.succeeded,
            text=result.text if result.succeeded else result.error_text,
            error_kind=result.error,
            stage=result.stage.value,
        )

    return app
