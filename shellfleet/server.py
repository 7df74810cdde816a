"""shellfleet FastMCP server.

Thin wrapper that wires the MCP server to the tools and manages the
enforcement schedule for the lifetime of the process.
"""

import logging
import os
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from shellfleet.dependencies import Dependencies
from shellfleet.services.state import set_deps
from shellfleet.tools import (
    account_connections,
    active_sessions,
    block_account,
    change_password,
    check_expired,
    clean_logs,
    configure_limit_check,
    create_account,
    delete_account,
    fleet_status,
    get_limit_check,
    host_status,
    list_accounts,
    list_hosts,
    recent_activity,
    renew_account,
    restart_hosts,
    run_limit_check,
    set_connection_limit,
    stats,
    unblock_account,
)
from shellfleet.utils.console import ColorfulFormatter

TOOLS = [
    list_hosts,
    host_status,
    fleet_status,
    active_sessions,
    clean_logs,
    restart_hosts,
    stats,
    recent_activity,
    list_accounts,
    create_account,
    delete_account,
    change_password,
    renew_account,
    set_connection_limit,
    block_account,
    unblock_account,
    account_connections,
    run_limit_check,
    check_expired,
    get_limit_check,
    configure_limit_check,
]


def _configure_logging() -> None:
    """Configure colorful logging for the shellfleet package.

    Called at module load time so logging is ready however the server is
    started.
    """
    log_level = os.getenv("SHELLFLEET_LOG_LEVEL", "INFO").upper()
    use_colors = os.getenv("SHELLFLEET_LOG_COLORS", "true").lower() != "false"

    # Disable colors if not a TTY
    if not sys.stderr.isatty():
        use_colors = False

    app_logger = logging.getLogger("shellfleet")
    app_logger.setLevel(getattr(logging, log_level, logging.INFO))

    if not app_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ColorfulFormatter(use_colors=use_colors))
        app_logger.addHandler(handler)
        app_logger.propagate = False

    # Suppress noisy third-party loggers
    for noisy_logger in [
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
        "asyncssh",
        "httpx",
        "httpcore",
        "fastmcp",
        "starlette",
        "anyio",
    ]:
        lg = logging.getLogger(noisy_logger)
        lg.setLevel(logging.WARNING)
        lg.handlers = []
        lg.propagate = False


_configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """Build dependencies and run the enforcement schedule.

    Args:
        server: The FastMCP server instance

    Yields:
        Dict with the managed host names
    """
    logger.info("shellfleet server starting up")

    deps = Dependencies.create()
    server.deps = deps
    set_deps(deps)

    hosts = await deps.hosts.list_all()
    logger.info(
        "Managing %d host(s): %s",
        len(hosts),
        ", ".join(h.name for h in hosts) if hosts else "(none)",
    )
    await deps.enforcer.start()
    logger.info("shellfleet server ready to accept connections")

    try:
        yield {"hosts": [h.name for h in hosts]}
    finally:
        logger.info("shellfleet server shutting down")
        await deps.cleanup()
        logger.info("shellfleet server shutdown complete")


def create_server() -> FastMCP:
    """Create and configure the MCP server.

    Returns:
        Configured FastMCP server instance
    """
    server = FastMCP(
        "shellfleet",
        lifespan=app_lifespan,
    )

    for tool in TOOLS:
        server.tool()(tool)

    @server.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> PlainTextResponse:
        """Health check endpoint."""
        client_host = request.client.host if request.client else "unknown"
        logger.debug("Health check from %s", client_host)
        return PlainTextResponse("OK")

    return server


# Default server instance
mcp = create_server()
