"""Entry point for the shellfleet server."""

import logging

from shellfleet.config import Settings
from shellfleet.server import mcp  # This import also configures logging

logger = logging.getLogger(__name__)


def run_server() -> None:
    """Run the MCP server with the configured transport."""
    settings = Settings.from_env()

    if settings.transport == "stdio":
        logger.info("Starting shellfleet server (transport=stdio)")
        mcp.run(transport="stdio")
    else:
        logger.info(
            "Starting shellfleet server (transport=http, host=%s, port=%d)",
            settings.http_host,
            settings.http_port,
        )
        mcp.run(
            transport="http",
            host=settings.http_host,
            port=settings.http_port,
        )


if __name__ == "__main__":
    run_server()
