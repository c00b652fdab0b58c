# RAMM MCP Server
# File: transports/stdio_server.py
# Version: v1

"""STDIO entrypoint for the RAMM MCP server.

This is the script behind the ``ramm-mcp`` console command.

It:

- configures logging on stderr (stdout carries the MCP protocol),
- creates a FastMCP server,
- registers the RAMM tools, and
- runs the built-in stdio transport.
"""

from __future__ import annotations

import logging

from mcp.server.fastmcp import FastMCP

from ..config import RammConfig
from ..tools import tasks


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    """Synchronous entrypoint for console_scripts."""
    configure_logging(RammConfig.from_env().log_level)

    mcp = FastMCP("ramm-mcp")
    tasks.register_tools(mcp)

    # Let FastMCP handle stdio + event loop setup.
    mcp.run()


if __name__ == "__main__":
    main()
