# RAMM MCP Server
# File: tools/__init__.py
# Version: v1

"""MCP tool definitions for the RAMM server."""
