# RAMM MCP Server
# File: __init__.py
# Version: v1

"""Top-level package for the RAMM MCP Server and API client."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from .client import RammClient
from .config import RammConfig
from .exceptions import (
    AuthenticationError,
    ChunkFetchError,
    FetchCancelled,
    InvalidFilterError,
    QueryError,
    RammError,
    SchemaFetchError,
)
from .models import FilterPredicate, QueryRequest, TableResult

__all__ = [
    "__version__",
    "RammClient",
    "RammConfig",
    "RammError",
    "AuthenticationError",
    "InvalidFilterError",
    "SchemaFetchError",
    "QueryError",
    "ChunkFetchError",
    "FetchCancelled",
    "FilterPredicate",
    "QueryRequest",
    "TableResult",
]


def _resolve_version() -> str:
    """Resolve installed distribution version.

    Falls back to the source-tree version when the distribution is not
    installed.
    """
    try:
        return version("mcp-ramm-server")
    except PackageNotFoundError:
        return "0.1.0"


__version__ = _resolve_version()
