# RAMM MCP Server
# File: exceptions.py
# Version: v1

"""Exception hierarchy for the RAMM client."""

from __future__ import annotations

from typing import Optional


class RammError(Exception):
    """Base exception for all RAMM client errors."""


class ConfigurationError(RammError):
    """Required configuration (base URL, credentials) is missing."""


class TransportError(RammError):
    """The HTTP exchange itself failed (DNS, connect, timeout, ...)."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class AuthenticationError(RammError):
    """Login against the RAMM API failed."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidFilterError(RammError, ValueError):
    """Filters do not have the required structural shape.

    Raised before any request is sent. ``shape`` holds the human-readable
    description of the expected form.
    """

    def __init__(self, message: str, shape: str) -> None:
        super().__init__(message)
        self.shape = shape


class SchemaFetchError(RammError):
    """The table list or a table schema could not be retrieved."""

    def __init__(
        self,
        message: str,
        table_name: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.table_name = table_name
        self.status_code = status_code


class QueryError(RammError):
    """A data query failed or returned a malformed envelope."""

    def __init__(
        self,
        message: str,
        table_name: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.table_name = table_name
        self.status_code = status_code


class ChunkFetchError(QueryError):
    """A page of a chunked retrieval failed; the whole retrieval is aborted."""

    def __init__(
        self,
        message: str,
        chunk_index: int,
        skip: int,
        take: int,
        table_name: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message, table_name=table_name, status_code=status_code)
        self.chunk_index = chunk_index
        self.skip = skip
        self.take = take


class FetchCancelled(RammError):
    """The caller cancelled a chunked retrieval between two chunks."""

    def __init__(self, message: str, chunk_index: int) -> None:
        super().__init__(message)
        self.chunk_index = chunk_index
