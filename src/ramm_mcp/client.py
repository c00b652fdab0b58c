# RAMM MCP Server
# File: client.py
# Version: v1
"""High-level client for the RAMM REST API.

Implements:

- login() via /authenticate/login
- get_table_names() via /data/tables
- get_table_schema() / get_column_names() via /schema/<table>
- query() for a single page via /data/table
- get_data() for a whole table, fetched in chunks
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import httpx

from .auth import RammAuth
from .config import RammConfig
from .fetcher import ChunkedTableFetcher
from .models import TableInfo, TableResult
from .schema import SchemaClient
from .transport import HttpTransport


@dataclass
class RammClient:
    """Wrapper around the RAMM authentication, schema and data APIs."""

    config: RammConfig
    http_transport: Optional[httpx.AsyncBaseTransport] = field(default=None, repr=False)

    transport: HttpTransport = field(init=False, repr=False)
    auth: RammAuth = field(init=False, repr=False)
    schema: SchemaClient = field(init=False, repr=False)
    fetcher: ChunkedTableFetcher = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.transport = HttpTransport(config=self.config, http_transport=self.http_transport)
        self.auth = RammAuth(config=self.config, transport=self.transport)
        self.schema = SchemaClient(transport=self.transport, auth=self.auth)
        self.fetcher = ChunkedTableFetcher(
            transport=self.transport, auth=self.auth, schema=self.schema
        )

    # ------------------------------------------------------------------
    # Basic health
    # ------------------------------------------------------------------

    async def ping(self) -> bool:
        """Lightweight health check: is a base URL configured?"""
        return bool(self.config.base_url)

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def login(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> None:
        """Log in to the configured database.

        Falls back to RAMM_USERNAME / RAMM_PASSWORD from the config.
        """
        await self.auth.login(username=username, password=password)

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    async def get_table_names(self) -> List[TableInfo]:
        return await self.schema.get_table_names()

    async def get_table_schema(self, table_name: str) -> List[Dict[str, Any]]:
        return await self.schema.get_table_schema(table_name)

    async def get_column_names(
        self, table_name: str, get_geometry: bool = False
    ) -> List[str]:
        return await self.schema.get_column_names(table_name, get_geometry=get_geometry)

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    async def query(
        self,
        table_name: str,
        filters: Any = (),
        skip: int = 0,
        take: int = 1,
        columns: Optional[Iterable[str]] = None,
        get_geometry: bool = False,
    ) -> Dict[str, Any]:
        """Run a single paged query and return the raw response envelope."""
        return await self.fetcher.query(
            table_name,
            filters=filters,
            skip=skip,
            take=take,
            columns=columns,
            get_geometry=get_geometry,
        )

    async def get_data(
        self,
        table_name: str,
        get_geometry: bool = False,
        filters: Any = (),
        chunk_size: Optional[int] = None,
        column_names: Optional[Iterable[str]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> TableResult:
        """Retrieve a whole table (optionally filtered) as a TableResult.

        ``chunk_size`` defaults to RAMM_CHUNK_SIZE (5000). Use
        ``TableResult.to_dataframe()`` for a pandas DataFrame.
        """
        return await self.fetcher.fetch(
            table_name,
            filters=filters,
            chunk_size=self.config.chunk_size if chunk_size is None else chunk_size,
            column_names=column_names,
            get_geometry=get_geometry,
            cancel_event=cancel_event,
        )
