# RAMM MCP Server
# File: schema.py
# Version: v1

"""Table listing and schema discovery.

The data endpoint returns every row as a bare value array, so the column
order produced here is the only mapping from position to column name. It
must follow the server's declaration order exactly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List
from urllib.parse import quote

from .auth import RammAuth
from .exceptions import RammError, SchemaFetchError
from .models import TableInfo
from .transport import HttpTransport

logger = logging.getLogger(__name__)

GEOMETRY_COLUMN = "wkt"

# tableTypes is a bit mask; 255 selects every table type.
TABLES_PATH = "/data/tables?tableTypes=255"


def schema_path(table_name: str) -> str:
    return f"/schema/{quote(table_name, safe='')}?loadType=3"


def with_geometry(columns: List[str], get_geometry: bool) -> List[str]:
    """Append the synthetic geometry column when geometry is requested."""
    out = list(columns)
    if get_geometry:
        out.append(GEOMETRY_COLUMN)
    return out


@dataclass
class SchemaClient:
    """Reads table names and column descriptors from the RAMM API."""

    transport: HttpTransport
    auth: RammAuth

    async def _get_json(self, path: str, what: str, table_name: str | None = None) -> Any:
        try:
            headers = await self.auth.headers()
            response = await self.transport.send(path, method="GET", headers=headers)
        except RammError as exc:
            raise SchemaFetchError(
                f"Error retrieving {what}: {exc}", table_name=table_name
            ) from exc

        if response.status_code != 200:
            raise SchemaFetchError(
                f"Failed to retrieve {what} from '{response.url}' "
                f"(HTTP {response.status_code}). "
                f"Response snippet: {response.snippet()}",
                table_name=table_name,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise SchemaFetchError(
                f"Response for {what} is not valid JSON. "
                f"Response snippet: {response.snippet()}",
                table_name=table_name,
                status_code=response.status_code,
            ) from exc

    async def get_table_names(self) -> List[TableInfo]:
        """List every table in the RAMM database, in server order."""
        data = await self._get_json(TABLES_PATH, "table list")
        if not isinstance(data, list):
            raise SchemaFetchError(
                "Unexpected table list response: "
                f"expected JSON array, got {type(data).__name__}."
            )

        tables: List[TableInfo] = []
        for item in data:
            if not isinstance(item, dict) or not item.get("tableName"):
                continue
            tables.append(TableInfo(name=str(item["tableName"]), raw=item))
        return tables

    async def get_table_schema(self, table_name: str) -> List[Dict[str, Any]]:
        """Return the ordered column descriptors of ``table_name``."""
        data = await self._get_json(
            schema_path(table_name), f"schema of table '{table_name}'", table_name
        )
        if not isinstance(data, list):
            raise SchemaFetchError(
                f"Unexpected schema response for table '{table_name}': "
                f"expected JSON array, got {type(data).__name__}.",
                table_name=table_name,
            )
        return data

    async def get_column_names(
        self, table_name: str, get_geometry: bool = False
    ) -> List[str]:
        """Column names of ``table_name`` in declaration order.

        With ``get_geometry`` the synthetic ``"wkt"`` column is appended; the
        data endpoint returns the geometry as the last value of each row.
        """
        columns: List[str] = []
        for descriptor in await self.get_table_schema(table_name):
            name = descriptor.get("columnName") if isinstance(descriptor, dict) else None
            if not name:
                raise SchemaFetchError(
                    f"Schema of table '{table_name}' contains a column "
                    f"descriptor without 'columnName': {descriptor!r}",
                    table_name=table_name,
                )
            columns.append(str(name))

        logger.debug("Table '%s' has %d columns", table_name, len(columns))
        return with_geometry(columns, get_geometry)
