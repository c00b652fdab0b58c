# RAMM MCP Server
# File: models.py
# Version: v1

"""Domain models used by the RAMM client and MCP tools."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple

import pandas as pd


@dataclass(frozen=True)
class FilterPredicate:
    """One filter condition, forwarded to the server as-is.

    The operator set is defined by the RAMM API (EqualTo, GreaterThan,
    ...); it is not checked client-side.
    """

    column_name: str
    operator: str
    value: Any

    def to_wire(self) -> Dict[str, Any]:
        return {
            "columnName": self.column_name,
            "operator": self.operator,
            "value": self.value,
        }


@dataclass(frozen=True)
class GridPaging:
    skip: int
    take: int

    def to_wire(self) -> Dict[str, int]:
        return {"skip": self.skip, "take": self.take}


@dataclass(frozen=True)
class QueryRequest:
    """Body of a ``POST /data/table`` call.

    Built fresh for every page. Field names of :meth:`to_body` are part of
    the wire contract with the RAMM service.
    """

    filters: Tuple[Dict[str, Any], ...]
    table_name: str
    grid_paging: GridPaging
    columns: Tuple[str, ...] = ()
    get_geometry: bool = False
    expand_lookups: bool = False
    is_longitude_latitude: bool = True
    exclude_replaced_data: bool = True
    return_entity_id: bool = False

    @property
    def load_type(self) -> Literal["All", "Specified"]:
        return "Specified" if self.columns else "All"

    def to_body(self) -> Dict[str, Any]:
        """JSON-serialisable payload with the verbatim RAMM field names."""
        return {
            "filters": [dict(f) for f in self.filters],
            "expandLookups": self.expand_lookups,
            "getGeometry": self.get_geometry,
            "isLongitudeLatitude": self.is_longitude_latitude,
            "gridPaging": self.grid_paging.to_wire(),
            "excludeReplacedData": self.exclude_replaced_data,
            "returnEntityId": self.return_entity_id,
            "tableName": self.table_name,
            "loadType": self.load_type,
            "columns": list(self.columns),
        }


@dataclass(frozen=True)
class ChunkPlan:
    """One ``[skip, skip + take)`` window of a chunked retrieval."""

    chunk_index: int
    skip: int
    take: int


@dataclass
class TableInfo:
    """A table as returned by ``GET /data/tables``."""

    name: str

    # Raw JSON payload from the API, for debugging / advanced use.
    raw: Optional[Dict[str, Any]] = None


@dataclass
class TableResult:
    """Complete result of a chunked table retrieval.

    ``rows`` are positional value lists aligned to ``columns``. An empty
    result with a ``notice`` is the successful "nothing matched" outcome.
    """

    columns: List[str]
    rows: List[List[Any]]
    total_rows: int
    table_name: str
    chunks_used: int = 0

    # Human-readable message for non-error outcomes such as "no rows".
    notice: Optional[str] = None

    meta: Dict[str, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def records(self) -> List[Dict[str, Any]]:
        """Rows as ``{column: value}`` dicts, in row order."""
        return [dict(zip(self.columns, row)) for row in self.rows]

    def to_dataframe(self) -> pd.DataFrame:
        """Build a pandas DataFrame whose columns follow the ColumnList order."""
        return pd.DataFrame(self.rows, columns=list(self.columns))
