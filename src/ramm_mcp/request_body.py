# RAMM MCP Server
# File: request_body.py
# Version: v1

"""Construction of the ``POST /data/table`` query payload."""

from __future__ import annotations

from typing import Any, Iterable, Optional

from .filters import check_filters
from .models import GridPaging, QueryRequest


def build_request_body(
    filters: Any,
    table_name: str,
    skip: int = 0,
    take: int = 1,
    columns: Optional[Iterable[str]] = None,
    get_geometry: bool = False,
) -> QueryRequest:
    """Build the query payload for one page of ``table_name``.

    ``loadType`` is derived from ``columns``: "Specified" when at least one
    column is named, "All" otherwise. ``skip``/``take`` are passed through
    unchecked; the chunk planner guarantees ``skip >= 0`` and ``take >= 1``.

    Raises:
        InvalidFilterError: if ``filters`` is structurally invalid. No
            request is built in that case.
    """
    wire_filters = check_filters(filters)

    return QueryRequest(
        filters=tuple(wire_filters),
        table_name=table_name,
        grid_paging=GridPaging(skip=skip, take=take),
        columns=tuple(columns or ()),
        get_geometry=bool(get_geometry),
    )
