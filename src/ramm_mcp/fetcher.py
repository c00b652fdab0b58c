# RAMM MCP Server
# File: fetcher.py
# Version: v1

"""Chunked retrieval of whole RAMM tables.

A retrieval runs in three steps:

1. resolve the column list (explicit names or the table schema),
2. probe the row count with a one-row query,
3. page through ``ceil(total / chunk_size)`` skip/take windows, one
   request at a time, appending each page's rows in server order.

The result is returned complete or not at all: any failing page aborts the
retrieval with :class:`ChunkFetchError` and the rows gathered so far are
discarded.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Dict, Iterable, List, Optional

from .auth import RammAuth
from .chunking import check_chunk_size, plan_chunks
from .config import DEFAULT_CHUNK_SIZE
from .exceptions import ChunkFetchError, FetchCancelled, QueryError, RammError
from .filters import check_filters
from .models import TableResult
from .request_body import build_request_body
from .schema import SchemaClient, with_geometry
from .telemetry import (
    log_chunk_completed,
    log_chunk_error,
    log_chunk_execution_complete,
)
from .transport import HttpTransport

logger = logging.getLogger(__name__)

DATA_PATH = "/data/table"

NO_DATA_NOTICE = "No data matches specified filter parameters."


def _extract_total(data: Dict[str, Any], table_name: str) -> int:
    total = data.get("total")
    if isinstance(total, float) and total.is_integer():
        total = int(total)
    if isinstance(total, bool) or not isinstance(total, int) or total < 0:
        raise QueryError(
            f"Row count response for table '{table_name}' has no valid 'total' "
            f"field (got {total!r}).",
            table_name=table_name,
        )
    return total


def _extract_rows(
    data: Dict[str, Any], columns: List[str], table_name: str
) -> List[List[Any]]:
    """Pull the positional value arrays out of a page envelope."""
    raw_rows = data.get("rows")
    if not isinstance(raw_rows, list):
        raise QueryError(
            f"Page response for table '{table_name}' has no 'rows' array.",
            table_name=table_name,
        )

    width = len(columns)
    rows: List[List[Any]] = []
    for position, raw in enumerate(raw_rows):
        values = raw.get("values") if isinstance(raw, dict) else None
        if not isinstance(values, list):
            raise QueryError(
                f"Row {position} of page for table '{table_name}' has no "
                "'values' array.",
                table_name=table_name,
            )
        if len(values) != width:
            raise QueryError(
                f"Row {position} of page for table '{table_name}' has "
                f"{len(values)} values but {width} columns are expected "
                f"({columns}).",
                table_name=table_name,
            )
        rows.append(values)
    return rows


def _raise_if_cancelled(cancel_event: Optional[asyncio.Event], chunk_index: int) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise FetchCancelled(
            f"Retrieval cancelled before chunk {chunk_index}.",
            chunk_index=chunk_index,
        )


@dataclass
class ChunkedTableFetcher:
    """Pages through ``POST /data/table`` and assembles a :class:`TableResult`."""

    transport: HttpTransport
    auth: RammAuth
    schema: SchemaClient

    async def query(
        self,
        table_name: str,
        filters: Any = (),
        skip: int = 0,
        take: int = 1,
        columns: Optional[Iterable[str]] = None,
        get_geometry: bool = False,
    ) -> Dict[str, Any]:
        """Run one paged query and return the parsed JSON envelope.

        Raises:
            InvalidFilterError: before any request if ``filters`` is malformed.
            QueryError: on a non-200 status or a non-object JSON body.
        """
        request = build_request_body(
            filters, table_name, skip=skip, take=take,
            columns=columns, get_geometry=get_geometry,
        )

        headers = await self.auth.headers()
        response = await self.transport.send(
            DATA_PATH, method="POST", headers=headers, body=request.to_body()
        )

        if response.status_code != 200:
            raise QueryError(
                f"Failed to query table '{table_name}' from '{response.url}' "
                f"(HTTP {response.status_code}). "
                f"Response snippet: {response.snippet()}",
                table_name=table_name,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise QueryError(
                f"Query response for table '{table_name}' is not valid JSON. "
                f"Response snippet: {response.snippet()}",
                table_name=table_name,
                status_code=response.status_code,
            ) from exc

        if not isinstance(data, dict):
            raise QueryError(
                f"Unexpected query response for table '{table_name}': "
                f"expected JSON object, got {type(data).__name__}.",
                table_name=table_name,
                status_code=response.status_code,
            )
        return data

    async def count_rows(self, table_name: str, filters: Any = ()) -> int:
        """Number of rows of ``table_name`` matching ``filters``."""
        data = await self.query(table_name, filters=filters, skip=0, take=1)
        return _extract_total(data, table_name)

    async def fetch(
        self,
        table_name: str,
        filters: Any = (),
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        column_names: Optional[Iterable[str]] = None,
        get_geometry: bool = False,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> TableResult:
        """Retrieve every row of ``table_name`` matching ``filters``.

        Args:
            table_name: RAMM table to read.
            filters: Sequence of ``{columnName, operator, value}`` records.
            chunk_size: Rows requested per page (>= 1).
            column_names: Explicit columns to load; the table schema is used
                when empty.
            get_geometry: Also load the geometry, exposed as a trailing
                ``"wkt"`` column.
            cancel_event: Checked before the probe and before each chunk.

        Raises:
            InvalidFilterError: malformed filters, before any request.
            ValueError: ``chunk_size`` is not a positive integer.
            SchemaFetchError: the column list could not be retrieved.
            QueryError: the row count probe failed.
            ChunkFetchError: a page failed; no partial result is returned.
            FetchCancelled: ``cancel_event`` was set.
        """
        check_filters(filters)
        check_chunk_size(chunk_size)
        started = perf_counter()

        explicit_columns = list(column_names or [])
        if explicit_columns:
            columns = with_geometry(explicit_columns, get_geometry)
        else:
            columns = await self.schema.get_column_names(
                table_name, get_geometry=get_geometry
            )

        _raise_if_cancelled(cancel_event, 0)
        total_rows = await self.count_rows(table_name, filters)

        if total_rows == 0:
            logger.info("%s (table '%s', filters=%r)", NO_DATA_NOTICE, table_name, filters)
            return TableResult(
                columns=columns,
                rows=[],
                total_rows=0,
                table_name=table_name,
                chunks_used=0,
                notice=NO_DATA_NOTICE,
                meta={"chunk_size": chunk_size, "get_geometry": bool(get_geometry)},
            )

        logger.info("retrieving %d rows from %s", total_rows, table_name)
        plans = plan_chunks(total_rows, chunk_size, table_name=table_name)

        rows: List[List[Any]] = []
        for plan in plans:
            _raise_if_cancelled(cancel_event, plan.chunk_index)

            chunk_start = perf_counter()
            try:
                data = await self.query(
                    table_name,
                    filters=filters,
                    skip=plan.skip,
                    take=plan.take,
                    columns=explicit_columns,
                    get_geometry=get_geometry,
                )
                page_rows = _extract_rows(data, columns, table_name)
            except RammError as exc:
                log_chunk_error(
                    table_name=table_name,
                    chunk_index=plan.chunk_index,
                    error_type=type(exc).__name__,
                    error_message=str(exc),
                )
                raise ChunkFetchError(
                    f"Chunk {plan.chunk_index} (skip={plan.skip}, take={plan.take}) "
                    f"of table '{table_name}' failed: {exc}",
                    chunk_index=plan.chunk_index,
                    skip=plan.skip,
                    take=plan.take,
                    table_name=table_name,
                    status_code=getattr(exc, "status_code", None),
                ) from exc

            rows.extend(page_rows)
            log_chunk_completed(
                table_name=table_name,
                chunk_index=plan.chunk_index,
                skip=plan.skip,
                rows_received=len(page_rows),
                latency_ms=(perf_counter() - chunk_start) * 1000.0,
            )

        if len(rows) != total_rows:
            logger.warning(
                "Table '%s' reported %d rows but %d were retrieved.",
                table_name,
                total_rows,
                len(rows),
            )

        log_chunk_execution_complete(
            table_name=table_name,
            chunks_used=len(plans),
            total_rows=total_rows,
            rows_assembled=len(rows),
            total_latency_ms=(perf_counter() - started) * 1000.0,
        )

        return TableResult(
            columns=columns,
            rows=rows,
            total_rows=total_rows,
            table_name=table_name,
            chunks_used=len(plans),
            meta={"chunk_size": chunk_size, "get_geometry": bool(get_geometry)},
        )
