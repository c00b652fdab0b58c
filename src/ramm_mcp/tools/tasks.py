# RAMM MCP Server
# File: tools/tasks.py
# Version: v1
#
# NOTE: This module is the single place where RAMM operations are shaped
# into MCP tools. The stdio transport simply calls `register_tools(server)`
# to wire these up.

from __future__ import annotations

import dataclasses
import logging
import os
import time
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from ..client import RammClient
from ..config import RammConfig
from ..exceptions import InvalidFilterError
from ..mock import MockRammBackend

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers (env flags, client factory, caps)
# ---------------------------------------------------------------------------


def _env_flag(name: str, default: bool = False) -> bool:
    """Parse a boolean-like environment variable."""
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def _make_error(
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Small, LLM-friendly error shape used by tools and diagnostics."""
    err: Dict[str, Any] = {"code": code, "message": message}
    if details:
        err["details"] = details
    return err


def _cap_int(value: int, cap: int, min_value: int = 1) -> tuple[int, bool]:
    """Clamp an integer to [min_value, cap]. Returns (effective, cap_applied)."""
    try:
        v = int(value)
    except (TypeError, ValueError):
        v = min_value

    if v < min_value:
        return min_value, True

    if cap > 0 and v > cap:
        return cap, True

    return v, False


def _make_client(cfg: Optional[RammConfig] = None) -> RammClient:
    """Create a RammClient from environment variables.

    If RAMM_MOCK_MODE is truthy the client talks to an in-process
    MockRammBackend instead of the real service.

    Note: Callers should prefer invoking this with *no arguments* so tests
    can monkeypatch it with a no-arg lambda.
    """
    cfg = cfg or RammConfig.from_env()

    if cfg.mock_mode or _env_flag("RAMM_MOCK_MODE", False):
        cfg = dataclasses.replace(
            cfg,
            mock_mode=True,
            username=cfg.username or "mock-user",
            password=cfg.password or "mock-password",
        )
        backend = MockRammBackend(base_url=cfg.base_url)
        return RammClient(config=cfg, http_transport=backend.transport())

    return RammClient(config=cfg)


def _invalid_filter_payload(exc: InvalidFilterError, **context: Any) -> Dict[str, Any]:
    return {
        "ok": False,
        **context,
        "error": _make_error("INVALID_FILTER", str(exc), {"expected_shape": exc.shape}),
    }


# ---------------------------------------------------------------------------
# Core async tasks (library-style)
# ---------------------------------------------------------------------------


async def ping() -> Dict[str, Any]:
    client = _make_client()
    ok = await client.ping()
    return {"ok": bool(ok)}


async def list_tables() -> Dict[str, Any]:
    client = _make_client()
    tables = await client.get_table_names()
    return {
        "tables": [t.name for t in tables],
        "meta": {"count": len(tables)},
    }


async def get_table_schema(table_name: str) -> Dict[str, Any]:
    client = _make_client()
    schema = await client.get_table_schema(table_name)
    return {
        "table_name": table_name,
        "columns": schema,
        "meta": {"column_count": len(schema)},
    }


async def list_columns(table_name: str, get_geometry: bool = False) -> Dict[str, Any]:
    client = _make_client()
    columns = await client.get_column_names(table_name, get_geometry=get_geometry)
    return {
        "table_name": table_name,
        "columns": columns,
        "meta": {"column_count": len(columns), "get_geometry": bool(get_geometry)},
    }


async def query_table(
    table_name: str,
    filters: Optional[List[Dict[str, Any]]] = None,
    skip: int = 0,
    take: int = 100,
    columns: Optional[List[str]] = None,
    get_geometry: bool = False,
) -> Dict[str, Any]:
    """Fetch a single page of rows, with ``take`` capped by RAMM_MAX_ROWS_QUERY."""
    cfg = RammConfig.from_env()
    requested_take = take
    effective_take, cap_applied = _cap_int(take, cfg.max_rows_query, min_value=1)
    effective_skip = max(int(skip or 0), 0)

    client = _make_client()
    try:
        envelope = await client.query(
            table_name,
            filters=filters or [],
            skip=effective_skip,
            take=effective_take,
            columns=columns,
            get_geometry=get_geometry,
        )
    except InvalidFilterError as exc:
        return _invalid_filter_payload(exc, table_name=table_name)

    if columns:
        column_names = list(columns) + (["wkt"] if get_geometry else [])
    else:
        column_names = await client.get_column_names(table_name, get_geometry=get_geometry)

    raw_rows = envelope.get("rows") or []
    rows = [r.get("values") for r in raw_rows if isinstance(r, dict)]
    total = envelope.get("total")

    return {
        "ok": True,
        "table_name": table_name,
        "columns": column_names,
        "rows": rows,
        "meta": {
            "total": total,
            "skip": effective_skip,
            "requested_take": requested_take,
            "effective_take": effective_take,
            "cap_take": cfg.max_rows_query,
            "cap_applied": bool(cap_applied),
            "row_count": len(rows),
        },
    }


async def fetch_table(
    table_name: str,
    filters: Optional[List[Dict[str, Any]]] = None,
    chunk_size: Optional[int] = None,
    column_names: Optional[List[str]] = None,
    get_geometry: bool = False,
) -> Dict[str, Any]:
    """Retrieve a whole table in chunks.

    The full table is always fetched; only the rows placed in the tool
    output are capped by RAMM_MAX_ROWS_FETCH.
    """
    cfg = RammConfig.from_env()
    client = _make_client()

    try:
        result = await client.get_data(
            table_name,
            get_geometry=get_geometry,
            filters=filters or [],
            chunk_size=chunk_size,
            column_names=column_names,
        )
    except InvalidFilterError as exc:
        return _invalid_filter_payload(exc, table_name=table_name)

    cap = cfg.max_rows_fetch
    rows = result.rows[:cap]
    truncated = len(result.rows) > len(rows)

    return {
        "ok": True,
        "table_name": table_name,
        "columns": result.columns,
        "rows": rows,
        "truncated": truncated,
        "notice": result.notice,
        "meta": {
            "total_rows": result.total_rows,
            "rows_retrieved": len(result.rows),
            "rows_returned": len(rows),
            "chunks_used": result.chunks_used,
            "chunk_size": result.meta.get("chunk_size"),
            "cap_rows": cap,
            "cap_applied": truncated,
        },
    }


def _collect_connection_info() -> Dict[str, Any]:
    """Redacted snapshot of the RAMM configuration from env."""
    cfg = RammConfig.from_env()

    host = None
    if cfg.base_url:
        host = urlparse(cfg.base_url).hostname or cfg.base_url

    return {
        "base_url": cfg.base_url,
        "host": host,
        "database": cfg.database,
        "mock_mode": bool(cfg.mock_mode),
        "verify_tls": bool(cfg.verify_tls),
        "credentials": {
            "username_configured": bool(cfg.username),
            "password_configured": bool(cfg.password),
        },
        "limits": {
            "chunk_size": cfg.chunk_size,
            "max_rows_query": cfg.max_rows_query,
            "max_rows_fetch": cfg.max_rows_fetch,
            "timeout_seconds": cfg.timeout_seconds,
        },
    }


async def get_connection_info() -> Dict[str, Any]:
    return _collect_connection_info()


def _elapsed_ms(t0: float) -> int:
    return int((time.time() - t0) * 1000)


async def diagnostics() -> Dict[str, Any]:
    started = time.time()
    config_info = _collect_connection_info()

    checks: List[Dict[str, Any]] = []
    overall_ok = True

    # Client init
    t0 = time.time()
    try:
        client = _make_client()
        checks.append({"name": "client_init", "ok": True, "error": None, "elapsed_ms": _elapsed_ms(t0)})
    except Exception as exc:  # noqa: BLE001 - reported as a failed check
        logger.warning("Client initialisation failed: %s", exc)
        checks.append(
            {
                "name": "client_init",
                "ok": False,
                "error": _make_error("CONFIG_ERROR", str(exc)),
                "elapsed_ms": _elapsed_ms(t0),
            }
        )
        return {
            "ok": False,
            "mock_mode": config_info["mock_mode"],
            "config": config_info,
            "checks": checks,
            "meta": {"elapsed_ms": _elapsed_ms(started)},
        }

    # Ping
    t0 = time.time()
    try:
        ok_ping = await client.ping()
        if ok_ping:
            checks.append({"name": "ping", "ok": True, "error": None, "elapsed_ms": _elapsed_ms(t0)})
        else:
            overall_ok = False
            checks.append(
                {
                    "name": "ping",
                    "ok": False,
                    "error": _make_error("CONFIG_ERROR", "No RAMM base URL configured."),
                    "elapsed_ms": _elapsed_ms(t0),
                }
            )
    except Exception as exc:  # noqa: BLE001
        overall_ok = False
        checks.append(
            {
                "name": "ping",
                "ok": False,
                "error": _make_error("BACKEND_ERROR", str(exc)),
                "elapsed_ms": _elapsed_ms(t0),
            }
        )

    # List tables (exercises login + an authenticated GET)
    t0 = time.time()
    try:
        tables = await client.get_table_names()
        checks.append(
            {
                "name": "list_tables",
                "ok": True,
                "count": len(tables),
                "error": None,
                "elapsed_ms": _elapsed_ms(t0),
            }
        )
    except Exception as exc:  # noqa: BLE001
        overall_ok = False
        logger.warning("Diagnostics list_tables check failed: %s", exc)
        checks.append(
            {
                "name": "list_tables",
                "ok": False,
                "error": _make_error("BACKEND_ERROR", str(exc)),
                "elapsed_ms": _elapsed_ms(t0),
            }
        )

    return {
        "ok": overall_ok,
        "mock_mode": config_info["mock_mode"],
        "config": config_info,
        "checks": checks,
        "meta": {"elapsed_ms": _elapsed_ms(started)},
    }


# ---------------------------------------------------------------------------
# MCP tool registration
# ---------------------------------------------------------------------------


def register_tools(server: Any) -> None:
    """Register MCP tools on an MCP Server-like instance."""
    if server is None or not hasattr(server, "tool"):
        raise ValueError(
            "register_tools(server) expects an MCP Server-like object that exposes a .tool() decorator."
        )

    @server.tool(name="ramm_ping", description="Basic health check for the RAMM MCP server.")
    async def mcp_ping() -> Dict[str, Any]:
        return await ping()

    @server.tool(name="ramm_list_tables", description="List the tables of the configured RAMM database.")
    async def mcp_list_tables() -> Dict[str, Any]:
        return await list_tables()

    @server.tool(
        name="ramm_list_columns",
        description="List the column names of a RAMM table in server order (optionally with 'wkt').",
    )
    async def mcp_list_columns(table_name: str, get_geometry: bool = False) -> Dict[str, Any]:
        return await list_columns(table_name=table_name, get_geometry=get_geometry)

    @server.tool(
        name="ramm_get_table_schema",
        description="Return the raw column descriptors of a RAMM table.",
    )
    async def mcp_get_table_schema(table_name: str) -> Dict[str, Any]:
        return await get_table_schema(table_name=table_name)

    @server.tool(
        name="ramm_query_table",
        description=(
            "Fetch one page (skip / take) of a RAMM table. Filters are a list of "
            "{columnName, operator, value} objects."
        ),
    )
    async def mcp_query_table(
        table_name: str,
        filters: Optional[List[Dict[str, Any]]] = None,
        skip: int = 0,
        take: int = 100,
        columns: Optional[List[str]] = None,
        get_geometry: bool = False,
    ) -> Dict[str, Any]:
        return await query_table(
            table_name=table_name,
            filters=filters,
            skip=skip,
            take=take,
            columns=columns,
            get_geometry=get_geometry,
        )

    @server.tool(
        name="ramm_fetch_table",
        description="Retrieve all matching rows of a RAMM table, paging through it in chunks.",
    )
    async def mcp_fetch_table(
        table_name: str,
        filters: Optional[List[Dict[str, Any]]] = None,
        chunk_size: Optional[int] = None,
        column_names: Optional[List[str]] = None,
        get_geometry: bool = False,
    ) -> Dict[str, Any]:
        return await fetch_table(
            table_name=table_name,
            filters=filters,
            chunk_size=chunk_size,
            column_names=column_names,
            get_geometry=get_geometry,
        )

    @server.tool(
        name="ramm_get_connection_info",
        description="Return redacted RAMM connection configuration (no secrets).",
    )
    async def mcp_get_connection_info() -> Dict[str, Any]:
        return await get_connection_info()

    @server.tool(
        name="ramm_diagnostics",
        description="Run high-level health checks against the MCP server and the RAMM API.",
    )
    async def mcp_diagnostics() -> Dict[str, Any]:
        return await diagnostics()
