# RAMM MCP Server
# File: tests/test_schema.py
# Version: v1

"""Tests for table listing and column discovery."""

from __future__ import annotations

import asyncio
from typing import Any, List

import httpx
import pytest

from ramm_mcp.client import RammClient
from ramm_mcp.config import RammConfig
from ramm_mcp.exceptions import SchemaFetchError
from ramm_mcp.mock import MOCK_TOKEN, MockRammBackend


def _run(coro):
    """Helper to run async coroutines in plain pytest tests."""
    return asyncio.run(coro)


def _client(handler) -> RammClient:
    cfg = RammConfig(username="u", password="p")
    return RammClient(config=cfg, http_transport=httpx.MockTransport(handler))


def _mock_client() -> RammClient:
    backend = MockRammBackend()
    return RammClient(config=RammConfig(username="u", password="p"), http_transport=backend.transport())


def _schema_handler(schema: Any, status_code: int = 200):
    """Answer login and serve ``schema`` for every other request."""
    paths: List[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/authenticate/login"):
            return httpx.Response(200, text=f'"{MOCK_TOKEN}"')
        paths.append(request.url.path)
        if status_code != 200:
            return httpx.Response(status_code, text="boom")
        return httpx.Response(200, json=schema)

    handler.paths = paths  # type: ignore[attr-defined]
    return handler


def test_table_names_follow_server_order() -> None:
    tables = _run(_mock_client().get_table_names())
    assert [t.name for t in tables] == ["roadnames", "carr_way"]
    assert tables[0].raw["tableDescription"] == "Road names"


def test_column_names_keep_declaration_order() -> None:
    # Deliberately unsorted names: the order must not be touched.
    schema = [
        {"columnName": "zeta", "dataType": "String"},
        {"columnName": "alpha", "dataType": "String"},
        {"columnName": "mid", "dataType": "Integer"},
    ]
    handler = _schema_handler(schema)
    columns = _run(_client(handler).get_column_names("odd table"))

    assert columns == ["zeta", "alpha", "mid"]
    # Table names are path-encoded.
    assert handler.paths == ["/RammApi6.1/v1/schema/odd table"]


def test_geometry_appends_wkt_last() -> None:
    columns = _run(_mock_client().get_column_names("roadnames", get_geometry=True))
    assert columns == ["road_id", "road_name", "road_type", "length_m", "wkt"]


def test_schema_http_error_raises_schema_fetch_error() -> None:
    client = _client(_schema_handler([], status_code=500))

    with pytest.raises(SchemaFetchError) as excinfo:
        _run(client.get_column_names("roadnames"))

    assert excinfo.value.status_code == 500
    assert excinfo.value.table_name == "roadnames"
    assert "HTTP 500" in str(excinfo.value)


def test_unknown_table_is_a_schema_fetch_error() -> None:
    with pytest.raises(SchemaFetchError):
        _run(_mock_client().get_column_names("no_such_table"))


def test_descriptor_without_column_name_is_rejected() -> None:
    client = _client(_schema_handler([{"columnName": "a"}, {"dataType": "String"}]))
    with pytest.raises(SchemaFetchError):
        _run(client.get_column_names("roadnames"))


def test_non_list_schema_is_rejected() -> None:
    client = _client(_schema_handler({"columns": []}))
    with pytest.raises(SchemaFetchError):
        _run(client.get_table_schema("roadnames"))


def test_network_failure_is_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/authenticate/login"):
            return httpx.Response(200, text='"t"')
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(SchemaFetchError) as excinfo:
        _run(_client(handler).get_table_names())

    assert excinfo.value.__cause__ is not None
