# RAMM MCP Server
# File: tests/test_fetcher.py
# Version: v1

"""Tests for chunked table retrieval.

The RAMM service is replaced by ``MockRammBackend`` (or a thin wrapper
around it) served through ``httpx.MockTransport``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import httpx
import pytest

from ramm_mcp.client import RammClient
from ramm_mcp.config import RammConfig
from ramm_mcp.exceptions import (
    ChunkFetchError,
    FetchCancelled,
    InvalidFilterError,
    QueryError,
    TransportError,
)
from ramm_mcp.fetcher import NO_DATA_NOTICE
from ramm_mcp.mock import MockRammBackend


def _run(coro):
    """Helper to run async coroutines in plain pytest tests."""
    return asyncio.run(coro)


def _numbers_table(n_rows: int) -> Dict[str, Dict[str, Any]]:
    rows = [[i, f"name-{i}", i % 3] for i in range(n_rows)]
    return {
        "numbers": {
            "description": "Test table",
            "schema": [
                {"columnName": "id"},
                {"columnName": "name"},
                {"columnName": "bucket"},
            ],
            "rows": rows,
            "geometry": [f"POINT ({i} {i})" for i in range(n_rows)],
        }
    }


class _Backend(MockRammBackend):
    """MockRammBackend that can fail or garble selected data pages."""

    def __init__(self, n_rows: int) -> None:
        super().__init__(tables=_numbers_table(n_rows))
        self.fail_at_skip: Optional[int] = None
        self.garble_at_skip: Optional[int] = None
        self.schema_calls = 0
        self.seen_paths: List[str] = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.seen_paths.append(request.url.path)
        if "/schema/" in request.url.path:
            self.schema_calls += 1
        response = super().handle(request)
        if request.url.path.endswith("/data/table"):
            skip = self.requests[-1][2]["gridPaging"]["skip"]
            take = self.requests[-1][2]["gridPaging"]["take"]
            if take > 1 and skip == self.fail_at_skip:
                raise httpx.ConnectError("connection reset", request=request)
            if take > 1 and skip == self.garble_at_skip:
                return httpx.Response(200, json={"total": 12})
        return response


def _client(backend: MockRammBackend) -> RammClient:
    return RammClient(
        config=RammConfig(username="u", password="p"),
        http_transport=backend.transport(),
    )


def _paging(backend: MockRammBackend) -> List[tuple]:
    return [
        (body["gridPaging"]["skip"], body["gridPaging"]["take"])
        for _, _, body in backend.requests
    ]


# ---------------------------------------------------------------------------
# Happy paths
# ---------------------------------------------------------------------------


def test_twelve_rows_in_three_chunks_keep_order() -> None:
    backend = _Backend(12)
    result = _run(_client(backend).get_data("numbers", chunk_size=5))

    # Probe first, then (0,5), (5,5), (10,5); the last page only holds 2 rows.
    assert _paging(backend) == [(0, 1), (0, 5), (5, 5), (10, 5)]
    assert result.total_rows == 12
    assert result.chunks_used == 3
    assert len(result) == 12
    assert [row[0] for row in result.rows] == list(range(12))
    assert result.columns == ["id", "name", "bucket"]
    assert result.notice is None


def test_every_chunk_targets_the_requested_table() -> None:
    backend = _Backend(7)
    _run(_client(backend).get_data("numbers", chunk_size=3))
    assert {body["tableName"] for _, _, body in backend.requests} == {"numbers"}


def test_filters_are_sent_with_probe_and_every_chunk() -> None:
    backend = _Backend(12)
    filters = [{"columnName": "bucket", "operator": "EqualTo", "value": 1}]

    result = _run(_client(backend).get_data("numbers", filters=filters, chunk_size=2))

    assert all(body["filters"] == filters for _, _, body in backend.requests)
    assert [r["id"] for r in result.records()] == [1, 4, 7, 10]
    assert result.total_rows == 4


def test_zero_rows_is_an_empty_result_not_an_error(caplog) -> None:
    backend = _Backend(12)
    filters = [{"columnName": "bucket", "operator": "EqualTo", "value": 99}]

    with caplog.at_level(logging.INFO, logger="ramm_mcp.fetcher"):
        result = _run(_client(backend).get_data("numbers", filters=filters, chunk_size=5))

    assert result.is_empty
    assert result.total_rows == 0
    assert result.rows == []
    assert result.chunks_used == 0
    assert result.notice == NO_DATA_NOTICE
    assert result.columns == ["id", "name", "bucket"]
    # Only the probe was issued.
    assert _paging(backend) == [(0, 1)]
    assert NO_DATA_NOTICE in caplog.text


def test_explicit_columns_with_geometry_skip_schema_lookup() -> None:
    backend = _Backend(4)
    result = _run(
        _client(backend).get_data(
            "numbers", column_names=["name", "id"], get_geometry=True, chunk_size=10
        )
    )

    assert backend.schema_calls == 0
    assert result.columns == ["name", "id", "wkt"]
    assert result.records()[2] == {"name": "name-2", "id": 2, "wkt": "POINT (2 2)"}

    chunk_body = backend.requests[-1][2]
    assert chunk_body["columns"] == ["name", "id"]
    assert chunk_body["loadType"] == "Specified"
    assert chunk_body["getGeometry"] is True


def test_schema_columns_with_geometry() -> None:
    backend = _Backend(3)
    result = _run(_client(backend).get_data("numbers", get_geometry=True, chunk_size=2))

    assert backend.schema_calls == 1
    assert result.columns == ["id", "name", "bucket", "wkt"]
    assert result.rows[-1] == [2, "name-2", 2, "POINT (2 2)"]


def test_repeated_calls_are_identical() -> None:
    backend = _Backend(11)
    client = _client(backend)

    first = _run(client.get_data("numbers", chunk_size=4))
    second = _run(client.get_data("numbers", chunk_size=4))

    assert first == second


def test_result_converts_to_dataframe() -> None:
    result = _run(_client(_Backend(6)).get_data("numbers", chunk_size=4))
    df = result.to_dataframe()

    assert list(df.columns) == ["id", "name", "bucket"]
    assert len(df) == 6
    assert df["name"].tolist() == [f"name-{i}" for i in range(6)]


def test_empty_result_converts_to_empty_dataframe() -> None:
    filters = [{"columnName": "id", "operator": "LessThan", "value": 0}]
    result = _run(_client(_Backend(6)).get_data("numbers", filters=filters))
    df = result.to_dataframe()

    assert df.empty
    assert list(df.columns) == ["id", "name", "bucket"]


def test_default_chunk_size_comes_from_config() -> None:
    backend = _Backend(3)
    client = RammClient(
        config=RammConfig(username="u", password="p", chunk_size=2),
        http_transport=backend.transport(),
    )
    _run(client.get_data("numbers"))
    assert _paging(backend) == [(0, 1), (0, 2), (2, 2)]


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


def test_invalid_filters_fail_before_any_request() -> None:
    backend = _Backend(12)
    with pytest.raises(InvalidFilterError):
        _run(_client(backend).get_data("numbers", filters=[{"columnName": "x"}]))
    assert backend.seen_paths == []


@pytest.mark.parametrize("chunk_size", [0, -5])
def test_chunk_size_below_one_fails_before_any_request(chunk_size) -> None:
    backend = _Backend(12)
    with pytest.raises(ValueError):
        _run(_client(backend).get_data("numbers", chunk_size=chunk_size))
    assert backend.seen_paths == []


def test_second_chunk_transport_failure_aborts_whole_retrieval() -> None:
    backend = _Backend(12)
    backend.fail_at_skip = 5

    with pytest.raises(ChunkFetchError) as excinfo:
        _run(_client(backend).get_data("numbers", chunk_size=5))

    err = excinfo.value
    assert err.chunk_index == 1
    assert (err.skip, err.take) == (5, 5)
    assert err.table_name == "numbers"
    assert "Chunk 1" in str(err)
    assert isinstance(err.__cause__, TransportError)
    # Nothing after the failing chunk is requested.
    assert _paging(backend)[-1] == (5, 5)


def test_malformed_page_envelope_is_a_chunk_fetch_error() -> None:
    backend = _Backend(12)
    backend.garble_at_skip = 10

    with pytest.raises(ChunkFetchError) as excinfo:
        _run(_client(backend).get_data("numbers", chunk_size=5))

    assert excinfo.value.chunk_index == 2
    assert isinstance(excinfo.value.__cause__, QueryError)


def test_row_width_mismatch_is_a_chunk_fetch_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/authenticate/login"):
            return httpx.Response(200, text='"tok"')
        # Three columns are expected but each row only carries two values.
        return httpx.Response(200, json={"total": 1, "rows": [{"values": [1, "x"]}]})

    client = RammClient(
        config=RammConfig(username="u", password="p"),
        http_transport=httpx.MockTransport(handler),
    )
    with pytest.raises(ChunkFetchError) as excinfo:
        _run(client.get_data("numbers", column_names=["a", "b", "c"], chunk_size=5))

    assert "2 values but 3 columns" in str(excinfo.value)


def test_server_rejection_of_chunk_reports_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/authenticate/login"):
            return httpx.Response(200, text='"tok"')
        body = json.loads(request.content)
        if body["gridPaging"]["take"] == 1:
            return httpx.Response(200, json={"total": 3, "rows": []})
        return httpx.Response(500, text="server exploded")

    client = RammClient(
        config=RammConfig(username="u", password="p"),
        http_transport=httpx.MockTransport(handler),
    )
    with pytest.raises(ChunkFetchError) as excinfo:
        _run(client.get_data("numbers", column_names=["a"], chunk_size=10))

    assert excinfo.value.chunk_index == 0
    assert excinfo.value.status_code == 500


def test_probe_without_total_is_a_query_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/authenticate/login"):
            return httpx.Response(200, text='"tok"')
        return httpx.Response(200, json={"rows": []})

    client = RammClient(
        config=RammConfig(username="u", password="p"),
        http_transport=httpx.MockTransport(handler),
    )
    with pytest.raises(QueryError) as excinfo:
        _run(client.get_data("numbers", column_names=["a"]))
    assert not isinstance(excinfo.value, ChunkFetchError)


def test_cancellation_between_chunks() -> None:
    backend = _Backend(12)
    cancel = asyncio.Event()
    original = backend.handle

    def handle(request: httpx.Request) -> httpx.Response:
        response = original(request)
        # Cancel once the first real chunk has been served.
        if backend.requests and backend.requests[-1][2]["gridPaging"]["take"] == 5:
            cancel.set()
        return response

    backend.handle = handle  # type: ignore[method-assign]

    async def scenario():
        client = RammClient(
            config=RammConfig(username="u", password="p"),
            http_transport=httpx.MockTransport(backend.handle),
        )
        return await client.get_data("numbers", chunk_size=5, cancel_event=cancel)

    with pytest.raises(FetchCancelled) as excinfo:
        _run(scenario())

    assert excinfo.value.chunk_index == 1
    assert _paging(backend) == [(0, 1), (0, 5)]


def test_single_page_query_returns_raw_envelope() -> None:
    backend = _Backend(12)
    envelope = _run(_client(backend).query("numbers", skip=10, take=5))

    assert envelope["total"] == 12
    assert [r["values"][0] for r in envelope["rows"]] == [10, 11]
