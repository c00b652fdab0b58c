# RAMM MCP Server
# File: mock.py
# Version: v1

"""In-process stand-in for the RAMM API.

Activated when RAMM_MOCK_MODE is truthy. :class:`MockRammBackend` answers
the same endpoints as the real service through ``httpx.MockTransport``, so
the real transport, auth, schema and chunked fetch code all run unchanged
without a RAMM account.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import unquote, urlparse

import httpx

from .config import DEFAULT_BASE_URL

MOCK_TOKEN = "mock-token"

_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "EqualTo": lambda a, b: a == b,
    "NotEqualTo": lambda a, b: a != b,
    "GreaterThan": lambda a, b: a is not None and a > b,
    "GreaterThanOrEqualTo": lambda a, b: a is not None and a >= b,
    "LessThan": lambda a, b: a is not None and a < b,
    "LessThanOrEqualTo": lambda a, b: a is not None and a <= b,
    "In": lambda a, b: a in (b if isinstance(b, list) else str(b).split(",")),
}


def _default_tables() -> Dict[str, Dict[str, Any]]:
    roadnames_rows = [
        [1, "STATE HIGHWAY 1", "Rural", 1200.0],
        [2, "STATE HIGHWAY 2", "Rural", 860.0],
        [3, "QUEEN STREET", "Urban", 450.0],
        [4, "KING STREET", "Urban", 300.0],
        [5, "MAIN ROAD", "Rural", 2300.0],
        [6, "HIGH STREET", "Urban", 510.0],
        [7, "BEACH ROAD", "Urban", 720.0],
        [8, "VALLEY ROAD", "Rural", 3100.0],
        [9, "HILL ROAD", "Rural", 1450.0],
        [10, "STATION ROAD", "Urban", 390.0],
        [11, "MILL ROAD", "Rural", 980.0],
        [12, "CHURCH STREET", "Urban", 260.0],
    ]
    carr_way_rows = [
        [1, 1, 0, 600, 7.2],
        [2, 1, 600, 1200, 7.0],
        [3, 2, 0, 860, 6.8],
        [4, 3, 0, 450, 9.5],
        [5, 4, 0, 300, 8.0],
        [6, 5, 0, 2300, 6.5],
    ]
    return {
        "roadnames": {
            "description": "Road names",
            "schema": [
                {"columnName": "road_id", "dataType": "Integer", "isKey": True},
                {"columnName": "road_name", "dataType": "String", "isKey": False},
                {"columnName": "road_type", "dataType": "String", "isKey": False},
                {"columnName": "length_m", "dataType": "Decimal", "isKey": False},
            ],
            "rows": roadnames_rows,
            "geometry": [
                f"LINESTRING ({174.7 + i / 100:.2f} -36.8, {174.7 + i / 100:.2f} -36.9)"
                for i in range(len(roadnames_rows))
            ],
        },
        "carr_way": {
            "description": "Carriageway sections",
            "schema": [
                {"columnName": "carr_way_no", "dataType": "Integer", "isKey": True},
                {"columnName": "road_id", "dataType": "Integer", "isKey": False},
                {"columnName": "carrway_start_m", "dataType": "Integer", "isKey": False},
                {"columnName": "carrway_end_m", "dataType": "Integer", "isKey": False},
                {"columnName": "pave_width", "dataType": "Decimal", "isKey": False},
            ],
            "rows": carr_way_rows,
            "geometry": [None] * len(carr_way_rows),
        },
    }


def _json_response(status_code: int, payload: Any) -> httpx.Response:
    return httpx.Response(status_code, json=payload)


class MockRammBackend:
    """Serves login, table list, schema and data queries from memory.

    ``requests`` records ``(method, path, body)`` for every data call, which
    tests use to check paging and request bodies.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        tables: Optional[Dict[str, Dict[str, Any]]] = None,
    ) -> None:
        self._prefix = urlparse(base_url or DEFAULT_BASE_URL).path.rstrip("/")
        self.tables = tables if tables is not None else _default_tables()
        self.requests: List[tuple[str, str, Any]] = []

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if self._prefix and path.startswith(self._prefix):
            path = path[len(self._prefix):]

        if path == "/authenticate/login" and request.method == "POST":
            return self._login(request)

        if request.headers.get("Authorization") != f"Bearer {MOCK_TOKEN}":
            return httpx.Response(401, text="Authorization has been denied for this request.")

        if path == "/data/tables" and request.method == "GET":
            return self._list_tables()
        if path.startswith("/schema/") and request.method == "GET":
            return self._schema(unquote(path[len("/schema/"):]))
        if path == "/data/table" and request.method == "POST":
            body = json.loads(request.content or b"{}")
            self.requests.append((request.method, path, body))
            return self._query(body)

        return httpx.Response(404, text=f"No route for {request.method} {path}")

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def _login(self, request: httpx.Request) -> httpx.Response:
        params = request.url.params
        if not params.get("userName") or not params.get("password"):
            return httpx.Response(401, text="Invalid user name or password.")
        return httpx.Response(200, text=f'"{MOCK_TOKEN}"')

    def _list_tables(self) -> httpx.Response:
        return _json_response(
            200,
            [
                {"tableName": name, "tableDescription": table.get("description")}
                for name, table in self.tables.items()
            ],
        )

    def _schema(self, table_name: str) -> httpx.Response:
        table = self.tables.get(table_name)
        if table is None:
            return httpx.Response(404, text=f"Table '{table_name}' not found.")
        return _json_response(200, table["schema"])

    def _query(self, body: Dict[str, Any]) -> httpx.Response:
        table_name = body.get("tableName")
        table = self.tables.get(table_name)
        if table is None:
            return httpx.Response(400, text=f"Table '{table_name}' not found.")

        names = [c["columnName"] for c in table["schema"]]
        matched: List[int] = []
        for index, row in enumerate(table["rows"]):
            record = dict(zip(names, row))
            keep = True
            for flt in body.get("filters") or []:
                column = flt.get("columnName")
                op = _OPERATORS.get(flt.get("operator"))
                if column not in record:
                    return httpx.Response(400, text=f"Unknown column '{column}'.")
                if op is None:
                    return httpx.Response(400, text=f"Unknown operator '{flt.get('operator')}'.")
                try:
                    if not op(record[column], flt.get("value")):
                        keep = False
                        break
                except TypeError:
                    return httpx.Response(400, text=f"Invalid value for column '{column}'.")
            if keep:
                matched.append(index)

        if body.get("loadType") == "Specified":
            selected = list(body.get("columns") or [])
            unknown = [c for c in selected if c not in names]
            if unknown:
                return httpx.Response(400, text=f"Unknown columns {unknown}.")
        else:
            selected = names
        positions = [names.index(c) for c in selected]

        paging = body.get("gridPaging") or {}
        skip = int(paging.get("skip", 0))
        take = int(paging.get("take", 1))

        rows = []
        for index in matched[skip:skip + take]:
            values = [table["rows"][index][p] for p in positions]
            if body.get("getGeometry"):
                values.append(table["geometry"][index])
            rows.append({"values": values})

        return _json_response(200, {"total": len(matched), "rows": rows})
