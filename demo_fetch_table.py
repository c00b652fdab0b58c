# demo_fetch_table.py
# Version: v1

r"""
Demo: retrieve a filtered RAMM table in chunks and print it as a DataFrame.

Usage:
  export RAMM_USERNAME=... RAMM_PASSWORD=...
  export RAMM_TEST_TABLE=roadnames
  export RAMM_TEST_CHUNK=500
  python demo_fetch_table.py

Set RAMM_MOCK_MODE=1 to run against the in-memory mock API.
"""

import asyncio
import logging
import os

from ramm_mcp.config import RammConfig
from ramm_mcp.exceptions import RammError
from ramm_mcp.tools.tasks import _make_client

TEST_TABLE = os.environ.get("RAMM_TEST_TABLE", "roadnames")
TEST_CHUNK = int(os.environ.get("RAMM_TEST_CHUNK", "500"))
TEST_FILTERS = [{"columnName": "road_type", "operator": "EqualTo", "value": "Urban"}]


async def main() -> None:
    cfg = RammConfig.from_env()
    logging.basicConfig(level=cfg.log_level)
    client = _make_client(cfg)

    print(f"Table: {TEST_TABLE}  Chunk size: {TEST_CHUNK}  Filters: {TEST_FILTERS}")

    try:
        result = await client.get_data(
            TEST_TABLE,
            filters=TEST_FILTERS,
            chunk_size=TEST_CHUNK,
            get_geometry=True,
        )
    except RammError as exc:
        print("Error while retrieving data:")
        print(str(exc))
        return

    if result.is_empty:
        print(result.notice)
        return

    print(f"Rows: {len(result)} of {result.total_rows} in {result.chunks_used} chunks")
    print(result.to_dataframe().head(20))


if __name__ == "__main__":
    asyncio.run(main())
