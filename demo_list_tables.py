# demo_list_tables.py
# Version: v1

r"""
Quick smoke test: log in to RAMM and list tables and the columns of one.

Run with virtualenv active and env vars loaded:
  export RAMM_USERNAME=... RAMM_PASSWORD=...
  export RAMM_TEST_TABLE=roadnames
  python demo_list_tables.py

Set RAMM_MOCK_MODE=1 to run against the in-memory mock API.
"""

import asyncio
import os

from ramm_mcp.exceptions import RammError
from ramm_mcp.tools import tasks

TEST_TABLE = os.environ.get("RAMM_TEST_TABLE", "roadnames")


async def main() -> None:
    try:
        tables = await tasks.list_tables()
        columns = await tasks.list_columns(TEST_TABLE)
    except RammError as exc:
        print("Error while talking to RAMM:")
        print(str(exc))
        return

    print(f"Tables returned: {tables['meta']['count']}")
    for name in tables["tables"][:20]:
        print(f"- {name}")

    print()
    print(f"Columns of {TEST_TABLE}:", columns["columns"])


if __name__ == "__main__":
    asyncio.run(main())
