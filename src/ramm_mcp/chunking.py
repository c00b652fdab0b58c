# RAMM MCP Server
# File: chunking.py
# Version: v1

"""Chunk planning for skip/take paged retrieval.

``plan_chunks`` splits ``total_rows`` into ``ceil(total_rows / chunk_size)``
windows. Every window asks for ``chunk_size`` rows, including the last one;
the server returns only what remains.
"""

from __future__ import annotations

import math
from typing import List

from .models import ChunkPlan
from .telemetry import log_chunk_plan


def chunk_count(total_rows: int, chunk_size: int) -> int:
    """Number of pages needed for ``total_rows`` rows."""
    check_chunk_size(chunk_size)
    if total_rows < 0:
        raise ValueError(f"total_rows must be >= 0, got {total_rows}")
    return math.ceil(total_rows / chunk_size)


def plan_chunks(
    total_rows: int,
    chunk_size: int,
    table_name: str = "unknown",
) -> List[ChunkPlan]:
    """Plan the ``[skip, skip + take)`` windows covering ``[0, total_rows)``.

    Windows are returned in ascending ``skip`` order, do not overlap and
    leave no gap.

    Raises:
        ValueError: if ``chunk_size`` is not a positive integer or
            ``total_rows`` is negative.
    """
    n_chunks = chunk_count(total_rows, chunk_size)
    plans = [
        ChunkPlan(chunk_index=index, skip=index * chunk_size, take=chunk_size)
        for index in range(n_chunks)
    ]

    log_chunk_plan(
        table_name=table_name,
        total_chunks=len(plans),
        total_rows=total_rows,
        chunk_size=chunk_size,
    )
    return plans


def check_chunk_size(chunk_size: int) -> None:
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int):
        raise ValueError(f"chunk_size must be an integer, got {chunk_size!r}")
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
