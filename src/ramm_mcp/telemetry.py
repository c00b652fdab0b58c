# RAMM MCP Server
# File: telemetry.py
# Version: v1

"""Structured log events for chunked retrieval.

Each helper emits one record whose message is the event name and whose
fields travel in ``extra`` so log formatters / collectors can pick them up.
"""

from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger(__name__)


def log_chunk_plan(
    *,
    table_name: str,
    total_chunks: int,
    total_rows: int,
    chunk_size: int,
) -> None:
    """Log chunk plan creation."""
    logger.info(
        "chunk_plan_created",
        extra={
            "table_name": table_name,
            "total_chunks": total_chunks,
            "total_rows": total_rows,
            "chunk_size": chunk_size,
        },
    )


def log_chunk_completed(
    *,
    table_name: str,
    chunk_index: int,
    skip: int,
    rows_received: int,
    latency_ms: Optional[float] = None,
) -> None:
    """Log completion of a single chunk.

    Args:
        table_name: Table being retrieved
        chunk_index: Zero-based index of the chunk
        skip: Row offset requested for the chunk
        rows_received: Number of rows the server returned for it
        latency_ms: Request latency in milliseconds
    """
    logger.info(
        "chunk_completed",
        extra={
            "table_name": table_name,
            "chunk_index": chunk_index,
            "skip": skip,
            "rows_received": rows_received,
            "latency_ms": latency_ms,
        },
    )


def log_chunk_error(
    *,
    table_name: str,
    chunk_index: int,
    error_type: str,
    error_message: str,
) -> None:
    logger.error(
        "chunk_error",
        extra={
            "table_name": table_name,
            "chunk_index": chunk_index,
            "error_type": error_type,
            "error_message": error_message,
        },
    )


def log_chunk_execution_complete(
    *,
    table_name: str,
    chunks_used: int,
    total_rows: int,
    rows_assembled: int,
    total_latency_ms: Optional[float] = None,
) -> None:
    """Log completion of a whole chunked retrieval."""
    logger.info(
        "chunk_execution_complete",
        extra={
            "table_name": table_name,
            "chunks_used": chunks_used,
            "total_rows": total_rows,
            "rows_assembled": rows_assembled,
            "total_latency_ms": total_latency_ms,
        },
    )
