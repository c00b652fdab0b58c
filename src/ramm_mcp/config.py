# RAMM MCP Server
# File: config.py
# Version: v1

"""Configuration loading for the RAMM API client and MCP server."""

from __future__ import annotations

from dataclasses import dataclass
import os

DEFAULT_BASE_URL = "https://apps.ramm.co.nz/RammApi6.1/v1"
DEFAULT_DATABASE = "SH New Zealand"
DEFAULT_REFERER = "https://test.com"
DEFAULT_CHUNK_SIZE = 5000


def _parse_bool_env(name: str, default: bool = False) -> bool:
    """Parse a boolean-like environment variable.

    Accepts 1/0, true/false, yes/no, on/off (case-insensitive).
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def _parse_int_env(
    name: str,
    default: int,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    """Parse an int environment variable, clamped, falling back to default."""
    raw = os.getenv(name)
    if raw is None or not str(raw).strip():
        value = int(default)
    else:
        try:
            value = int(str(raw).strip())
        except ValueError:
            value = int(default)

    if min_value is not None and value < min_value:
        value = min_value
    if max_value is not None and value > max_value:
        value = max_value

    return value


@dataclass
class RammConfig:
    """Connection and tuning values for the RAMM API.

    The config is a plain value handed to the auth, transport and client
    objects; nothing here is process-global.
    """

    base_url: str | None = DEFAULT_BASE_URL
    database: str = DEFAULT_DATABASE
    username: str | None = None
    password: str | None = None
    referer: str = DEFAULT_REFERER
    mock_mode: bool = False

    verify_tls: bool = True
    timeout_seconds: int = 60

    # Retrieval defaults and tool guardrails
    chunk_size: int = DEFAULT_CHUNK_SIZE
    max_rows_query: int = 500
    max_rows_fetch: int = 1000

    log_level: str = "INFO"

    @property
    def base_headers(self) -> dict[str, str]:
        """Headers sent with every request (Authorization is added per call)."""
        return {
            "Content-type": "application/json",
            "referer": self.referer,
        }

    @classmethod
    def from_env(cls) -> "RammConfig":
        """Create configuration from environment variables."""
        base_url = os.getenv("RAMM_API_URL", DEFAULT_BASE_URL)
        database = os.getenv("RAMM_DATABASE") or DEFAULT_DATABASE
        username = os.getenv("RAMM_USERNAME")
        password = os.getenv("RAMM_PASSWORD")
        referer = os.getenv("RAMM_REFERER") or DEFAULT_REFERER

        mock_mode = _parse_bool_env("RAMM_MOCK_MODE", default=False)
        verify_tls = _parse_bool_env("RAMM_VERIFY_TLS", default=True)

        timeout_seconds = _parse_int_env(
            "RAMM_TIMEOUT_SECONDS", default=60, min_value=1, max_value=600
        )
        chunk_size = _parse_int_env(
            "RAMM_CHUNK_SIZE", default=DEFAULT_CHUNK_SIZE, min_value=1, max_value=100000
        )
        max_rows_query = _parse_int_env(
            "RAMM_MAX_ROWS_QUERY", default=500, min_value=1, max_value=100000
        )
        max_rows_fetch = _parse_int_env(
            "RAMM_MAX_ROWS_FETCH", default=1000, min_value=1, max_value=1000000
        )

        log_level = (os.getenv("RAMM_LOG_LEVEL") or "INFO").strip().upper()

        return cls(
            base_url=base_url,
            database=database,
            username=username,
            password=password,
            referer=referer,
            mock_mode=mock_mode,
            verify_tls=verify_tls,
            timeout_seconds=timeout_seconds,
            chunk_size=chunk_size,
            max_rows_query=max_rows_query,
            max_rows_fetch=max_rows_fetch,
            log_level=log_level,
        )
