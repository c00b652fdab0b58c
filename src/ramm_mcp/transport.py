# RAMM MCP Server
# File: transport.py
# Version: v1

"""Thin HTTP transport for the RAMM API.

One call to :meth:`HttpTransport.send` is one HTTP exchange. Callers
decide what a non-200 status means; only network-level failures are
raised here.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx
from httpx import RequestError

from .config import RammConfig
from .exceptions import ConfigurationError, TransportError

logger = logging.getLogger(__name__)


@dataclass
class TransportResponse:
    """Status code and raw body of one HTTP exchange."""

    status_code: int
    text: str
    url: str = ""

    @property
    def ok(self) -> bool:
        return self.status_code == 200

    def json(self) -> Any:
        return json.loads(self.text)

    def snippet(self, limit: int = 500) -> str:
        return (self.text or "")[:limit]


@dataclass
class HttpTransport:
    """httpx-backed transport bound to a :class:`RammConfig`.

    ``http_transport`` lets tests (and mock mode) plug an
    ``httpx.MockTransport`` under the real client.
    """

    config: RammConfig
    http_transport: Optional[httpx.AsyncBaseTransport] = field(default=None, repr=False)

    def url_for(self, path: str) -> str:
        if not self.config.base_url:
            raise ConfigurationError(
                "RAMM_API_URL is not set. Please configure it before calling the RAMM API."
            )
        base_url = self.config.base_url.rstrip("/")
        return f"{base_url}/{path.lstrip('/')}"

    async def send(
        self,
        path: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        body: Any = None,
    ) -> TransportResponse:
        """Perform one request against ``path`` (relative to the base URL)."""
        url = self.url_for(path)
        # Query strings may carry credentials (login), keep them out of messages.
        safe_url = url.split("?", 1)[0]
        merged_headers = dict(self.config.base_headers)
        if headers:
            merged_headers.update(headers)

        method = method.upper()
        if method not in {"GET", "POST"}:
            raise ValueError(f"Unsupported HTTP method {method!r}; use GET or POST.")

        async with httpx.AsyncClient(
            timeout=float(self.config.timeout_seconds),
            verify=self.config.verify_tls,
            transport=self.http_transport,
        ) as http_client:
            try:
                if method == "GET":
                    response = await http_client.get(url, headers=merged_headers)
                else:
                    response = await http_client.post(
                        url,
                        headers=merged_headers,
                        content=json.dumps(body) if body is not None else None,
                    )
            except RequestError as exc:
                raise TransportError(
                    f"Error calling RAMM API at '{safe_url}': {exc}", url=safe_url
                ) from exc

        logger.debug("%s %s -> HTTP %s", method, safe_url, response.status_code)
        return TransportResponse(
            status_code=response.status_code,
            text=response.text,
            url=safe_url,
        )
