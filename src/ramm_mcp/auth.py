# RAMM MCP Server
# File: auth.py
# Version: v1

"""Login against the RAMM API and bearer-token header handling."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import quote, urlencode

from .config import RammConfig
from .exceptions import AuthenticationError, ConfigurationError
from .transport import HttpTransport

logger = logging.getLogger(__name__)


def _login_path(username: str, password: str, database: str) -> str:
    params = {"userName": username, "password": password, "database": database}
    return "/authenticate/login?" + urlencode(params, quote_via=quote)


@dataclass
class RammAuth:
    """Exchanges RAMM credentials for a bearer token.

    The token is cached in-memory; :meth:`current_header` logs in lazily on
    first use with the configured username and password.
    """

    config: RammConfig
    transport: HttpTransport
    _cached_token: Optional[str] = field(default=None, repr=False)

    @property
    def logged_in(self) -> bool:
        return bool(self._cached_token)

    async def login(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
        database: Optional[str] = None,
    ) -> str:
        """Log in and cache the returned token."""
        username = username or self.config.username
        password = password or self.config.password
        database = database or self.config.database

        if not username or not password:
            raise ConfigurationError(
                "RAMM credentials are incomplete. "
                "Set RAMM_USERNAME and RAMM_PASSWORD or pass them to login()."
            )

        response = await self.transport.send(
            _login_path(username, password, database), method="POST"
        )

        if response.status_code != 200:
            # The URL carries the password, so only the status and body are reported.
            raise AuthenticationError(
                f"Login failed for user '{username}' on database '{database}' "
                f"(HTTP {response.status_code}). "
                f"Response snippet: {response.snippet()}",
                status_code=response.status_code,
            )

        token = response.text.replace('"', "").strip()
        if not token:
            raise AuthenticationError(
                "Login response did not contain a token.",
                status_code=response.status_code,
            )

        self._cached_token = token
        logger.info("Successfully logged in to RAMM database '%s'.", database)
        return token

    async def current_header(self) -> str:
        """Return the ``Authorization`` header value, logging in if needed."""
        if not self._cached_token:
            await self.login()
        return f"Bearer {self._cached_token}"

    async def headers(self) -> dict[str, str]:
        return {"Authorization": await self.current_header()}
