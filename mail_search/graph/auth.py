"""Access-token lookup for Microsoft Graph.

The interactive OAuth flow lives in a separate ``authenticate`` tool which
writes its tokens to a JSON file.  This module only reads that file; it never
refreshes or re-authenticates on its own.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from pathlib import Path
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

AUTH_REQUIRED_MESSAGE = "Authentication required"

# Treat tokens that expire within this window as already expired.
_EXPIRY_MARGIN_MS = 5 * 60 * 1000


class AuthenticationRequired(Exception):
    """Raised when no valid Graph session exists and the user must authenticate."""

    def __init__(self, message: str = AUTH_REQUIRED_MESSAGE) -> None:
        super().__init__(message)


@runtime_checkable
class CredentialProvider(Protocol):
    """Anything that can hand out a Graph access token."""

    async def acquire(self) -> str:
        """Return a bearer token or raise AuthenticationRequired."""
        ...


class TokenFileCredentials:
    """Reads the access token saved by the authenticate tool.

    Expected file shape::

        {"access_token": "...", "refresh_token": "...", "expires_at": 1767225600000}

    ``expires_at`` is epoch milliseconds.
    """

    def __init__(self, token_path: Path) -> None:
        self._token_path = token_path

    async def acquire(self) -> str:
        tokens = await asyncio.to_thread(self._load)
        access_token = tokens.get("access_token")
        if not access_token:
            logger.info("Token file %s has no access token", self._token_path)
            raise AuthenticationRequired()

        expires_at = tokens.get("expires_at")
        now_ms = time.time() * 1000
        if not isinstance(expires_at, (int, float)) or expires_at - _EXPIRY_MARGIN_MS <= now_ms:
            logger.info("Access token in %s is expired or has no expiry", self._token_path)
            raise AuthenticationRequired()

        return str(access_token)

    def _load(self) -> dict[str, object]:
        try:
            raw = self._token_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("No token file at %s", self._token_path)
            raise AuthenticationRequired() from None
        except OSError as exc:
            logger.warning("Could not read token file %s: %s", self._token_path, exc)
            raise AuthenticationRequired() from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Token file %s is not valid JSON: %s", self._token_path, exc)
            raise AuthenticationRequired() from exc

        if not isinstance(data, dict):
            raise AuthenticationRequired()
        return data
