"""Microsoft Graph client — a thin async wrapper over httpx with nextLink pagination."""

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Protocol

import httpx

from mail_search.graph.config import GraphConfig

logger = logging.getLogger(__name__)

# Decoded JSON body of a Graph response; collections carry a "value" list.
GraphPage = dict[str, Any]


class GraphAPIError(Exception):
    """Raised when a Graph request fails at the transport or HTTP level."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PaginatedFetch(Protocol):
    """Signature of the paginated fetch the search orchestrator depends on."""

    async def __call__(
        self,
        token: str,
        method: str,
        endpoint: str,
        params: dict[str, Any],
        max_items: int,
    ) -> GraphPage: ...


class GraphClient:
    """Async Graph API caller bound to one httpx.AsyncClient.

    Use the `graph_client()` context manager to construct and tear down
    correctly; tests may pass an ``httpx.AsyncClient`` with a mock transport.
    """

    def __init__(self, http: httpx.AsyncClient, config: GraphConfig) -> None:
        self._http = http
        self._config = config

    # ── Public API ─────────────────────────────────────────────────────────────

    async def call(
        self,
        token: str,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> GraphPage:
        """Issue one Graph request relative to the configured endpoint."""
        url = self._config.api_endpoint + path.lstrip("/")
        return await self._request(token, method, url, params=params)

    async def call_paginated(
        self,
        token: str,
        method: str,
        path: str,
        params: dict[str, Any],
        max_items: int = 0,
    ) -> GraphPage:
        """Follow ``@odata.nextLink`` until ``max_items`` items are collected.

        ``max_items <= 0`` collects every page.  The returned page holds the
        accumulated ``value`` list (trimmed to ``max_items``) and the first
        page's ``@odata.context`` when Graph sent one.
        """
        first = await self.call(token, method, path, params)
        items: list[Any] = list(first.get("value") or [])
        next_link = first.get("@odata.nextLink")
        pages = 1

        while next_link and (max_items <= 0 or len(items) < max_items):
            # nextLink already encodes every query option of the first request
            page = await self._request(token, method, str(next_link))
            items.extend(page.get("value") or [])
            next_link = page.get("@odata.nextLink")
            pages += 1

        if max_items > 0:
            items = items[:max_items]
        logger.debug("Paginated %s %s: %d item(s) over %d page(s)", method, path, len(items), pages)

        result: GraphPage = {"value": items}
        if "@odata.context" in first:
            result["@odata.context"] = first["@odata.context"]
        return result

    # ── Internal helpers ───────────────────────────────────────────────────────

    async def _request(
        self,
        token: str,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
    ) -> GraphPage:
        logger.debug("Graph → %s %s %s", method, url, params or "")
        try:
            response = await self._http.request(
                method,
                url,
                params=params,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Content-Type": "application/json",
                },
            )
        except httpx.HTTPError as exc:
            raise GraphAPIError(f"Network error calling Graph API: {exc}") from exc

        if response.status_code == 401:
            raise GraphAPIError("UNAUTHORIZED", status_code=401)

        if not response.is_success:
            raise GraphAPIError(
                f"API call failed with status {response.status_code}: "
                f"{self._error_message(response)}",
                status_code=response.status_code,
            )

        if not response.content:
            return {}
        try:
            parsed = response.json()
        except json.JSONDecodeError as exc:
            raise GraphAPIError(
                f"Error parsing API response: {exc}", status_code=response.status_code
            ) from exc
        return parsed if isinstance(parsed, dict) else {"value": parsed}

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Pull ``error.message`` out of a Graph error body, else the raw text."""
        try:
            data = response.json()
        except json.JSONDecodeError:
            return response.text
        if isinstance(data, dict) and isinstance(data.get("error"), dict):
            return str(data["error"].get("message") or data["error"].get("code") or data)
        return response.text


@asynccontextmanager
async def graph_client(config: GraphConfig | None = None) -> AsyncIterator[GraphClient]:
    """Async context manager that yields a GraphClient with its own httpx pool.

    Example::

        async with graph_client() as graph:
            page = await graph.call_paginated(token, "GET", "me/messages", params, 25)
    """
    cfg = config or GraphConfig.from_env()
    async with httpx.AsyncClient(timeout=cfg.request_timeout) as http:
        yield GraphClient(http, cfg)
