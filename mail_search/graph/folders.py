"""Folder-name → Graph messages path resolution."""

from __future__ import annotations

import logging
from typing import Protocol

from mail_search.graph.client import GraphClient

logger = logging.getLogger(__name__)

INBOX_PATH = "me/messages"

# User-facing names for Graph's well-known folders.
WELL_KNOWN_FOLDERS: dict[str, str] = {
    "inbox": INBOX_PATH,
    "drafts": "me/mailFolders/drafts/messages",
    "sent": "me/mailFolders/sentItems/messages",
    "deleted": "me/mailFolders/deletedItems/messages",
    "junk": "me/mailFolders/junkemail/messages",
    "archive": "me/mailFolders/archive/messages",
}


class FolderResolver(Protocol):
    async def resolve(self, token: str, folder_name: str) -> str: ...


def _odata_quote(value: str) -> str:
    """Escape a string literal for an OData $filter expression."""
    return "'" + value.replace("'", "''") + "'"


class GraphFolderResolver:
    """Resolves folder names via well-known aliases, then a displayName lookup.

    Unknown folders fall back to the inbox with a warning rather than failing
    the search; Graph errors during lookup propagate to the caller.
    """

    def __init__(self, graph: GraphClient) -> None:
        self._graph = graph

    async def resolve(self, token: str, folder_name: str) -> str:
        if not folder_name:
            return INBOX_PATH

        well_known = WELL_KNOWN_FOLDERS.get(folder_name.lower())
        if well_known is not None:
            return well_known

        folder_id = await self.find_folder_id(token, folder_name)
        if folder_id is None:
            logger.warning("Couldn't find folder %r, falling back to inbox", folder_name)
            return INBOX_PATH
        return f"me/mailFolders/{folder_id}/messages"

    async def find_folder_id(self, token: str, folder_name: str) -> str | None:
        """Return the ID of a top-level folder by display name, or None."""
        exact = await self._graph.call(
            token,
            "GET",
            "me/mailFolders",
            {"$filter": f"displayName eq {_odata_quote(folder_name)}"},
        )
        matches = exact.get("value") or []
        if matches:
            return str(matches[0]["id"])

        # $filter on displayName is case-sensitive; retry against the full list.
        everything = await self._graph.call(token, "GET", "me/mailFolders", {"$top": 100})
        wanted = folder_name.lower()
        for folder in everything.get("value") or []:
            if str(folder.get("displayName", "")).lower() == wanted:
                return str(folder["id"])
        return None
