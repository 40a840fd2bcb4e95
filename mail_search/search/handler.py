"""search-emails request handler — the single entry point exposed as a tool."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from mail_search.graph.auth import AuthenticationRequired
from mail_search.graph.config import DEFAULT_COUNT, GraphConfig
from mail_search.search.formatter import format_search_results
from mail_search.search.progressive import DiagnosticSink, progressive_search
from mail_search.search.types import FilterTerms, SearchTerms

if TYPE_CHECKING:
    from mail_search.graph.auth import CredentialProvider
    from mail_search.graph.client import PaginatedFetch
    from mail_search.graph.folders import FolderResolver

logger = logging.getLogger(__name__)

AUTH_INSTRUCTION_TEXT = "Authentication required. Please use the 'authenticate' tool first."

# MCP tool result: a single text block
ToolResponse = dict[str, list[dict[str, str]]]


def text_response(text: str) -> ToolResponse:
    return {"content": [{"type": "text", "text": text}]}


def _optional_bool(value: Any) -> bool | None:
    return value if isinstance(value, bool) else None


def _count(value: Any, default: int) -> int:
    if not value or isinstance(value, bool):
        return default
    try:
        count = int(value)
    except (TypeError, ValueError):
        return default
    return count if count > 0 else default


@dataclass(frozen=True)
class SearchEmailsInput:
    """Validated tool arguments with every default applied.

    Attributes:
        folder: user-facing folder name, resolved later to a Graph path.
        count: how many results to return across all pages.
        query/from_/to/subject: free-text terms; empty means "not given".
        has_attachments/unread_only: only ``True`` constrains results.
    """

    folder: str = "inbox"
    count: int = DEFAULT_COUNT
    query: str = ""
    from_: str = ""
    to: str = ""
    subject: str = ""
    has_attachments: bool | None = None
    unread_only: bool | None = None

    @classmethod
    def from_args(
        cls, args: dict[str, Any] | None, default_count: int = DEFAULT_COUNT
    ) -> SearchEmailsInput:
        """Build from raw tool arguments (camelCase keys, ``from`` for the sender).

        Missing, empty, boolean or non-positive counts fall back to ``default_count``.
        """
        args = args or {}
        return cls(
            folder=str(args.get("folder") or "inbox"),
            count=_count(args.get("count"), default_count),
            query=str(args.get("query") or ""),
            from_=str(args.get("from") or ""),
            to=str(args.get("to") or ""),
            subject=str(args.get("subject") or ""),
            has_attachments=_optional_bool(args.get("hasAttachments")),
            unread_only=_optional_bool(args.get("unreadOnly")),
        )

    @property
    def terms(self) -> SearchTerms:
        return SearchTerms(query=self.query, from_=self.from_, to=self.to, subject=self.subject)

    @property
    def filters(self) -> FilterTerms:
        return FilterTerms(has_attachments=self.has_attachments, unread_only=self.unread_only)


async def handle_search_emails(
    args: dict[str, Any] | SearchEmailsInput | None,
    *,
    credentials: CredentialProvider,
    folders: FolderResolver,
    fetch: PaginatedFetch,
    sink: DiagnosticSink | None = None,
    config: GraphConfig | None = None,
) -> ToolResponse:
    """Search a mailbox folder and return the formatted tool response.

    Never raises: authentication problems become the authenticate-first
    instruction, anything else becomes ``Error searching emails: <message>``.
    """
    cfg = config or GraphConfig()
    if isinstance(args, SearchEmailsInput):
        request = args
    else:
        request = SearchEmailsInput.from_args(args, default_count=cfg.default_count)

    try:
        token = await credentials.acquire()
        endpoint = await folders.resolve(token, request.folder)
        logger.info("Using endpoint: %s for folder: %s", endpoint, request.folder)

        outcome = await progressive_search(
            fetch,
            endpoint,
            token,
            request.terms,
            request.filters,
            request.count,
            sink=sink,
            max_page_size=cfg.max_page_size,
            select_fields=cfg.select_fields,
        )
        return text_response(format_search_results(outcome))
    except AuthenticationRequired:
        return text_response(AUTH_INSTRUCTION_TEXT)
    except Exception as exc:  # noqa: BLE001
        logger.error("Email search failed: %s", exc, exc_info=True)
        return text_response(f"Error searching emails: {exc}")
