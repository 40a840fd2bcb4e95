"""Request-scoped value types for the progressive search pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Graph OData query parameters ($top, $select, $search, $orderby, $filter)
QueryParameters = dict[str, str | int]


class Strategy(str, Enum):
    """Which fallback tier produced a SearchOutcome.

    Values are the exact tags shown to the user in the trailing
    "(Search used ... strategy)" note.
    """

    RECENT_EMAILS = "recent-emails"
    COMBINED_SEARCH = "combined-search"
    SINGLE_TERM_FROM = "single-term-from"
    SINGLE_TERM_TO = "single-term-to"
    SINGLE_TERM_SUBJECT = "single-term-subject"
    SINGLE_TERM_QUERY = "single-term-query"
    BOOLEAN_FILTERS_ONLY = "boolean-filters-only"


class SearchReason(str, Enum):
    """Why the recent-emails strategy was used."""

    NO_CRITERIA = "no-criteria"
    ALL_STRATEGIES_ERRORED = "all-strategies-errored"


@dataclass(frozen=True)
class SearchTerms:
    """Free-text and field-targeted search intent.

    ``from_`` carries the sender term; the trailing underscore only avoids the
    keyword, the remote field name is still ``from``.
    """

    query: str = ""
    from_: str = ""
    to: str = ""
    subject: str = ""

    @property
    def has_terms(self) -> bool:
        return bool(self.query or self.from_ or self.to or self.subject)

    def get(self, field_name: str) -> str:
        """Return the term for a remote field name (``from``, ``to``, ``subject``, ``query``)."""
        if field_name == "from":
            return self.from_
        return str(getattr(self, field_name))


@dataclass(frozen=True)
class FilterTerms:
    """Boolean filters. Only a literal ``True`` activates a filter."""

    has_attachments: bool | None = None
    unread_only: bool | None = None

    @property
    def has_filters(self) -> bool:
        return self.has_attachments is True or self.unread_only is True


@dataclass(frozen=True)
class EmailSummary:
    """The handful of message fields the formatter reads. Never mutated."""

    id: str
    subject: str | None = None
    sender_name: str | None = None
    sender_address: str | None = None
    received: str | None = None
    is_read: bool = False

    @classmethod
    def from_graph(cls, data: dict[str, Any]) -> "EmailSummary":
        """Map a Graph ``message`` resource (already ``$select``-ed) to a summary."""
        sender = (data.get("from") or {}).get("emailAddress") or {}
        return cls(
            id=str(data.get("id", "")),
            subject=data.get("subject"),
            sender_name=sender.get("name"),
            sender_address=sender.get("address"),
            received=data.get("receivedDateTime"),
            is_read=bool(data.get("isRead", False)),
        )


@dataclass(frozen=True)
class SearchOutcome:
    """Result of one progressive search: the items plus which tier produced them."""

    items: list[EmailSummary] = field(default_factory=list)
    strategy: Strategy | None = None
    reason: SearchReason | None = None
