"""Progressive search — try progressively simpler Graph queries until one works.

Strategies, most specific first:

1. combined ``$search`` over every present term
2. ``$search`` on a single term, in priority order from → to → subject → query
3. boolean filters only (``$filter`` + ``$orderby``)
4. most recent emails, unconditionally

A failed fetch in tiers 1–3 is logged and the next strategy is tried; only
the final recent-emails fetch may raise.  With no terms and no active filter
the recent-emails fetch runs straight away.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from mail_search.graph.config import DEFAULT_MAX_PAGE_SIZE, DEFAULT_SELECT_FIELDS
from mail_search.search.params import (
    build_filter_only_params,
    build_recent_params,
    build_search_params,
    build_single_term_params,
)
from mail_search.search.types import (
    EmailSummary,
    FilterTerms,
    QueryParameters,
    SearchOutcome,
    SearchReason,
    SearchTerms,
    Strategy,
)

if TYPE_CHECKING:
    from mail_search.graph.client import PaginatedFetch

logger = logging.getLogger(__name__)

# Fields tried one at a time once the combined search has failed.
SINGLE_TERM_PRIORITY: tuple[str, ...] = ("from", "to", "subject", "query")


# ── Diagnostics ────────────────────────────────────────────────────────────────


@runtime_checkable
class DiagnosticSink(Protocol):
    """Fire-and-forget channel for human-readable progress messages."""

    def write(self, message: str) -> None: ...


class LoggerSink:
    """Default sink: forwards messages to this module's logger at INFO."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def write(self, message: str) -> None:
        self._log.info("%s", message)


def _emit(sink: DiagnosticSink, message: str) -> None:
    # A broken sink must never change which strategy runs next.
    try:
        sink.write(message)
    except Exception as exc:  # noqa: BLE001
        logger.debug("Diagnostic sink failed: %s", exc)


# ── Strategy table ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class SearchRequest:
    """Everything a strategy needs to decide applicability and build parameters."""

    terms: SearchTerms
    filters: FilterTerms
    page_size: int
    select_fields: str = DEFAULT_SELECT_FIELDS


@dataclass(frozen=True)
class SearchStrategy:
    """One fallback tier: when it applies, what it sends, how it is tagged."""

    strategy: Strategy
    applies: Callable[[SearchRequest], bool]
    build_params: Callable[[SearchRequest], QueryParameters]
    description: str


def _single_term(field_name: str, strategy: Strategy) -> SearchStrategy:
    return SearchStrategy(
        strategy=strategy,
        applies=lambda req: bool(req.terms.get(field_name)),
        build_params=lambda req: build_single_term_params(
            field_name,
            req.terms.get(field_name),
            req.filters,
            req.page_size,
            req.select_fields,
        ),
        description=f"search with only {field_name}",
    )


STRATEGIES: tuple[SearchStrategy, ...] = (
    SearchStrategy(
        strategy=Strategy.COMBINED_SEARCH,
        applies=lambda req: req.terms.has_terms,
        build_params=lambda req: build_search_params(
            req.terms, req.filters, req.page_size, req.select_fields
        ),
        description="combined search",
    ),
    _single_term("from", Strategy.SINGLE_TERM_FROM),
    _single_term("to", Strategy.SINGLE_TERM_TO),
    _single_term("subject", Strategy.SINGLE_TERM_SUBJECT),
    _single_term("query", Strategy.SINGLE_TERM_QUERY),
    SearchStrategy(
        strategy=Strategy.BOOLEAN_FILTERS_ONLY,
        applies=lambda req: req.filters.has_filters,
        build_params=lambda req: build_filter_only_params(
            req.filters, req.page_size, req.select_fields
        ),
        description="boolean filter search",
    ),
)


# ── Orchestrator ───────────────────────────────────────────────────────────────


def _to_items(page: dict) -> list[EmailSummary]:
    return [EmailSummary.from_graph(m) for m in page.get("value") or [] if isinstance(m, dict)]


async def progressive_search(
    fetch: PaginatedFetch,
    endpoint: str,
    token: str,
    terms: SearchTerms,
    filters: FilterTerms,
    max_count: int,
    *,
    sink: DiagnosticSink | None = None,
    max_page_size: int = DEFAULT_MAX_PAGE_SIZE,
    select_fields: str = DEFAULT_SELECT_FIELDS,
    strategies: tuple[SearchStrategy, ...] = STRATEGIES,
) -> SearchOutcome:
    """Run the strategies in order and return the first successful outcome.

    Each request asks Graph for ``min(max_page_size, max_count)`` items per
    page; ``fetch`` is given ``max_count`` and accumulates pages up to it.

    Raises:
        Exception: whatever ``fetch`` raises for the final recent-emails query.
    """
    sink = sink or LoggerSink()
    request = SearchRequest(
        terms=terms,
        filters=filters,
        page_size=min(max_page_size, max_count),
        select_fields=select_fields,
    )

    if not terms.has_terms and not filters.has_filters:
        _emit(sink, "No search criteria provided, returning recent emails")
        return await _recent(fetch, endpoint, token, request, max_count, SearchReason.NO_CRITERIA)

    for candidate in strategies:
        if not candidate.applies(request):
            continue
        params = candidate.build_params(request)
        _emit(sink, f"Attempting {candidate.description} with params: {params}")
        try:
            page = await fetch(token, "GET", endpoint, params, max_count)
        except Exception as exc:  # noqa: BLE001
            _emit(sink, f"{candidate.description.capitalize()} failed: {exc}")
            continue
        items = _to_items(page)
        _emit(sink, f"{candidate.description.capitalize()} returned {len(items)} results")
        return SearchOutcome(items=items, strategy=candidate.strategy)

    _emit(sink, "All search strategies failed with errors, falling back to recent emails")
    return await _recent(
        fetch, endpoint, token, request, max_count, SearchReason.ALL_STRATEGIES_ERRORED
    )


async def _recent(
    fetch: PaginatedFetch,
    endpoint: str,
    token: str,
    request: SearchRequest,
    max_count: int,
    reason: SearchReason,
) -> SearchOutcome:
    params = build_recent_params(request.page_size, request.select_fields)
    page = await fetch(token, "GET", endpoint, params, max_count)
    return SearchOutcome(items=_to_items(page), strategy=Strategy.RECENT_EMAILS, reason=reason)
