"""Tests for progressive_search — the paginated fetch is an AsyncMock throughout."""

from unittest.mock import AsyncMock

import pytest
from conftest import RecordingSink, graph_message

from mail_search.graph.client import GraphAPIError
from mail_search.search.progressive import LoggerSink, progressive_search
from mail_search.search.types import FilterTerms, SearchReason, SearchTerms, Strategy

ENDPOINT = "me/messages"
TOKEN = "token-abc"


def _params(fetch: AsyncMock, call: int) -> dict:
    return fetch.call_args_list[call].args[3]


async def _search(
    fetch: AsyncMock,
    sink: RecordingSink,
    terms: SearchTerms = SearchTerms(),
    filters: FilterTerms = FilterTerms(),
    max_count: int = 10,
):
    return await progressive_search(fetch, ENDPOINT, TOKEN, terms, filters, max_count, sink=sink)


# ── Tier 0: no criteria ────────────────────────────────────────────────────────


class TestNoCriteria:
    async def test_single_recent_fetch(self, fetch: AsyncMock, sink: RecordingSink) -> None:
        fetch.return_value = {"value": [graph_message("m1")]}
        outcome = await _search(fetch, sink)

        assert fetch.call_count == 1
        params = _params(fetch, 0)
        assert params["$orderby"] == "receivedDateTime desc"
        assert "$search" not in params
        assert outcome.strategy is Strategy.RECENT_EMAILS
        assert outcome.reason is SearchReason.NO_CRITERIA
        assert [e.id for e in outcome.items] == ["m1"]

    async def test_false_filters_count_as_no_criteria(
        self, fetch: AsyncMock, sink: RecordingSink
    ) -> None:
        outcome = await _search(fetch, sink, filters=FilterTerms(False, False))
        assert fetch.call_count == 1
        assert outcome.reason is SearchReason.NO_CRITERIA

    async def test_page_size_capped_but_max_items_is_requested_count(
        self, fetch: AsyncMock, sink: RecordingSink
    ) -> None:
        await _search(fetch, sink, max_count=120)
        call = fetch.call_args_list[0]
        assert call.args[:3] == (TOKEN, "GET", ENDPOINT)
        assert call.args[3]["$top"] == 50
        assert call.args[4] == 120

    async def test_failure_propagates(self, fetch: AsyncMock, sink: RecordingSink) -> None:
        fetch.side_effect = GraphAPIError("boom")
        with pytest.raises(GraphAPIError, match="boom"):
            await _search(fetch, sink)


# ── Tier 1: combined search ────────────────────────────────────────────────────


class TestCombinedSearch:
    async def test_first_fetch_is_combined_without_orderby(
        self, fetch: AsyncMock, sink: RecordingSink
    ) -> None:
        fetch.return_value = {"value": [graph_message("m1"), graph_message("m2")]}
        terms = SearchTerms(query="invoice", from_="alice", to="bob", subject="Q2")
        outcome = await _search(fetch, sink, terms=terms)

        assert fetch.call_count == 1
        params = _params(fetch, 0)
        assert params["$search"] == '"invoice" subject:"Q2" from:"alice" to:"bob"'
        assert "$orderby" not in params
        assert outcome.strategy is Strategy.COMBINED_SEARCH
        assert outcome.reason is None
        assert len(outcome.items) == 2

    async def test_empty_result_is_still_success(
        self, fetch: AsyncMock, sink: RecordingSink
    ) -> None:
        outcome = await _search(fetch, sink, terms=SearchTerms(query="nothing"))
        assert fetch.call_count == 1
        assert outcome.strategy is Strategy.COMBINED_SEARCH
        assert outcome.items == []


# ── Tier 2: single-term search ─────────────────────────────────────────────────


class TestSingleTermSearch:
    async def test_only_present_field_is_searched(
        self, fetch: AsyncMock, sink: RecordingSink
    ) -> None:
        fetch.side_effect = [GraphAPIError("bad search"), {"value": [graph_message()]}]
        outcome = await _search(
            fetch, sink, terms=SearchTerms(subject="Q2"), filters=FilterTerms(unread_only=True)
        )

        assert fetch.call_count == 2
        params = _params(fetch, 1)
        assert params["$search"] == 'subject:"Q2"'
        assert params["$filter"] == "isRead eq false"
        assert "$orderby" not in params
        assert outcome.strategy is Strategy.SINGLE_TERM_SUBJECT

    async def test_priority_order_and_stop_at_first_success(
        self, fetch: AsyncMock, sink: RecordingSink
    ) -> None:
        fetch.side_effect = [
            GraphAPIError("combined failed"),
            GraphAPIError("from failed"),
            {"value": [graph_message()]},  # to succeeds
        ]
        terms = SearchTerms(query="invoice", from_="alice", to="bob", subject="Q2")
        outcome = await _search(fetch, sink, terms=terms)

        assert fetch.call_count == 3
        assert _params(fetch, 1)["$search"] == 'from:"alice"'
        assert _params(fetch, 2)["$search"] == 'to:"bob"'
        assert outcome.strategy is Strategy.SINGLE_TERM_TO

    async def test_query_term_is_unprefixed(self, fetch: AsyncMock, sink: RecordingSink) -> None:
        fetch.side_effect = [GraphAPIError("nope"), {"value": []}]
        outcome = await _search(fetch, sink, terms=SearchTerms(query="invoice"))
        assert _params(fetch, 1)["$search"] == '"invoice"'
        assert outcome.strategy is Strategy.SINGLE_TERM_QUERY

    async def test_failures_are_logged_to_sink(self, fetch: AsyncMock, sink: RecordingSink) -> None:
        fetch.side_effect = [GraphAPIError("combined exploded"), {"value": []}]
        await _search(fetch, sink, terms=SearchTerms(from_="alice"))
        assert any("Combined search failed: combined exploded" in m for m in sink.messages)


# ── Tier 3: boolean filters only ───────────────────────────────────────────────


class TestBooleanFiltersOnly:
    async def test_filters_without_terms_use_filter_tier(
        self, fetch: AsyncMock, sink: RecordingSink
    ) -> None:
        fetch.return_value = {"value": [graph_message()]}
        outcome = await _search(fetch, sink, filters=FilterTerms(unread_only=True))

        assert fetch.call_count == 1
        params = _params(fetch, 0)
        assert params["$filter"] == "isRead eq false"
        assert params["$orderby"] == "receivedDateTime desc"
        assert "$search" not in params
        assert outcome.strategy is Strategy.BOOLEAN_FILTERS_ONLY

    async def test_reached_after_all_term_searches_fail(
        self, fetch: AsyncMock, sink: RecordingSink
    ) -> None:
        fetch.side_effect = [
            GraphAPIError("combined"),
            GraphAPIError("from"),
            {"value": []},
        ]
        outcome = await _search(
            fetch, sink, terms=SearchTerms(from_="alice"), filters=FilterTerms(has_attachments=True)
        )
        assert fetch.call_count == 3
        assert _params(fetch, 2)["$filter"] == "hasAttachments eq true"
        assert outcome.strategy is Strategy.BOOLEAN_FILTERS_ONLY


# ── Tier 4: unconditional fallback ─────────────────────────────────────────────


class TestFallback:
    async def test_everything_fails_then_recent(
        self, fetch: AsyncMock, sink: RecordingSink
    ) -> None:
        fetch.side_effect = [
            GraphAPIError("combined"),
            GraphAPIError("from"),
            GraphAPIError("subject"),
            GraphAPIError("filters"),
            {"value": [graph_message("m9")]},
        ]
        outcome = await _search(
            fetch,
            sink,
            terms=SearchTerms(from_="alice", subject="Q2"),
            filters=FilterTerms(unread_only=True),
        )

        assert fetch.call_count == 5
        final = _params(fetch, 4)
        assert final["$orderby"] == "receivedDateTime desc"
        assert "$search" not in final
        assert "$filter" not in final
        assert outcome.strategy is Strategy.RECENT_EMAILS
        assert outcome.reason is SearchReason.ALL_STRATEGIES_ERRORED
        assert [e.id for e in outcome.items] == ["m9"]

    async def test_final_failure_propagates(self, fetch: AsyncMock, sink: RecordingSink) -> None:
        fetch.side_effect = GraphAPIError("down")
        with pytest.raises(GraphAPIError):
            await _search(fetch, sink, terms=SearchTerms(query="x"))
        # combined, single-term query, final fallback
        assert fetch.call_count == 3


# ── Diagnostics ────────────────────────────────────────────────────────────────


class TestDiagnosticSink:
    async def test_broken_sink_does_not_change_control_flow(self, fetch: AsyncMock) -> None:
        class ExplodingSink:
            def write(self, message: str) -> None:
                raise RuntimeError("sink down")

        fetch.side_effect = [GraphAPIError("combined"), {"value": [graph_message()]}]
        outcome = await progressive_search(
            fetch, ENDPOINT, TOKEN, SearchTerms(to="bob"), FilterTerms(), 10, sink=ExplodingSink()
        )
        assert outcome.strategy is Strategy.SINGLE_TERM_TO

    async def test_default_sink_logs(
        self, fetch: AsyncMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        caplog.set_level("INFO", logger="mail_search.search.progressive")
        await progressive_search(fetch, ENDPOINT, TOKEN, SearchTerms(), FilterTerms(), 10)
        assert "No search criteria provided" in caplog.text

    def test_logger_sink_writes_info(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level("INFO", logger="mail_search.search.progressive")
        LoggerSink().write("hello sink")
        assert "hello sink" in caplog.text
