"""Render a SearchOutcome as the plain-text body of the tool response."""

from datetime import datetime

from mail_search.search.types import EmailSummary, SearchOutcome

NO_RESULTS_TEXT = "No emails found matching your search criteria."


def format_timestamp(value: str | None) -> str:
    """Render a Graph ISO-8601 timestamp in the local timezone.

    Unparseable values are returned unchanged so a bad field never breaks
    the whole listing.
    """
    if not value:
        return "Unknown date"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return value
    return parsed.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _format_entry(index: int, email: EmailSummary) -> str:
    read_status = "" if email.is_read else "[UNREAD] "
    name = email.sender_name or "Unknown"
    address = email.sender_address or "unknown"
    return (
        f"{index}. {read_status}{format_timestamp(email.received)} - From: {name} ({address})\n"
        f"Subject: {email.subject or '(no subject)'}\n"
        f"ID: {email.id}\n"
    )


def format_search_results(outcome: SearchOutcome) -> str:
    if not outcome.items:
        return NO_RESULTS_TEXT

    email_list = "\n".join(
        _format_entry(i, email) for i, email in enumerate(outcome.items, start=1)
    )
    additional_info = ""
    if outcome.strategy is not None:
        additional_info = f"\n(Search used {outcome.strategy.value} strategy)"

    return (
        f"Found {len(outcome.items)} emails matching your search criteria:"
        f"{additional_info}\n\n{email_list}"
    )
