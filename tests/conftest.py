"""Shared pytest fixtures."""

from typing import Any
from unittest.mock import AsyncMock

import pytest


class RecordingSink:
    """DiagnosticSink that keeps every message for assertions."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def write(self, message: str) -> None:
        self.messages.append(message)


def graph_message(
    msg_id: str = "msg_001",
    *,
    subject: str = "Q2 invoice",
    name: str | None = "Alice Example",
    address: str | None = "alice@example.com",
    received: str = "2026-02-27T09:00:00Z",
    is_read: bool = False,
) -> dict[str, Any]:
    """A Graph message resource as returned with the default $select."""
    message: dict[str, Any] = {
        "id": msg_id,
        "subject": subject,
        "receivedDateTime": received,
        "isRead": is_read,
        "hasAttachments": False,
    }
    if name is not None or address is not None:
        message["from"] = {"emailAddress": {"name": name, "address": address}}
    return message


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def fetch() -> AsyncMock:
    """Paginated fetch that returns an empty page unless a test says otherwise."""
    return AsyncMock(return_value={"value": []})


@pytest.fixture
def sample_message() -> dict[str, Any]:
    return graph_message()
