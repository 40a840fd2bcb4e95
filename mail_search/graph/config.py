"""Process-wide Microsoft Graph settings, read once from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_API_ENDPOINT = "https://graph.microsoft.com/v1.0/"
DEFAULT_SELECT_FIELDS = (
    "id,subject,from,toRecipients,ccRecipients,receivedDateTime,"
    "bodyPreview,hasAttachments,importance,isRead"
)
# Graph caps $top on the messages endpoint; larger requests are paginated.
DEFAULT_MAX_PAGE_SIZE = 50
DEFAULT_COUNT = 10
DEFAULT_ORDERBY = "receivedDateTime desc"


def _positive_int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        value = 0
    if value < 1:
        logger.warning("Invalid %s %r; defaulting to %d", name, raw, default)
        return default
    return value


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid %s %r; defaulting to %.1f", name, raw, default)
        return default


@dataclass(frozen=True)
class GraphConfig:
    """Read-only configuration shared by the Graph client and the search builders."""

    api_endpoint: str = DEFAULT_API_ENDPOINT
    token_path: Path = field(default_factory=lambda: Path.home() / ".outlook-mcp-tokens.json")
    select_fields: str = DEFAULT_SELECT_FIELDS
    max_page_size: int = DEFAULT_MAX_PAGE_SIZE
    default_count: int = DEFAULT_COUNT
    request_timeout: float = 30.0

    @classmethod
    def from_env(cls) -> GraphConfig:
        """Build GraphConfig from environment variables."""
        endpoint = os.environ.get("GRAPH_API_ENDPOINT", DEFAULT_API_ENDPOINT)
        if not endpoint.endswith("/"):
            endpoint += "/"
        token_path = os.environ.get("OUTLOOK_TOKEN_PATH")
        return cls(
            api_endpoint=endpoint,
            token_path=(
                Path(token_path).expanduser()
                if token_path
                else Path.home() / ".outlook-mcp-tokens.json"
            ),
            select_fields=os.environ.get("EMAIL_SELECT_FIELDS", DEFAULT_SELECT_FIELDS),
            max_page_size=_positive_int_env("GRAPH_MAX_PAGE_SIZE", DEFAULT_MAX_PAGE_SIZE),
            default_count=_positive_int_env("SEARCH_DEFAULT_COUNT", DEFAULT_COUNT),
            request_timeout=_float_env("GRAPH_REQUEST_TIMEOUT", 30.0),
        )
