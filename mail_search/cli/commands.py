"""CLI command implementations."""

from __future__ import annotations

import asyncio
import logging

import click
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from mail_search.graph.config import GraphConfig

logger = logging.getLogger(__name__)
console = Console(width=200)


@click.command()
@click.option("--folder", default="inbox", show_default=True, help="Folder to search.")
@click.option(
    "--count", type=int, default=None, help="Number of results [default: SEARCH_DEFAULT_COUNT or 10]."
)
@click.option("--query", "-q", default="", help="Free-text search across subject and body.")
@click.option("--from", "from_", default="", help="Sender name or address.")
@click.option("--to", default="", help="Recipient name or address.")
@click.option("--subject", default="", help="Subject text.")
@click.option("--has-attachments", is_flag=True, help="Only emails with attachments.")
@click.option("--unread-only", is_flag=True, help="Only unread emails.")
@click.pass_obj
def search(
    config: GraphConfig,
    folder: str,
    count: int | None,
    query: str,
    from_: str,
    to: str,
    subject: str,
    has_attachments: bool,
    unread_only: bool,
) -> None:
    """Search a mailbox folder, falling back to simpler queries on errors."""
    from mail_search.agent.server import run_search

    arguments = {
        "folder": folder,
        "count": count,
        "query": query,
        "from": from_,
        "to": to,
        "subject": subject,
        "hasAttachments": has_attachments,
        "unreadOnly": unread_only,
    }
    response = asyncio.run(run_search(arguments, config))
    text = response["content"][0]["text"]
    console.print(Panel(Text(text), title=f"[bold]{folder}[/bold]", border_style="blue"))


@click.command()
def serve() -> None:
    """Run the search-emails MCP server on stdio."""
    from mail_search.agent.server import serve_stdio

    logger.info("Serving search-emails over stdio")
    asyncio.run(serve_stdio())
