"""CLI entry point for the Outlook mail search tool."""

import logging

import click
from dotenv import load_dotenv

from mail_search.graph.config import GraphConfig

logger = logging.getLogger(__name__)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Show search strategy diagnostics.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Outlook mail search — one-off searches and the MCP server."""
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,  # keep CLI output clean
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    )
    ctx.obj = GraphConfig.from_env()


# Import and register commands after cli is defined to avoid circular imports.
from mail_search.cli.commands import search, serve  # noqa: E402

cli.add_command(search)
cli.add_command(serve)
