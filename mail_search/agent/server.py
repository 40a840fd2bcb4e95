"""MCP server exposing the search-emails tool over stdio."""

import asyncio
import logging
import sys
from typing import Any

from dotenv import load_dotenv
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from mail_search.graph.auth import TokenFileCredentials
from mail_search.graph.client import graph_client
from mail_search.graph.config import GraphConfig
from mail_search.graph.folders import GraphFolderResolver
from mail_search.search.handler import ToolResponse, handle_search_emails, text_response

logger = logging.getLogger(__name__)

SEARCH_TOOL_NAME = "search-emails"

SEARCH_TOOL = Tool(
    name=SEARCH_TOOL_NAME,
    description="Search for emails using various criteria",
    inputSchema={
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "Search query text to find in email subject/body",
            },
            "folder": {
                "type": "string",
                "description": "Email folder to search in (default: 'inbox')",
            },
            "from": {
                "type": "string",
                "description": "Filter by sender email address or name",
            },
            "to": {
                "type": "string",
                "description": "Filter by recipient email address or name",
            },
            "subject": {
                "type": "string",
                "description": "Filter by email subject",
            },
            "hasAttachments": {
                "type": "boolean",
                "description": "Filter to only emails with attachments",
            },
            "unreadOnly": {
                "type": "boolean",
                "description": "Filter to only unread emails",
            },
            "count": {
                "type": "number",
                "description": "Number of results to return (default: 10, max: 50)",
            },
        },
        "required": [],
    },
)

server: Server = Server("outlook-mail-search")


async def run_search(arguments: dict[str, Any] | None, config: GraphConfig | None = None) -> ToolResponse:
    """Wire the Graph collaborators for one request and run the handler."""
    cfg = config or GraphConfig.from_env()
    async with graph_client(cfg) as graph:
        return await handle_search_emails(
            arguments,
            credentials=TokenFileCredentials(cfg.token_path),
            folders=GraphFolderResolver(graph),
            fetch=graph.call_paginated,
            config=cfg,
        )


@server.list_tools()
async def list_tools() -> list[Tool]:
    return [SEARCH_TOOL]


@server.call_tool()
async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
    """Dispatch a tool call; unknown tools get a text error like every other failure."""
    if name != SEARCH_TOOL_NAME:
        logger.warning("Unknown tool requested: %s", name)
        response = text_response(f"Unknown tool: {name}")
    else:
        response = await run_search(arguments)
    return [TextContent(type="text", text=block["text"]) for block in response["content"]]


async def serve_stdio() -> None:
    """Run the server until the client closes the stdio streams."""
    async with stdio_server() as (read, write):
        await server.run(read, write, server.create_initialization_options())


def main() -> None:
    """Start the MCP server.  Called by the ``mail-search-mcp`` entry point."""
    load_dotenv()

    # stdout carries the JSON-RPC stream; diagnostics must go to stderr.
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
    logger.info("Starting outlook-mail-search MCP server on stdio")
    try:
        asyncio.run(serve_stdio())
    except KeyboardInterrupt:
        logger.info("Interrupted — goodbye")
