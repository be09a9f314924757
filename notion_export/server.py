"""
Notion Export MCP Server - Main Entry Point

FastMCP server with STDIO and SSE transport support.
"""

import argparse
from fastmcp import FastMCP

from notion_export.config import get_settings, configure_logging

# Import tools (registered with decorators)
from notion_export.tools import (
    search_pages,
    get_page_children,
    get_page_tree,
    export_pages,
    export_collection,
    check_connection,
)


def create_app() -> FastMCP:
    """Create and configure the MCP application."""
    mcp = FastMCP(
        name="notion-export",
        instructions="Browse Notion pages and export them to folders with PDF and DOCX files",
    )

    # Register all tools
    mcp.mount(search_pages.router)
    mcp.mount(get_page_children.router)
    mcp.mount(get_page_tree.router)
    mcp.mount(export_pages.router)
    mcp.mount(export_collection.router)
    mcp.mount(check_connection.router)

    return mcp


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Notion Export MCP Server")
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse"],
        default=None,
        help="Transport protocol (default: from env)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for SSE transport (default: from env)"
    )
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings)
    transport = args.transport or settings.mcp.transport
    port = args.port or settings.mcp.port

    mcp = create_app()

    if transport == "stdio":
        mcp.run(transport="stdio")
    else:
        mcp.run(transport="sse", host=settings.mcp.host, port=port)


if __name__ == "__main__":
    main()
