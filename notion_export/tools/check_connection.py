"""
MCP Tool - test_connection

Check that the configured Notion API key works.
"""

from fastmcp import FastMCP

from notion_export.services import SearchService

router = FastMCP("test_connection")


@router.tool()
async def test_connection() -> dict:
    """
    Check the Notion API connection.

    Returns:
        ``{"success": True}``, or ``success`` False with an ``error`` message
    """
    service = SearchService()

    try:
        return await service.test_connection()
    finally:
        await service.aclose()
