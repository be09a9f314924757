"""
MCP Tool - get_page_children

List the direct child pages of a page.
"""

from fastmcp import FastMCP

from notion_export.services import SearchService

router = FastMCP("get_page_children")


@router.tool()
async def get_page_children(page_id: str) -> dict:
    """
    List the direct child pages of a Notion page.

    Args:
        page_id: Parent page ID

    Returns:
        Children with id, title, URL and whether they have children themselves
    """
    service = SearchService()

    try:
        children = await service.get_page_children(page_id)
    finally:
        await service.aclose()

    return {
        "page_id": page_id,
        "children": [child.model_dump() for child in children],
    }
