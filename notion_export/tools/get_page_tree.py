"""
MCP Tool - get_page_tree

Get page hierarchy tree.
"""

from fastmcp import FastMCP

from notion_export.services import SearchService

router = FastMCP("get_page_tree")


@router.tool()
async def get_page_tree(
    page_id: str,
    max_depth: int = 2,
) -> dict:
    """
    Get the page hierarchy tree starting from a page.

    Shows the structure of sub-pages that an export would include.

    Args:
        page_id: Root page ID to start tree from
        max_depth: Maximum depth to traverse (1-3, default 2)

    Returns:
        Tree structure with page titles and URLs
    """
    service = SearchService()

    try:
        tree = await service.get_page_tree(
            page_id=page_id,
            max_depth=max(1, min(max_depth, 3)),
        )
    finally:
        await service.aclose()

    return tree.model_dump()
