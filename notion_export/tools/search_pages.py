"""
MCP Tool - search_pages

Search Notion pages by title.
"""

from fastmcp import FastMCP

from notion_export.services import SearchService

router = FastMCP("search_pages")


@router.tool()
async def search_pages(
    query: str,
    limit: int = 50,
) -> dict:
    """
    Search Notion pages shared with the integration.

    Args:
        query: Text to match against page titles
        limit: Maximum results (1-100, default 50)

    Returns:
        Matching pages with id, title, URL and timestamps
    """
    service = SearchService()

    try:
        pages = await service.search(query=query, limit=max(1, min(limit, 100)))
    finally:
        await service.aclose()

    return {
        "results": [page.model_dump() for page in pages],
        "count": len(pages),
        "query": query,
    }
