"""
Services - Search Service

Page search and tree browsing for picking export targets.
"""

import asyncio
import logging
from typing import Optional, List

from notion_export.config import get_settings
from notion_export.exceptions import ConfigurationError, UnauthorizedError
from notion_export.pipeline.gateway import NotionGateway
from notion_export.pipeline.resolver import ContentTreeResolver, PageNode
from notion_export.pipeline.titles import extract_title
from notion_export.schemas.page import PageSummary, ChildPageSummary, PageTreeNode


class SearchService:
    """Searches and browses pages shared with the integration."""

    def __init__(
        self,
        settings=None,
        gateway=None,
        logger: Optional[logging.Logger] = None,
    ):
        self.settings = settings or get_settings()
        self.logger = logger or logging.getLogger(__name__)
        self._gateway = gateway

    @property
    def gateway(self):
        if self._gateway is None:
            self._gateway = NotionGateway(self.settings, logger=self.logger)
        return self._gateway

    @property
    def resolver(self) -> ContentTreeResolver:
        return ContentTreeResolver(self.gateway, logger=self.logger)

    async def aclose(self) -> None:
        if self._gateway is not None:
            await self._gateway.aclose()

    async def search(self, query: str, limit: int = 50) -> List[PageSummary]:
        """
        Search pages by title.

        Args:
            query: Search text
            limit: Maximum results (1-100)

        Returns:
            Matching pages with titles from the shared title rule
        """
        pages = await self.gateway.search(query, limit=limit)
        return [
            PageSummary(
                id=page["id"],
                title=extract_title(page),
                url=page.get("url") or "",
                parent=page.get("parent"),
                created_time=page.get("created_time", ""),
                last_edited_time=page.get("last_edited_time", ""),
            )
            for page in pages
        ]

    async def get_page_children(self, page_id: str) -> List[ChildPageSummary]:
        """Direct child pages, each flagged with whether it has children itself."""
        child_ids = await self.resolver.list_child_pages(page_id)
        children = await asyncio.gather(*(self._child_summary(cid) for cid in child_ids))
        return [child for child in children if child is not None]

    async def _child_summary(self, page_id: str) -> Optional[ChildPageSummary]:
        try:
            page = await self.gateway.get_page(page_id)
            listing = await self.gateway.list_child_pages(page_id)
        except Exception as e:
            self.logger.warning(f"Failed to get child page {page_id}: {e}")
            return None

        return ChildPageSummary(
            id=page.get("id", page_id),
            title=extract_title(page),
            url=page.get("url") or "",
            has_children=bool(listing.ids or listing.next_cursor),
        )

    async def get_page_tree(self, page_id: str, max_depth: int = 2) -> PageTreeNode:
        """Page hierarchy down to ``max_depth`` levels of children."""
        tree = await self.resolver.resolve(page_id, max_depth=max_depth, with_body=False)

        def map_node(node: PageNode) -> PageTreeNode:
            return PageTreeNode(
                id=node.id,
                title=node.title,
                url=node.url,
                children=[map_node(child) for child in node.children],
            )

        return map_node(tree)

    async def test_connection(self) -> dict:
        """Check that the API key is accepted."""
        try:
            await self.gateway.request("GET", "users/me")
        except ConfigurationError:
            return {"success": False, "error": "No API key configured"}
        except UnauthorizedError:
            self.logger.error("API connection test failed: Invalid credentials")
            return {"success": False, "error": "Invalid API key or insufficient permissions"}
        except Exception as e:
            self.logger.error(f"API connection test failed: {e}")
            return {"success": False, "error": str(e)}

        self.logger.info("API connection test successful")
        return {"success": True}
