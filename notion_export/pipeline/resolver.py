"""
Pipeline - Content Tree Resolver

Recursively builds an in-memory page tree from a root page or database.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Iterator, Tuple, Callable, Awaitable

from notion_export.pipeline.gateway import ChildListing
from notion_export.pipeline.titles import extract_title


@dataclass(frozen=True)
class ParentRef:
    """Reference to the containing page, database or workspace."""
    type: str
    id: Optional[str] = None

    @classmethod
    def from_api(cls, parent: Optional[Dict[str, Any]]) -> Optional["ParentRef"]:
        if not parent or "type" not in parent:
            return None
        parent_type = parent["type"]
        parent_id = parent.get(parent_type)
        return cls(type=parent_type, id=parent_id if isinstance(parent_id, str) else None)


@dataclass
class PageNode:
    """One exportable page and its exclusively owned sub-pages."""
    id: str
    title: str
    url: str
    created_time: str
    last_edited_time: str
    parent: Optional[ParentRef]
    properties: Dict[str, Any]
    body: str
    children: List["PageNode"] = field(default_factory=list)

    def walk(self) -> Iterator["PageNode"]:
        """Yield this node and all descendants, depth-first, parents first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def count(self) -> int:
        return sum(1 for _ in self.walk())

    def metadata(self) -> Dict[str, Any]:
        """Metadata persisted next to the page body."""
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "created_time": self.created_time,
            "last_edited_time": self.last_edited_time,
            "properties": self.properties,
        }


class ContentTreeResolver:
    """Resolves page trees through a gateway, tolerating failed subtrees."""

    def __init__(self, gateway, logger: Optional[logging.Logger] = None):
        self.gateway = gateway
        self.logger = logger or logging.getLogger(__name__)

    async def fetch_page(self, page_id: str, with_body: bool = True) -> PageNode:
        """
        Fetch a single page with its Markdown body and no children.

        A failed body fetch leaves the body empty; a failed page fetch raises.
        With ``with_body=False`` only page metadata is requested.
        """
        page = await self.gateway.get_page(page_id)

        body = ""
        if with_body:
            try:
                body = await self.gateway.get_page_body(page_id)
            except Exception as e:
                self.logger.warning(f"Failed to get content for page {page_id}: {e}")

        return PageNode(
            id=page.get("id", page_id),
            title=extract_title(page),
            url=page.get("url") or "",
            created_time=page.get("created_time", ""),
            last_edited_time=page.get("last_edited_time", ""),
            parent=ParentRef.from_api(page.get("parent")),
            properties=page.get("properties") or {},
            body=body,
        )

    async def fetch_collection(self, collection_id: str) -> PageNode:
        """Fetch a database as a body-less node; its members become children."""
        database = await self.gateway.get_database(collection_id)
        title = "".join(item.get("plain_text", "") for item in database.get("title") or [])

        return PageNode(
            id=database.get("id", collection_id),
            title=title or extract_title(database),
            url=database.get("url") or "",
            created_time=database.get("created_time", ""),
            last_edited_time=database.get("last_edited_time", ""),
            parent=ParentRef.from_api(database.get("parent")),
            properties=database.get("properties") or {},
            body="",
        )

    async def list_child_pages(self, page_id: str) -> List[str]:
        """All nested page ids of a page, across every listing page."""
        return await self._collect(self.gateway.list_child_pages, page_id)

    async def list_collection_members(self, collection_id: str) -> List[str]:
        """All member page ids of a database, across every listing page."""
        return await self._collect(self.gateway.list_collection_members, collection_id)

    async def _collect(
        self,
        list_page: Callable[[str, Optional[str]], Awaitable[ChildListing]],
        parent_id: str,
    ) -> List[str]:
        ids: List[str] = []
        cursor = None
        while True:
            listing = await list_page(parent_id, cursor)
            ids.extend(listing.ids)
            cursor = listing.next_cursor
            if not cursor:
                return ids

    async def resolve(
        self,
        root_id: str,
        is_collection: bool = False,
        max_depth: Optional[int] = None,
        with_body: bool = True,
    ) -> PageNode:
        """
        Resolve a page (or database) and its descendants.

        Args:
            root_id: Page or database ID
            is_collection: Enumerate database members as the root's children
            max_depth: Levels of children to resolve (None = unbounded, 0 = root only)
            with_body: Fetch page bodies; browsing only needs titles

        Returns:
            Root PageNode with children in discovery order
        """
        if is_collection:
            root = await self.fetch_collection(root_id)
        else:
            root = await self.fetch_page(root_id, with_body=with_body)
        if max_depth is not None and max_depth <= 0:
            return root

        if is_collection:
            child_ids = await self.list_collection_members(root_id)
        else:
            child_ids = await self.list_child_pages(root_id)

        child_depth = None if max_depth is None else max_depth - 1
        settled = await asyncio.gather(*(
            self._resolve_child(index, child_id, child_depth, with_body)
            for index, child_id in enumerate(child_ids)
        ))

        for _, child in sorted(settled, key=lambda item: item[0]):
            if child is not None:
                root.children.append(child)

        return root

    async def _resolve_child(
        self,
        index: int,
        child_id: str,
        max_depth: Optional[int],
        with_body: bool,
    ) -> Tuple[int, Optional[PageNode]]:
        try:
            return index, await self.resolve(
                child_id, is_collection=False, max_depth=max_depth, with_body=with_body
            )
        except Exception as e:
            self.logger.warning(f"Failed to process child page {child_id}: {e}")
            return index, None
