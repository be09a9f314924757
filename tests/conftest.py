"""
Shared test fixtures: settings and an in-memory Notion gateway.
"""

import asyncio
from typing import Dict, List, Optional, Iterable

import pytest

from notion_export.config import Settings, NotionSettings
from notion_export.exceptions import GatewayError, PageNotFoundError
from notion_export.pipeline.gateway import ChildListing


def make_page(page_id: str, title: Optional[str] = None, **extra) -> dict:
    """Raw Notion page object with a title property."""
    properties = {}
    if title is not None:
        properties["Name"] = {
            "id": "title",
            "type": "title",
            "title": [{"type": "text", "plain_text": title}],
        }
    page = {
        "object": "page",
        "id": page_id,
        "url": f"https://www.notion.so/{page_id}",
        "created_time": "2024-01-01T10:00:00.000Z",
        "last_edited_time": "2024-02-01T12:30:00.000Z",
        "parent": {"type": "workspace", "workspace": True},
        "properties": properties,
    }
    page.update(extra)
    return page


class FakeGateway:
    """Gateway double backed by dictionaries. Listings are split into pages of ``page_size``."""

    def __init__(
        self,
        pages: Dict[str, dict],
        children: Optional[Dict[str, List[str]]] = None,
        members: Optional[Dict[str, List[str]]] = None,
        bodies: Optional[Dict[str, str]] = None,
        databases: Optional[Dict[str, dict]] = None,
        failing: Iterable[str] = (),
        failing_bodies: Iterable[str] = (),
        delays: Optional[Dict[str, float]] = None,
        page_size: int = 2,
    ):
        self.pages = pages
        self.children = children or {}
        self.members = members or {}
        self.bodies = bodies or {}
        self.databases = databases or {}
        self.failing = set(failing)
        self.failing_bodies = set(failing_bodies)
        self.delays = delays or {}
        self.page_size = page_size
        self.listing_calls: List[tuple] = []
        self.body_calls: List[str] = []
        self.closed = False

    async def get_page(self, page_id: str) -> dict:
        await asyncio.sleep(self.delays.get(page_id, 0))
        if page_id in self.failing:
            raise GatewayError(f"boom {page_id}", status_code=500)
        if page_id not in self.pages:
            raise PageNotFoundError(f"Not found: pages/{page_id}", status_code=404)
        return self.pages[page_id]

    async def get_database(self, database_id: str) -> dict:
        if database_id not in self.databases:
            raise PageNotFoundError(f"Not found: databases/{database_id}", status_code=404)
        return self.databases[database_id]

    async def get_page_body(self, page_id: str) -> str:
        self.body_calls.append(page_id)
        if page_id in self.failing_bodies:
            raise GatewayError(f"body failed {page_id}")
        return self.bodies.get(page_id, "")

    def _listing(self, ids: List[str], cursor: Optional[str]) -> ChildListing:
        start = int(cursor) if cursor else 0
        end = start + self.page_size
        return ChildListing(
            ids=ids[start:end],
            next_cursor=str(end) if end < len(ids) else None,
        )

    async def list_child_pages(self, page_id: str, cursor: Optional[str] = None) -> ChildListing:
        self.listing_calls.append(("children", page_id, cursor))
        return self._listing(self.children.get(page_id, []), cursor)

    async def list_collection_members(self, collection_id: str, cursor: Optional[str] = None) -> ChildListing:
        self.listing_calls.append(("members", collection_id, cursor))
        if collection_id not in self.members:
            raise PageNotFoundError(f"Not found: databases/{collection_id}", status_code=404)
        return self._listing(self.members[collection_id], cursor)

    async def search(self, query: str, limit: int = 50) -> List[dict]:
        return [page for page in self.pages.values() if query.lower() in str(page).lower()][:limit]

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def settings() -> Settings:
    return Settings(
        notion=NotionSettings(
            NOTION_API_KEY="secret-test-key",
            NOTION_RETRY_BACKOFF_SECONDS=0,
            NOTION_MAX_RETRIES=2,
        )
    )


@pytest.fixture
def settings_without_key() -> Settings:
    return Settings(notion=NotionSettings(NOTION_API_KEY=None))


@pytest.fixture
def three_level_gateway() -> FakeGateway:
    """root → child → grandchild."""
    return FakeGateway(
        pages={
            "root": make_page("root", "Root Page"),
            "child": make_page("child", "Child Page"),
            "grandchild": make_page("grandchild", "Grandchild Page"),
        },
        children={"root": ["child"], "child": ["grandchild"]},
        bodies={
            "root": "# Root\n\nHello **world**",
            "child": "Child body",
            "grandchild": "- one\n- two",
        },
    )
