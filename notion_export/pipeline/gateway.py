"""
Pipeline - Notion Gateway

Paginated, rate-limited access to Notion pages, page bodies and children.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

import httpx

from notion_export.config import get_settings
from notion_export.exceptions import (
    ConfigurationError,
    GatewayError,
    PageNotFoundError,
    UnauthorizedError,
)
from notion_export.pipeline.rich_text import BlockMarkdownConverter

PAGE_SIZE = 100

# Nested pages and databases are resolved as tree children, not as body content.
NON_BODY_CHILD_TYPES = {"child_page", "child_database"}


@dataclass
class ChildListing:
    """One page of child ids plus the cursor for the next page, if any."""
    ids: List[str] = field(default_factory=list)
    next_cursor: Optional[str] = None


class NotionGateway:
    """Async client for the Notion REST API."""

    def __init__(
        self,
        settings=None,
        client: Optional[httpx.AsyncClient] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.settings = settings or get_settings()
        self.logger = logger or logging.getLogger(__name__)

        notion = self.settings.notion
        if not notion.api_key:
            raise ConfigurationError(
                "Notion API key is required. Set NOTION_API_KEY or pass --api-key."
            )

        self.base_url = notion.base_url.rstrip("/")
        self.max_retries = notion.max_retries
        self.retry_backoff = notion.retry_backoff
        self.converter = BlockMarkdownConverter()

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=notion.timeout_seconds,
        )
        self._headers = {
            "Authorization": f"Bearer {notion.api_key}",
            "Notion-Version": notion.api_version,
            "Content-Type": "application/json",
        }
        self._semaphore = asyncio.Semaphore(notion.concurrency)
        self._rate_limit_event = asyncio.Event()
        self._rate_limit_event.set()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this gateway created it."""
        if self._owns_client:
            await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Perform one API call with rate-limit handling.

        A 429 response blocks every request on this gateway until the
        ``Retry-After`` delay has passed.

        Args:
            method: HTTP method
            path: Path relative to the API base URL
            params: Query parameters
            json: JSON request body

        Returns:
            Decoded JSON response
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        attempt = 0

        while attempt <= self.max_retries:
            await self._rate_limit_event.wait()
            async with self._semaphore:
                try:
                    response = await self._client.request(
                        method, url, params=params, json=json, headers=self._headers
                    )
                except httpx.TransportError as e:
                    wait_time = self.retry_backoff * (2 ** attempt)
                    self.logger.warning(
                        f"Request to {path} failed ({e!r}), retrying in {wait_time}s"
                    )
                    attempt += 1
                    await asyncio.sleep(wait_time)
                    continue

            if response.status_code == 429:
                self._rate_limit_event.clear()
                retry_after = response.headers.get("Retry-After")
                try:
                    wait_time = float(retry_after)
                except (TypeError, ValueError):
                    wait_time = self.retry_backoff * (2 ** attempt)
                self.logger.warning(f"Rate limit exceeded. Waiting for {wait_time} seconds.")
                await asyncio.sleep(wait_time)
                self._rate_limit_event.set()
                attempt += 1
                continue

            if response.status_code in (401, 403):
                raise UnauthorizedError(
                    f"Unauthorized request to {path}: {self._error_message(response)}",
                    status_code=response.status_code,
                )
            if response.status_code == 404:
                raise PageNotFoundError(
                    f"Not found: {path}", status_code=response.status_code
                )
            if response.is_error:
                raise GatewayError(
                    f"Notion API error {response.status_code} for {path}: "
                    f"{self._error_message(response)}",
                    status_code=response.status_code,
                )
            return response.json()

        raise GatewayError(f"Failed to request {path} after {self.max_retries} retries")

    def _error_message(self, response: httpx.Response) -> str:
        try:
            return response.json().get("message", response.text)
        except ValueError:
            return response.text

    async def get_page(self, page_id: str) -> Dict[str, Any]:
        """Retrieve a page object (properties, url, timestamps, parent)."""
        return await self.request("GET", f"pages/{page_id}")

    async def get_database(self, database_id: str) -> Dict[str, Any]:
        """Retrieve a database object (title, properties schema, url)."""
        return await self.request("GET", f"databases/{database_id}")

    async def list_block_children(
        self,
        block_id: str,
        cursor: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Fetch one page of a block's children."""
        params = {"page_size": PAGE_SIZE}
        if cursor:
            params["start_cursor"] = cursor
        return await self.request("GET", f"blocks/{block_id}/children", params=params)

    async def list_child_pages(
        self,
        page_id: str,
        cursor: Optional[str] = None,
    ) -> ChildListing:
        """Fetch one page of children, keeping only nested pages."""
        data = await self.list_block_children(page_id, cursor)
        return ChildListing(
            ids=[block["id"] for block in data.get("results", []) if block.get("type") == "child_page"],
            next_cursor=data.get("next_cursor") if data.get("has_more", True) else None,
        )

    async def list_collection_members(
        self,
        collection_id: str,
        cursor: Optional[str] = None,
    ) -> ChildListing:
        """Fetch one page of database members."""
        payload: Dict[str, Any] = {"page_size": PAGE_SIZE}
        if cursor:
            payload["start_cursor"] = cursor
        data = await self.request("POST", f"databases/{collection_id}/query", json=payload)
        return ChildListing(
            ids=[page["id"] for page in data.get("results", [])],
            next_cursor=data.get("next_cursor") if data.get("has_more", True) else None,
        )

    async def get_block_tree(self, block_id: str) -> List[Dict[str, Any]]:
        """
        Fetch all children of a block, attaching nested children under ``children``.

        Nested pages and databases are not descended into.
        """
        blocks: List[Dict[str, Any]] = []
        cursor = None
        while True:
            data = await self.list_block_children(block_id, cursor)
            blocks.extend(data.get("results", []))
            cursor = data.get("next_cursor") if data.get("has_more", True) else None
            if not cursor:
                break

        nested = [
            block for block in blocks
            if block.get("has_children") and block.get("type") not in NON_BODY_CHILD_TYPES
        ]
        if nested:
            subtrees = await asyncio.gather(*(self.get_block_tree(block["id"]) for block in nested))
            for block, children in zip(nested, subtrees):
                block["children"] = children

        return blocks

    async def get_page_body(self, page_id: str) -> str:
        """Fetch a page's content blocks and normalize them to Markdown."""
        blocks = await self.get_block_tree(page_id)
        return self.converter.blocks_to_markdown(blocks)

    async def search(self, query: str, limit: int = 50) -> List[Dict[str, Any]]:
        """Search pages shared with the integration by title."""
        payload = {
            "query": query,
            "filter": {"property": "object", "value": "page"},
            "page_size": min(limit, PAGE_SIZE),
        }
        data = await self.request("POST", "search", json=payload)
        return data.get("results", [])
