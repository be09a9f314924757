"""
Renderers - Base Renderer

Abstract base class for document renderers.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Any, List

from notion_export.pipeline.transformer import DocumentBlock


class BaseDocumentRenderer(ABC):
    """Base class for output format implementations."""

    extension: str = ""

    @abstractmethod
    def render(
        self,
        title: str,
        blocks: List[DocumentBlock],
        metadata: Dict[str, Any],
    ) -> bytes:
        """
        Render one page.

        Args:
            title: Page title
            blocks: Transformed page body
            metadata: Page metadata (id, url, created_time, last_edited_time)

        Returns:
            File content of the rendered document
        """
        pass

    def metadata_lines(self, metadata: Dict[str, Any]) -> List[str]:
        """Header lines shown above the page content."""
        return [
            f"Page ID: {metadata.get('id', '')}",
            f"Created: {format_timestamp(metadata.get('created_time'))}",
            f"Last Modified: {format_timestamp(metadata.get('last_edited_time'))}",
        ]


def format_timestamp(value) -> str:
    """Render an ISO 8601 timestamp for display; unparseable values pass through."""
    if not value:
        return ""
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return str(value)
    return parsed.strftime("%Y-%m-%d %H:%M:%S %Z").strip()
