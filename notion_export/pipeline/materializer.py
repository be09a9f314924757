"""
Pipeline - Folder Materializer

Writes a resolved page tree to disk as page directories holding
``content.md`` and ``metadata.json``.
"""

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Set

from notion_export.pipeline.resolver import PageNode

CONTENT_FILENAME = "content.md"
METADATA_FILENAME = "metadata.json"
MAX_NAME_LENGTH = 100

_RESERVED_CHARS = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE = re.compile(r"\s+")


class Layout(str, Enum):
    HIERARCHICAL = "hierarchical"
    FLAT = "flat"


def sanitize_filename(name: str) -> str:
    """
    Make a title safe to use as one path segment.

    Reserved characters become ``_``, whitespace runs collapse to one space,
    and the result is trimmed and cut to 100 characters.
    """
    name = _RESERVED_CHARS.sub("_", name)
    name = _WHITESPACE.sub(" ", name).strip()
    return name[:MAX_NAME_LENGTH].rstrip()


def _usable(name: str) -> bool:
    # "", "." and ".." do not name a new directory
    return bool(name.strip("."))


def directory_name(node: PageNode) -> str:
    """
    Directory name for a page.

    Titles that sanitize to nothing or to dots only fall back to the page id,
    and to ``_`` when the id is unusable too.
    """
    for candidate in (sanitize_filename(node.title), sanitize_filename(node.id)):
        if _usable(candidate):
            return candidate
    return "_"


def child_directory(parent_dir: Path, node: PageNode) -> Path:
    """Directory for ``node`` directly inside ``parent_dir``; raises ValueError if it would escape."""
    page_dir = parent_dir / directory_name(node)
    if page_dir.resolve().parent != parent_dir.resolve():
        raise ValueError(f"Directory for page {node.id} escapes {parent_dir}: {page_dir}")
    return page_dir


@dataclass
class MaterializedPage:
    """Where one page was written, or why it could not be."""
    node: PageNode
    directory: Path
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class FolderMaterializer:
    """Creates one directory per page under an output root."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def materialize(
        self,
        tree: PageNode,
        output_root: Path,
        layout: Layout = Layout.HIERARCHICAL,
    ) -> List[MaterializedPage]:
        """
        Write every page of the tree.

        A page whose directory cannot be written is reported with its error;
        in the hierarchical layout its sub-pages are skipped, every other page
        is still written.

        Args:
            tree: Resolved root page
            output_root: Destination directory
            layout: Nested directories, or every page directly under the root

        Returns:
            One entry per attempted page in depth-first order (root first). A
            directory that appears more than once is a sibling name collision.
        """
        output_root = Path(output_root)
        pages: List[MaterializedPage] = []
        seen: Set[Path] = set()

        if layout == Layout.FLAT:
            for node in tree.walk():
                self._write(node, output_root, pages, seen)
        else:
            self._write_nested(tree, output_root, pages, seen)

        return pages

    def _write_nested(
        self,
        node: PageNode,
        parent_dir: Path,
        pages: List[MaterializedPage],
        seen: Set[Path],
    ) -> None:
        page = self._write(node, parent_dir, pages, seen)
        if not page.ok:
            return
        for child in node.children:
            self._write_nested(child, page.directory, pages, seen)

    def _write(
        self,
        node: PageNode,
        parent_dir: Path,
        pages: List[MaterializedPage],
        seen: Set[Path],
    ) -> MaterializedPage:
        page = MaterializedPage(node=node, directory=parent_dir / directory_name(node))
        try:
            page.directory = child_directory(parent_dir, node)
            if page.directory in seen:
                self.logger.warning(
                    f"Name collision: page {node.id} ('{node.title}') writes into existing directory {page.directory}"
                )
            self.write_page(node, page.directory)
            seen.add(page.directory)
        except (OSError, ValueError) as e:
            page.error = f"Failed to write page {node.id}: {e}"
            self.logger.warning(page.error)

        pages.append(page)
        return page

    def write_page(self, node: PageNode, page_dir: Path) -> None:
        """Write body and metadata artifacts for one page."""
        self.write_body(node, page_dir)
        metadata = json.dumps(node.metadata(), indent=2, ensure_ascii=False)
        (page_dir / METADATA_FILENAME).write_text(metadata, encoding="utf-8")

    def write_body(self, node: PageNode, page_dir: Path) -> Path:
        """Write only the Markdown body, creating the directory if needed."""
        page_dir.mkdir(parents=True, exist_ok=True)
        path = page_dir / CONTENT_FILENAME
        path.write_text(node.body or "", encoding="utf-8")
        return path
