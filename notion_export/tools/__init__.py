"""
Tools Module - MCP Tool Implementations

MCP tools for browsing and exporting Notion content.
"""

from notion_export.tools import search_pages
from notion_export.tools import get_page_children
from notion_export.tools import get_page_tree
from notion_export.tools import export_pages
from notion_export.tools import export_collection
from notion_export.tools import check_connection

__all__ = [
    "search_pages",
    "get_page_children",
    "get_page_tree",
    "export_pages",
    "export_collection",
    "check_connection",
]
