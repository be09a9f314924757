"""
Pipeline Module - Export Pipeline

Handles the flow from Notion to the local file system:
Gateway → Resolve → Transform → Materialize
"""

from notion_export.pipeline.gateway import NotionGateway, ChildListing
from notion_export.pipeline.rich_text import BlockMarkdownConverter
from notion_export.pipeline.titles import extract_title
from notion_export.pipeline.resolver import ContentTreeResolver, PageNode, ParentRef
from notion_export.pipeline.transformer import MarkdownTransformer, RegexInlineParser
from notion_export.pipeline.materializer import FolderMaterializer, Layout, MaterializedPage, sanitize_filename

__all__ = [
    "NotionGateway",
    "ChildListing",
    "BlockMarkdownConverter",
    "extract_title",
    "ContentTreeResolver",
    "PageNode",
    "ParentRef",
    "MarkdownTransformer",
    "RegexInlineParser",
    "FolderMaterializer",
    "Layout",
    "MaterializedPage",
    "sanitize_filename",
]
