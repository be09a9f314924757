"""
Schemas Module - Pydantic Models

Data models for pages, export configuration and results.
"""

from notion_export.schemas.page import PageSummary, ChildPageSummary, PageTreeNode
from notion_export.schemas.export import (
    ExportFormat,
    ExportConfig,
    PageExportResult,
    ExportResult,
    ExportProgress,
)

__all__ = [
    "PageSummary",
    "ChildPageSummary",
    "PageTreeNode",
    "ExportFormat",
    "ExportConfig",
    "PageExportResult",
    "ExportResult",
    "ExportProgress",
]
