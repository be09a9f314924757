"""
Services Module - Business Logic Layer

Provides services for exporting and for searching/browsing pages.
"""

from notion_export.services.export_service import ExportService
from notion_export.services.search_service import SearchService

__all__ = [
    "ExportService",
    "SearchService",
]
