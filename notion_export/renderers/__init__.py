"""
Renderers Module - Output Formats

PDF and DOCX renderers behind a common interface.
"""

from notion_export.renderers.base_renderer import BaseDocumentRenderer
from notion_export.renderers.docx_renderer import DocxRenderer
from notion_export.renderers.pdf_renderer import PdfFonts, PdfRenderer

__all__ = [
    "BaseDocumentRenderer",
    "DocxRenderer",
    "PdfFonts",
    "PdfRenderer",
]


def get_renderer(export_format: str, settings=None) -> BaseDocumentRenderer:
    """Factory function to get the renderer for an output format."""
    if export_format == "pdf":
        return PdfRenderer(PdfFonts.from_settings(settings) if settings else None)
    elif export_format == "docx":
        return DocxRenderer()
    else:
        raise ValueError(f"Unknown export format: {export_format}")
