"""
MCP Tool - export_pages

Export pages (and their sub-pages) to the local file system.
"""

from typing import List, Optional

from fastmcp import Context, FastMCP

from notion_export.config import get_settings
from notion_export.schemas.export import ExportConfig, ExportProgress
from notion_export.services import ExportService

router = FastMCP("export_pages")


@router.tool()
async def export_pages(
    page_ids: List[str],
    ctx: Context,
    output_dir: Optional[str] = None,
    formats: Optional[List[str]] = None,
    include_children: bool = True,
) -> dict:
    """
    Export Notion pages to folders with content.md, metadata.json, PDF and DOCX files.

    Pages are exported one after another; progress is reported per page.

    Args:
        page_ids: Root page IDs to export
        output_dir: Destination directory (default: EXPORT_OUTPUT_DIR)
        formats: Any of "pdf", "docx" (default: EXPORT_FORMATS)
        include_children: Export sub-pages as nested folders

    Returns:
        Overall success, per-page results and the files written
    """
    settings = get_settings()
    config = ExportConfig(
        output_dir=output_dir or settings.export.output_dir,
        formats=formats if formats is not None else settings.export.formats,
        include_subpages=include_children,
    )

    async def report(event: ExportProgress) -> None:
        await ctx.report_progress(progress=event.completed, total=event.total)
        await ctx.info(f"Exported {event.current_page_id} ({event.completed}/{event.total})")

    service = ExportService(settings)
    try:
        result = await service.export_pages(page_ids, config, progress=report)
    finally:
        await service.aclose()

    return {
        **result.model_dump(),
        "total_files": result.total_files,
    }
