"""
MCP Tool - export_collection

Export every page of a Notion database.
"""

from typing import List, Optional

from fastmcp import Context, FastMCP

from notion_export.config import get_settings
from notion_export.schemas.export import ExportConfig, ExportProgress
from notion_export.services import ExportService

router = FastMCP("export_collection")


@router.tool()
async def export_collection(
    database_id: str,
    ctx: Context,
    output_dir: Optional[str] = None,
    formats: Optional[List[str]] = None,
) -> dict:
    """
    Export all pages of a Notion database, one folder per page.

    Sub-pages are not included. A failing page does not stop the export.

    Args:
        database_id: Database ID
        output_dir: Destination directory (default: EXPORT_OUTPUT_DIR)
        formats: Any of "pdf", "docx" (default: EXPORT_FORMATS)

    Returns:
        Overall success, per-page results and the files written
    """
    settings = get_settings()
    config = ExportConfig(
        output_dir=output_dir or settings.export.output_dir,
        formats=formats if formats is not None else settings.export.formats,
        include_subpages=False,
    )

    async def report(event: ExportProgress) -> None:
        await ctx.report_progress(progress=event.completed, total=event.total)

    service = ExportService(settings)
    try:
        result = await service.export_collection(database_id, config, progress=report)
    finally:
        await service.aclose()

    return {
        **result.model_dump(),
        "total_files": result.total_files,
    }
