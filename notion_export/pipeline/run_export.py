"""
Pipeline - Run Export

CLI entry point for page and database exports.
"""

import asyncio
import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, List

from notion_export.config import get_settings, configure_logging
from notion_export.schemas.export import ExportConfig, ExportProgress, ExportResult
from notion_export.services.export_service import ExportService

logger = logging.getLogger(__name__)


def log_progress(event: ExportProgress) -> None:
    logger.info(f"Progress {event.completed}/{event.total}: {event.current_page_id}")


async def run(args: argparse.Namespace) -> ExportResult:
    settings = get_settings()
    if args.api_key:
        settings.notion.api_key = args.api_key

    config = ExportConfig(
        output_dir=Path(args.output or settings.export.output_dir).resolve(),
        formats=args.formats or settings.export.formats,
        include_subpages=settings.export.include_subpages and not args.no_subpages,
    )

    logger.info(f"Output directory: {config.output_dir}")
    logger.info(f"Formats: {', '.join(f.value for f in config.formats)}")

    service = ExportService(settings)
    try:
        if args.database_id:
            logger.info(f"Starting database export: {args.database_id}")
            return await service.export_collection(args.database_id, config, log_progress)

        logger.info(f"Starting page export: {', '.join(args.page_id)}")
        logger.info(f"Include subpages: {config.include_subpages}")
        if len(args.page_id) == 1:
            return await service.export_page(args.page_id[0], config)
        return await service.export_pages(args.page_id, config, log_progress)
    finally:
        await service.aclose()


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Export Notion content to a folder hierarchy with PDF and DOCX files"
    )
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument(
        "--page-id",
        action="append",
        help="Page ID to export with its subpages (repeatable)",
    )
    target.add_argument(
        "--database-id",
        type=str,
        help="Database ID to export (every page, no subpages)",
    )
    parser.add_argument(
        "--output",
        type=str,
        help="Output directory (default: from env, ./exports)",
    )
    parser.add_argument(
        "--formats",
        type=str,
        help="Comma-separated formats: pdf,docx (default: from env)",
    )
    parser.add_argument(
        "--no-subpages",
        action="store_true",
        help="Exclude subpages from a page export",
    )
    parser.add_argument(
        "--api-key",
        type=str,
        help="Notion API key (default: NOTION_API_KEY)",
    )

    args = parser.parse_args(argv)
    configure_logging()

    result = asyncio.run(run(args))

    if result.success:
        print(f"Export completed: {len(result.exported_files)} files created.")
        if result.errors:
            print(f"Warnings: {len(result.errors)}")
            for error in result.errors:
                print(f"   {error}")
        return 0

    print("Export failed!")
    for error in result.errors:
        print(f"   {error}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
