"""
Services - Export Service

Resolves page trees, writes page folders and renders each page into the
requested formats, collecting per-page results.
"""

import inspect
import logging
import os
from collections import Counter
from pathlib import Path
from typing import Optional, List, Dict, Callable, Awaitable, Union

from notion_export.config import get_settings
from notion_export.exceptions import ConfigurationError
from notion_export.pipeline.gateway import NotionGateway
from notion_export.pipeline.materializer import (
    FolderMaterializer,
    Layout,
    child_directory,
    directory_name,
)
from notion_export.pipeline.resolver import ContentTreeResolver, PageNode
from notion_export.pipeline.transformer import MarkdownTransformer
from notion_export.renderers import BaseDocumentRenderer, get_renderer
from notion_export.schemas.export import (
    ExportConfig,
    ExportFormat,
    ExportProgress,
    ExportResult,
    PageExportResult,
)

ProgressSink = Callable[[ExportProgress], Union[None, Awaitable[None]]]


class ExportService:
    """Exports pages, page lists and databases to the local file system."""

    def __init__(
        self,
        settings=None,
        gateway=None,
        renderers: Optional[Dict[str, BaseDocumentRenderer]] = None,
        transformer: Optional[MarkdownTransformer] = None,
        materializer: Optional[FolderMaterializer] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.settings = settings or get_settings()
        self.logger = logger or logging.getLogger(__name__)
        self.transformer = transformer or MarkdownTransformer()
        self.materializer = materializer or FolderMaterializer(self.logger)
        self._renderers: Dict[str, BaseDocumentRenderer] = dict(renderers or {})
        self._gateway = gateway
        self._resolver = None

    @property
    def gateway(self):
        """Lazy gateway; raises ConfigurationError when no API key is configured."""
        if self._gateway is None:
            self._gateway = NotionGateway(self.settings, logger=self.logger)
        return self._gateway

    @property
    def resolver(self) -> ContentTreeResolver:
        if self._resolver is None:
            self._resolver = ContentTreeResolver(self.gateway, logger=self.logger)
        return self._resolver

    async def aclose(self) -> None:
        if self._gateway is not None:
            await self._gateway.aclose()

    def renderer_for(self, export_format: ExportFormat) -> BaseDocumentRenderer:
        key = ExportFormat(export_format).value
        if key not in self._renderers:
            self._renderers[key] = get_renderer(key, self.settings)
        return self._renderers[key]

    def _prepare(self, config: ExportConfig) -> Path:
        """Check credentials and the output root before any work is done."""
        self.gateway  # raises ConfigurationError without an API key

        output_root = Path(config.output_dir)
        try:
            output_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(f"Cannot create output directory {output_root}: {e}")
        if not os.access(output_root, os.W_OK):
            raise ConfigurationError(f"Output directory is not writable: {output_root}")
        return output_root

    async def export_page(self, page_id: str, config: ExportConfig) -> ExportResult:
        """
        Export one page, and its sub-pages when ``config.include_subpages``.

        Args:
            page_id: Root page ID
            config: Output directory, formats and subpage switch

        Returns:
            ExportResult with one entry per exported page
        """
        result = ExportResult()

        try:
            output_root = self._prepare(config)
        except ConfigurationError as e:
            self.logger.error(f"Export failed: {e}")
            result.errors.append(str(e))
            return result

        try:
            self.logger.info(f"Fetching page hierarchy for {page_id}...")
            tree = await self.resolver.resolve(
                page_id, max_depth=None if config.include_subpages else 0
            )

            self.logger.info(f"Creating folder structure in {output_root}...")
            layout = Layout.HIERARCHICAL if config.include_subpages else Layout.FLAT
            pages = self.materializer.materialize(tree, output_root, layout)
            result.errors.extend(self._collision_errors([page.directory for page in pages if page.ok]))

            self.logger.info("Exporting to requested formats...")
            for page in pages:
                if not page.ok:
                    self._record(result, PageExportResult(
                        page_id=page.node.id, success=False, errors=[page.error]
                    ))
                    continue
                self._record(result, self.render_page(page.node, page.directory, config.formats))

            result.success = all(page.success for page in result.pages)
            self.logger.info(
                f"Export completed: {len(result.exported_files)} files created."
            )
        except Exception as e:
            self.logger.error(f"Export of {page_id} failed: {e}")
            result.errors.append(str(e))
            result.success = False

        return result

    async def export_pages(
        self,
        page_ids: List[str],
        config: ExportConfig,
        progress: Optional[ProgressSink] = None,
    ) -> ExportResult:
        """
        Export several root pages one after another.

        Each id is exported as in ``export_page`` and reported as one entry;
        progress is emitted after each id.
        """
        result = ExportResult()

        try:
            self._prepare(config)
        except ConfigurationError as e:
            self.logger.error(f"Export failed: {e}")
            result.errors.append(str(e))
            return result

        self.logger.info(f"Starting export of {len(page_ids)} pages to {config.output_dir}")
        for index, page_id in enumerate(page_ids, start=1):
            page_export = await self.export_page(page_id, config)
            self._record(result, PageExportResult(
                page_id=page_id,
                success=page_export.success,
                files=page_export.exported_files,
                errors=page_export.errors,
            ))
            await self._notify(progress, ExportProgress(
                completed=index, total=len(page_ids), current_page_id=page_id
            ))

        result.success = all(page.success for page in result.pages)
        return result

    async def export_collection(
        self,
        collection_id: str,
        config: ExportConfig,
        progress: Optional[ProgressSink] = None,
    ) -> ExportResult:
        """
        Export every page of a database without descending into sub-pages.

        Pages are processed strictly in order; a failing page is recorded
        and the remaining pages are still exported.

        Returns:
            ExportResult, successful when at least one file was produced
        """
        result = ExportResult()

        try:
            output_root = self._prepare(config)
        except ConfigurationError as e:
            self.logger.error(f"Database export failed: {e}")
            result.errors.append(str(e))
            return result

        try:
            self.logger.info(f"Fetching database pages for {collection_id}...")
            page_ids = await self.resolver.list_collection_members(collection_id)
        except Exception as e:
            self.logger.error(f"Database export failed: {e}")
            result.errors.append(str(e))
            return result

        self.logger.info(f"Found {len(page_ids)} pages in database")
        for index, page_id in enumerate(page_ids, start=1):
            self.logger.info(f"Processing page {index}/{len(page_ids)}: {page_id}")
            self._record(result, await self._export_standalone(page_id, output_root, config.formats))
            await self._notify(progress, ExportProgress(
                completed=index, total=len(page_ids), current_page_id=page_id
            ))

        result.success = len(result.exported_files) > 0
        self.logger.info(f"Database export completed! {len(result.exported_files)} files created.")
        if result.errors:
            self.logger.info(f"{len(result.errors)} errors occurred during export.")
        return result

    async def _export_standalone(
        self,
        page_id: str,
        output_root: Path,
        formats: List[ExportFormat],
    ) -> PageExportResult:
        try:
            node = await self.resolver.fetch_page(page_id)
            directory = child_directory(output_root, node)
            self.materializer.write_body(node, directory)
        except Exception as e:
            message = f"Failed to process page {page_id}: {e}"
            self.logger.warning(message)
            return PageExportResult(page_id=page_id, success=False, errors=[message])

        return self.render_page(node, directory, formats)

    def render_page(
        self,
        node: PageNode,
        directory: Path,
        formats: List[ExportFormat],
    ) -> PageExportResult:
        """Render one page into each format; failures are recorded, not raised."""
        page_result = PageExportResult(page_id=node.id)
        if not formats:
            return page_result

        try:
            blocks = self.transformer.transform(node.body)
        except Exception as e:
            message = f"Failed to convert page {node.id}: {e}"
            self.logger.warning(message)
            page_result.errors.append(message)
            page_result.success = False
            return page_result

        metadata = node.metadata()
        for export_format in formats:
            try:
                renderer = self.renderer_for(export_format)
                content = renderer.render(node.title, blocks, metadata)
                path = directory / f"{directory_name(node)}.{renderer.extension}"
                path.write_bytes(content)
                page_result.files.append(str(path))
            except Exception as e:
                message = f"Failed to export page {node.id} to {ExportFormat(export_format).value}: {e}"
                self.logger.warning(message)
                page_result.errors.append(message)

        page_result.success = not page_result.errors
        return page_result

    def _record(self, result: ExportResult, page_result: PageExportResult) -> None:
        result.pages.append(page_result)
        result.exported_files.extend(page_result.files)
        result.errors.extend(page_result.errors)

    def _collision_errors(self, directories: List[Path]) -> List[str]:
        return [
            f"Name collision: {count} pages were written to {path}"
            for path, count in Counter(directories).items()
            if count > 1
        ]

    async def _notify(self, progress: Optional[ProgressSink], event: ExportProgress) -> None:
        if progress is None:
            return
        outcome = progress(event)
        if inspect.isawaitable(outcome):
            await outcome
