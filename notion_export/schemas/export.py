"""
Schemas - Export Models

Export configuration, per-page and aggregated results, progress events.
"""

from enum import Enum
from pathlib import Path
from typing import List, Union

from pydantic import BaseModel, Field, field_validator


class ExportFormat(str, Enum):
    PDF = "pdf"
    DOCX = "docx"


class ExportConfig(BaseModel):
    """Options for one export invocation."""
    output_dir: Path
    formats: List[ExportFormat] = Field(
        default_factory=lambda: [ExportFormat.PDF, ExportFormat.DOCX]
    )
    include_subpages: bool = True

    model_config = {"frozen": True}

    @field_validator("formats", mode="before")
    @classmethod
    def split_formats(cls, value: Union[str, List[str]]):
        """Accept ``"pdf,docx"`` as well as a list."""
        if isinstance(value, str):
            return [item.strip().lower() for item in value.split(",") if item.strip()]
        return value

    @classmethod
    def from_settings(cls, settings) -> "ExportConfig":
        return cls(
            output_dir=settings.export.output_dir,
            formats=settings.export.formats,
            include_subpages=settings.export.include_subpages,
        )


class PageExportResult(BaseModel):
    """Outcome for one page."""
    page_id: str
    success: bool = True
    files: List[str] = []
    errors: List[str] = []


class ExportResult(BaseModel):
    """
    Outcome of an export invocation.

    ``success`` and ``errors`` are independent: a successful export may still
    report errors for individual pages.
    """
    success: bool = False
    exported_files: List[str] = []
    errors: List[str] = []
    pages: List[PageExportResult] = []

    @property
    def total_files(self) -> int:
        return len(self.exported_files)


class ExportProgress(BaseModel):
    """Emitted after each top-level page of a batch."""
    completed: int
    total: int
    current_page_id: str
