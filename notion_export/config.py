"""
Notion Export - Configuration

Pydantic Settings for all configuration via environment variables.
"""

import logging

from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional, Literal
from pathlib import Path


class NotionSettings(BaseSettings):
    """Notion API configuration."""
    api_key: Optional[str] = Field(None, alias="NOTION_API_KEY")
    base_url: str = Field("https://api.notion.com/v1", alias="NOTION_BASE_URL")
    api_version: str = Field("2022-06-28", alias="NOTION_API_VERSION")
    timeout_seconds: float = Field(30.0, alias="NOTION_TIMEOUT_SECONDS")
    concurrency: int = Field(5, alias="NOTION_CONCURRENCY")
    max_retries: int = Field(5, alias="NOTION_MAX_RETRIES")
    retry_backoff: float = Field(1.0, alias="NOTION_RETRY_BACKOFF_SECONDS")

    model_config = {"env_prefix": "", "extra": "ignore"}


class ExportSettings(BaseSettings):
    """Export defaults used when a caller does not pass an explicit config."""
    output_dir: Path = Field(Path("./exports"), alias="EXPORT_OUTPUT_DIR")
    formats: str = Field("pdf,docx", alias="EXPORT_FORMATS")
    include_subpages: bool = Field(True, alias="EXPORT_INCLUDE_SUBPAGES")
    # Unicode TrueType fonts for PDF output; core Latin-1 fonts when unset
    pdf_font_path: Optional[Path] = Field(None, alias="PDF_FONT_PATH")
    pdf_bold_font_path: Optional[Path] = Field(None, alias="PDF_BOLD_FONT_PATH")
    pdf_italic_font_path: Optional[Path] = Field(None, alias="PDF_ITALIC_FONT_PATH")
    pdf_mono_font_path: Optional[Path] = Field(None, alias="PDF_MONO_FONT_PATH")
    pdf_fallback_fonts: str = Field("", alias="PDF_FALLBACK_FONTS")

    model_config = {"env_prefix": "", "extra": "ignore"}


class MCPSettings(BaseSettings):
    """MCP server configuration."""
    transport: Literal["sse", "stdio"] = Field("stdio", alias="MCP_TRANSPORT")
    port: int = Field(8080, alias="MCP_PORT")
    host: str = Field("0.0.0.0", alias="MCP_HOST")

    model_config = {"env_prefix": "", "extra": "ignore"}


class LogSettings(BaseSettings):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO", alias="LOG_LEVEL"
    )
    format: str = Field(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s", alias="LOG_FORMAT"
    )

    model_config = {"env_prefix": "", "extra": "ignore"}


class Settings(BaseSettings):
    """Main settings aggregating all configuration."""
    notion: NotionSettings = Field(default_factory=NotionSettings)
    export: ExportSettings = Field(default_factory=ExportSettings)
    mcp: MCPSettings = Field(default_factory=MCPSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = {"env_prefix": "", "extra": "ignore"}


def get_settings() -> Settings:
    """Load settings from environment variables."""
    from dotenv import load_dotenv
    load_dotenv()
    return Settings()


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure root logging for the CLI and server entry points."""
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log.level, format=settings.log.format)
