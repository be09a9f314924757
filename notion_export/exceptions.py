"""
Notion Export - Exceptions
"""

from typing import Optional


class NotionExportError(Exception):
    """Base class for all export errors."""


class ConfigurationError(NotionExportError):
    """Missing credentials or unusable output location. Nothing is exported."""


class GatewayError(NotionExportError):
    """A Notion API request failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UnauthorizedError(GatewayError):
    """The API key is invalid or lacks access to the requested content."""


class PageNotFoundError(GatewayError):
    """The page, block or database does not exist or is not shared."""
