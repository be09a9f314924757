"""
Notion Export

Exports Notion page trees to nested folders with Markdown, PDF and DOCX artifacts.
"""

__version__ = "1.0.0"
