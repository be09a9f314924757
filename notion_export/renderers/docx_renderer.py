"""
Renderers - DOCX Renderer

Word documents via python-docx.
"""

import io
from typing import Dict, Any, List

from docx import Document
from docx.shared import Pt, RGBColor

from notion_export.pipeline.transformer import (
    CodeBlock,
    DocumentBlock,
    Heading,
    InlineStyle,
    ListItem,
    Paragraph,
    Quote,
    Rule,
)
from notion_export.renderers.base_renderer import BaseDocumentRenderer

GREY = RGBColor(0x66, 0x66, 0x66)
LIGHT_GREY = RGBColor(0xCC, 0xCC, 0xCC)
LINK_BLUE = RGBColor(0x00, 0x66, 0xCC)
MONOSPACE = "Courier New"
RULE_TEXT = "─" * 39


class DocxRenderer(BaseDocumentRenderer):
    """Renders document blocks into a .docx file."""

    extension = "docx"

    def render(
        self,
        title: str,
        blocks: List[DocumentBlock],
        metadata: Dict[str, Any],
    ) -> bytes:
        document = Document()
        document.add_heading(title, level=0)

        for line in self.metadata_lines(metadata):
            run = document.add_paragraph().add_run(line)
            run.font.size = Pt(10)
            run.font.color.rgb = GREY
        document.add_paragraph()

        for block in blocks:
            self._add_block(document, block)

        buffer = io.BytesIO()
        document.save(buffer)
        return buffer.getvalue()

    def _add_block(self, document, block: DocumentBlock) -> None:
        if isinstance(block, Heading):
            document.add_heading(block.text, level=block.level)
        elif isinstance(block, Paragraph):
            paragraph = document.add_paragraph()
            for inline in block.runs:
                run = paragraph.add_run(inline.text)
                if inline.style == InlineStyle.BOLD:
                    run.bold = True
                elif inline.style == InlineStyle.ITALIC:
                    run.italic = True
                elif inline.style == InlineStyle.CODE:
                    run.font.name = MONOSPACE
                elif inline.style == InlineStyle.LINK:
                    run.underline = True
                    run.font.color.rgb = LINK_BLUE
        elif isinstance(block, CodeBlock):
            run = document.add_paragraph().add_run(block.text)
            run.font.name = MONOSPACE
            run.font.size = Pt(10)
        elif isinstance(block, Quote):
            run = document.add_paragraph().add_run(block.text)
            run.italic = True
            run.font.color.rgb = GREY
        elif isinstance(block, ListItem):
            document.add_paragraph().add_run(block.text)
        elif isinstance(block, Rule):
            run = document.add_paragraph().add_run(RULE_TEXT)
            run.font.color.rgb = LIGHT_GREY
