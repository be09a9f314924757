"""
Renderers - PDF Renderer

A4 PDF documents via fpdf2. Configured TrueType fonts cover Unicode text;
without them the built-in Latin-1 core fonts are used.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple

from fpdf import FPDF
from fpdf.enums import XPos, YPos

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

MARGIN_MM = 10
BODY_SIZE = 11
LINE_HEIGHT = 6
HEADING_SIZES = {1: 20, 2: 17, 3: 15, 4: 13, 5: 12, 6: 11}

# Core fonts only cover Latin-1.
_CORE_FONT_REPLACEMENTS = str.maketrans({
    "•": "-",
    "─": "-",
    "–": "-",
    "—": "-",
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
    "…": "...",
})

BODY_FAMILY = "NotionBody"
MONO_FAMILY = "NotionMono"


def to_core_font(text: str) -> str:
    return text.translate(_CORE_FONT_REPLACEMENTS).encode("latin-1", "replace").decode("latin-1")


@dataclass(frozen=True)
class PdfFonts:
    """TrueType font files. Without ``regular`` the core fonts are used."""
    regular: Optional[Path] = None
    bold: Optional[Path] = None
    italic: Optional[Path] = None
    mono: Optional[Path] = None
    fallbacks: Tuple[Path, ...] = ()

    @classmethod
    def from_settings(cls, settings) -> "PdfFonts":
        export = settings.export
        return cls(
            regular=export.pdf_font_path,
            bold=export.pdf_bold_font_path,
            italic=export.pdf_italic_font_path,
            mono=export.pdf_mono_font_path,
            fallbacks=tuple(
                Path(item.strip()) for item in export.pdf_fallback_fonts.split(",") if item.strip()
            ),
        )

    @property
    def unicode(self) -> bool:
        return self.regular is not None


class PdfRenderer(BaseDocumentRenderer):
    """Renders document blocks into a .pdf file."""

    extension = "pdf"

    def __init__(self, fonts: Optional[PdfFonts] = None):
        self.fonts = fonts or PdfFonts()
        if self.fonts.unicode:
            self.body_family = BODY_FAMILY
            self.mono_family = MONO_FAMILY if self.fonts.mono else BODY_FAMILY
        else:
            self.body_family = "Helvetica"
            self.mono_family = "Courier"

    def render(
        self,
        title: str,
        blocks: List[DocumentBlock],
        metadata: Dict[str, Any],
    ) -> bytes:
        pdf = FPDF(format="A4")
        pdf.set_margins(MARGIN_MM, MARGIN_MM, MARGIN_MM)
        pdf.set_auto_page_break(True, margin=MARGIN_MM)
        self._register_fonts(pdf)
        pdf.set_title(self._text(title))
        pdf.add_page()

        self._metadata_box(pdf, title, metadata)

        pdf.set_text_color(0x2C, 0x3E, 0x50)
        pdf.set_font(self.body_family, style="B", size=HEADING_SIZES[1])
        self._line(pdf, title, 10)
        pdf.set_text_color(0x33, 0x33, 0x33)
        pdf.ln(2)

        for block in blocks:
            self._add_block(pdf, block)

        return bytes(pdf.output())

    def _register_fonts(self, pdf: FPDF) -> None:
        fonts = self.fonts
        if not fonts.unicode:
            return

        pdf.add_font(BODY_FAMILY, "", str(fonts.regular))
        pdf.add_font(BODY_FAMILY, "B", str(fonts.bold or fonts.regular))
        pdf.add_font(BODY_FAMILY, "I", str(fonts.italic or fonts.regular))
        if fonts.mono:
            pdf.add_font(MONO_FAMILY, "", str(fonts.mono))

        fallback_families = []
        for index, path in enumerate(fonts.fallbacks):
            family = f"NotionFallback{index}"
            pdf.add_font(family, "", str(path))
            fallback_families.append(family)
        if fallback_families:
            pdf.set_fallback_fonts(fallback_families)

    def _text(self, text: str) -> str:
        return text if self.fonts.unicode else to_core_font(text)

    def _metadata_box(self, pdf: FPDF, title: str, metadata: Dict[str, Any]) -> None:
        pdf.set_font(self.body_family, size=9)
        pdf.set_text_color(0x6A, 0x73, 0x7D)
        pdf.set_fill_color(0xF8, 0xF9, 0xFA)
        pdf.set_draw_color(0xE9, 0xEC, 0xEF)
        lines = [f"Page: {title}"] + self.metadata_lines(metadata)
        pdf.multi_cell(
            0, 5, self._text("\n".join(lines)),
            border=1, fill=True, new_x=XPos.LMARGIN, new_y=YPos.NEXT,
        )
        pdf.ln(4)

    def _line(self, pdf: FPDF, text: str, height: float) -> None:
        pdf.multi_cell(0, height, self._text(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    def _add_block(self, pdf: FPDF, block: DocumentBlock) -> None:
        if isinstance(block, Heading):
            pdf.ln(3)
            pdf.set_font(self.body_family, style="B", size=HEADING_SIZES.get(block.level, BODY_SIZE))
            pdf.set_text_color(0x2C, 0x3E, 0x50)
            self._line(pdf, block.text, 8)
            pdf.set_text_color(0x33, 0x33, 0x33)
        elif isinstance(block, Paragraph):
            for run in block.runs:
                self._write_run(pdf, run)
            pdf.ln(LINE_HEIGHT)
        elif isinstance(block, CodeBlock):
            pdf.set_font(self.mono_family, size=9)
            pdf.set_fill_color(0xF8, 0xF9, 0xFA)
            pdf.multi_cell(
                0, 5, self._text(block.text.rstrip("\n")),
                fill=True, new_x=XPos.LMARGIN, new_y=YPos.NEXT,
            )
        elif isinstance(block, Quote):
            pdf.set_font(self.body_family, style="I", size=BODY_SIZE)
            pdf.set_text_color(0x6A, 0x73, 0x7D)
            self._line(pdf, block.text, LINE_HEIGHT)
            pdf.set_text_color(0x33, 0x33, 0x33)
        elif isinstance(block, ListItem):
            pdf.set_font(self.body_family, size=BODY_SIZE)
            self._line(pdf, block.text, LINE_HEIGHT)
            return
        elif isinstance(block, Rule):
            y = pdf.get_y() + 2
            pdf.set_draw_color(0xCC, 0xCC, 0xCC)
            pdf.line(pdf.l_margin, y, pdf.w - pdf.r_margin, y)
            pdf.set_y(y + 2)
        pdf.ln(2)

    def _write_run(self, pdf: FPDF, run) -> None:
        style = ""
        family = self.body_family
        link = ""
        if run.style == InlineStyle.BOLD:
            style = "B"
        elif run.style == InlineStyle.ITALIC:
            style = "I"
        elif run.style == InlineStyle.CODE:
            family = self.mono_family
        elif run.style == InlineStyle.LINK:
            style = "U"
            link = run.href or ""
            pdf.set_text_color(0x00, 0x66, 0xCC)

        pdf.set_font(family, style=style, size=BODY_SIZE)
        pdf.write(LINE_HEIGHT, self._text(run.text), link=link)
        pdf.set_text_color(0x33, 0x33, 0x33)
