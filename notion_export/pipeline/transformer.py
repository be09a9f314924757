"""
Pipeline - Markdown Document Transformer

Markdown text → flat sequence of format-agnostic document blocks.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

from markdown_it import MarkdownIt
from markdown_it.token import Token


class InlineStyle(str, Enum):
    PLAIN = "plain"
    BOLD = "bold"
    ITALIC = "italic"
    CODE = "code"
    LINK = "link"


@dataclass(frozen=True)
class InlineRun:
    """A span of text with one style. ``href`` is set for links only."""
    text: str
    style: InlineStyle = InlineStyle.PLAIN
    href: Optional[str] = None


@dataclass(frozen=True)
class Heading:
    level: int
    text: str


@dataclass(frozen=True)
class Paragraph:
    runs: Tuple[InlineRun, ...]


@dataclass(frozen=True)
class CodeBlock:
    text: str
    language: str = ""


@dataclass(frozen=True)
class Quote:
    """Blockquote flattened to one line of text, rendered italic."""
    text: str


@dataclass(frozen=True)
class ListItem:
    """One list entry, always rendered with a bullet."""
    text: str


@dataclass(frozen=True)
class Rule:
    pass


DocumentBlock = Union[Heading, Paragraph, CodeBlock, Quote, ListItem, Rule]

HEADING_LEVELS = {f"h{level}": level for level in range(1, 7)}

BULLET = "•"


class InlineParser(ABC):
    """Splits paragraph text into styled runs."""

    @abstractmethod
    def parse(self, text: str) -> List[InlineRun]:
        pass


class RegexInlineParser(InlineParser):
    """
    Single-pass pattern splitter for bold, italic, inline code and links.

    Patterns are tried in that order at each position and never nest;
    escaped markers are not recognized.
    """

    SPLIT_PATTERN = re.compile(r"(\*\*.*?\*\*|\*.*?\*|`.*?`|\[.*?\]\(.*?\))")
    LINK_PATTERN = re.compile(r"\[(.*?)\]\((.*?)\)")

    def parse(self, text: str) -> List[InlineRun]:
        runs = []
        for part in self.SPLIT_PATTERN.split(text):
            run = self._classify(part)
            if run is not None:
                runs.append(run)
        return runs or [InlineRun(text)]

    def _classify(self, part: str) -> Optional[InlineRun]:
        if len(part) >= 4 and part.startswith("**") and part.endswith("**"):
            return InlineRun(part[2:-2], InlineStyle.BOLD)
        if len(part) >= 2 and part.startswith("*") and part.endswith("*"):
            return InlineRun(part[1:-1], InlineStyle.ITALIC)
        if len(part) >= 2 and part.startswith("`") and part.endswith("`"):
            return InlineRun(part[1:-1], InlineStyle.CODE)

        link = self.LINK_PATTERN.fullmatch(part)
        if link:
            return InlineRun(link.group(1), InlineStyle.LINK, href=link.group(2))

        if part.strip():
            return InlineRun(part)
        return None


class MarkdownTransformer:
    """Walks the markdown-it token stream and emits document blocks."""

    def __init__(self, inline_parser: Optional[InlineParser] = None):
        self.inline_parser = inline_parser or RegexInlineParser()
        self.md = MarkdownIt("commonmark", {"html": False, "breaks": True})

    def transform(self, markdown: str) -> List[DocumentBlock]:
        """
        Convert Markdown to document blocks in source order.

        Args:
            markdown: Page body

        Returns:
            Flat list of blocks; unrecognized tokens produce nothing
        """
        tokens = self.md.parse(markdown or "")
        blocks: List[DocumentBlock] = []
        i = 0

        while i < len(tokens):
            token = tokens[i]

            if token.type == "heading_open":
                content = self._inline_after(tokens, i)
                if content is not None:
                    blocks.append(Heading(heading_level(token.tag), content))
                i += 3
                continue

            if token.type == "paragraph_open":
                content = self._inline_after(tokens, i)
                if content is not None:
                    blocks.append(Paragraph(tuple(self.inline_parser.parse(content))))
                i += 3
                continue

            if token.type in ("fence", "code_block"):
                blocks.append(CodeBlock(token.content, token.info.strip()))
            elif token.type == "blockquote_open":
                texts, i = self._collect_inline(tokens, i, "blockquote_open", "blockquote_close")
                blocks.append(Quote(" ".join(texts).strip()))
            elif token.type in ("bullet_list_open", "ordered_list_open"):
                items, i = self._collect_inline(tokens, i, token.type, token.type.replace("_open", "_close"))
                blocks.extend(ListItem(f"{BULLET} {item}") for item in items)
            elif token.type == "hr":
                blocks.append(Rule())

            i += 1

        return blocks

    def _inline_after(self, tokens: List[Token], index: int) -> Optional[str]:
        if index + 1 < len(tokens) and tokens[index + 1].type == "inline":
            return tokens[index + 1].content
        return None

    def _collect_inline(
        self,
        tokens: List[Token],
        start: int,
        open_type: str,
        close_type: str,
    ) -> Tuple[List[str], int]:
        """Inline contents up to the matching close token, and that token's index."""
        texts = []
        depth = 0
        i = start
        while i < len(tokens):
            token = tokens[i]
            if token.type == open_type:
                depth += 1
            elif token.type == close_type:
                depth -= 1
                if depth == 0:
                    break
            elif token.type == "inline":
                texts.append(token.content)
            i += 1
        return texts, i


def heading_level(tag: str) -> int:
    """Map ``h1``..``h6`` to 1..6; anything else is level 1."""
    return HEADING_LEVELS.get(tag, 1)


_default_transformer: Optional[MarkdownTransformer] = None


def transform(markdown: str) -> List[DocumentBlock]:
    """Transform with a shared default transformer."""
    global _default_transformer
    if _default_transformer is None:
        _default_transformer = MarkdownTransformer()
    return _default_transformer.transform(markdown)


def parse_inline(text: str) -> List[InlineRun]:
    return RegexInlineParser().parse(text)
