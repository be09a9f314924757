"""
Pipeline - Block Markdown Converter

Notion block JSON → Markdown body text.
"""

import logging
from typing import List, Dict, Any, Optional

logger = logging.getLogger(__name__)

# Blocks that are exported as pages of their own, or carry no text.
SKIPPED_BLOCK_TYPES = {
    "child_page",
    "child_database",
    "table_of_contents",
    "breadcrumb",
    "column_list",
    "unsupported",
}

LINK_BLOCK_TYPES = {"image", "video", "audio", "file", "pdf", "bookmark", "embed", "link_preview"}

INDENT = "  "


class BlockMarkdownConverter:
    """Converts Notion blocks (with nested ``children`` attached) to Markdown."""

    def plain_text(self, rich_text: Optional[List[Dict[str, Any]]]) -> str:
        """Concatenate the plain text of a rich text array, no formatting."""
        if not rich_text:
            return ""

        parts = []
        for item in rich_text:
            text = item.get("plain_text", "")
            if not text and isinstance(item.get("text"), dict):
                text = item["text"].get("content", "")
            if text:
                parts.append(text)
        return "".join(parts)

    def rich_text_to_markdown(self, rich_text: Optional[List[Dict[str, Any]]]) -> str:
        """
        Render a rich text array as inline Markdown.

        Annotation markers are placed around the stripped text so that
        surrounding whitespace stays outside of ``**`` / ``*`` / backticks.
        """
        if not rich_text:
            return ""

        parts = []
        for item in rich_text:
            item_type = item.get("type", "text")
            text = item.get("plain_text", "")

            if item_type == "equation":
                expression = item.get("equation", {}).get("expression", "")
                if expression:
                    parts.append(f"${expression}$")
                continue

            if item_type != "text":
                # Mentions and unknown types keep their rendered text
                if text:
                    parts.append(text)
                continue

            if not text and isinstance(item.get("text"), dict):
                text = item["text"].get("content", "")
            if not text:
                continue

            href = item.get("href")
            if not href and isinstance(item.get("text"), dict):
                link = item["text"].get("link")
                if isinstance(link, dict):
                    href = link.get("url")

            annotations = item.get("annotations", {})
            if any(annotations.get(key) for key in ("code", "bold", "italic", "strikethrough")):
                stripped = text.strip()
                if stripped:
                    leading = text[: len(text) - len(text.lstrip())]
                    trailing = text[len(text.rstrip()):]
                    core = stripped
                    if annotations.get("code"):
                        core = f"`{core}`"
                    if annotations.get("bold"):
                        core = f"**{core}**"
                    if annotations.get("italic"):
                        core = f"*{core}*"
                    if annotations.get("strikethrough"):
                        core = f"~~{core}~~"
                    text = f"{leading}{core}{trailing}"

            if href:
                text = f"[{text}]({href})"

            parts.append(text)

        return "".join(parts)

    def blocks_to_markdown(self, blocks: List[Dict[str, Any]], depth: int = 0) -> str:
        """
        Render a sequence of sibling blocks.

        List items are separated by single newlines; other blocks by a blank line.
        """
        output = []
        number = 0
        previous_was_list = False

        for block in blocks:
            block_type = block.get("type", "")
            if block_type == "numbered_list_item":
                number += 1
            else:
                number = 0

            rendered = self.block_to_markdown(block, depth, number=number)
            if rendered is None:
                continue

            is_list = block_type in ("bulleted_list_item", "numbered_list_item", "to_do")
            if output:
                output.append("\n" if is_list and previous_was_list else "\n\n")
            output.append(rendered)
            previous_was_list = is_list

        return "".join(output)

    def block_to_markdown(
        self,
        block: Dict[str, Any],
        depth: int = 0,
        number: int = 1,
    ) -> Optional[str]:
        """Render one block and its nested children, or None when it has no output."""
        block_type = block.get("type", "")
        data = block.get(block_type, {}) or {}
        indent = INDENT * depth
        children = block.get("children") or []

        if block_type in SKIPPED_BLOCK_TYPES:
            return None

        text = self.rich_text_to_markdown(data.get("rich_text"))

        if block_type == "paragraph":
            if not text and not children:
                return None
            rendered = f"{indent}{text}"
        elif block_type in ("heading_1", "heading_2", "heading_3"):
            level = int(block_type[-1])
            rendered = f"{'#' * level} {text}"
        elif block_type == "bulleted_list_item":
            rendered = f"{indent}- {text}"
        elif block_type == "numbered_list_item":
            rendered = f"{indent}{max(number, 1)}. {text}"
        elif block_type == "to_do":
            mark = "x" if data.get("checked") else " "
            rendered = f"{indent}- [{mark}] {text}"
        elif block_type == "quote":
            rendered = self._quote(text)
        elif block_type == "callout":
            icon = (data.get("icon") or {}).get("emoji", "")
            rendered = self._quote(f"{icon} {text}".strip())
        elif block_type == "toggle":
            rendered = f"{indent}- {text}"
        elif block_type == "code":
            language = data.get("language", "")
            if language == "plain text":
                language = ""
            code = self.plain_text(data.get("rich_text"))
            rendered = f"```{language}\n{code}\n```"
        elif block_type == "divider":
            rendered = "---"
        elif block_type == "equation":
            rendered = f"$$\n{data.get('expression', '')}\n$$"
        elif block_type in LINK_BLOCK_TYPES:
            rendered = self._link_block(block_type, data)
        else:
            logger.debug(f"Skipping unsupported block type: {block_type}")
            return None

        if not children:
            return rendered

        if block_type in ("bulleted_list_item", "numbered_list_item", "to_do", "toggle"):
            nested = self.blocks_to_markdown(children, depth + 1)
            return f"{rendered}\n{nested}" if nested else rendered

        nested = self.blocks_to_markdown(children, depth)
        if block_type in ("quote", "callout") and nested:
            nested = self._quote(nested)
        return f"{rendered}\n\n{nested}" if nested else rendered

    def _quote(self, text: str) -> str:
        return "\n".join(f"> {line}" if line else ">" for line in text.split("\n"))

    def _link_block(self, block_type: str, data: Dict[str, Any]) -> Optional[str]:
        url = data.get("url")
        if not url:
            source = data.get(data.get("type", ""), {}) or {}
            url = source.get("url")
        if not url:
            return None

        caption = self.plain_text(data.get("caption")) or url
        if block_type == "image":
            return f"![{caption}]({url})"
        return f"[{caption}]({url})"
