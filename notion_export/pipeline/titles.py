"""
Pipeline - Page Titles

The single title rule shared by tree resolution and search results.
"""

from typing import Dict, Any

UNTITLED = "Untitled"


def extract_title(page: Dict[str, Any]) -> str:
    """
    Derive the display title of a Notion page or child-page block.

    Order: the property typed ``title``, then the inline ``child_page``
    title, then ``"Untitled"``.
    """
    properties = page.get("properties") or {}
    for prop in properties.values():
        if isinstance(prop, dict) and prop.get("type") == "title":
            rich_text = prop.get("title")
            if not isinstance(rich_text, list):
                break
            text = "".join(item.get("plain_text", "") for item in rich_text)
            if text:
                return text
            break

    child_page = page.get("child_page") or {}
    if child_page.get("title"):
        return child_page["title"]

    return UNTITLED
