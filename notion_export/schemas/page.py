"""
Schemas - Page Models

Pydantic models for page search and browsing.
"""

from pydantic import BaseModel
from typing import List, Optional, Dict, Any


class PageSummary(BaseModel):
    """Search result entry."""
    id: str
    title: str
    url: str = ""
    parent: Optional[Dict[str, Any]] = None
    created_time: str = ""
    last_edited_time: str = ""


class ChildPageSummary(BaseModel):
    """Direct child of a page, for tree browsing."""
    id: str
    title: str
    url: str = ""
    has_children: bool = False


class PageTreeNode(BaseModel):
    """Page hierarchy tree node."""
    id: str
    title: str
    url: str
    children: List["PageTreeNode"] = []


# Allow recursive model
PageTreeNode.model_rebuild()
