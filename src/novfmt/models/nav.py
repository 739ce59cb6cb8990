"""Data models for navigation (table of contents)."""

from pydantic import BaseModel, Field


class NavItem(BaseModel):
    """Single entry in a navigation tree.

    An empty href marks a label-only grouping node.
    """

    title: str = ""
    href: str = ""
    children: list["NavItem"] = Field(default_factory=list)
