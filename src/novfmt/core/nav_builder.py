"""Synthesize the merged navigation document."""

from html import escape

from novfmt.core.paths import join_href
from novfmt.models.nav import NavItem
from novfmt.models.volume import Volume

NAV_HEADER = """<?xml version="1.0" encoding="UTF-8"?>
<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">
<head><title>Table of Contents</title></head>
<body>
<nav epub:type="toc" id="toc">
<h1>Table of Contents</h1>
<ol>
"""

NAV_FOOTER = """</ol>
</nav>
</body>
</html>
"""


def clone_nav_items(items: list[NavItem], prefix: str) -> list[NavItem]:
    """Deep-copy a nav tree, rebasing every href under ``prefix``."""
    return [
        NavItem(
            title=item.title,
            href=join_href(prefix, item.href) if item.href else "",
            children=clone_nav_items(item.children, prefix),
        )
        for item in items
    ]


def build_volume_nav(volume: Volume) -> NavItem | None:
    """Build the top-level TOC entry for one merged volume.

    Returns None when the volume has neither a nav tree nor spine content.
    """
    if not volume.nav_items and not volume.first_href:
        return None

    entry = NavItem(title=volume.display_name, href=volume.first_href)
    if volume.nav_items:
        entry.children = clone_nav_items(volume.nav_items, volume.prefix)
        if not entry.href:
            entry.href = entry.children[0].href
    return entry


def _render_item(item: NavItem, out: list[str]) -> None:
    out.append("<li>")
    label = escape(item.title)
    href = escape(item.href)
    if href:
        out.append(f'<a href="{href}">{label or href}</a>')
    elif label:
        out.append(label)
    if item.children:
        out.append("\n<ol>\n")
        for child in item.children:
            _render_item(child, out)
        out.append("</ol>\n")
    out.append("</li>\n")


def render_nav_document(entries: list[NavItem]) -> str:
    """Serialize nav entries as an XHTML navigation document."""
    out = [NAV_HEADER]
    for entry in entries:
        _render_item(entry, out)
    out.append(NAV_FOOTER)
    return "".join(out)


def build_nav_document(volumes: list[Volume]) -> str:
    """Build the merged navigation document for all volumes, in order."""
    entries = [entry for entry in (build_volume_nav(v) for v in volumes) if entry]
    return render_nav_document(entries)
