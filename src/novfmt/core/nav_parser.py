"""Reconstruct the table of contents from an EPUB 3 navigation document.

The document is read through lxml's event target interface rather than as a
tree, so list nesting is tracked with explicit stacks: one stack of open
<ol> sibling lists, one of <li> items still being built.
"""

from dataclasses import dataclass, field
from pathlib import Path

from lxml import etree

from novfmt.core.entities import expand_named_entities
from novfmt.core.errors import NavNotFoundError
from novfmt.core.opf import local_name
from novfmt.core.paths import normalize_space
from novfmt.models.nav import NavItem

OPS_NS = "http://www.idpf.org/2007/ops"


def _is_toc_nav(attrib) -> bool:
    """Check for epub:type="toc" (prefixed, namespaced or bare)."""
    for key, value in attrib.items():
        if key.startswith("{"):
            namespace, _, name = key[1:].partition("}")
            if namespace != OPS_NS:
                continue
        else:
            name = local_name(key)
        if name == "type" and "toc" in value.split():
            return True
    return False


@dataclass
class _OpenItem:
    item: NavItem = field(default_factory=NavItem)
    text: list[str] = field(default_factory=list)
    # Depth of the list the item belongs to
    level: int = 0


class _NavTarget:
    """lxml parser target collecting NavItems from the TOC nav."""

    def __init__(self) -> None:
        self.items: list[NavItem] = []
        self.found = False
        self.done = False
        self.in_toc = False
        self.nav_depth = 0
        self.list_stack: list[list[NavItem]] = []
        self.item_stack: list[_OpenItem] = []
        # End events still owed for items closed early by a sibling <li>
        self.stray_li_ends = 0

    def _active(self) -> bool:
        # Content of nested nav elements inside the TOC is skipped
        return self.in_toc and self.nav_depth == 1

    def _top_is_sibling(self) -> bool:
        return bool(self.item_stack) and self.item_stack[-1].level == len(self.list_stack)

    def _close_item(self) -> None:
        state = self.item_stack.pop()
        state.item.title = normalize_space("".join(state.text))
        target = self.list_stack[-1] if self.list_stack else self.items
        target.append(state.item)

    def start(self, tag, attrib) -> None:
        if self.done:
            return
        name = local_name(tag)
        if name == "nav":
            if self.in_toc:
                self.nav_depth += 1
            elif _is_toc_nav(attrib):
                self.in_toc = True
                self.found = True
                self.nav_depth = 1
            return
        if not self._active():
            return

        if name == "ol":
            if self.item_stack:
                self.list_stack.append(self.item_stack[-1].item.children)
            else:
                self.list_stack.append(self.items)
        elif name == "li":
            # An unclosed <li> ends where its next sibling starts
            if self._top_is_sibling():
                self._close_item()
                self.stray_li_ends += 1
            self.item_stack.append(_OpenItem(level=len(self.list_stack)))
        elif name == "a" and self.item_stack:
            current = self.item_stack[-1].item
            if not current.href:
                for key, value in attrib.items():
                    if local_name(key) == "href":
                        current.href = value.strip()
                        break

    def end(self, tag) -> None:
        if self.done:
            return
        name = local_name(tag)
        if name == "nav":
            if self.in_toc:
                self.nav_depth -= 1
                if self.nav_depth == 0:
                    self.in_toc = False
                    self.done = True
            return
        if not self._active():
            return

        if name == "ol":
            if self.list_stack:
                self.list_stack.pop()
        elif name == "li":
            if self.stray_li_ends and not self._top_is_sibling():
                self.stray_li_ends -= 1
            elif self.item_stack:
                self._close_item()

    def data(self, data) -> None:
        if self.done or not self._active() or not self.item_stack:
            return
        self.item_stack[-1].text.append(data)

    def close(self) -> list[NavItem]:
        return self.items


def parse_nav_document(data: bytes) -> list[NavItem]:
    """Parse navigation document bytes into a hierarchical list of NavItems.

    Malformed markup is tolerated (the parser runs in recover mode) and HTML
    named entities are understood.

    Raises:
        NavNotFoundError: If no TOC nav exists or it yields no entries
    """
    target = _NavTarget()
    parser = etree.XMLParser(
        target=target, recover=True, resolve_entities=False, no_network=True
    )
    try:
        items = etree.fromstring(expand_named_entities(data), parser)
    except etree.XMLSyntaxError as e:
        raise NavNotFoundError(f"toc nav not found: {e}") from e

    if not target.found or not items:
        raise NavNotFoundError("toc nav not found")
    return items


def parse_nav_file(path: Path) -> list[NavItem]:
    """Read and parse a navigation document from disk."""
    return parse_nav_document(path.read_bytes())
