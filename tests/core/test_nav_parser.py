"""Tests for the navigation document parser."""

import pytest

from novfmt.core.errors import NavNotFoundError
from novfmt.core.nav_parser import parse_nav_document

NESTED_NAV = b"""<?xml version="1.0" encoding="UTF-8"?>
<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">
<body>
<nav epub:type="landmarks"><ol><li><a href="cover.xhtml">Cover</a></li></ol></nav>
<nav epub:type="toc">
  <h1>Contents</h1>
  <ol>
    <li><a href="ch1.xhtml">Chapter
        One</a></li>
    <li><a href="ch2.xhtml">Chapter Two</a>
      <ol>
        <li><a href="ch2.xhtml#s1">Section 2.1</a></li>
      </ol>
    </li>
  </ol>
</nav>
</body>
</html>
"""


class TestParseNavDocument:
    """Tests for parse_nav_document."""

    def test_hierarchy(self):
        items = parse_nav_document(NESTED_NAV)

        assert [item.title for item in items] == ["Chapter One", "Chapter Two"]
        assert [item.href for item in items] == ["ch1.xhtml", "ch2.xhtml"]
        assert items[0].children == []
        assert len(items[1].children) == 1
        assert items[1].children[0].title == "Section 2.1"
        assert items[1].children[0].href == "ch2.xhtml#s1"

    def test_other_nav_elements_ignored(self):
        items = parse_nav_document(NESTED_NAV)
        assert "Cover" not in [item.title for item in items]

    def test_nested_nav_inside_toc_skipped(self):
        data = b"""<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">
<body><nav epub:type="toc"><ol>
<li><a href="a.xhtml">A</a></li>
<nav><ol><li><a href="hidden.xhtml">Hidden</a></li></ol></nav>
<li><a href="b.xhtml">B</a></li>
</ol></nav></body></html>"""

        items = parse_nav_document(data)

        assert [item.href for item in items] == ["a.xhtml", "b.xhtml"]

    def test_label_without_anchor(self):
        data = b"""<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">
<body><nav epub:type="toc"><ol>
<li><span>Part I</span><ol><li><a href="a.xhtml">A</a></li></ol></li>
</ol></nav></body></html>"""

        items = parse_nav_document(data)

        assert items[0].title == "Part I"
        assert items[0].href == ""
        assert items[0].children[0].href == "a.xhtml"

    def test_first_anchor_wins(self):
        data = b"""<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">
<body><nav epub:type="toc"><ol>
<li><a href="first.xhtml">One</a> <a href="second.xhtml">Two</a></li>
</ol></nav></body></html>"""

        items = parse_nav_document(data)

        assert items[0].href == "first.xhtml"

    def test_malformed_markup_tolerated(self):
        data = b"""<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">
<body><nav epub:type="toc"><ol>
<li><a href="a.xhtml">A &amp; B</a></li>
<li><a href="b.xhtml">Broken<br></a></li>
</ol></nav>"""

        items = parse_nav_document(data)

        assert items[0].title == "A & B"
        assert items[0].href == "a.xhtml"

    def test_named_entities_in_titles(self):
        data = b"""<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">
<body><nav epub:type="toc"><ol>
<li><a href="a.xhtml">Part&nbsp;One</a></li>
<li><a href="b.xhtml">Intro &mdash; Reprise</a></li>
</ol></nav></body></html>"""

        items = parse_nav_document(data)

        assert items[0].title == "Part One"
        assert items[1].title == "Intro \u2014 Reprise"

    def test_unclosed_list_item_keeps_order(self):
        data = b"""<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">
<body><nav epub:type="toc"><ol><li><a href="a.xhtml">A</a><li><a href="b.xhtml">B</a></li></ol></nav></body></html>"""

        items = parse_nav_document(data)

        assert [item.href for item in items] == ["a.xhtml", "b.xhtml"]
        assert [item.title for item in items] == ["A", "B"]
        assert items[0].children == []

    def test_unclosed_list_items_in_nested_list(self):
        data = b"""<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">
<body><nav epub:type="toc"><ol>
<li><a href="p.xhtml">Part</a><ol><li><a href="x.xhtml">X</a><li><a href="y.xhtml">Y</a></li></ol></li>
<li><a href="q.xhtml">Next</a></li>
</ol></nav></body></html>"""

        items = parse_nav_document(data)

        assert [item.title for item in items] == ["Part", "Next"]
        assert [child.href for child in items[0].children] == ["x.xhtml", "y.xhtml"]

    def test_missing_toc_raises(self):
        data = b"""<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">
<body><nav epub:type="landmarks"><ol><li><a href="a.xhtml">A</a></li></ol></nav></body></html>"""

        with pytest.raises(NavNotFoundError):
            parse_nav_document(data)

    def test_empty_toc_raises(self):
        data = b"""<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">
<body><nav epub:type="toc"><ol></ol></nav></body></html>"""

        with pytest.raises(NavNotFoundError):
            parse_nav_document(data)
