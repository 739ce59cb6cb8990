"""Tests for HTML named entity handling."""

from novfmt.core.entities import expand_named_entities


class TestExpandNamedEntities:
    """Tests for expand_named_entities."""

    def test_html_entities_become_numeric(self):
        assert expand_named_entities(b"a&nbsp;b&mdash;c") == b"a&#160;b&#8212;c"

    def test_xml_entities_untouched(self):
        data = b"&amp; &lt; &gt; &quot; &apos;"
        assert expand_named_entities(data) == data

    def test_unknown_names_untouched(self):
        assert expand_named_entities(b"&notarealentity;") == b"&notarealentity;"

    def test_numeric_references_untouched(self):
        assert expand_named_entities(b"&#160;&#x2014;") == b"&#160;&#x2014;"

    def test_multi_codepoint_entity(self):
        # &NotEqualTilde; expands to two code points
        assert expand_named_entities(b"&NotEqualTilde;") == b"&#8770;&#824;"
