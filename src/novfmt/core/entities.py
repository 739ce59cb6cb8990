"""HTML named entities in XHTML sources.

EPUB content documents are parsed as XML, which only knows the five
predefined entities. References like ``&nbsp;`` or ``&mdash;`` are rewritten
to numeric character references first so the recovering parsers keep them.
"""

import re
from html.entities import html5

XML_ENTITIES = frozenset({"amp", "lt", "gt", "quot", "apos"})

_NAMED_ENTITY = re.compile(rb"&([A-Za-z][A-Za-z0-9]{0,31});")


def _numeric_reference(match: re.Match) -> bytes:
    name = match.group(1).decode("ascii")
    if name in XML_ENTITIES:
        return match.group(0)
    text = html5.get(f"{name};")
    if text is None:
        return match.group(0)
    return "".join(f"&#{ord(char)};" for char in text).encode("ascii")


def expand_named_entities(data: bytes) -> bytes:
    """Replace HTML named entity references with numeric references.

    "&nbsp;" -> "&#160;", "&mdash;" -> "&#8212;". XML's predefined entities
    and unknown names are left alone.
    """
    if b"&" not in data:
        return data
    return _NAMED_ENTITY.sub(_numeric_reference, data)
