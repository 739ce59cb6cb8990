"""Path and token helpers for EPUB-internal references."""

import posixpath


def normalize_epub_path(path: str) -> str:
    """Normalize an EPUB-internal path to clean forward-slash form.

    "foo\\bar\\baz.xhtml" -> "foo/bar/baz.xhtml"
    "foo/../bar/chapter.xhtml" -> "bar/chapter.xhtml"
    "./nav.xhtml" -> "nav.xhtml"
    """
    return posixpath.normpath(path.replace("\\", "/"))


def join_href(prefix: str, href: str) -> str:
    """Rebase an href under ``prefix``, keeping any fragment.

    Fragment-only and absolute (scheme) hrefs are returned unchanged.
    """
    href = href.strip()
    if not href:
        return ""
    if href.startswith("#") or "://" in href:
        return href

    base, sep, fragment = href.partition("#")
    if not base and sep:
        return "#" + fragment

    joined = normalize_epub_path(posixpath.join(prefix, base))
    if sep:
        joined = f"{joined}#{fragment}"
    return joined


def has_property(properties: str | None, token: str) -> bool:
    """Check whether a space-separated property list contains ``token``."""
    if not properties:
        return False
    return token in properties.split()


def add_property(properties: str | None, token: str) -> str:
    """Append ``token`` to a property list unless it is already present."""
    tokens = (properties or "").split()
    if token not in tokens:
        tokens.append(token)
    return " ".join(tokens)


def remove_property(properties: str | None, token: str) -> str:
    return " ".join(t for t in (properties or "").split() if t != token)


def normalize_space(text: str) -> str:
    """Collapse whitespace runs into single spaces and trim the ends."""
    return " ".join(text.split())
