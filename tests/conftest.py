"""Shared fixtures: build small but real EPUB archives on disk."""

import zipfile
from html import escape
from pathlib import Path

import pytest

CONTAINER = """<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="{opf_path}" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""

CHAPTER = """<?xml version="1.0" encoding="UTF-8"?>
<html xmlns="http://www.w3.org/1999/xhtml">
<head><title>{title}</title></head>
<body>{body}</body>
</html>
"""

NAV = """<?xml version="1.0" encoding="UTF-8"?>
<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">
<head><title>Contents</title></head>
<body>
<nav epub:type="toc"><ol>{entries}</ol></nav>
</body>
</html>
"""

DEFAULT_CHAPTERS = [
    ("ch1", "Text/chapter1.xhtml", "Chapter 1", "<h1>Chapter 1</h1><p>The Chapter begins.</p>"),
    ("ch2", "Text/chapter2.xhtml", "Chapter 2", "<h1>Chapter 2</h1><p>Another Chapter.</p>"),
]


def build_opf(
    title: str,
    language: str,
    creators: list[str],
    chapters: list[tuple[str, str, str, str]],
    nav: bool,
    cover: bool,
    extra_manifest: str = "",
) -> str:
    meta = [
        '<dc:identifier id="uid">urn:uuid:00000000-0000-4000-8000-000000000001</dc:identifier>',
        f"<dc:title>{escape(title)}</dc:title>",
        f"<dc:language>{escape(language)}</dc:language>",
    ]
    meta += [f"<dc:creator>{escape(name)}</dc:creator>" for name in creators]
    manifest = [
        f'<item id="{item_id}" href="{href}" media-type="application/xhtml+xml"/>'
        for item_id, href, _, _ in chapters
    ]
    if nav:
        manifest.append(
            '<item id="nav" href="nav.xhtml" media-type="application/xhtml+xml" properties="nav"/>'
        )
    if cover:
        meta.append('<meta name="cover" content="cover"/>')
        manifest.append(
            '<item id="cover" href="Images/cover.jpg" media-type="image/jpeg" properties="cover-image"/>'
        )
    if extra_manifest:
        manifest.append(extra_manifest)
    spine = [f'<itemref idref="{item_id}"/>' for item_id, _, _, _ in chapters]
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<package xmlns="http://www.idpf.org/2007/opf" version="3.0" unique-identifier="uid">\n'
        '<metadata xmlns:dc="http://purl.org/dc/elements/1.1/">\n'
        + "\n".join(meta)
        + "\n</metadata>\n<manifest>\n"
        + "\n".join(manifest)
        + "\n</manifest>\n<spine>\n"
        + "\n".join(spine)
        + "\n</spine>\n</package>\n"
    )


def write_zip(path: Path, entries: dict[str, bytes | str]) -> Path:
    """Write entries (in order) into a zip; mimetype is stored uncompressed."""
    with zipfile.ZipFile(path, "w") as zf:
        for name, data in entries.items():
            compress = zipfile.ZIP_STORED if name == "mimetype" else zipfile.ZIP_DEFLATED
            zf.writestr(name, data, compress_type=compress)
    return path


@pytest.fixture
def make_epub(tmp_path):
    """Factory writing an EPUB 3 file under tmp_path and returning its path."""

    def _make(
        name: str = "book.epub",
        title: str = "Book One",
        language: str = "en",
        creators: list[str] | None = None,
        chapters: list[tuple[str, str, str, str]] | None = None,
        nav: bool = True,
        nav_document: str | None = None,
        cover: bool = True,
        opf_dir: str = "OEBPS",
        extra_manifest: str = "",
        extra_entries: dict[str, bytes | str] | None = None,
    ) -> Path:
        chapters = DEFAULT_CHAPTERS if chapters is None else chapters
        creators = ["Alice"] if creators is None else creators
        prefix = f"{opf_dir}/" if opf_dir else ""

        entries: dict[str, bytes | str] = {
            "mimetype": "application/epub+zip",
            "META-INF/container.xml": CONTAINER.format(opf_path=f"{prefix}content.opf"),
            f"{prefix}content.opf": build_opf(
                title, language, creators, chapters, nav, cover, extra_manifest
            ),
        }
        for _, href, chapter_title, body in chapters:
            entries[prefix + href] = CHAPTER.format(title=escape(chapter_title), body=body)
        if nav:
            if nav_document is None:
                nav_document = NAV.format(
                    entries="".join(
                        f'<li><a href="{href}">{escape(chapter_title)}</a></li>'
                        for _, href, chapter_title, _ in chapters
                    )
                )
            entries[f"{prefix}nav.xhtml"] = nav_document
        if cover:
            entries[f"{prefix}Images/cover.jpg"] = b"\xff\xd8\xff\xe0fake-jpeg"
        entries.update(extra_entries or {})

        path = tmp_path / name
        return write_zip(path, entries)

    return _make


@pytest.fixture
def isolated_tempdir(tmp_path, monkeypatch):
    """Redirect tempfile.mkdtemp into a dedicated directory for cleanup checks."""
    import tempfile

    temp_root = tmp_path / "tmp"
    temp_root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(temp_root))
    return temp_root


@pytest.fixture
def make_zip(tmp_path):
    """Factory writing an arbitrary zip archive under tmp_path."""

    def _make(name: str, entries: dict[str, bytes | str]) -> Path:
        return write_zip(tmp_path / name, entries)

    return _make
