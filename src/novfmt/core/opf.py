"""Read and write container.xml and OPF package documents using lxml."""

import logging

from lxml import etree

from novfmt.models.package import (
    DCMeta,
    Manifest,
    ManifestItem,
    Metadata,
    MetaNode,
    PackageDocument,
    Spine,
    SpineItemRef,
)

logger = logging.getLogger(__name__)

OPF_NS = "http://www.idpf.org/2007/opf"
DC_NS = "http://purl.org/dc/elements/1.1/"
CONTAINER_NS = "urn:oasis:names:tc:opendocument:xmlns:container"
XML_NS = "http://www.w3.org/XML/1998/namespace"

EPUB_MIMETYPE = "application/epub+zip"
OPF_MEDIA_TYPE = "application/oebps-package+xml"

CONTAINER_XML = f"""<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="{CONTAINER_NS}">
  <rootfiles>
    <rootfile full-path="{{full_path}}" media-type="{OPF_MEDIA_TYPE}"/>
  </rootfiles>
</container>
"""


def _parser() -> etree.XMLParser:
    return etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)


def local_name(tag) -> str:
    """Local part of an lxml tag ("{ns}title" -> "title", "dc:title" -> "title")."""
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1].rsplit(":", 1)[-1]


def _children(element, name: str) -> list:
    return [child for child in element if local_name(child.tag) == name]


def _child(element, name: str):
    for child in element:
        if local_name(child.tag) == name:
            return child
    return None


def _text(element) -> str:
    return "".join(element.itertext())


def parse_container(data: bytes) -> list[str]:
    """Return the full-path of every rootfile declared in container.xml."""
    root = etree.fromstring(data, _parser())
    paths = []
    for element in root.iter():
        if local_name(element.tag) == "rootfile":
            full_path = (element.get("full-path") or "").strip()
            if full_path:
                paths.append(full_path)
    return paths


def render_container(full_path: str) -> bytes:
    return CONTAINER_XML.format(full_path=full_path).encode("utf-8")


def _parse_metadata(element) -> Metadata:
    metadata = Metadata()
    if element is None:
        return metadata

    targets = {
        "title": metadata.titles,
        "language": metadata.languages,
        "creator": metadata.creators,
        "identifier": metadata.identifiers,
    }
    for child in element:
        name = local_name(child.tag)
        if name in targets:
            targets[name].append(DCMeta(value=_text(child).strip(), id=child.get("id")))
        elif name == "meta":
            metadata.meta.append(
                MetaNode(
                    name=child.get("name"),
                    content=child.get("content"),
                    property=child.get("property"),
                    value=_text(child).strip(),
                    refines=child.get("refines"),
                    id=child.get("id"),
                )
            )
    return metadata


def parse_package(data: bytes) -> PackageDocument:
    """Parse OPF bytes into a PackageDocument.

    Raises:
        etree.XMLSyntaxError: If the document is not well-formed XML
        ValueError: If the root element is not <package>
    """
    root = etree.fromstring(data, _parser())
    if local_name(root.tag) != "package":
        raise ValueError(f"unexpected root element <{local_name(root.tag)}>")

    manifest = Manifest()
    manifest_el = _child(root, "manifest")
    if manifest_el is not None:
        for item in _children(manifest_el, "item"):
            item_id = item.get("id")
            href = item.get("href")
            if not item_id or href is None:
                logger.debug("Skipping manifest item without id/href")
                continue
            manifest.items.append(
                ManifestItem(
                    id=item_id,
                    href=href,
                    media_type=item.get("media-type") or "",
                    properties=item.get("properties") or "",
                    fallback=item.get("fallback") or None,
                )
            )

    spine = Spine()
    spine_el = _child(root, "spine")
    if spine_el is not None:
        spine.page_progression_direction = spine_el.get("page-progression-direction") or None
        spine.toc = spine_el.get("toc") or None
        for ref in _children(spine_el, "itemref"):
            idref = ref.get("idref")
            if idref:
                spine.itemrefs.append(SpineItemRef(idref=idref, linear=ref.get("linear")))

    return PackageDocument(
        version=root.get("version") or "",
        unique_identifier=root.get("unique-identifier"),
        lang=root.get(f"{{{XML_NS}}}lang"),
        prefix=root.get("prefix"),
        metadata=_parse_metadata(_child(root, "metadata")),
        manifest=manifest,
        spine=spine,
    )


def _opf(tag: str) -> str:
    return f"{{{OPF_NS}}}{tag}"


def _dc(tag: str) -> str:
    return f"{{{DC_NS}}}{tag}"


def render_package(pkg: PackageDocument) -> bytes:
    """Serialize a PackageDocument as an OPF document."""
    root = etree.Element(_opf("package"), nsmap={None: OPF_NS, "dc": DC_NS})
    root.set("version", pkg.version)
    if pkg.unique_identifier:
        root.set("unique-identifier", pkg.unique_identifier)
    if pkg.prefix:
        root.set("prefix", pkg.prefix)
    if pkg.lang:
        root.set(f"{{{XML_NS}}}lang", pkg.lang)

    metadata_el = etree.SubElement(root, _opf("metadata"))
    for tag, values in (
        ("identifier", pkg.metadata.identifiers),
        ("title", pkg.metadata.titles),
        ("language", pkg.metadata.languages),
        ("creator", pkg.metadata.creators),
    ):
        for dc in values:
            el = etree.SubElement(metadata_el, _dc(tag))
            if dc.id:
                el.set("id", dc.id)
            el.text = dc.value
    for meta in pkg.metadata.meta:
        el = etree.SubElement(metadata_el, _opf("meta"))
        for attr, value in (
            ("id", meta.id),
            ("name", meta.name),
            ("content", meta.content),
            ("property", meta.property),
            ("refines", meta.refines),
        ):
            if value:
                el.set(attr, value)
        if meta.property:
            el.text = meta.value

    manifest_el = etree.SubElement(root, _opf("manifest"))
    for item in pkg.manifest.items:
        el = etree.SubElement(manifest_el, _opf("item"))
        el.set("id", item.id)
        el.set("href", item.href)
        el.set("media-type", item.media_type)
        if item.properties:
            el.set("properties", item.properties)
        if item.fallback:
            el.set("fallback", item.fallback)

    spine_el = etree.SubElement(root, _opf("spine"))
    if pkg.spine.page_progression_direction:
        spine_el.set("page-progression-direction", pkg.spine.page_progression_direction)
    if pkg.spine.toc:
        spine_el.set("toc", pkg.spine.toc)
    for ref in pkg.spine.itemrefs:
        el = etree.SubElement(spine_el, _opf("itemref"))
        el.set("idref", ref.idref)
        if ref.linear:
            el.set("linear", ref.linear)

    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=True)
