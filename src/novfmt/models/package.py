"""Data models for the EPUB package document (OPF)."""

from pydantic import BaseModel, Field

from novfmt.core.paths import has_property


class DCMeta(BaseModel):
    """A Dublin Core metadata element (title, language, creator, identifier)."""

    value: str = ""
    id: str | None = None


class MetaNode(BaseModel):
    """Free-form <meta> node, either name/content (EPUB 2) or property/value (EPUB 3)."""

    name: str | None = None
    content: str | None = None
    property: str | None = None
    value: str = ""
    refines: str | None = None
    id: str | None = None


class Metadata(BaseModel):
    """Package metadata block."""

    titles: list[DCMeta] = Field(default_factory=list)
    languages: list[DCMeta] = Field(default_factory=list)
    creators: list[DCMeta] = Field(default_factory=list)
    identifiers: list[DCMeta] = Field(default_factory=list)
    meta: list[MetaNode] = Field(default_factory=list)

    def first_title(self) -> str:
        """Return the first non-blank title, or an empty string."""
        for title in self.titles:
            if title.value.strip():
                return title.value.strip()
        return ""

    def first_language(self) -> str:
        for lang in self.languages:
            if lang.value.strip():
                return lang.value.strip()
        return ""


class ManifestItem(BaseModel):
    """Single resource declared in the manifest."""

    id: str
    href: str
    media_type: str = ""
    properties: str = ""  # space-separated tokens, e.g. "nav cover-image"
    fallback: str | None = None

    def has_property(self, token: str) -> bool:
        return has_property(self.properties, token)


class Manifest(BaseModel):
    """Ordered list of manifest items."""

    items: list[ManifestItem] = Field(default_factory=list)

    def get(self, item_id: str) -> ManifestItem | None:
        """Look up an item by id."""
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def find_property(self, token: str) -> ManifestItem | None:
        """Return the first item carrying the given property token."""
        for item in self.items:
            if item.has_property(token):
                return item
        return None


class SpineItemRef(BaseModel):
    """Reference from the spine to a manifest item."""

    idref: str
    linear: str | None = None


class Spine(BaseModel):
    """Reading order."""

    itemrefs: list[SpineItemRef] = Field(default_factory=list)
    page_progression_direction: str | None = None
    toc: str | None = None  # EPUB 2 NCX id


class PackageDocument(BaseModel):
    """Root of a package document."""

    version: str = "3.0"
    unique_identifier: str | None = None
    lang: str | None = None
    prefix: str | None = None
    metadata: Metadata = Field(default_factory=Metadata)
    manifest: Manifest = Field(default_factory=Manifest)
    spine: Spine = Field(default_factory=Spine)

    def unique_identifier_value(self) -> str | None:
        """Return the identifier referenced by the unique-identifier attribute."""
        if not self.unique_identifier:
            return None
        for ident in self.metadata.identifiers:
            if ident.id == self.unique_identifier:
                return ident.value
        return None
