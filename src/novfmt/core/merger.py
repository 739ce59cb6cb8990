"""Merge several EPUB volumes into a single EPUB."""

import logging
import os
import posixpath
import shutil
import tempfile
import uuid
from collections.abc import Callable, Sequence
from contextlib import ExitStack
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import unquote

from novfmt.core.archive import MIMETYPE_FILE, write_epub_archive
from novfmt.core.errors import InputError, WriteError, raise_if_interrupted
from novfmt.core.nav_builder import build_nav_document
from novfmt.core.opf import EPUB_MIMETYPE, render_container, render_package
from novfmt.core.paths import add_property, normalize_epub_path, remove_property
from novfmt.core.volume_loader import load_volume
from novfmt.models.options import MergeOptions, MergeResult
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
from novfmt.models.volume import Volume

logger = logging.getLogger(__name__)

STAGE_TEMP_PREFIX = "novfmt-stage-"
CONTENT_DIR = "OEBPS"
VOLUMES_DIR = "Volumes"
PACKAGE_FILE = "content.opf"
NAV_FILE = "nav.xhtml"
NAV_ID = "nav"
BOOK_ID = "bookid"
XHTML_MEDIA_TYPE = "application/xhtml+xml"

DEFAULT_TITLE = "Merged EPUB"
DEFAULT_LANGUAGE = "en"
DEFAULT_CREATOR = "Unknown"
VOCAB_PREFIX = "novfmt: https://novfmt.local/vocab#"
SOURCE_COUNT_PROPERTY = "novfmt:source-count"


@dataclass
class MergeState:
    """Manifest, spine and cover accumulated across volumes."""

    manifest: Manifest = field(default_factory=Manifest)
    spine: Spine = field(default_factory=Spine)
    id_href: dict[str, str] = field(default_factory=dict)
    cover_id: str = ""


def new_identifier() -> str:
    """Generate a fresh urn:uuid identifier (UUID v4)."""
    return f"urn:uuid:{uuid.uuid4()}"


def copy_volume_payload(
    volume: Volume,
    dest: Path,
    check_interrupt: Callable[[], bool] | None = None,
) -> int:
    """Copy a volume's package directory into ``dest``.

    The volume's own package document and navigation document are skipped,
    as are mimetype and META-INF when the package sits at the archive root.

    Returns the number of files copied.
    """
    package_dir = volume.package_dir
    at_root = package_dir.resolve() == volume.temp_dir.resolve()
    nav_rel = ""
    if volume.nav_href:
        nav_rel = normalize_epub_path(unquote(volume.nav_href.partition("#")[0]))

    copied = 0
    for path in sorted(package_dir.rglob("*")):
        if not path.is_file() or path == volume.package_path:
            continue
        rel = path.relative_to(package_dir).as_posix()
        if rel == nav_rel:
            continue
        if at_root and (rel == MIMETYPE_FILE or rel.startswith("META-INF/")):
            continue

        raise_if_interrupted(check_interrupt)
        target = dest / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(path, target)
        copied += 1

    logger.debug("Copied %d file(s) from %s into %s", copied, volume.source_path, dest)
    return copied


def merge_volume(volume: Volume, state: MergeState) -> None:
    """Remap one volume's manifest and spine into the merged state.

    ``volume.prefix`` must already be assigned.
    """
    items = volume.package.manifest.items
    id_map = {
        item.id: volume.remap_id(item.id) for item in items if not item.has_property("nav")
    }

    for item in items:
        if item.id not in id_map:
            continue
        new_id = id_map[item.id]
        href = normalize_epub_path(posixpath.join(volume.prefix, item.href))
        entry = ManifestItem(
            id=new_id,
            href=href,
            media_type=item.media_type,
            properties=remove_property(item.properties, "cover-image"),
        )
        if item.fallback:
            entry.fallback = id_map.get(item.fallback)
            if entry.fallback is None:
                logger.warning(
                    "%s: dropping fallback %s of item %s",
                    volume.source_path,
                    item.fallback,
                    item.id,
                )

        if volume.cover_id:
            is_cover = item.id == volume.cover_id
        else:
            is_cover = item.has_property("cover-image")
        if is_cover and not state.cover_id:
            entry.properties = add_property(entry.properties, "cover-image")
            state.cover_id = new_id

        state.manifest.items.append(entry)
        state.id_href[new_id] = href

    direction = volume.package.spine.page_progression_direction
    if not state.spine.page_progression_direction and direction:
        state.spine.page_progression_direction = direction

    for ref in volume.package.spine.itemrefs:
        new_id = id_map.get(ref.idref)
        if new_id is None:
            logger.debug("%s: dropping spine reference %s", volume.source_path, ref.idref)
            continue
        state.spine.itemrefs.append(SpineItemRef(idref=new_id, linear=ref.linear))
        if not volume.first_href:
            volume.first_href = state.id_href[new_id]


def _merged_creators(volumes: Sequence[Volume], options: MergeOptions) -> list[str]:
    if options.creators:
        return list(options.creators)

    seen: set[str] = set()
    for volume in volumes:
        for creator in volume.package.metadata.creators:
            name = creator.value.strip()
            if name:
                seen.add(name)
    return sorted(seen) or [DEFAULT_CREATOR]


def build_package(
    volumes: Sequence[Volume],
    manifest: Manifest,
    spine: Spine,
    options: MergeOptions,
    cover_id: str = "",
) -> PackageDocument:
    """Assemble the merged package document.

    A new identifier is generated on every call; nothing is inherited from
    the source identifiers.
    """
    first = volumes[0] if volumes else None

    title = options.title
    if not title and first:
        title = first.package.metadata.first_title() or first.display_name
    title = title or DEFAULT_TITLE

    language = options.language
    if not language and first:
        language = first.package.metadata.first_language()
    language = language or DEFAULT_LANGUAGE

    metadata = Metadata(
        titles=[DCMeta(value=title)],
        languages=[DCMeta(value=language)],
        creators=[DCMeta(value=name) for name in _merged_creators(volumes, options)],
        identifiers=[DCMeta(id=BOOK_ID, value=new_identifier())],
        meta=[MetaNode(property=SOURCE_COUNT_PROPERTY, value=str(len(volumes)))],
    )
    if cover_id:
        metadata.meta.append(MetaNode(name="cover", content=cover_id))

    return PackageDocument(
        version="3.0",
        unique_identifier=BOOK_ID,
        lang=language,
        prefix=VOCAB_PREFIX,
        metadata=metadata,
        manifest=manifest,
        spine=spine,
    )


def _write_stage_files(stage_dir: Path, volumes: list[Volume], pkg: PackageDocument) -> None:
    content_dir = stage_dir / CONTENT_DIR
    content_dir.mkdir(parents=True, exist_ok=True)
    (content_dir / NAV_FILE).write_text(build_nav_document(volumes), encoding="utf-8")
    (content_dir / PACKAGE_FILE).write_bytes(render_package(pkg))

    meta_inf = stage_dir / "META-INF"
    meta_inf.mkdir(parents=True, exist_ok=True)
    (meta_inf / "container.xml").write_bytes(render_container(f"{CONTENT_DIR}/{PACKAGE_FILE}"))

    mimetype = stage_dir / MIMETYPE_FILE
    mimetype.write_text(EPUB_MIMETYPE, encoding="ascii")
    os.chmod(mimetype, 0o644)


def merge_epubs(
    sources: Sequence[Path | str],
    options: MergeOptions,
    check_interrupt: Callable[[], bool] | None = None,
) -> MergeResult:
    """Merge two or more EPUB volumes, in order, into ``options.out_path``.

    Every temporary directory (volume extractions and the staging tree) is
    removed before returning, whether the merge succeeds, fails or is
    interrupted.

    Raises:
        InputError: Fewer than two sources or no output path
        ArchiveError: A source could not be loaded
        WriteError: Staging or output could not be written
        Interrupted: check_interrupt signalled cancellation
    """
    if len(sources) < 2:
        raise InputError("need at least two input EPUB files")
    if not options.out_path:
        raise InputError("output path is required")

    with ExitStack() as cleanup:
        volumes: list[Volume] = []
        for index, source in enumerate(sources):
            raise_if_interrupted(check_interrupt)
            volume = load_volume(index, Path(source), check_interrupt)
            cleanup.callback(volume.release)
            volumes.append(volume)

        try:
            stage_dir = Path(tempfile.mkdtemp(prefix=STAGE_TEMP_PREFIX))
        except OSError as e:
            raise WriteError(f"cannot create staging directory: {e}") from e
        cleanup.callback(shutil.rmtree, stage_dir, ignore_errors=True)

        state = MergeState()
        for volume in volumes:
            raise_if_interrupted(check_interrupt)
            volume.prefix = f"{VOLUMES_DIR}/{volume.id_tag}"
            dest = stage_dir / CONTENT_DIR / VOLUMES_DIR / volume.id_tag
            try:
                copy_volume_payload(volume, dest, check_interrupt)
            except OSError as e:
                raise WriteError(f"{volume.source_path}: {e}") from e
            merge_volume(volume, state)

        state.manifest.items.append(
            ManifestItem(id=NAV_ID, href=NAV_FILE, media_type=XHTML_MEDIA_TYPE, properties="nav")
        )
        pkg = build_package(volumes, state.manifest, state.spine, options, state.cover_id)

        raise_if_interrupted(check_interrupt)
        try:
            _write_stage_files(stage_dir, volumes, pkg)
        except OSError as e:
            raise WriteError(f"cannot write staging files: {e}") from e

        out_path = write_epub_archive(stage_dir, Path(options.out_path))

    logger.info("Merged %d volume(s) into %s", len(volumes), out_path)
    return MergeResult(
        out_path=out_path,
        title=pkg.metadata.titles[0].value,
        identifier=pkg.metadata.identifiers[0].value,
        volume_count=len(volumes),
        manifest_count=len(pkg.manifest.items),
        spine_count=len(pkg.spine.itemrefs),
        cover_id=state.cover_id or None,
    )
