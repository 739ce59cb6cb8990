"""Open a source EPUB and load it as a Volume."""

import logging
import shutil
import tempfile
import zipfile
from collections.abc import Callable
from pathlib import Path
from urllib.parse import unquote

from lxml import etree

from novfmt.core.archive import UnsafeEntryError, extract_archive
from novfmt.core.errors import ArchiveError, NavNotFoundError, raise_if_interrupted
from novfmt.core.nav_parser import parse_nav_file
from novfmt.core.opf import parse_container, parse_package
from novfmt.models.nav import NavItem
from novfmt.models.package import PackageDocument
from novfmt.models.volume import Volume

logger = logging.getLogger(__name__)

VOLUME_TEMP_PREFIX = "novfmt-volume-"
CONTAINER_PATH = Path("META-INF") / "container.xml"


def find_cover_id(pkg: PackageDocument) -> str:
    """Detect the cover image's manifest id.

    Prefers a <meta name="cover" content="..."/> node that names an existing
    manifest item, then the first manifest item carrying the cover-image
    property.
    """
    for meta in pkg.metadata.meta:
        if (meta.name or "").lower() != "cover":
            continue
        item = pkg.manifest.get((meta.content or "").strip())
        if item:
            return item.id
    item = pkg.manifest.find_property("cover-image")
    return item.id if item else ""


def resolve_href(base_dir: Path, href: str) -> Path:
    """Resolve a manifest href (percent-encoded, maybe with fragment) to a file path."""
    path = unquote(href.partition("#")[0])
    return base_dir / Path(*[part for part in path.split("/") if part])


def _load_nav(pkg_dir: Path, nav_href: str, source: Path) -> list[NavItem]:
    nav_path = resolve_href(pkg_dir, nav_href)
    try:
        return parse_nav_file(nav_path)
    except OSError as e:
        raise ArchiveError(source, f"read nav {nav_href}: {e}") from e
    except NavNotFoundError as e:
        raise ArchiveError(source, f"parse nav {nav_href}: {e}") from e


def load_volume(
    index: int,
    source: Path,
    check_interrupt: Callable[[], bool] | None = None,
) -> Volume:
    """Extract ``source`` to a private temporary directory and parse it.

    The returned volume owns its temporary directory. On any failure the
    directory is removed before the error propagates.

    Args:
        index: Position of the volume in the input list (0-based)
        source: Path to the EPUB archive
        check_interrupt: Polled between steps; a truthy result aborts the load

    Raises:
        ArchiveError: If the archive, its container/package or its navigation
            document is unusable
        Interrupted: If check_interrupt signalled cancellation
    """
    raise_if_interrupted(check_interrupt)
    source = Path(source)
    temp_dir = Path(tempfile.mkdtemp(prefix=VOLUME_TEMP_PREFIX))

    try:
        raise_if_interrupted(check_interrupt)
        try:
            extract_archive(source, temp_dir)
        except (zipfile.BadZipFile, UnsafeEntryError, OSError) as e:
            raise ArchiveError(source, f"extract: {e}") from e
        raise_if_interrupted(check_interrupt)

        try:
            rootfiles = parse_container((temp_dir / CONTAINER_PATH).read_bytes())
        except OSError as e:
            raise ArchiveError(source, f"read container.xml: {e}") from e
        except etree.XMLSyntaxError as e:
            raise ArchiveError(source, f"parse container.xml: {e}") from e
        if not rootfiles:
            raise ArchiveError(source, "container missing rootfile")

        package_path = resolve_href(temp_dir, rootfiles[0])
        raise_if_interrupted(check_interrupt)
        try:
            package = parse_package(package_path.read_bytes())
        except OSError as e:
            raise ArchiveError(source, f"read package {rootfiles[0]}: {e}") from e
        except (etree.XMLSyntaxError, ValueError) as e:
            raise ArchiveError(source, f"parse package: {e}") from e

        package_dir = package_path.parent
        nav_item = package.manifest.find_property("nav")
        nav_href = nav_item.href if nav_item else ""
        nav_items = _load_nav(package_dir, nav_href, source) if nav_href else []

        volume = Volume(
            index=index,
            source_path=source,
            temp_dir=temp_dir,
            package_path=package_path,
            package_dir=package_dir,
            package=package,
            nav_href=nav_href,
            nav_items=nav_items,
            display_name=package.metadata.first_title() or f"Volume {index + 1}",
            cover_id=find_cover_id(package),
        )
    except BaseException:
        shutil.rmtree(temp_dir, ignore_errors=True)
        raise

    logger.info(
        "Loaded %s: %d manifest item(s), %d spine item(s)",
        source,
        len(package.manifest.items),
        len(package.spine.itemrefs),
    )
    return volume
