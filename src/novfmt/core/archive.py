"""Zip extraction and EPUB packaging."""

import logging
import os
import shutil
import zipfile
from pathlib import Path

from novfmt.core.errors import WriteError

logger = logging.getLogger(__name__)

MIMETYPE_FILE = "mimetype"
MIMETYPE_MODE = 0o644


class UnsafeEntryError(ValueError):
    """Zip entry would be written outside the extraction directory."""


def _entry_mode(info: zipfile.ZipInfo) -> int:
    mode = (info.external_attr >> 16) & 0o777
    return mode or 0o644


def extract_archive(source: Path, dest: Path) -> None:
    """Extract a zip archive into ``dest``, rejecting path-traversal entries.

    Raises:
        zipfile.BadZipFile: If the archive is corrupt
        UnsafeEntryError: If an entry escapes ``dest``
        OSError: On read/write failures
    """
    root = dest.resolve()
    with zipfile.ZipFile(source) as zf:
        for info in zf.infolist():
            name = info.filename.replace("\\", "/")
            target = (root / name).resolve()
            if name.startswith("/") or not target.is_relative_to(root):
                raise UnsafeEntryError(f"zip entry {info.filename} escapes destination")

            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue

            target.parent.mkdir(parents=True, exist_ok=True)
            with zf.open(info) as src, open(target, "wb") as out:
                shutil.copyfileobj(src, out)
            os.chmod(target, _entry_mode(info))


def _add_file(zf: zipfile.ZipFile, path: Path, arcname: str, compress_type: int, mode: int) -> None:
    info = zipfile.ZipInfo.from_file(path, arcname)
    info.compress_type = compress_type
    info.external_attr = (0o100000 | mode) << 16
    with open(path, "rb") as src, zf.open(info, "w") as dst:
        shutil.copyfileobj(src, dst)


def write_epub_archive(stage_dir: Path, out_path: Path) -> Path:
    """Package a staged directory tree as an EPUB archive.

    ``mimetype`` is written first and stored uncompressed; every other file is
    deflated under its forward-slash relative path. The archive is written to
    a temporary sibling file and moved into place once complete.

    Raises:
        WriteError: If ``mimetype`` is missing or the archive cannot be written
    """
    mimetype_path = stage_dir / MIMETYPE_FILE
    if not mimetype_path.is_file():
        raise WriteError(f"staging directory has no {MIMETYPE_FILE} file")

    files = sorted(
        p for p in stage_dir.rglob("*") if p.is_file() and p != mimetype_path
    )

    temp_path = out_path.with_name(out_path.name + ".tmp")
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(temp_path, "w") as zf:
            mimetype_info = zipfile.ZipInfo(MIMETYPE_FILE)
            mimetype_info.compress_type = zipfile.ZIP_STORED
            mimetype_info.external_attr = (0o100000 | MIMETYPE_MODE) << 16
            zf.writestr(mimetype_info, mimetype_path.read_bytes())
            for path in files:
                arcname = path.relative_to(stage_dir).as_posix()
                mode = path.stat().st_mode & 0o777
                _add_file(zf, path, arcname, zipfile.ZIP_DEFLATED, mode)
        os.replace(temp_path, out_path)
    except OSError as e:
        raise WriteError(f"cannot write {out_path}: {e}") from e
    finally:
        if temp_path.exists():
            temp_path.unlink()

    logger.info("Wrote %s (%d entries)", out_path, len(files) + 1)
    return out_path
