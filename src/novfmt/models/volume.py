"""Data model for a loaded source volume."""

import shutil
from pathlib import Path

from pydantic import BaseModel, Field

from novfmt.models.nav import NavItem
from novfmt.models.package import PackageDocument


class Volume(BaseModel):
    """One source EPUB extracted into its own temporary directory.

    The volume owns ``temp_dir``; call ``release()`` once the merge or
    rewrite output is finalized.
    """

    index: int
    source_path: Path
    temp_dir: Path
    package_path: Path
    package_dir: Path
    package: PackageDocument
    nav_href: str = ""
    nav_items: list[NavItem] = Field(default_factory=list)
    display_name: str = ""
    cover_id: str = ""
    # Assigned during merge
    prefix: str = ""
    first_href: str = ""

    @property
    def id_tag(self) -> str:
        """Namespace tag used to prefix remapped manifest ids (v0001, v0002, ...)."""
        return f"v{self.index + 1:04d}"

    def remap_id(self, item_id: str) -> str:
        return f"{self.id_tag}_{item_id}"

    def release(self) -> None:
        """Remove the extraction directory."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)
