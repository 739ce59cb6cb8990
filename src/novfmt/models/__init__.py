"""Data models."""

from novfmt.models.nav import NavItem
from novfmt.models.options import (
    MergeOptions,
    MergeResult,
    RewriteOptions,
    RewriteRule,
    RewriteScope,
    RewriteStats,
)
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

__all__ = [
    # Package models
    "DCMeta",
    "MetaNode",
    "Metadata",
    "ManifestItem",
    "Manifest",
    "SpineItemRef",
    "Spine",
    "PackageDocument",
    # Navigation and volumes
    "NavItem",
    "Volume",
    # Options and results
    "MergeOptions",
    "MergeResult",
    "RewriteScope",
    "RewriteRule",
    "RewriteOptions",
    "RewriteStats",
]
