"""Option and result models for merge and rewrite operations."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class MergeOptions(BaseModel):
    """Options consumed by the merge engine."""

    out_path: Path | None = None
    title: str | None = None
    language: str | None = None
    creators: list[str] = Field(default_factory=list)


class MergeResult(BaseModel):
    """Summary of a completed merge."""

    out_path: Path
    title: str
    identifier: str
    volume_count: int
    manifest_count: int
    spine_count: int
    cover_id: str | None = None


class RewriteScope(str, Enum):
    """Where rewrite rules are applied."""

    BODY = "body"
    META = "meta"


class RewriteRule(BaseModel):
    """Find/replace rule, optionally restricted to elements matching selectors."""

    find: str
    replace: str = ""
    selectors: list[str] = Field(default_factory=list)


class RewriteOptions(BaseModel):
    """Options consumed by the rewrite engine."""

    out_path: Path | None = None  # None rewrites the source in place
    scope: RewriteScope = RewriteScope.BODY
    rules: list[RewriteRule] = Field(default_factory=list)
    dry_run: bool = False


class RewriteStats(BaseModel):
    """Aggregate statistics of a rewrite run."""

    match_count: int = 0
    files_changed: int = 0
    changed_files: list[str] = Field(default_factory=list)
    dry_run: bool = False
