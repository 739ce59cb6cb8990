"""Merge command implementation."""

import re
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from novfmt.commands.signals import interrupt_guard
from novfmt.core.errors import InputError
from novfmt.core.merger import merge_epubs
from novfmt.models.options import MergeOptions, MergeResult

_DIGITS = re.compile(r"\d+")


@dataclass
class VolumeCandidate:
    """An EPUB found while scanning a directory."""

    path: Path
    name: str
    number: int | None


def extract_volume_number(name: str) -> int | None:
    """Return the first number in a file stem ("Vol 12 - x.epub" -> 12)."""
    match = _DIGITS.search(Path(name).stem)
    return int(match.group(0)) if match else None


def _sort_key(candidate: VolumeCandidate) -> tuple:
    # Numbered files first, by number; then case-insensitive name
    if candidate.number is not None:
        return (0, candidate.number, candidate.name.lower(), candidate.name)
    return (1, 0, candidate.name.lower(), candidate.name)


def expand_directories(directories: list[Path]) -> list[Path]:
    """List .epub files of each directory in volume order."""
    volumes: list[Path] = []
    for directory in directories:
        if not directory.is_dir():
            raise InputError(f"dir {directory}: not a directory")
        candidates = [
            VolumeCandidate(path=entry, name=entry.name, number=extract_volume_number(entry.name))
            for entry in directory.iterdir()
            if entry.is_file() and entry.suffix.lower() == ".epub"
        ]
        volumes.extend(c.path for c in sorted(candidates, key=_sort_key))
    return volumes


def expand_list_files(list_files: list[Path]) -> list[Path]:
    """Read newline-separated volume paths, skipping blanks and # comments."""
    volumes: list[Path] = []
    for list_file in list_files:
        try:
            lines = list_file.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            raise InputError(f"list {list_file}: {e}") from e
        for line in lines:
            line = line.strip()
            if line and not line.startswith("#"):
                volumes.append(Path(line))
    return volumes


def collect_sources(
    sources: list[Path],
    list_files: list[Path] | None = None,
    directories: list[Path] | None = None,
) -> list[Path]:
    """Positional sources first, then list-file entries, then directory scans."""
    files = list(sources)
    if list_files:
        files.extend(expand_list_files(list_files))
    if directories:
        files.extend(expand_directories(directories))
    return files


def execute_merge(
    sources: list[Path],
    options: MergeOptions,
    quiet: bool,
    console: Console,
) -> MergeResult:
    """Execute the merge command."""
    if len(sources) < 2:
        raise InputError("need at least two EPUB files to merge")
    for source in sources:
        if not source.is_file():
            raise InputError(f"File not found: {source}")

    with interrupt_guard(console) as check_interrupt:
        if quiet:
            result = merge_epubs(sources, options, check_interrupt)
        else:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
            ) as progress:
                progress.add_task(f"Merging {len(sources)} volumes...", total=None)
                result = merge_epubs(sources, options, check_interrupt)

    if not quiet:
        summary_lines = [
            f"[green]Merged {result.volume_count} volume(s)[/]",
            "",
            f"[dim]Title:[/] {result.title}",
            f"[dim]Identifier:[/] {result.identifier}",
            f"[dim]Manifest items:[/] {result.manifest_count}",
            f"[dim]Spine items:[/] {result.spine_count}",
            f"[dim]Cover:[/] {result.cover_id or 'none'}",
            f"[dim]Output:[/] {result.out_path}",
        ]
        console.print()
        console.print(
            Panel(
                "\n".join(summary_lines),
                title="Complete",
                border_style="green",
            )
        )

    return result
