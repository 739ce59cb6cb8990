"""Info command implementation."""

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.tree import Tree

from novfmt.core.volume_loader import load_volume
from novfmt.models.nav import NavItem
from novfmt.models.volume import Volume


def _add_nav_nodes(tree: Tree, items: list[NavItem]) -> None:
    for item in items:
        label = item.title or "[dim](untitled)[/]"
        if item.href:
            label += f" [dim]{item.href}[/]"
        branch = tree.add(label)
        _add_nav_nodes(branch, item.children)


def build_info_panel(volume: Volume) -> Panel:
    """Build the book information panel for a loaded volume."""
    metadata = volume.package.metadata
    creators = [c.value for c in metadata.creators if c.value]
    info_lines = [
        f"[bold]{volume.display_name}[/]",
        "",
        f"[dim]Creator(s):[/] {', '.join(creators) or 'Unknown'}",
        f"[dim]Language:[/] {metadata.first_language() or 'Unknown'}",
        f"[dim]Identifier:[/] {volume.package.unique_identifier_value() or 'Unknown'}",
        f"[dim]EPUB version:[/] {volume.package.version or 'Unknown'}",
        f"[dim]Manifest items:[/] {len(volume.package.manifest.items)}",
        f"[dim]Spine items:[/] {len(volume.package.spine.itemrefs)}",
        f"[dim]Navigation:[/] {volume.nav_href or 'none'}",
        f"[dim]Cover:[/] {volume.cover_id or 'none'}",
    ]
    return Panel("\n".join(info_lines), title="Book Information", border_style="green")


def execute_info(source: Path, console: Console) -> None:
    """Display book metadata and table of contents."""
    volume = load_volume(0, source)
    try:
        console.print()
        console.print(build_info_panel(volume))
        console.print()
        if volume.nav_items:
            tree = Tree("[bold cyan]Table of Contents[/]")
            _add_nav_nodes(tree, volume.nav_items)
            console.print(tree)
        else:
            console.print("[dim]No table of contents[/]")
        console.print()
    finally:
        volume.release()
