"""Main CLI application."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from novfmt.commands.info import execute_info
from novfmt.commands.merge import collect_sources, execute_merge
from novfmt.commands.rewrite import build_rules, execute_rewrite
from novfmt.models.options import MergeOptions, RewriteOptions, RewriteScope

app = typer.Typer(
    name="novfmt",
    help="Merge EPUB volumes into one book and rewrite EPUB content.",
    add_completion=False,
)

console = Console()


def configure_logging(verbose: bool) -> None:
    """Route novfmt log records through rich."""
    logger = logging.getLogger("novfmt")
    logger.handlers.clear()
    logger.addHandler(RichHandler(console=console, show_path=False))
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose", "-v",
            help="Show debug logging",
        ),
    ] = False,
) -> None:
    """Merge EPUB volumes into one book and rewrite EPUB content."""
    configure_logging(verbose)


@app.command()
def merge(
    sources: Annotated[
        Optional[list[Path]],
        typer.Argument(
            help="EPUB volumes to merge, in reading order",
        ),
    ] = None,
    out: Annotated[
        Path,
        typer.Option(
            "--out", "-o",
            help="Output EPUB path",
        ),
    ] = Path("merged.epub"),
    title: Annotated[
        Optional[str],
        typer.Option(
            "--title", "-t",
            help="Override the merged title (default: first volume's title)",
        ),
    ] = None,
    lang: Annotated[
        Optional[str],
        typer.Option(
            "--lang",
            help="Override the merged language (default: first volume's language)",
        ),
    ] = None,
    creators: Annotated[
        Optional[list[str]],
        typer.Option(
            "--creator", "-c",
            help="Override the creators (repeatable)",
        ),
    ] = None,
    list_files: Annotated[
        Optional[list[Path]],
        typer.Option(
            "--list",
            help="File with one volume path per line (repeatable)",
        ),
    ] = None,
    directories: Annotated[
        Optional[list[Path]],
        typer.Option(
            "--dir",
            help="Directory of .epub volumes, ordered by volume number (repeatable)",
        ),
    ] = None,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet", "-q",
            help="Suppress progress output",
        ),
    ] = False,
) -> None:
    """Merge two or more EPUB volumes into a single EPUB."""
    try:
        files = collect_sources(sources or [], list_files, directories)
        options = MergeOptions(
            out_path=out,
            title=title,
            language=lang,
            creators=creators or [],
        )
        execute_merge(
            sources=files,
            options=options,
            quiet=quiet,
            console=console,
        )
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


@app.command()
def rewrite(
    source: Annotated[
        Path,
        typer.Argument(
            help="EPUB file to rewrite",
        ),
    ],
    out: Annotated[
        Optional[Path],
        typer.Option(
            "--out", "-o",
            help="Output EPUB path (default: rewrite in place)",
        ),
    ] = None,
    scope: Annotated[
        RewriteScope,
        typer.Option(
            "--scope",
            help="Rewrite content documents (body) or package metadata (meta)",
        ),
    ] = RewriteScope.BODY,
    find: Annotated[
        Optional[str],
        typer.Option(
            "--find",
            help="Literal text to find",
        ),
    ] = None,
    replace: Annotated[
        Optional[str],
        typer.Option(
            "--replace",
            help="Replacement text",
        ),
    ] = None,
    selectors: Annotated[
        Optional[list[str]],
        typer.Option(
            "--selector",
            help="CSS selector restricting the --find rule (repeatable, body scope only)",
        ),
    ] = None,
    rules_file: Annotated[
        Optional[Path],
        typer.Option(
            "--rules",
            help="JSON file with a list of {find, replace, selectors} rules",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Count matches without writing anything",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet", "-q",
            help="Suppress summary output",
        ),
    ] = False,
) -> None:
    """Apply find/replace rules to an EPUB's content or metadata."""
    try:
        options = RewriteOptions(
            out_path=out,
            scope=scope,
            rules=build_rules(rules_file, find, replace, selectors),
            dry_run=dry_run,
        )
        execute_rewrite(
            source=source,
            options=options,
            quiet=quiet,
            console=console,
        )
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


@app.command()
def info(
    source: Annotated[
        Path,
        typer.Argument(
            help="Path to the EPUB file",
            exists=True,
            file_okay=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ],
) -> None:
    """Display book metadata and table of contents."""
    try:
        execute_info(source, console)
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
