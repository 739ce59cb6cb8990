"""Rewrite command implementation."""

import json
from pathlib import Path

from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from novfmt.commands.signals import interrupt_guard
from novfmt.core.errors import InputError
from novfmt.core.rewriter import rewrite_epub
from novfmt.models.options import RewriteOptions, RewriteRule, RewriteScope, RewriteStats

_RULE_LIST = TypeAdapter(list[RewriteRule])


def load_rules_file(path: Path) -> list[RewriteRule]:
    """Load rules from a JSON array of {"find", "replace", "selectors"} objects."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return _RULE_LIST.validate_python(data)
    except OSError as e:
        raise InputError(f"rules {path}: {e}") from e
    except (json.JSONDecodeError, ValidationError) as e:
        raise InputError(f"rules {path}: invalid rule file: {e}") from e


def build_rules(
    rules_file: Path | None,
    find: str | None,
    replace: str | None,
    selectors: list[str] | None,
) -> list[RewriteRule]:
    """Combine rules from a rules file with a single --find/--replace rule."""
    rules = load_rules_file(rules_file) if rules_file else []
    if find is not None:
        rules.append(RewriteRule(find=find, replace=replace or "", selectors=selectors or []))
    elif replace is not None or selectors:
        raise InputError("--replace and --selector require --find")
    if not rules:
        raise InputError("no rewrite rules given (use --find/--replace or --rules)")
    return rules


def display_stats(stats: RewriteStats, scope: RewriteScope, out_path: Path, console: Console) -> None:
    """Print a summary of a rewrite run."""
    if stats.changed_files:
        table = Table(title="Changed Files", show_header=True, header_style="bold cyan")
        table.add_column("#", style="dim", width=4)
        table.add_column("File", style="white")
        for i, name in enumerate(stats.changed_files, start=1):
            table.add_row(str(i), name)
        console.print(table)

    title = "Dry Run" if stats.dry_run else "Complete"
    summary_lines = [
        f"[green]{stats.match_count} match(es) in {stats.files_changed} file(s)[/]",
        "",
        f"[dim]Scope:[/] {scope.value}",
    ]
    if stats.dry_run:
        summary_lines.append("[yellow]No files were written[/]")
    else:
        summary_lines.append(f"[dim]Output:[/] {out_path}")

    console.print()
    console.print(
        Panel(
            "\n".join(summary_lines),
            title=title,
            border_style="yellow" if stats.dry_run else "green",
        )
    )


def execute_rewrite(
    source: Path,
    options: RewriteOptions,
    quiet: bool,
    console: Console,
) -> RewriteStats:
    """Execute the rewrite command."""
    if not source.is_file():
        raise InputError(f"File not found: {source}")

    with interrupt_guard(console) as check_interrupt:
        stats = rewrite_epub(source, options, check_interrupt)

    if not quiet:
        display_stats(stats, options.scope, options.out_path or source, console)
    return stats
