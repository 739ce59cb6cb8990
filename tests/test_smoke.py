"""Smoke tests: every module imports and the CLI is wired up."""

import importlib

import pytest

MODULES = [
    "novfmt.cli",
    "novfmt.commands.info",
    "novfmt.commands.merge",
    "novfmt.commands.rewrite",
    "novfmt.commands.signals",
    "novfmt.core.archive",
    "novfmt.core.errors",
    "novfmt.core.merger",
    "novfmt.core.nav_builder",
    "novfmt.core.nav_parser",
    "novfmt.core.opf",
    "novfmt.core.paths",
    "novfmt.core.rewriter",
    "novfmt.core.volume_loader",
    "novfmt.models",
]


@pytest.mark.parametrize("name", MODULES)
def test_module_imports(name):
    assert importlib.import_module(name) is not None


def test_help_lists_commands():
    from typer.testing import CliRunner

    from novfmt.cli import app

    result = CliRunner().invoke(app, ["--help"])

    assert result.exit_code == 0
    for command in ("merge", "rewrite", "info"):
        assert command in result.output


def test_errors_share_base_class():
    from novfmt.core import errors

    for cls in (
        errors.InputError,
        errors.ArchiveError,
        errors.NavNotFoundError,
        errors.RuleError,
        errors.ContentParseError,
        errors.WriteError,
        errors.Interrupted,
    ):
        assert issubclass(cls, errors.NovfmtError)
