"""Tests for merge command source collection."""

import pytest

from novfmt.commands.merge import (
    collect_sources,
    expand_directories,
    expand_list_files,
    extract_volume_number,
)
from novfmt.core.errors import InputError


class TestExtractVolumeNumber:
    """Tests for extract_volume_number."""

    def test_first_number_in_stem(self):
        assert extract_volume_number("Vol 12 - Part 3.epub") == 12

    def test_no_number(self):
        assert extract_volume_number("Appendix.epub") is None


class TestExpandDirectories:
    """Tests for expand_directories."""

    def test_numbered_first_then_by_name(self, tmp_path):
        for name in ["b10.epub", "b2.epub", "Extra.EPUB", "appendix.epub", "notes.txt"]:
            (tmp_path / name).write_text("x")
        (tmp_path / "sub.epub").mkdir()

        result = expand_directories([tmp_path])

        assert [p.name for p in result] == ["b2.epub", "b10.epub", "appendix.epub", "Extra.EPUB"]

    def test_not_a_directory(self, tmp_path):
        with pytest.raises(InputError):
            expand_directories([tmp_path / "missing"])


class TestExpandListFiles:
    """Tests for expand_list_files."""

    def test_skips_blanks_and_comments(self, tmp_path):
        list_file = tmp_path / "volumes.txt"
        list_file.write_text("# volumes\nvol1.epub\n\n  vol2.epub  \n#vol3.epub\n")

        result = expand_list_files([list_file])

        assert [str(p) for p in result] == ["vol1.epub", "vol2.epub"]

    def test_missing_list_file(self, tmp_path):
        with pytest.raises(InputError):
            expand_list_files([tmp_path / "nope.txt"])


def test_collect_sources_order(tmp_path):
    directory = tmp_path / "dir"
    directory.mkdir()
    (directory / "v1.epub").write_text("x")
    list_file = tmp_path / "list.txt"
    list_file.write_text("listed.epub\n")

    result = collect_sources([tmp_path / "first.epub"], [list_file], [directory])

    assert [p.name for p in result] == ["first.epub", "listed.epub", "v1.epub"]
