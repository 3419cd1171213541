"""
Unit tests for the selection set and the clipboard payload builder.
"""

import os

import pytest

from copyfiles.errors import NoSelectionError
from copyfiles.fs import LocalFilesystem
from copyfiles.navigator import list_directory
from copyfiles.selection import (
    ClipboardPayload,
    FileBlock,
    SelectionAggregator,
    SelectionSet,
    display_name_for,
)


class UnreadableFilesystem(LocalFilesystem):
    """Local filesystem that refuses to read the given paths."""

    def __init__(self, *unreadable):
        self.unreadable = set(unreadable)

    def read_file_bytes(self, path):
        if path in self.unreadable:
            raise PermissionError(13, "Permission denied", path)
        return super().read_file_bytes(path)


class UnlistableFilesystem(LocalFilesystem):
    """Local filesystem that refuses to list the given directories."""

    def __init__(self, *unlistable):
        self.unlistable = set(unlistable)

    def read_directory(self, path):
        if path in self.unlistable:
            raise PermissionError(13, "Permission denied", path)
        return super().read_directory(path)


@pytest.fixture
def aggregator(clipboard):
    return SelectionAggregator(LocalFilesystem(), SelectionSet(), clipboard)


class TestSelectionSet:
    def test_absent_reads_as_unselected(self):
        selection = SelectionSet()
        assert not selection.is_selected("/x")
        assert "/x" not in selection

    def test_keeps_first_touch_order(self):
        selection = SelectionSet()
        selection.set("/b", True)
        selection.set("/a", True)
        selection.set("/b", False)
        assert selection.items() == [("/b", False), ("/a", True)]
        assert selection.selected_paths() == ["/a"]


class TestAggregate:
    def test_file_and_folder(self, aggregator, tree):
        aggregator.toggle(str(tree / "A.txt"), True)
        aggregator.toggle(str(tree / "F"), True)

        result = aggregator.aggregate()

        assert result.block_count == 3
        assert result.errors == []
        assert result.payload.to_bytes() == (
            b"--- A.txt ---\nX\n"
            b"--- a ---\n1\n"
            b"--- b ---\n2\n"
        )

    def test_nested_names_are_relative_to_the_selected_folder(self, aggregator, tree):
        aggregator.toggle(str(tree / "G"), True)
        result = aggregator.aggregate()
        names = [b.display_name for b in result.payload.blocks]
        assert names == [os.path.join("sub", "deep.py"), "top.py"]

    def test_walk_interleaves_files_and_folders_by_name(self, aggregator, tmp_path):
        (tmp_path / "a.txt").write_text("a")
        (tmp_path / "m").mkdir()
        (tmp_path / "m" / "inner.txt").write_text("i")
        (tmp_path / "z.txt").write_text("z")
        aggregator.toggle(str(tmp_path), True)
        names = [b.display_name for b in aggregator.aggregate().payload.blocks]
        assert names == ["a.txt", os.path.join("m", "inner.txt"), "z.txt"]

    def test_order_follows_selection(self, aggregator, tree):
        aggregator.toggle(str(tree / "notes.md"), True)
        aggregator.toggle(str(tree / "A.txt"), True)
        names = [b.display_name for b in aggregator.aggregate().payload.blocks]
        assert names == ["notes.md", "A.txt"]

    def test_unselected_paths_are_skipped(self, aggregator, tree):
        aggregator.toggle(str(tree / "A.txt"), True)
        aggregator.toggle(str(tree / "notes.md"), True)
        aggregator.toggle(str(tree / "notes.md"), False)
        assert aggregator.aggregate().block_count == 1

    def test_empty_selection(self, aggregator, clipboard):
        with pytest.raises(NoSelectionError, match="No files selected"):
            aggregator.aggregate()
        assert clipboard.writes == []

    def test_all_flags_false(self, aggregator, tree):
        aggregator.toggle(str(tree / "A.txt"), False)
        aggregator.toggle(str(tree / "F"), False)
        with pytest.raises(NoSelectionError) as excinfo:
            aggregator.aggregate()
        assert excinfo.value.errors == []

    def test_empty_folder_counts_as_nothing(self, aggregator, tmp_path):
        (tmp_path / "empty").mkdir()
        aggregator.toggle(str(tmp_path / "empty"), True)
        with pytest.raises(NoSelectionError):
            aggregator.aggregate()

    def test_deleted_file_is_reported_and_skipped(self, aggregator, tree):
        aggregator.toggle(str(tree / "A.txt"), True)
        aggregator.toggle(str(tree / "notes.md"), True)
        aggregator.toggle(str(tree / "F"), True)
        (tree / "notes.md").unlink()

        result = aggregator.aggregate()

        assert result.block_count == 3
        assert len(result.errors) == 1
        assert result.errors[0].startswith(f"Error accessing {tree / 'notes.md'}: ")

    def test_deleted_only_selection(self, aggregator, tree):
        aggregator.toggle(str(tree / "A.txt"), True)
        (tree / "A.txt").unlink()
        with pytest.raises(NoSelectionError) as excinfo:
            aggregator.aggregate()
        assert len(excinfo.value.errors) == 1

    def test_stale_path_can_be_toggled(self, aggregator, tree):
        aggregator.toggle(str(tree / "ghost"), True)
        aggregator.toggle(str(tree / "A.txt"), True)
        result = aggregator.aggregate()
        assert result.block_count == 1
        assert "ghost" in result.errors[0]

    def test_unreadable_file_inside_folder(self, clipboard, tree):
        bad = str(tree / "F" / "a")
        aggregator = SelectionAggregator(UnreadableFilesystem(bad), SelectionSet(), clipboard)
        aggregator.toggle(str(tree / "F"), True)

        result = aggregator.aggregate()

        assert [b.display_name for b in result.payload.blocks] == ["b"]
        assert result.errors == [f"Error reading file {bad}: Permission denied"]

    def test_unlistable_subfolder_is_reported_and_skipped(self, clipboard, tree):
        bad = str(tree / "G" / "sub")
        aggregator = SelectionAggregator(UnlistableFilesystem(bad), SelectionSet(), clipboard)
        aggregator.toggle(str(tree / "G"), True)

        result = aggregator.aggregate()

        assert [b.display_name for b in result.payload.blocks] == ["top.py"]
        assert result.errors == [f"Error walking directory {bad}: Permission denied"]

    def test_raw_bytes_are_kept(self, aggregator, tmp_path):
        (tmp_path / "crlf.txt").write_bytes(b"one\r\ntwo")
        aggregator.toggle(str(tmp_path / "crlf.txt"), True)
        assert aggregator.aggregate().payload.to_bytes() == b"--- crlf.txt ---\none\r\ntwo\n"


class TestSelectAllVisible:
    def test_selects_only_the_listing(self, aggregator, tree):
        fs = LocalFilesystem()
        listing = list_directory(fs, str(tree), "test_")
        aggregator.select_all_visible(listing.folders, listing.files)

        selection = aggregator.selection
        assert selection.is_selected(str(tree / "F"))
        assert selection.is_selected(str(tree / "G"))
        assert selection.is_selected(str(tree / "test_one.py"))
        assert not selection.is_selected(str(tree / "A.txt"))
        assert not selection.is_selected(str(tree / "F" / "a"))

    def test_accepts_plain_paths(self, aggregator):
        aggregator.select_all_visible(["/a"], ["/b"])
        assert aggregator.selection.selected_paths() == ["/a", "/b"]


class TestPayload:
    def test_commit_writes_text(self, aggregator, clipboard):
        payload = ClipboardPayload([FileBlock("x.txt", "/x.txt", b"hello")])
        aggregator.commit(payload)
        assert clipboard.writes == ["--- x.txt ---\nhello\n"]

    def test_invalid_utf8_is_replaced_in_text(self):
        payload = ClipboardPayload([FileBlock("bin", "/bin", b"\xff")])
        assert payload.text == "--- bin ---\n\ufffd\n"
        assert payload.to_bytes() == b"--- bin ---\n\xff\n"

    def test_display_name_falls_back_to_base_name(self, tmp_path):
        assert display_name_for(str(tmp_path), str(tmp_path)) == tmp_path.name
        assert display_name_for(str(tmp_path), str(tmp_path / "a" / "b")) == os.path.join("a", "b")
