"""
Selection set and clipboard payload builder.

A view keeps one ``SelectionSet``. On copy, ``SelectionAggregator`` walks the
selected paths, reads every leaf file and serializes the lot as::

    --- <display name> ---
    <raw file bytes>

Per-path failures are collected, never raised, so one unreadable file does not
spoil the rest of the copy.
"""

import logging
import os
from typing import Iterable, NamedTuple

from .errors import NoSelectionError
from .fs import LocalFilesystem, describe_error

logger = logging.getLogger(__name__)


class SelectionSet:
    """Ordered ``path -> selected`` flags. A missing path reads as unselected."""

    def __init__(self):
        self._flags = {}

    def set(self, path: str, selected: bool):
        self._flags[path] = bool(selected)

    def is_selected(self, path: str) -> bool:
        return self._flags.get(path, False)

    def clear(self):
        self._flags.clear()

    def items(self):
        return list(self._flags.items())

    def selected_paths(self) -> list:
        return [p for p, flag in self._flags.items() if flag]

    def __len__(self):
        return len(self._flags)

    def __contains__(self, path):
        return path in self._flags


class FileBlock(NamedTuple):
    display_name: str
    source: str
    content: bytes

    def to_bytes(self) -> bytes:
        header = f"--- {self.display_name} ---\n"
        return os.fsencode(header) + self.content + b"\n"


class ClipboardPayload:
    def __init__(self, blocks=None):
        self.blocks = list(blocks or [])

    def append(self, block: FileBlock):
        self.blocks.append(block)

    def to_bytes(self) -> bytes:
        return b"".join(b.to_bytes() for b in self.blocks)

    @property
    def text(self) -> str:
        return self.to_bytes().decode("utf-8", errors="replace")

    def __len__(self):
        return len(self.blocks)


class AggregateResult(NamedTuple):
    payload: ClipboardPayload
    block_count: int
    errors: list


def display_name_for(root: str, path: str) -> str:
    """Path of ``path`` relative to the selected folder ``root``, or its base name."""
    try:
        rel = os.path.relpath(path, root)
    except ValueError:
        # Different drives on Windows.
        return os.path.basename(path)
    if rel == os.curdir:
        return os.path.basename(path)
    return rel


class SelectionAggregator:
    def __init__(self, fs: LocalFilesystem, selection: SelectionSet, clipboard):
        self.fs = fs
        self.selection = selection
        self.clipboard = clipboard

    def toggle(self, path: str, selected: bool):
        self.selection.set(path, selected)

    def select_all_visible(self, visible_folders: Iterable, visible_files: Iterable):
        for entry in list(visible_folders) + list(visible_files):
            self.selection.set(_path_of(entry), True)

    def aggregate(self) -> AggregateResult:
        payload = ClipboardPayload()
        errors = []

        for path, selected in self.selection.items():
            if not selected:
                continue

            try:
                st = self.fs.stat(path)
            except OSError as exc:
                errors.append(f"Error accessing {path}: {describe_error(exc)}")
                continue
            if not st.exists:
                errors.append(f"Error accessing {path}: no such file or directory")
                continue

            if st.is_dir:
                self._add_tree(payload, errors, path)
            else:
                self._add_file(payload, errors, path, os.path.basename(path))

        if not payload.blocks:
            raise NoSelectionError(errors=errors)

        logger.info("aggregated %d file blocks (%d errors)", len(payload), len(errors))
        return AggregateResult(payload, len(payload), errors)

    def commit(self, payload: ClipboardPayload):
        self.clipboard.write(payload.text)

    def _add_tree(self, payload: ClipboardPayload, errors: list, root: str):
        def onerror(exc: OSError):
            errors.append(f"Error walking directory {exc.filename}: {describe_error(exc)}")

        for path, isdir in self.fs.walk_tree(root, onerror):
            if isdir:
                continue
            self._add_file(payload, errors, path, display_name_for(root, path))

    def _add_file(self, payload: ClipboardPayload, errors: list, path: str, display: str) -> bool:
        try:
            content = self.fs.read_file_bytes(path)
        except OSError as exc:
            errors.append(f"Error reading file {path}: {describe_error(exc)}")
            return False
        payload.append(FileBlock(display, path, content))
        return True


def _path_of(entry) -> str:
    return entry if isinstance(entry, str) else entry.path
