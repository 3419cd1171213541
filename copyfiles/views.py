"""
Independent views and the registry that owns them.

A view is what a browser tab shows: one navigator, one selection set and the
aggregator over it. Views never share state; the registry only hands them the
collaborators they need and finds them again by id.
"""

import logging
import mimetypes
import os
import uuid
from typing import NamedTuple, Optional

from .errors import (
    ClipboardWriteError,
    FileAccessError,
    NoSelectionError,
    ViewNotFoundError,
)
from .fs import LocalFilesystem, describe_error
from .navigator import Listing, Navigator
from .selection import AggregateResult, SelectionAggregator, SelectionSet
from .sinks import LoggingNotifier, PyperclipClipboard

logger = logging.getLogger(__name__)


class FileContent(NamedTuple):
    path: str
    name: str
    mimetype: str
    data: bytes

    @property
    def is_image(self) -> bool:
        return self.mimetype.startswith("image/")

    @property
    def text(self) -> str:
        return self.data.decode("utf-8", errors="replace")


class BrowserView:
    def __init__(self, registry: "ViewRegistry", view_id: str, directory: str, prefix: str = ""):
        self.registry = registry
        self.id = view_id
        self.selection = SelectionSet()
        self.navigator = Navigator(
            registry.fs, directory, prefix, on_change=self.selection.clear
        )
        self.aggregator = SelectionAggregator(registry.fs, self.selection, registry.clipboard)

    @property
    def notifier(self):
        return self.registry.notifier

    @property
    def current_directory(self) -> str:
        return self.navigator.current_directory

    @property
    def prefix(self) -> str:
        return self.navigator.prefix

    def listing(self) -> Listing:
        return self.navigator.list()

    # ---------------------------------------------------
    # Row and toolbar commands
    # ---------------------------------------------------
    def toggle(self, path: str, selected: bool):
        self.aggregator.toggle(path, selected)

    def is_selected(self, path: str) -> bool:
        return self.selection.is_selected(path)

    def select_all(self) -> Listing:
        listing = self.listing()
        self.aggregator.select_all_visible(listing.folders, listing.files)
        return listing

    def enter(self, path: str):
        self.navigator.enter(path)

    def parent(self) -> bool:
        return self.navigator.parent()

    def open_view(self, path: str) -> "BrowserView":
        """Open ``path`` in a new independent view with this view's prefix."""
        return self.registry.open_view(path, self.prefix)

    def open_parent_view(self) -> "BrowserView":
        return self.open_view(self.navigator.parent_directory)

    def open(self, path: str, new_view: bool = False):
        """
        Open a listed row.

        Directories are entered (or opened in a new view); files are read and
        returned as FileContent. Failures are notified and None is returned.
        """
        st = self._stat_for_open(path)
        if st is None:
            return None
        if st.is_dir:
            if new_view:
                return self.open_view(path)
            self.enter(path)
            return self
        return self._read(path)

    def read_file(self, path: str) -> Optional[FileContent]:
        """Like ``open`` for a file, but never navigates: directories are refused."""
        st = self._stat_for_open(path)
        if st is None:
            return None
        if st.is_dir:
            self.notifier.notify("Error", "Error reading file: Is a directory")
            return None
        return self._read(path)

    def _stat_for_open(self, path: str):
        try:
            st = self.registry.fs.stat(path)
        except OSError as exc:
            self.notifier.notify("Error", f"Error accessing file: {describe_error(exc)}")
            return None
        if not st.exists:
            self.notifier.notify("Error", "Error accessing file: no such file or directory")
            return None
        return st

    def _read(self, path: str) -> Optional[FileContent]:
        try:
            data = self.registry.fs.read_file_bytes(path)
        except OSError as exc:
            self.notifier.notify("Error", f"Error reading file: {describe_error(exc)}")
            return None
        mimetype, _ = mimetypes.guess_type(path)
        return FileContent(path, os.path.basename(path), mimetype or "text/plain", data)

    def copy_selected(self) -> Optional[AggregateResult]:
        try:
            result = self.aggregator.aggregate()
        except NoSelectionError as exc:
            for err in exc.errors:
                self.notifier.notify("Error", err)
            self.notifier.notify("Error", exc.message)
            return None

        for err in result.errors:
            self.notifier.notify("Error", err)

        try:
            self.aggregator.commit(result.payload)
        except ClipboardWriteError as exc:
            self.notifier.notify("Error", exc.message)
            return None

        self.notifier.notify("Success", f"Copied {result.block_count} file blocks to clipboard")
        return result


class ViewRegistry:
    """Application-lifetime handle: shared collaborators plus the open views."""

    def __init__(self, fs=None, clipboard=None, notifier=None):
        self.fs = fs or LocalFilesystem()
        self.clipboard = clipboard or PyperclipClipboard()
        self.notifier = notifier or LoggingNotifier()
        self._views = {}

    def open_view(self, directory: str, prefix: str = "") -> BrowserView:
        directory = os.path.abspath(directory)
        try:
            st = self.fs.stat(directory)
        except OSError as exc:
            raise FileAccessError(
                f"Error accessing {directory}: {describe_error(exc)}", {"path": directory}
            ) from exc
        if not st.exists or not st.is_dir:
            raise FileAccessError(
                f"Error: {directory} is not a valid directory", {"path": directory}
            )
        view = BrowserView(self, uuid.uuid4().hex[:12], directory, prefix)
        self._views[view.id] = view
        logger.info("opened view %s at %s (prefix=%r)", view.id, directory, prefix)
        return view

    def get(self, view_id: str) -> BrowserView:
        try:
            return self._views[view_id]
        except KeyError:
            raise ViewNotFoundError(f"No such view: {view_id}", {"view": view_id}) from None

    def close(self, view_id: str):
        view = self.get(view_id)
        del self._views[view_id]
        logger.info("closed view %s", view.id)

    def __iter__(self):
        return iter(list(self._views.values()))

    def __len__(self):
        return len(self._views)
