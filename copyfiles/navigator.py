"""
Directory navigation for a single view.
"""

import logging
import os
import re
from typing import Callable, NamedTuple, Optional

from .errors import DirectoryReadError, FileAccessError
from .fs import LocalFilesystem, describe_error, name_key

logger = logging.getLogger(__name__)

_DRIVE_ROOT = re.compile(r"^[A-Za-z]:[\\/]$")


class Entry(NamedTuple):
    name: str
    path: str
    is_dir: bool


class Listing(NamedTuple):
    directory: str
    folders: list
    files: list

    @property
    def entries(self):
        return self.folders + self.files


def is_root(path: str) -> bool:
    """True for ``/``, a drive root like ``C:\\``, or any path that is its own parent."""
    if path == "/" or _DRIVE_ROOT.match(path):
        return True
    return os.path.dirname(path) == path


def matches_prefix(name: str, prefix: str) -> bool:
    return not prefix or name_key(name).startswith(name_key(prefix))


def list_directory(fs: LocalFilesystem, directory: str, prefix: str = "") -> Listing:
    """
    Split ``directory`` into sorted folders and prefix-filtered files.

    Folders are never filtered. Raises DirectoryReadError when the directory
    cannot be read.
    """
    try:
        raw = fs.read_directory(directory)
    except OSError as exc:
        raise DirectoryReadError(
            f"Error reading directory: {describe_error(exc)}",
            {"path": directory},
        ) from exc

    folders, files = [], []
    for name, isdir in raw:
        entry = Entry(name, os.path.join(directory, name), isdir)
        if isdir:
            folders.append(entry)
        elif matches_prefix(name, prefix):
            files.append(entry)

    folders.sort(key=lambda e: name_key(e.name))
    files.sort(key=lambda e: name_key(e.name))
    return Listing(directory, folders, files)


class Navigator:
    """Current directory and prefix filter of one view."""

    def __init__(
        self,
        fs: LocalFilesystem,
        directory: str,
        prefix: str = "",
        on_change: Optional[Callable[[], None]] = None,
    ):
        self.fs = fs
        self.current_directory = os.path.abspath(directory)
        self.prefix = prefix or ""
        # Called after every in-place move; the owning view clears its selection here.
        self.on_change = on_change

    @property
    def is_at_root(self) -> bool:
        return is_root(self.current_directory)

    @property
    def parent_directory(self) -> str:
        return os.path.dirname(self.current_directory)

    def list(self, directory: str = None, prefix: str = None) -> Listing:
        if directory is None:
            directory = self.current_directory
        if prefix is None:
            prefix = self.prefix
        return list_directory(self.fs, directory, prefix)

    def enter(self, folder_path: str):
        folder_path = os.path.abspath(folder_path)
        try:
            st = self.fs.stat(folder_path)
        except OSError as exc:
            raise FileAccessError(
                f"Error accessing {folder_path}: {describe_error(exc)}",
                {"path": folder_path},
            ) from exc
        if not st.exists or not st.is_dir:
            raise FileAccessError(
                f"Error accessing {folder_path}: not a directory",
                {"path": folder_path},
            )
        self._move(folder_path)

    def parent(self) -> bool:
        """Move to the parent directory. Returns False (and stays put) at a root."""
        if self.is_at_root:
            return False
        self._move(os.path.dirname(self.current_directory))
        return True

    def _move(self, directory: str):
        logger.debug("navigate %s -> %s", self.current_directory, directory)
        self.current_directory = directory
        if self.on_change is not None:
            self.on_change()
