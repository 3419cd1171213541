"""
Local filesystem reader used by the navigator and the aggregator.

Every call goes straight to the OS. Failures surface as ``OSError`` with the
offending filename attached; callers decide whether they are fatal.
"""

import os
import stat
from typing import Callable, Iterator, NamedTuple


class PathStat(NamedTuple):
    exists: bool
    is_dir: bool


def name_key(name: str) -> bytes:
    """Sort key matching a byte-wise comparison of file names."""
    return os.fsencode(name)


def describe_error(exc: OSError) -> str:
    """Short cause text for an OS error (no errno, no repeated path)."""
    return exc.strerror or str(exc)


class LocalFilesystem:
    """Filesystem collaborator backed by ``os``."""

    def read_directory(self, path: str) -> list[tuple[str, bool]]:
        entries = []
        with os.scandir(path) as it:
            for e in it:
                try:
                    isdir = e.is_dir(follow_symlinks=False)
                except OSError:
                    isdir = False
                entries.append((e.name, isdir))
        return entries

    def stat(self, path: str) -> PathStat:
        try:
            st = os.stat(path)
        except FileNotFoundError:
            return PathStat(False, False)
        return PathStat(True, stat.S_ISDIR(st.st_mode))

    def read_file_bytes(self, path: str) -> bytes:
        with open(path, "rb") as f:
            return f.read()

    def walk_tree(
        self, root: str, onerror: Callable[[OSError], None] = None
    ) -> Iterator[tuple[str, bool]]:
        """
        Depth-first walk below ``root``.

        Entries of each directory are visited in name order, files and
        subdirectories interleaved; a subdirectory's contents come right after
        the subdirectory itself. Directories that cannot be listed are handed
        to ``onerror`` and skipped. Depth is not bounded by the recursion limit.
        """
        pending = [self._children(root, onerror)]
        while pending:
            try:
                child, isdir = next(pending[-1])
            except StopIteration:
                pending.pop()
                continue
            yield child, isdir
            if isdir:
                pending.append(self._children(child, onerror))

    def _children(self, directory: str, onerror) -> Iterator[tuple[str, bool]]:
        try:
            entries = sorted(self.read_directory(directory), key=lambda t: name_key(t[0]))
        except OSError as exc:
            if exc.filename is None:
                exc.filename = directory
            if onerror is not None:
                onerror(exc)
            return iter(())
        return iter([(os.path.join(directory, name), isdir) for name, isdir in entries])
