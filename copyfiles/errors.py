"""
Exception hierarchy for copyfiles.

Filesystem failures met while aggregating a selection are converted into
these so the caller can report them and keep going.
"""


class CopyFilesError(Exception):
    """Base exception for all copyfiles errors."""

    def __init__(self, message: str, context: dict = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self):
        return self.message


class DirectoryReadError(CopyFilesError):
    """Raised when the directory being listed cannot be read."""
    pass


class FileAccessError(CopyFilesError):
    """Raised when a path cannot be stat'ed or read."""
    pass


class NoSelectionError(CopyFilesError):
    """Raised when a copy finds nothing it could put on the clipboard."""

    def __init__(self, message: str = "No files selected", errors=None, context: dict = None):
        super().__init__(message, context)
        self.errors = list(errors or [])


class ClipboardWriteError(CopyFilesError):
    """Raised when the system clipboard refuses the payload."""
    pass


class ViewNotFoundError(CopyFilesError):
    """Raised when a view id does not name an open view."""
    pass
