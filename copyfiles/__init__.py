"""
copyfiles: browse a folder, tick files or folders, and copy their contents to
the clipboard, each file under a ``--- name ---`` header.
"""

__version__ = "0.1.0"

from .errors import (
    ClipboardWriteError,
    CopyFilesError,
    DirectoryReadError,
    FileAccessError,
    NoSelectionError,
    ViewNotFoundError,
)
from .navigator import Navigator, list_directory
from .selection import ClipboardPayload, SelectionAggregator, SelectionSet
from .views import BrowserView, ViewRegistry
