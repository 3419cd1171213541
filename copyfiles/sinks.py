"""
Clipboard and notification collaborators.
"""

import logging

import pyperclip
from flask import flash, has_request_context

from .errors import ClipboardWriteError

logger = logging.getLogger(__name__)


class PyperclipClipboard:
    """Writes to the system clipboard of the machine running the server."""

    def write(self, text: str):
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as exc:
            raise ClipboardWriteError(
                f"Failed to copy to clipboard: {exc}", {"length": len(text)}
            ) from exc


class LoggingNotifier:
    """Notifications that only end up in the log."""

    def notify(self, title: str, message: str):
        if title == "Error":
            logger.warning("%s: %s", title, message)
        else:
            logger.info("%s: %s", title, message)


class FlashNotifier(LoggingNotifier):
    """
    Logs the notification and, inside a request, queues it as a Flask flash
    message. The title is used as the flash category and shown on the next
    rendered page.
    """

    def notify(self, title: str, message: str):
        super().notify(title, message)
        if has_request_context():
            flash(message, title)
