"""
Command-line launcher: ``copyfiles <path> [prefix]``.

Opens one view rooted at ``path`` (files filtered by ``prefix`` when given)
and serves it on the local machine.
"""

import argparse
import logging
import os
import sys
import threading
import webbrowser

from .errors import FileAccessError
from .web import create_app

USAGE = "Usage: copyfiles <path> [prefix]"

logger = logging.getLogger("copyfiles")


def create_parser():
    p = argparse.ArgumentParser(
        prog="copyfiles",
        description="Browse a folder, tick files and copy their contents to the clipboard",
    )
    p.add_argument("path", nargs="?", help="Folder to open")
    p.add_argument("prefix", nargs="?", default="", help="Only list files whose name starts with this")
    p.add_argument("--host", default=None, help="Interface to bind (default 127.0.0.1)")
    p.add_argument("--port", type=int, default=None, help="Port to listen on (default 5000)")
    p.add_argument("--no-browser", dest="open_browser", action="store_false", default=None,
                   help="Do not open a browser tab on start")
    return p


def _overrides(args) -> dict:
    overrides = {}
    if args.host is not None:
        overrides["HOST"] = args.host
    if args.port is not None:
        overrides["PORT"] = args.port
    if args.open_browser is not None:
        overrides["OPEN_BROWSER"] = args.open_browser
    return overrides


def main(argv=None) -> int:
    # Arguments past <path> [prefix] are ignored; a leading "-" path needs "--" first.
    args, extra = create_parser().parse_known_args(argv)

    if not args.path:
        print(USAGE)
        return 1
    if not os.path.isdir(args.path):
        print(f"Error: {args.path} is not a valid directory")
        return 1

    app = create_app(_overrides(args))
    logging.basicConfig(
        level=str(app.config["LOG_LEVEL"]).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if extra:
        logger.warning("ignoring extra arguments: %s", " ".join(extra))

    registry = app.extensions["copyfiles"]
    try:
        view = registry.open_view(args.path, args.prefix)
    except FileAccessError as exc:
        print(exc.message)
        return 1
    app.config["INITIAL_VIEW"] = view.id

    host, port = app.config["HOST"], int(app.config["PORT"])
    url = f"http://{host}:{port}/views/{view.id}"
    logger.info("serving %s at %s", view.current_directory, url)
    if app.config["OPEN_BROWSER"]:
        # Give the server a moment to bind before the tab asks for the page.
        threading.Timer(1.0, webbrowser.open, args=(url,)).start()

    # One request at a time: views are not guarded against concurrent mutation.
    app.run(host=host, port=port, threaded=False)
    return 0


if __name__ == "__main__":
    sys.exit(main())
