"""
Configuration for the web surface.

Values are layered: built-in defaults, then ``COPYFILES_*`` environment
variables (``COPYFILES_PORT=8080``, ``COPYFILES_OPEN_BROWSER=false``), then
explicit overrides such as command-line options.
"""

import secrets

ENV_PREFIX = "COPYFILES"

DEFAULTS = {
    "HOST": "127.0.0.1",
    "PORT": 5000,
    "OPEN_BROWSER": True,
    "LOG_LEVEL": "INFO",
    "SECRET_KEY": None,
}


def load_config(app, overrides=None):
    app.config.from_mapping(DEFAULTS)
    # Values are parsed as JSON when possible, so PORT=8080 becomes an int.
    app.config.from_prefixed_env(ENV_PREFIX)
    if overrides:
        app.config.from_mapping(overrides)
    if not app.config.get("SECRET_KEY"):
        # Flash messages need a session; a per-process key is enough for a local tool.
        app.config["SECRET_KEY"] = secrets.token_hex(16)
    return app.config
