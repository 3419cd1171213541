"""
Flask front end: every browser tab is bound to one independent view.

Row actions post the target path as form data to the owning view; the page is
then re-rendered from the view's navigator and selection set.
"""

import base64
import binascii
import io
import os

from flask import (
    Blueprint,
    Flask,
    current_app,
    jsonify,
    redirect,
    render_template_string,
    abort,
    request,
    send_file,
    url_for,
)

from .config import load_config
from .errors import DirectoryReadError, FileAccessError, ViewNotFoundError
from .fs import LocalFilesystem
from .sinks import FlashNotifier, PyperclipClipboard
from .views import BrowserView, FileContent, ViewRegistry

bp = Blueprint("copyfiles", __name__)


# -------------------------------------------------------
# Templates
# -------------------------------------------------------
PAGE_HEAD = r"""
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <title>{{ title|shown }}</title>
  <style>
    body {
      margin: 0;
      padding: 0;
      background-color: #1e1e1e;
      color: #ffffff;
      font-family: Arial, sans-serif;
    }
    .container {
      max-width: 900px;
      margin: auto;
      padding: 1rem;
    }
    .path {
      font-family: monospace;
      color: #ccc;
      margin-bottom: 0.5rem;
      word-break: break-all;
    }
    .listing {
      background: #2d2d2d;
      border-radius: 4px;
      max-height: 70vh;
      overflow-y: auto;
    }
    .row {
      display: flex;
      align-items: center;
      gap: 0.5rem;
      padding: 0.3rem 0.5rem;
    }
    .row:nth-child(odd) { background: #262626; }
    .row .name { flex: 1; }
    .row form { margin: 0; }
    .icon { width: 1.2em; text-align: center; color: #ccc; }
    .btnBar {
      display: flex;
      gap: 1rem;
      align-items: center;
      margin-top: 1rem;
    }
    .btnBar form { margin: 0; }
    button, a.button {
      padding: 0.6rem 1.2rem;
      background: #007acc;
      color: #ffffff;
      border: none;
      font-size: 1rem;
      cursor: pointer;
      border-radius: 4px;
      text-decoration: none;
    }
    .row button, .row a.button {
      padding: 0.2rem 0.6rem;
      font-size: 0.85rem;
    }
    button:hover, a.button:hover {
      background: #005fa3;
    }
    .notice {
      padding: 0.5rem 1rem;
      border-radius: 4px;
      margin-bottom: 0.5rem;
    }
    .notice.Success { background: #1e4620; }
    .notice.Error { background: #5a1d1d; }
    .error { color: #ff8080; }
    pre {
      white-space: pre-wrap;
      background: #2d2d2d;
      padding: 1rem;
      border-radius: 4px;
    }
    img { max-width: 100%; }
  </style>
</head>
<body>
  <div class="container">
  {% with messages = get_flashed_messages(with_categories=true) %}
    {% for category, message in messages %}
      <div class="notice {{ category }}"><strong>{{ category }}:</strong> {{ message|shown }}</div>
    {% endfor %}
  {% endwith %}
"""

PAGE_TAIL = r"""
  </div>
</body>
</html>
"""

VIEW_HTML = PAGE_HEAD + r"""
    <div class="path">{{ view.current_directory|shown }}{% if view.prefix %} &nbsp;[prefix: {{ view.prefix|shown }}]{% endif %}</div>

    {% if error %}
      <p class="error">{{ error|shown }}</p>
    {% else %}
    <div class="listing">
      {% if not view.navigator.is_at_root %}
      <div class="row">
        <span class="icon">&#128193;</span>
        <form method="post" action="{{ url_for('.parent', view_id=view.id) }}">
          <button type="submit">..</button>
        </form>
        <span class="name"></span>
        <form method="post" action="{{ url_for('.open_view') }}" target="_blank">
          <input type="hidden" name="token" value="{{ parent_dir|token }}">
          <input type="hidden" name="prefix_token" value="{{ view.prefix|token }}">
          <button type="submit" title="Open in new view">+</button>
        </form>
      </div>
      {% endif %}

      {% for entry in listing.folders %}
      <div class="row">
        <span class="icon">&#128193;</span>
        <input type="checkbox" data-token="{{ entry.path|token }}" {% if view.is_selected(entry.path) %}checked{% endif %}>
        <span class="name">{{ entry.name|shown }}</span>
        <form method="post" action="{{ url_for('.enter', view_id=view.id) }}">
          <input type="hidden" name="token" value="{{ entry.path|token }}">
          <button type="submit" title="Open here">&#8599;</button>
        </form>
        <form method="post" action="{{ url_for('.open_view') }}" target="_blank">
          <input type="hidden" name="token" value="{{ entry.path|token }}">
          <input type="hidden" name="prefix_token" value="{{ view.prefix|token }}">
          <button type="submit" title="Open in new view">+</button>
        </form>
      </div>
      {% endfor %}

      {% for entry in listing.files %}
      <div class="row">
        <span class="icon">&#128196;</span>
        <input type="checkbox" data-token="{{ entry.path|token }}" {% if view.is_selected(entry.path) %}checked{% endif %}>
        <span class="name">{{ entry.name|shown }}</span>
        <a class="button" title="Open here" href="{{ url_for('.show_file', view_id=view.id, token=entry.path|token) }}">&#8599;</a>
        <a class="button" title="Open in new view" target="_blank" href="{{ url_for('.show_file', view_id=view.id, token=entry.path|token) }}">+</a>
      </div>
      {% endfor %}
    </div>
    {% endif %}

    <div class="btnBar">
      <form method="post" action="{{ url_for('.select_all', view_id=view.id) }}">
        <button type="submit">Select All</button>
      </form>
      <form method="post" action="{{ url_for('.copy', view_id=view.id) }}">
        <button type="submit">Copy Selected</button>
      </form>
      <form method="post" action="{{ url_for('.close', view_id=view.id) }}">
        <button type="submit">Close</button>
      </form>
    </div>

  <script>
  document.querySelectorAll('input[type="checkbox"][data-token]').forEach(cb => {
    cb.onchange = async () => {
      const res = await fetch("{{ url_for('.toggle', view_id=view.id) }}", {
        method: 'POST',
        headers: { 'Content-Type': 'application/json' },
        body: JSON.stringify({ token: cb.dataset.token, selected: cb.checked })
      });
      const data = await res.json();
      cb.checked = !!data.selected;
    };
  });
  </script>
""" + PAGE_TAIL

FILE_HTML = PAGE_HEAD + r"""
    <div class="path">{{ content.path|shown }}</div>
    <div class="btnBar">
      <a class="button" href="{{ url_for('.show_view', view_id=view.id) }}">Back</a>
    </div>
    {% if content.is_image %}
      <p><img src="{{ url_for('.raw_file', view_id=view.id, token=content.path|token) }}" alt="{{ content.name|shown }}"></p>
    {% else %}
      <pre>{{ content.text }}</pre>
    {% endif %}
""" + PAGE_TAIL

INDEX_HTML = PAGE_HEAD + r"""
    <h1>copyfiles</h1>
    {% for view in views %}
      <div class="row">
        <a class="button" href="{{ url_for('.show_view', view_id=view.id) }}">open</a>
        <span class="name">{{ view.current_directory|shown }}</span>
      </div>
    {% else %}
      <p>No open views.</p>
    {% endfor %}
    <form method="post" action="{{ url_for('.open_view') }}" class="btnBar">
      <input type="text" name="path" placeholder="/path/to/folder" size="50">
      <input type="text" name="prefix" placeholder="file name prefix" size="15">
      <button type="submit">Open</button>
    </form>
""" + PAGE_TAIL


# -------------------------------------------------------
# Helpers
# -------------------------------------------------------
def _registry() -> ViewRegistry:
    return current_app.extensions["copyfiles"]


def _view(view_id: str) -> BrowserView:
    return _registry().get(view_id)


def _back_to(view: BrowserView):
    return redirect(url_for(".show_view", view_id=view.id))


def _render_file(view: BrowserView, content: FileContent):
    return render_template_string(FILE_HTML, title=content.name, view=view, content=content)


# Paths leave the server as tokens: base64 of their raw OS bytes. Names that are
# not valid UTF-8 decode to lone surrogates, which neither URLs nor the HTML
# response can carry.
@bp.app_template_filter("token")
def path_token(path: str) -> str:
    return base64.urlsafe_b64encode(os.fsencode(path)).decode("ascii")


def path_from_token(token: str) -> str:
    try:
        return os.fsdecode(base64.urlsafe_b64decode(token.encode("ascii")))
    except (UnicodeEncodeError, binascii.Error):
        abort(400, description="Malformed path token")


@bp.app_template_filter("shown")
def shown(text) -> str:
    """Printable form of a path or message; undecodable bytes become U+FFFD."""
    if text is None:
        return ""
    return os.fsencode(str(text)).decode("utf-8", errors="replace")


def _path_arg(data, field: str = "path", default=None):
    """A path sent either as a token (``<field>_token`` or ``token``) or as plain text."""
    token = data.get(f"{field}_token") or (data.get("token") if field == "path" else None)
    if token:
        return path_from_token(str(token))
    return data.get(field, default)


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.lower() in ("1", "true", "on", "yes")
    return bool(value)


# -------------------------------------------------------
# Routes
# -------------------------------------------------------
@bp.route("/")
def index():
    registry = _registry()
    initial = current_app.config.get("INITIAL_VIEW")
    if initial:
        try:
            return _back_to(registry.get(initial))
        except ViewNotFoundError:
            current_app.logger.debug("initial view %s is closed", initial)
    return render_template_string(INDEX_HTML, title="copyfiles", views=list(registry))


@bp.route("/views", methods=["POST"])
def open_view():
    registry = _registry()
    path = _path_arg(request.form, default="").strip()
    prefix = _path_arg(request.form, "prefix", "")
    if not path:
        registry.notifier.notify("Error", "A folder path is required")
        return redirect(request.referrer or url_for(".index"))
    try:
        view = registry.open_view(path, prefix)
    except FileAccessError as exc:
        registry.notifier.notify("Error", exc.message)
        return redirect(request.referrer or url_for(".index"))
    return _back_to(view)


@bp.route("/views/<view_id>")
def show_view(view_id):
    view = _view(view_id)
    listing, error = None, None
    try:
        listing = view.listing()
    except DirectoryReadError as exc:
        error = exc.message
        current_app.logger.warning("%s: %s", view.current_directory, exc.message)
    return render_template_string(
        VIEW_HTML,
        title=view.current_directory,
        view=view,
        listing=listing,
        error=error,
        parent_dir=view.navigator.parent_directory,
    )


@bp.route("/views/<view_id>/enter", methods=["POST"])
def enter(view_id):
    view = _view(view_id)
    path = _path_arg(request.form, default="")
    result = view.open(path, new_view=_as_bool(request.form.get("new_view")))
    if isinstance(result, FileContent):
        return _render_file(view, result)
    if isinstance(result, BrowserView):
        return _back_to(result)
    return _back_to(view)


@bp.route("/views/<view_id>/parent", methods=["POST"])
def parent(view_id):
    view = _view(view_id)
    view.parent()
    return _back_to(view)


@bp.route("/views/<view_id>/toggle", methods=["POST"])
def toggle(view_id):
    view = _view(view_id)
    data = request.get_json(silent=True) or request.form
    path = _path_arg(data)
    if not path:
        return jsonify({"error": "path is required"}), 400
    view.toggle(path, _as_bool(data.get("selected", False)))
    return jsonify(
        {"path": path, "token": path_token(path), "selected": view.is_selected(path)}
    )


@bp.route("/views/<view_id>/select-all", methods=["POST"])
def select_all(view_id):
    view = _view(view_id)
    try:
        view.select_all()
    except DirectoryReadError as exc:
        view.notifier.notify("Error", exc.message)
    return _back_to(view)


@bp.route("/views/<view_id>/copy", methods=["POST"])
def copy(view_id):
    view = _view(view_id)
    view.copy_selected()
    return _back_to(view)


@bp.route("/views/<view_id>/close", methods=["POST"])
def close(view_id):
    _registry().close(view_id)
    return redirect(url_for(".index"))


@bp.route("/views/<view_id>/file")
def show_file(view_id):
    view = _view(view_id)
    result = view.read_file(_path_arg(request.args, default=""))
    if result is None:
        return _back_to(view)
    return _render_file(view, result)


@bp.route("/views/<view_id>/raw")
def raw_file(view_id):
    view = _view(view_id)
    result = view.read_file(_path_arg(request.args, default=""))
    if result is None:
        return jsonify({"error": "Not a readable file"}), 400
    return send_file(
        io.BytesIO(result.data), mimetype=result.mimetype, download_name=shown(result.name)
    )


@bp.route("/api/views/<view_id>")
def api_view(view_id):
    """
    Listing of the view's current directory with selection flags.
    Returns 400 with the error text when the directory cannot be read.
    """
    view = _view(view_id)
    try:
        listing = view.listing()
    except DirectoryReadError as exc:
        return jsonify({"error": exc.message, "directory": view.current_directory}), 400

    def node(entry):
        return {
            "name": entry.name,
            "fullPath": entry.path,
            "token": path_token(entry.path),
            "is_dir": entry.is_dir,
            "selected": view.is_selected(entry.path),
        }

    return jsonify(
        {
            "id": view.id,
            "directory": listing.directory,
            "prefix": view.prefix,
            "atRoot": view.navigator.is_at_root,
            "folders": [node(e) for e in listing.folders],
            "files": [node(e) for e in listing.files],
        }
    )


@bp.app_errorhandler(ViewNotFoundError)
def view_not_found(exc):
    if request.path.startswith("/api/") or request.is_json:
        return jsonify({"error": exc.message}), 404
    return exc.message, 404


# -------------------------------------------------------
# App factory
# -------------------------------------------------------
def create_app(config=None, registry: ViewRegistry = None) -> Flask:
    app = Flask(__name__)
    load_config(app, config)
    if registry is None:
        registry = ViewRegistry(LocalFilesystem(), PyperclipClipboard(), FlashNotifier())
    app.extensions["copyfiles"] = registry
    app.register_blueprint(bp)
    return app
