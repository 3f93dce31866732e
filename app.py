"""Flask web application serving the wiki search box.

The page index is built from the markdown pages on startup. The search
endpoint turns matching slugs into titled links for the dropdown, and each
link opens the page rendered from its markdown source.
"""

import os
import threading
from pathlib import Path
from typing import Any, Optional

from flask import (
    Flask,
    abort,
    current_app,
    jsonify,
    render_template,
    request,
    url_for,
)

from src.server.config import load_config_file
from src.server.page_index import PageIndex
from src.server.pages import (
    GENERATED_DIR,
    discover_pages,
    slug_to_href,
    slug_to_title,
)
from src.server.render import page_sources, render_page
from src.server.watcher import PageWatcher

app = Flask(__name__)

# Guards every access to the shared page index and watcher
_index_lock = threading.Lock()
_page_index = PageIndex()
_watcher: Optional[PageWatcher] = None


def configure_app(pages_path: Path, watch: bool = False) -> int:
    """Point the application at a pages directory and index it.

    Args:
        pages_path (Path): The directory holding the markdown pages.
        watch (bool): Whether every request first picks up page changes.

    Returns:
        int: The number of indexed pages.

    """
    global _watcher
    with _index_lock:
        count = _page_index.rebuild(discover_pages(pages_path))
        _watcher = PageWatcher(pages_path) if watch else None
        if _watcher is not None:
            _watcher.prime()
    app.config["PAGES_PATH"] = pages_path
    return count


def refresh_index() -> None:
    """Apply page changes found since the last request.

    The caller holds `_index_lock`.
    """
    if _watcher is None:
        return
    changes = _watcher.poll()
    if changes:
        _page_index.apply_changes(changes, _watcher.current_slugs)
        current_app.logger.info(f"Page index refreshed: {changes!r}")


def page_link(slug: str) -> dict[str, str]:
    """Describe one search result for the dropdown."""
    return {"slug": slug, "title": slug_to_title(slug), "href": slug_to_href(slug)}


@app.route("/")
def index() -> str:
    """Render the search page.

    Returns:
        str: Rendered HTML for the index page.

    """
    with _index_lock:
        refresh_index()
        slugs = _page_index.slugs
    pages = [page_link(slug) for slug in slugs]
    return render_template("index.html", pages=pages)


@app.route("/search")
def search() -> Any:
    """Return the pages whose slug starts with the ``q`` parameter.

    Returns:
        Response: A JSON list of ``{"slug", "title", "href"}`` objects
        sorted by title.

    """
    query = request.args.get("q", "")
    with _index_lock:
        refresh_index()
        matches = _page_index.complete(query)
    results = sorted(
        (page_link(slug) for slug in matches),
        key=lambda link: link["title"],
    )
    return jsonify(results)


@app.route(f"/{GENERATED_DIR}/<slug>.html")
def page(slug: str) -> str:
    """Render a wiki page from its markdown source."""
    source = page_sources(current_app.config["PAGES_PATH"]).get(slug)
    if source is None:
        abort(404)
    return render_page(source, slug, home=url_for("index"))


if __name__ == "__main__":
    """Run the Flask application."""
    config = load_config_file(
        Path(os.environ.get("WIKI_SEARCH_CONFIG", "config.txt")),
    )
    configure_app(config.pages_path, watch=config.watch)
    app.run(debug=True)
