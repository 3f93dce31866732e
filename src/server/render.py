"""Render markdown pages into the HTML files the search results link to."""

import html
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Optional

import markdown

from .pages import slug_from_path, slug_to_title

MARKDOWN_EXTENSIONS = ["fenced_code", "tables"]

PAGE_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{title}</title>
</head>
<body>
  <nav><a href="{home}">All pages</a></nav>
  <main>
{body}
  </main>
</body>
</html>
"""


def page_sources(pages_path: Path) -> dict[str, Path]:
    """Map every page slug to the markdown file it comes from.

    When two files normalize to the same slug, the first one in name order
    wins.
    """
    sources: dict[str, Path] = {}
    for entry in sorted(pages_path.iterdir()):
        slug = slug_from_path(entry)
        if slug and entry.is_file():
            sources.setdefault(slug, entry)
    return sources


def render_page(source: Path, slug: str, home: str = "../index.html") -> str:
    """Convert one markdown page into a standalone HTML document.

    Args:
        source (Path): The markdown file.
        slug (str): The page slug, used for the document title.
        home (str): Link target of the navigation back to the index.

    Returns:
        str: The HTML document.

    """
    body = markdown.markdown(
        source.read_text(encoding="utf-8"),
        extensions=MARKDOWN_EXTENSIONS,
    )
    return PAGE_TEMPLATE.format(
        title=html.escape(slug_to_title(slug)),
        home=html.escape(home, quote=True),
        body=body,
    )


def write_pages(
    pages_path: Path,
    output_dir: Path,
    slugs: Optional[Iterable[str]] = None,
) -> list[Path]:
    """Write ``<output_dir>/<slug>.html`` for the pages of a directory.

    Args:
        pages_path (Path): The directory holding the markdown pages.
        output_dir (Path): Where the HTML files go. Created if missing.
        slugs (Iterable[str], optional): Only render these pages. Slugs
            without a source file are skipped. Defaults to every page.

    Returns:
        list[Path]: The written files.

    """
    sources = page_sources(pages_path)
    wanted = sorted(sources) if slugs is None else sorted(set(slugs))

    output_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for slug in wanted:
        source = sources.get(slug)
        if source is None:
            continue
        target = output_dir / f"{slug}.html"
        target.write_text(render_page(source, slug), encoding="utf-8")
        written.append(target)

    logging.info(f"Rendered {len(written)} pages into {output_dir}")
    return written


def remove_pages(output_dir: Path, slugs: Iterable[str]) -> list[Path]:
    """Delete the rendered files of pages that no longer exist."""
    removed = []
    for slug in sorted(slugs):
        target = output_dir / f"{slug}.html"
        if target.exists():
            target.unlink()
            removed.append(target)
    return removed
