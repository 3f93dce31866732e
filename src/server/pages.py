"""Discover wiki pages on disk and map their slugs to what the search box
displays.
"""

import re
from collections.abc import Iterable
from pathlib import Path

PAGE_SUFFIX = ".md"
GENERATED_DIR = "generated"

_SEPARATORS = re.compile(r"[\s_]+")
_PAGES_ELEMENT = re.compile(
    r'(<div\s+id="pages"[^>]*>)(.*?)(</div>)',
    re.DOTALL | re.IGNORECASE,
)


class IndexPatchError(Exception):
    """Raised when the index file has no element to hold the page list."""


def normalize_slug(name: str) -> str:
    """Turn a page file stem into a lowercase, hyphen-delimited slug.

    Args:
        name (str): The raw page name.

    Returns:
        str: The normalized slug, empty if `name` holds no characters.

    """
    return _SEPARATORS.sub("-", name.strip().lower())


def normalize_query(text: str) -> str:
    """Trim and lower-case the text typed into the search box."""
    return text.strip().lower()


def slug_from_path(path: Path) -> str:
    """Return the slug of a page file, or an empty string if the file is not
    a page.

    Args:
        path (Path): The file to inspect.

    Returns:
        str: The page slug. Empty for files with another suffix, an empty
        stem, or a dotted stem such as ``notes.old.md``.

    """
    if path.suffix != PAGE_SUFFIX:
        return ""
    stem = path.stem
    if not stem or "." in stem:
        return ""
    return normalize_slug(stem)


def discover_pages(pages_path: Path) -> list[str]:
    """List the slugs of all markdown pages directly inside a directory.

    Args:
        pages_path (Path): The directory holding the ``.md`` pages.

    Raises:
        FileNotFoundError: If `pages_path` does not exist.
        NotADirectoryError: If `pages_path` is not a directory.

    Returns:
        list[str]: The sorted, de-duplicated page slugs.

    """
    if not pages_path.exists():
        raise FileNotFoundError(f"Pages directory not found: {pages_path}")
    if not pages_path.is_dir():
        raise NotADirectoryError(f"Not a directory: {pages_path}")

    slugs = {
        slug_from_path(entry)
        for entry in pages_path.iterdir()
        if entry.is_file()
    }
    slugs.discard("")
    return sorted(slugs)


def slug_to_title(slug: str) -> str:
    """Convert a slug into a display title.

    Example:
        ``"getting-started"`` becomes ``"Getting Started"``.

    """
    return " ".join(word[:1].upper() + word[1:] for word in slug.split("-"))


def slug_to_href(slug: str) -> str:
    """Return the link target of the generated page for a slug."""
    return f"{GENERATED_DIR}/{slug}.html"


def patch_index_file(index_path: Path, slugs: Iterable[str]) -> bool:
    """Write the page list into the ``<div id="pages">`` element of an
    HTML index file.

    The browser side reads the space-separated slugs from that element to
    build its own search index.

    Args:
        index_path (Path): The HTML file to patch.
        slugs (Iterable[str]): The page slugs to write.

    Raises:
        FileNotFoundError: If `index_path` does not exist.
        IndexPatchError: If the file has no pages element.

    Returns:
        bool: True if the file content changed, False otherwise.

    """
    if not index_path.exists():
        raise FileNotFoundError(f"Index file not found: {index_path}")

    content = index_path.read_text(encoding="utf-8")
    page_list = " ".join(slugs)

    patched, count = _PAGES_ELEMENT.subn(
        lambda match: match.group(1) + page_list + match.group(3),
        content,
        count=1,
    )
    if count == 0:
        raise IndexPatchError(
            f"No <div id=\"pages\"> element found in {index_path}",
        )

    if patched == content:
        return False

    index_path.write_text(patched, encoding="utf-8")
    return True
