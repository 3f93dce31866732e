"""Keep the page slug corpus in a radix tree and answer completion
queries for the search box.
"""

import logging
from collections.abc import Iterable

from src.custom_data_structures.RadixTree.RadixTree import RadixTree

from .pages import normalize_query, normalize_slug
from .watcher import PageChanges


class PageIndex:
    """Prefix-completion index over page slugs.

    The tree supports no deletion, so dropping pages means building a new
    tree from the full corpus. Nothing is synchronized: callers that share an
    index between threads hold one lock around every mutation and every
    `complete` or `slugs` read.
    """

    def __init__(self, slugs: Iterable[str] = ()) -> None:
        self._tree = RadixTree()
        self.rebuild(slugs)

    def rebuild(self, slugs: Iterable[str]) -> int:
        """Replace the whole index with a new corpus.

        Args:
            slugs (Iterable[str]): Every page slug of the corpus.

        Returns:
            int: The number of distinct slugs stored.

        """
        tree = RadixTree()
        for slug in slugs:
            slug = normalize_slug(slug)
            if slug:
                tree.insert(slug)

        self._tree = tree
        logging.info(f"Page index rebuilt with {len(tree)} pages.")
        return len(tree)

    def add(self, slug: str) -> bool:
        """Insert a single page into the index.

        Args:
            slug (str): The page slug.

        Returns:
            bool: True if the page was not indexed before.

        """
        slug = normalize_slug(slug)
        if not slug:
            return False
        return self._tree.insert(slug)

    def apply_changes(
        self,
        changes: PageChanges,
        current_slugs: Iterable[str],
    ) -> bool:
        """Bring the index in line with a set of page changes.

        Args:
            changes (PageChanges): The changes reported by the watcher.
            current_slugs (Iterable[str]): Every page that exists now.

        Returns:
            bool: True if the indexed slugs changed.

        """
        if changes.removed:
            self.rebuild(current_slugs)
            return True

        updated = False
        for slug in sorted(changes.added):
            updated = self.add(slug) or updated
        return updated

    def complete(self, query: str) -> list[str]:
        """Return the slugs starting with the text typed by the user.

        Args:
            query (str): Raw search box text, trimmed and lower-cased here.

        Returns:
            list[str]: Matching slugs in no particular order. Empty when
            nothing was typed.

        """
        query = normalize_query(query)
        if not query:
            return []
        return list(self._tree.search(query))

    @property
    def slugs(self) -> list[str]:
        """Every indexed slug, sorted."""
        return sorted(self._tree.keys())

    def __contains__(self, slug: object) -> bool:
        return slug in self._tree

    def __len__(self) -> int:
        return len(self._tree)
