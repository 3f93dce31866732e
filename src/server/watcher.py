"""Poll the pages directory for added, removed and modified pages."""

import logging
from pathlib import Path

from .pages import slug_from_path


class PageChanges:
    """The difference between two snapshots of the pages directory."""

    def __init__(
        self,
        added: set[str],
        removed: set[str],
        modified: set[str],
    ) -> None:
        """Initialize the change set.

        Args:
            added (set[str]): Slugs of pages that appeared.
            removed (set[str]): Slugs of pages that disappeared.
            modified (set[str]): Slugs of pages whose content changed.

        """
        self.added = added
        self.removed = removed
        self.modified = modified

    def __bool__(self) -> bool:
        return bool(self.added or self.removed or self.modified)

    def __repr__(self) -> str:
        return (
            f"PageChanges(added={sorted(self.added)}, "
            f"removed={sorted(self.removed)}, "
            f"modified={sorted(self.modified)})"
        )


class PageWatcher:
    """Detect page changes by comparing modification times."""

    def __init__(self, pages_path: Path) -> None:
        self.pages_path = pages_path
        self._snapshot: dict[str, float] = {}

    @property
    def current_slugs(self) -> list[str]:
        """Sorted slugs seen by the last poll."""
        return sorted(self._snapshot)

    def snapshot(self) -> dict[str, float]:
        """Map each page slug to the modification time of its file.

        Returns:
            dict[str, float]: Empty if the pages directory is gone.

        """
        pages: dict[str, float] = {}
        try:
            entries = list(self.pages_path.iterdir())
        except (FileNotFoundError, NotADirectoryError):
            logging.warning(
                f"Pages directory {self.pages_path} is not available.",
            )
            return pages

        for entry in entries:
            slug = slug_from_path(entry)
            if not slug:
                continue
            try:
                pages[slug] = entry.stat().st_mtime
            except FileNotFoundError:
                # Removed between listing and stat
                continue
        return pages

    def prime(self) -> None:
        """Record the current state so the next poll only reports
        later changes.
        """
        self._snapshot = self.snapshot()

    def poll(self) -> PageChanges:
        """Compare the pages directory against the previous snapshot.

        Returns:
            PageChanges: What changed since the previous call.

        """
        current = self.snapshot()
        previous = self._snapshot

        added = set(current) - set(previous)
        removed = set(previous) - set(current)
        modified = {
            slug
            for slug in set(current) & set(previous)
            if current[slug] != previous[slug]
        }
        self._snapshot = current

        changes = PageChanges(added, removed, modified)
        if changes:
            logging.info(f"Detected page changes: {changes!r}")
        return changes
