"""This module represents the implementation of a radix tree (compressed
prefix tree) that's used for prefix completion over page identifiers.

Chains of single-child nodes are merged into one multi-character edge, so
each node stores the part of a key consumed when descending from its parent.
"""


class EmptyKeyError(ValueError):
    """Raised when an empty string is inserted into the radix tree."""


def longest_common_prefix(first: str, second: str) -> str:
    """Return the longest leading substring shared by two strings.

    Args:
        first (str): The first string.
        second (str): The second string.

    Returns:
        str: The common prefix, possibly empty.

    """
    index = 0
    limit = min(len(first), len(second))
    while index < limit and first[index] == second[index]:
        index += 1
    return first[:index]


class RadixNode:
    """Represent a node in the radix tree structure."""

    def __init__(self, edge_label: str, is_word: bool = False) -> None:
        """Initialize a new radix tree node.

        Attributes:
            edge_label (str): The portion of a key consumed when
            descending from the parent to this node. Empty for the root.
            children (dict): A dictionary mapping the first character of
            each child's edge label to that child.
            is_word (bool): Indicates whether the path from the root to
            this node spells an inserted key.

        """
        self.edge_label = edge_label
        self.children: dict[str, RadixNode] = {}
        self.is_word = is_word

    def insert(self, suffix: str) -> bool:
        """Insert the part of a key that remains below this node.

        Args:
            suffix (str): The rest of the key after this node's edge label.

        Returns:
            bool: True if the key was not stored before, False otherwise.

        """
        # The key ends exactly on this node
        if not suffix:
            added = not self.is_word
            self.is_word = True
            return added

        child = self.children.get(suffix[0])
        if child is None:
            self.children[suffix[0]] = RadixNode(suffix, is_word=True)
            return True

        common = longest_common_prefix(child.edge_label, suffix)
        if common == child.edge_label:
            return child.insert(suffix[len(common) :])

        # Split the edge: the child moves under a new intermediate node
        # holding the shared part of both labels.
        del self.children[suffix[0]]
        child.edge_label = child.edge_label[len(common) :]
        intermediate = RadixNode(common)
        intermediate.children[child.edge_label[0]] = child
        self.children[common[0]] = intermediate
        return intermediate.insert(suffix[len(common) :])

    def contains(self, suffix: str) -> bool:
        """Check whether the rest of a key is stored below this node.

        Args:
            suffix (str): The rest of the key after this node's edge label.

        Returns:
            bool: True only if `suffix` ends on a word node.

        """
        if not suffix:
            return self.is_word

        child = self.children.get(suffix[0])
        if child is None or not suffix.startswith(child.edge_label):
            return False
        return child.contains(suffix[len(child.edge_label) :])

    def search(self, query: str, path: str, results: set[str]) -> None:
        """Collect every stored key below this node that starts with the
        accumulated path followed by `query`.

        Args:
            query (str): The part of the query not matched yet,
            starting at this node's edge label.
            path (str): The labels from the root down to the parent.
            results (set): The collector owned by the current search call.

        """
        label = self.edge_label
        # The query either covers the whole label or ends inside it
        if not label.startswith(query[: len(label)]):
            return

        path += label
        query = query[len(label) :]

        if query:
            child = self.children.get(query[0])
            if child is not None:
                child.search(query, path, results)
            return

        if self.is_word:
            results.add(path)
        for child in self.children.values():
            child.search("", path, results)

    def dump(self, depth: int, lines: list[str]) -> None:
        """Append one indented line per node of this subtree to `lines`."""
        if depth:
            marker = " (word)" if self.is_word else ""
            lines.append(f"{'-' * depth} {self.edge_label}{marker}")
        for child in self.children.values():
            child.dump(depth + 1, lines)


class RadixTree:
    """Represents the radix tree data structure."""

    def __init__(self) -> None:
        """Initialize the root node of the radix tree."""
        self.root = RadixNode("")
        self._size = 0

    def insert(self, key: str) -> bool:
        """Insert a new key into the radix tree.

        Args:
            key (str): The key to be inserted into the radix tree.

        Raises:
            EmptyKeyError: If `key` is the empty string.

        Returns:
            bool: True if the key is new, False if it was already stored.

        """
        if not key:
            raise EmptyKeyError("Cannot insert an empty key into the tree.")

        added = self.root.insert(key)
        if added:
            self._size += 1
        return added

    def search(self, query: str) -> set[str]:
        """Find every stored key that starts with the given query.

        Args:
            query (str): The prefix to complete. The empty string
            matches the whole corpus.

        Returns:
            set[str]: A new set of matching keys for each call.

        """
        results: set[str] = set()
        self.root.search(query, "", results)
        return results

    def keys(self) -> set[str]:
        """Return every stored key."""
        return self.search("")

    def dump(self) -> str:
        """Render the node structure as indented text."""
        lines: list[str] = []
        self.root.dump(0, lines)
        return "\n".join(lines)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and bool(key) and self.root.contains(key)

    def __len__(self) -> int:
        return self._size
