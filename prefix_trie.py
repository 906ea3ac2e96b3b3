"""
Prefix Trie — a dictionary keyed by strings that can answer prefix queries.

Techniques used:
  - One node per character: no path compression, so every stored key maps
    to exactly one node and the node's path from the root spells the key.
  - Parent back-references held through ``weakref`` so the tree only owns
    its children; a node can rebuild its key and prune itself upwards.
  - Cascading prune: removing a key also drops every ancestor that is left
    childless and non-terminal.
  - Generator-based enumeration over an explicit stack, so prefix queries
    are lazy and the call stack stays flat regardless of key length.
  - Fail-fast iteration: a generation counter detects a trie mutated while
    one of its lazy traversals is still being consumed.

Complexity (n = key length, m = number of nodes under the prefix):
  add / set / get / remove   — O(n)
  get_by_prefix              — O(n + m)
"""

from __future__ import annotations

import logging
import weakref
from abc import ABC, abstractmethod
from collections.abc import Hashable, Iterable, Iterator, Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)

__all__ = [
    "CharComparer",
    "ConcurrentModificationError",
    "DuplicateKeyError",
    "IGNORE_CASE",
    "IgnoreCaseComparer",
    "InvalidKeyError",
    "KeyNotFoundError",
    "ORDINAL",
    "OrdinalComparer",
    "Trie",
    "TrieEntry",
    "TrieError",
]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TrieError(Exception):
    """Base class for every error raised by :class:`Trie`."""


class InvalidKeyError(TrieError, TypeError):
    """The key is ``None``, empty or not a string, or an entry is malformed."""


class DuplicateKeyError(TrieError, ValueError):
    """``add`` was called with a key that is already stored."""

    def __init__(self, key: str) -> None:
        super().__init__(f"An element with the same key already exists: {key!r}")
        self.key = key


class KeyNotFoundError(TrieError, KeyError):
    """No value is stored under the key."""


class ConcurrentModificationError(TrieError, RuntimeError):
    """The trie changed while a lazy traversal over it was in progress."""


# ---------------------------------------------------------------------------
# Character comparers
# ---------------------------------------------------------------------------


class CharComparer(ABC):
    """Equality policy for single characters.

    Two characters are equal when their :meth:`key` values are equal; the
    key is what a node uses to index its children.
    """

    name = "custom"

    @abstractmethod
    def key(self, char: str) -> Hashable:
        """Return the hashable form two equal characters share."""

    def equals(self, a: str, b: str) -> bool:
        return self.key(a) == self.key(b)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class OrdinalComparer(CharComparer):
    """Characters are equal only when they are the same code point."""

    name = "ordinal"

    def key(self, char: str) -> Hashable:
        return char


class IgnoreCaseComparer(CharComparer):
    """Case-insensitive comparison using Unicode case folding."""

    name = "ignore-case"

    def key(self, char: str) -> Hashable:
        return char.casefold()


ORDINAL = OrdinalComparer()
IGNORE_CASE = IgnoreCaseComparer()


# ---------------------------------------------------------------------------
# Entries and nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TrieEntry:
    """Immutable ``(key, value)`` pair produced by prefix queries."""

    key: str
    value: Any = None

    def __iter__(self) -> Iterator[Any]:
        yield self.key
        yield self.value


@dataclass(eq=False)
class _TrieNode:
    """Internal node of the trie.

    ``segment`` is the character on the edge from the parent; the root
    keeps the empty string and never becomes terminal.
    """

    comparer: CharComparer
    segment: str = ""
    terminal: bool = False
    value: Any = None
    children: dict[Hashable, _TrieNode] = field(default_factory=dict)
    # Non-owning: the parent owns us through ``children``, not the reverse.
    _parent: Optional[weakref.ref[_TrieNode]] = field(default=None, repr=False)

    @property
    def parent(self) -> Optional[_TrieNode]:
        if self._parent is None:
            return None
        return self._parent()

    def add_child(self, char: str) -> _TrieNode:
        """Return the child for *char*, creating and linking it if missing."""
        slot = self.comparer.key(char)
        child = self.children.get(slot)
        if child is None:
            child = _TrieNode(self.comparer, segment=char, _parent=weakref.ref(self))
            self.children[slot] = child
        return child

    def get_child(self, char: str) -> Optional[_TrieNode]:
        return self.children.get(self.comparer.key(char))

    def clear(self) -> None:
        """Drop the whole subtree below this node; own state is untouched."""
        self.children.clear()

    def key(self) -> str:
        """Rebuild the full key by walking parent links up to the root."""
        segments = []
        node = self
        parent = node.parent
        while parent is not None:
            segments.append(node.segment)
            node = parent
            parent = node.parent
        return "".join(reversed(segments))

    def all_terminal_descendants(self) -> Iterator[_TrieNode]:
        """Yield every terminal node strictly below this one, depth first."""
        stack = list(self.children.values())
        while stack:
            node = stack.pop()
            if node.terminal:
                yield node
            stack.extend(node.children.values())

    def entries_by_prefix(self) -> Iterator[TrieEntry]:
        """Yield an entry for this node (if terminal) and each terminal below it."""
        stack = [self]
        while stack:
            node = stack.pop()
            if node.terminal:
                yield TrieEntry(node.key(), node.value)
            stack.extend(node.children.values())

    def remove(self) -> None:
        """Unmark this node and prune every ancestor left childless and non-terminal."""
        self.terminal = False
        self.value = None
        node = self
        while not node.children:
            parent = node.parent
            if parent is None:
                return
            del parent.children[self.comparer.key(node.segment)]
            if parent.terminal:
                return
            node = parent


# ---------------------------------------------------------------------------
# Trie container
# ---------------------------------------------------------------------------


class Trie(MutableMapping):
    """A prefix tree mapping string keys to arbitrary values.

    >>> t = Trie({"cat": 1, "car": 2})
    >>> t.add("cart", 3)
    >>> sorted(e.key for e in t.get_by_prefix("car"))
    ['car', 'cart']
    >>> t.remove("car")
    True
    >>> t.try_get_value("cart")
    (True, 3)
    """

    def __init__(
        self,
        entries: Mapping[str, Any] | Iterable[Any] | None = None,
        comparer: CharComparer = ORDINAL,
    ) -> None:
        self.comparer = comparer
        self._root = _TrieNode(comparer)
        self._count = 0
        self._version = 0
        if entries is not None:
            if isinstance(entries, Mapping):
                entries = entries.items()
            self.add_range(entries)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(self, key: str, value: Any = None) -> None:
        """Store *value* under *key*; raise if the key is already stored."""
        _check_key(key)
        node = self._root
        for char in key:
            node = node.add_child(char)
        if node.terminal:
            raise DuplicateKeyError(key)
        self._set_terminal(node, value)
        self._count += 1

    def add_range(self, entries: Iterable[Any]) -> None:
        """Add each ``TrieEntry`` or ``(key, value)`` pair in order.

        Stops at the first duplicate; entries added before it are kept.
        """
        added = 0
        for entry in entries:
            key, value = _unpack_entry(entry)
            self.add(key, value)
            added += 1
        logger.debug("Added %d entries (size=%d)", added, self._count)

    def clear(self) -> None:
        self._root = _TrieNode(self.comparer)
        self._count = 0
        self._version += 1
        logger.debug("Cleared trie")

    def contains_key(self, key: Any) -> bool:
        return self._find_terminal(key) is not None

    def try_get_value(self, key: Any) -> tuple[bool, Any]:
        """Return ``(True, value)`` for a stored key, else ``(False, None)``."""
        node = self._find_terminal(key)
        if node is None:
            return False, None
        return True, node.value

    def has_prefix(self, prefix: Any) -> bool:
        """Return ``True`` if any stored key starts with *prefix*."""
        node = self._find_node(prefix)
        # Pruning leaves no dead branches, so any non-empty subtree holds a key.
        return node is not None and (node.terminal or bool(node.children))

    def get_by_prefix(self, prefix: Any) -> Iterator[TrieEntry]:
        """Lazily yield every entry whose key starts with *prefix*.

        The order is unspecified. An unknown prefix yields nothing.
        """
        node = self._find_node(prefix)
        if node is None:
            return iter(())
        return self._guard(node.entries_by_prefix())

    def remove(self, key: Any) -> bool:
        """Remove *key*. Returns ``True`` if it was stored."""
        node = self._find_terminal(key)
        if node is None:
            return False
        node.remove()
        self._count -= 1
        self._version += 1
        return True

    def enumerate_all(self) -> Iterator[tuple[str, Any]]:
        """Lazily yield ``(key, value)`` for every stored key."""
        return self._guard((node.key(), node.value) for node in self._root.all_terminal_descendants())

    # ------------------------------------------------------------------
    # Entry-level helpers
    # ------------------------------------------------------------------

    def contains_entry(self, entry: Any) -> bool:
        """Return ``True`` if the key is stored with an equal value."""
        key, value = entry
        node = self._find_terminal(key)
        return node is not None and node.value == value

    def remove_entry(self, entry: Any) -> bool:
        """Remove the key only when it is stored with an equal value."""
        key, _ = entry
        if not self.contains_entry(entry):
            return False
        return self.remove(key)

    def copy_to(self, target: list, index: int = 0) -> None:
        """Write every ``TrieEntry`` into *target* starting at *index*."""
        if index < 0:
            raise ValueError(f"index must be non-negative, got {index}")
        if len(target) - index < self._count:
            raise ValueError(
                f"target has room for {len(target) - index} entries, {self._count} needed"
            )
        for offset, (key, value) in enumerate(self.enumerate_all()):
            target[index + offset] = TrieEntry(key, value)

    # ------------------------------------------------------------------
    # MutableMapping protocol
    # ------------------------------------------------------------------

    def __getitem__(self, key: str) -> Any:
        node = self._find_terminal(key)
        if node is None:
            raise KeyNotFoundError(key)
        return node.value

    def __setitem__(self, key: str, value: Any) -> None:
        _check_key(key)
        node = self._find_node(key)
        if node is None:
            self.add(key, value)
            return
        if not node.terminal:
            self._count += 1
        self._set_terminal(node, value)

    def __delitem__(self, key: str) -> None:
        if not self.remove(key):
            raise KeyNotFoundError(key)

    def __contains__(self, key: object) -> bool:
        return self.contains_key(key)

    def __iter__(self) -> Iterator[str]:
        return self._guard(node.key() for node in self._root.all_terminal_descendants())

    def __len__(self) -> int:
        return self._count

    def __repr__(self) -> str:
        items = ", ".join(f"{key!r}: {value!r}" for key, value in self.enumerate_all())
        return f"{type(self).__name__}({{{items}}}, comparer={self.comparer!r})"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _set_terminal(self, node: _TrieNode, value: Any) -> None:
        node.terminal = True
        node.value = value
        self._version += 1

    def _find_node(self, key: Any) -> Optional[_TrieNode]:
        """Walk the trie following *key*; return the landing node or None."""
        if not isinstance(key, str):
            return None
        node = self._root
        for char in key:
            node = node.get_child(char)
            if node is None:
                return None
        return node

    def _find_terminal(self, key: Any) -> Optional[_TrieNode]:
        node = self._find_node(key)
        if node is None or not node.terminal:
            return None
        return node

    def _guard(self, items: Iterator[Any]) -> Iterator[Any]:
        # Capture the generation now, not on the first next().
        return self._checked(items, self._version)

    def _checked(self, items: Iterator[Any], version: int) -> Iterator[Any]:
        # Check after every pull, including the one that finds the walk exhausted.
        while True:
            item = next(items, _EXHAUSTED)
            if self._version != version:
                raise ConcurrentModificationError("Trie changed during iteration")
            if item is _EXHAUSTED:
                return
            yield item


_EXHAUSTED = object()


def _unpack_entry(entry: Any) -> tuple[Any, Any]:
    if isinstance(entry, TrieEntry):
        return entry.key, entry.value
    if isinstance(entry, (tuple, list)) and len(entry) == 2:
        return entry[0], entry[1]
    raise InvalidKeyError(f"expected a TrieEntry or (key, value) pair, got {entry!r}")


def _check_key(key: Any) -> None:
    if key is None:
        raise InvalidKeyError("key must not be None")
    if not isinstance(key, str):
        raise InvalidKeyError(f"key must be a string, not {type(key).__name__}")
    # The root stands for the empty key and is never terminal.
    if not key:
        raise InvalidKeyError("key must not be empty")


# ------------------------------------------------------------------
# Quick demo
# ------------------------------------------------------------------

if __name__ == "__main__":
    trie = Trie()

    words = ["apple", "app", "application", "apply", "ape", "bat", "batch", "bath"]
    for w in words:
        trie.add(w, w.upper())

    print(f"Trie size: {len(trie)}")
    print(f"trie['apple']              → {trie['apple']}")
    print(f"try_get_value('apex')      → {trie.try_get_value('apex')}")
    print(f"has_prefix('app')          → {trie.has_prefix('app')}")
    print(f"get_by_prefix('app')       → {sorted(e.key for e in trie.get_by_prefix('app'))}")

    trie.remove("app")
    print(f"\nAfter removing 'app':")
    print(f"'app' in trie              → {'app' in trie}")
    print(f"get_by_prefix('app')       → {sorted(e.key for e in trie.get_by_prefix('app'))}")
