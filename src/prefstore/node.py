# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""PreferenceNode - an in-memory hierarchical preference node.

Each node owns an unordered string-to-string map of entries and a set of
named children. Children are created the first time they are addressed and
live as long as the process does: there is no backing store, so flush and
sync have nothing to do.

Path Syntax:
    - Relative paths: 'com/acme/app' (resolved from the node)
    - Absolute paths: '/com/acme/app' (resolved from the root)
    - The root itself: '/'

Example:
    Basic usage::

        root = PreferenceNode.create_root(Partition.USER)
        app = root.node('com/acme/app')
        app.put('color', 'red')

        print(app.absolute_path)  # '/com/acme/app'
        print(app.get('color'))  # 'red'

Thread safety:
    Nodes perform no locking. Callers sharing a tree between threads must
    serialize every operation on a node, either with one lock per node or
    with a single lock for the whole tree.
"""

from __future__ import annotations

import weakref
from enum import Enum
from typing import Iterator

from .exceptions import InvalidNameError

PATH_SEPARATOR = '/'


class Partition(Enum):
    """The tree a node belongs to."""

    USER = 'user'
    SYSTEM = 'system'


class PreferenceNode:
    """A node in a preference tree.

    Each node has:
    - name: The node's name relative to its parent ('' for a root)
    - parent: Non-owning reference to the parent node (None for a root)
    - partition: USER or SYSTEM, inherited from the root
    - entries: Unordered mapping of string keys to string values
    - children: Named child nodes, owned by this node

    Example:
        >>> root = PreferenceNode.create_root(Partition.SYSTEM)
        >>> child = root.child('net')
        >>> child.absolute_path
        '/net'
        >>> child.is_user_node()
        False
    """

    __slots__ = ('_name', '_parent_ref', '_partition', '_entries', '_children', '__weakref__')

    def __init__(
        self,
        parent: PreferenceNode | None,
        name: str,
        partition: Partition | None = None,
    ) -> None:
        """Initialize a PreferenceNode.

        Prefer create_root() and child(): a node built directly is not
        registered in its parent's children.

        Args:
            parent: The parent node, or None for a root.
            name: The name relative to the parent, '' for a root.
            partition: The partition of a root. Ignored when parent is given,
                since children always inherit it. Defaults to USER.

        Raises:
            InvalidNameError: If name contains '/', or if a root is given a
                non-empty name, or a child an empty one.
        """
        if PATH_SEPARATOR in name:
            raise InvalidNameError(f"Node name '{name}' contains '{PATH_SEPARATOR}'")
        if parent is None:
            if name != '':
                raise InvalidNameError(f"Root node must have an empty name, got '{name}'")
            self._parent_ref = None
            self._partition = partition if partition is not None else Partition.USER
        else:
            if name == '':
                raise InvalidNameError("Child node name must not be empty")
            self._parent_ref = weakref.ref(parent)
            self._partition = parent._partition
        self._name = name
        self._entries: dict[str, str] = {}
        self._children: dict[str, PreferenceNode] = {}

    @classmethod
    def create_root(cls, partition: Partition = Partition.USER) -> PreferenceNode:
        """Create a new root node of the given partition."""
        return cls(None, '', partition)

    # ==================== Special Methods ====================

    def __repr__(self) -> str:
        return (
            f"PreferenceNode({self.absolute_path!r}, "
            f"partition={self._partition.name}, entries={len(self._entries)})"
        )

    def __len__(self) -> int:
        """Return the number of entries in this node."""
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        """Check if key is set in this node."""
        return key in self._entries

    # ==================== Identity ====================

    @property
    def name(self) -> str:
        """The node's name relative to its parent ('' for a root)."""
        return self._name

    @property
    def parent(self) -> PreferenceNode | None:
        """The parent node, or None for a root."""
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @property
    def partition(self) -> Partition:
        return self._partition

    @property
    def is_root(self) -> bool:
        return self._parent_ref is None

    @property
    def root(self) -> PreferenceNode:
        """Get the root node of this tree."""
        current = self
        while current.parent is not None:
            current = current.parent
        return current

    @property
    def absolute_path(self) -> str:
        """Slash-joined names from the root to this node ('/' for a root)."""
        names = []
        current: PreferenceNode | None = self
        while current is not None and not current.is_root:
            names.append(current._name)
            current = current.parent
        return PATH_SEPARATOR + PATH_SEPARATOR.join(reversed(names))

    def is_user_node(self) -> bool:
        """True if this node belongs to the USER tree."""
        return self._partition is Partition.USER

    # ==================== Children ====================

    def child(self, name: str) -> PreferenceNode:
        """Return the child named name, creating it if needed.

        Repeated calls with the same name return the same node.

        Args:
            name: Child name, must not be empty or contain '/'.

        Returns:
            The existing or newly created child node.

        Raises:
            InvalidNameError: If name is empty or contains '/'.
        """
        node = self._children.get(name)
        if node is None:
            node = PreferenceNode(self, name)
            self._children[name] = node
        return node

    def list_child_names(self) -> set[str]:
        """Names of children not yet resident in memory.

        Always empty: every child of an in-memory node is already resident,
        so there is nothing further to discover. Use children_names() to list
        the resident children.
        """
        return set()

    def children_names(self) -> list[str]:
        """Names of the direct children of this node, in no particular order."""
        names = set(self._children)
        names.update(self.list_child_names())
        return list(names)

    def iter_children(self) -> Iterator[PreferenceNode]:
        """Yield the direct children of this node."""
        yield from list(self._children.values())

    def node(self, path: str) -> PreferenceNode:
        """Resolve path to a node, creating missing nodes along the way.

        Args:
            path: Relative ('a/b') or absolute ('/a/b') path. '' is this
                node, '/' is the root.

        Returns:
            The node at path.

        Raises:
            InvalidNameError: If path ends with '/' (other than '/') or
                contains '//'.

        Example:
            >>> root.node('com/acme').node('/com').absolute_path
            '/com'
        """
        start, names = self._split_path(path)
        current = start
        for name in names:
            current = current.child(name)
        return current

    def node_exists(self, path: str) -> bool:
        """Check if the node at path exists, without creating anything.

        Raises:
            InvalidNameError: If path is malformed, as in node().
        """
        start, names = self._split_path(path)
        current = start
        for name in names:
            current = current._children.get(name)
            if current is None:
                return False
        return True

    def _split_path(self, path: str) -> tuple[PreferenceNode, list[str]]:
        """Split path into its starting node and the names to walk."""
        if path == '':
            return self, []
        if path == PATH_SEPARATOR:
            return self.root, []
        if path.endswith(PATH_SEPARATOR):
            raise InvalidNameError(f"Path '{path}' ends with '{PATH_SEPARATOR}'")
        if PATH_SEPARATOR * 2 in path:
            raise InvalidNameError(f"Path '{path}' contains consecutive '{PATH_SEPARATOR}'")
        if path.startswith(PATH_SEPARATOR):
            return self.root, path[1:].split(PATH_SEPARATOR)
        return self, path.split(PATH_SEPARATOR)

    # ==================== Entries ====================

    def keys(self) -> list[str]:
        """Return the keys set in this node, in no particular order."""
        return list(self._entries)

    def get(self, key: str, default: str | None = None) -> str | None:
        """Get the value of key, or default if it is not set."""
        return self._entries.get(key, default)

    def put(self, key: str, value: str) -> None:
        """Set key to value, replacing any previous value.

        Raises:
            TypeError: If key or value is not a string.
            ValueError: If key contains a NUL character.
        """
        if not isinstance(key, str) or not isinstance(value, str):
            raise TypeError(
                f"key and value must be str, not {type(key).__name__} "
                f"and {type(value).__name__}"
            )
        if '\x00' in key:
            raise ValueError("key must not contain NUL characters")
        self._entries[key] = value

    def remove(self, key: str) -> None:
        """Remove key if set. Removing an unset key does nothing."""
        self._entries.pop(key, None)

    def remove_all_entries(self) -> None:
        """Clear every entry of this node. The node stays in its parent."""
        self._entries.clear()

    def remove_node(self) -> None:
        """Logically remove this node and its subtree.

        Clears the entries of this node and of every descendant. Nodes are
        not unlinked and remain addressable through their parents.
        """
        stack = [self]
        while stack:
            node = stack.pop()
            node.remove_all_entries()
            stack.extend(node.iter_children())

    def flush(self) -> None:
        """Nothing to flush: the data lives only in memory."""

    def sync(self) -> None:
        """Nothing to sync: the data lives only in memory."""
