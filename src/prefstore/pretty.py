# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Human-readable dump of a preference tree, for diagnostics."""

from __future__ import annotations

from .node import PreferenceNode

INDENT = '    '


def format_preferences(root: PreferenceNode) -> str | None:
    """Format the tree under root as indented text.

    Each entry is printed as its full path and value, depth first. Nodes with
    neither entries nor children are printed as their bare path.

    Args:
        root: Node to start from, usually a root.

    Returns:
        The dump, or None if root has no children and no entries.

    Example:
        >>> print(format_preferences(user_root))
            Preferences type : USER
                /com/acme/color : red
    """
    if not root.children_names() and not root.keys():
        return None
    kind = 'USER' if root.is_user_node() else 'SYSTEM'
    lines = [f"{INDENT}Preferences type : {kind}"]
    _format_node(root, lines)
    return '\n'.join(lines) + '\n'


def _display_path(node: PreferenceNode) -> str:
    return '' if node.is_root else node.absolute_path


def _format_node(node: PreferenceNode, lines: list[str]) -> None:
    stack = [node]
    while stack:
        node = stack.pop()
        path = _display_path(node)
        children = sorted(node.children_names())
        keys = node.keys()
        if not children and not keys:
            lines.append(f"{INDENT}{INDENT}{path or '/'}")
            continue
        for key in keys:
            lines.append(f"{INDENT}{INDENT}{path}/{key} : {node.get(key)}")
        stack.extend(node.child(name) for name in reversed(children))
