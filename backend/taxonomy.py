"""Derive the category taxonomy offered to the classifier from the folder tree."""

from __future__ import annotations

from typing import Any, Dict, List, Sequence, Tuple

CategoryTree = Dict[str, "CategoryTree"]


def _children(node: Any) -> Sequence[Any]:
    children = getattr(node, "children", None)
    if children is None and isinstance(node, dict):
        children = node.get("children")
    return children if isinstance(children, (list, tuple)) else ()


def _field(node: Any, name: str) -> Any:
    if isinstance(node, dict):
        return node.get(name)
    return getattr(node, name, None)


def build_taxonomy(root_nodes: Sequence[Any] | None) -> CategoryTree:
    """Return the nested ``{title: {...}}`` tree of titled folders.

    ``root_nodes`` is the forest returned by the bookmark store: a single
    synthetic root whose children are the root containers. The containers
    themselves never appear as categories, their folders form the first
    level. Bookmarks are skipped without visiting their subtree. Accepts
    ``FolderNode`` objects or plain dicts and never raises.
    """

    categories: CategoryTree = {}
    if not root_nodes:
        return categories
    try:
        containers = _children(root_nodes[0])
    except (IndexError, KeyError, TypeError):
        return categories

    stack: List[Tuple[Any, CategoryTree]] = []
    for container in reversed(list(containers)):
        if _field(container, "url") or not _field(container, "title"):
            continue
        for child in reversed(list(_children(container))):
            stack.append((child, categories))

    while stack:
        node, level = stack.pop()
        title = _field(node, "title")
        if _field(node, "url") or not isinstance(title, str) or not title:
            continue
        entry = level.setdefault(title, {})
        for child in reversed(list(_children(node))):
            stack.append((child, entry))
    return categories
