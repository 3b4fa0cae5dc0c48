"""Async access to the bookmark hierarchy stored in the local database."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from database import create_node, list_nodes, search_nodes_by_title
from models import BookmarkNode


logger = logging.getLogger(__name__)


class BookmarkStoreError(Exception):
    """Raised when the bookmark store rejects a read or write."""


@dataclass
class FolderNode:
    """A folder or bookmark as exposed to the classification core."""

    id: str
    title: str
    parent_id: Optional[str] = None
    index: int = 0
    url: Optional[str] = None
    children: List["FolderNode"] = field(default_factory=list)

    @property
    def is_leaf_bookmark(self) -> bool:
        return self.url is not None

    def as_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {"id": self.id, "title": self.title, "index": self.index}
        if self.parent_id is not None:
            payload["parentId"] = self.parent_id
        if self.url is not None:
            payload["url"] = self.url
        else:
            payload["children"] = [child.as_dict() for child in self.children]
        return payload


@dataclass
class FolderOption:
    """Flattened folder entry for category pickers."""

    id: str
    path: str


def _to_folder_node(row: BookmarkNode) -> FolderNode:
    return FolderNode(
        id=str(row.id),
        title=row.title or "",
        parent_id=str(row.parent_id) if row.parent_id is not None else None,
        index=row.position,
        url=row.url,
    )


def build_forest(rows: Sequence[BookmarkNode]) -> List[FolderNode]:
    """Link flat rows into the tree shape returned by ``get_tree``."""

    nodes = {str(row.id): _to_folder_node(row) for row in rows}
    roots: List[FolderNode] = []
    for node in nodes.values():
        parent = nodes.get(node.parent_id) if node.parent_id is not None else None
        if parent is None:
            roots.append(node)
        elif not parent.is_leaf_bookmark:
            parent.children.append(node)
    for node in nodes.values():
        node.children.sort(key=lambda child: (child.index, int(child.id)))
    roots.sort(key=lambda item: int(item.id))
    return roots


def _parse_id(value: str) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise BookmarkStoreError(f"invalid node id: {value!r}") from exc


class BookmarkStore:
    """Folder store collaborator: ``get_tree``, ``search`` and ``create``."""

    async def get_tree(self) -> List[FolderNode]:
        try:
            rows = await asyncio.to_thread(list_nodes)
        except Exception as exc:
            raise BookmarkStoreError(f"could not load bookmark tree: {exc}") from exc
        return build_forest(rows)

    async def search(self, title: str) -> List[FolderNode]:
        try:
            rows = await asyncio.to_thread(search_nodes_by_title, title)
        except Exception as exc:
            raise BookmarkStoreError(f"could not search bookmarks for {title!r}: {exc}") from exc
        return [_to_folder_node(row) for row in rows]

    async def create(self, parent_id: str, title: str, url: Optional[str] = None) -> FolderNode:
        parent = _parse_id(parent_id)
        try:
            row = await asyncio.to_thread(create_node, parent, title, url)
        except (LookupError, ValueError) as exc:
            raise BookmarkStoreError(str(exc)) from exc
        except Exception as exc:
            raise BookmarkStoreError(f"could not create {title!r} under {parent_id}: {exc}") from exc
        kind = "bookmark" if url else "folder"
        logger.info("Created %s %r (id %s) under %s", kind, title, row.id, parent_id)
        return _to_folder_node(row)


def flatten_folder_tree(roots: Sequence[FolderNode]) -> List[FolderOption]:
    """Return every titled folder below the root containers with its slash path."""

    options: List[FolderOption] = []
    if not roots:
        return options
    stack: List[tuple[FolderNode, str]] = []
    for container in reversed(roots[0].children):
        if not container.is_leaf_bookmark:
            stack.append((container, ""))
    while stack:
        node, prefix = stack.pop()
        if node.parent_id == roots[0].id:
            path = ""
        elif not node.title:
            continue
        else:
            path = f"{prefix}/{node.title}" if prefix else node.title
            options.append(FolderOption(id=node.id, path=path))
        for child in reversed(node.children):
            if not child.is_leaf_bookmark:
                stack.append((child, path))
    return options
