"""Resolve category paths into bookmark folders, creating missing segments."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Tuple

from bookmark_store import FolderNode
from runtime_settings import resolve_root_aliases, resolve_root_folder_id


logger = logging.getLogger(__name__)

SEPARATOR = "/"


class FolderResolutionError(Exception):
    """Raised when a category path cannot be mapped onto a folder."""


class FolderStore(Protocol):
    async def search(self, title: str) -> List[FolderNode]:
        ...

    async def create(self, parent_id: str, title: str, url: Optional[str] = None) -> FolderNode:
        ...


@dataclass
class FolderResolutionResult:
    id: str
    segments: List[str] = field(default_factory=list)
    created: List[str] = field(default_factory=list)


def strip_root_alias(raw_path: str, aliases: Sequence[str]) -> str:
    """Drop a leading root-container name such as ``Bookmarks Bar/``."""

    path = (raw_path or "").strip()
    for alias in aliases:
        prefix = f"{alias}{SEPARATOR}"
        if alias and path.startswith(prefix):
            return path[len(prefix):]
    return path


def normalize_category_path(raw_path: str, aliases: Sequence[str] | None = None) -> List[str]:
    if aliases is None:
        aliases = resolve_root_aliases()
    stripped = strip_root_alias(raw_path, aliases)
    return [segment.strip() for segment in stripped.split(SEPARATOR) if segment.strip()]


class PathResolver:
    """Walks a category path from the root folder, one segment at a time.

    A segment matches only a folder that is a direct child of the current
    parent, so equally named folders in other branches are never reused.
    Folders created before a failure are kept.
    """

    def __init__(
        self,
        store: FolderStore,
        *,
        root_id: str | None = None,
        aliases: Sequence[str] | None = None,
    ) -> None:
        self._store = store
        self._root_id = root_id or resolve_root_folder_id()
        self._aliases = tuple(aliases) if aliases is not None else resolve_root_aliases()
        self._lock = asyncio.Lock()

    @property
    def root_id(self) -> str:
        return self._root_id

    @property
    def aliases(self) -> Tuple[str, ...]:
        return self._aliases

    def normalize(self, raw_path: str) -> List[str]:
        return normalize_category_path(raw_path, self._aliases)

    async def _find_child_folder(self, parent_id: str, title: str) -> Optional[FolderNode]:
        candidates = await self._store.search(title)
        for candidate in candidates:
            if candidate.url is None and candidate.parent_id == parent_id and candidate.title == title:
                return candidate
        return None

    async def resolve_or_create(self, raw_path: str) -> FolderResolutionResult:
        segments = self.normalize(raw_path)
        if not segments:
            raise FolderResolutionError(f"invalid category path: {raw_path!r}")

        async with self._lock:
            parent_id = self._root_id
            created: List[str] = []
            for segment in segments:
                try:
                    folder = await self._find_child_folder(parent_id, segment)
                    if folder is None:
                        folder = await self._store.create(parent_id, segment)
                        created.append(folder.id)
                        logger.debug("Segment %r missing under %s, created %s", segment, parent_id, folder.id)
                except Exception as exc:
                    logger.error("Failed to resolve segment %r under %s: %s", segment, parent_id, exc)
                    raise FolderResolutionError(
                        f"could not resolve folder {segment!r} of {SEPARATOR.join(segments)!r}: {exc}"
                    ) from exc
                parent_id = folder.id

        return FolderResolutionResult(id=parent_id, segments=segments, created=created)
