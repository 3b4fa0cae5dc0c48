"""Sequences taxonomy, snapshot, prompt, classification and filing per request."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from bookmark_store import BookmarkStore, FolderNode, FolderOption, flatten_folder_tree
from classifier import ConfigurationMissingError, classify
from extraction import ContentSnapshot
from path_resolver import PathResolver, strip_root_alias
from prompting import PageAnalysis, compose_prompt, summarize_snapshot
from runtime_settings import ClassifierSettings, resolve_classifier_settings, resolve_prompt_examples
from snapshot_cache import SnapshotCache
from taxonomy import build_taxonomy


logger = logging.getLogger(__name__)

INTERNAL_URL_PREFIXES = (
    "chrome://",
    "chrome-extension://",
    "edge://",
    "brave://",
    "about:",
    "view-source:",
)


class OrchestrationError(Exception):
    """Terminal failure of a request that is not tied to a single component."""


class PageUnavailableError(OrchestrationError):
    pass


class MissingParametersError(OrchestrationError):
    pass


@dataclass
class PageIdentity:
    page_id: str
    title: str
    url: str


@dataclass
class ClassificationOutcome:
    category_path: str
    raw_category: str
    page: PageIdentity
    analysis: Optional[PageAnalysis] = None


@dataclass
class SaveOutcome:
    category: str
    folder_id: str
    bookmark_id: str
    created_folders: List[str] = field(default_factory=list)


def resolve_page_identity(page_id: str | None, title: str | None, url: str | None) -> PageIdentity:
    clean_url = (url or "").strip()
    clean_title = (title or "").strip()
    if not clean_url or not clean_title:
        raise PageUnavailableError("Could not get active page information.")
    if clean_url.lower().startswith(INTERNAL_URL_PREFIXES):
        raise PageUnavailableError("Browser-internal pages cannot be classified.")
    return PageIdentity(page_id=(page_id or "").strip() or clean_url, title=clean_title, url=clean_url)


class Orchestrator:
    """Owns no state besides its collaborators, including the snapshot cache."""

    def __init__(
        self,
        store: BookmarkStore,
        snapshot_cache: SnapshotCache,
        resolver: PathResolver,
        *,
        settings_provider: Callable[[], ClassifierSettings] = resolve_classifier_settings,
        examples: str | None = None,
    ) -> None:
        self._store = store
        self._snapshots = snapshot_cache
        self._resolver = resolver
        self._settings_provider = settings_provider
        self._examples = examples or resolve_prompt_examples()

    async def _load_snapshot(self, page: PageIdentity) -> Optional[ContentSnapshot]:
        try:
            return await self._snapshots.get_snapshot(page.page_id, page.url)
        except Exception as exc:
            logger.warning("Snapshot for %s unavailable, classifying by title only: %s", page.url, exc)
            return None

    async def classify_page(self, page_id: str | None, title: str | None, url: str | None) -> ClassificationOutcome:
        settings = self._settings_provider()
        if not settings.complete:
            raise ConfigurationMissingError()
        page = resolve_page_identity(page_id, title, url)

        snapshot_task = asyncio.create_task(self._load_snapshot(page))
        try:
            tree = await self._store.get_tree()
        except BaseException:
            snapshot_task.cancel()
            raise
        snapshot = await snapshot_task
        taxonomy = build_taxonomy(tree)
        prompt = compose_prompt(page.title, page.url, taxonomy, snapshot, examples=self._examples)
        raw_category = await classify(page.title, prompt, settings)

        return ClassificationOutcome(
            category_path=strip_root_alias(raw_category, self._resolver.aliases),
            raw_category=raw_category,
            page=page,
            analysis=summarize_snapshot(snapshot),
        )

    async def save_bookmark(self, title: str | None, url: str | None, category_path: str | None) -> SaveOutcome:
        if not (title or "").strip() or not (url or "").strip() or not (category_path or "").strip():
            raise MissingParametersError("Missing parameters for saving bookmark.")

        resolution = await self._resolver.resolve_or_create(category_path or "")
        bookmark = await self._store.create(resolution.id, (title or "").strip(), (url or "").strip())
        logger.info("Saved %s into %s (folder %s)", url, category_path, resolution.id)
        return SaveOutcome(
            category=category_path or "",
            folder_id=resolution.id,
            bookmark_id=bookmark.id,
            created_folders=list(resolution.created),
        )

    async def bookmark_tree(self) -> List[FolderNode]:
        return await self._store.get_tree()

    async def folder_options(self) -> List[FolderOption]:
        return flatten_folder_tree(await self._store.get_tree())
