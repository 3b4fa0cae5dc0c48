"""Extraction agent that turns a web page into a bounded content snapshot."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Set
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from messaging import ExtractionMessage, MessageBus
from settings import S


logger = logging.getLogger(__name__)

MAX_PARAGRAPHS = 10
MAX_TEXT_CHARS = 5000
EXTRACTION_FAILED = "Failed to extract content"

_WHITESPACE_RE = re.compile(r"\s+")
_OG_PROPERTY_RE = re.compile(r"^og:")


@dataclass
class PageMetadata:
    title: str = ""
    description: str = ""
    keywords: List[str] = field(default_factory=list)
    author: str = ""
    og_tags: Dict[str, str] = field(default_factory=dict)
    canonical_url: str = ""


@dataclass
class ContentSnapshot:
    """Bounded representation of a page used to enrich classification."""

    url: str
    title: str = ""
    metadata: PageMetadata = field(default_factory=PageMetadata)
    headings: List[str] = field(default_factory=list)
    paragraphs: List[str] = field(default_factory=list)
    text: str = ""
    error: Optional[str] = None

    @property
    def usable(self) -> bool:
        return self.error is None

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ContentSnapshot":
        raw_meta = payload.get("metadata")
        meta = raw_meta if isinstance(raw_meta, dict) else {}
        og_raw = meta.get("og_tags")
        metadata = PageMetadata(
            title=str(meta.get("title") or ""),
            description=str(meta.get("description") or ""),
            keywords=[str(item) for item in meta.get("keywords") or [] if str(item).strip()],
            author=str(meta.get("author") or ""),
            og_tags={str(k): str(v) for k, v in og_raw.items()} if isinstance(og_raw, dict) else {},
            canonical_url=str(meta.get("canonical_url") or ""),
        )
        error = payload.get("error")
        return cls(
            url=str(payload.get("url") or ""),
            title=str(payload.get("title") or ""),
            metadata=metadata,
            headings=[str(item) for item in payload.get("headings") or []],
            paragraphs=[str(item) for item in payload.get("paragraphs") or []][:MAX_PARAGRAPHS],
            text=str(payload.get("text") or "")[:MAX_TEXT_CHARS],
            error=str(error) if error else None,
        )


def _element_text(tag: Any) -> str:
    # Inline markup keeps its surrounding spaces.
    return _WHITESPACE_RE.sub(" ", tag.get_text()).strip()


def _meta_content(soup: BeautifulSoup, name: str) -> str:
    tag = soup.find("meta", attrs={"name": name})
    if tag and tag.get("content"):
        return str(tag["content"]).strip()
    return ""


def _extract_metadata(soup: BeautifulSoup, url: str, title: str) -> PageMetadata:
    keywords_raw = _meta_content(soup, "keywords")
    keywords = [item.strip() for item in keywords_raw.split(",") if item.strip()]

    og_tags: Dict[str, str] = {}
    for tag in soup.find_all("meta", attrs={"property": _OG_PROPERTY_RE}):
        prop = str(tag.get("property") or "")
        if prop:
            og_tags[prop[3:]] = str(tag.get("content") or "")

    canonical = ""
    canonical_tag = soup.find("link", rel="canonical")
    if canonical_tag and canonical_tag.get("href"):
        canonical = urljoin(url, str(canonical_tag["href"]).strip())

    return PageMetadata(
        title=title,
        description=_meta_content(soup, "description"),
        keywords=keywords,
        author=_meta_content(soup, "author"),
        og_tags=og_tags,
        canonical_url=canonical,
    )


def extract_snapshot(html: str, url: str) -> ContentSnapshot:
    """Parse HTML into a snapshot: metadata, headings, paragraphs and text."""

    soup = BeautifulSoup(html, "html.parser")
    title_tag = soup.find("title")
    title = _element_text(title_tag) if title_tag else ""

    metadata = _extract_metadata(soup, url, title)
    headings = [
        text
        for text in (_element_text(tag) for tag in soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"]))
        if text
    ]
    paragraphs = [text for text in (_element_text(tag) for tag in soup.find_all("p")) if text]

    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()
    body = soup.body or soup
    text = _WHITESPACE_RE.sub(" ", body.get_text(" ")).strip()

    return ContentSnapshot(
        url=url,
        title=title,
        metadata=metadata,
        headings=headings,
        paragraphs=paragraphs[:MAX_PARAGRAPHS],
        text=text[:MAX_TEXT_CHARS],
    )


class ExtractionAgent:
    """Fetches a page and reports its snapshot through the message bus.

    Every ``trigger`` publishes exactly one :class:`ExtractionMessage`,
    carrying either the snapshot payload or an ``error`` payload.
    """

    def __init__(
        self,
        bus: MessageBus,
        *,
        user_agent: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self._bus = bus
        self._user_agent = user_agent or S.EXTRACTION_USER_AGENT
        self._timeout = float(timeout if timeout is not None else S.EXTRACTION_TIMEOUT_SECONDS)
        self._tasks: Set[asyncio.Task[None]] = set()

    def trigger(self, page_id: str, url: str, request_id: str) -> asyncio.Task[None]:
        task = asyncio.create_task(self._run(page_id, url, request_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _fetch(self, url: str) -> str:
        async with httpx.AsyncClient(timeout=self._timeout, follow_redirects=True) as client:
            response = await client.get(url, headers={"User-Agent": self._user_agent})
            response.raise_for_status()
            return response.text

    async def _run(self, page_id: str, url: str, request_id: str) -> None:
        try:
            html = await self._fetch(url)
            payload = extract_snapshot(html, url).as_dict()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Content extraction for %s failed: %s", url, exc)
            payload = {"url": url, "title": "", "error": EXTRACTION_FAILED}
        self._bus.publish(ExtractionMessage(request_id=request_id, page_id=page_id, payload=payload))
