"""Last-seen content snapshot cache with timeout-bounded extraction."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Optional, Protocol

from extraction import ContentSnapshot
from messaging import ExtractionMessage, MessageBus
from settings import S


logger = logging.getLogger(__name__)


class ExtractionTrigger(Protocol):
    def trigger(self, page_id: str, url: str, request_id: str) -> object:
        ...


class SnapshotCache:
    """Holds the snapshot of the most recently extracted URL.

    A miss opens one subscription on the bus, triggers the extraction agent
    and waits for the message carrying the matching request id. The
    subscription is closed on every exit path.
    """

    def __init__(
        self,
        bus: MessageBus,
        agent: ExtractionTrigger,
        *,
        timeout: float | None = None,
    ) -> None:
        self._bus = bus
        self._agent = agent
        self._timeout = float(timeout if timeout is not None else S.SNAPSHOT_TIMEOUT_SECONDS)
        self._entry: Optional[ContentSnapshot] = None

    @property
    def cached(self) -> Optional[ContentSnapshot]:
        return self._entry

    def invalidate(self) -> None:
        self._entry = None

    async def get_snapshot(self, page_id: str, target_url: str) -> Optional[ContentSnapshot]:
        entry = self._entry
        if entry is not None and entry.url == target_url:
            logger.debug("Snapshot cache hit for %s", target_url)
            return entry

        self.invalidate()
        request_id = uuid.uuid4().hex
        future: asyncio.Future[ExtractionMessage] = asyncio.get_running_loop().create_future()

        def _on_message(message: ExtractionMessage) -> None:
            if message.request_id != request_id or future.done():
                return
            future.set_result(message)

        subscription = self._bus.subscribe(_on_message)
        try:
            self._agent.trigger(page_id, target_url, request_id)
            message = await asyncio.wait_for(future, timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "No content snapshot for %s within %.1fs; continuing without page content",
                target_url,
                self._timeout,
            )
            return None
        finally:
            subscription.close()

        snapshot = ContentSnapshot.from_payload(message.payload)
        if not snapshot.url:
            snapshot.url = target_url
        if snapshot.error:
            logger.info("Extraction agent reported failure for %s: %s", target_url, snapshot.error)
            return snapshot
        self._entry = snapshot
        logger.debug(
            "Cached snapshot for %s (%d headings, %d paragraphs)",
            snapshot.url,
            len(snapshot.headings),
            len(snapshot.paragraphs),
        )
        return snapshot
