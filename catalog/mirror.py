"""Local list state for one remote collection."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from event_bus import LIFECYCLE_ACTIONS, EventBus, event_name
from notices import NoticeBoard

from catalog.errors import CatalogError
from catalog.sync_client import RecordSyncClient

logger = logging.getLogger("catalog.mirror")

STATUS_IDLE = "idle"
STATUS_LOADING = "loading"
STATUS_READY = "ready"
STATUS_ERROR = "error"


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class CollectionMirror:
    """Mirror of a collection list, replaced wholesale on every refresh.

    A failed refresh keeps the previous items and moves to the error state so a
    stale list is never mistaken for an empty one.
    """

    def __init__(self, client: RecordSyncClient, notices: NoticeBoard | None = None) -> None:
        self.client = client
        self.notices = notices
        self.items: list = []
        self.status = STATUS_IDLE
        self.error: CatalogError | None = None
        self.last_updated: str | None = None
        self._tasks: set[asyncio.Future] = set()
        self._watching: list[tuple[EventBus, str]] = []
        self._generation = 0

    async def refresh(self) -> bool:
        """Fetch the list and replace `items`.

        Only the most recently started refresh may apply its result; an older
        one that settles later is dropped and returns False.
        """
        self._generation += 1
        generation = self._generation
        self.status = STATUS_LOADING
        try:
            items = await self.client.list()
        except CatalogError as exc:
            if generation != self._generation:
                logger.info("mirror_refresh_superseded collection=%s", self.client.collection)
                return False
            self.status = STATUS_ERROR
            self.error = exc
            logger.warning("mirror_refresh_failed collection=%s code=%s", self.client.collection, exc.code)
            if self.notices is not None:
                self.notices.post("error", exc.code, f"Failed to load {self.client.collection} list: {exc.message}")
            return False
        if generation != self._generation:
            logger.info("mirror_refresh_superseded collection=%s", self.client.collection)
            return False
        self.items = items
        self.status = STATUS_READY
        self.error = None
        self.last_updated = _now()
        logger.info("mirror_refreshed collection=%s count=%s", self.client.collection, len(items))
        return True

    def find(self, record_id: str):
        for item in self.items:
            if getattr(item, "id", None) == record_id:
                return item
        return None

    def _on_event(self, event: dict) -> None:
        task = asyncio.ensure_future(self.refresh())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def watch(self, bus: EventBus) -> None:
        for action in LIFECYCLE_ACTIONS:
            name = event_name(self.client.collection, action)
            bus.subscribe(name, self._on_event)
            self._watching.append((bus, name))

    def unwatch(self) -> None:
        for bus, name in self._watching:
            bus.unsubscribe(name, self._on_event)
        self._watching = []

    async def settle(self) -> None:
        while self._tasks:
            pending = list(self._tasks)
            self._tasks.difference_update(pending)
            await asyncio.gather(*pending)
