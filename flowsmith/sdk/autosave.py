"""Background auto-save for an open flow.

One asyncio task, one pending flag, one in-flight guard, one deadline.
Every trigger source only sets the flag and re-arms the deadline:

- ``notify_change()`` after a mutation: save once the debounce expires
- ``notify_change(immediate=True)`` after a destructive edit: save now
- the interval backstop: save only if the graph differs from the last save

A failed save is logged and left for the next trigger; the in-memory graph
is never rolled back.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from typing import Callable

from flowsmith.adapters.notifications import NotificationLevel, NotificationSink
from flowsmith.errors import FlowsmithError
from flowsmith.graph.serialization import serialize_graph
from flowsmith.models.graph import Edge, Node
from flowsmith.sdk.client import FlowClient

logger = logging.getLogger(__name__)

GraphGetter = Callable[[], tuple[list[Node], list[Edge]]]

DEFAULT_DEBOUNCE_SECONDS = 1.0
DEFAULT_INTERVAL_SECONDS = 5.0


class AutoSaveController:
    """Persists the graph of one flow whenever it changes."""

    def __init__(
        self,
        client: FlowClient,
        flow_id: str,
        get_graph: GraphGetter,
        notifier: NotificationSink | None = None,
        debounce: float = DEFAULT_DEBOUNCE_SECONDS,
        interval: float = DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        self.flow_id = flow_id
        self.debounce = debounce
        self.interval = interval
        self.last_saved_snapshot: str | None = None
        self.is_saving = False
        self.write_count = 0

        self._client = client
        self._get_graph = get_graph
        self._notifier = notifier
        self._pending = False
        self._deadline: float | None = None
        self._wake = asyncio.Event()
        self._task: asyncio.Task | None = None

    @property
    def pending(self) -> bool:
        return self._pending

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def mark_saved(self, nodes: list[Node], edges: list[Edge]) -> None:
        """Record a graph known to match the server (e.g. right after loading)."""
        self.last_saved_snapshot = serialize_graph(nodes, edges)
        self._pending = False
        self._deadline = None

    def has_unsaved_changes(self) -> bool:
        nodes, edges = self._get_graph()
        return self._pending or serialize_graph(nodes, edges) != self.last_saved_snapshot

    def notify_change(self, immediate: bool = False) -> None:
        """Schedule a save after a mutation."""
        self._pending = True
        delay = 0.0 if immediate else self.debounce
        self._deadline = time.monotonic() + delay
        self._wake.set()

    def start(self) -> None:
        if not self.running:
            self._task = asyncio.create_task(self._run(), name=f"autosave-{self.flow_id}")

    async def stop(self, flush: bool = True) -> None:
        """Stop the background task, saving outstanding changes first if asked."""
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        if flush and self._pending:
            await self.save(trigger="flush")

    async def save(self, trigger: str = "manual") -> bool:
        """Write the current graph if there is something to write.

        Returns True if a write reached the server.
        """
        if self.is_saving:
            # no queuing: the pending flag survives and the interval retries
            logger.debug("save for flow %s skipped, another save in flight", self.flow_id)
            self._deadline = None
            return False

        nodes, edges = self._get_graph()
        snapshot = serialize_graph(nodes, edges)
        if not self._pending and snapshot == self.last_saved_snapshot:
            return False

        self.is_saving = True
        self._pending = False
        self._deadline = None
        try:
            await self._client.save_graph(self.flow_id, nodes, edges)
        except FlowsmithError as exc:
            self._pending = True
            logger.warning("auto-save of flow %s failed (%s): %s", self.flow_id, trigger, exc.message)
            if self._notifier is not None and trigger != "interval":
                self._notifier.notify(
                    "Error Saving Flow", exc.message, NotificationLevel.destructive
                )
            return False
        finally:
            self.is_saving = False

        self.last_saved_snapshot = snapshot
        self.write_count += 1
        logger.debug("auto-saved flow %s (%s)", self.flow_id, trigger)
        return True

    async def _run(self) -> None:
        next_tick = time.monotonic() + self.interval
        while True:
            now = time.monotonic()
            if self._pending and self._deadline is not None and now >= self._deadline:
                await self.save(trigger="change")
                continue
            if now >= next_tick:
                next_tick = now + self.interval
                await self.save(trigger="interval")
                continue

            wake_at = next_tick
            if self._pending and self._deadline is not None:
                wake_at = min(wake_at, self._deadline)
            self._wake.clear()
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._wake.wait(), timeout=max(0.0, wake_at - now))
