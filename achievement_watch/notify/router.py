"""
Fan-out of notification events to sinks.

Delivery is best-effort and at most once per event and sink: every
delivery runs as its own task, failures are logged and never retried, and
nothing about a delivery feeds back into the producers.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set

import httpx

from .events import NotificationEvent
from .sinks import DeliveryOutcome, NotificationSink, SinkConfigError

logger = logging.getLogger(__name__)


class NotificationRouter:
    """
    Dispatches each event to every enabled sink concurrently.

    ``publish`` returns immediately; a slow or failing sink never delays
    another sink or the caller.
    """

    def __init__(
        self,
        sinks: Optional[List[NotificationSink]] = None,
        suppress_popups: bool = False,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize router.

        Args:
            sinks: Delivery targets
            suppress_popups: Skip popup sinks only
            client: Shared HTTP client, closed by close()
        """
        self.sinks: List[NotificationSink] = list(sinks or [])
        self.suppress_popups = suppress_popups
        self.client = client

        # Strong references so pending deliveries are not garbage collected
        self._pending: Set[asyncio.Task] = set()

        self._stats = {
            "events_published": 0,
            "deliveries_ok": 0,
            "deliveries_failed": 0,
            "config_errors": 0,
            "suppressed": 0,
        }

    def add_sink(self, sink: NotificationSink):
        self.sinks.append(sink)

    def publish(self, event: NotificationEvent) -> List[asyncio.Task]:
        """
        Dispatch an event. Must be called from the event loop.

        Returns:
            Delivery tasks started for this event
        """
        self._stats["events_published"] += 1
        tasks = []

        for sink in self.sinks:
            if not sink.enabled:
                continue

            if sink.is_popup and self.suppress_popups:
                self._stats["suppressed"] += 1
                logger.debug(f"Popups suppressed, skipping {sink.name}")
                continue

            try:
                sink.validate(event)
            except SinkConfigError as e:
                self._stats["config_errors"] += 1
                logger.error(f"Skipping {event.event_type} for sink {sink.name}: {e}")
                continue

            task = asyncio.create_task(self._deliver(sink, event))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
            tasks.append(task)

        return tasks

    async def _deliver(self, sink: NotificationSink, event: NotificationEvent) -> DeliveryOutcome:
        try:
            outcome = await sink.deliver(event)
        except Exception as e:
            outcome = DeliveryOutcome(sink=sink.name, ok=False, detail=f"{type(e).__name__}: {e}")

        if outcome.ok:
            self._stats["deliveries_ok"] += 1
            logger.info(f"Delivered {event.event_type} to {sink.name}")
        else:
            self._stats["deliveries_failed"] += 1
            logger.error(f"Delivery of {event.event_type} failed: {outcome}")
        return outcome

    async def drain(self):
        """Wait for in-flight deliveries to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self):
        """Drain deliveries and close the shared HTTP client."""
        await self.drain()
        if self.client is not None:
            await self.client.aclose()
            self.client = None

    @property
    def pending(self) -> int:
        return len(self._pending)

    def get_stats(self) -> Dict[str, Any]:
        """Get router statistics."""
        return {
            "sinks": [
                {"name": s.name, "kind": s.kind, "enabled": s.enabled} for s in self.sinks
            ],
            "suppress_popups": self.suppress_popups,
            "pending": len(self._pending),
            **self._stats,
        }
