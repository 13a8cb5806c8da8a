"""
Notification sinks.

Each sink delivers one event to one destination and reports the outcome.
Delivery failures never raise; they come back as a failed DeliveryOutcome.
"""

import asyncio
import inspect
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import httpx
from rich.console import Console
from rich.panel import Panel

from .. import __version__
from ..config.settings import SinkSettings
from .events import AchievementUnlocked, NotificationEvent

logger = logging.getLogger(__name__)

USER_AGENT = f"achievement-watch/{__version__}"
MAX_ERROR_BODY = 200


class SinkConfigError(ValueError):
    """A sink is enabled but cannot deliver the event with its configuration."""


@dataclass
class DeliveryOutcome:
    """Result of one delivery attempt."""

    sink: str
    ok: bool
    status: Optional[int] = None
    detail: str = ""

    def __str__(self) -> str:
        state = "ok" if self.ok else "failed"
        status = f" {self.status}" if self.status is not None else ""
        detail = f": {self.detail}" if self.detail else ""
        return f"{self.sink} {state}{status}{detail}"


class NotificationSink(ABC):
    """Base class for delivery targets."""

    kind = "sink"
    is_popup = False
    requires_destination = True

    def __init__(self, settings: SinkSettings):
        self.settings = settings
        self.name = settings.name or self.kind

    @property
    def enabled(self) -> bool:
        return self.settings.enabled

    def validate(self, event: NotificationEvent):
        """Raise SinkConfigError if this sink cannot deliver ``event``."""
        if self.requires_destination and not self.settings.destination:
            raise SinkConfigError(f"Sink '{self.name}' is enabled but has no destination")

    @abstractmethod
    async def deliver(self, event: NotificationEvent) -> DeliveryOutcome:
        """Deliver an event. Must not raise for delivery errors."""


class PopupSink(NotificationSink):
    """
    Hands events to the popup presenter.

    Drawing the popup window belongs to the presenter; the default one
    prints a panel on the console. Plain presenters run in the default
    executor, off the event loop; coroutine presenters are awaited.
    """

    kind = "popup"
    is_popup = True
    requires_destination = False

    def __init__(self, settings: SinkSettings, presenter: Optional[Callable[[NotificationEvent], None]] = None):
        super().__init__(settings)
        self.presenter = presenter or ConsolePresenter()

    async def deliver(self, event: NotificationEvent) -> DeliveryOutcome:
        try:
            if inspect.iscoroutinefunction(self.presenter):
                await self.presenter(event)
            else:
                await asyncio.get_running_loop().run_in_executor(None, self.presenter, event)
        except Exception as e:
            return DeliveryOutcome(sink=self.name, ok=False, detail=str(e))
        return DeliveryOutcome(sink=self.name, ok=True)


class ConsolePresenter:
    """Renders notification events as rich panels."""

    STYLES = {"rare": "magenta", "semi-rare": "yellow", "main": "cyan"}

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def __call__(self, event: NotificationEvent):
        if isinstance(event, AchievementUnlocked):
            body = event.achievement_displayname
            if event.achievement_description:
                body += f"\n[dim]{event.achievement_description}[/dim]"
            body += f"\n{event.percent:.1f}% of players"
            self.console.print(Panel(
                body,
                title=f"Achievement unlocked - {event.gamename}",
                border_style=self.STYLES.get(event.rarity, "cyan"),
            ))
        else:
            self.console.print(Panel(event.summary(), border_style="green"))


class HttpSink(NotificationSink):
    """Shared plumbing for sinks that POST to an HTTP endpoint."""

    def __init__(self, settings: SinkSettings, client: httpx.AsyncClient):
        super().__init__(settings)
        self.client = client

    def _headers(self, content_type: str) -> Dict[str, str]:
        headers = {"Content-Type": content_type, "User-Agent": USER_AGENT}
        auth = self.settings.auth
        if auth and auth.token:
            headers["Authorization"] = f"Bearer {auth.token}"
        return headers

    def _auth(self) -> Optional[httpx.BasicAuth]:
        auth = self.settings.auth
        if auth and auth.username and not auth.token:
            return httpx.BasicAuth(auth.username, auth.password or "")
        return None

    def _event_json(self, event: NotificationEvent) -> str:
        return json.dumps(event.model_dump(mode="json"))

    async def _post(self, url: str, body: str, content_type: str) -> DeliveryOutcome:
        request_kwargs = {
            "content": body.encode("utf-8"),
            "headers": self._headers(content_type),
            "timeout": self.settings.timeout,
        }
        auth = self._auth()
        if auth:
            request_kwargs["auth"] = auth

        try:
            response = await self.client.post(url, **request_kwargs)
        except httpx.HTTPError as e:
            return DeliveryOutcome(sink=self.name, ok=False, detail=f"{type(e).__name__}: {e}")

        if 200 <= response.status_code < 300:
            return DeliveryOutcome(sink=self.name, ok=True, status=response.status_code)

        return DeliveryOutcome(
            sink=self.name,
            ok=False,
            status=response.status_code,
            detail=response.text[:MAX_ERROR_BODY],
        )


class WebhookSink(HttpSink):
    """POSTs events to a webhook URL."""

    kind = "webhook"

    async def deliver(self, event: NotificationEvent) -> DeliveryOutcome:
        if self.settings.payload_mode == "full":
            return await self._post(self.settings.destination, self._event_json(event), "application/json")
        return await self._post(self.settings.destination, event.summary(), "text/plain")


class OpenHABSink(HttpSink):
    """
    Updates openHAB items through the REST API.

    Each event type maps to its own item (``items`` in the sink config).
    Simple payloads send the appid for session events and the apiname for
    achievements; full payloads send the event JSON as the item state.
    """

    kind = "openhab"

    def item_for(self, event: NotificationEvent) -> Optional[str]:
        return self.settings.items.get(event.event_type)

    def validate(self, event: NotificationEvent):
        super().validate(event)
        if not self.item_for(event):
            raise SinkConfigError(f"Sink '{self.name}' has no openHAB item configured for {event.event_type}")

    def simple_value(self, event: NotificationEvent) -> str:
        if isinstance(event, AchievementUnlocked):
            return event.achievement_apiname or "unknown"
        return str(event.appid)

    async def deliver(self, event: NotificationEvent) -> DeliveryOutcome:
        base_url = self.settings.destination.rstrip("/")
        url = f"{base_url}/rest/items/{self.item_for(event)}"

        if self.settings.payload_mode == "full":
            value = self._event_json(event)
        else:
            value = self.simple_value(event)

        logger.debug(f"Sending openHAB update {self.item_for(event)} = {value}")
        return await self._post(url, value, "text/plain")


def build_sinks(
    sink_settings: List[SinkSettings],
    client: httpx.AsyncClient,
    presenter: Optional[Callable[[NotificationEvent], None]] = None,
) -> List[NotificationSink]:
    """Create sinks from configuration, skipping unknown types."""
    sinks: List[NotificationSink] = []
    for settings in sink_settings:
        if settings.type == "popup":
            sinks.append(PopupSink(settings, presenter))
        elif settings.type == "webhook":
            sinks.append(WebhookSink(settings, client))
        elif settings.type == "openhab":
            sinks.append(OpenHABSink(settings, client))
        else:
            logger.warning(f"Unknown sink type '{settings.type}' for sink '{settings.name}', skipping")
    return sinks
