"""
Pytest configuration and shared fixtures for the test suite.
"""

import asyncio
import pytest
from pathlib import Path
from typing import List

import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from achievement_watch.config.settings import SinkSettings
from achievement_watch.notify.events import NotificationEvent
from achievement_watch.notify.sinks import DeliveryOutcome, NotificationSink
from achievement_watch.streaming.session import Session
from achievement_watch.streaming.watchers import FileWatcher


class ManualWatcher(FileWatcher):
    """Watcher that never fires on its own; tests drive the tailer directly."""

    instances: List["ManualWatcher"] = []

    def __init__(self):
        self.path = None
        self.notify = None
        self.stopped = False
        ManualWatcher.instances.append(self)

    def start(self, path, notify):
        self.path = path
        self.notify = notify

    def stop(self):
        self.stopped = True


class RecordingSink(NotificationSink):
    """Sink that records every event it receives."""

    kind = "recording"
    requires_destination = False

    def __init__(self, name: str = "recording", enabled: bool = True, delay: float = 0.0):
        super().__init__(SinkSettings(type="webhook", name=name, enabled=enabled))
        self.delay = delay
        self.events: List[NotificationEvent] = []

    async def deliver(self, event: NotificationEvent) -> DeliveryOutcome:
        if self.delay:
            await asyncio.sleep(self.delay)
        self.events.append(event)
        return DeliveryOutcome(sink=self.name, ok=True)

    @property
    def event_types(self) -> List[str]:
        return [event.event_type for event in self.events]


class BlockingSink(NotificationSink):
    """Sink that waits on a gate that is never opened unless the test does it."""

    kind = "blocking"
    requires_destination = False

    def __init__(self, name: str = "blocking"):
        super().__init__(SinkSettings(type="webhook", name=name, enabled=True))
        self.gate = asyncio.Event()
        self.entered = 0

    async def deliver(self, event: NotificationEvent) -> DeliveryOutcome:
        self.entered += 1
        await self.gate.wait()
        return DeliveryOutcome(sink=self.name, ok=True)


class FailingSink(NotificationSink):
    """Sink whose deliver raises."""

    kind = "failing"
    requires_destination = False

    def __init__(self, name: str = "failing"):
        super().__init__(SinkSettings(type="webhook", name=name, enabled=True))

    async def deliver(self, event: NotificationEvent) -> DeliveryOutcome:
        raise RuntimeError("sink exploded")


def added_line(appid: int, exe: str = "game.exe", procid: int = 1000, prefix: str = "[2025-01-01 12:00:00] ") -> str:
    return f'{prefix}Game process added : AppID {appid} "{exe}", ProcID {procid}, IP 0.0.0.0:0'


def removed_line(appid: int, exe: str = "game.exe", procid: int = 1000, prefix: str = "[2025-01-01 12:00:05] ") -> str:
    return f'{prefix}Game process removed: AppID {appid} "{exe}", ProcID {procid}'


async def wait_for(predicate, timeout: float = 2.0, interval: float = 0.01):
    """Poll ``predicate`` until it is true or the timeout expires."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(interval)


@pytest.fixture
def sample_log_lines():
    """Sample console log lines for testing."""
    return [
        "[2025-01-01 12:00:00] Startup - updater built Dec 10 2024 18:00:00",
        added_line(440, "hl2.exe", 4242),
        "[2025-01-01 12:00:01] Some unrelated line with AppID 999",
        removed_line(440, "hl2.exe", 4242),
        added_line(620, "portal2.exe", 5151),
        "[2025-01-01 12:01:00] game process added : AppID 1 \"lowercase.exe\", ProcID 2",
        removed_line(620, "portal2.exe", 5151),
    ]


@pytest.fixture
def log_file(tmp_path):
    """An empty console log in a temporary Steam logs directory."""
    path = tmp_path / "logs" / "console_log.txt"
    path.parent.mkdir(parents=True)
    path.write_text("")
    return path


@pytest.fixture
def manual_watcher():
    """Factory returning ManualWatcher instances; the created watchers are exposed."""
    ManualWatcher.instances = []
    return ManualWatcher


@pytest.fixture
def session():
    return Session(appid=440, display_name="Team Fortress 2", exe_name="hl2.exe", procid=4242)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "tailer: mark test as log tailing related")
    config.addinivalue_line("markers", "notify: mark test as notification related")
    config.addinivalue_line("markers", "slow: mark test as slow running")


def pytest_collection_modifyitems(config, items):
    """Modify collected test items with markers."""
    for item in items:
        if "test_tailer" in item.fspath.basename or "test_watchers" in item.fspath.basename:
            item.add_marker(pytest.mark.tailer)

        if "test_router" in item.fspath.basename:
            item.add_marker(pytest.mark.notify)
