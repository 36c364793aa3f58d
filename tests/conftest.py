import asyncio
import sys
from pathlib import Path
from typing import Iterator, List

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from stationboot.core.events import EventBus  # noqa: E402
from stationboot.persistence.store import PersistenceStore  # noqa: E402
from stationboot.server.backend import BackendService  # noqa: E402
from stationboot.settings import LoadingSettings, ServerSettings  # noqa: E402


class FakeSleep:
    """Records requested delays without waiting in real time.

    Each ``resolution`` seconds of requested delay costs one pass through the
    event loop, so concurrent sleepers still wake in roughly the right order.
    """

    def __init__(self, resolution: float = 0.05) -> None:
        self.resolution = resolution
        self.calls: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)
        for _ in range(max(1, round(delay / self.resolution))):
            await asyncio.sleep(0)

    @property
    def total(self) -> float:
        return sum(self.calls)

    def count(self, delay: float) -> int:
        return sum(1 for d in self.calls if d == delay)


@pytest.fixture()
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture()
def events() -> EventBus:
    return EventBus()


@pytest.fixture()
def store(tmp_path: Path, events: EventBus) -> PersistenceStore:
    return PersistenceStore(tmp_path / "server_data", events)


@pytest.fixture()
def server_settings() -> ServerSettings:
    return ServerSettings(autosave_enabled=False)


@pytest.fixture()
def backend(store: PersistenceStore, server_settings: ServerSettings, events: EventBus, fake_sleep: FakeSleep) -> Iterator[BackendService]:
    service = BackendService(store, server_settings, events, sleep=fake_sleep)
    yield service
    service.stop()


@pytest.fixture()
def loading_settings() -> LoadingSettings:
    return LoadingSettings(pulse_interval=60.0)
