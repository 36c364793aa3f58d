from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Tuple

import pytest

from stationboot.core.events import (
    CONNECTION_CHANGED,
    LOAD_COMPLETED,
    SERVER_STARTED,
    SERVER_STOPPED,
    EventBus,
)
from stationboot.paths import ENV_DATA_DIR
from stationboot.persistence import create_default
from stationboot.server import AutoSaver, BackendService, BackendState, create_backend
from stationboot.settings import ServerSettings


def record_events(bus: EventBus, *names: str) -> List[Tuple[str, Dict[str, Any]]]:
    seen: List[Tuple[str, Dict[str, Any]]] = []
    for name in names:
        bus.subscribe(name, lambda payload, n=name: seen.append((n, payload)))
    return seen


def test_start_outside_loop_only_flips_state(backend: BackendService, events: EventBus):
    seen = record_events(events, SERVER_STARTED, CONNECTION_CHANGED)
    backend.start()
    assert backend.state is BackendState.RUNNING
    assert backend.is_reachable() is False
    assert seen == [(SERVER_STARTED, {"port": 8080})]


def test_start_twice_is_ignored(backend: BackendService, events: EventBus):
    seen = record_events(events, SERVER_STARTED)
    backend.start()
    backend.start()
    assert len(seen) == 1


def test_stop_when_stopped_is_silent(backend: BackendService, events: EventBus):
    seen = record_events(events, SERVER_STOPPED)
    backend.stop()
    assert seen == []


@pytest.mark.asyncio
async def test_start_schedules_connect_and_load(backend: BackendService, events: EventBus, fake_sleep):
    seen = record_events(events, CONNECTION_CHANGED, LOAD_COMPLETED)
    backend.start()
    record = await backend.wait_until_loaded()

    assert backend.is_reachable() is True
    assert record is not None and record.player_id == "local_player"
    assert fake_sleep.calls == [1.0]
    assert seen[0] == (CONNECTION_CHANGED, {"connected": True})
    assert seen[1][0] == LOAD_COMPLETED and seen[1][1]["success"] is True
    assert backend.data_loaded is True


@pytest.mark.asyncio
async def test_connect_requires_running(backend: BackendService):
    assert await backend.connect() is False
    assert backend.is_reachable() is False


@pytest.mark.asyncio
async def test_connect_fails_when_data_root_unusable(tmp_path: Path, events: EventBus, fake_sleep):
    from stationboot.persistence import PersistenceStore

    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    store = PersistenceStore(blocker / "data", events)
    service = BackendService(store, ServerSettings(auto_connect=False, autosave_enabled=False), events, sleep=fake_sleep)
    seen = record_events(events, CONNECTION_CHANGED)
    service.start()

    assert await service.connect() is False
    assert service.is_reachable() is False
    assert seen == [(CONNECTION_CHANGED, {"connected": False})]
    service.stop()


@pytest.mark.asyncio
async def test_stop_after_connect_announces_disconnect(backend: BackendService, events: EventBus):
    backend.start()
    await backend.wait_until_loaded()
    seen = record_events(events, CONNECTION_CHANGED, SERVER_STOPPED)

    backend.stop()
    assert backend.state is BackendState.STOPPED
    assert backend.is_reachable() is False
    assert seen == [(CONNECTION_CHANGED, {"connected": False}), (SERVER_STOPPED, {})]


@pytest.mark.asyncio
async def test_save_current_persists_and_records_time(backend: BackendService):
    backend.start()
    await backend.wait_until_loaded()
    assert await backend.save_current() is True
    assert backend.last_save_time is not None
    assert backend.store.path_for("local_player").exists()
    assert backend.stats()["last_save_time"] is not None


@pytest.mark.asyncio
async def test_save_current_refuses_while_saving(backend: BackendService):
    backend.is_saving = True
    assert await backend.save_current() is False


@pytest.mark.asyncio
async def test_set_player_id_targets_that_record(backend: BackendService):
    backend.set_player_id("pilot")
    backend.start()
    record = await backend.wait_until_loaded()
    assert record is not None and record.player_id == "pilot"
    assert backend.stats()["player_id"] == "pilot"


def test_stats_reflect_state(backend: BackendService):
    stats = backend.stats()
    assert stats == {
        "is_running": False,
        "is_connected": False,
        "is_saving": False,
        "is_loading": False,
        "last_save_time": None,
        "player_id": "local_player",
        "data_protected": True,
    }


def test_create_backend_uses_configured_root(tmp_path: Path):
    settings = ServerSettings(data_root=str(tmp_path / "custom"))
    service = create_backend(settings)
    assert service.store.data_root == tmp_path / "custom"
    assert service.events is service.store.events


def test_create_backend_defaults_to_app_data_dir(tmp_path: Path, monkeypatch):
    monkeypatch.setenv(ENV_DATA_DIR, str(tmp_path / "env_data"))
    service = create_backend(ServerSettings())
    assert service.store.data_root == (tmp_path / "env_data").resolve()


def test_autosaver_rejects_non_positive_interval(backend: BackendService):
    with pytest.raises(ValueError):
        AutoSaver(backend, 0)


@pytest.mark.asyncio
async def test_autosaver_saves_only_while_reachable(backend: BackendService):
    ticks = 0

    async def tick(delay: float) -> None:
        nonlocal ticks
        ticks += 1
        await asyncio.sleep(0)

    saver = AutoSaver(backend, 30.0, sleep=tick)
    saver.start()
    for _ in range(5):
        await asyncio.sleep(0)
    assert ticks > 0
    assert saver.saves == 0

    backend.store.save(create_default("local_player"))
    backend._reachable = True
    before = ticks
    while ticks < before + 3:
        await asyncio.sleep(0)
    saver.stop()
    assert saver.running is False
    assert saver.saves >= 1


@pytest.mark.asyncio
async def test_autosave_runs_with_backend(store, events, fake_sleep):
    service = BackendService(
        store,
        ServerSettings(connect_delay=0.0, autosave_interval=5.0),
        events,
        sleep=fake_sleep,
    )
    service.start()
    await service.wait_until_loaded()
    while service.autosaver.saves < 2:
        await asyncio.sleep(0)
    assert fake_sleep.count(5.0) >= 2
    service.stop()
    assert service.autosaver.running is False


@pytest.mark.asyncio
async def test_save_current_reports_unserializable_record(backend: BackendService):
    backend.start()
    record = await backend.wait_until_loaded()
    record.inventory["broken"] = object()
    assert await backend.save_current() is False
    assert backend.is_saving is False
