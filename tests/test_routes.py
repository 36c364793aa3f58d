from __future__ import annotations

import json

import pytest

from stationboot.core.events import REQUEST_RECEIVED
from stationboot.persistence import create_default, encode_record
from stationboot.server import BackendService


@pytest.fixture()
def running(backend: BackendService) -> BackendService:
    backend.start()
    return backend


def test_requests_are_refused_while_stopped(backend: BackendService):
    resp = backend.handle("GET", "/health")
    assert resp.status_code == 503
    assert resp.body == {"error": "Server is not running", "statusCode": 503}


def test_every_request_is_announced(running: BackendService):
    seen = []
    running.events.subscribe(REQUEST_RECEIVED, seen.append)
    running.handle("get", "/status")
    assert seen == [{"path": "/status", "method": "GET"}]


def test_unknown_path_is_404(running: BackendService):
    resp = running.handle("GET", "/nope")
    assert resp.status_code == 404
    assert resp.body["error"] == "Endpoint not found"


def test_wrong_method_is_405(running: BackendService):
    assert running.handle("GET", "/save").status_code == 405
    assert running.handle("POST", "/load").status_code == 405


def test_save_then_load(running: BackendService):
    rec = create_default("p9")
    rec.inventory = {"wrench": 1}
    resp = running.handle("POST", "/save", encode_record(rec))
    assert resp.ok
    assert resp.body == {"success": True, "message": "Save completed"}

    resp = running.handle("GET", "/load", query={"playerId": "p9"})
    assert resp.ok
    assert resp.body["player_id"] == "p9"
    assert resp.body["inventory"] == {"wrench": 1}
    assert resp.body["data_hash"]


def test_save_with_bad_json_is_400(running: BackendService):
    resp = running.handle("POST", "/save", "not json")
    assert resp.status_code == 400
    assert resp.body["error"] == "Invalid JSON data"


def test_save_with_invalid_record_is_400(running: BackendService):
    resp = running.handle("POST", "/save", json.dumps({"player_id": "../etc"}))
    assert resp.status_code == 400


def test_load_defaults_to_local_player(running: BackendService):
    resp = running.handle("GET", "/load")
    assert resp.ok
    assert resp.body["player_id"] == "local_player"


def test_load_with_bad_player_id_is_400(running: BackendService):
    resp = running.handle("GET", "/load", query={"playerId": "a/b"})
    assert resp.status_code == 400


def test_load_of_corrupt_file_is_500(running: BackendService):
    store = running.store
    store.ensure_data_root()
    store.path_for("broken").write_text("{", encoding="utf-8")
    resp = running.handle("GET", "/load", query={"playerId": "broken"})
    assert resp.status_code == 500
    assert resp.body["error"] == "Load failed"


def test_status_reports_server(running: BackendService):
    running.store.load("a")
    resp = running.handle("GET", "/status")
    assert resp.ok
    body = resp.body
    assert body["server"] == "Station Save Server"
    assert body["version"] == "1.0.0"
    assert body["status"] == "running"
    assert body["port"] == 8080
    assert body["address"] == "127.0.0.1"
    assert body["players"] == 1
    assert body["uptime"] >= 0


def test_health(running: BackendService):
    resp = running.handle("GET", "/health")
    assert resp.ok
    assert resp.body["status"] == "healthy"
    assert isinstance(resp.body["timestamp"], str)


def test_handler_crash_is_500(running: BackendService, monkeypatch):
    def boom(player_id):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(running.store, "load", boom)
    resp = running.handle("GET", "/load")
    assert resp.status_code == 500
    assert resp.body["error"] == "Internal server error"
