"""Tests for the FastAPI surface."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from geokit.motion.config import PolicyConfig
from geokit.server import create_app, db_path
from geokit.storage.dao import DAO
from geokit.tracking.tracker import Tracker
from geokit.utils.validate import Run, TransitionRecord


@pytest.fixture()
def tracker(source, stream):
    return Tracker(source, stream, PolicyConfig.default())


@pytest.fixture()
def client(tmp_path, monkeypatch, tracker):
    monkeypatch.chdir(tmp_path)
    return TestClient(create_app("m", tracker))


def test_status_and_mission(client):
    assert client.get("/api/status").json() == {"status": "ok"}
    assert client.get("/api/mission").json() == {"mission": "m"}


def test_recorded_transitions(client):
    dao = DAO(db_path("m"))
    dao.add_run(Run(id="r1", mission="m", src_file="a.csv", n_samples=10, preset="default"))
    dao.add_transition(TransitionRecord(run_id="r1", seq=5, ts_ms=None, state="MOVING"))

    assert client.get("/api/runs").json()[0]["id"] == "r1"
    assert client.get("/api/transitions", params={"run_id": "r1"}).json() == [
        {"run_id": "r1", "seq": 5, "ts_ms": None, "state": "MOVING"}
    ]
    assert client.get("/api/policies").json() == []


def test_session_status(client, tracker):
    assert client.get("/api/session").json()["state"] == "IDLE"
    tracker.start_motion_detector()
    body = client.get("/api/session").json()
    assert body["state"] == "STATIONARY_POLLING"
    assert body["policy"] == {"priority": "BALANCED_POWER", "interval_ms": 180_000}
    assert client.get("/api/availability").json() == {"accelerometer": True, "gyroscope": False}


def test_put_thresholds_clamps(client, tracker):
    session = tracker.start_motion_detector()
    resp = client.put(
        "/api/config/thresholds",
        json={"motion_threshold": 1.0, "start_stability": 0, "stop_stability": 10},
    )
    assert resp.status_code == 200
    assert resp.json()["start_stability"] == 1
    assert session.cfg.motion_threshold == 1.0


def test_put_intervals_and_sampling(client, tracker, stream):
    tracker.start_motion_detector()
    client.put("/api/config/intervals", json={"moving_interval_ms": 10_000, "stationary_interval_ms": 60_000})
    body = client.put("/api/config/sampling", json={"sampling_period_ms": 40}).json()

    assert body["sampling_period_ms"] == 100
    assert body["stationary_interval_ms"] == 60_000
    # stationary: intervals change config only
    assert stream.starts == [("BALANCED_POWER", 180_000)]


def test_rejected_threshold(client):
    resp = client.put(
        "/api/config/thresholds",
        json={"motion_threshold": "nan", "start_stability": 1, "stop_stability": 1},
    )
    assert resp.status_code == 422


def test_read_only_app_has_no_config_routes(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    client = TestClient(create_app("m"))
    assert client.get("/api/config").status_code == 404


def test_post_activity(client, tracker, stream):
    tracker.start_motion_detector()
    body = client.post("/api/activity", json={"activity": "IN_VEHICLE", "transition": "ENTER"}).json()
    assert body["applied"] == "MOVING"
    assert body["session"]["state"] == "MOVING_POLLING"
    assert stream.last == ("HIGH_ACCURACY", 30_000)

    body = client.post("/api/activity", json={"activity": "TILTING", "transition": "UNKNOWN"}).json()
    assert body["applied"] is None
    assert body["session"]["state"] == "MOVING_POLLING"
