"""Tests for the Tracker facade and its session lifecycle."""

from __future__ import annotations

import pytest

from geokit.motion.config import PolicyConfig
from geokit.sources.replay import ReplaySampleSource
from geokit.tracking.session import TrackingState
from geokit.tracking.tracker import Tracker
from geokit.utils.errors import SensorUnavailable
from geokit.utils.events import MOTION_STATE_CHANGED


@pytest.fixture()
def tracker(source, stream):
    return Tracker(source, stream, PolicyConfig.default())


def test_is_available(stream):
    assert Tracker(ReplaySampleSource(), stream).is_available() == {"accelerometer": True, "gyroscope": False}
    assert Tracker(ReplaySampleSource(available=False), stream).is_available()["accelerometer"] is False


def test_start_without_sensor(stream):
    t = Tracker(ReplaySampleSource(available=False), stream)
    with pytest.raises(SensorUnavailable):
        t.start_motion_detector()
    assert t.session is None


def test_start_is_idempotent(tracker):
    first = tracker.start_motion_detector(1.2)
    assert tracker.start_motion_detector(3.0) is first
    assert first.cfg.motion_threshold == 1.2


def test_new_session_starts_fresh(tracker, source, streams):
    first = tracker.start_motion_detector()
    source.feed(streams.converge())
    source.feed(streams.moving(20))
    assert first.state == TrackingState.MOVING_POLLING

    tracker.stop_motion_detector()
    assert first.state == TrackingState.IDLE
    assert tracker.session is None

    second = tracker.start_motion_detector()
    assert second is not first
    assert second.state == TrackingState.STATIONARY_POLLING
    assert second.classifier.filter.gravity == [0.0, 0.0, 0.0]


def test_stop_without_session_is_noop(tracker):
    tracker.stop_motion_detector()
    assert tracker.status()["state"] == "IDLE"


def test_thresholds_forwarded_to_live_session(tracker):
    session = tracker.start_motion_detector()
    tracker.set_stability_thresholds(0, 50)

    assert tracker.cfg.start_stability == 1
    assert tracker.cfg.stop_stability == 50
    assert session.cfg.start_stability == 1
    assert session.cfg.stop_stability == 50


def test_template_survives_sessions(tracker):
    tracker.set_stability_thresholds(5, 10)
    tracker.set_intervals(20_000, 240_000)
    session = tracker.start_motion_detector()

    assert session.cfg.start_stability == 5
    assert session.cfg.stop_stability == 10
    assert session.scheduler.active.interval_ms == 240_000


def test_update_interval_clamped_and_rearms(tracker, source):
    tracker.start_motion_detector()
    tracker.set_update_interval(10)

    assert tracker.cfg.sampling_period_ms == 100
    assert source.arms == [100, 100]


def test_location_update_interval(tracker, stream):
    assert tracker.set_location_update_interval(30_000) is False

    tracker.start_motion_detector()
    assert tracker.set_location_update_interval(30_000) is True
    assert stream.last == ("HIGH_ACCURACY", 30_000)


def test_events_reach_subscribers(tracker, source, streams):
    seen = []
    unsubscribe = tracker.subscribe(MOTION_STATE_CHANGED, seen.append)
    tracker.start_motion_detector()
    source.feed(streams.converge())
    source.feed(streams.moving(20))
    unsubscribe()
    source.feed(streams.still(3000))

    assert [e["state"] for e in seen] == ["MOVING"]


def test_activity_transition_forwarded_to_session(tracker, stream):
    assert tracker.on_activity_transition("WALKING", "ENTER") is None
    assert stream.starts == []

    tracker.start_motion_detector()
    assert tracker.on_activity_transition("WALKING", "ENTER").value == "MOVING"
    assert tracker.status()["state"] == TrackingState.MOVING_POLLING.value
    assert stream.last == ("HIGH_ACCURACY", 30_000)
