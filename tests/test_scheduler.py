"""Tests for AdaptiveScheduler and the policy mapping."""

from __future__ import annotations

import pytest

from geokit.motion.config import PolicyConfig
from geokit.motion.types import MotionState
from geokit.scheduling.policy import (
    PollingPolicy, Priority, policy_for_interval, policy_for_state,
)
from geokit.scheduling.scheduler import AdaptiveScheduler
from geokit.utils.errors import LocationStreamError, PermissionDenied, StreamRestartFailed

HIGH_30S = PollingPolicy(Priority.HIGH_ACCURACY, 30_000)
BALANCED_3M = PollingPolicy(Priority.BALANCED_POWER, 180_000)


@pytest.fixture()
def scheduler(stream):
    return AdaptiveScheduler(stream, PolicyConfig.default())


def test_policy_for_state_uses_configured_intervals():
    cfg = PolicyConfig(moving_interval_ms=15_000, stationary_interval_ms=600_000)
    assert policy_for_state(MotionState.MOVING, cfg) == PollingPolicy(Priority.HIGH_ACCURACY, 15_000)
    assert policy_for_state(MotionState.STATIONARY, cfg) == PollingPolicy(Priority.BALANCED_POWER, 600_000)


def test_policy_for_interval_boundary():
    assert policy_for_interval(59_999).priority == Priority.HIGH_ACCURACY
    assert policy_for_interval(60_000).priority == Priority.BALANCED_POWER


def test_policies_compare_by_value():
    assert PollingPolicy(Priority.HIGH_ACCURACY, 30_000) == HIGH_30S
    assert PollingPolicy(Priority.BALANCED_POWER, 30_000) != HIGH_30S


def test_identical_policy_restarts_once(scheduler, stream):
    assert scheduler.apply_policy(HIGH_30S) is True
    assert scheduler.apply_policy(PollingPolicy(Priority.HIGH_ACCURACY, 30_000)) is False

    assert stream.starts == [("HIGH_ACCURACY", 30_000)]
    assert scheduler.n_restarts == 1


def test_changed_policy_stops_then_restarts(scheduler, stream):
    scheduler.apply_policy(BALANCED_3M)
    scheduler.apply_policy(HIGH_30S)

    assert stream.starts == [("BALANCED_POWER", 180_000), ("HIGH_ACCURACY", 30_000)]
    assert stream.n_stops == 1
    assert scheduler.active == HIGH_30S


def test_same_interval_different_priority_restarts(scheduler, stream):
    scheduler.apply_policy(PollingPolicy(Priority.BALANCED_POWER, 30_000))
    scheduler.apply_policy(HIGH_30S)
    assert len(stream.starts) == 2


def test_on_motion_state_changed(scheduler, stream):
    assert scheduler.on_motion_state_changed(MotionState.MOVING) == HIGH_30S
    assert scheduler.on_motion_state_changed(MotionState.STATIONARY) == BALANCED_3M
    assert stream.last == ("BALANCED_POWER", 180_000)


def test_failed_restart_keeps_active_policy(scheduler, stream):
    scheduler.apply_policy(BALANCED_3M)
    stream.fail_with = PermissionDenied("permission revoked")

    with pytest.raises(StreamRestartFailed) as info:
        scheduler.apply_policy(HIGH_30S)

    assert info.value.code == "LOCATION_PERMISSION_DENIED"
    assert info.value.policy == HIGH_30S
    assert scheduler.active == BALANCED_3M

    stream.fail_with = None
    assert scheduler.apply_policy(HIGH_30S) is True
    assert scheduler.active == HIGH_30S


def test_active_policy_reacquired_after_failure(scheduler, stream):
    scheduler.apply_policy(BALANCED_3M)
    stream.fail_with = LocationStreamError("provider gone")
    with pytest.raises(StreamRestartFailed):
        scheduler.apply_policy(HIGH_30S)
    stream.fail_with = None

    # stream is down, so the unchanged active policy must be re-requested
    assert scheduler.apply_policy(BALANCED_3M) is True
    assert stream.running


def test_set_intervals_does_not_restart(scheduler, stream):
    scheduler.on_motion_state_changed(MotionState.STATIONARY)
    scheduler.set_intervals(10_000, 120_000)

    assert stream.starts == [("BALANCED_POWER", 180_000)]
    assert scheduler.reapply() == PollingPolicy(Priority.BALANCED_POWER, 120_000)
    assert stream.last == ("BALANCED_POWER", 120_000)


def test_set_intervals_clamps(scheduler):
    scheduler.set_intervals(0, -1)
    assert scheduler.cfg.moving_interval_ms == 1
    assert scheduler.cfg.stationary_interval_ms == 1


def test_reapply_without_state_is_noop(scheduler, stream):
    assert scheduler.reapply() is None
    assert stream.starts == []


def test_request_interval(scheduler, stream):
    assert scheduler.request_interval(45_000) == PollingPolicy(Priority.HIGH_ACCURACY, 45_000)
    assert stream.last == ("HIGH_ACCURACY", 45_000)


def test_shutdown_stops_stream(scheduler, stream):
    scheduler.on_motion_state_changed(MotionState.MOVING)
    scheduler.shutdown()

    assert not stream.running
    assert scheduler.active is None
    assert scheduler.last_state is None
