"""
One detection session: a motion classifier driving an adaptive scheduler.

The session owns all mutable state (filter, motion state, debounce counter,
configuration, active policy). It is built on start and dropped on stop;
a new session always begins from zeroed state.
"""

from __future__ import annotations
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from geokit.motion.activity import Activity, Transition, motion_state_for_transition, parse_transition
from geokit.motion.classifier import MotionClassifier
from geokit.motion.config import PolicyConfig
from geokit.motion.types import MotionState
from geokit.scheduling.scheduler import AdaptiveScheduler
from geokit.sources.base import LocationStream, SampleSource
from geokit.utils.errors import StreamRestartFailed
from geokit.utils.events import EventBus, LOCATION_ERROR, LOCATION_LOG, MOTION_STATE_CHANGED
from geokit.utils.log import get_logger
from geokit.utils.validate import LocationError, LocationFix, LocationLog, MotionEvent

logger = get_logger(__name__)


class TrackingState(str, Enum):
    IDLE = "IDLE"
    STATIONARY_POLLING = "STATIONARY_POLLING"
    MOVING_POLLING = "MOVING_POLLING"


def iso_utc_ms(time_ms: int) -> str:
    """
    Format epoch milliseconds as `YYYY-MM-DDTHH:MM:SS.mmmZ`.
    """
    dt = datetime.fromtimestamp(time_ms // 1000, tz=timezone.utc)
    return f"{dt:%Y-%m-%dT%H:%M:%S}.{time_ms % 1000:03d}Z"


class DetectionSession:
    """
    Composite IDLE / STATIONARY_POLLING / MOVING_POLLING state machine.

    Parameters
    ----------
    source
        Accelerometer sample source.
    stream
        Location stream collaborator.
    cfg
        Session configuration; normalized (clamped) on construction.
    events
        Channel receiving motion, location and error notifications.
    """
    def __init__(
        self,
        source: SampleSource,
        stream: LocationStream,
        cfg: PolicyConfig | None = None,
        events: EventBus | None = None,
    ) -> None:
        self.cfg = (cfg if cfg is not None else PolicyConfig.default()).normalized()
        self.events = events if events is not None else EventBus()
        self.classifier = MotionClassifier(source, self.cfg, observer=self._on_transition)
        self.scheduler = AdaptiveScheduler(stream, self.cfg, on_fix=self._on_fix)

        self.state = TrackingState.IDLE
        self.last_error: Optional[StreamRestartFailed] = None
        self._lock = threading.RLock()

    def start(self, threshold: float | None = None) -> None:
        """
        Start sampling and enter STATIONARY_POLLING.

        Raises
        ------
        SensorUnavailable
            If the platform has no accelerometer; the session stays IDLE.
        """
        with self._lock:
            if self.state != TrackingState.IDLE:
                logger.debug("Session already started")
                return
            self.classifier.start(threshold, self.cfg.sampling_period_ms)
            self.state = TrackingState.STATIONARY_POLLING
            logger.info("Session started in %s", self.state.value)
            error = self._schedule(MotionState.STATIONARY)
        self._publish_error(error)

    def stop(self) -> None:
        """
        Stop sampling and the location stream. An in-flight restart is not cancelled.
        """
        with self._lock:
            if self.state == TrackingState.IDLE:
                return
            self.classifier.stop()
            self.scheduler.shutdown()
            self.state = TrackingState.IDLE
            logger.info("Session stopped")

    def retry(self) -> bool:
        """
        Re-apply the policy for the current tracking state after a failed restart.
        """
        with self._lock:
            if self.state == TrackingState.IDLE:
                return False
            moving = self.state == TrackingState.MOVING_POLLING
            error = self._schedule(MotionState.MOVING if moving else MotionState.STATIONARY)
        self._publish_error(error)
        return error is None

    def set_thresholds(self, motion_threshold: float, start_stability: int, stop_stability: int) -> None:
        self.classifier.set_thresholds(motion_threshold, start_stability, stop_stability)

    def set_sampling_period(self, period_ms: int) -> None:
        self.classifier.set_sampling_period(period_ms)

    def set_intervals(self, moving_interval_ms: int, stationary_interval_ms: int, live: bool = True) -> None:
        """
        Update polling intervals.

        While STATIONARY this only changes configuration. While MOVING and
        `live` is set, the moving policy is re-applied immediately.
        """
        error = None
        with self._lock:
            self.scheduler.set_intervals(moving_interval_ms, stationary_interval_ms)
            if live and self.state == TrackingState.MOVING_POLLING:
                error = self._schedule(MotionState.MOVING)
        self._publish_error(error)

    def request_interval(self, interval_ms: int) -> bool:
        """
        Apply a bare polling interval until the next motion transition.
        """
        error = None
        with self._lock:
            if self.state == TrackingState.IDLE:
                return False
            try:
                self.scheduler.request_interval(interval_ms)
            except StreamRestartFailed as e:
                error = self._record(e)
        self._publish_error(error)
        return error is None

    def status(self) -> dict:
        with self._lock:
            active = self.scheduler.active
            return {
                "state": self.state.value,
                "classifier": self.classifier.snapshot(),
                "policy": None if active is None else {
                    "priority": active.priority.value,
                    "interval_ms": active.interval_ms,
                },
                "restarts": self.scheduler.n_restarts,
                "last_error": None if self.last_error is None else self.last_error.code,
                "config": self.cfg.as_dict(),
            }

    def _schedule(self, state: MotionState) -> Optional[StreamRestartFailed]:
        """
        Apply the policy for `state`. Must be called with the lock held;
        the returned error is published by the caller after releasing it.
        """
        try:
            self.scheduler.on_motion_state_changed(state)
        except StreamRestartFailed as e:
            return self._record(e)
        self.last_error = None
        return None

    def on_activity_transition(self, activity: str, transition: str) -> Optional[MotionState]:
        """
        Drive the session from a platform activity-recognition event.

        Mapped events take the same path as classifier transitions.

        Returns
        -------
        MotionState or None
            The state applied, or None if the event says nothing about
            motion or the session is idle.
        """
        act, trans = parse_transition(activity, transition)
        state = motion_state_for_transition(act, trans)
        logger.info("Activity event %s (%s) -> %s", act.value, trans.value, state)
        if state is None:
            return None
        if not self._on_transition(state, act, trans):
            return None
        return state

    def _on_transition(
        self,
        state: MotionState,
        activity: Activity | None = None,
        transition: Transition | None = None,
    ) -> bool:
        """
        Transition observer: update the polling policy, then notify subscribers.
        """
        with self._lock:
            if self.state == TrackingState.IDLE:
                return False
            if state == MotionState.MOVING:
                self.state = TrackingState.MOVING_POLLING
            else:
                self.state = TrackingState.STATIONARY_POLLING
            error = self._schedule(state)

        self._publish_error(error)
        self.events.emit(
            MOTION_STATE_CHANGED,
            MotionEvent(
                state=state.value,
                is_moving=state == MotionState.MOVING,
                activity=None if activity is None else activity.value,
                transition=None if transition is None else transition.value,
            ),
        )
        return True

    def _on_fix(self, fix: LocationFix) -> None:
        if fix.accuracy > self.cfg.max_fix_accuracy_m:
            logger.debug("Dropping fix with accuracy %.1fm", fix.accuracy)
            return
        self.events.emit(
            LOCATION_LOG,
            LocationLog(
                latitude=fix.latitude,
                longitude=fix.longitude,
                timestamp=iso_utc_ms(fix.time_ms),
                accuracy=fix.accuracy,
                is_mock=fix.is_mock,
            ),
        )

    def _record(self, e: StreamRestartFailed) -> StreamRestartFailed:
        self.last_error = e
        logger.warning("Policy %s not applied: %s", e.policy, e.cause)
        return e

    def _publish_error(self, e: Optional[StreamRestartFailed]) -> None:
        if e is not None:
            self.events.emit(LOCATION_ERROR, LocationError(error=e.code, message=str(e.cause)))
