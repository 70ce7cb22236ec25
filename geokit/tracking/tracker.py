"""
Long-lived entry point owning the configuration template and the event channel.

Every `start_motion_detector` call builds a fresh DetectionSession from the
current template; `stop_motion_detector` drops it.
"""

from __future__ import annotations
import threading
from dataclasses import replace
from typing import Callable, Optional

from geokit.motion.config import (
    PolicyConfig, clamp, MIN_INTERVAL_MS, MIN_SAMPLING_PERIOD_MS,
)
from geokit.motion.types import MotionState
from geokit.sources.base import LocationStream, SampleSource
from geokit.tracking.session import DetectionSession
from geokit.utils.events import EventBus, Subscriber
from geokit.utils.log import get_logger

logger = get_logger(__name__)


class Tracker:
    """
    Configuration surface and session factory.

    Setters update the template used by future sessions and are forwarded to
    the live session, if any. All methods may be called from any thread.
    """
    def __init__(
        self,
        source: SampleSource,
        stream: LocationStream,
        cfg: PolicyConfig | None = None,
        events: EventBus | None = None,
    ) -> None:
        self.source = source
        self.stream = stream
        self.cfg = (cfg if cfg is not None else PolicyConfig.default()).normalized()
        self.events = events if events is not None else EventBus()
        self.session: Optional[DetectionSession] = None
        self._lock = threading.RLock()

    def is_available(self) -> dict[str, bool]:
        return {"accelerometer": bool(self.source.has_accelerometer()), "gyroscope": False}

    def subscribe(self, name: str, callback: Subscriber) -> Callable[[], None]:
        return self.events.subscribe(name, callback)

    def start_motion_detector(self, threshold: float | None = None) -> DetectionSession:
        """
        Start a new detection session, or return the running one.

        Raises
        ------
        SensorUnavailable
            If the platform has no accelerometer.
        """
        with self._lock:
            if self.session is not None:
                return self.session
            if threshold is not None:
                self.cfg = replace(self.cfg, motion_threshold=threshold).normalized()
            session = DetectionSession(self.source, self.stream, replace(self.cfg), self.events)
            session.start()
            self.session = session
            return session

    def stop_motion_detector(self) -> None:
        with self._lock:
            if self.session is None:
                return
            self.session.stop()
            self.session = None

    def set_thresholds(self, motion_threshold: float, start_stability: int, stop_stability: int) -> None:
        with self._lock:
            self.cfg = replace(
                self.cfg,
                motion_threshold=motion_threshold,
                start_stability=start_stability,
                stop_stability=stop_stability,
            ).normalized()
            if self.session is not None:
                self.session.set_thresholds(motion_threshold, start_stability, stop_stability)

    def set_stability_thresholds(self, start_stability: int, stop_stability: int) -> None:
        with self._lock:
            self.set_thresholds(self.cfg.motion_threshold, start_stability, stop_stability)

    def set_update_interval(self, sampling_period_ms: int) -> None:
        """
        Change the accelerometer sampling period.
        """
        with self._lock:
            period = clamp("sampling_period_ms", sampling_period_ms, MIN_SAMPLING_PERIOD_MS)
            self.cfg = replace(self.cfg, sampling_period_ms=period)
            if self.session is not None:
                self.session.set_sampling_period(period)

    def set_intervals(self, moving_interval_ms: int, stationary_interval_ms: int) -> None:
        with self._lock:
            self.cfg = replace(
                self.cfg,
                moving_interval_ms=clamp("moving_interval_ms", moving_interval_ms, MIN_INTERVAL_MS),
                stationary_interval_ms=clamp(
                    "stationary_interval_ms", stationary_interval_ms, MIN_INTERVAL_MS
                ),
            )
            if self.session is not None:
                self.session.set_intervals(moving_interval_ms, stationary_interval_ms)

    def set_location_update_interval(self, interval_ms: int) -> bool:
        """
        Apply a bare polling interval to the live session.

        Returns False when no session is running or the restart failed.
        """
        with self._lock:
            if self.session is None:
                logger.info("No running session, interval %dms not applied", interval_ms)
                return False
            return self.session.request_interval(interval_ms)

    def on_activity_transition(self, activity: str, transition: str) -> Optional[MotionState]:
        """
        Forward an activity-recognition event to the live session, if any.
        """
        with self._lock:
            session = self.session
        if session is None:
            logger.info("No running session, activity %s (%s) ignored", activity, transition)
            return None
        return session.on_activity_transition(activity, transition)

    def status(self) -> dict:
        with self._lock:
            if self.session is None:
                return {"state": "IDLE", "config": self.cfg.as_dict()}
            return self.session.status()
