"""
Classify a stream of noisy accelerometer samples as MOVING vs. STATIONARY.

Per sample:
- Step 1: low-pass filter the raw vector to track gravity
- Step 2: subtract gravity to get linear acceleration
- Step 3: threshold the Euclidean magnitude into a raw decision
- Step 4: debounce raw decisions with asymmetric stability thresholds
"""

from __future__ import annotations
import math
import threading
from typing import Callable, Optional

from geokit.motion.config import PolicyConfig, clamp, MIN_STABILITY, MIN_SAMPLING_PERIOD_MS
from geokit.motion.types import DebounceCounter, FilterState, MotionState, Sample
from geokit.sources.base import SampleSource
from geokit.utils.errors import ConfigurationRejected, SensorUnavailable
from geokit.utils.log import get_logger

logger = get_logger(__name__)


class MotionClassifier:
    """
    Stateful gravity-isolation + hysteresis classifier.

    The config object is used as given (not copied) so it can be shared with
    the scheduler of the same session. `on_sample` and the setters are
    serialized by one lock; the observer runs outside it.
    """
    def __init__(
        self,
        source: SampleSource,
        cfg: PolicyConfig | None = None,
        observer: Callable[[MotionState], None] | None = None,
    ) -> None:
        self.source = source
        self.cfg = cfg if cfg is not None else PolicyConfig.default()
        self.observer = observer

        self.filter = FilterState()
        self.debounce = DebounceCounter()
        self.state = MotionState.STATIONARY
        self.magnitude = 0.0
        self.n_samples = 0

        self._running = False
        self._lock = threading.RLock()

    @property
    def running(self) -> bool:
        return self._running

    def start(self, threshold: float | None = None, sampling_period_ms: int | None = None) -> None:
        """
        Reset the filter and the debounce state, then arm the sample source.

        Parameters
        ----------
        threshold
            Motion threshold to use; keeps the configured one when None.
        sampling_period_ms
            Sampling period to arm the source at; keeps the configured one when None.

        Raises
        ------
        SensorUnavailable
            If the platform has no accelerometer.
        """
        with self._lock:
            if self._running:
                logger.debug("Motion classifier already running, start ignored")
                return
            if not self.source.has_accelerometer():
                raise SensorUnavailable()

            if threshold is not None:
                self.cfg.motion_threshold = _finite("motion_threshold", threshold)
            if sampling_period_ms is not None:
                self.cfg.sampling_period_ms = clamp(
                    "sampling_period_ms", sampling_period_ms, MIN_SAMPLING_PERIOD_MS
                )

            self.filter.reset()
            self.debounce.reset()
            self.state = MotionState.STATIONARY
            self.magnitude = 0.0
            self.n_samples = 0

            self.source.start(self.cfg.sampling_period_ms, self._deliver)
            self._running = True
            logger.info(
                "Motion classifier started: threshold=%.3f, period=%dms",
                self.cfg.motion_threshold, self.cfg.sampling_period_ms,
            )

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            self.source.stop()
            logger.info("Motion classifier stopped after %d samples", self.n_samples)

    def set_sampling_period(self, period_ms: int) -> None:
        """
        Change the delivery cadence, re-arming the source if running.

        Filter, motion and debounce state are kept.
        """
        with self._lock:
            self.cfg.sampling_period_ms = clamp("sampling_period_ms", period_ms, MIN_SAMPLING_PERIOD_MS)
            if self._running:
                self.source.stop()
                self.source.start(self.cfg.sampling_period_ms, self._deliver)
                logger.info("Sample source re-armed at %dms", self.cfg.sampling_period_ms)

    def set_thresholds(self, motion_threshold: float, start_stability: int, stop_stability: int) -> None:
        """
        Apply new thresholds to the next evaluation without resetting counters.
        """
        with self._lock:
            self.cfg.motion_threshold = _finite("motion_threshold", motion_threshold)
            self.cfg.start_stability = clamp("start_stability", start_stability, MIN_STABILITY)
            self.cfg.stop_stability = clamp("stop_stability", stop_stability, MIN_STABILITY)
            logger.info(
                "Thresholds set: motion=%.3f, start=%d, stop=%d",
                self.cfg.motion_threshold, self.cfg.start_stability, self.cfg.stop_stability,
            )

    def on_sample(self, sample: Sample) -> Optional[MotionState]:
        """
        Fold one sample into the classifier.

        Returns
        -------
        Optional[MotionState]
            The newly committed state on a confirmed transition, else None.
        """
        with self._lock:
            if not self._running:
                return None
            self.n_samples += 1

            alpha = self.cfg.alpha
            gravity = self.filter.gravity
            linear = [0.0, 0.0, 0.0]
            for i, value in enumerate(sample.axes()):
                gravity[i] = alpha * gravity[i] + (1 - alpha) * value
                linear[i] = value - gravity[i]
            self.magnitude = math.sqrt(sum(a * a for a in linear))

            raw = MotionState.MOVING if self.magnitude > self.cfg.motion_threshold else MotionState.STATIONARY
            count = self.debounce.observe(raw)
            required = self._required(self.debounce.candidate)

            if self.debounce.candidate != self.state:
                if count >= required:
                    self.state = self.debounce.candidate
                    logger.info(
                        "Motion state -> %s after %d samples (|a|=%.3f)",
                        self.state.value, count, self.magnitude,
                    )
                    return self.state
                return None

            # candidate agrees with the committed state: saturate
            self.debounce.count = min(count, required)
            return None

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "running": self._running,
                "state": self.state.value,
                "candidate": self.debounce.candidate.value,
                "count": self.debounce.count,
                "magnitude": self.magnitude,
                "gravity": list(self.filter.gravity),
                "n_samples": self.n_samples,
            }

    def _required(self, candidate: MotionState) -> int:
        if candidate == MotionState.MOVING:
            return self.cfg.start_stability
        return self.cfg.stop_stability

    def _deliver(self, sample: Sample) -> None:
        """
        Sample-source callback: classify and notify the observer on a transition.
        """
        state = self.on_sample(sample)
        if state is not None and self.observer is not None:
            self.observer(state)


def _finite(name: str, value: float) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise ConfigurationRejected(name, value, "must be finite")
    return value
