# geokit/motion/config.py

import math
from dataclasses import dataclass, fields, replace

from geokit.utils.errors import ConfigurationRejected
from geokit.utils.log import get_logger

logger = get_logger(__name__)

MIN_STABILITY          = 1
MIN_SAMPLING_PERIOD_MS = 100
MIN_INTERVAL_MS        = 1


@dataclass
class PolicyConfig:
    """
    Configuration for the motion classifier and the adaptive scheduler.

    Attributes
    ----------
    motion_threshold
        Linear-acceleration magnitude (m/s²) above which a sample counts as motion.
    start_stability
        Consecutive moving samples needed to declare MOVING.
    stop_stability
        Consecutive still samples needed to declare STATIONARY.
    sampling_period_ms
        Accelerometer sampling period.
    moving_interval_ms
        Location polling interval while moving.
    stationary_interval_ms
        Location polling interval while stationary (the heartbeat).
    alpha
        Smoothing factor of the gravity low-pass filter.
    max_fix_accuracy_m
        Location fixes with a worse accuracy radius are dropped.
    """
    motion_threshold:       float = 0.8
    start_stability:        int   = 20
    stop_stability:         int   = 3000
    sampling_period_ms:     int   = 100
    moving_interval_ms:     int   = 30_000
    stationary_interval_ms: int   = 180_000
    alpha:                  float = 0.8
    max_fix_accuracy_m:     float = 200.0

    @classmethod
    def default(cls):
        """Preset with the documented defaults."""
        return cls()

    @classmethod
    def battery_saver(cls):
        """Preset with a five-minute stationary heartbeat."""
        return cls(stationary_interval_ms=300_000)

    @classmethod
    def preset(cls, name: str):
        presets = {"default": cls.default, "battery_saver": cls.battery_saver}
        if name not in presets:
            raise ConfigurationRejected("preset", name, f"expected one of {sorted(presets)}")
        return presets[name]()

    def normalized(self) -> "PolicyConfig":
        """
        Return a copy with every out-of-range value clamped into range.

        Values that cannot be coerced (non-finite numbers, alpha outside
        [0, 1)) raise ConfigurationRejected.
        """
        if not math.isfinite(self.motion_threshold):
            raise ConfigurationRejected("motion_threshold", self.motion_threshold, "must be finite")
        if not 0.0 <= self.alpha < 1.0:
            raise ConfigurationRejected("alpha", self.alpha, "must lie in [0, 1)")

        return replace(
            self,
            start_stability=clamp("start_stability", self.start_stability, MIN_STABILITY),
            stop_stability=clamp("stop_stability", self.stop_stability, MIN_STABILITY),
            sampling_period_ms=clamp("sampling_period_ms", self.sampling_period_ms, MIN_SAMPLING_PERIOD_MS),
            moving_interval_ms=clamp("moving_interval_ms", self.moving_interval_ms, MIN_INTERVAL_MS),
            stationary_interval_ms=clamp("stationary_interval_ms", self.stationary_interval_ms, MIN_INTERVAL_MS),
        )

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def clamp(name: str, value: int, minimum: int) -> int:
    """
    Coerce `value` to at least `minimum`, warning when it had to be corrected.
    """
    value = int(value)
    if value < minimum:
        logger.warning("%s=%d out of range, coerced to %d", name, value, minimum)
        return minimum
    return value
