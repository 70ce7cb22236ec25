# geokit/scheduling/policy.py

"""
Location polling policies.
"""

from dataclasses import dataclass
from enum import Enum

from geokit.motion.config import PolicyConfig
from geokit.motion.types import MotionState

# intervals below this get high accuracy when set directly
HIGH_ACCURACY_BELOW_MS = 60_000


class Priority(str, Enum):
    HIGH_ACCURACY = "HIGH_ACCURACY"
    BALANCED_POWER = "BALANCED_POWER"


@dataclass(frozen=True)
class PollingPolicy:
    """
    Priority class and interval of a location request. Compared by value.
    """
    priority: Priority
    interval_ms: int

    def __str__(self) -> str:
        return f"{self.priority.value}@{self.interval_ms}ms"


def policy_for_state(state: MotionState, cfg: PolicyConfig) -> PollingPolicy:
    """
    Map a committed motion state to its polling policy.
    """
    if state == MotionState.MOVING:
        return PollingPolicy(Priority.HIGH_ACCURACY, int(cfg.moving_interval_ms))
    return PollingPolicy(Priority.BALANCED_POWER, int(cfg.stationary_interval_ms))


def policy_for_interval(interval_ms: int) -> PollingPolicy:
    """
    Derive a policy from a bare interval: short intervals imply high accuracy.
    """
    if interval_ms < HIGH_ACCURACY_BELOW_MS:
        return PollingPolicy(Priority.HIGH_ACCURACY, int(interval_ms))
    return PollingPolicy(Priority.BALANCED_POWER, int(interval_ms))
