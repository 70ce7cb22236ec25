# geokit/motion/types.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class MotionState(str, Enum):
    """
    Debounced binary motion state.
    """
    STATIONARY = "STATIONARY"
    MOVING = "MOVING"


@dataclass
class Sample:
    """
    Single 3-axis accelerometer reading.

    Parameters
    ----------
    x : float
        Acceleration along the device x axis (m/s²).
    y : float
        Acceleration along the device y axis (m/s²).
    z : float
        Acceleration along the device z axis (m/s²).
    ts_ms : Optional[int]
        Arrival time of the sample (milliseconds), if known.
    """
    x: float
    y: float
    z: float
    ts_ms: Optional[int] = None

    def axes(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass
class FilterState:
    """
    Running gravity estimate of the single-pole low-pass filter.

    Parameters
    ----------
    gravity : List[float]
        Per-axis gravity estimate, zeroed whenever detection (re)starts.
    """
    gravity: List[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])

    def reset(self) -> None:
        self.gravity = [0.0, 0.0, 0.0]


@dataclass
class DebounceCounter:
    """
    Candidate state plus the number of consecutive samples that agreed with it.

    Parameters
    ----------
    candidate : MotionState
        Most recent raw threshold decision.
    count : int
        Consecutive samples with that decision; 0 only right after a reset.
    """
    candidate: MotionState = MotionState.STATIONARY
    count: int = 0

    def observe(self, raw: MotionState) -> int:
        """
        Fold one raw decision into the counter and return the new count.
        """
        if raw == self.candidate:
            self.count += 1
        else:
            self.candidate = raw
            self.count = 1
        return self.count

    def reset(self) -> None:
        self.candidate = MotionState.STATIONARY
        self.count = 0
