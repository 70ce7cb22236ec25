"""
In-process collaborators used to replay recordings and to exercise sessions
without platform hardware.
"""

from __future__ import annotations
from typing import Callable, Iterable, Optional

from geokit.motion.types import Sample
from geokit.utils.errors import LocationStreamError
from geokit.utils.log import get_logger
from geokit.utils.validate import LocationFix

logger = get_logger(__name__)


class ReplaySampleSource:
    """
    Sample source pushing a recording synchronously.

    Parameters
    ----------
    samples
        Recording to replay; may be extended with `feed`.
    available
        Whether the simulated platform has an accelerometer.
    """
    def __init__(self, samples: Iterable[Sample] = (), available: bool = True) -> None:
        self.samples = list(samples)
        self.available = available
        self.callback: Optional[Callable[[Sample], None]] = None
        self.period_ms: Optional[int] = None
        self.arms: list[int] = []        # period of every start call
        self.n_stops = 0

    def has_accelerometer(self) -> bool:
        return self.available

    def start(self, period_ms: int, callback: Callable[[Sample], None]) -> None:
        self.period_ms = period_ms
        self.callback = callback
        self.arms.append(period_ms)

    def stop(self) -> None:
        self.callback = None
        self.n_stops += 1

    @property
    def armed(self) -> bool:
        return self.callback is not None

    def feed(self, samples: Iterable[Sample]) -> int:
        """
        Deliver `samples` while armed. Returns the number delivered.
        """
        n = 0
        for sample in samples:
            if self.callback is None:
                break
            self.callback(sample)
            n += 1
        return n

    def run(self) -> int:
        """
        Deliver the whole recording. Returns the number of samples delivered.
        """
        n = self.feed(self.samples)
        logger.info("Replayed %d of %d samples", n, len(self.samples))
        return n


class RecordingLocationStream:
    """
    Location stream that records every request instead of talking to hardware.

    Parameters
    ----------
    fail_with
        If set, every `start` raises this error until cleared.
    """
    def __init__(self, fail_with: Optional[LocationStreamError] = None) -> None:
        self.fail_with = fail_with
        self.starts: list[tuple[str, int]] = []
        self.n_stops = 0
        self.running = False
        self.on_fix: Optional[Callable[[LocationFix], None]] = None

    def start(
        self,
        priority: str,
        interval_ms: int,
        on_fix: Optional[Callable[[LocationFix], None]] = None,
    ) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.starts.append((priority, interval_ms))
        self.on_fix = on_fix
        self.running = True

    def stop(self) -> None:
        if self.running:
            self.n_stops += 1
        self.running = False

    @property
    def last(self) -> Optional[tuple[str, int]]:
        return self.starts[-1] if self.starts else None

    def push(self, fix: LocationFix) -> None:
        """
        Deliver a fix to the current subscriber, if the stream is running.
        """
        if self.running and self.on_fix is not None:
            self.on_fix(fix)
