"""
Collaborator interfaces consumed by the motion classifier and the scheduler.
"""

from typing import Callable, Optional, Protocol

from geokit.motion.types import Sample
from geokit.utils.validate import LocationFix


class SampleSource(Protocol):
    """
    Periodic push source of 3-axis accelerometer samples.
    """
    def has_accelerometer(self) -> bool: ...

    def start(self, period_ms: int, callback: Callable[[Sample], None]) -> None: ...

    def stop(self) -> None: ...


class LocationStream(Protocol):
    """
    Location provider accepting a (priority, interval) request.

    `start` raises LocationStreamError (or PermissionDenied) when the stream
    cannot be acquired; `stop` is idempotent.
    """
    def start(
        self,
        priority: str,
        interval_ms: int,
        on_fix: Optional[Callable[[LocationFix], None]] = None,
    ) -> None: ...

    def stop(self) -> None: ...
