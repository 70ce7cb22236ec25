"""
Pydantic schemas to validate collaborator output, event payloads and API input.
"""

from typing import Optional
from pydantic import BaseModel


class LocationFix(BaseModel):
    """
    Single fix delivered by a location-stream collaborator.
    """
    latitude: float
    longitude: float
    time_ms: int                 # UTC milliseconds since epoch
    accuracy: float              # metres
    is_mock: bool = False

class MotionEvent(BaseModel):
    """
    Payload of a `motion_state_changed` event.
    """
    state: str
    is_moving: bool
    activity: Optional[str] = None
    transition: Optional[str] = None

class LocationLog(BaseModel):
    """
    Payload of a `location_log` event.
    """
    latitude: float
    longitude: float
    timestamp: str               # ISO-8601, UTC, millisecond precision
    accuracy: float
    is_mock: bool

class LocationError(BaseModel):
    """
    Payload of a `location_error` event.
    """
    error: str
    message: str

class ThresholdUpdate(BaseModel):
    motion_threshold: float
    start_stability: int
    stop_stability: int

class IntervalUpdate(BaseModel):
    moving_interval_ms: int
    stationary_interval_ms: int

class SamplingUpdate(BaseModel):
    sampling_period_ms: int

class ActivityUpdate(BaseModel):
    activity: str
    transition: str

class Run(BaseModel):
    """
    Normalized record for a single replay run.
    """
    id: str
    mission: str
    src_file: str
    n_samples: int
    preset: str

class TransitionRecord(BaseModel):
    """
    One committed motion-state transition.
    """
    run_id: str
    seq: int                     # index of the sample that committed it
    ts_ms: Optional[int]
    state: str

class PolicyRecord(BaseModel):
    """
    One applied polling policy.
    """
    run_id: str
    seq: int
    priority: str
    interval_ms: int
