"""
Error taxonomy for the geokit toolkit.

Classification and debounce never raise; only session start, policy
application and configuration parsing do.
"""

from __future__ import annotations

from typing import Any


class GeokitError(Exception):
    """
    Base class for all geokit errors.
    """


class SensorUnavailable(GeokitError):
    """
    The platform exposes no accelerometer. Fatal to starting a session.
    """
    code = "NO_SENSOR"

    def __init__(self, message: str = "Accelerometer not available on this device") -> None:
        super().__init__(message)


class ConfigurationRejected(GeokitError):
    """
    A configuration value could not be coerced into range.
    """
    code = "CONFIG_ERROR"

    def __init__(self, field: str, value: Any, reason: str) -> None:
        super().__init__(f"{field}={value!r} rejected: {reason}")
        self.field = field
        self.value = value
        self.reason = reason


class LocationStreamError(GeokitError):
    """
    Raised by location-stream collaborators when the stream cannot be
    (re)acquired.
    """
    code = "START_LOCATION_FAILED"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class PermissionDenied(LocationStreamError):
    """
    Location permission is missing or was revoked.
    """
    code = "LOCATION_PERMISSION_DENIED"


class StreamRestartFailed(GeokitError):
    """
    The scheduler could not restart the location stream with a new policy.

    Parameters
    ----------
    policy
        The candidate policy that failed to apply.
    cause
        The collaborator error that caused the failure.
    """
    def __init__(self, policy: Any, cause: LocationStreamError) -> None:
        super().__init__(f"Failed to apply {policy}: {cause}")
        self.policy = policy
        self.cause = cause

    @property
    def code(self) -> str:
        return self.cause.code
