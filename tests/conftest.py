"""Shared fixtures: replay collaborators and synthetic accelerometer streams."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from geokit.motion.types import Sample
from geokit.sources.replay import RecordingLocationStream, ReplaySampleSource

G = 9.81

# Alternating x offsets of +/-D settle to a linear magnitude of 8D/9 and never
# drop below 0.8D, so these amplitudes give ~1.2 and ~0.1 m/s^2.
MOVING_AMPLITUDE = 1.35
STILL_AMPLITUDE = 0.1125


def _gravity(n: int) -> list[Sample]:
    return [Sample(0.0, 0.0, G) for _ in range(n)]


def _jitter(n: int, amplitude: float) -> list[Sample]:
    return [Sample(amplitude if i % 2 == 0 else -amplitude, 0.0, G) for i in range(n)]


@pytest.fixture()
def streams():
    """Factories for converged-gravity, moving and still sample sequences."""
    return SimpleNamespace(
        converge=lambda n=60: _gravity(n),
        moving=lambda n: _jitter(n, MOVING_AMPLITUDE),
        still=lambda n: _jitter(n, STILL_AMPLITUDE),
    )


@pytest.fixture()
def source():
    return ReplaySampleSource()


@pytest.fixture()
def stream():
    return RecordingLocationStream()
