# geokit/motion/activity.py

"""
Derive motion states from platform activity-recognition transitions.

This is an alternative to the accelerometer classifier for platforms that
report activity ENTER/EXIT events themselves. Sessions accept these through
`DetectionSession.on_activity_transition`.
"""

from __future__ import annotations
from enum import Enum
from typing import Optional

from geokit.motion.types import MotionState


class Activity(str, Enum):
    STILL = "STILL"
    WALKING = "WALKING"
    RUNNING = "RUNNING"
    ON_BICYCLE = "ON_BICYCLE"
    IN_VEHICLE = "IN_VEHICLE"
    TILTING = "TILTING"
    UNKNOWN = "UNKNOWN"


class Transition(str, Enum):
    ENTER = "ENTER"
    EXIT = "EXIT"
    UNKNOWN = "UNKNOWN"


MOVING_ACTIVITIES = frozenset({Activity.WALKING, Activity.RUNNING, Activity.ON_BICYCLE, Activity.IN_VEHICLE})


def parse_transition(activity: str, transition: str) -> tuple[Activity, Transition]:
    """
    Coerce platform names to enums; unrecognized names become UNKNOWN.
    """
    try:
        act = Activity(activity)
    except ValueError:
        act = Activity.UNKNOWN
    try:
        trans = Transition(transition)
    except ValueError:
        trans = Transition.UNKNOWN
    return act, trans


def motion_state_for_transition(activity: Activity, transition: Transition) -> Optional[MotionState]:
    """
    Map one activity transition to a motion state.

    Leaving STILL counts as moving: it is the earliest sign of a start.
    Transitions that say nothing about motion map to None.
    """
    if transition == Transition.ENTER and activity in MOVING_ACTIVITIES:
        return MotionState.MOVING
    if activity == Activity.STILL:
        if transition == Transition.EXIT:
            return MotionState.MOVING
        if transition == Transition.ENTER:
            return MotionState.STATIONARY
    return None
