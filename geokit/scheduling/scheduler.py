"""
Translate motion-state transitions into location polling policies.

A policy is only pushed to the location stream when it differs by value
from the one currently active; identical requests never restart the stream.
"""

from __future__ import annotations
import threading
from typing import Callable, Optional

from geokit.motion.config import PolicyConfig, clamp, MIN_INTERVAL_MS
from geokit.motion.types import MotionState
from geokit.scheduling.policy import PollingPolicy, policy_for_interval, policy_for_state
from geokit.sources.base import LocationStream
from geokit.utils.errors import LocationStreamError, StreamRestartFailed
from geokit.utils.log import get_logger
from geokit.utils.validate import LocationFix

logger = get_logger(__name__)


class AdaptiveScheduler:
    """
    Owner of the active polling policy of one session.
    """
    def __init__(
        self,
        stream: LocationStream,
        cfg: PolicyConfig | None = None,
        on_fix: Callable[[LocationFix], None] | None = None,
    ) -> None:
        self.stream = stream
        self.cfg = cfg if cfg is not None else PolicyConfig.default()
        self.on_fix = on_fix

        self.active: Optional[PollingPolicy] = None
        self.last_state: Optional[MotionState] = None
        self.n_restarts = 0

        # False after a failed restart: the stream is down whatever `active` says
        self._live = False
        self._lock = threading.RLock()

    def on_motion_state_changed(self, state: MotionState) -> PollingPolicy:
        """
        Derive the policy for `state` and apply it.

        Raises
        ------
        StreamRestartFailed
            If the location stream could not be restarted.
        """
        with self._lock:
            self.last_state = state
            policy = policy_for_state(state, self.cfg)
            self.apply_policy(policy)
            return policy

    def apply_policy(self, policy: PollingPolicy) -> bool:
        """
        Restart the location stream with `policy` unless it is already active.

        Returns
        -------
        bool
            True if the stream was restarted, False for a no-op.

        Raises
        ------
        StreamRestartFailed
            If the collaborator failed to (re)acquire the stream. The active
            policy is left unchanged.
        """
        with self._lock:
            if self._live and policy == self.active:
                logger.debug("Policy %s already active, not restarting", policy)
                return False

            logger.info("Updating location request: %s -> %s", self.active, policy)
            try:
                self.stream.stop()
                self.stream.start(policy.priority.value, policy.interval_ms, self.on_fix)
            except LocationStreamError as e:
                self._live = False
                logger.error("Location stream restart failed (%s): %s", e.code, e)
                raise StreamRestartFailed(policy, e) from e

            self.active = policy
            self._live = True
            self.n_restarts += 1
            return True

    def set_intervals(self, moving_interval_ms: int, stationary_interval_ms: int) -> None:
        """
        Update the polling intervals. Takes effect on the next transition or `reapply`.
        """
        with self._lock:
            self.cfg.moving_interval_ms = clamp("moving_interval_ms", moving_interval_ms, MIN_INTERVAL_MS)
            self.cfg.stationary_interval_ms = clamp(
                "stationary_interval_ms", stationary_interval_ms, MIN_INTERVAL_MS
            )

    def reapply(self) -> Optional[PollingPolicy]:
        """
        Re-derive the policy for the last known state and apply it.
        """
        with self._lock:
            if self.last_state is None:
                return None
            return self.on_motion_state_changed(self.last_state)

    def request_interval(self, interval_ms: int) -> PollingPolicy:
        """
        Apply a policy derived from a bare interval, bypassing the motion state.
        """
        policy = policy_for_interval(clamp("interval_ms", interval_ms, MIN_INTERVAL_MS))
        self.apply_policy(policy)
        return policy

    def shutdown(self) -> None:
        with self._lock:
            self.stream.stop()
            self.active = None
            self.last_state = None
            self._live = False
