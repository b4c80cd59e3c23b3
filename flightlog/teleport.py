"""
Teleportation detection.

Stateful detector over a flight's TeleportDetectorState. Two signatures are
recognised:

- Gradual but impossible movement (slew, speed hacks): flagged immediately
  when both horizontal and vertical displacement exceed what the elapsed time
  allows.
- Instant large jumps (location reset, respawn): judged only after a
  verification window, so that a respawn back near the original spot or a
  stale position after load is not counted.

Confirmed anomalies are strikes. The first strike is a warning noted on the
report; the second terminates the flight.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from contracts.constants import (
    POLICY_IMMEDIATE,
    POLICY_DELAYED,
    POLICY_COMBINED,
    MAX_TELEPORT_WARNINGS,
)
from contracts.validation import PathPoint
from flightlog import config
from flightlog.geodesy import distance_meters
from flightlog.metrics import TELEPORT_EVENTS
from flightlog.models import DetectorState, PendingVerification, TeleportDetectorState

logger = logging.getLogger(__name__)


class TeleportPolicy(str, Enum):
    IMMEDIATE = POLICY_IMMEDIATE
    DELAYED = POLICY_DELAYED
    COMBINED = POLICY_COMBINED


class Verdict(str, Enum):
    NONE = "NONE"
    VERIFYING = "VERIFYING"
    BENIGN = "BENIGN"
    WARNING = "WARNING"
    TERMINATED = "TERMINATED"


@dataclass(frozen=True)
class TeleportConfig:
    policy: TeleportPolicy = TeleportPolicy(config.TELEPORT_POLICY)
    grace_seconds: float = config.TELEPORT_GRACE_SECONDS
    path_check_delay_seconds: float = config.PATH_CHECK_DELAY_SECONDS
    min_interval_seconds: float = 1.0
    max_interval_seconds: float = 10.0
    max_speed_mps: float = config.TELEPORT_MAX_SPEED_MPS
    max_climb_fps: float = config.TELEPORT_MAX_CLIMB_FPS
    jump_threshold_m: float = config.TELEPORT_JUMP_THRESHOLD_M
    verify_seconds: float = config.TELEPORT_VERIFY_SECONDS


class TeleportDetector:
    """Teleport detector; all per-flight state lives in TeleportDetectorState."""

    def __init__(self, cfg: Optional[TeleportConfig] = None):
        self.config = cfg or TeleportConfig()

    def start(self, state: TeleportDetectorState, lat: float, lon: float, alt_ft: float, now: float):
        """New flight: zero strikes, baseline on the departure point, enter grace."""
        self.reset(state)
        state.last_known_position = (lat, lon, alt_ft)
        state.last_sample_time = now
        self._enter_grace(state, now)

    def resume(self, state: TeleportDetectorState, last_point: Optional[PathPoint], now: float):
        """Resumed flight: keep persisted strikes, baseline on the last saved point."""
        warnings = state.warning_count
        self.reset(state)
        state.warning_count = warnings
        if last_point is not None:
            state.last_known_position = (last_point.lat, last_point.lon, last_point.alt)
            state.last_sample_time = last_point.time
            logger.info("Path continuity restored from saved data")
        self._enter_grace(state, now)

    def reset(self, state: TeleportDetectorState):
        """Back to IDLE with no history."""
        state.state = DetectorState.IDLE
        state.last_known_position = None
        state.last_sample_time = None
        state.pending_verification = None
        state.warning_count = 0
        state.grace_until = None
        state.path_checks_after = None
        state.path_length_history = []
        state.seen_multiple_paths = False
        state.path_continuity_broken = False

    def _enter_grace(self, state: TeleportDetectorState, now: float):
        state.state = DetectorState.GRACE
        state.grace_until = now + self.config.grace_seconds
        state.path_checks_after = now + self.config.path_check_delay_seconds

    def observe(self, state: TeleportDetectorState, lat: float, lon: float, alt_ft: float, now: float) -> Verdict:
        """Feed one position sample; returns what, if anything, was concluded."""
        if state.state in (DetectorState.IDLE, DetectorState.TERMINATED):
            return Verdict.NONE

        if state.state == DetectorState.GRACE:
            if now < state.grace_until:
                self._rebaseline(state, lat, lon, alt_ft, now)
                return Verdict.NONE
            state.state = DetectorState.ACTIVE
            logger.info("Grace period ended, teleportation detection active")

        if state.state == DetectorState.VERIFYING:
            return self._check_verification(state, lat, lon, alt_ft, now)

        return self._check_active(state, lat, lon, alt_ft, now)

    def _check_active(self, state: TeleportDetectorState, lat: float, lon: float, alt_ft: float, now: float) -> Verdict:
        if state.last_known_position is None or state.last_sample_time is None:
            self._rebaseline(state, lat, lon, alt_ft, now)
            return Verdict.NONE

        elapsed = now - state.last_sample_time
        # Too soon is noise; too late means the poller stalled
        if elapsed < self.config.min_interval_seconds or elapsed > self.config.max_interval_seconds:
            self._rebaseline(state, lat, lon, alt_ft, now)
            return Verdict.NONE

        last_lat, last_lon, last_alt = state.last_known_position
        distance = distance_meters(last_lat, last_lon, lat, lon)
        alt_change = abs(alt_ft - last_alt)
        policy = self.config.policy

        # A jump must beat both the threshold and what the aircraft could have flown
        jump_limit = max(self.config.jump_threshold_m, elapsed * self.config.max_speed_mps)
        if policy in (TeleportPolicy.DELAYED, TeleportPolicy.COMBINED) and distance > jump_limit:
            state.pending_verification = PendingVerification(
                started_at=now,
                reference_position=state.last_known_position,
                reference_time=state.last_sample_time,
            )
            state.state = DetectorState.VERIFYING
            TELEPORT_EVENTS.labels(verdict="verifying").inc()
            logger.warning(
                f"Position jump of {distance:.0f} m in {elapsed:.1f}s, "
                f"verifying for {self.config.verify_seconds:.0f}s"
            )
            return Verdict.VERIFYING

        if policy in (TeleportPolicy.IMMEDIATE, TeleportPolicy.COMBINED):
            max_distance = elapsed * self.config.max_speed_mps
            max_alt_change = elapsed * self.config.max_climb_fps
            # Both must be exceeded; fast steep climbs alone are legitimate
            if distance > max_distance and alt_change > max_alt_change:
                logger.warning(
                    f"Unrealistic movement: {distance:.0f} m / {alt_change:.0f} ft in {elapsed:.1f}s"
                )
                self._rebaseline(state, lat, lon, alt_ft, now)
                return self._confirm(state)

        self._rebaseline(state, lat, lon, alt_ft, now)
        return Verdict.NONE

    def _check_verification(self, state: TeleportDetectorState, lat: float, lon: float, alt_ft: float, now: float) -> Verdict:
        pending = state.pending_verification
        if now - pending.started_at < self.config.verify_seconds:
            return Verdict.NONE

        ref_lat, ref_lon, _ = pending.reference_position
        distance = distance_meters(ref_lat, ref_lon, lat, lon)
        reference_time = pending.reference_time if pending.reference_time is not None else pending.started_at
        limit = max(self.config.jump_threshold_m, (now - reference_time) * self.config.max_speed_mps)
        state.pending_verification = None
        self._rebaseline(state, lat, lon, alt_ft, now)

        if distance > limit:
            logger.warning(f"Jump confirmed: still {distance:.0f} m from reference position")
            return self._confirm(state)

        state.state = DetectorState.ACTIVE
        TELEPORT_EVENTS.labels(verdict="benign").inc()
        logger.info(f"Jump resolved as false positive ({distance:.0f} m from reference position)")
        return Verdict.BENIGN

    def _confirm(self, state: TeleportDetectorState) -> Verdict:
        state.warning_count += 1

        if state.warning_count >= MAX_TELEPORT_WARNINGS:
            state.state = DetectorState.TERMINATED
            TELEPORT_EVENTS.labels(verdict="terminated").inc()
            logger.error("Flight terminated due to repeated teleportation")
            return Verdict.TERMINATED

        state.state = DetectorState.ACTIVE
        TELEPORT_EVENTS.labels(verdict="warning").inc()
        logger.warning(f"Teleportation warning {state.warning_count}/{MAX_TELEPORT_WARNINGS} issued")
        return Verdict.WARNING

    @staticmethod
    def _rebaseline(state: TeleportDetectorState, lat: float, lon: float, alt_ft: float, now: float):
        state.last_known_position = (lat, lon, alt_ft)
        state.last_sample_time = now

    def observe_map_path(self, state: TeleportDetectorState, path_length: Optional[int], now: float) -> bool:
        """
        Track the simulator's map-path segment count.

        A location reset clears the drawn path, so an established multi-segment
        path collapsing to one segment is flagged as a continuity break. The
        flag is informational and is not a strike.
        """
        if path_length is None or state.state in (DetectorState.IDLE, DetectorState.TERMINATED):
            return False

        if path_length >= 2:
            state.seen_multiple_paths = True
        if state.path_checks_after is not None and now >= state.path_checks_after:
            state.seen_multiple_paths = True

        state.path_length_history.append(path_length)
        state.path_length_history = state.path_length_history[-TeleportDetectorState.MAX_PATH_LENGTH_HISTORY:]

        history = state.path_length_history
        if len(history) < 5 or not state.seen_multiple_paths or state.state == DetectorState.GRACE:
            return False

        previous_avg = sum(history[:-1]) / (len(history) - 1)
        if previous_avg >= 1.5 and path_length == 1:
            if not state.path_continuity_broken:
                TELEPORT_EVENTS.labels(verdict="path_collapse").inc()
                logger.warning(f"Path clearing detected: {round(previous_avg)} paths -> 1 path")
            state.path_continuity_broken = True
            return True
        return False
