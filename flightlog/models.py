"""
In-memory state for the flight logger.

Telemetry samples are transient and read-only; a FlightSession is owned by the
scheduler and passed explicitly to the state machine and the detectors.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Tuple

from contracts.constants import (
    PHASE_GROUND_IDLE,
    PHASE_AIRBORNE,
    PHASE_LANDED,
    PHASE_CRASHED,
    PHASE_VOIDED,
    QUALITY_SUPER_BUTTER,
    QUALITY_BUTTER,
    QUALITY_ACCEPTABLE,
    QUALITY_HARD,
    QUALITY_CRASH,
    DETECTOR_IDLE,
    DETECTOR_GRACE,
    DETECTOR_ACTIVE,
    DETECTOR_VERIFYING,
    DETECTOR_TERMINATED,
    ICAO_UNKNOWN,
)
from contracts.validation import Airport, PathPoint


class FlightPhase(str, Enum):
    GROUND_IDLE = PHASE_GROUND_IDLE
    AIRBORNE = PHASE_AIRBORNE
    LANDED = PHASE_LANDED
    CRASHED = PHASE_CRASHED
    VOIDED = PHASE_VOIDED

    @property
    def is_terminal(self) -> bool:
        return self in (FlightPhase.LANDED, FlightPhase.CRASHED, FlightPhase.VOIDED)


class LandingQuality(str, Enum):
    SUPER_BUTTER = QUALITY_SUPER_BUTTER
    BUTTER = QUALITY_BUTTER
    ACCEPTABLE = QUALITY_ACCEPTABLE
    HARD = QUALITY_HARD
    CRASH = QUALITY_CRASH


class DetectorState(str, Enum):
    IDLE = DETECTOR_IDLE
    GRACE = DETECTOR_GRACE
    ACTIVE = DETECTOR_ACTIVE
    VERIFYING = DETECTOR_VERIFYING
    TERMINATED = DETECTOR_TERMINATED


# camelCase keys as exposed by the simulator, mapped to field names
_SAMPLE_ALIASES = {
    "altitudeFt": "altitude_ft",
    "aglFt": "agl_ft",
    "groundContact": "ground_contact",
    "groundSpeedKt": "ground_speed_kt",
    "verticalSpeedFpm": "vertical_speed_fpm",
    "accelZ": "accel_z",
    "trueAirSpeedKt": "true_airspeed_kt",
    "groundElevationFt": "ground_elevation_ft",
    "collisionOffsetM": "collision_offset_m",
    "aircraftName": "aircraft_name",
    "pilotName": "pilot_name",
    "mapPathLength": "map_path_length",
}


@dataclass(frozen=True)
class TelemetrySample:
    """One read of the simulator. Any field may be missing (None)."""
    lat: Optional[float]
    lon: Optional[float]
    altitude_ft: Optional[float]
    agl_ft: Optional[float]
    ground_contact: bool
    timestamp: float
    ground_speed_kt: Optional[float] = None
    vertical_speed_fpm: Optional[float] = None
    accel_z: Optional[float] = None
    true_airspeed_kt: Optional[float] = None
    ground_elevation_ft: Optional[float] = None
    collision_offset_m: float = 0.0
    paused: bool = False
    aircraft_name: Optional[str] = None
    pilot_name: Optional[str] = None
    map_path_length: Optional[int] = None

    @property
    def has_position(self) -> bool:
        return _finite(self.lat) and _finite(self.lon) and _finite(self.altitude_ft)

    @classmethod
    def from_dict(cls, data: dict) -> "TelemetrySample":
        """Build from a snake_case or camelCase mapping; unknown keys are ignored."""
        known = cls.__dataclass_fields__
        kwargs = {}
        for key, value in data.items():
            name = _SAMPLE_ALIASES.get(key, key)
            if name in known:
                kwargs[name] = value
        kwargs.setdefault("lat", None)
        kwargs.setdefault("lon", None)
        kwargs.setdefault("altitude_ft", None)
        kwargs.setdefault("agl_ft", None)
        kwargs["ground_contact"] = _as_bool(kwargs.get("ground_contact", False))
        kwargs["paused"] = _as_bool(kwargs.get("paused", False))
        if kwargs.get("collision_offset_m") is None:
            kwargs["collision_offset_m"] = 0.0
        return cls(**kwargs)


def _finite(value) -> bool:
    return value is not None and not math.isnan(value)


def _as_bool(value) -> bool:
    # Replay files may carry flags as strings
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


@dataclass
class PendingVerification:
    """A large jump awaiting its delayed verdict."""
    started_at: float
    reference_position: Tuple[float, float, float]  # lat, lon, alt_ft
    reference_time: Optional[float] = None


@dataclass
class TeleportDetectorState:
    """Per-flight teleport detector state."""
    state: DetectorState = DetectorState.IDLE
    last_known_position: Optional[Tuple[float, float, float]] = None
    last_sample_time: Optional[float] = None
    pending_verification: Optional[PendingVerification] = None
    warning_count: int = 0
    grace_until: Optional[float] = None

    # Map-path collapse heuristic
    path_checks_after: Optional[float] = None
    path_length_history: List[int] = field(default_factory=list)
    seen_multiple_paths: bool = False
    path_continuity_broken: bool = False

    MAX_PATH_LENGTH_HISTORY = 10


@dataclass
class FlightSession:
    """The single active flight."""
    phase: FlightPhase = FlightPhase.GROUND_IDLE
    start_time: Optional[float] = None
    departure_icao: str = ICAO_UNKNOWN
    departure_airport: Optional[Airport] = None
    arrival_icao: str = ICAO_UNKNOWN
    arrival_airport: Optional[Airport] = None
    pilot_callsign: str = "Unknown"
    pilot_name: Optional[str] = None
    aircraft_name: str = "Unknown"

    # Path history
    path_samples: List[PathPoint] = field(default_factory=list)
    path_sample_count: int = 0

    teleport: TeleportDetectorState = field(default_factory=TeleportDetectorState)

    # Touchdown tracking
    bounces: int = 0
    is_grounded: bool = True
    just_landed: bool = False
    first_ground_contact: bool = False

    terminated: bool = False
    report_sent: bool = False

    MAX_PATH_SAMPLES = 500

    @property
    def teleport_warning_count(self) -> int:
        return self.teleport.warning_count

    def add_path_sample(self, point: PathPoint):
        """Append a path point, keeping only the most recent MAX_PATH_SAMPLES."""
        self.path_samples.append(point)
        self.path_samples = self.path_samples[-self.MAX_PATH_SAMPLES:]
        self.path_sample_count += 1
