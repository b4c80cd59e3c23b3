"""
Validation library for SAW flight logger records.

Provides Pydantic models for every record that leaves the engine: persisted
session snapshots, flight reports, termination notices and airline settings.
All collaborators should use these models to validate records before use.
"""

from typing import Optional, Literal
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator
from contracts.constants import (
    SCHEMA_VERSION,
    RECORD_TYPE_FLIGHT_REPORT,
    RECORD_TYPE_TERMINATION_NOTICE,
    ARRIVAL_TELEPORT,
    MAX_TELEPORT_WARNINGS,
    MAX_PERSISTED_PATH_SAMPLES,
    WEBHOOK_URL_MARKER,
)


# ============================================================================
# Shared Components
# ============================================================================

class Airport(BaseModel):
    """Immutable airport reference record (mwgg airports.json shape)."""
    model_config = ConfigDict(frozen=True)

    icao: str = Field(min_length=1)
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    tz: Optional[str] = None
    name: str = ""
    city: str = ""
    country: str = ""


class PathPoint(BaseModel):
    """One recorded point of the flight path."""
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    alt: float = Field(description="Altitude in feet MSL")
    time: float = Field(description="Epoch seconds")


# ============================================================================
# Session Snapshot (Persistence)
# ============================================================================

class SessionSnapshot(BaseModel):
    """Minimal state needed to resume a flight after a restart."""
    schema_version: int = SCHEMA_VERSION
    flight_started: bool = True
    start_time: float
    departure_icao: str
    departure_airport: Optional[Airport] = None
    callsign: str = "Unknown"
    aircraft: str = "Unknown"
    first_ground_contact: bool = False
    path_samples: list[PathPoint] = Field(default_factory=list, max_length=MAX_PERSISTED_PATH_SAMPLES)
    teleport_warning_count: int = Field(0, ge=0, le=MAX_TELEPORT_WARNINGS)
    saved_at: float

    @field_validator("schema_version")
    @classmethod
    def validate_schema_version(cls, v: int) -> int:
        """Reject snapshots written by an incompatible version."""
        if v != SCHEMA_VERSION:
            raise ValueError(f"Unsupported schema_version {v}, expected {SCHEMA_VERSION}")
        return v


# ============================================================================
# Reports (Notifier)
# ============================================================================

class FlightReport(BaseModel):
    """Report emitted once per completed flight."""
    model_config = ConfigDict(frozen=True)

    type: Literal["flight_report"] = RECORD_TYPE_FLIGHT_REPORT
    pilot: str = Field(description="Flight number (airline ICAO + callsign)")
    pilot_name: Optional[str] = None
    aircraft: str
    departure_icao: str
    arrival_icao: str
    departure_airport: Optional[Airport] = None
    arrival_airport: Optional[Airport] = None
    takeoff_at: datetime
    landing_at: datetime
    duration: str = Field(pattern=r"^\d{2,}:\d{2}$")
    vertical_speed_fpm: float
    vertical_speed_source: Literal["calibrated", "native"]
    g_force: Optional[float] = None
    true_airspeed_kt: Optional[float] = None
    ground_speed_kt: Optional[float] = None
    landing_quality: Literal["SUPER BUTTER", "BUTTER", "ACCEPTABLE", "HARD", "CRASH"]
    bounces: int = Field(0, ge=0)
    teleport_warnings: int = Field(0, ge=0, le=MAX_TELEPORT_WARNINGS)
    path_continuity_broken: bool = False

    @field_validator("takeoff_at", "landing_at", mode="before")
    @classmethod
    def parse_timestamps(cls, v):
        """Parse ISO 8601 datetime string."""
        if isinstance(v, str):
            return datetime.fromisoformat(v.replace("Z", "+00:00"))
        return v


class TerminationNotice(BaseModel):
    """Reduced report emitted when a flight is voided for teleportation."""
    model_config = ConfigDict(frozen=True)

    type: Literal["termination_notice"] = RECORD_TYPE_TERMINATION_NOTICE
    pilot: str
    pilot_name: Optional[str] = None
    aircraft: str
    departure_icao: str
    arrival_icao: Literal["TELEPORT"] = ARRIVAL_TELEPORT
    duration: str = Field(pattern=r"^\d{2,}:\d{2}$")
    terminated_at: datetime
    reason: str = "Multiple teleportations detected"
    teleport_warnings: int = Field(MAX_TELEPORT_WARNINGS, ge=0)

    @field_validator("terminated_at", mode="before")
    @classmethod
    def parse_terminated_at(cls, v):
        """Parse ISO 8601 datetime string."""
        if isinstance(v, str):
            return datetime.fromisoformat(v.replace("Z", "+00:00"))
        return v


# ============================================================================
# Airline Settings
# ============================================================================

class AirlineRecord(BaseModel):
    """Airline entry in the configuration store."""
    webhook: str
    icao: str = Field(min_length=1)
    iata: str = Field(min_length=1)

    @field_validator("webhook")
    @classmethod
    def validate_webhook(cls, v: str) -> str:
        """Only Discord webhook URLs are accepted; empty means not configured."""
        if v and WEBHOOK_URL_MARKER not in v:
            raise ValueError("Invalid webhook URL")
        return v.strip()

    @field_validator("icao", "iata", mode="before")
    @classmethod
    def normalize_code(cls, v):
        """Normalize airline codes to stripped uppercase."""
        if isinstance(v, str):
            return v.strip().upper()
        return v


# ============================================================================
# Validation Functions
# ============================================================================

def validate_session_snapshot(data: dict) -> tuple[bool, Optional[SessionSnapshot], Optional[str]]:
    """
    Validate SessionSnapshot.

    Returns:
        (is_valid, snapshot_or_none, error_message_or_none)
    """
    try:
        snapshot = SessionSnapshot(**data)
        return True, snapshot, None
    except Exception as e:
        return False, None, str(e)


def validate_flight_report(data: dict) -> tuple[bool, Optional[FlightReport], Optional[str]]:
    """
    Validate FlightReport.

    Returns:
        (is_valid, report_or_none, error_message_or_none)
    """
    try:
        report = FlightReport(**data)
        return True, report, None
    except Exception as e:
        return False, None, str(e)


def validate_termination_notice(data: dict) -> tuple[bool, Optional[TerminationNotice], Optional[str]]:
    """
    Validate TerminationNotice.

    Returns:
        (is_valid, notice_or_none, error_message_or_none)
    """
    try:
        notice = TerminationNotice(**data)
        return True, notice, None
    except Exception as e:
        return False, None, str(e)


def validate_airline_record(data: dict) -> tuple[bool, Optional[AirlineRecord], Optional[str]]:
    """
    Validate AirlineRecord.

    Returns:
        (is_valid, record_or_none, error_message_or_none)
    """
    try:
        record = AirlineRecord(**data)
        return True, record, None
    except Exception as e:
        return False, None, str(e)
