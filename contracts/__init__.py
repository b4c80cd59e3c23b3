"""
SAW Flight Logger Contracts Package

Provides shared constants and validation for persisted and emitted records.
"""

from contracts.constants import *
from contracts.validation import (
    Airport,
    PathPoint,
    SessionSnapshot,
    FlightReport,
    TerminationNotice,
    AirlineRecord,
    validate_session_snapshot,
    validate_flight_report,
    validate_termination_notice,
    validate_airline_record,
)

__all__ = [
    # Constants
    "SCHEMA_VERSION",
    "RECORD_TYPE_FLIGHT_REPORT",
    "RECORD_TYPE_TERMINATION_NOTICE",
    "PHASE_GROUND_IDLE",
    "PHASE_AIRBORNE",
    "PHASE_LANDED",
    "PHASE_CRASHED",
    "PHASE_VOIDED",
    "ICAO_UNKNOWN",
    "ARRIVAL_CRASH",
    "ARRIVAL_TELEPORT",
    "MAX_TELEPORT_WARNINGS",
    "MAX_PERSISTED_PATH_SAMPLES",
    # Models
    "Airport",
    "PathPoint",
    "SessionSnapshot",
    "FlightReport",
    "TerminationNotice",
    "AirlineRecord",
    # Validators
    "validate_session_snapshot",
    "validate_flight_report",
    "validate_termination_notice",
    "validate_airline_record",
]
