"""
Shared constants for the SAW flight logger.

This module provides a single source of truth for:
- Schema versions and record types
- Flight phases and landing-quality labels
- Teleport detector states and policies
- Storage keys for persisted records

All modules should import from this module to ensure consistency.
"""

# Schema version
SCHEMA_VERSION = 1

# Record Types
RECORD_TYPE_FLIGHT_REPORT = "flight_report"
RECORD_TYPE_TERMINATION_NOTICE = "termination_notice"

# Storage Keys
STORAGE_KEY_AIRLINES = "geofs_flight_logger_airlines"
STORAGE_KEY_LAST_AIRLINE = "geofs_flight_logger_last_airline"

# Flight Phases
PHASE_GROUND_IDLE = "GROUND_IDLE"
PHASE_AIRBORNE = "AIRBORNE"
PHASE_LANDED = "LANDED"
PHASE_CRASHED = "CRASHED"
PHASE_VOIDED = "VOIDED"

# Landing Quality
QUALITY_SUPER_BUTTER = "SUPER BUTTER"
QUALITY_BUTTER = "BUTTER"
QUALITY_ACCEPTABLE = "ACCEPTABLE"
QUALITY_HARD = "HARD"
QUALITY_CRASH = "CRASH"

# Teleport Detector States
DETECTOR_IDLE = "IDLE"
DETECTOR_GRACE = "GRACE"
DETECTOR_ACTIVE = "ACTIVE"
DETECTOR_VERIFYING = "VERIFYING"
DETECTOR_TERMINATED = "TERMINATED"

# Teleport Policies
POLICY_IMMEDIATE = "immediate"
POLICY_DELAYED = "delayed"
POLICY_COMBINED = "combined"

# Vertical Speed Sources
VS_SOURCE_CALIBRATED = "calibrated"
VS_SOURCE_NATIVE = "native"

# Route Labels
ICAO_UNKNOWN = "UNKNOWN"
ARRIVAL_CRASH = "Crash"
ARRIVAL_TELEPORT = "TELEPORT"

# Limits
MAX_TELEPORT_WARNINGS = 2
MAX_PERSISTED_PATH_SAMPLES = 50

# Default Airline
DEFAULT_AIRLINE_NAME = "Default"
DEFAULT_AIRLINE_ICAO = "GFS"
DEFAULT_AIRLINE_IATA = "GF"
WEBHOOK_URL_MARKER = "discord.com/api/webhooks/"
