"""
Touchdown classification and report field helpers.
"""

import math
import re

from contracts.constants import DEFAULT_AIRLINE_ICAO
from flightlog.models import LandingQuality

# (lower bound inclusive, quality), checked top to bottom
LANDING_THRESHOLDS = [
    (-50.0, LandingQuality.SUPER_BUTTER),
    (-200.0, LandingQuality.BUTTER),
    (-500.0, LandingQuality.ACCEPTABLE),
    (-1000.0, LandingQuality.HARD),
]

CRASH_VS_FPM = -1000.0
MAX_TOUCHDOWN_CLIMB_FPM = 200.0

STANDARD_GRAVITY = 9.80665


def classify_landing(vs_fpm: float) -> LandingQuality:
    """Landing quality for a touchdown vertical speed (negative = descending)."""
    for lower_bound, quality in LANDING_THRESHOLDS:
        if vs_fpm >= lower_bound:
            return quality
    return LandingQuality.CRASH


def is_crash(vs_fpm: float) -> bool:
    """
    Whether a touchdown counts as a crash.

    A strongly positive "landing" rate is a sensor artifact of a violent
    impact, so it is treated as a crash too.
    """
    return vs_fpm <= CRASH_VS_FPM or vs_fpm > MAX_TOUCHDOWN_CLIMB_FPM


def format_duration(start: float, end: float) -> str:
    """Elapsed time between two epoch-second instants as HH:MM (rounded minutes)."""
    total_minutes = math.floor((end - start) / 60.0 + 0.5)
    total_minutes = max(total_minutes, 0)
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours:02d}:{minutes:02d}"


def g_force(accel_z):
    if accel_z is None:
        return None
    return round(accel_z / STANDARD_GRAVITY, 2)


def flight_number(callsign: str, airline_icao: str = DEFAULT_AIRLINE_ICAO) -> str:
    """Prefix the airline ICAO unless the callsign already carries it."""
    base = (callsign or "").strip() or "Unknown"
    if base.upper().startswith(airline_icao.upper()):
        return base
    return f"{airline_icao}{base}"


_LIVERY_TAG = re.compile(r"^\([^)]*\)\s*")

def clean_aircraft_name(raw) -> str:
    """Strip the leading "(...) " tag some aircraft records carry."""
    if not raw:
        return "Unknown"
    return _LIVERY_TAG.sub("", raw)
