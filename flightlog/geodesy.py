"""
Geodetic helpers for position-to-position comparisons.
"""

import math

EARTH_RADIUS_M = 6371000.0  # Earth radius in meters


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle (haversine) distance in meters."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometers."""
    return distance_meters(lat1, lon1, lat2, lon2) / 1000.0


def heading_degrees(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Planar bearing from point 1 to point 2, in [0, 360).

    Equirectangular approximation, only meant for consecutive samples a few
    kilometers apart. Identical points return 0.
    """
    dlat = lat2 - lat1
    dlon = (lon2 - lon1) * math.cos(math.radians((lat1 + lat2) / 2))
    if dlat == 0 and dlon == 0:
        return 0.0
    return math.degrees(math.atan2(dlon, dlat)) % 360.0
