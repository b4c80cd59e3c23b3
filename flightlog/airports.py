"""
Nearest-airport lookup for departure and arrival resolution.
"""

import json
import logging
import math
from typing import Iterable, Optional

from shapely.geometry import Point, box
from shapely.strtree import STRtree

from contracts.validation import Airport
from flightlog.config import AIRPORTS_FILE, AIRPORT_RADIUS_KM
from flightlog.geodesy import distance_km

logger = logging.getLogger(__name__)

KM_PER_DEGREE_LAT = 111.195


class AirportDirectory:
    """Read-only airport set with a radius-limited nearest query."""

    def __init__(self, airports: Iterable[Airport], radius_km: float = AIRPORT_RADIUS_KM):
        self.airports = list(airports)
        self.radius_km = radius_km
        self.tree = STRtree([Point(ap.lon, ap.lat) for ap in self.airports]) if self.airports else None

    def __len__(self) -> int:
        return len(self.airports)

    @classmethod
    def from_mwgg(cls, data: dict, radius_km: float = AIRPORT_RADIUS_KM) -> "AirportDirectory":
        """Build from the mwgg airports.json mapping ``{icao: {lat, lon, ...}}``."""
        if not isinstance(data, dict):
            raise ValueError(f"expected an object keyed by ICAO, got {type(data).__name__}")

        airports = []
        for icao, info in data.items():
            try:
                airports.append(Airport(
                    icao=icao,
                    lat=info["lat"],
                    lon=info["lon"],
                    tz=info.get("tz") or None,
                    name=info.get("name") or "",
                    city=info.get("city") or "",
                    country=info.get("country") or "",
                ))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping airport {icao}: {e}")
        return cls(airports, radius_km=radius_km)

    def find_nearest(self, lat: float, lon: float) -> Optional[Airport]:
        """
        Return the closest airport, or None if it is beyond the radius.

        The spatial index only narrows the candidate set; the decision is made
        on haversine distance so results match a full scan.
        """
        if self.tree is None:
            return None

        nearest, min_dist = None, math.inf
        for i in self._candidates(lat, lon):
            ap = self.airports[i]
            dist = distance_km(lat, lon, ap.lat, ap.lon)
            if dist < min_dist:
                nearest, min_dist = ap, dist

        if nearest is None or min_dist > self.radius_km:
            return None
        return nearest

    def _candidates(self, lat: float, lon: float) -> Iterable[int]:
        """Indices of airports inside an envelope around the radius circle."""
        dlat = self.radius_km / KM_PER_DEGREE_LAT
        lat_min, lat_max = lat - dlat, lat + dlat
        cos_lat = math.cos(math.radians(max(abs(lat_min), abs(lat_max))))

        # Envelope would wrap a pole or the antimeridian
        if lat_min <= -90 or lat_max >= 90 or cos_lat < 1e-6:
            return range(len(self.airports))
        dlon = 1.1 * dlat / cos_lat
        if lon - dlon <= -180 or lon + dlon >= 180:
            return range(len(self.airports))

        return self.tree.query(box(lon - dlon, lat_min, lon + dlon, lat_max))


def load_directory(path: str = AIRPORTS_FILE, radius_km: float = AIRPORT_RADIUS_KM) -> AirportDirectory:
    """Load an airport directory from an mwgg-format JSON file."""
    with open(path) as f:
        data = json.load(f)

    directory = AirportDirectory.from_mwgg(data, radius_km=radius_km)
    logger.info(f"Loaded {len(directory)} airports from {path}")
    return directory


# Singleton instance
_directory: Optional[AirportDirectory] = None

def get_directory(path: str = AIRPORTS_FILE, radius_km: float = AIRPORT_RADIUS_KM) -> AirportDirectory:
    """Load the airport directory once; an unreadable file gives an empty one."""
    global _directory
    if _directory is None:
        try:
            _directory = load_directory(path, radius_km=radius_km)
        except (OSError, ValueError) as e:
            logger.error(f"Airport DB load failed: {e}")
            _directory = AirportDirectory([], radius_km=radius_km)
    return _directory
