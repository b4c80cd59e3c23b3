"""
Terrain-calibrated vertical speed.

The simulator's own vertical-speed readout is noisy near touchdown, so the
logger differentiates terrain-relative altitude on a fast tick instead.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from contracts.constants import VS_SOURCE_CALIBRATED, VS_SOURCE_NATIVE
from flightlog.metrics import VS_GLITCHES
from flightlog.models import TelemetrySample

logger = logging.getLogger(__name__)

FEET_PER_METER = 3.2808399


def calibrated_agl(sample: Optional[TelemetrySample]) -> Optional[float]:
    """
    AGL in feet corrected for the aircraft's collision geometry.

    The simulator reports altitude for the aircraft reference point; the
    lowest collision point sits ``collision_offset_m`` above (negative: below) it.
    """
    if sample is None:
        return None
    altitude, elevation = sample.altitude_ft, sample.ground_elevation_ft
    if altitude is None or elevation is None:
        return None
    offset = sample.collision_offset_m or 0.0
    agl = (altitude - elevation) + offset * FEET_PER_METER
    if math.isnan(agl):
        return None
    return agl


@dataclass
class VerticalSpeedEstimator:
    """Differentiates calibrated AGL against elapsed time."""

    previous_agl: Optional[float] = None
    previous_time: Optional[float] = None
    vertical_speed_fpm: float = 0.0

    GLITCH_THRESHOLD_FPM = 5000.0

    def update(self, sample: Optional[TelemetrySample]) -> Optional[float]:
        """Process one fast tick. Returns the new estimate, or None if skipped."""
        if sample is None or sample.paused:
            return None

        agl = calibrated_agl(sample)
        if agl is None:
            return None

        now = sample.timestamp
        if self.previous_agl is None or self.previous_time is None:
            self.previous_agl = agl
            self.previous_time = now
            return None

        if agl == self.previous_agl:
            return None

        elapsed_ms = (now - self.previous_time) * 1000.0
        if elapsed_ms <= 0:
            return None

        self.vertical_speed_fpm = (agl - self.previous_agl) * (60000.0 / elapsed_ms)
        self.previous_agl = agl
        self.previous_time = now
        return self.vertical_speed_fpm

    def reading(self, native_fpm: Optional[float]) -> Tuple[float, str]:
        """
        Vertical speed to use for a touchdown, with its source.

        Falls back to the native reading when no calibrated value exists or
        the calibrated value is implausible.
        """
        vs = self.vertical_speed_fpm
        if vs != 0 and abs(vs) < self.GLITCH_THRESHOLD_FPM:
            return vs, VS_SOURCE_CALIBRATED

        if abs(vs) >= self.GLITCH_THRESHOLD_FPM:
            VS_GLITCHES.inc()
            logger.warning(f"Calibrated V/S {vs:.0f} fpm rejected as glitch, using native reading")

        native = native_fpm if native_fpm is not None and not math.isnan(native_fpm) else 0.0
        return native, VS_SOURCE_NATIVE

    def reset(self):
        """Forget the baseline and the last estimate."""
        self.previous_agl = None
        self.previous_time = None
        self.vertical_speed_fpm = 0.0
