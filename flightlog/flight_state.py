"""
Flight state machine.

Classifies polled telemetry into flight phases:

    GROUND_IDLE -> AIRBORNE -> LANDED | CRASHED | VOIDED

Each tick is a function of (session, sample) returning the session and a list
of effects for the scheduler to carry out (persist, notify, reset UI, stop
polling), so the transition logic runs without timers.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Union

from contracts.constants import (
    ICAO_UNKNOWN,
    ARRIVAL_CRASH,
    DEFAULT_AIRLINE_ICAO,
    MAX_TELEPORT_WARNINGS,
)
from contracts.validation import (
    FlightReport,
    PathPoint,
    SessionSnapshot,
    TerminationNotice,
)
from flightlog import config
from flightlog.airports import AirportDirectory
from flightlog.landing import (
    classify_landing,
    clean_aircraft_name,
    flight_number,
    format_duration,
    g_force,
    is_crash,
)
from flightlog.metrics import FLIGHTS_COMPLETED, FLIGHTS_STARTED, TOUCHDOWN_VS
from flightlog.models import FlightPhase, FlightSession, TelemetrySample
from flightlog.session_store import from_snapshot, to_snapshot
from flightlog.teleport import TeleportDetector, Verdict
from flightlog.telemetry import NoPrompt, UserPrompt
from flightlog.vertical_speed import VerticalSpeedEstimator, calibrated_agl

logger = logging.getLogger(__name__)


# ============================================================================
# Effects
# ============================================================================

@dataclass(frozen=True)
class Persist:
    snapshot: SessionSnapshot


@dataclass(frozen=True)
class Notify:
    report: FlightReport


@dataclass(frozen=True)
class NotifyTermination:
    notice: TerminationNotice


@dataclass(frozen=True)
class Warn:
    message: str


@dataclass(frozen=True)
class ClearSession:
    pass


@dataclass(frozen=True)
class ResetUI:
    pass


@dataclass(frozen=True)
class StopPolling:
    pass


Effect = Union[Persist, Notify, NotifyTermination, Warn, ClearSession, ResetUI, StopPolling]


@dataclass
class TickResult:
    session: FlightSession
    effects: List[Effect] = field(default_factory=list)


# ============================================================================
# State Machine
# ============================================================================

class FlightStateMachine:
    """Drives phase transitions for one flight at a time."""

    def __init__(
        self,
        airports: AirportDirectory,
        estimator: Optional[VerticalSpeedEstimator] = None,
        detector: Optional[TeleportDetector] = None,
        prompt: Optional[UserPrompt] = None,
        airline_icao: Callable[[], str] = lambda: DEFAULT_AIRLINE_ICAO,
        departure_agl_ft: float = config.DEPARTURE_AGL_FT,
    ):
        self.airports = airports
        self.estimator = estimator or VerticalSpeedEstimator()
        self.detector = detector or TeleportDetector()
        self.prompt = prompt or NoPrompt()
        self.airline_icao = airline_icao
        self.departure_agl_ft = departure_agl_ft

    def new_session(self, callsign: str = "Unknown") -> FlightSession:
        """Fresh GROUND_IDLE session waiting for a departure."""
        return FlightSession(pilot_callsign=callsign.strip() or "Unknown")

    def resume(self, snapshot: SessionSnapshot, now: float) -> FlightSession:
        """AIRBORNE session rebuilt from a snapshot, teleport detection in grace."""
        session = from_snapshot(snapshot)
        last_point = session.path_samples[-1] if session.path_samples else None
        self.detector.resume(session.teleport, last_point, now)
        self.estimator.reset()
        FLIGHTS_STARTED.labels(mode="resume").inc()
        logger.info(f"Resumed flight session from {session.departure_icao}")
        return session

    def tick(self, session: FlightSession, sample: Optional[TelemetrySample]) -> TickResult:
        """Process one coarse poll."""
        result = TickResult(session=session)
        if sample is None or not sample.has_position:
            return result
        if session.phase.is_terminal or session.terminated:
            return result

        now = sample.timestamp

        if session.phase == FlightPhase.AIRBORNE:
            self._track_path(session, sample, result)
            if session.terminated:
                return result

        agl = calibrated_agl(sample)
        if agl is not None and agl < config.BOUNCE_TRACKING_AGL_FT:
            session.just_landed = sample.ground_contact and not session.is_grounded
            session.is_grounded = sample.ground_contact
            if session.just_landed and session.phase == FlightPhase.AIRBORNE:
                session.bounces += 1

        if session.phase == FlightPhase.GROUND_IDLE:
            departure_agl = sample.agl_ft if sample.agl_ft is not None else agl
            if not sample.ground_contact and departure_agl is not None and departure_agl > self.departure_agl_ft:
                result.session = self._depart(session, sample)
                result.effects.append(Persist(to_snapshot(result.session, now)))
            return result

        if session.phase == FlightPhase.AIRBORNE and not session.first_ground_contact and sample.ground_contact:
            elapsed = now - session.start_time
            if elapsed < config.LANDING_DEBOUNCE_SECONDS:
                return result
            self._land(session, sample, result)

        return result

    # ------------------------------------------------------------------
    # Departure
    # ------------------------------------------------------------------

    def _depart(self, idle: FlightSession, sample: TelemetrySample) -> FlightSession:
        now = sample.timestamp
        airport = self.airports.find_nearest(sample.lat, sample.lon)
        if airport is not None:
            departure_icao = airport.icao
        else:
            departure_icao = self._ask_icao("Departure", sample.lat, sample.lon)

        session = FlightSession(
            phase=FlightPhase.AIRBORNE,
            start_time=now,
            departure_icao=departure_icao,
            departure_airport=airport,
            pilot_callsign=idle.pilot_callsign,
            pilot_name=sample.pilot_name or idle.pilot_name,
            aircraft_name=clean_aircraft_name(sample.aircraft_name),
            is_grounded=idle.is_grounded,
            just_landed=idle.just_landed,
        )
        self.detector.start(session.teleport, sample.lat, sample.lon, sample.altitude_ft, now)
        FLIGHTS_STARTED.labels(mode="departure").inc()
        logger.info(f"Departure detected at {departure_icao}")
        return session

    def _ask_icao(self, kind: str, lat: float, lon: float) -> str:
        answer = self.prompt.ask_text(
            f"{kind} airport not found in database.\n"
            f"Location: {lat:.4f}, {lon:.4f}\n\n"
            f"Please enter the ICAO code manually (or leave empty for UNKNOWN):"
        )
        if not answer or not answer.strip():
            return ICAO_UNKNOWN
        return answer.strip().upper()

    # ------------------------------------------------------------------
    # In flight
    # ------------------------------------------------------------------

    def _track_path(self, session: FlightSession, sample: TelemetrySample, result: TickResult):
        now = sample.timestamp
        self.detector.observe_map_path(session.teleport, sample.map_path_length, now)

        verdict = self.detector.observe(session.teleport, sample.lat, sample.lon, sample.altitude_ft, now)
        if verdict == Verdict.WARNING:
            result.effects.append(Warn(
                f"TELEPORTATION DETECTED - Warning {session.teleport_warning_count}/{MAX_TELEPORT_WARNINGS}: "
                f"flight continues with note, next teleport will terminate the flight"
            ))
        elif verdict == Verdict.TERMINATED:
            self._void(session, sample, result)
            return

        last = session.path_samples[-1] if session.path_samples else None
        if last is None or now - last.time > config.PATH_SAMPLE_INTERVAL_SECONDS:
            session.add_path_sample(PathPoint(lat=sample.lat, lon=sample.lon, alt=sample.altitude_ft, time=now))
            if session.path_sample_count % config.PERSIST_EVERY_N_SAMPLES == 0:
                result.effects.append(Persist(to_snapshot(session, now)))

    def _void(self, session: FlightSession, sample: TelemetrySample, result: TickResult):
        now = sample.timestamp
        pilot = flight_number(session.pilot_callsign, self.airline_icao())
        session.terminated = True
        session.phase = FlightPhase.VOIDED
        notice = TerminationNotice(
            pilot=pilot,
            pilot_name=session.pilot_name,
            aircraft=session.aircraft_name,
            departure_icao=session.departure_icao,
            duration=format_duration(session.start_time, now),
            terminated_at=_utc(now),
            teleport_warnings=session.teleport_warning_count,
        )
        FLIGHTS_COMPLETED.labels(outcome=FlightPhase.VOIDED.value).inc()
        result.effects.extend([
            Warn("FLIGHT TERMINATED - Multiple teleportations detected, flight will not be logged"),
            NotifyTermination(notice),
            ClearSession(),
            ResetUI(),
            StopPolling(),
        ])

    # ------------------------------------------------------------------
    # Touchdown
    # ------------------------------------------------------------------

    def _land(self, session: FlightSession, sample: TelemetrySample, result: TickResult):
        now = sample.timestamp
        # Resolved before the session is touched so a lookup failure leaves it airborne
        pilot = flight_number(session.pilot_callsign, self.airline_icao())
        vs, vs_source = self.estimator.reading(sample.vertical_speed_fpm)
        quality = classify_landing(vs)
        crashed = is_crash(vs)

        nearest = self.airports.find_nearest(sample.lat, sample.lon)
        if crashed:
            arrival_icao = ARRIVAL_CRASH
            result.effects.append(Warn("CRASH DETECTED - Logging crash report"))
        elif nearest is not None:
            arrival_icao = nearest.icao
        else:
            arrival_icao = self._ask_icao("Arrival", sample.lat, sample.lon)

        session.arrival_icao = arrival_icao
        session.arrival_airport = nearest
        session.first_ground_contact = True
        session.phase = FlightPhase.CRASHED if crashed else FlightPhase.LANDED

        logger.info(f"Arrival detected at {arrival_icao}")
        logger.info(f"Landing data: V/S = {vs:.1f} fpm ({vs_source}), Quality = {quality.value}")
        logger.info(f"Flight path points recorded: {len(session.path_samples)}")
        if session.teleport_warning_count > 0:
            logger.warning(f"Teleportation warnings: {session.teleport_warning_count}")

        report = FlightReport(
            pilot=pilot,
            pilot_name=sample.pilot_name or session.pilot_name,
            aircraft=session.aircraft_name,
            departure_icao=session.departure_icao,
            arrival_icao=arrival_icao,
            departure_airport=session.departure_airport,
            arrival_airport=nearest,
            takeoff_at=_utc(session.start_time),
            landing_at=_utc(now),
            duration=format_duration(session.start_time, now),
            vertical_speed_fpm=round(vs, 1),
            vertical_speed_source=vs_source,
            g_force=g_force(sample.accel_z),
            true_airspeed_kt=_round1(sample.true_airspeed_kt),
            ground_speed_kt=_round1(sample.ground_speed_kt),
            landing_quality=quality.value,
            bounces=session.bounces,
            teleport_warnings=session.teleport_warning_count,
            path_continuity_broken=session.teleport.path_continuity_broken,
        )
        TOUCHDOWN_VS.observe(abs(vs))
        FLIGHTS_COMPLETED.labels(outcome=session.phase.value).inc()
        result.effects.extend([
            Notify(report),
            ClearSession(),
            ResetUI(),
            StopPolling(),
        ])


def _utc(epoch_seconds: float) -> datetime:
    return datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)


def _round1(value: Optional[float]) -> Optional[float]:
    return round(value, 1) if value is not None else None
