"""
Unit tests for the FlightLogger scheduler.
"""

import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from contracts.validation import Airport
from flightlog.airports import AirportDirectory
from flightlog.flight_state import FlightStateMachine
from flightlog.models import FlightPhase, TelemetrySample
from flightlog.scheduler import FlightLogger
from flightlog.session_store import MemorySessionStore
from flightlog.telemetry import TelemetrySource

JFK_LAT, JFK_LON = 40.6413, -73.7781
KM_LAT = 1 / 111.195

AIRPORTS = AirportDirectory([Airport(icao="KJFK", lat=40.63980103, lon=-73.77890015)])


class FakeTelemetry(TelemetrySource):
    def __init__(self):
        self.sample = None

    def read(self):
        return self.sample


class RecordingNotifier:
    def __init__(self, fail=False):
        self.fail = fail
        self.reports = []
        self.notices = []

    def send(self, report):
        if self.fail:
            raise RuntimeError("webhook down")
        self.reports.append(report)
        return True

    def send_termination(self, notice):
        self.notices.append(notice)
        return True


def sample(t, lat=JFK_LAT, alt=100.0, ground=False):
    return TelemetrySample(
        lat=lat, lon=JFK_LON, altitude_ft=alt, agl_ft=alt,
        ground_contact=ground, timestamp=t, ground_elevation_ft=0.0,
    )


@pytest.fixture
def parts():
    telemetry = FakeTelemetry()
    store = MemorySessionStore()
    notifier = RecordingNotifier()
    warnings = []
    flight_logger = FlightLogger(
        machine=FlightStateMachine(AIRPORTS),
        telemetry=telemetry,
        store=store,
        notifier=notifier,
        on_warning=warnings.append,
        deliver_async=False,
    )
    return flight_logger, telemetry, store, notifier, warnings


class TestPolling:
    def test_idle_until_started(self, parts):
        flight_logger, telemetry, store, _, _ = parts
        telemetry.sample = sample(0.0)
        flight_logger.poll_once()
        assert flight_logger.session.phase == FlightPhase.GROUND_IDLE
        assert store.load() is None

    def test_departure_persists(self, parts):
        flight_logger, telemetry, store, _, _ = parts
        flight_logger.start_logging("123")
        telemetry.sample = sample(0.0)
        flight_logger.poll_once()

        assert flight_logger.session.phase == FlightPhase.AIRBORNE
        assert store.load().departure_icao == "KJFK"

    def test_no_sample_is_skipped(self, parts):
        flight_logger, _, _, _, _ = parts
        flight_logger.start_logging("123")
        flight_logger.poll_once()
        assert flight_logger.session.phase == FlightPhase.GROUND_IDLE

    def test_landing_reports_and_resets(self, parts):
        flight_logger, telemetry, store, notifier, _ = parts
        flight_logger.start_logging("123")
        telemetry.sample = sample(0.0)
        flight_logger.poll_once()

        telemetry.sample = sample(900.0, alt=0.0, ground=True)
        flight_logger.poll_once()

        assert len(notifier.reports) == 1
        assert store.load() is None
        assert not flight_logger.polling
        assert flight_logger.last_outcome == FlightPhase.LANDED
        assert flight_logger.session.phase == FlightPhase.GROUND_IDLE
        assert flight_logger.session.pilot_callsign == "123"

        # Polling stopped: further samples change nothing
        telemetry.sample = sample(901.0, alt=200.0)
        flight_logger.poll_once()
        assert flight_logger.session.phase == FlightPhase.GROUND_IDLE

    def test_notifier_failure_does_not_escape(self, parts):
        flight_logger, telemetry, store, notifier, _ = parts
        notifier.fail = True
        flight_logger.start_logging("123")
        telemetry.sample = sample(0.0)
        flight_logger.poll_once()
        telemetry.sample = sample(900.0, alt=0.0, ground=True)
        flight_logger.poll_once()

        assert flight_logger.last_outcome == FlightPhase.LANDED
        assert store.load() is None

    def test_warnings_forwarded(self, parts):
        flight_logger, telemetry, _, notifier, warnings = parts
        flight_logger.start_logging("123")
        for t, lat, alt in [(0.0, JFK_LAT, 100.0), (5.0, JFK_LAT, 3000.0),
                            (6.0, JFK_LAT + KM_LAT, 3500.0), (7.0, JFK_LAT + 2 * KM_LAT, 4000.0)]:
            telemetry.sample = sample(t, lat=lat, alt=alt)
            flight_logger.poll_once()

        assert len(warnings) == 2
        assert "TERMINATED" in warnings[-1]
        assert len(notifier.notices) == 1
        assert flight_logger.last_outcome == FlightPhase.VOIDED
        assert not flight_logger.polling

    def test_vertical_speed_sampling(self, parts):
        flight_logger, telemetry, _, _, _ = parts
        flight_logger.start_logging("123")
        telemetry.sample = sample(10.0, alt=10.0)
        flight_logger.sample_vertical_speed()
        telemetry.sample = sample(11.0, alt=7.5)
        flight_logger.sample_vertical_speed()
        assert flight_logger.machine.estimator.vertical_speed_fpm == pytest.approx(-150.0)


class TestResume:
    def test_resume_without_snapshot(self, parts):
        flight_logger, _, _, _, _ = parts
        assert not flight_logger.resume_last_flight()
        assert not flight_logger.polling

    def test_resume_uses_telemetry_clock(self, parts):
        flight_logger, telemetry, store, _, _ = parts
        flight_logger.start_logging("123")
        telemetry.sample = sample(0.0)
        flight_logger.poll_once()
        snapshot = store.load()

        restarted = FlightLogger(
            machine=FlightStateMachine(AIRPORTS),
            telemetry=telemetry,
            store=store,
            notifier=RecordingNotifier(),
            deliver_async=False,
        )
        telemetry.sample = sample(300.0, alt=5000.0)
        assert restarted.resume_last_flight()
        assert restarted.polling
        assert restarted.session.phase == FlightPhase.AIRBORNE
        assert restarted.session.departure_icao == snapshot.departure_icao
        assert restarted.session.teleport.grace_until == 305.0

    def test_duplicate_delivery_suppressed(self, parts):
        flight_logger, _, _, notifier, _ = parts
        flight_logger.session.report_sent = True
        flight_logger._deliver(notifier.send, object())
        assert notifier.reports == []
