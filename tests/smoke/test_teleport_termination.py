"""
Smoke test: a flight with two teleports is voided.

This test verifies that:
1. The first teleport produces a warning and the flight continues
2. The second terminates the flight and a termination notice is posted
3. The persisted session is cleared so it cannot be resumed
"""

import json
import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from contracts.validation import Airport
from flightlog.airports import AirportDirectory
from flightlog.flight_state import FlightStateMachine
from flightlog.models import FlightPhase, TelemetrySample
from flightlog.notifier import WebhookNotifier
from flightlog.scheduler import FlightLogger
from flightlog.session_store import JsonFileSessionStore
from flightlog.telemetry import TelemetrySource

T0 = 1767960000.0
JFK = (40.6413, -73.7781)
HOOK = "https://discord.com/api/webhooks/1/aaa"


class ScriptedTelemetry(TelemetrySource):
    def __init__(self):
        self.current = None

    def read(self):
        return self.current


class FakeResponse:
    def raise_for_status(self):
        pass


class FakeHttp:
    def __init__(self):
        self.posts = []

    def post(self, url, json=None, timeout=None):
        self.posts.append(json)
        return FakeResponse()


def at(dt, lat, lon, alt, ground=False):
    return TelemetrySample(
        lat=lat, lon=lon, altitude_ft=alt, agl_ft=alt, ground_contact=ground,
        timestamp=T0 + dt, ground_elevation_ft=0.0, pilot_name="skyfox",
    )


def test_two_jumps_void_flight(tmp_path):
    telemetry, http, warnings = ScriptedTelemetry(), FakeHttp(), []
    session_file = tmp_path / "session.json"
    flight_logger = FlightLogger(
        machine=FlightStateMachine(AirportDirectory([Airport(icao="KJFK", lat=40.6398, lon=-73.7789)])),
        telemetry=telemetry,
        store=JsonFileSessionStore(str(session_file)),
        notifier=WebhookNotifier(webhook_url=HOOK, http=http),
        on_warning=warnings.append,
        deliver_async=False,
    )
    flight_logger.start_logging("123")

    script = [
        at(0, JFK[0], JFK[1], 120.0),            # departure
        at(6, JFK[0] + 0.01, JFK[1], 900.0),     # normal climb
        at(12, JFK[0] + 0.02, JFK[1], 1600.0),
        at(18, 48.0, 2.0, 1600.0),               # jump to Paris
        at(24, 48.0, 2.0, 1600.0),
        at(30, 48.0, 2.01, 1650.0),              # verified: still far away
        at(36, 48.0, 2.02, 1700.0),
        at(42, 35.0, 139.0, 1700.0),             # jump to Tokyo
        at(52, 35.0, 139.01, 1750.0),            # verified: second strike
    ]
    for sample in script:
        telemetry.current = sample
        flight_logger.poll_once()
        if sample.timestamp == T0 + 36:
            assert flight_logger.session.phase == FlightPhase.AIRBORNE
            assert flight_logger.session.teleport_warning_count == 1
            assert session_file.exists()

    assert flight_logger.last_outcome == FlightPhase.VOIDED
    assert not flight_logger.polling
    assert not session_file.exists()
    assert any("Warning 1/2" in w for w in warnings)
    assert "FLIGHT TERMINATED" in warnings[-1]

    assert len(http.posts) == 1
    embed = http.posts[0]["embeds"][0]
    assert embed["title"] == "Flight Terminated - GeoFS"
    assert "**Arrival**: TELEPORT" in json.dumps(embed)


def test_returning_after_jump_is_not_a_strike(tmp_path):
    telemetry, http = ScriptedTelemetry(), FakeHttp()
    flight_logger = FlightLogger(
        machine=FlightStateMachine(AirportDirectory([])),
        telemetry=telemetry,
        store=JsonFileSessionStore(str(tmp_path / "session.json")),
        notifier=WebhookNotifier(webhook_url=HOOK, http=http),
        deliver_async=False,
    )
    flight_logger.start_logging("123")

    for sample in [
        at(0, JFK[0], JFK[1], 120.0),
        at(6, JFK[0] + 0.01, JFK[1], 900.0),
        at(7, 48.0, 2.0, 900.0),                 # stale position glitch
        at(17, JFK[0] + 0.012, JFK[1], 950.0),   # back where it was
    ]:
        telemetry.current = sample
        flight_logger.poll_once()

    assert flight_logger.session.phase == FlightPhase.AIRBORNE
    assert flight_logger.session.teleport_warning_count == 0
    assert http.posts == []
