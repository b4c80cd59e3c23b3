"""
Contract tests for persisted and emitted records.

Validates that the example records in contracts/examples match the schema
contracts. These tests run independently (no simulator or webhook required).
"""

import json
import pytest
from pathlib import Path
import sys

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from contracts.validation import (
    validate_session_snapshot,
    validate_flight_report,
    validate_termination_notice,
    validate_airline_record,
)
from contracts.constants import (
    SCHEMA_VERSION,
    RECORD_TYPE_FLIGHT_REPORT,
    RECORD_TYPE_TERMINATION_NOTICE,
    ARRIVAL_TELEPORT,
    MAX_PERSISTED_PATH_SAMPLES,
)


def load_example(filename: str) -> dict:
    """Load example JSON file."""
    example_path = Path(__file__).parent.parent.parent / "contracts" / "examples" / filename
    with open(example_path) as f:
        return json.load(f)


class TestSessionSnapshotContract:
    """Test that the persisted session matches SessionSnapshot schema."""

    def test_session_snapshot_example_validates(self):
        example = load_example("session_snapshot.json")
        is_valid, snapshot, error = validate_session_snapshot(example)

        assert is_valid, f"Example should validate: {error}"
        assert snapshot.schema_version == SCHEMA_VERSION
        assert snapshot.departure_icao == "KJFK"
        assert snapshot.departure_airport.tz == "America/New_York"
        assert len(snapshot.path_samples) == 3
        assert snapshot.teleport_warning_count == 1

    def test_unknown_schema_version_rejected(self):
        example = load_example("session_snapshot.json")
        example["schema_version"] = SCHEMA_VERSION + 1
        is_valid, _, _ = validate_session_snapshot(example)
        assert not is_valid, "Should reject newer schema_version"

    def test_required_fields(self):
        example = load_example("session_snapshot.json")
        del example["start_time"]
        is_valid, _, _ = validate_session_snapshot(example)
        assert not is_valid, "Should fail without start_time"

    def test_warning_count_bounded(self):
        example = load_example("session_snapshot.json")
        example["teleport_warning_count"] = 3
        is_valid, _, _ = validate_session_snapshot(example)
        assert not is_valid, "A session with 3 strikes cannot exist"

    def test_path_samples_bounded(self):
        example = load_example("session_snapshot.json")
        point = example["path_samples"][0]
        example["path_samples"] = [point] * (MAX_PERSISTED_PATH_SAMPLES + 1)
        is_valid, _, _ = validate_session_snapshot(example)
        assert not is_valid, "Persisted path is capped"

    def test_invalid_coordinates(self):
        example = load_example("session_snapshot.json")
        example["path_samples"][0]["lat"] = 91.0
        is_valid, _, _ = validate_session_snapshot(example)
        assert not is_valid, "Should fail with lat > 90"


class TestFlightReportContract:
    """Test that the notifier payload source matches FlightReport schema."""

    def test_flight_report_example_validates(self):
        example = load_example("flight_report.json")
        is_valid, report, error = validate_flight_report(example)

        assert is_valid, f"Example should validate: {error}"
        assert report.type == RECORD_TYPE_FLIGHT_REPORT
        assert report.landing_quality == "BUTTER"
        assert report.takeoff_at.tzinfo is not None

    def test_invalid_landing_quality(self):
        example = load_example("flight_report.json")
        example["landing_quality"] = "GREASER"
        is_valid, _, _ = validate_flight_report(example)
        assert not is_valid, "Should fail with invalid landing_quality"

    @pytest.mark.parametrize("quality", ["SUPER BUTTER", "BUTTER", "ACCEPTABLE", "HARD", "CRASH"])
    def test_valid_landing_qualities(self, quality):
        example = load_example("flight_report.json")
        example["landing_quality"] = quality
        is_valid, _, error = validate_flight_report(example)
        assert is_valid, f"{quality} should be valid: {error}"

    @pytest.mark.parametrize("duration", ["0:40", "00:4", "40", "ab:cd"])
    def test_invalid_duration(self, duration):
        example = load_example("flight_report.json")
        example["duration"] = duration
        is_valid, _, _ = validate_flight_report(example)
        assert not is_valid, f"Should fail with duration {duration!r}"

    def test_long_flight_duration(self):
        example = load_example("flight_report.json")
        example["duration"] = "125:03"
        is_valid, _, error = validate_flight_report(example)
        assert is_valid, error

    def test_invalid_vs_source(self):
        example = load_example("flight_report.json")
        example["vertical_speed_source"] = "radar"
        is_valid, _, _ = validate_flight_report(example)
        assert not is_valid


class TestTerminationNoticeContract:
    def test_termination_notice_example_validates(self):
        example = load_example("termination_notice.json")
        is_valid, notice, error = validate_termination_notice(example)

        assert is_valid, f"Example should validate: {error}"
        assert notice.type == RECORD_TYPE_TERMINATION_NOTICE
        assert notice.arrival_icao == ARRIVAL_TELEPORT

    def test_arrival_must_be_teleport(self):
        example = load_example("termination_notice.json")
        example["arrival_icao"] = "KBOS"
        is_valid, _, _ = validate_termination_notice(example)
        assert not is_valid


class TestAirlineRecordContract:
    def test_airline_record_example_validates(self):
        example = load_example("airline_record.json")
        is_valid, record, error = validate_airline_record(example)

        assert is_valid, f"Example should validate: {error}"
        assert record.icao == "EVA"
        assert record.iata == "BR"

    def test_non_discord_webhook_rejected(self):
        example = load_example("airline_record.json")
        example["webhook"] = "https://example.com/hooks/1"
        is_valid, _, _ = validate_airline_record(example)
        assert not is_valid

    def test_empty_codes_rejected(self):
        example = load_example("airline_record.json")
        example["icao"] = "   "
        is_valid, _, _ = validate_airline_record(example)
        assert not is_valid
