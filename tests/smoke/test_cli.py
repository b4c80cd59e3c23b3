"""
Smoke test: the command-line entry point replays a short flight.
"""

import json
import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from flightlog import airports as airports_module, config, run


@pytest.fixture(autouse=True)
def fresh_airport_directory(monkeypatch):
    monkeypatch.setattr(airports_module, "_directory", None)


def test_requires_telemetry_source(monkeypatch):
    monkeypatch.setattr(config, "METRICS_PORT", 0)
    assert run.main(["--replay", ""]) == 2


def test_missing_replay_file(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "METRICS_PORT", 0)
    monkeypatch.chdir(tmp_path)
    assert run.main(["--replay", str(tmp_path / "missing.jsonl"), "--airports", str(tmp_path / "none.json")]) == 2


def test_replays_flight(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "METRICS_PORT", 0)
    monkeypatch.chdir(tmp_path)

    airports = tmp_path / "airports.json"
    airports.write_text(json.dumps({"KJFK": {"icao": "KJFK", "lat": 40.6398, "lon": -73.7789, "tz": "America/New_York"}}))
    flight = tmp_path / "flight.jsonl"
    rows = [
        {"lat": 40.6413, "lon": -73.7781, "altitudeFt": 93.0, "aglFt": 80.0, "groundElevationFt": 13.0,
         "groundContact": False, "timestamp": 0.0},
        {"lat": 40.6413, "lon": -73.7781, "altitudeFt": 13.0, "aglFt": 0.0, "groundElevationFt": 13.0,
         "groundContact": True, "timestamp": 60.0},
    ]
    flight.write_text("\n".join(json.dumps(r) for r in rows) + "\n")

    code = run.main([
        "--replay", str(flight), "--speed", "120", "--airports", str(airports),
        "--callsign", "123", "--max-seconds", "10",
    ])
    assert code == 0
    assert not (tmp_path / ".flightlog" / "session.json").exists()
