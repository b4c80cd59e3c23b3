"""
Session persistence so a restart can resume an ongoing flight.

Only the logical snapshot shape matters; stores are interchangeable.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from contracts.constants import MAX_PERSISTED_PATH_SAMPLES
from contracts.validation import SessionSnapshot, validate_session_snapshot
from flightlog.config import SESSION_FILE
from flightlog.models import FlightPhase, FlightSession

logger = logging.getLogger(__name__)


class SessionStore:
    """Key-value persistence for the single active session snapshot."""

    def save(self, snapshot: SessionSnapshot):
        raise NotImplementedError

    def load(self) -> Optional[SessionSnapshot]:
        raise NotImplementedError

    def clear(self):
        raise NotImplementedError


class MemorySessionStore(SessionStore):
    """Keeps the serialized snapshot in memory."""

    def __init__(self):
        self._raw: Optional[str] = None

    def save(self, snapshot: SessionSnapshot):
        self._raw = snapshot.model_dump_json()

    def load(self) -> Optional[SessionSnapshot]:
        if self._raw is None:
            return None
        return _parse(self._raw)

    def clear(self):
        self._raw = None


class JsonFileSessionStore(SessionStore):
    """Stores the snapshot as a JSON file, replaced atomically on save."""

    def __init__(self, path: str = SESSION_FILE):
        self.path = Path(path)

    def save(self, snapshot: SessionSnapshot):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".session-", suffix=".json")
            with os.fdopen(fd, "w") as f:
                f.write(snapshot.model_dump_json())
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Failed to save session to {self.path}: {e}")

    def load(self) -> Optional[SessionSnapshot]:
        try:
            raw = self.path.read_text()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Failed to read session from {self.path}: {e}")
            return None
        return _parse(raw)

    def clear(self):
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Failed to clear session {self.path}: {e}")


def _parse(raw: str) -> Optional[SessionSnapshot]:
    """Parse a stored snapshot; anything malformed means no resumable session."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"Discarding corrupt session snapshot: {e}")
        return None

    if not isinstance(data, dict):
        logger.warning("Discarding corrupt session snapshot: not an object")
        return None

    is_valid, snapshot, error = validate_session_snapshot(data)
    if not is_valid:
        logger.warning(f"Discarding invalid session snapshot: {error}")
        return None
    return snapshot


def to_snapshot(session: FlightSession, now: float) -> SessionSnapshot:
    """Snapshot of the fields needed to resume, with the most recent path points."""
    return SessionSnapshot(
        flight_started=session.phase == FlightPhase.AIRBORNE,
        start_time=session.start_time,
        departure_icao=session.departure_icao,
        departure_airport=session.departure_airport,
        callsign=session.pilot_callsign,
        aircraft=session.aircraft_name,
        first_ground_contact=session.first_ground_contact,
        path_samples=session.path_samples[-MAX_PERSISTED_PATH_SAMPLES:],
        teleport_warning_count=session.teleport_warning_count,
        saved_at=now,
    )


def from_snapshot(snapshot: SessionSnapshot) -> FlightSession:
    """Rebuild an airborne session; the teleport detector is re-armed by the caller."""
    session = FlightSession(
        phase=FlightPhase.AIRBORNE,
        start_time=snapshot.start_time,
        departure_icao=snapshot.departure_icao,
        departure_airport=snapshot.departure_airport,
        pilot_callsign=snapshot.callsign,
        aircraft_name=snapshot.aircraft,
        path_samples=list(snapshot.path_samples),
        path_sample_count=len(snapshot.path_samples),
        first_ground_contact=snapshot.first_ground_contact,
    )
    session.teleport.warning_count = snapshot.teleport_warning_count
    return session
