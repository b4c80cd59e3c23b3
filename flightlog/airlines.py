"""
Airline configuration store.

Airlines map a display name to a webhook and ICAO/IATA codes. The store also
remembers the last selected airline. Older files that stored a bare webhook
URL per airline, or records without an IATA code, are upgraded on load.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Optional

from contracts.constants import (
    DEFAULT_AIRLINE_NAME,
    DEFAULT_AIRLINE_ICAO,
    DEFAULT_AIRLINE_IATA,
    STORAGE_KEY_AIRLINES,
    STORAGE_KEY_LAST_AIRLINE,
    WEBHOOK_URL_MARKER,
)
from contracts.validation import AirlineRecord
from flightlog.config import AIRLINES_FILE, WEBHOOK_URL

logger = logging.getLogger(__name__)


class AirlineStore:
    """JSON-file backed list/add/edit/remove of airlines."""

    def __init__(self, path: str = AIRLINES_FILE, default_webhook: str = WEBHOOK_URL):
        self.path = Path(path)
        self.default_webhook = default_webhook or ""
        if self.default_webhook and WEBHOOK_URL_MARKER not in self.default_webhook:
            logger.error("Ignoring WEBHOOK_URL: not a Discord webhook URL")
            self.default_webhook = ""

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def _read(self) -> dict:
        try:
            data = json.loads(self.path.read_text())
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable airline store {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2))

    def _save_airlines(self, airlines: Dict[str, AirlineRecord]):
        data = self._read()
        data[STORAGE_KEY_AIRLINES] = {name: rec.model_dump() for name, rec in airlines.items()}
        self._write(data)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list(self) -> Dict[str, AirlineRecord]:
        """All airlines; the built-in default when nothing is stored."""
        stored = self._read().get(STORAGE_KEY_AIRLINES)
        if not stored:
            return {DEFAULT_AIRLINE_NAME: self._default_record()}

        airlines, upgraded = {}, False
        for name, entry in stored.items():
            if isinstance(entry, str):
                logger.info("Upgrading airline data format...")
                is_default = name == DEFAULT_AIRLINE_NAME
                entry = {
                    "webhook": entry,
                    "icao": DEFAULT_AIRLINE_ICAO if is_default else "UNK",
                    "iata": DEFAULT_AIRLINE_IATA if is_default else "UK",
                }
                upgraded = True
            elif isinstance(entry, dict) and not entry.get("iata"):
                logger.info("Adding IATA field to existing airlines...")
                entry = dict(entry, iata=(entry.get("icao") or "UK")[:2])
                upgraded = True
            try:
                airlines[name] = AirlineRecord(**entry)
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping invalid airline {name}: {e}")

        if not airlines:
            return {DEFAULT_AIRLINE_NAME: self._default_record()}
        if upgraded:
            self._save_airlines(airlines)
        return airlines

    def get(self, name: str) -> Optional[AirlineRecord]:
        return self.list().get(name)

    def selected(self) -> Optional[str]:
        """Name of the last selected airline, if it still exists."""
        name = self._read().get(STORAGE_KEY_LAST_AIRLINE)
        if name and name in self.list():
            return name
        return None

    def current(self) -> AirlineRecord:
        """Selected airline, else the first one."""
        airlines = self.list()
        name = self.selected()
        if name is not None:
            return airlines[name]
        return next(iter(airlines.values()))

    def webhook_for(self, name: str) -> Optional[str]:
        """Webhook of a named airline, falling back to the default webhook."""
        record = self.get(name)
        if record is None:
            raise KeyError(f"Airline not found: {name}")
        return record.webhook or self.default_webhook or None

    def current_webhook(self) -> Optional[str]:
        return self.current().webhook or self.default_webhook or None

    def current_icao(self) -> str:
        return self.current().icao or DEFAULT_AIRLINE_ICAO

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, name: str, icao: str, iata: str, webhook: str) -> AirlineRecord:
        """Add or overwrite an airline. Raises ValueError on invalid input."""
        name = (name or "").strip()
        if not name:
            raise ValueError("Airline name is required")
        if not webhook:
            raise ValueError("Invalid webhook URL")
        record = AirlineRecord(webhook=webhook, icao=icao, iata=iata)
        airlines = self.list()
        airlines[name] = record
        self._save_airlines(airlines)
        logger.info(f"Added airline: {name} ({record.icao}/{record.iata})")
        return record

    def edit(
        self,
        name: str,
        new_name: Optional[str] = None,
        icao: Optional[str] = None,
        iata: Optional[str] = None,
        webhook: Optional[str] = None,
    ) -> AirlineRecord:
        """Change fields of an existing airline, optionally renaming it."""
        airlines = self.list()
        if name not in airlines:
            raise KeyError(f"Airline not found: {name}")

        current = airlines[name]
        record = AirlineRecord(
            webhook=webhook if webhook is not None else current.webhook,
            icao=icao if icao is not None else current.icao,
            iata=iata if iata is not None else current.iata,
        )
        new_name = (new_name or name).strip()
        if new_name != name:
            del airlines[name]
        airlines[new_name] = record
        self._save_airlines(airlines)

        if new_name != name and self._read().get(STORAGE_KEY_LAST_AIRLINE) == name:
            self.select(new_name)
        logger.info(f"Updated airline: {new_name} ({record.icao}/{record.iata})")
        return record

    def remove(self, name: str):
        """Remove an airline; the last remaining one cannot be removed."""
        airlines = self.list()
        if len(airlines) <= 1:
            raise ValueError("Cannot remove the last airline")
        if name not in airlines:
            raise KeyError(f"Airline not found: {name}")
        del airlines[name]
        self._save_airlines(airlines)
        logger.info(f"Removed airline: {name}")

    def select(self, name: str):
        """Remember the airline used for the next flight."""
        if name not in self.list():
            raise KeyError(f"Airline not found: {name}")
        data = self._read()
        data[STORAGE_KEY_LAST_AIRLINE] = name
        self._write(data)
        logger.info(f"Saved airline selection: {name}")

    def _default_record(self) -> AirlineRecord:
        return AirlineRecord(
            webhook=self.default_webhook or "",
            icao=DEFAULT_AIRLINE_ICAO,
            iata=DEFAULT_AIRLINE_IATA,
        )
