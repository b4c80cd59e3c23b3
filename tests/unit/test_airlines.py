"""
Unit tests for the airline configuration store.
"""

import json
import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from contracts.constants import STORAGE_KEY_AIRLINES
from flightlog.airlines import AirlineStore

HOOK_A = "https://discord.com/api/webhooks/1/aaa"
HOOK_B = "https://discord.com/api/webhooks/2/bbb"


@pytest.fixture
def store(tmp_path):
    return AirlineStore(path=str(tmp_path / "airlines.json"), default_webhook="")


class TestDefaults:
    def test_empty_store_has_default(self, store):
        airlines = store.list()
        assert list(airlines) == ["Default"]
        assert airlines["Default"].icao == "GFS"
        assert airlines["Default"].iata == "GF"

    def test_current_icao_defaults(self, store):
        assert store.current_icao() == "GFS"
        assert store.current_webhook() is None

    def test_non_discord_default_webhook_ignored(self, tmp_path):
        store = AirlineStore(path=str(tmp_path / "a.json"), default_webhook="https://hooks.example.com/x")
        assert list(store.list()) == ["Default"]
        assert store.current_icao() == "GFS"
        assert store.current_webhook() is None

    def test_default_webhook_used(self, tmp_path):
        store = AirlineStore(path=str(tmp_path / "a.json"), default_webhook=HOOK_A)
        assert store.current_webhook() == HOOK_A


class TestLegacyUpgrade:
    def test_string_entries_upgraded(self, tmp_path):
        path = tmp_path / "airlines.json"
        path.write_text(json.dumps({STORAGE_KEY_AIRLINES: {"Default": HOOK_A, "Other": HOOK_B}}))
        store = AirlineStore(path=str(path), default_webhook="")

        airlines = store.list()
        assert airlines["Default"].icao == "GFS"
        assert airlines["Default"].iata == "GF"
        assert airlines["Other"].icao == "UNK"
        assert airlines["Other"].iata == "UK"
        assert airlines["Other"].webhook == HOOK_B

        # Upgrade is written back
        stored = json.loads(path.read_text())[STORAGE_KEY_AIRLINES]
        assert stored["Other"] == {"webhook": HOOK_B, "icao": "UNK", "iata": "UK"}

    def test_missing_iata_filled(self, tmp_path):
        path = tmp_path / "airlines.json"
        path.write_text(json.dumps({STORAGE_KEY_AIRLINES: {"EVA Air": {"webhook": HOOK_A, "icao": "EVA"}}}))
        store = AirlineStore(path=str(path), default_webhook="")
        assert store.get("EVA Air").iata == "EV"


class TestCrud:
    def test_add_normalizes_codes(self, store):
        record = store.add("EVA Air", " eva ", "br", HOOK_A)
        assert record.icao == "EVA"
        assert record.iata == "BR"
        assert "EVA Air" in store.list()

    def test_add_rejects_bad_webhook(self, store):
        with pytest.raises(ValueError):
            store.add("Bad", "BAD", "BD", "https://example.com/hook")
        with pytest.raises(ValueError):
            store.add("Bad", "BAD", "BD", "")

    def test_add_requires_name(self, store):
        with pytest.raises(ValueError):
            store.add("  ", "EVA", "BR", HOOK_A)

    def test_select_and_current(self, store):
        store.add("EVA Air", "EVA", "BR", HOOK_A)
        store.select("EVA Air")
        assert store.selected() == "EVA Air"
        assert store.current_icao() == "EVA"
        assert store.current_webhook() == HOOK_A

    def test_select_unknown(self, store):
        with pytest.raises(KeyError):
            store.select("Nope")

    def test_edit_rename_moves_selection(self, store):
        store.add("EVA Air", "EVA", "BR", HOOK_A)
        store.select("EVA Air")
        store.edit("EVA Air", new_name="EVA", webhook=HOOK_B)

        assert "EVA Air" not in store.list()
        assert store.selected() == "EVA"
        assert store.current_webhook() == HOOK_B

    def test_edit_unknown(self, store):
        with pytest.raises(KeyError):
            store.edit("Nope", icao="X")

    def test_cannot_remove_last(self, store):
        store.add("EVA Air", "EVA", "BR", HOOK_A)
        store.remove("EVA Air")
        assert list(store.list()) == ["Default"]
        with pytest.raises(ValueError):
            store.remove("Default")

    def test_removing_selected_falls_back_to_first(self, store):
        store.add("EVA Air", "EVA", "BR", HOOK_A)
        store.add("China Airlines", "CAL", "CI", HOOK_B)
        store.select("China Airlines")
        store.remove("China Airlines")

        assert store.selected() is None
        assert store.current_icao() in ("GFS", "EVA")

    def test_webhook_for(self, store):
        store.add("EVA Air", "EVA", "BR", HOOK_A)
        assert store.webhook_for("EVA Air") == HOOK_A
        assert store.webhook_for("Default") is None
        with pytest.raises(KeyError):
            store.webhook_for("Nope")
