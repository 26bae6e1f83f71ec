"""
Unit tests for LocatorStore.

Tests loading, saving, lookup and deduplication of locator definitions.
"""

import pytest
import json
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "app"))

from pagecraft.knowledge.locator_store import LocatorStore, LocatorDef


def write_json(path: Path, data) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestLoad:
    """Test reading the accepted file shapes."""

    def test_missing_file_gives_empty_store(self, tmp_path):
        """Test that a missing file is not an error."""
        store = LocatorStore()

        assert store.load(tmp_path / "nope.json") == 0
        assert len(store) == 0

    def test_malformed_file_gives_empty_store(self, tmp_path):
        """Test that malformed JSON is logged, not raised."""
        path = tmp_path / "locators.json"
        path.write_text("{not json", encoding="utf-8")
        store = LocatorStore()

        assert store.load(path) == 0
        assert len(store) == 0

    def test_load_single_definitions(self, tmp_path):
        """Test the dictionary-of-definitions shape."""
        path = write_json(tmp_path / "locators.json", {
            "login": {"primary": "#login", "fallbacks": ["text=\"Log in\""]},
            "user": {"css": "[name=user]", "value": "alice"},
        })
        store = LocatorStore()

        assert store.load(path) == 2
        assert store.get("login").fallbacks == ['text="Log in"']
        assert store.get("user").primary == "[name=user]"
        assert store.get("user").value == "alice"

    def test_load_candidate_lists_takes_first(self, tmp_path):
        """Test that the legacy list shape uses the first candidate."""
        path = write_json(tmp_path / "locators.json", {
            "save": [{"css": "#save", "score": 0.9}, {"css": ".btn-save", "score": 0.95}],
        })
        store = LocatorStore()
        store.load(path)

        definition = store.get("save")
        assert definition.primary == "#save"
        assert definition.score == 0.9

    def test_load_locators_array(self, tmp_path):
        """Test the {"locators": [...]} shape."""
        path = write_json(tmp_path / "locators.json", {
            "locators": [{"id": "cart", "primary": ".cart", "fallbacks": [], "score": 1.0}],
        })
        store = LocatorStore()
        store.load(path)

        assert "cart" in store
        assert store.get("cart").fallbacks == []

    def test_entries_without_selector_are_skipped(self, tmp_path):
        """Test that unusable entries do not abort the load."""
        path = write_json(tmp_path / "locators.json", {
            "broken": {"value": "x"},
            "ok": {"primary": "#ok"},
        })
        store = LocatorStore()

        assert store.load(path) == 1
        assert store.ids() == ["ok"]


class TestSave:
    """Test writing the store."""

    def test_round_trip(self, tmp_path):
        """Test that save then load reproduces the mapping."""
        path = tmp_path / "data" / "locators.json"
        store = LocatorStore()
        store.register("login", "#login")
        store.register("user", "[name=user]", "alice")
        store.register("empty", "#empty", "")
        store.add_fallback("login", "button[type=submit]")

        assert store.save(path)

        reloaded = LocatorStore()
        reloaded.load(path)
        assert reloaded.ids() == ["login", "user", "empty"]
        assert reloaded.get("login") == LocatorDef("login", "#login", ["button[type=submit]"])
        assert reloaded.get("user") == LocatorDef("user", "[name=user]", value="alice")
        assert reloaded.get("empty").value == ""
        assert reloaded.get("user").fallbacks is None

    def test_absent_fields_are_not_invented(self, tmp_path):
        """Test that missing value/fallbacks stay missing on disk."""
        path = tmp_path / "locators.json"
        store = LocatorStore()
        store.register("login", "#login")
        store.save(path)

        data = json.loads(path.read_text(encoding="utf-8"))

        assert data == {"login": {"primary": "#login"}}

    def test_save_failure_keeps_memory(self, tmp_path):
        """Test that an I/O failure is reported and state survives."""
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        store = LocatorStore()
        store.register("login", "#login")

        assert store.save(blocker / "locators.json") is False
        assert "login" in store


class TestLookup:
    """Test lookups and dedup."""

    def test_get_missing_returns_none(self):
        """Test that an unknown id returns None."""
        assert LocatorStore().get("missing") is None

    def test_find_by_selector_and_value(self):
        """Test exact (selector, value) matching."""
        store = LocatorStore()
        store.register("a", "#save")
        store.register("b", "#name", "bob")

        assert store.find_by_selector_and_value("#save") == "a"
        assert store.find_by_selector_and_value("#name", "bob") == "b"
        assert store.find_by_selector_and_value("#name", "alice") is None
        assert store.find_by_selector_and_value("#save", "") is None

    def test_dedup_lookup_is_stable(self):
        """Test that repeated lookups return the same id."""
        store = LocatorStore()
        store.register("feature_click_1", "#save")

        first = store.find_by_selector_and_value("#save", None)
        second = store.find_by_selector_and_value("#save", None)

        assert first == second == "feature_click_1"
        assert len(store) == 1

    def test_playwright_selector_without_fallbacks(self):
        """Test that the primary selector is returned alone."""
        store = LocatorStore()
        store.register("login", "#login")

        assert store.get_playwright_selector("login", "#default") == "#login"

    def test_playwright_selector_with_fallbacks(self):
        """Test that fallbacks are joined into a selector list."""
        store = LocatorStore()
        store.register("login", "#login")
        store.add_fallback("login", ".login")
        store.add_fallback("login", "text=\"Log in\"")

        assert store.get_playwright_selector("login", "#default") == '#login, .login, text="Log in"'

    def test_playwright_selector_default_is_not_registered(self):
        """Test that an unknown id returns the default without storing it."""
        store = LocatorStore()

        assert store.get_playwright_selector("missing", "#default") == "#default"
        assert "missing" not in store

    def test_expected_value(self):
        """Test stored values, empty strings and defaults."""
        store = LocatorStore()
        store.register("user", "#user", "alice")
        store.register("blank", "#blank", "")
        store.register("none", "#none")

        assert store.get_expected_value("user", "x") == "alice"
        assert store.get_expected_value("blank", "x") == ""
        assert store.get_expected_value("none", "x") == "x"
        assert store.get_expected_value("missing", "x") == "x"


class TestMutation:
    """Test register and add_fallback."""

    def test_register_overwrites(self):
        """Test that register is an unconditional upsert."""
        store = LocatorStore()
        store.register("login", "#login", "a")
        store.add_fallback("login", ".login")

        store.register("login", "#signin")

        assert store.get("login") == LocatorDef("login", "#signin")

    def test_add_fallback_ignores_duplicates(self):
        """Test that the primary and repeats are not added as fallbacks."""
        store = LocatorStore()
        store.register("login", "#login")

        assert store.add_fallback("login", ".login")
        assert not store.add_fallback("login", ".login")
        assert not store.add_fallback("login", "#login")
        assert not store.add_fallback("missing", ".x")
        assert store.get("login").fallbacks == [".login"]
