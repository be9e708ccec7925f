"""Tests for the settings store, theme and backup bundle handling."""

import json

import pytest

from stockbook.models.settings import AppSettings
from stockbook.services.settings_store import DATA_VERSION, SettingsStore
from stockbook.storage.backend import (
    ITEMS_KEY,
    LOGS_KEY,
    SETTINGS_KEY,
    THEME_KEY,
    VERSION_KEY,
    MemoryStorage,
)
from stockbook.utils.exceptions import DataImportError, ValidationError


class TestSettings:
    """Tests for reading and writing settings."""

    def test_defaults_written_on_first_load(self, settings_store, storage):
        assert settings_store.get("currencySymbol") == "Rs."
        assert settings_store.get("low_stock_threshold") == 5
        assert json.loads(storage.get(SETTINGS_KEY))["language"] == "si"
        assert storage.get(VERSION_KEY) == DATA_VERSION

    def test_saved_values_merge_over_defaults(self):
        storage = MemoryStorage({SETTINGS_KEY: json.dumps({"currencySymbol": "$"})})

        store = SettingsStore(storage, defaults=AppSettings(low_stock_threshold=8))

        assert store.get("currencySymbol") == "$"
        assert store.low_stock_threshold == 8

    def test_set_persists_immediately(self, settings_store, storage):
        value = settings_store.set("lowStockThreshold", "7")

        assert value == 7
        assert json.loads(storage.get(SETTINGS_KEY))["lowStockThreshold"] == 7

    def test_set_invalid_value(self, settings_store):
        with pytest.raises(ValidationError, match="Invalid setting value"):
            settings_store.set("lowStockThreshold", -1)
        assert settings_store.low_stock_threshold == 5

    def test_set_all_shallow_merge(self, settings_store):
        settings_store.set_all({"currencySymbol": "LKR", "language": "en"})

        assert settings_store.settings.to_dict() == {
            "currencySymbol": "LKR",
            "lowStockThreshold": 5,
            "language": "en",
        }

    def test_unknown_key(self, settings_store):
        assert settings_store.get("nope") is None


class TestTheme:
    """Tests for the theme preference."""

    def test_default_and_toggle(self, settings_store, storage):
        assert settings_store.get_theme() == "light"

        assert settings_store.toggle_theme() == "dark"
        assert storage.get(THEME_KEY) == "dark"
        assert settings_store.toggle_theme() == "light"

    def test_invalid_theme(self, settings_store):
        with pytest.raises(ValidationError):
            settings_store.set_theme("sepia")


class TestSnapshot:
    """Tests for export/import/clear of the whole dataset."""

    def test_export_snapshot(self, settings_store, storage):
        storage.set(ITEMS_KEY, "[]")
        settings_store.set_theme("dark")

        snapshot = settings_store.export_snapshot()

        assert set(snapshot) == {"items", "logs", "settings", "version", "theme"}
        assert snapshot["items"] == "[]"
        assert snapshot["logs"] is None
        assert snapshot["theme"] == "dark"
        assert snapshot["version"] == DATA_VERSION

    def test_import_snapshot_partial_overlay(self, settings_store, storage):
        storage.set(LOGS_KEY, '[{"keep": true}]')

        settings_store.import_snapshot({"items": '[{"x": 1}]', "theme": "dark", "logs": None})

        assert storage.get(ITEMS_KEY) == '[{"x": 1}]'
        assert storage.get(THEME_KEY) == "dark"
        assert storage.get(LOGS_KEY) == '[{"keep": true}]'

    def test_import_snapshot_not_an_object(self, settings_store):
        with pytest.raises(DataImportError):
            settings_store.import_snapshot(["items"])

    def test_import_snapshot_write_failure(self):
        store = SettingsStore(MemoryStorage(quota_bytes=300))

        with pytest.raises(DataImportError, match="Error importing data"):
            store.import_snapshot({"items": "[" + "1," * 400 + "1]"})

    def test_import_snapshot_rolls_back_written_keys(self):
        storage = MemoryStorage({LOGS_KEY: "[]"}, quota_bytes=400)
        store = SettingsStore(storage)

        with pytest.raises(DataImportError):
            store.import_snapshot({"items": "[]", "logs": "x" * 1000, "theme": "dark"})

        assert storage.get(ITEMS_KEY) is None
        assert storage.get(LOGS_KEY) == "[]"
        assert storage.get(THEME_KEY) is None

    def test_clear_all_keeps_theme_and_version(self, settings_store, storage):
        storage.set(ITEMS_KEY, "[]")
        storage.set(LOGS_KEY, "[]")
        settings_store.set_theme("dark")

        settings_store.clear_all()

        assert storage.get(ITEMS_KEY) is None
        assert storage.get(LOGS_KEY) is None
        assert storage.get(SETTINGS_KEY) is None
        assert storage.get(THEME_KEY) == "dark"
        assert storage.get(VERSION_KEY) == DATA_VERSION
