"""Tests for the key-value storage backends."""

import json

import pytest

from stockbook.storage.backend import JsonFileStorage, MemoryStorage
from stockbook.utils.exceptions import PersistenceError


class TestMemoryStorage:
    """Tests for MemoryStorage."""

    def test_json_helpers(self):
        storage = MemoryStorage()

        storage.write_json("k", {"name": "Tea", "qty": 1})

        assert storage.read_json("k") == {"name": "Tea", "qty": 1}
        assert storage.read_json("missing", []) == []

    def test_undecodable_value_returns_default(self):
        storage = MemoryStorage({"k": "{oops"})

        assert storage.read_json("k", "fallback") == "fallback"

    def test_quota_exceeded(self):
        storage = MemoryStorage(quota_bytes=20)
        storage.set("a", "1234")

        with pytest.raises(PersistenceError, match="quota exceeded"):
            storage.set("b", "x" * 50)
        assert storage.get("b") is None
        assert storage.keys() == ["a"]

    def test_remove_missing_key(self):
        storage = MemoryStorage()

        storage.remove("nothing")

        assert storage.keys() == []


class TestJsonFileStorage:
    """Tests for JsonFileStorage."""

    def test_writes_whole_document(self, tmp_path):
        path = tmp_path / "nested" / "data.json"
        storage = JsonFileStorage(path)

        storage.set("inv_items", "[]")
        storage.set("theme", "dark")
        storage.remove("theme")

        assert json.loads(path.read_text(encoding="utf-8")) == {"inv_items": "[]"}
        assert list(tmp_path.joinpath("nested").iterdir()) == [path]

    def test_reopen(self, tmp_path):
        path = tmp_path / "data.json"
        JsonFileStorage(path).set("inv_settings", '{"currencySymbol": "Rs."}')

        assert JsonFileStorage(path).get("inv_settings") == '{"currencySymbol": "Rs."}'

    def test_unreadable_file(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("not json", encoding="utf-8")

        with pytest.raises(PersistenceError, match="Cannot read data file"):
            JsonFileStorage(path)

    def test_write_failure_keeps_previous_state(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        storage = JsonFileStorage(blocker / "data.json")

        with pytest.raises(PersistenceError, match="Cannot write data file"):
            storage.set("inv_items", "[]")
        assert storage.get("inv_items") is None
