"""Tests for data models."""

import pytest

from stockbook.models.import_result import ImportResult
from stockbook.models.item import (
    Item,
    apply_item_changes,
    build_item,
    normalize_changes,
    parse_price,
    parse_quantity,
)
from stockbook.models.log_entry import LogEntry, LogType
from stockbook.models.settings import AppSettings
from stockbook.utils.exceptions import ValidationError


class TestItem:
    """Tests for Item model and normalization."""

    def test_build_item(self, rice_draft):
        """Test building a valid Item from a draft."""
        item = build_item(rice_draft)

        assert item.name == "Rice 5kg"
        assert item.cost_price == 1000.0
        assert item.sell_price == 1200.0
        assert item.warehouse_qty == 50
        assert item.shop_qty == 0
        assert item.unit == "pcs"
        assert item.category == ""
        assert item.item_id
        assert item.created_at == item.updated_at

    def test_build_item_trims_and_parses(self):
        """Test that strings are trimmed and numbers parsed."""
        item = build_item({
            "name": "  Sugar  ",
            "category": " Baking ",
            "unit": "  ",
            "costPrice": " 12.5 ",
            "sellPrice": "15",
            "warehouseQty": "7.9",
            "notes": "  brown  ",
        })

        assert item.name == "Sugar"
        assert item.category == "Baking"
        assert item.unit == "pcs"
        assert item.cost_price == 12.5
        assert item.warehouse_qty == 7
        assert item.notes == "brown"

    def test_build_item_accepts_attribute_names(self):
        item = build_item({"name": "Tea", "cost_price": 1, "sell_price": 2, "shop_qty": 3})

        assert item.shop_qty == 3

    def test_build_item_missing_required(self):
        """Test that missing name or prices raise ValidationError."""
        with pytest.raises(ValidationError, match="Required fields missing: name, sellPrice"):
            build_item({"name": "  ", "costPrice": 10})

    def test_build_item_zero_price_is_present(self):
        item = build_item({"name": "Sample", "costPrice": 0, "sellPrice": "0"})

        assert item.cost_price == 0.0

    def test_build_item_rejects_negative_quantity(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            build_item({"name": "Tea", "costPrice": 1, "sellPrice": 2, "warehouseQty": -1})

    def test_parse_price_invalid(self):
        with pytest.raises(ValidationError, match="must be a number"):
            parse_price("abc", "costPrice")
        with pytest.raises(ValidationError, match="finite"):
            parse_price("nan", "costPrice")

    def test_parse_quantity(self):
        assert parse_quantity(None, "qty") == 0
        assert parse_quantity("", "qty") == 0
        assert parse_quantity(5, "qty") == 5
        assert parse_quantity(5.99, "qty") == 5
        assert parse_quantity(" 12 ", "qty") == 12
        with pytest.raises(ValidationError):
            parse_quantity("twelve", "qty")
        with pytest.raises(ValidationError):
            parse_quantity(True, "qty")

    def test_normalize_changes_skips_absent_values(self):
        """None and blank numeric values leave fields untouched."""
        changes = normalize_changes({
            "costPrice": "",
            "warehouseQty": None,
            "category": "",
            "unit": "",
            "itemId": "hijack",
            "createdAt": "2000-01-01",
        })

        assert changes == {"category": "", "unit": "pcs"}

    def test_normalize_changes_rejects_empty_name(self):
        with pytest.raises(ValidationError, match="name cannot be empty"):
            normalize_changes({"name": "   "})

    def test_apply_item_changes_restamps(self, rice_draft):
        item = build_item(rice_draft)
        item.updated_at = "2000-01-01T00:00:00.000Z"

        updated = apply_item_changes(item, {"shop_qty": 2})

        assert updated.shop_qty == 2
        assert updated.updated_at != "2000-01-01T00:00:00.000Z"
        assert updated.created_at == item.created_at
        assert item.shop_qty == 0

    def test_item_validation_negative_quantity(self):
        """Test that a negative quantity raises ValidationError."""
        with pytest.raises(ValidationError, match="Quantity cannot be negative"):
            Item(item_id="x", name="Tea", cost_price=1, sell_price=2, shop_qty=-1)

    def test_item_to_dict(self, rice_draft):
        """Test converting Item to its persisted dictionary."""
        data = build_item(rice_draft).to_dict()

        assert list(data) == [
            "itemId", "name", "category", "unit", "costPrice", "sellPrice",
            "warehouseQty", "shopQty", "notes", "createdAt", "updatedAt",
        ]
        assert data["warehouseQty"] == 50

    def test_item_from_dict(self):
        """Test creating Item from a persisted dictionary."""
        item = Item.from_dict({
            "itemId": "abc",
            "name": "Tea",
            "category": "Drinks",
            "unit": "box",
            "costPrice": 100,
            "sellPrice": 150,
            "warehouseQty": 3,
            "shopQty": 1,
            "notes": "",
            "createdAt": "2024-01-01T00:00:00.000Z",
            "updatedAt": "2024-01-02T00:00:00.000Z",
        })

        assert item.item_id == "abc"
        assert item.unit == "box"
        assert item.total_qty == 4
        assert item.updated_at == "2024-01-02T00:00:00.000Z"

    def test_quantity_at(self, rice_draft):
        item = build_item(rice_draft)

        assert item.quantity_at("warehouse") == 50
        assert item.quantity_at("shop") == 0
        with pytest.raises(ValidationError):
            item.quantity_at("basement")


class TestLogEntry:
    """Tests for LogEntry model."""

    def test_defaults(self):
        entry = LogEntry(type=LogType.TRANSFER, item_id="a", item_name="Tea", qty=3)

        assert entry.id
        assert entry.time_iso.endswith("Z")
        assert entry.details is None

    def test_round_trip_dict(self):
        entry = LogEntry(type=LogType.IMPORT, details="Imported 2 items using merge method")

        restored = LogEntry.from_dict(entry.to_dict())

        assert restored == entry
        assert entry.to_dict()["type"] == "import"

    def test_entries_are_immutable(self):
        entry = LogEntry(type=LogType.OTHER)

        with pytest.raises(AttributeError):
            entry.details = "changed"


class TestAppSettings:
    """Tests for AppSettings model."""

    def test_defaults_use_camel_case_keys(self):
        assert AppSettings().to_dict() == {
            "currencySymbol": "Rs.",
            "lowStockThreshold": 5,
            "language": "si",
        }

    def test_extra_keys_kept(self):
        settings = AppSettings.model_validate({"currencySymbol": "$", "dateFormat": "iso"})

        assert settings.to_dict()["dateFormat"] == "iso"


class TestImportResult:
    """Tests for ImportResult model."""

    def test_create_import_result(self):
        """Test creating an ImportResult."""
        result = ImportResult(mode="replace", total_rows=10)

        assert result.success is True
        assert result.imported_count == 0
        assert result.failed_count == 0
        assert result.errors == []

    def test_add_error(self):
        """Test adding an error to ImportResult."""
        result = ImportResult(mode="merge")

        result.add_error(3, "Tea", "DuplicateNameError", "Item with this name already exists")

        assert result.failed_count == 1
        assert result.success is False
        assert result.errors[0].row_number == 3
        assert result.errors[0].error_type == "DuplicateNameError"

    def test_finalize(self, sample_import_result):
        """Test finalizing an ImportResult."""
        assert sample_import_result.end_time is not None
        assert sample_import_result.duration >= 0

    def test_success_rate(self, rice_draft):
        result = ImportResult(mode="merge", total_rows=4)
        result.imported.append(build_item(rice_draft))

        assert result.success_rate == 25.0

    def test_success_rate_no_rows(self):
        assert ImportResult(mode="merge").success_rate == 0.0

    def test_get_summary(self, sample_import_result):
        """Test getting summary string."""
        summary = sample_import_result.get_summary()

        assert "Total rows: 10" in summary
        assert "Imported: 0" in summary
        assert "Failed: 1" in summary
        assert "Skipped: 1" in summary
        assert "row 4 (Broken)" in summary

    def test_to_dict(self, sample_import_result):
        data = sample_import_result.to_dict()

        assert data["mode"] == "merge"
        assert data["failed_count"] == 1
        assert data["errors"][0]["name"] == "Broken"
