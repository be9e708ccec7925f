"""Pytest configuration and fixtures."""

import pytest

from stockbook.models.import_result import ImportResult
from stockbook.services.inventory_service import InventoryService
from stockbook.services.items_store import ItemsStore
from stockbook.services.logs_store import LogsStore
from stockbook.services.settings_store import SettingsStore
from stockbook.storage.backend import MemoryStorage
from stockbook.utils.config import AppConfig


@pytest.fixture
def storage():
    """Empty in-memory key-value storage."""
    return MemoryStorage()


@pytest.fixture
def items_store(storage):
    return ItemsStore(storage)


@pytest.fixture
def logs_store(storage):
    return LogsStore(storage)


@pytest.fixture
def settings_store(storage):
    return SettingsStore(storage)


@pytest.fixture
def app_config():
    """Configuration built from the repository defaults."""
    return AppConfig()


@pytest.fixture
def service(storage, app_config):
    """InventoryService backed by in-memory storage."""
    return InventoryService(storage=storage, config=app_config)


@pytest.fixture
def rice_draft():
    """Draft for the 'Rice 5kg' scenario item."""
    return {
        "name": "Rice 5kg",
        "costPrice": 1000,
        "sellPrice": 1200,
        "warehouseQty": 50,
    }


@pytest.fixture
def sample_item_drafts():
    """Several item drafts across two categories."""
    return [
        {"name": "Rice 5kg", "category": "Grains", "costPrice": 1000, "sellPrice": 1200,
         "warehouseQty": 50, "shopQty": 4},
        {"name": "Dhal 1kg", "category": "Grains", "costPrice": "350.50", "sellPrice": "420",
         "warehouseQty": "0", "shopQty": "12"},
        {"name": "Soap", "category": "Household", "unit": "bar", "costPrice": 90, "sellPrice": 120,
         "warehouseQty": 3, "shopQty": 0, "notes": "Lavender, large"},
    ]


@pytest.fixture
def populated_store(items_store, sample_item_drafts):
    """Items store holding the sample items."""
    for draft in sample_item_drafts:
        items_store.add(draft)
    return items_store


@pytest.fixture
def sample_import_result():
    """Create a sample ImportResult for testing."""
    result = ImportResult(mode="merge", total_rows=10)
    result.skipped_count = 1
    result.add_error(4, "Broken", "ValidationError", "Required fields missing: costPrice")
    result.finalize()
    return result
