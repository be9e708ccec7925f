"""Application service tying the stores together.

Every operator action goes through here: the store call, then the matching
activity-log entry. Failed store calls raise before anything is logged.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .items_store import ItemsStore, REQUIRED_IMPORT_COLUMNS, is_low_stock, location_attribute
from .logs_store import LogsStore
from .settings_store import SettingsStore
from ..models.import_result import ImportResult
from ..models.item import Item, parse_quantity
from ..models.log_entry import LogEntry, LogType
from ..models.settings import AppSettings
from ..storage.backend import JsonFileStorage, KeyValueStorage
from ..utils.config import AppConfig, get_config
from ..utils.csv_codec import parse_csv
from ..utils.debounce import Debouncer
from ..utils.exceptions import DataImportError, ValidationError
from ..utils.logger import get_store_logger, get_import_logger, get_error_logger
from ..utils.pagination import Page, paginate


@dataclass
class DashboardSummary:
    """Figures shown on the dashboard."""

    total_items: int
    warehouse_total: int
    shop_total: int
    warehouse_value: float
    shop_value: float
    potential_revenue: float
    low_stock_warehouse: int
    low_stock_shop: int
    recent_activity: List[LogEntry] = field(default_factory=list)


class InventoryService:
    """
    Application context owning one items, logs and settings store.

    Stores are constructed here and passed around explicitly; there is no
    module-level instance.
    """

    def __init__(self, storage: Optional[KeyValueStorage] = None, config: Optional[AppConfig] = None):
        self.config = config or get_config()
        self.logger = get_store_logger()
        self.import_logger = get_import_logger()
        self.error_logger = get_error_logger()

        self.storage = storage or JsonFileStorage(Path(self.config.storage.data_file))
        strict = self.config.storage.strict_writes
        defaults = self.config.defaults

        self.items = ItemsStore(self.storage, strict_writes=strict)
        self.logs = LogsStore(self.storage, strict_writes=strict)
        self.settings = SettingsStore(
            self.storage,
            defaults=AppSettings(
                currency_symbol=defaults.currency_symbol,
                low_stock_threshold=defaults.low_stock_threshold,
                language=defaults.language,
            ),
            default_theme=defaults.theme,
            strict_writes=strict,
        )
        self.debouncer = Debouncer(self.config.ui.search_debounce_ms / 1000.0)

    def reload(self) -> None:
        """Re-read every store from storage (after restore or clear)."""
        self.items.load()
        self.logs.load()
        self.settings.load()

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def create_item(self, draft: Mapping[str, Any]) -> Item:
        item = self.items.add(draft)
        self.logs.append(LogType.CREATE, item.item_id, item.name)
        return item

    def update_item(self, item_id: str, changes: Mapping[str, Any]) -> Item:
        item = self.items.update(item_id, changes)
        self.logs.append(LogType.UPDATE, item.item_id, item.name)
        return item

    def delete_item(self, item_id: str) -> Item:
        item = self.items.delete(item_id)
        self.logs.append(LogType.DELETE, None, item.name)
        return item

    def set_location_quantity(self, item_id: str, location: str, quantity: Any) -> Item:
        """Set one location's quantity directly (warehouse or shop view edit)."""
        attribute = location_attribute(location)
        if quantity is None or (isinstance(quantity, str) and not quantity.strip()):
            raise ValidationError("Invalid quantity", {"quantity": quantity})
        qty = parse_quantity(quantity, "quantity")

        item = self.items.update(item_id, {attribute: qty})
        self.logs.append(
            LogType.UPDATE, item.item_id, item.name, None,
            f"{location.capitalize()} quantity updated to {qty}"
        )
        return item

    def remove_from_shop(self, item_id: str) -> Item:
        item = self.items.update(item_id, {"shop_qty": 0})
        self.logs.append(LogType.UPDATE, item.item_id, item.name, None, "Item removed from shop")
        return item

    def bulk_set_quantity(self, location: str, updates: Iterable[Mapping[str, Any]]) -> None:
        updates = list(updates)
        self.items.bulk_set_quantity(location, updates)
        self.logs.append(
            LogType.UPDATE, None, None, None,
            f"Bulk update of {location} quantities for {len(updates)} items"
        )

    def transfer(self, item_id: str, quantity: int, note: Optional[str] = None) -> Item:
        """Move stock from the warehouse to the shop and log the transfer."""
        item = self.items.transfer_stock(item_id, quantity)
        note = (note or "").strip()
        self.logs.append(
            LogType.TRANSFER,
            item.item_id,
            item.name,
            quantity,
            note or f"Transferred {quantity} {item.unit} from warehouse to shop"
        )
        return item

    # ------------------------------------------------------------------
    # CSV
    # ------------------------------------------------------------------

    def import_items_csv(self, text: str, mode: str = "merge") -> ImportResult:
        """
        Parse CSV text and import it into the items store.

        Raises:
            ValidationError: If the CSV is empty or lacks a required column
        """
        try:
            headers, rows = parse_csv(text)
        except ValueError as e:
            raise ValidationError("Invalid CSV format", {"error": str(e)})

        missing = [column for column in REQUIRED_IMPORT_COLUMNS if column not in headers]
        if missing:
            raise ValidationError(
                f"Missing required columns: {', '.join(missing)}",
                {"missing": missing}
            )

        result = self.items.import_from_csv(rows, mode)
        self.logs.append(
            LogType.IMPORT, None, None, None,
            f"Imported {result.imported_count} items using {mode} method"
        )

        if result.errors:
            for error in result.errors:
                self.error_logger.error(
                    f"Import error row {error.row_number} ({error.name}): {error.message}",
                    extra={"details": error.details}
                )
        return result

    def export_items_csv(self) -> str:
        return self.items.export_to_csv()

    def export_logs_csv(self) -> str:
        return self.logs.export_to_csv()

    # ------------------------------------------------------------------
    # Backup / restore / clear
    # ------------------------------------------------------------------

    def backup(self) -> str:
        """Serialize the whole dataset as a JSON backup bundle."""
        return json.dumps(self.settings.export_snapshot(), ensure_ascii=False, indent=2)

    def restore(self, text: str) -> None:
        """
        Overlay a JSON backup bundle onto storage and reload every store.

        Raises:
            DataImportError: If the text is not a valid bundle or cannot be written
        """
        try:
            bundle = json.loads(text)
        except ValueError as e:
            self.error_logger.error(f"Error parsing backup file: {str(e)}")
            raise DataImportError("Invalid backup file", {"error": str(e)})

        try:
            self.settings.import_snapshot(bundle)
        finally:
            self.reload()
        self.import_logger.info(
            f"Backup restored: {self.items.count()} items, {len(self.logs.entries)} log entries"
        )

    def clear_all_data(self) -> None:
        self.settings.clear_all()
        self.reload()

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def dashboard(self) -> DashboardSummary:
        threshold = self.settings.low_stock_threshold
        return DashboardSummary(
            total_items=self.items.count(),
            warehouse_total=self.items.warehouse_total(),
            shop_total=self.items.shop_total(),
            warehouse_value=self.items.warehouse_value(),
            shop_value=self.items.shop_value(),
            potential_revenue=self.items.potential_revenue(),
            low_stock_warehouse=len(self.items.low_stock_items("warehouse", threshold)),
            low_stock_shop=len(self.items.low_stock_items("shop", threshold)),
            recent_activity=self.logs.recent(self.config.ui.recent_activity_count),
        )

    def list_items(self, search: Optional[str] = None, category: Optional[str] = None,
                   sort: str = "name", descending: bool = False, page: int = 1) -> Page:
        items = self.items.search(search, category)
        items = self.items.sort_items(items, sort, descending)
        return paginate(items, page, self.config.ui.items_per_page)

    def list_location(self, location: str, search: Optional[str] = None,
                      category: Optional[str] = None, stock_filter: Optional[str] = None,
                      sort: str = "name", descending: bool = False, page: int = 1) -> Page:
        """Items listing for the warehouse or shop view, with a low/normal/zero stock filter."""
        items = self.items.search(search, category)
        items = self.items.filter_by_stock(items, location, stock_filter, self.settings.low_stock_threshold)
        items = self.items.sort_items(items, sort, descending)
        return paginate(items, page, self.config.ui.items_per_page)

    def list_logs(self, search: Optional[str] = None, log_type: Optional[str] = None,
                  page: int = 1) -> Page:
        return paginate(self.logs.filter(search, log_type), page, self.config.ui.items_per_page)

    def is_low_stock(self, quantity: int) -> bool:
        return is_low_stock(quantity, self.settings.low_stock_threshold)

    def format_currency(self, amount: float) -> str:
        symbol = self.settings.currency_symbol or "Rs."
        return f"{symbol} {float(amount):.2f}"

    def debounce(self, key: str, func: Callable[..., Any], *args, **kwargs) -> None:
        """Run ``func`` once input for ``key`` has been quiet for the configured window."""
        self.debouncer.call(key, func, *args, **kwargs)

    def app_info(self) -> Dict[str, Any]:
        return {
            "data_file": str(getattr(self.storage, "path", "<memory>")),
            "data_version": self.settings.data_version(),
            "theme": self.settings.get_theme(),
        }
