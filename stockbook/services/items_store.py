"""Items store: CRUD, transfers, aggregates and CSV import/export."""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from .base_store import BaseStore
from ..models.import_result import ImportResult
from ..models.item import (
    Item,
    apply_item_changes,
    build_item,
    clean_text,
    normalize_changes,
    parse_quantity,
)
from ..storage.backend import ITEMS_KEY, KeyValueStorage
from ..utils.csv_codec import to_csv
from ..utils.exceptions import (
    DuplicateNameError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from ..utils.logger import get_import_logger

LOCATIONS = ("warehouse", "shop")
IMPORT_MODES = ("merge", "replace")
STOCK_FILTERS = ("low", "normal", "zero")
SORT_FIELDS = (
    "name", "category", "unit", "cost_price", "sell_price",
    "warehouse_qty", "shop_qty", "created_at", "updated_at",
)

CSV_HEADERS = [
    "itemId", "name", "category", "unit",
    "costPrice", "sellPrice", "warehouseQty",
    "shopQty", "notes",
]
REQUIRED_IMPORT_COLUMNS = ["name", "costPrice", "sellPrice"]
MERGE_COLUMNS = ["category", "unit", "costPrice", "sellPrice", "warehouseQty", "shopQty", "notes"]


def is_low_stock(quantity: int, threshold: int) -> bool:
    """A location is low on stock when it holds some, but no more than ``threshold``."""
    return 0 < quantity <= threshold


def location_attribute(location: str) -> str:
    if location not in LOCATIONS:
        raise ValidationError(
            f"Location must be one of: {', '.join(LOCATIONS)}",
            {"location": location}
        )
    return f"{location}_qty"


class ItemsStore(BaseStore):
    """In-memory list of items, persisted whole under ``inv_items``."""

    storage_key = ITEMS_KEY

    def __init__(self, storage: KeyValueStorage, strict_writes: bool = False):
        super().__init__(storage, strict_writes)
        self.import_logger = get_import_logger()
        self.items: List[Item] = []
        self.load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Load items from storage, initializing an empty collection if absent."""
        records = self.storage.read_json(self.storage_key)

        if records is None:
            self.items = []
            if self.storage.get(self.storage_key) is None:
                self.save()
            return

        if not isinstance(records, list):
            self.error_logger.error(f"Stored '{self.storage_key}' is not a list; starting empty")
            self.items = []
            return

        items = []
        for record in records:
            try:
                items.append(Item.from_dict(record))
            except (KeyError, TypeError, AttributeError, ValidationError) as e:
                self.error_logger.error(f"Skipping unreadable item record {record!r}: {str(e)}")
        self.items = items
        self.logger.debug(f"Loaded {len(items)} items")

    def serialize(self) -> List[Dict[str, Any]]:
        return [item.to_dict() for item in self.items]

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_all(self) -> List[Item]:
        return list(self.items)

    def get_by_id(self, item_id: str) -> Optional[Item]:
        return next((item for item in self.items if item.item_id == item_id), None)

    def get_by_name(self, name: str) -> Optional[Item]:
        """Find an item by case-insensitive name."""
        key = clean_text(name).lower()
        return next((item for item in self.items if item.name_key == key), None)

    def _index_of(self, item_id: str) -> int:
        for index, item in enumerate(self.items):
            if item.item_id == item_id:
                return index
        raise NotFoundError("Item not found", {"item_id": item_id})

    def _check_unique(self, name: str, exclude_id: Optional[str] = None) -> None:
        existing = self.get_by_name(name)
        if existing is not None and existing.item_id != exclude_id:
            raise DuplicateNameError(
                "Item with this name already exists",
                {"name": name, "existing_item_id": existing.item_id}
            )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _insert(self, draft: Mapping[str, Any]) -> Item:
        item = build_item(draft)
        self._check_unique(item.name)
        self.items.append(item)
        return item

    def _replace(self, item_id: str, changes: Mapping[str, Any]) -> Item:
        index = self._index_of(item_id)
        normalized = normalize_changes(changes)
        if "name" in normalized:
            self._check_unique(normalized["name"], exclude_id=item_id)

        updated = apply_item_changes(self.items[index], normalized)
        self.items[index] = updated
        return updated

    def add(self, draft: Mapping[str, Any]) -> Item:
        """
        Create a new item.

        Args:
            draft: Field values keyed by camelCase or attribute names

        Returns:
            The persisted item

        Raises:
            ValidationError: If name, costPrice or sellPrice is missing or malformed
            DuplicateNameError: If the name collides case-insensitively
        """
        item = self._insert(draft)
        self._commit()
        self.logger.info(f"Created item {item.name} ({item.item_id})")
        return item

    def update(self, item_id: str, changes: Mapping[str, Any]) -> Item:
        """
        Apply a partial update; fields absent from ``changes`` are untouched.

        Raises:
            NotFoundError: If ``item_id`` is unknown
            DuplicateNameError: If a rename collides with another item
            ValidationError: If a present field is malformed
        """
        item = self._replace(item_id, changes)
        self._commit()
        self.logger.info(f"Updated item {item.name} ({item.item_id})")
        return item

    def delete(self, item_id: str) -> Item:
        """Remove and return an item. Logs referring to it are left alone."""
        index = self._index_of(item_id)
        removed = self.items.pop(index)
        self._commit()
        self.logger.info(f"Deleted item {removed.name} ({removed.item_id})")
        return removed

    def transfer_stock(self, item_id: str, quantity: int) -> Item:
        """
        Move ``quantity`` units from the warehouse to the shop.

        Raises:
            ValidationError: If ``quantity`` is not a positive integer
            NotFoundError: If ``item_id`` is unknown
            InsufficientStockError: If the warehouse holds fewer than ``quantity``
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("Transfer quantity must be a positive whole number", {"quantity": quantity})

        index = self._index_of(item_id)
        item = self.items[index]

        if item.warehouse_qty < quantity:
            raise InsufficientStockError(
                "Not enough stock in warehouse",
                {"item_id": item_id, "available": item.warehouse_qty, "requested": quantity}
            )

        updated = apply_item_changes(item, {
            "warehouse_qty": item.warehouse_qty - quantity,
            "shop_qty": item.shop_qty + quantity,
        })
        self.items[index] = updated
        self._commit()

        self.logger.info(
            f"Transferred {quantity} {updated.unit} of {updated.name}: "
            f"warehouse {item.warehouse_qty} → {updated.warehouse_qty}, "
            f"shop {item.shop_qty} → {updated.shop_qty}"
        )
        return updated

    def bulk_set_quantity(self, location: str, updates: Iterable[Mapping[str, Any]]) -> None:
        """
        Set (not add to) ``location`` quantities for several items.

        Each update is ``{"itemId": ..., "quantity": ...}``. Unknown ids are
        skipped silently. All quantities are validated before any is applied.
        """
        attribute = location_attribute(location)

        parsed = []
        for update in updates:
            item_id = update.get("itemId", update.get("item_id"))
            parsed.append((item_id, parse_quantity(update.get("quantity"), "quantity")))

        for item_id, quantity in parsed:
            item = self.get_by_id(item_id)
            if item is None:
                self.logger.debug(f"Bulk {location} update: skipping unknown item {item_id}")
                continue
            self.items[self._index_of(item_id)] = apply_item_changes(item, {attribute: quantity})

        self._commit()
        self.logger.info(f"Bulk update of {location} quantities for {len(parsed)} items")

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def count(self) -> int:
        return len(self.items)

    def warehouse_total(self) -> int:
        return sum(item.warehouse_qty for item in self.items)

    def shop_total(self) -> int:
        return sum(item.shop_qty for item in self.items)

    def warehouse_value(self) -> float:
        return sum(item.warehouse_qty * item.cost_price for item in self.items)

    def shop_value(self) -> float:
        return sum(item.shop_qty * item.cost_price for item in self.items)

    def potential_revenue(self) -> float:
        return sum(item.shop_qty * item.sell_price for item in self.items)

    def categories(self) -> List[str]:
        return sorted({item.category for item in self.items if item.category})

    # ------------------------------------------------------------------
    # Search and sort
    # ------------------------------------------------------------------

    def search(self, term: Optional[str] = None, category: Optional[str] = None) -> List[Item]:
        """Filter by a case-insensitive substring of name, category or notes, then by exact category."""
        items = self.get_all()

        needle = clean_text(term).lower()
        if needle:
            items = [
                item for item in items
                if needle in item.name.lower()
                or needle in item.category.lower()
                or needle in item.notes.lower()
            ]

        if category:
            items = [item for item in items if item.category == category]

        return items

    @staticmethod
    def filter_by_stock(items: Iterable[Item], location: str, stock_filter: Optional[str],
                        threshold: int) -> List[Item]:
        """Keep items whose ``location`` quantity is low, normal or zero."""
        attribute = location_attribute(location)
        items = list(items)

        if not stock_filter:
            return items
        if stock_filter == "low":
            return [item for item in items if is_low_stock(getattr(item, attribute), threshold)]
        if stock_filter == "normal":
            return [item for item in items if getattr(item, attribute) > threshold]
        if stock_filter == "zero":
            return [item for item in items if getattr(item, attribute) == 0]

        raise ValidationError(
            f"Stock filter must be one of: {', '.join(STOCK_FILTERS)}",
            {"stock_filter": stock_filter}
        )

    @staticmethod
    def sort_items(items: Iterable[Item], field: str = "name", descending: bool = False) -> List[Item]:
        """Sort items by one attribute; text compares case-insensitively."""
        if field not in SORT_FIELDS:
            raise ValidationError(f"Cannot sort by {field}", {"allowed": list(SORT_FIELDS)})

        def sort_key(item: Item):
            value = getattr(item, field)
            if isinstance(value, str):
                return value.lower()
            return value if value is not None else ""

        return sorted(items, key=sort_key, reverse=descending)

    def low_stock_items(self, location: str, threshold: int) -> List[Item]:
        return self.filter_by_stock(self.items, location, "low", threshold)

    # ------------------------------------------------------------------
    # CSV
    # ------------------------------------------------------------------

    def import_from_csv(self, rows: Iterable[Mapping[str, Any]], mode: str = "merge") -> ImportResult:
        """
        Import parsed CSV rows.

        ``replace`` discards every existing item first. A row naming an
        existing item updates it in ``merge`` mode; otherwise a new item is
        created. Rows that fail validation are recorded on the result and
        skipped; the import as a whole never aborts on a bad row.

        Args:
            rows: Row dicts keyed by CSV column name
            mode: "merge" or "replace"

        Returns:
            ImportResult with the imported items and per-row errors
        """
        if mode not in IMPORT_MODES:
            raise ValidationError(
                f"Import mode must be one of: {', '.join(IMPORT_MODES)}",
                {"mode": mode}
            )

        rows = list(rows)
        result = ImportResult(mode=mode, total_rows=len(rows))
        self.import_logger.info(f"Importing {len(rows)} rows ({mode})")

        if mode == "replace":
            self.items = []

        for row_number, row in enumerate(rows, 1):
            name = clean_text(row.get("name"))
            try:
                existing = self.get_by_name(name) if name else None

                if existing is not None and mode == "merge":
                    changes = {column: row.get(column) for column in MERGE_COLUMNS}
                    result.imported.append(self._replace(existing.item_id, changes))
                elif existing is None:
                    result.imported.append(self._insert(row))
                else:
                    result.skipped_count += 1
                    self.import_logger.warning(f"Row {row_number}: duplicate name '{name}' in replace import, skipped")

            except (ValidationError, DuplicateNameError) as e:
                self.import_logger.warning(f"Row {row_number} ({name or '?'}) skipped: {e.message}")
                result.add_error(row_number, name, type(e).__name__, e.message, e.details)

        self._commit()
        result.finalize()

        self.import_logger.info(
            f"Import finished: {result.imported_count} imported, "
            f"{result.failed_count} failed, {result.skipped_count} skipped"
        )
        return result

    def export_to_csv(self) -> str:
        """Header plus one row per item, in store order."""
        rows = [
            [
                item.item_id,
                item.name,
                item.category,
                item.unit,
                item.cost_price,
                item.sell_price,
                item.warehouse_qty,
                item.shop_qty,
                item.notes,
            ]
            for item in self.items
        ]
        return to_csv(CSV_HEADERS, rows)
