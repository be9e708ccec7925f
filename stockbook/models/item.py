"""Item data model and field normalization."""

import math
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from ..utils.exceptions import ValidationError

DEFAULT_UNIT = "pcs"

# Persisted / CSV column name -> attribute name
FIELD_NAMES = {
    "itemId": "item_id",
    "name": "name",
    "category": "category",
    "unit": "unit",
    "costPrice": "cost_price",
    "sellPrice": "sell_price",
    "warehouseQty": "warehouse_qty",
    "shopQty": "shop_qty",
    "notes": "notes",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

EDITABLE_FIELDS = (
    "name", "category", "unit", "cost_price", "sell_price",
    "warehouse_qty", "shop_qty", "notes",
)
PRICE_FIELDS = ("cost_price", "sell_price")
QUANTITY_FIELDS = ("warehouse_qty", "shop_qty")
TEXT_FIELDS = ("category", "notes")


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def generate_id() -> str:
    return uuid.uuid4().hex


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def clean_text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def parse_price(value: Any, field_name: str) -> float:
    """Parse a price into a non-negative float."""
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number", {"value": value})
    try:
        price = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number", {"value": value})

    if math.isnan(price) or math.isinf(price):
        raise ValidationError(f"{field_name} must be a finite number", {"value": value})
    if price < 0:
        raise ValidationError(f"{field_name} cannot be negative", {"value": value})
    return price


def parse_quantity(value: Any, field_name: str) -> int:
    """
    Parse a quantity into a non-negative integer.

    Blank values count as zero and fractional values are truncated,
    so ``"12.7"`` becomes ``12``.
    """
    if is_blank(value):
        return 0
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a whole number", {"value": value})

    if isinstance(value, int):
        quantity = value
    else:
        try:
            number = float(str(value).strip()) if isinstance(value, str) else float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{field_name} must be a whole number", {"value": value})
        if math.isnan(number) or math.isinf(number):
            raise ValidationError(f"{field_name} must be a finite number", {"value": value})
        quantity = int(number)

    if quantity < 0:
        raise ValidationError(f"{field_name} cannot be negative", {"value": value})
    return quantity


def normalize_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Map camelCase keys onto attribute names; unknown keys are dropped."""
    attributes = set(FIELD_NAMES.values())
    normalized = {}
    for key, value in data.items():
        if key in FIELD_NAMES:
            normalized[FIELD_NAMES[key]] = value
        elif key in attributes:
            normalized[key] = value
    return normalized


@dataclass
class Item:
    """A stock-keeping unit held in the warehouse and/or the shop."""

    item_id: str
    name: str
    cost_price: float
    sell_price: float
    category: str = ""
    unit: str = DEFAULT_UNIT
    warehouse_qty: int = 0
    shop_qty: int = 0
    notes: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def __post_init__(self):
        """Validate and normalize data."""
        if not self.name or not self.name.strip():
            raise ValidationError("Item name cannot be empty")

        if self.warehouse_qty < 0 or self.shop_qty < 0:
            raise ValidationError("Quantity cannot be negative", {"item": self.name})

        if self.created_at is None:
            self.created_at = utc_now_iso()
        if self.updated_at is None:
            self.updated_at = self.created_at

    @property
    def name_key(self) -> str:
        """Case-insensitive key used for name uniqueness."""
        return self.name.strip().lower()

    @property
    def total_qty(self) -> int:
        return self.warehouse_qty + self.shop_qty

    def quantity_at(self, location: str) -> int:
        if location == "warehouse":
            return self.warehouse_qty
        if location == "shop":
            return self.shop_qty
        raise ValidationError(f"Unknown location: {location}", {"location": location})

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted (camelCase) representation."""
        return {
            "itemId": self.item_id,
            "name": self.name,
            "category": self.category,
            "unit": self.unit,
            "costPrice": self.cost_price,
            "sellPrice": self.sell_price,
            "warehouseQty": self.warehouse_qty,
            "shopQty": self.shop_qty,
            "notes": self.notes,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Item":
        """Create instance from a persisted dictionary."""
        return cls(
            item_id=str(data["itemId"]),
            name=clean_text(data["name"]),
            category=clean_text(data.get("category")),
            unit=clean_text(data.get("unit")) or DEFAULT_UNIT,
            # Older saves may hold null prices; read them as zero
            cost_price=parse_price(data.get("costPrice") or 0, "costPrice"),
            sell_price=parse_price(data.get("sellPrice") or 0, "sellPrice"),
            warehouse_qty=parse_quantity(data.get("warehouseQty"), "warehouseQty"),
            shop_qty=parse_quantity(data.get("shopQty"), "shopQty"),
            notes=clean_text(data.get("notes")),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )


def build_item(draft: Mapping[str, Any]) -> Item:
    """
    Validate and normalize a draft into a new Item.

    Args:
        draft: Field values keyed by camelCase or attribute names

    Returns:
        A new Item with a fresh id and timestamps

    Raises:
        ValidationError: If name, costPrice or sellPrice is missing or malformed
    """
    fields = normalize_keys(draft)

    missing = [
        column for column, attribute in (
            ("name", "name"), ("costPrice", "cost_price"), ("sellPrice", "sell_price")
        )
        if is_blank(fields.get(attribute))
    ]
    if missing:
        raise ValidationError(
            f"Required fields missing: {', '.join(missing)}",
            {"missing": missing}
        )

    now = utc_now_iso()
    return Item(
        item_id=generate_id(),
        name=clean_text(fields["name"]),
        category=clean_text(fields.get("category")),
        unit=clean_text(fields.get("unit")) or DEFAULT_UNIT,
        cost_price=parse_price(fields["cost_price"], "costPrice"),
        sell_price=parse_price(fields["sell_price"], "sellPrice"),
        warehouse_qty=parse_quantity(fields.get("warehouse_qty"), "warehouseQty"),
        shop_qty=parse_quantity(fields.get("shop_qty"), "shopQty"),
        notes=clean_text(fields.get("notes")),
        created_at=now,
        updated_at=now,
    )


def normalize_changes(changes: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Normalize a partial update.

    ``None`` means "leave untouched", as does a blank string for a numeric
    field. Identifier and timestamp keys are ignored.
    """
    fields = normalize_keys(changes)
    normalized: Dict[str, Any] = {}

    for attribute in EDITABLE_FIELDS:
        if attribute not in fields or fields[attribute] is None:
            continue
        value = fields[attribute]

        if attribute == "name":
            name = clean_text(value)
            if not name:
                raise ValidationError("Item name cannot be empty")
            normalized["name"] = name
        elif attribute == "unit":
            normalized["unit"] = clean_text(value) or DEFAULT_UNIT
        elif attribute in PRICE_FIELDS:
            if not is_blank(value):
                normalized[attribute] = parse_price(value, attribute)
        elif attribute in QUANTITY_FIELDS:
            if not is_blank(value):
                normalized[attribute] = parse_quantity(value, attribute)
        else:
            normalized[attribute] = clean_text(value)

    return normalized


def apply_item_changes(item: Item, changes: Mapping[str, Any]) -> Item:
    """Return a copy of ``item`` with normalized ``changes`` applied and restamped."""
    return replace(item, **changes, updated_at=utc_now_iso())
