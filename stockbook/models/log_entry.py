"""Activity log data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any

from .item import generate_id, utc_now_iso


class LogType(str, Enum):
    """Kinds of activity recorded in the log."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    TRANSFER = "transfer"
    IMPORT = "import"
    OTHER = "other"


@dataclass(frozen=True)
class LogEntry:
    """An append-only activity record.

    ``item_name`` is a snapshot taken when the entry was written; later
    renames or deletions of the item do not touch it.
    """

    type: LogType
    item_id: Optional[str] = None
    item_name: Optional[str] = None
    qty: Optional[int] = None
    details: Optional[str] = None
    id: str = field(default_factory=generate_id)
    time_iso: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted representation."""
        return {
            "id": self.id,
            "timeISO": self.time_iso,
            "type": self.type.value,
            "itemId": self.item_id,
            "itemName": self.item_name,
            "qty": self.qty,
            "details": self.details,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogEntry":
        """Create instance from a persisted dictionary."""
        return cls(
            id=str(data["id"]),
            time_iso=data["timeISO"],
            type=LogType(data["type"]),
            item_id=data.get("itemId"),
            item_name=data.get("itemName"),
            qty=data.get("qty"),
            details=data.get("details"),
        )
