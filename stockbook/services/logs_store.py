"""Append-only activity log."""

from typing import Any, Dict, List, Optional, Union

from .base_store import BaseStore
from ..models.log_entry import LogEntry, LogType
from ..storage.backend import LOGS_KEY, KeyValueStorage
from ..utils.csv_codec import to_csv
from ..utils.exceptions import ValidationError

CSV_HEADERS = ["time", "type", "itemId", "itemName", "qty", "details"]


def _log_type(value: Union[str, LogType]) -> LogType:
    try:
        return LogType(value)
    except ValueError:
        raise ValidationError(
            f"Unknown log type: {value}",
            {"allowed": [t.value for t in LogType]}
        )


class LogsStore(BaseStore):
    """Activity records kept in insertion order, persisted under ``inv_logs``."""

    storage_key = LOGS_KEY

    def __init__(self, storage: KeyValueStorage, strict_writes: bool = False):
        super().__init__(storage, strict_writes)
        self.entries: List[LogEntry] = []
        self.load()

    def load(self) -> None:
        records = self.storage.read_json(self.storage_key)

        if records is None:
            self.entries = []
            if self.storage.get(self.storage_key) is None:
                self.save()
            return

        if not isinstance(records, list):
            self.error_logger.error(f"Stored '{self.storage_key}' is not a list; starting empty")
            self.entries = []
            return

        entries = []
        for record in records:
            try:
                entries.append(LogEntry.from_dict(record))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                self.error_logger.error(f"Skipping unreadable log record {record!r}: {str(e)}")
        self.entries = entries

    def serialize(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self.entries]

    def append(
        self,
        log_type: Union[str, LogType],
        item_id: Optional[str] = None,
        item_name: Optional[str] = None,
        qty: Optional[int] = None,
        details: Optional[str] = None,
    ) -> LogEntry:
        """Record an activity. Only the type is validated."""
        entry = LogEntry(
            type=_log_type(log_type),
            item_id=item_id,
            item_name=item_name,
            qty=qty,
            details=details,
        )
        self.entries.append(entry)
        self._commit()
        self.logger.debug(f"Logged {entry.type.value}: {item_name or '-'} {details or ''}".rstrip())
        return entry

    def list(self) -> List[LogEntry]:
        """All entries, newest first. Entries with equal timestamps keep insertion order."""
        return sorted(self.entries, key=lambda entry: entry.time_iso, reverse=True)

    def recent(self, count: int = 10) -> List[LogEntry]:
        return self.list()[:count]

    def recent_by_type(self, log_type: Union[str, LogType], count: int = 10) -> List[LogEntry]:
        wanted = _log_type(log_type)
        return [entry for entry in self.list() if entry.type == wanted][:count]

    def filter(self, search: Optional[str] = None,
               log_type: Optional[Union[str, LogType]] = None) -> List[LogEntry]:
        """Newest-first entries matching a substring of item name or details, and a type."""
        entries = self.list()

        needle = (search or "").strip().lower()
        if needle:
            entries = [
                entry for entry in entries
                if (entry.item_name and needle in entry.item_name.lower())
                or (entry.details and needle in entry.details.lower())
            ]

        if log_type:
            wanted = _log_type(log_type)
            entries = [entry for entry in entries if entry.type == wanted]

        return entries

    def export_to_csv(self) -> str:
        """Header plus one row per entry in insertion order (not display order).

        A zero or missing quantity is written as an empty cell.
        """
        rows = [
            [entry.time_iso, entry.type.value, entry.item_id, entry.item_name, entry.qty or None, entry.details]
            for entry in self.entries
        ]
        return to_csv(CSV_HEADERS, rows)
