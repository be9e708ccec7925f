"""CSV import result data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional

from .item import Item


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RowError:
    """Represents a CSV row that could not be imported."""

    row_number: int
    name: str
    error_type: str
    message: str
    details: Optional[Dict[str, Any]] = None
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "row_number": self.row_number,
            "name": self.name,
            "error_type": self.error_type,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat()
        }


@dataclass
class ImportResult:
    """Represents the result of a CSV import."""

    mode: str
    total_rows: int = 0
    imported: List[Item] = field(default_factory=list)
    skipped_count: int = 0
    errors: List[RowError] = field(default_factory=list)
    duration: float = 0.0  # seconds
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    def __post_init__(self):
        """Initialize timestamps if not set."""
        if self.start_time is None:
            self.start_time = _utcnow()

    @property
    def imported_count(self) -> int:
        return len(self.imported)

    @property
    def failed_count(self) -> int:
        return len(self.errors)

    @property
    def success(self) -> bool:
        return not self.errors

    def add_error(self, row_number: int, name: str, error_type: str, message: str,
                  details: Optional[Dict[str, Any]] = None):
        """Record a row that failed validation."""
        self.errors.append(RowError(
            row_number=row_number,
            name=name,
            error_type=error_type,
            message=message,
            details=details
        ))

    def finalize(self):
        """Finalize the import result with end time and duration."""
        self.end_time = _utcnow()
        if self.start_time:
            self.duration = (self.end_time - self.start_time).total_seconds()

    @property
    def success_rate(self) -> float:
        """Calculate success rate percentage."""
        if self.total_rows == 0:
            return 0.0
        return (self.imported_count / self.total_rows) * 100

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "mode": self.mode,
            "success": self.success,
            "imported_count": self.imported_count,
            "failed_count": self.failed_count,
            "skipped_count": self.skipped_count,
            "total_rows": self.total_rows,
            "success_rate": round(self.success_rate, 2),
            "duration": round(self.duration, 2),
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "errors": [error.to_dict() for error in self.errors],
        }

    def get_summary(self) -> str:
        """Get a human-readable summary."""
        summary_lines = [
            f"Import ({self.mode}) completed in {self.duration:.2f}s",
            f"Total rows: {self.total_rows}",
            f"Imported: {self.imported_count}",
            f"Failed: {self.failed_count}",
            f"Skipped: {self.skipped_count}",
            f"Success rate: {self.success_rate:.2f}%"
        ]

        if self.errors:
            summary_lines.append(f"\nErrors ({len(self.errors)}):")
            for error in self.errors[:5]:  # Show first 5 errors
                summary_lines.append(f"  - row {error.row_number} ({error.name}): {error.message}")
            if len(self.errors) > 5:
                summary_lines.append(f"  ... and {len(self.errors) - 5} more errors")

        return "\n".join(summary_lines)
