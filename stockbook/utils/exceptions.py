"""Custom exception classes for the application."""


class BaseAppException(Exception):
    """Base exception class for all application exceptions."""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(BaseAppException):
    """Raised when a required field is missing or malformed."""
    pass


class DuplicateNameError(BaseAppException):
    """Raised when an item name collides case-insensitively with another item."""
    pass


class NotFoundError(BaseAppException):
    """Raised when an operation references an unknown identifier."""
    pass


class InsufficientStockError(BaseAppException):
    """Raised when a transfer exceeds the available warehouse quantity."""
    pass


class DataImportError(BaseAppException):
    """Raised when a backup bundle cannot be parsed or written back."""
    pass


class PersistenceError(BaseAppException):
    """Raised when the underlying storage write fails (e.g. quota exceeded)."""
    pass


class ConfigurationError(BaseAppException):
    """Raised when there's a configuration error."""
    pass
