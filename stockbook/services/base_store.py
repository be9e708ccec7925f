"""Base class for stores that persist one collection under one storage key."""

from typing import Any

from ..storage.backend import KeyValueStorage
from ..utils.exceptions import PersistenceError
from ..utils.logger import get_store_logger, get_error_logger


class BaseStore:
    """Owns one in-memory collection and writes it back whole on every change."""

    storage_key: str = ""

    def __init__(self, storage: KeyValueStorage, strict_writes: bool = False):
        """
        Initialize base store.

        Args:
            storage: Key-value backend holding the serialized collection
            strict_writes: Raise PersistenceError when a write fails instead
                of continuing with in-memory state only
        """
        self.storage = storage
        self.strict_writes = strict_writes
        self.logger = get_store_logger()
        self.error_logger = get_error_logger()

    def load(self) -> None:
        raise NotImplementedError

    def serialize(self) -> Any:
        raise NotImplementedError

    def save(self) -> bool:
        """Write the whole collection. Returns False if storage rejected it."""
        try:
            self.storage.write_json(self.storage_key, self.serialize())
            return True
        except PersistenceError as e:
            self.error_logger.error(f"Error saving '{self.storage_key}': {e.message}", extra={"details": e.details})
            return False

    def _commit(self) -> None:
        """
        Persist after a mutation.

        In strict mode a failed write reloads the last persisted state and
        raises, so the mutation does not survive in memory either.
        """
        if self.save():
            return

        if self.strict_writes:
            self.load()
            raise PersistenceError(
                f"Could not persist '{self.storage_key}'; change rolled back",
                {"key": self.storage_key}
            )

        self.logger.warning(f"'{self.storage_key}' kept in memory only; storage write failed")
