"""Operator settings, theme preference and whole-dataset backup/restore/clear."""

import json
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from .base_store import BaseStore
from ..models.settings import THEMES, AppSettings
from ..storage.backend import (
    ITEMS_KEY,
    LOGS_KEY,
    SETTINGS_KEY,
    THEME_KEY,
    VERSION_KEY,
    KeyValueStorage,
)
from ..utils.exceptions import DataImportError, PersistenceError, ValidationError

DATA_VERSION = "1.0.0"

# Bundle field -> storage key
SNAPSHOT_KEYS = {
    "items": ITEMS_KEY,
    "logs": LOGS_KEY,
    "settings": SETTINGS_KEY,
    "version": VERSION_KEY,
    "theme": THEME_KEY,
}


class SettingsStore(BaseStore):
    """Key-value operator settings persisted under ``inv_settings``."""

    storage_key = SETTINGS_KEY

    def __init__(self, storage: KeyValueStorage, defaults: Optional[AppSettings] = None,
                 default_theme: str = "light", strict_writes: bool = False):
        super().__init__(storage, strict_writes)
        self.defaults = defaults or AppSettings()
        self.default_theme = default_theme
        self.settings = self.defaults.model_copy()
        self.load()

    def load(self) -> None:
        """Merge persisted settings over the defaults and stamp the data version."""
        saved = self.storage.read_json(self.storage_key)

        if saved is None:
            self.settings = self.defaults.model_copy()
            if self.storage.get(self.storage_key) is None:
                self.save()
        elif isinstance(saved, dict):
            try:
                self.settings = AppSettings.model_validate({**self.defaults.to_dict(), **saved})
            except PydanticValidationError as e:
                self.error_logger.error(f"Stored settings are invalid, using defaults: {str(e)}")
                self.settings = self.defaults.model_copy()
        else:
            self.error_logger.error("Stored settings are not an object, using defaults")
            self.settings = self.defaults.model_copy()

        try:
            self.storage.set(VERSION_KEY, DATA_VERSION)
        except PersistenceError as e:
            self.error_logger.error(f"Could not write data version: {e.message}")

    def serialize(self) -> Dict[str, Any]:
        return self.settings.to_dict()

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @staticmethod
    def _alias(key: str) -> str:
        field = AppSettings.model_fields.get(key)
        return field.alias if field is not None and field.alias else key

    def get(self, key: str) -> Any:
        """Look up a setting by its camelCase or attribute name; unknown keys give None."""
        return self.settings.to_dict().get(self._alias(key))

    def _replace_settings(self, values: Mapping[str, Any]) -> None:
        merged = self.settings.to_dict()
        merged.update({self._alias(key): value for key, value in values.items()})
        try:
            self.settings = AppSettings.model_validate(merged)
        except PydanticValidationError as e:
            raise ValidationError("Invalid setting value", {"errors": e.errors(include_url=False)})
        self._commit()

    def set(self, key: str, value: Any) -> Any:
        self._replace_settings({key: value})
        self.logger.info(f"Setting {self._alias(key)} = {self.get(key)!r}")
        return self.get(key)

    def set_all(self, values: Mapping[str, Any]) -> AppSettings:
        """Shallow-merge ``values`` into the current settings."""
        self._replace_settings(values)
        self.logger.info(f"Updated settings: {', '.join(self._alias(key) for key in values)}")
        return self.settings

    @property
    def low_stock_threshold(self) -> int:
        return self.settings.low_stock_threshold

    @property
    def currency_symbol(self) -> str:
        return self.settings.currency_symbol

    # ------------------------------------------------------------------
    # Theme
    # ------------------------------------------------------------------

    def get_theme(self) -> str:
        theme = self.storage.get(THEME_KEY)
        return theme if theme in THEMES else self.default_theme

    def set_theme(self, theme: str) -> str:
        if theme not in THEMES:
            raise ValidationError(f"Theme must be one of: {', '.join(THEMES)}", {"theme": theme})
        self.storage.set(THEME_KEY, theme)
        return theme

    def toggle_theme(self) -> str:
        return self.set_theme("light" if self.get_theme() == "dark" else "dark")

    # ------------------------------------------------------------------
    # Backup / restore / clear
    # ------------------------------------------------------------------

    def data_version(self) -> Optional[str]:
        return self.storage.get(VERSION_KEY)

    def export_snapshot(self) -> Dict[str, Optional[str]]:
        """Raw stored strings for every collection plus version and theme."""
        return {field: self.storage.get(key) for field, key in SNAPSHOT_KEYS.items()}

    def import_snapshot(self, bundle: Mapping[str, Any]) -> None:
        """
        Overwrite each stored collection present in ``bundle``.

        Absent or empty fields leave the stored value untouched. If any write
        fails, keys already written get their previous values back. Callers
        must reload their stores afterwards.

        Raises:
            DataImportError: If the bundle is malformed or storage rejects a write
        """
        if not isinstance(bundle, Mapping):
            raise DataImportError("Backup must be a JSON object")

        previous: Dict[str, Optional[str]] = {}
        for field, key in SNAPSHOT_KEYS.items():
            value = bundle.get(field)
            if not value:
                continue
            if not isinstance(value, str):
                value = json.dumps(value, ensure_ascii=False)
            previous[key] = self.storage.get(key)
            try:
                self.storage.set(key, value)
            except PersistenceError as e:
                self._restore_keys(previous)
                raise DataImportError(f"Error importing data: {e.message}", {"key": key, **e.details})

        self.logger.info(
            f"Restored snapshot fields: {', '.join(f for f in SNAPSHOT_KEYS if bundle.get(f)) or 'none'}"
        )

    def _restore_keys(self, previous: Mapping[str, Optional[str]]) -> None:
        """Put back raw values saved before a failed snapshot import."""
        for key, value in previous.items():
            try:
                if value is None:
                    self.storage.remove(key)
                else:
                    self.storage.set(key, value)
            except PersistenceError as e:
                self.error_logger.error(f"Could not roll back '{key}' after failed import: {e.message}")
        self.logger.warning(f"Snapshot import rolled back: {', '.join(previous)}")

    def clear_all(self) -> None:
        """Erase items, logs and settings. Theme and data version are kept."""
        for key in (ITEMS_KEY, LOGS_KEY, SETTINGS_KEY):
            self.storage.remove(key)
        self.logger.warning("All inventory data cleared")
