"""Configuration management using pydantic-settings."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class StorageConfig(BaseModel):
    """Persistence configuration settings."""
    data_file: str = "data/stockbook.json"
    # Raise PersistenceError (and roll back to the last saved state) when a
    # write fails, instead of carrying on with in-memory state only.
    strict_writes: bool = False


class DefaultsConfig(BaseModel):
    """Initial values for the operator settings and theme."""
    currency_symbol: str = "Rs."
    low_stock_threshold: int = 5
    language: str = "si"
    theme: str = "light"


class UIConfig(BaseModel):
    """Presentation settings for listings."""
    items_per_page: int = 10
    search_debounce_ms: int = 300
    recent_activity_count: int = 5


class LoggingFilesConfig(BaseModel):
    """Log file paths."""
    store: str = "logs/store.log"
    imports: str = "logs/import.log"
    error: str = "logs/error.log"


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_bytes: int = 10485760  # 10MB
    backup_count: int = 5
    files: LoggingFilesConfig = LoggingFilesConfig()


class YAMLConfig(BaseModel):
    """Configuration loaded from YAML file."""
    storage: StorageConfig = StorageConfig()
    defaults: DefaultsConfig = DefaultsConfig()
    ui: UIConfig = UIConfig()
    logging: LoggingConfig = LoggingConfig()


class Settings(BaseSettings):
    """Application settings from environment variables."""

    stockbook_data_file: Optional[str] = Field(default=None, description="Override the data file path")
    stockbook_config_file: Optional[str] = Field(default=None, description="Path to an alternative config.yml")

    environment: str = Field(default="development", description="Environment (development/production)")
    log_level: Optional[str] = Field(default=None, description="Override log level")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


class AppConfig:
    """Combined application configuration."""

    def __init__(self):
        self.env = Settings()

        # Load YAML config
        if self.env.stockbook_config_file:
            config_path = Path(self.env.stockbook_config_file)
        else:
            config_path = Path(__file__).parent.parent.parent / "config" / "config.yml"

        if config_path.exists():
            with open(config_path, "r") as f:
                yaml_data = yaml.safe_load(f) or {}
            try:
                self.yaml = YAMLConfig(**yaml_data)
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid configuration file {config_path}",
                    {"error": str(e)}
                )
        else:
            self.yaml = YAMLConfig()

        # Override log level and data file if specified in env
        if self.env.log_level:
            self.yaml.logging.level = self.env.log_level
        if self.env.stockbook_data_file:
            self.yaml.storage.data_file = self.env.stockbook_data_file

    @property
    def storage(self) -> StorageConfig:
        return self.yaml.storage

    @property
    def defaults(self) -> DefaultsConfig:
        return self.yaml.defaults

    @property
    def ui(self) -> UIConfig:
        return self.yaml.ui

    @property
    def logging(self) -> LoggingConfig:
        return self.yaml.logging

    @property
    def is_production(self) -> bool:
        return self.env.environment.lower() == "production"


@lru_cache()
def get_config() -> AppConfig:
    """Get cached configuration instance."""
    return AppConfig()
