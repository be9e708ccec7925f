"""Operator settings model."""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

THEMES = ("light", "dark")


class AppSettings(BaseModel):
    """Process-wide operator settings, persisted with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", validate_assignment=True)

    currency_symbol: str = Field(default="Rs.", alias="currencySymbol")
    low_stock_threshold: int = Field(default=5, ge=0, alias="lowStockThreshold")
    language: str = Field(default="si", alias="language")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
