from __future__ import annotations

from typing import Literal, Optional
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from schemas.user import CamelModel
from services.pricing.types import SYMBOL_REQUIRED_TYPES, AssetType

MAX_AMOUNT = 1e15

PropertyType = Literal["apartment", "land", "villa", "commercial", "office", "warehouse", "other"]


def _normalize_symbol(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    symbol = value.strip().upper()
    if len(symbol) > 20:
        raise ValueError("symbol must be at most 20 characters")
    return symbol or None


class AssetCreate(CamelModel):
    account_id: UUID
    type: AssetType
    symbol: Optional[str] = None
    quantity: float = Field(..., gt=0, le=MAX_AMOUNT)
    buy_price: float = Field(..., gt=0, le=MAX_AMOUNT)

    # REAL_ESTATE only; ignored for other types
    location: Optional[str] = Field(None, max_length=500)
    area: Optional[float] = Field(None, gt=0, le=1e10)
    property_type: Optional[PropertyType] = None
    current_valuation: Optional[float] = Field(None, gt=0, le=MAX_AMOUNT)
    rental_income: Optional[float] = Field(None, ge=0, le=1e12)
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("symbol")
    @classmethod
    def validate_symbol(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_symbol(value)

    @model_validator(mode="after")
    def require_symbol(self) -> "AssetCreate":
        if self.type in SYMBOL_REQUIRED_TYPES and not self.symbol:
            raise ValueError(f"symbol is required for {self.type.value} assets")
        return self


class NotificationCreate(CamelModel):
    threshold_percent: int = Field(..., ge=1, le=100)
    direction: Literal["UP", "DOWN"]
