# services/pricing/types.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union


class AssetType(str, Enum):
    GOLD = "GOLD"
    STOCK = "STOCK"
    CRYPTO = "CRYPTO"
    REAL_ESTATE = "REAL_ESTATE"
    OTHER = "OTHER"


# no live price for these; valuation is whatever the user entered
MANUAL_VALUATION_TYPES = frozenset({AssetType.REAL_ESTATE, AssetType.OTHER})
SYMBOL_REQUIRED_TYPES = frozenset({AssetType.STOCK, AssetType.CRYPTO})

SOURCE_SYSTEM = "system"
MANUAL_VALUATION_REASON = "Manual valuation required"
UNRESOLVED_REASON = "Price not resolved"


@dataclass(frozen=True)
class PriceQuery:
    """Aggregator lookup key. `symbol=None` is its own value, distinct from any string."""

    type: AssetType
    symbol: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.type.value}:{self.symbol if self.symbol is not None else 'null'}"


@dataclass(frozen=True)
class Quote:
    symbol: str
    price: float
    currency: str
    source: str
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "price": self.price,
            "currency": self.currency,
            "source": self.source,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class PriceFailure:
    symbol: str
    reason: str
    source: str

    def to_dict(self) -> Dict[str, Any]:
        return {"symbol": self.symbol, "error": self.reason, "source": self.source}


PriceResult = Union[Quote, PriceFailure]
