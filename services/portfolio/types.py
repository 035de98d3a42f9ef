# services/portfolio/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from services.pricing.types import AssetType, PriceQuery
from utils.common_helpers import round2


@dataclass(frozen=True)
class AssetPosition:
    """A held quantity of one asset, as supplied by storage. Never mutated here."""

    id: str
    account_id: str
    type: AssetType
    quantity: float
    buy_price: float
    symbol: Optional[str] = None

    # REAL_ESTATE only
    location: Optional[str] = None
    area: Optional[float] = None
    property_type: Optional[str] = None
    current_valuation: Optional[float] = None
    rental_income: Optional[float] = None
    notes: Optional[str] = None

    account_name: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def price_query(self) -> PriceQuery:
        return PriceQuery(self.type, self.symbol)

    @property
    def label(self) -> str:
        return self.symbol or self.type.value

    def real_estate_fields(self) -> Dict[str, Any]:
        return {
            "location": self.location,
            "area": self.area,
            "propertyType": self.property_type,
            "currentValuation": self.current_valuation,
            "rentalIncome": self.rental_income,
            "notes": self.notes,
        }


@dataclass
class EnrichedAsset:
    """Position joined with its resolved price. Monetary fields are unrounded."""

    position: AssetPosition
    current_price: float
    total_invested: float
    current_value: float
    profit_loss: float
    profit_loss_percent: float
    price_error: Optional[str] = None

    @property
    def type(self) -> AssetType:
        return self.position.type

    @property
    def symbol(self) -> Optional[str]:
        return self.position.symbol

    def to_dict(self) -> Dict[str, Any]:
        p = self.position
        d: Dict[str, Any] = {
            "id": p.id,
            "accountId": p.account_id,
            "accountName": p.account_name,
            "type": p.type.value,
            "symbol": p.symbol,
            "quantity": p.quantity,
            "buyPrice": p.buy_price,
            "currentPrice": self.current_price,
            "totalInvested": round2(self.total_invested),
            "totalValue": round2(self.current_value),
            "profitLoss": round2(self.profit_loss),
            "profitLossPercent": round2(self.profit_loss_percent),
            "priceError": self.price_error,
            "createdAt": p.created_at.isoformat() if p.created_at else None,
        }
        if p.type == AssetType.REAL_ESTATE:
            d.update(p.real_estate_fields())
        return d


@dataclass(frozen=True)
class DistributionEntry:
    value: float
    percent: float
    # unrounded share of the total, for threshold checks
    raw_percent: float = 0.0


@dataclass
class PortfolioAggregate:
    """
    Presentation-ready totals (2dp), computed from unrounded accumulators.
    The raw_* fields keep the unrounded figures the risk rules compare against.
    """

    total_value: float
    total_invested: float
    total_profit_loss: float
    total_profit_loss_percent: float
    distribution: Dict[AssetType, DistributionEntry]
    asset_count: int
    raw_total_value: float = 0.0
    raw_profit_loss_percent: float = 0.0

    def percent_of(self, asset_type: AssetType) -> float:
        entry = self.distribution.get(asset_type)
        return entry.percent if entry else 0.0

    def share_of(self, asset_type: AssetType) -> float:
        entry = self.distribution.get(asset_type)
        return entry.raw_percent if entry else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalValue": self.total_value,
            "totalInvested": self.total_invested,
            "totalProfitLoss": self.total_profit_loss,
            "totalProfitLossPercent": self.total_profit_loss_percent,
            "distribution": {
                t.value: {"value": e.value, "percent": e.percent}
                for t, e in self.distribution.items()
            },
            "assetCount": self.asset_count,
        }


@dataclass
class RiskAssessment:
    risk_score: int
    concentration_warnings: List[str] = field(default_factory=list)
    volatility_alerts: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    summary: str = ""
    source: str = "heuristic"  # heuristic | advisory

    def to_dict(self) -> Dict[str, Any]:
        return {
            "riskScore": self.risk_score,
            "concentrationWarnings": list(self.concentration_warnings),
            "volatilityAlerts": list(self.volatility_alerts),
            "recommendations": list(self.recommendations),
            "summary": self.summary,
            "source": self.source,
        }
