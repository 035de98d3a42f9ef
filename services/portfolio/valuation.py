# services/portfolio/valuation.py
from __future__ import annotations

from math import fsum
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from services.portfolio.types import (
    AssetPosition,
    DistributionEntry,
    EnrichedAsset,
    PortfolioAggregate,
)
from services.pricing.types import (
    UNRESOLVED_REASON,
    AssetType,
    PriceFailure,
    PriceQuery,
    PriceResult,
    Quote,
)
from utils.common_helpers import apportion, pct, round2

PriceMap = Mapping[PriceQuery, PriceResult]


def resolve_current_price(position: AssetPosition, prices: PriceMap) -> Tuple[float, Optional[str]]:
    """
    Pick the unit price for one position: (price, failure_reason).

    1. REAL_ESTATE with a manual valuation -> that valuation, price service ignored
    2. a Quote for the position's key -> quote price
    3. anything else -> buy price, with the failure reason surfaced
    """
    if position.type == AssetType.REAL_ESTATE and position.current_valuation:
        return float(position.current_valuation), None

    result = prices.get(position.price_query)
    if isinstance(result, Quote):
        return result.price, None
    if isinstance(result, PriceFailure):
        return position.buy_price, result.reason
    return position.buy_price, UNRESOLVED_REASON


def enrich_position(position: AssetPosition, prices: PriceMap) -> EnrichedAsset:
    current_price, price_error = resolve_current_price(position, prices)

    invested = position.quantity * position.buy_price
    value = position.quantity * current_price
    profit_loss = value - invested

    return EnrichedAsset(
        position=position,
        current_price=current_price,
        total_invested=invested,
        current_value=value,
        profit_loss=profit_loss,
        profit_loss_percent=pct(profit_loss, invested),
        price_error=price_error,
    )


def aggregate(assets: Sequence[EnrichedAsset]) -> PortfolioAggregate:
    # per-type sums are accumulated separately from the total; round only at the edge
    terms_by_type: Dict[AssetType, List[float]] = {t: [] for t in AssetType}
    for a in assets:
        terms_by_type[a.type].append(a.current_value)

    total_value = fsum(a.current_value for a in assets)
    total_invested = fsum(a.total_invested for a in assets)
    total_profit_loss = total_value - total_invested
    profit_loss_percent = pct(total_profit_loss, total_invested)

    types = list(terms_by_type)
    type_values = [fsum(terms_by_type[t]) for t in types]
    # apportioned so the 2dp parts add up to the 2dp total exactly
    rounded_values = apportion(type_values, total_value)
    raw_percents = [pct(v, total_value) for v in type_values]
    if total_value > 0:
        rounded_percents = apportion(raw_percents, 100.0)
    else:
        rounded_percents = [0.0] * len(types)

    distribution: Dict[AssetType, DistributionEntry] = {
        t: DistributionEntry(value=v, percent=p, raw_percent=r)
        for t, v, p, r in zip(types, rounded_values, rounded_percents, raw_percents)
    }

    return PortfolioAggregate(
        total_value=round2(total_value),
        total_invested=round2(total_invested),
        total_profit_loss=round2(total_profit_loss),
        total_profit_loss_percent=round2(profit_loss_percent),
        distribution=distribution,
        asset_count=len(assets),
        raw_total_value=total_value,
        raw_profit_loss_percent=profit_loss_percent,
    )


def valuate(
    positions: Sequence[AssetPosition],
    prices: PriceMap,
) -> Tuple[List[EnrichedAsset], PortfolioAggregate]:
    enriched = [enrich_position(p, prices) for p in positions]
    return enriched, aggregate(enriched)
