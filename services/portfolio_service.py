# services/portfolio_service.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence, Tuple

from sqlalchemy.orm import Session

from services.asset_service import list_positions
from services.portfolio.advisor import PortfolioAdvisor, portfolio_metrics
from services.portfolio.types import AssetPosition, EnrichedAsset, PortfolioAggregate
from services.portfolio.valuation import valuate
from services.pricing.aggregator import PriceAggregator

logger = logging.getLogger(__name__)


async def price_positions(
    positions: Sequence[AssetPosition],
    aggregator: PriceAggregator,
) -> Tuple[List[EnrichedAsset], PortfolioAggregate]:
    # one batch per request, deduplicated inside the aggregator
    prices = await aggregator.resolve_batch(p.price_query for p in positions) if positions else {}
    enriched, agg = valuate(positions, prices)

    failed = sum(1 for a in enriched if a.price_error)
    if failed:
        logger.info("valuation used buy price for %d/%d positions", failed, len(enriched))
    return enriched, agg


async def get_enriched_assets(
    db: Session,
    user_id: str,
    aggregator: PriceAggregator,
) -> List[Dict[str, Any]]:
    enriched, _ = await price_positions(list_positions(db, user_id), aggregator)
    return [a.to_dict() for a in enriched]


async def get_portfolio_summary(
    db: Session,
    user_id: str,
    aggregator: PriceAggregator,
) -> Dict[str, Any]:
    _, agg = await price_positions(list_positions(db, user_id), aggregator)
    return agg.to_dict()


async def analyze_user_portfolio(
    db: Session,
    user_id: str,
    aggregator: PriceAggregator,
    advisor: PortfolioAdvisor,
) -> Dict[str, Any]:
    positions = list_positions(db, user_id)
    enriched, agg = await price_positions(positions, aggregator)

    assessment = await advisor.analyze(enriched, agg)
    out = assessment.to_dict()
    if positions:
        out["portfolioMetrics"] = portfolio_metrics(agg)
    return out
