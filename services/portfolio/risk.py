# services/portfolio/risk.py
"""
Deterministic, rule-based risk scoring.

Pure functions of the valuated portfolio: no I/O, same input -> same output.
The output doubles as context for the advisory prompt and as the full
fallback when the advisory call is unavailable.
"""
from __future__ import annotations

from typing import List, Sequence

from services.portfolio.types import EnrichedAsset, PortfolioAggregate, RiskAssessment
from services.pricing.types import AssetType
from utils.common_helpers import pct

BASE_SCORE = 50
HIGH_VOLATILITY_CRYPTO = frozenset({"DOGE", "SHIB", "PEPE", "FLOKI", "BONK"})

FALLBACK_SUMMARY = "AI analysis is currently unavailable. Core portfolio metrics were calculated."
EMPTY_PORTFOLIO_SUMMARY = "Your portfolio has no assets yet."
EMPTY_PORTFOLIO_RECOMMENDATION = "You have not added any assets yet. Add assets to build your portfolio."


def _clamp(score: float) -> int:
    return int(max(0, min(100, score)))


def _share(asset: EnrichedAsset, agg: PortfolioAggregate) -> float:
    return pct(asset.current_value, agg.raw_total_value)


def _types_held(agg: PortfolioAggregate, *, above: float = 0.0) -> int:
    return sum(1 for e in agg.distribution.values() if e.raw_percent > above)


def calculate_base_risk(assets: Sequence[EnrichedAsset], agg: PortfolioAggregate) -> int:
    score = BASE_SCORE

    crypto_pct = agg.share_of(AssetType.CRYPTO)
    if crypto_pct > 50:
        score += 30
    elif crypto_pct > 30:
        score += 20
    elif crypto_pct > 15:
        score += 10

    if agg.share_of(AssetType.STOCK) > 70:
        score += 10

    types_held = _types_held(agg)
    if types_held == 1:
        score += 15
    elif types_held == 2:
        score += 5
    elif types_held >= 4:
        score -= 10

    unique_symbols = len({a.symbol for a in assets if a.symbol})
    if unique_symbols <= 2 and len(assets) > 2:
        score += 10
    elif unique_symbols >= 5:
        score -= 5

    if assets:
        max_share = max(_share(a, agg) for a in assets)
        if max_share > 50:
            score += 15
        elif max_share > 30:
            score += 5

    return _clamp(score)


def concentration_warnings(assets: Sequence[EnrichedAsset], agg: PortfolioAggregate) -> List[str]:
    warnings: List[str] = []

    for a in assets:
        share = _share(a, agg)
        if share > 40:
            warnings.append(
                f"{a.position.label} makes up {share:.1f}% of your portfolio. "
                "This is a significant concentration risk."
            )

    crypto_pct = agg.share_of(AssetType.CRYPTO)
    if crypto_pct > 50:
        warnings.append(
            f"Crypto assets make up {crypto_pct:.1f}% of your portfolio. High volatility risk."
        )

    real_estate_pct = agg.share_of(AssetType.REAL_ESTATE)
    if real_estate_pct > 60:
        warnings.append(
            f"Real estate makes up {real_estate_pct:.1f}% of your portfolio. Liquidity risk."
        )

    if _types_held(agg, above=5) < 2:
        warnings.append(
            "Your portfolio has insufficient diversification. Consider investing across more asset classes."
        )

    return warnings


def volatility_alerts(assets: Sequence[EnrichedAsset], agg: PortfolioAggregate) -> List[str]:
    alerts: List[str] = []

    for a in assets:
        if a.type != AssetType.CRYPTO or not a.symbol:
            continue
        if a.symbol.strip().upper() not in HIGH_VOLATILITY_CRYPTO:
            continue
        share = _share(a, agg)
        if share > 5:
            alerts.append(
                f"{a.symbol} is a highly volatile meme coin and makes up {share:.1f}% of your portfolio."
            )

    for a in assets:
        if abs(a.profit_loss_percent) > 30:
            direction = "gain" if a.profit_loss_percent > 0 else "loss"
            alerts.append(
                f"{a.position.label}: {abs(a.profit_loss_percent):.1f}% {direction}. Review this position."
            )

    return alerts


def fallback_recommendations(assets: Sequence[EnrichedAsset], agg: PortfolioAggregate) -> List[str]:
    recs: List[str] = []

    if _types_held(agg, above=5) < 3:
        recs.append("Diversify across at least 3 different asset classes.")

    if agg.share_of(AssetType.CRYPTO) > 30:
        recs.append(
            "Consider trimming crypto to 20-30% of the portfolio and moving the difference into gold or equities."
        )

    if agg.share_of(AssetType.GOLD) < 10 and agg.raw_total_value > 1000:
        recs.append("Allocate 5-10% of the portfolio to gold as an inflation hedge.")

    if agg.share_of(AssetType.STOCK) < 20:
        recs.append("Increase equity exposure to add long-term growth potential.")

    if agg.raw_profit_loss_percent > 50:
        recs.append(
            "You are sitting on a large gain. Consider realising part of it and rebalancing."
        )

    if not recs:
        recs.append("Your portfolio looks well balanced. Keep following your current strategy.")

    return recs


def empty_assessment() -> RiskAssessment:
    return RiskAssessment(
        risk_score=0,
        recommendations=[EMPTY_PORTFOLIO_RECOMMENDATION],
        summary=EMPTY_PORTFOLIO_SUMMARY,
    )


def assess_risk(
    assets: Sequence[EnrichedAsset],
    agg: PortfolioAggregate,
    *,
    summary: str = FALLBACK_SUMMARY,
) -> RiskAssessment:
    return RiskAssessment(
        risk_score=calculate_base_risk(assets, agg),
        concentration_warnings=concentration_warnings(assets, agg),
        volatility_alerts=volatility_alerts(assets, agg),
        recommendations=fallback_recommendations(assets, agg),
        summary=summary,
        source="heuristic",
    )
