# services/portfolio/advisor.py
"""
Advisory enrichment on top of the rule-based risk heuristics.

The text generator is a black box: prompt in, free text out, expected to hold
one JSON object {riskScore, recommendations, summary}. Anything short of that
(no key, timeout, transport error, no object, bad JSON) falls back to the
heuristics. `analyze` never raises.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from services.ai.json_helpers import extract_json_object
from services.ai.llm_service import LLMService, get_llm_service
from services.errors import AdvisoryUnavailable
from services.portfolio.risk import (
    assess_risk,
    calculate_base_risk,
    concentration_warnings,
    empty_assessment,
    fallback_recommendations,
    volatility_alerts,
)
from services.portfolio.types import EnrichedAsset, PortfolioAggregate, RiskAssessment
from utils.common_helpers import safe_float

logger = logging.getLogger(__name__)

DEFAULT_AI_SUMMARY = "Portfolio analysis complete."

SYSTEM_PROMPT = (
    "You are a professional financial advisor. Analyse the portfolio data "
    "provided and answer with JSON only."
)

RESPONSE_FORMAT = """{
  "riskScore": <number>,
  "recommendations": ["recommendation 1", "recommendation 2", ...],
  "summary": "summary text"
}"""


def _bullets(items: Sequence[str]) -> str:
    return "; ".join(items) if items else "None"


def build_prompt(
    assets: Sequence[EnrichedAsset],
    agg: PortfolioAggregate,
    base_score: int,
    warnings: Sequence[str],
    alerts: Sequence[str],
) -> str:
    distribution = "\n".join(
        f"- {t.value}: ${e.value:.2f} ({e.percent:.1f}%)"
        for t, e in agg.distribution.items()
        if e.percent > 0
    )
    holdings = "\n".join(
        f"- {a.position.label}: {a.position.quantity:g} units, "
        f"Buy: ${a.position.buy_price:.2f}, Current: ${a.current_price:.2f}, "
        f"P/L: {a.profit_loss_percent:.2f}%"
        for a in assets
    )

    return f"""PORTFOLIO DATA:
- Total value: ${agg.total_value:.2f}
- Total invested: ${agg.total_invested:.2f}
- Profit/Loss: {agg.total_profit_loss_percent:.2f}%

ALLOCATION:
{distribution}

HOLDINGS:
{holdings}

PRE-COMPUTED:
- Risk score: {base_score}/100
- Concentration warnings: {_bullets(warnings)}
- Volatility alerts: {_bullets(alerts)}

TASK:
1. Confirm the risk score or adjust it if needed (0-100, 100 = riskiest)
2. Give at least 2 actionable recommendations specific to this portfolio
3. Write a short summary

RESPONSE FORMAT (JSON ONLY):
{RESPONSE_FORMAT}"""


def _coerce_score(raw: Any, base_score: int) -> int:
    v = safe_float(raw)
    # zero / missing score means "keep ours"
    if not v:
        return base_score
    return int(max(0, min(100, round(v))))


def _coerce_recommendations(raw: Any) -> List[str]:
    if not isinstance(raw, list):
        return []
    return [str(r).strip() for r in raw if isinstance(r, (str, int, float)) and str(r).strip()]


class PortfolioAdvisor:
    def __init__(self, llm: Optional[LLMService] = None, *, timeout_s: Optional[float] = None):
        self._llm = llm
        self._timeout_s = timeout_s

    @property
    def llm(self) -> LLMService:
        if self._llm is None:
            self._llm = get_llm_service()
        return self._llm

    async def _ask(self, prompt: str) -> Dict[str, Any]:
        try:
            llm = self.llm
        except Exception as e:
            # bad provider settings in the environment
            raise AdvisoryUnavailable(f"Advisory client unavailable: {e}") from e

        timeout_s = self._timeout_s if self._timeout_s is not None else llm.cfg.timeout_s
        try:
            text = await asyncio.wait_for(
                llm.generate_text(
                    system=SYSTEM_PROMPT,
                    user=prompt,
                    max_tokens=llm.cfg.max_output_tokens,
                ),
                timeout=timeout_s,
            )
        except AdvisoryUnavailable:
            raise
        except asyncio.TimeoutError as e:
            raise AdvisoryUnavailable(f"Advisory call timed out after {timeout_s:g}s") from e
        except Exception as e:
            raise AdvisoryUnavailable(f"Advisory call failed: {e}") from e

        try:
            return extract_json_object(text)
        except ValueError as e:
            raise AdvisoryUnavailable(str(e)) from e

    async def analyze(self, assets: Sequence[EnrichedAsset], agg: PortfolioAggregate) -> RiskAssessment:
        if not assets:
            return empty_assessment()

        base_score = calculate_base_risk(assets, agg)
        warnings = concentration_warnings(assets, agg)
        alerts = volatility_alerts(assets, agg)

        try:
            payload = await self._ask(build_prompt(assets, agg, base_score, warnings, alerts))
        except AdvisoryUnavailable as e:
            logger.warning("advisory unavailable, using heuristics: %s", e.message)
            return assess_risk(assets, agg)

        recommendations = _coerce_recommendations(payload.get("recommendations"))
        summary = payload.get("summary")

        return RiskAssessment(
            risk_score=_coerce_score(payload.get("riskScore"), base_score),
            concentration_warnings=warnings,
            volatility_alerts=alerts,
            recommendations=recommendations or fallback_recommendations(assets, agg),
            summary=summary.strip() if isinstance(summary, str) and summary.strip() else DEFAULT_AI_SUMMARY,
            source="advisory",
        )


def portfolio_metrics(agg: PortfolioAggregate) -> Dict[str, Any]:
    return {
        "totalValue": agg.total_value,
        "totalInvested": agg.total_invested,
        "profitLossPercent": agg.total_profit_loss_percent,
        "assetCount": agg.asset_count,
    }



_advisor_singleton: Optional[PortfolioAdvisor] = None


def get_portfolio_advisor() -> PortfolioAdvisor:
    global _advisor_singleton
    if _advisor_singleton is None:
        _advisor_singleton = PortfolioAdvisor()
    return _advisor_singleton
