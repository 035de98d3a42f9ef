# services/price_update_service.py
"""
Scheduled revaluation: price every market-priced asset, keep a price history
row per quoted asset and fire one-shot threshold notifications.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from models.asset import Asset
from models.asset_price_history import AssetPriceHistory
from models.notification_rule import Direction, NotificationRule
from services.pricing.aggregator import PriceAggregator
from services.pricing.types import AssetType, PriceQuery, Quote
from utils.common_helpers import pct, round2

logger = logging.getLogger(__name__)

PRICED_TYPES = (AssetType.CRYPTO, AssetType.GOLD, AssetType.STOCK)


@dataclass
class TriggeredNotification:
    asset_id: str
    symbol: Optional[str]
    rule_id: str
    direction: str
    threshold_percent: int
    actual_percent: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "assetId": self.asset_id,
            "symbol": self.symbol,
            "ruleId": self.rule_id,
            "direction": self.direction,
            "thresholdPercent": self.threshold_percent,
            "actualPercent": self.actual_percent,
        }


@dataclass
class PriceUpdateReport:
    assets_processed: int = 0
    prices_updated: int = 0
    notifications: List[TriggeredNotification] = field(default_factory=list)
    logs: List[str] = field(default_factory=list)
    duration_ms: int = 0
    error: Optional[str] = None

    def log(self, message: str) -> None:
        self.logs.append(message)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "success": self.error is None,
            "stats": {
                "assetsProcessed": self.assets_processed,
                "pricesUpdated": self.prices_updated,
                "notificationsTriggered": len(self.notifications),
            },
            "notifications": [n.to_dict() for n in self.notifications],
            "logs": list(self.logs),
            "duration": self.duration_ms,
        }
        if self.error is not None:
            d["error"] = self.error
        return d


def price_change_percent(current_price: float, buy_price: float) -> float:
    return pct(current_price - buy_price, buy_price)


def should_trigger(rule: NotificationRule, change_percent: float) -> bool:
    if rule.direction == Direction.UP:
        return change_percent >= rule.threshold_percent
    if rule.direction == Direction.DOWN:
        return change_percent <= -rule.threshold_percent
    return False


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _load_priced_assets(db: Session) -> List[Asset]:
    return (
        db.query(Asset)
        .options(selectinload(Asset.notification_rules))
        .filter(Asset.type.in_(PRICED_TYPES))
        .all()
    )


async def run_price_update(db: Session, aggregator: PriceAggregator) -> PriceUpdateReport:
    """Never raises; a failed run comes back with `error` set and the db rolled back."""
    started = time.perf_counter()
    report = PriceUpdateReport()
    report.log(f"[{_now_iso()}] Price update started")

    try:
        await _run(db, aggregator, report)
    except Exception as e:
        db.rollback()
        logger.exception("price update failed")
        report.error = str(e) or e.__class__.__name__
        report.log(f"[ERROR] {report.error}")

    report.duration_ms = int((time.perf_counter() - started) * 1000)
    if report.error is None:
        report.log(f"[{_now_iso()}] Price update completed in {report.duration_ms}ms")
    logger.info(
        "price update done assets=%d prices=%d notifications=%d duration_ms=%d",
        report.assets_processed,
        report.prices_updated,
        len(report.notifications),
        report.duration_ms,
    )
    return report


async def _run(db: Session, aggregator: PriceAggregator, report: PriceUpdateReport) -> None:
    assets = _load_priced_assets(db)
    report.assets_processed = len(assets)
    if not assets:
        report.log("No assets to update")
        return
    report.log(f"Found {len(assets)} assets to update")

    queries = [PriceQuery(AssetType(a.type), a.symbol) for a in assets]
    prices = await aggregator.resolve_batch(queries)
    quoted = sum(1 for r in prices.values() if isinstance(r, Quote))
    report.log(f"Fetched {quoted}/{len(prices)} prices")

    now = datetime.now(timezone.utc)
    fired: List[NotificationRule] = []

    for asset in assets:
        result = prices.get(PriceQuery(AssetType(asset.type), asset.symbol))
        if not isinstance(result, Quote):
            continue

        db.add(AssetPriceHistory(asset_id=asset.id, price=result.price, recorded_at=now))
        report.prices_updated += 1

        change = price_change_percent(result.price, float(asset.buy_price))
        for rule in asset.notification_rules:
            if rule.triggered or not should_trigger(rule, change):
                continue
            fired.append(rule)
            report.notifications.append(
                TriggeredNotification(
                    asset_id=asset.id,
                    symbol=asset.symbol,
                    rule_id=rule.id,
                    direction=rule.direction.value,
                    threshold_percent=rule.threshold_percent,
                    actual_percent=round2(change),
                )
            )

    for rule in fired:
        rule.triggered = True
        rule.last_triggered_at = now

    db.commit()

    if report.prices_updated:
        report.log(f"Created {report.prices_updated} price history records")
    for n in report.notifications:
        report.log(
            f"[NOTIFICATION] {n.symbol or 'Asset'}: {n.direction} {n.threshold_percent}% "
            f"threshold hit. Actual: {n.actual_percent}%"
        )
    if report.notifications:
        report.log(f"Triggered {len(report.notifications)} notifications")
