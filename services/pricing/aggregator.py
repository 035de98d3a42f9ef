# services/pricing/aggregator.py
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

import httpx

from services.pricing.coingecko import CoinGeckoAdapter
from services.pricing.config import PriceProviderConfig
from services.pricing.finnhub import FinnhubAdapter
from services.pricing.goldapi import GoldApiAdapter
from services.pricing.types import (
    MANUAL_VALUATION_REASON,
    MANUAL_VALUATION_TYPES,
    SOURCE_SYSTEM,
    SYMBOL_REQUIRED_TYPES,
    UNRESOLVED_REASON,
    AssetType,
    PriceFailure,
    PriceQuery,
    PriceResult,
)

logger = logging.getLogger(__name__)


class PriceAggregator:
    """
    Resolves a batch of PriceQuery keys against all providers at once.

    - one CoinGecko call for every crypto symbol in the batch
    - one concurrent call per distinct equity / metal symbol
    - manual-valuation types resolve immediately, no network
    Every task writes only its own keys, so the merge needs no lock and does
    not depend on completion order.
    """

    def __init__(
        self,
        crypto: CoinGeckoAdapter,
        commodity: GoldApiAdapter,
        equity: FinnhubAdapter,
    ):
        self.crypto = crypto
        self.commodity = commodity
        self.equity = equity

    @classmethod
    def from_config(
        cls,
        cfg: Optional[PriceProviderConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> "PriceAggregator":
        cfg = cfg or PriceProviderConfig.from_env()
        return cls(
            crypto=CoinGeckoAdapter(cfg.coingecko_base_url, timeout_s=cfg.timeout_s, client=client),
            commodity=GoldApiAdapter(
                cfg.goldapi_key, cfg.goldapi_base_url, timeout_s=cfg.timeout_s, client=client
            ),
            equity=FinnhubAdapter(
                cfg.finnhub_api_key, cfg.finnhub_base_url, timeout_s=cfg.timeout_s, client=client
            ),
        )

    async def resolve(self, query: PriceQuery) -> PriceResult:
        results = await self.resolve_batch([query])
        return results[query]

    async def resolve_batch(self, queries: Iterable[PriceQuery]) -> Dict[PriceQuery, PriceResult]:
        requested = list(queries)
        unique: List[PriceQuery] = list(dict.fromkeys(requested))
        results: Dict[PriceQuery, PriceResult] = {}

        crypto: List[PriceQuery] = []
        equity: List[PriceQuery] = []
        commodity: List[PriceQuery] = []

        for q in unique:
            if q.type in MANUAL_VALUATION_TYPES:
                results[q] = PriceFailure(
                    symbol=q.symbol or "CUSTOM",
                    reason=MANUAL_VALUATION_REASON,
                    source=SOURCE_SYSTEM,
                )
            elif q.type in SYMBOL_REQUIRED_TYPES and not (q.symbol or "").strip():
                results[q] = PriceFailure(
                    symbol="UNKNOWN",
                    reason=f"Symbol required for {q.type.value.lower()}",
                    source=SOURCE_SYSTEM,
                )
            elif q.type == AssetType.CRYPTO:
                crypto.append(q)
            elif q.type == AssetType.STOCK:
                equity.append(q)
            elif q.type == AssetType.GOLD:
                commodity.append(q)
            else:
                results[q] = PriceFailure(
                    symbol=q.symbol or "UNKNOWN",
                    reason=f"Unsupported asset type: {q.type}",
                    source=SOURCE_SYSTEM,
                )

        logger.info(
            "price batch queries=%d unique=%d crypto=%d equity=%d commodity=%d",
            len(requested),
            len(unique),
            len(crypto),
            len(equity),
            len(commodity),
        )

        tasks = []
        if crypto:
            tasks.append(self._resolve_crypto(crypto, results))
        for q in equity:
            tasks.append(self._resolve_single(self.equity, q, results))
        for q in commodity:
            tasks.append(self._resolve_single(self.commodity, q, results))

        if tasks:
            outcomes = await asyncio.gather(*tasks, return_exceptions=True)
            for outcome in outcomes:
                if isinstance(outcome, BaseException):
                    logger.error("price group task crashed: %r", outcome)

        # adapters never raise, but a crashed group must still leave one entry per query
        for q in unique:
            if q not in results:
                results[q] = PriceFailure(
                    symbol=q.symbol or "UNKNOWN",
                    reason=UNRESOLVED_REASON,
                    source=SOURCE_SYSTEM,
                )

        return results

    async def _resolve_crypto(
        self,
        queries: List[PriceQuery],
        results: Dict[PriceQuery, PriceResult],
    ) -> None:
        by_symbol = await self.crypto.fetch_many(q.symbol for q in queries if q.symbol)
        for q in queries:
            res = by_symbol.get(q.symbol or "")
            if res is not None:
                results[q] = res

    async def _resolve_single(
        self,
        adapter,
        query: PriceQuery,
        results: Dict[PriceQuery, PriceResult],
    ) -> None:
        results[query] = await adapter.fetch(query.symbol)


_aggregator_singleton: Optional[PriceAggregator] = None


def get_price_aggregator() -> PriceAggregator:
    global _aggregator_singleton
    if _aggregator_singleton is None:
        _aggregator_singleton = PriceAggregator.from_config()
    return _aggregator_singleton
