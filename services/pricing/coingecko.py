# services/pricing/coingecko.py
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

import httpx

from services.errors import ExternalServiceError
from services.pricing.base import PriceAdapter, epoch_to_datetime
from services.pricing.config import DEFAULT_TIMEOUT_S
from services.pricing.types import PriceResult, Quote
from utils.common_helpers import safe_float

logger = logging.getLogger(__name__)

CRYPTO_ID_MAP: Dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "BNB": "binancecoin",
    "XRP": "ripple",
    "ADA": "cardano",
    "SOL": "solana",
    "DOGE": "dogecoin",
    "DOT": "polkadot",
    "MATIC": "matic-network",
    "SHIB": "shiba-inu",
    "LTC": "litecoin",
    "AVAX": "avalanche-2",
    "LINK": "chainlink",
    "UNI": "uniswap",
    "ATOM": "cosmos",
}


def coin_id_for(symbol: str) -> str:
    """Ticker -> CoinGecko coin id. Unknown tickers pass through lowercased."""
    s = (symbol or "").strip().upper()
    return CRYPTO_ID_MAP.get(s, s.lower())


class CoinGeckoAdapter(PriceAdapter):
    source = "coingecko"
    label = "CoinGecko"

    def __init__(
        self,
        base_url: str = "https://api.coingecko.com/api/v3",
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(timeout_s=timeout_s, client=client)
        self.base_url = base_url.rstrip("/")

    async def _fetch(self, symbol: str) -> PriceResult:
        results = await self.fetch_many([symbol])
        return results[symbol]

    async def fetch_many(self, symbols: Iterable[str]) -> Dict[str, PriceResult]:
        """
        Price every symbol with ONE upstream call.

        Keyed by the symbol exactly as passed in. If the call itself fails
        (timeout, transport, non-2xx, bad body) every symbol gets a
        PriceFailure carrying that error.
        """
        wanted: List[str] = list(dict.fromkeys(symbols))
        if not wanted:
            return {}

        coin_ids = sorted({coin_id_for(s) for s in wanted})
        logger.debug("coingecko batch fetch symbols=%d ids=%d", len(wanted), len(coin_ids))

        try:
            data = await self._get_json(
                f"{self.base_url}/simple/price",
                params={
                    "ids": ",".join(coin_ids),
                    "vs_currencies": "usd",
                    "include_last_updated_at": "true",
                },
            )
        except ExternalServiceError as e:
            logger.warning("coingecko batch failed symbols=%d error=%s", len(wanted), e.detail)
            return {s: self.failure(self.normalize_symbol(s), e.detail) for s in wanted}

        out: Dict[str, PriceResult] = {}
        for s in wanted:
            out[s] = self._parse_entry(self.normalize_symbol(s), data.get(coin_id_for(s)))
        return out

    def _parse_entry(self, symbol: str, entry: object) -> PriceResult:
        if not isinstance(entry, dict):
            return self.failure(symbol, f"Price data not found for {symbol}")

        price = safe_float(entry.get("usd"))
        if price is None or price <= 0:
            return self.failure(symbol, f"Malformed price data for {symbol}")

        return Quote(
            symbol=symbol,
            price=price,
            currency="USD",
            source=self.source,
            timestamp=epoch_to_datetime(entry.get("last_updated_at")),
        )
