# services/pricing/finnhub.py
from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from services.pricing.base import PriceAdapter, epoch_to_datetime
from services.pricing.config import DEFAULT_TIMEOUT_S
from services.pricing.types import PriceResult, Quote
from utils.common_helpers import safe_float


class FinnhubAdapter(PriceAdapter):
    """
    Equity quotes from Finnhub's /quote endpoint.

    Finnhub answers unknown tickers with 200 and `c == 0`; a zero quote is
    treated as "no data".
    """

    source = "finnhub"
    label = "Finnhub"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://finnhub.io/api/v1",
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(timeout_s=timeout_s, client=client)
        self.api_key = api_key or ""
        self.base_url = base_url.rstrip("/")

    def _auth_params(self, **params: Any) -> Dict[str, Any]:
        return {**params, "token": self.api_key}

    async def _fetch(self, symbol: str) -> PriceResult:
        if not symbol:
            return self.failure("UNKNOWN", "Symbol required for stock")
        if not self.api_key:
            return self.failure(symbol, "Finnhub API key not configured")

        data = await self._get_json(
            f"{self.base_url}/quote",
            params=self._auth_params(symbol=symbol),
        )

        current_price = safe_float(data.get("c"))
        if current_price is None or current_price <= 0:
            return self.failure(symbol, f"No price data available for {symbol}")

        return Quote(
            symbol=symbol,
            price=current_price,
            currency="USD",
            source=self.source,
            timestamp=epoch_to_datetime(data.get("t")),
        )
