# services/pricing/goldapi.py
from __future__ import annotations

from typing import Dict, Optional

import httpx

from services.pricing.base import PriceAdapter, epoch_to_datetime
from services.pricing.config import DEFAULT_TIMEOUT_S
from services.pricing.types import PriceResult, Quote
from utils.common_helpers import safe_float

GOLD_SYMBOL_MAP: Dict[str, str] = {
    "XAU": "XAU",
    "GOLD": "XAU",
    "XAG": "XAG",
    "SILVER": "XAG",
}


def metal_code_for(symbol: Optional[str]) -> str:
    return GOLD_SYMBOL_MAP.get((symbol or "").strip().upper(), "XAU")


class GoldApiAdapter(PriceAdapter):
    """Spot metal prices. A missing key is a per-call failure, not a startup error."""

    source = "goldapi"
    label = "GoldAPI"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://www.goldapi.io/api",
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(timeout_s=timeout_s, client=client)
        self.api_key = api_key or ""
        self.base_url = base_url.rstrip("/")

    def normalize_symbol(self, symbol: Optional[str]) -> str:
        return metal_code_for(symbol)

    async def _fetch(self, symbol: str) -> PriceResult:
        if not self.api_key:
            return self.failure(symbol, "GoldAPI key not configured")

        data = await self._get_json(
            f"{self.base_url}/{symbol}/USD",
            headers={"x-access-token": self.api_key, "Content-Type": "application/json"},
        )

        if data.get("error"):
            return self.failure(symbol, str(data["error"]))

        price = safe_float(data.get("price"))
        if price is None or price <= 0:
            return self.failure(symbol, f"No price data available for {symbol}")

        return Quote(
            symbol=symbol,
            price=price,
            currency="USD",
            source=self.source,
            timestamp=epoch_to_datetime(data.get("timestamp")),
        )
