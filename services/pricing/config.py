# services/pricing/config.py
from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

DEFAULT_TIMEOUT_S = 10.0


@dataclass
class PriceProviderConfig:
    timeout_s: float = DEFAULT_TIMEOUT_S

    coingecko_base_url: str = "https://api.coingecko.com/api/v3"

    goldapi_base_url: str = "https://www.goldapi.io/api"
    goldapi_key: str = ""

    finnhub_base_url: str = "https://finnhub.io/api/v1"
    finnhub_api_key: str = ""

    @staticmethod
    def from_env() -> "PriceProviderConfig":
        return PriceProviderConfig(
            timeout_s=float(os.getenv("PRICE_TIMEOUT_S", str(DEFAULT_TIMEOUT_S))),
            coingecko_base_url=os.getenv("COINGECKO_BASE_URL") or "https://api.coingecko.com/api/v3",
            goldapi_base_url=os.getenv("GOLDAPI_BASE_URL") or "https://www.goldapi.io/api",
            goldapi_key=os.getenv("GOLDAPI_KEY", ""),
            finnhub_base_url=os.getenv("FINNHUB_BASE_URL") or "https://finnhub.io/api/v1",
            finnhub_api_key=os.getenv("FINNHUB_API_KEY", ""),
        )
