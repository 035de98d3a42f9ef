# services/pricing/base.py
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from services.errors import ExternalServiceError
from services.pricing.config import DEFAULT_TIMEOUT_S
from services.pricing.types import PriceFailure, PriceResult
from utils.common_helpers import safe_float, safe_json

logger = logging.getLogger(__name__)


def epoch_to_datetime(value: Any) -> datetime:
    """Provider epoch seconds -> aware UTC datetime; missing/garbage -> now."""
    ts = safe_float(value)
    if ts is None or ts <= 0:
        return datetime.now(timezone.utc)
    try:
        return datetime.fromtimestamp(ts, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return datetime.now(timezone.utc)


class PriceAdapter:
    """
    Base for upstream price adapters.

    `fetch()` never raises: every failure mode (timeout, transport error,
    non-2xx, malformed body, missing credential) comes back as a PriceFailure
    tagged with this adapter's source id.
    """

    source: str = "unknown"
    label: str = "Provider"

    def __init__(
        self,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.timeout_s = float(timeout_s)
        self._shared_client = client

    @asynccontextmanager
    async def _client(self):
        if self._shared_client is not None:
            yield self._shared_client
            return
        async with httpx.AsyncClient(timeout=self.timeout_s) as c:
            yield c

    def failure(self, symbol: str, reason: str) -> PriceFailure:
        return PriceFailure(symbol=symbol, reason=reason, source=self.source)

    async def _get_json(
        self,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """GET a JSON object, raising ExternalServiceError for anything but a 2xx JSON dict."""
        try:
            async with self._client() as c:
                r = await asyncio.wait_for(
                    c.get(url, params=params, headers=headers),
                    timeout=self.timeout_s,
                )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise ExternalServiceError(
                self.source, f"{self.label} request timed out after {self.timeout_s:g}s"
            ) from e
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                self.source, f"{self.label} request failed: {str(e) or type(e).__name__}"
            ) from e

        if not r.is_success:
            raise ExternalServiceError(self.source, f"{self.label} API returned {r.status_code}")

        data = safe_json(r)
        if data is None:
            raise ExternalServiceError(self.source, f"{self.label} returned a malformed payload")
        return data

    def normalize_symbol(self, symbol: Optional[str]) -> str:
        return (symbol or "").strip().upper()

    async def fetch(self, symbol: Optional[str]) -> PriceResult:
        sym = self.normalize_symbol(symbol)
        try:
            return await self._fetch(sym)
        except ExternalServiceError as e:
            logger.warning("%s price fetch failed symbol=%s error=%s", self.source, sym, e.detail)
            return self.failure(sym, e.detail)
        except Exception as e:
            logger.exception("%s price fetch crashed symbol=%s", self.source, sym)
            return self.failure(sym, str(e) or "Unknown error")

    async def _fetch(self, symbol: str) -> PriceResult:
        raise NotImplementedError
