from datetime import datetime
import math
from typing import Any, Dict, List, Optional

import httpx


def safe_float(x: Any) -> Optional[float]:
    """float(x), or None for missing / non-numeric / non-finite input."""
    if x is None or isinstance(x, bool):
        return None
    try:
        v = float(x)
    except (TypeError, ValueError):
        return None
    return v if math.isfinite(v) else None


def safe_div(n: float, d: float) -> float:
    # zero denominator -> 0, never inf / nan
    if not d:
        return 0.0
    return n / d


def pct(n: float, d: float) -> float:
    return safe_div(n, d) * 100.0


def round2(x: float) -> float:
    return round(float(x), 2)


def safe_json(resp: httpx.Response) -> Optional[Dict[str, Any]]:
    try:
        data = resp.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt else None


def apportion(values: List[float], total: float, places: int = 2) -> List[float]:
    """
    Round `values` to `places` decimals so they still add up to round(total, places).
    Largest-remainder method: floor everything, hand the leftover units to the
    biggest fractional parts.
    """
    if not values:
        return []
    scale = 10 ** places
    scaled = [v * scale for v in values]
    units = [math.floor(s) for s in scaled]
    leftover = round(total * scale) - sum(units)

    order = sorted(range(len(values)), key=lambda i: scaled[i] - units[i], reverse=True)
    if leftover < 0:
        order = list(reversed(order))
    step = 1 if leftover > 0 else -1
    for i in order[: abs(leftover)]:
        units[i] += step
    return [u / scale for u in units]
