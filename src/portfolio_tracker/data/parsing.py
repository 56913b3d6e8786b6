"""Map raw provider payloads onto Quote / HistoryPoint.

Anything malformed is treated as missing data: the parsers return None
or an empty list instead of raising.
"""

import logging
import math
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import pandas as pd

from portfolio_tracker.models.quote import HistoryPoint, Quote

logger = logging.getLogger(__name__)

PRICE_KEYS = ("regularMarketPrice", "currentPrice", "lastPrice")


def _to_float(val: Any) -> float | None:
    if val is None or isinstance(val, bool):
        return None
    try:
        f = float(val)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def _first(raw: Mapping[str, Any], keys: tuple[str, ...]) -> float | None:
    for key in keys:
        value = _to_float(raw.get(key))
        if value is not None:
            return value
    return None


def _parse_timestamp(val: Any) -> datetime:
    if isinstance(val, datetime):
        return val if val.tzinfo else val.replace(tzinfo=UTC)
    ts = _to_float(val)
    if ts is not None:
        try:
            return datetime.fromtimestamp(ts, UTC)
        except (OverflowError, OSError, ValueError):
            pass
    return datetime.now(UTC)


def parse_quote(
    raw: Mapping[str, Any] | None, ticker: str | None = None
) -> Quote | None:
    if not raw:
        return None

    symbol = raw.get("symbol") or ticker
    price = _first(raw, PRICE_KEYS)
    if not symbol or price is None or price <= 0:
        logger.debug("Discarding malformed quote for %s", symbol or ticker)
        return None

    currency = raw.get("currency")
    if not isinstance(currency, str) or not currency:
        currency = "USD"

    return Quote(
        ticker=str(symbol),
        current_price=price,
        change=_to_float(raw.get("regularMarketChange")) or 0.0,
        change_percent=_to_float(raw.get("regularMarketChangePercent")) or 0.0,
        currency=currency,
        last_updated=_parse_timestamp(raw.get("regularMarketTime")),
    )


def parse_history(frame: pd.DataFrame | None) -> list[HistoryPoint]:
    if frame is None or frame.empty or "Close" not in frame.columns:
        return []

    points: list[HistoryPoint] = []
    for idx, close in frame["Close"].items():
        value = _to_float(close)
        if value is None:
            continue
        try:
            ts = pd.Timestamp(idx)
        except (TypeError, ValueError):
            logger.debug("Skipping history row with bad index %r", idx)
            continue
        if ts.tzinfo is None:
            ts = ts.tz_localize(UTC)
        points.append(HistoryPoint(timestamp=ts.to_pydatetime(), close=value))

    points.sort(key=lambda p: p.timestamp)
    return points


def closes(points: list[HistoryPoint]) -> list[float | None]:
    return [p.close for p in points]
