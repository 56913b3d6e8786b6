"""Deterministic synthetic market data, keyed on the ticker string.

Used when the configured price source is ``mock``: same inputs always give
the same quotes and histories, so dashboards do not jump on refresh.
"""

import math
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from portfolio_tracker.config import MOCK_PRICES
from portfolio_tracker.models.quote import HistoryPoint, Quote


def mock_price(ticker: str) -> float:
    symbol = ticker.upper()
    if symbol in MOCK_PRICES:
        return MOCK_PRICES[symbol]
    seed = sum(ord(c) for c in symbol)
    return float(seed % 500 + 50)


def _shape(i: int, points: int) -> float:
    trend = (i / points) * 0.05
    wave = math.sin(i * 0.5) * 0.02
    return 0.95 + trend + wave


def mock_closes(ticker: str, points: int) -> list[float]:
    """Trend plus sine wave, scaled so the final close is the mock price."""
    if points <= 0:
        return []
    base = mock_price(ticker)
    last = _shape(points - 1, points)
    return [base * _shape(i, points) / last for i in range(points)]


class MockMarketData:
    def __init__(
        self,
        sparkline_days: int = 7,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.sparkline_days = sparkline_days
        self._clock = clock

    def get_quote(self, ticker: str) -> Quote | None:
        closes = mock_closes(ticker, max(self.sparkline_days, 2))
        price, previous = closes[-1], closes[-2]
        change = price - previous
        return Quote(
            ticker=ticker,
            current_price=price,
            change=change,
            change_percent=change / previous * 100,
            currency="USD",
            sparkline=closes[-self.sparkline_days :],
            last_updated=self._clock(),
        )

    def get_history(self, ticker: str, days: int) -> list[HistoryPoint]:
        now = self._clock()
        closes = mock_closes(ticker, days)
        return [
            HistoryPoint(timestamp=now - timedelta(days=days - 1 - i), close=c)
            for i, c in enumerate(closes)
        ]
