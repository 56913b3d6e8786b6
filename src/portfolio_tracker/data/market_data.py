import logging
from collections.abc import Callable
from datetime import date, timedelta
from typing import Protocol

from portfolio_tracker.analysis.currency import (
    fx_ticker,
    major_currency,
    multiplier_from_quoted_rate,
)
from portfolio_tracker.config import BASE_CURRENCY, TrackerConfig
from portfolio_tracker.data.cache import QuoteCache
from portfolio_tracker.data.mock_data import MockMarketData
from portfolio_tracker.data.parsing import parse_history, parse_quote
from portfolio_tracker.data.yfinance_client import YFinanceClient
from portfolio_tracker.models.quote import HistoryPoint, Quote

logger = logging.getLogger(__name__)


class PriceProvider(Protocol):
    def get_quote(self, ticker: str) -> Quote | None: ...

    def get_history(self, ticker: str, days: int) -> list[HistoryPoint]: ...


class LiveMarketData:
    """yfinance-backed provider with quote caching and FX resolution.

    ``Quote.exchange_rate`` is always the multiplier for the major unit;
    minor-unit scaling happens in the currency normalizer.
    """

    def __init__(
        self,
        cache: QuoteCache,
        sparkline_days: int = 7,
        client_factory: Callable[[str], YFinanceClient] = YFinanceClient,
    ) -> None:
        self.cache = cache
        self.sparkline_days = sparkline_days
        self._client_factory = client_factory

    def get_quote(self, ticker: str) -> Quote | None:
        cached = self.cache.get(f"quote:{ticker}")
        if cached is not None:
            return cached

        client = self._client_factory(ticker)
        quote = parse_quote(client.get_quote(), ticker)
        if quote is None:
            logger.warning("No usable quote for %s", ticker)
            return None

        updates: dict[str, object] = {}
        if quote.currency != BASE_CURRENCY:
            rate = self.exchange_rate(quote.currency)
            if rate is None:
                logger.warning(
                    "No %s rate for %s, leaving unconverted",
                    major_currency(quote.currency),
                    ticker,
                )
            updates["exchange_rate"] = rate

        sparkline = self._sparkline(client)
        if sparkline:
            updates["sparkline"] = sparkline

        quote = quote.model_copy(update=updates)
        self.cache.set(f"quote:{ticker}", quote)
        return quote

    def exchange_rate(self, currency: str) -> float | None:
        pair = fx_ticker(currency)
        cached = self.cache.get(f"fx:{pair}")
        if cached is not None:
            return cached

        fx_quote = parse_quote(self._client_factory(pair).get_quote(), pair)
        rate = multiplier_from_quoted_rate(fx_quote.current_price if fx_quote else None)
        if rate is not None:
            self.cache.set(f"fx:{pair}", rate)
        return rate

    def get_history(self, ticker: str, days: int) -> list[HistoryPoint]:
        start = date.today() - timedelta(days=days)
        return parse_history(self._client_factory(ticker).get_history(start))

    def _sparkline(self, client: YFinanceClient) -> list[float]:
        start = date.today() - timedelta(days=self.sparkline_days)
        points = parse_history(client.get_history(start))
        return [p.close for p in points if p.close is not None]


def make_provider(
    config: TrackerConfig, cache: QuoteCache | None = None
) -> PriceProvider:
    if config.price_source == "mock":
        logger.info("Using deterministic mock market data")
        return MockMarketData(sparkline_days=config.sparkline_days)
    return LiveMarketData(
        cache=cache if cache is not None else QuoteCache(config.cache_ttl_seconds),
        sparkline_days=config.sparkline_days,
    )
