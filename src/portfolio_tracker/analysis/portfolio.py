import asyncio
import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

from portfolio_tracker.analysis.correlation import build_correlation_matrix
from portfolio_tracker.analysis.returns import (
    InsufficientDataError,
    returns_from_history,
)
from portfolio_tracker.analysis.risk import RiskEngine, get_annualization
from portfolio_tracker.analysis.valuation import aggregate, enrich_holdings
from portfolio_tracker.analysis.weights import risk_weights
from portfolio_tracker.config import TrackerConfig
from portfolio_tracker.data.market_data import PriceProvider
from portfolio_tracker.models.holding import EnrichedHolding, Holding
from portfolio_tracker.models.metrics import (
    NavSnapshot,
    PortfolioMetrics,
    RiskMetrics,
)
from portfolio_tracker.models.quote import Quote

logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_NAV_SNAPSHOTS = 2


class InsufficientHistoryError(RuntimeError):
    """Too few NAV snapshots for a caller that insists on tracked history."""


class PortfolioAnalyzer:
    def __init__(
        self,
        provider: PriceProvider,
        config: TrackerConfig | None = None,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self.provider = provider
        self.config = config or TrackerConfig()
        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(
            max_workers=self.config.max_workers
        )

    def close(self) -> None:
        if self._owns_executor:
            self.executor.shutdown(wait=False)

    async def _fan_out(
        self, fetch: Callable[[str], T], tickers: Sequence[str]
    ) -> dict[str, T]:
        """Run ``fetch`` per ticker in the executor; drop individual failures."""
        loop = asyncio.get_running_loop()

        async def one(t: str) -> tuple[str, T]:
            return t, await loop.run_in_executor(self.executor, fetch, t)

        results = await asyncio.gather(
            *[one(t) for t in tickers],
            return_exceptions=True,
        )

        out: dict[str, T] = {}
        for t, r in zip(tickers, results):
            if isinstance(r, Exception):
                logger.warning("Fetch failed for %s: %s", t, r)
                continue
            out[t] = r[1]
        return out

    async def fetch_quotes(self, holdings: Sequence[Holding]) -> dict[str, Quote]:
        tickers = list(dict.fromkeys(h.ticker for h in holdings))
        fetched = await self._fan_out(self.provider.get_quote, tickers)
        return {t: q for t, q in fetched.items() if q is not None}

    async def valuation(
        self, holdings: Sequence[Holding]
    ) -> tuple[list[EnrichedHolding], PortfolioMetrics]:
        quotes = await self.fetch_quotes(holdings)
        missing = {h.ticker for h in holdings} - set(quotes)
        if missing:
            logger.warning(
                "Valuing at cost (no quote): %s", ", ".join(sorted(missing))
            )
        return aggregate(enrich_holdings(holdings, quotes))

    async def return_series(
        self, holdings: Sequence[Holding]
    ) -> dict[str, list[float]]:
        tickers = list(dict.fromkeys(h.ticker for h in holdings if h.is_active))
        days = self.config.history_days

        histories = await self._fan_out(
            lambda t: self.provider.get_history(t, days), tickers
        )

        series: dict[str, list[float]] = {}
        for t in tickers:
            points = histories.get(t)
            if not points:
                continue
            try:
                series[t] = returns_from_history(points)
            except InsufficientDataError:
                logger.info("Excluding %s from risk: insufficient history", t)
        return series

    async def risk(
        self,
        holdings: Sequence[EnrichedHolding],
        nav_history: Sequence[NavSnapshot] | None = None,
        require_nav_history: bool = False,
    ) -> RiskMetrics:
        if require_nav_history and len(nav_history or []) < MIN_NAV_SNAPSHOTS:
            raise InsufficientHistoryError(
                "Insufficient historical data for risk metrics. "
                f"Need at least {MIN_NAV_SNAPSHOTS} days of NAV tracking."
            )

        active = [h for h in holdings if h.is_active]
        if not active:
            return RiskMetrics()

        series = await self.return_series(active)
        weights = risk_weights(active, self.config.weight_basis, tickers=series)

        engine = RiskEngine(get_annualization(self.config.annualization))
        estimate = engine.compute(weights, series)
        matrix = build_correlation_matrix(
            active, series, top_k=self.config.correlation_top_k
        )

        return RiskMetrics(
            sharpe_ratio=round(estimate.sharpe_ratio, 2),
            volatility=estimate.volatility,
            annualized_return=estimate.annualized_return,
            correlation_matrix=matrix,
            top_holdings=matrix.tickers,
        )

    @staticmethod
    def nav_value(metrics: PortfolioMetrics) -> float:
        """Value to record in the daily NAV history."""
        return metrics.total_value
