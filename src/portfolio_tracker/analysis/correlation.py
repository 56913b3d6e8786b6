import logging
from collections.abc import Mapping, Sequence

from portfolio_tracker.analysis.risk import MIN_OVERLAP, pearson_correlation
from portfolio_tracker.models.holding import EnrichedHolding
from portfolio_tracker.models.metrics import CorrelationMatrix

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 5


def top_tickers(holdings: Sequence[EnrichedHolding], top_k: int) -> list[str]:
    """Tickers with the largest combined current value across their lots.

    ``sorted`` is stable, so equal totals keep first-seen order.
    """
    totals: dict[str, float] = {}
    for h in holdings:
        totals[h.ticker] = totals.get(h.ticker, 0.0) + h.current_value
    ranked = sorted(totals, key=lambda t: totals[t], reverse=True)
    return ranked[:top_k]


def _cell(
    t1: str,
    t2: str,
    return_series: Mapping[str, Sequence[float]],
) -> float:
    r1 = return_series.get(t1, [])
    r2 = return_series.get(t2, [])
    if t1 == t2:
        return 1.0 if len(r1) >= MIN_OVERLAP else 0.0
    # Display-only rounding; the risk engine never sees these values.
    return round(pearson_correlation(r1, r2), 2) + 0.0


def build_correlation_matrix(
    holdings: Sequence[EnrichedHolding],
    return_series: Mapping[str, Sequence[float]],
    top_k: int = DEFAULT_TOP_K,
) -> CorrelationMatrix:
    tickers = top_tickers(holdings, top_k)
    matrix = [[_cell(t1, t2, return_series) for t2 in tickers] for t1 in tickers]
    logger.debug("Correlation matrix over %s", tickers)
    return CorrelationMatrix(tickers=tickers, matrix=matrix)
