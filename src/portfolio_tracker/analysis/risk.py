"""Covariance-based portfolio risk (Modern Portfolio Theory).

Weights are fractions of portfolio value per ticker; return series are
daily simple returns. Everything here is a pure function of its inputs.
"""

import logging
import math
from collections.abc import Mapping, Sequence
from typing import Protocol

import numpy as np

from portfolio_tracker.config import (
    RISK_FREE_RATE,
    SHARPE_VOLATILITY_FLOOR,
    TRADING_DAYS_PER_YEAR,
)
from portfolio_tracker.models.metrics import RiskEstimate

logger = logging.getLogger(__name__)

MIN_OVERLAP = 2

# Largest finite value a compounded annual return is allowed to take.
ANNUAL_RETURN_CAP = float(np.finfo(np.float64).max)


class AnnualizationStrategy(Protocol):
    def annualize(self, daily_return: float) -> float: ...


class SimpleAnnualization:
    """Linear scaling by trading days; no compounding."""

    def annualize(self, daily_return: float) -> float:
        return daily_return * TRADING_DAYS_PER_YEAR


class CompoundAnnualization:
    def annualize(self, daily_return: float) -> float:
        if daily_return <= -1:
            return -1.0
        try:
            return math.expm1(TRADING_DAYS_PER_YEAR * math.log1p(daily_return))
        except OverflowError:
            logger.warning("Compounded return overflows; clamping")
            return ANNUAL_RETURN_CAP


ANNUALIZATION_STRATEGIES: dict[str, type[AnnualizationStrategy]] = {
    "simple": SimpleAnnualization,
    "compound": CompoundAnnualization,
}


def get_annualization(name: str) -> AnnualizationStrategy:
    try:
        return ANNUALIZATION_STRATEGIES[name]()
    except KeyError:
        raise ValueError(f"Unknown annualization mode: {name!r}") from None


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """Correlation over the most recent common window of two series.

    The longer series is truncated from the head so both end on the same
    observation. Fewer than two overlapping points, or a flat series on
    either side, yields 0.
    """
    n = min(len(x), len(y))
    if n < MIN_OVERLAP:
        return 0.0

    a = np.asarray(x[len(x) - n :], dtype=float)
    b = np.asarray(y[len(y) - n :], dtype=float)
    if np.ptp(a) == 0 or np.ptp(b) == 0:
        return 0.0

    da = a - a.mean()
    db = b - b.mean()
    ss_a = float(da @ da)
    ss_b = float(db @ db)
    if ss_a == 0 or ss_b == 0:
        return 0.0
    return float(da @ db) / math.sqrt(ss_a * ss_b)


def mean_return(returns: Sequence[float]) -> float:
    return float(np.mean(returns)) if len(returns) else 0.0


def daily_volatility(returns: Sequence[float]) -> float:
    """Population standard deviation (divides by N)."""
    return float(np.std(returns, ddof=0)) if len(returns) else 0.0


def covariance(a: Sequence[float], b: Sequence[float]) -> float:
    return daily_volatility(a) * daily_volatility(b) * pearson_correlation(a, b)


def usable_series(
    return_series: Mapping[str, Sequence[float]],
) -> dict[str, Sequence[float]]:
    usable = {}
    for ticker, returns in return_series.items():
        if len(returns) < MIN_OVERLAP:
            logger.debug("Excluding %s from risk: %d returns", ticker, len(returns))
            continue
        usable[ticker] = returns
    return usable


def portfolio_variance(
    weights: Mapping[str, float],
    return_series: Mapping[str, Sequence[float]],
) -> float:
    """Daily variance as the full double sum of w_i * w_j * Cov(i, j)."""
    tickers = list(return_series)
    vols = {t: daily_volatility(return_series[t]) for t in tickers}

    variance = 0.0
    for t1 in tickers:
        w1 = weights.get(t1, 0.0)
        for t2 in tickers:
            w2 = weights.get(t2, 0.0)
            rho = pearson_correlation(return_series[t1], return_series[t2])
            variance += w1 * w2 * vols[t1] * vols[t2] * rho
    return variance


def sharpe_ratio(annualized_return: float, annualized_volatility: float) -> float:
    if annualized_volatility <= SHARPE_VOLATILITY_FLOOR:
        return 0.0
    return (annualized_return - RISK_FREE_RATE) / annualized_volatility


class RiskEngine:
    def __init__(self, annualization: AnnualizationStrategy | None = None) -> None:
        self.annualization = annualization or SimpleAnnualization()

    def compute(
        self,
        weights: Mapping[str, float],
        return_series: Mapping[str, Sequence[float]],
    ) -> RiskEstimate:
        for ticker, w in weights.items():
            if w < 0 or not math.isfinite(w):
                raise ValueError(f"Invalid weight for {ticker}: {w}")

        series = usable_series(return_series)
        if not series:
            return RiskEstimate()

        # Tiny negative values can appear when pairwise windows differ.
        variance = max(portfolio_variance(weights, series), 0.0)
        volatility = math.sqrt(variance) * math.sqrt(TRADING_DAYS_PER_YEAR)

        weighted_daily = sum(
            weights.get(t, 0.0) * mean_return(r) for t, r in series.items()
        )
        annualized_return = self.annualization.annualize(weighted_daily)

        return RiskEstimate(
            volatility=volatility,
            annualized_return=annualized_return,
            sharpe_ratio=sharpe_ratio(annualized_return, volatility),
            daily_variance=variance,
            tickers=list(series),
        )


def compute_risk(
    weights: Mapping[str, float],
    return_series: Mapping[str, Sequence[float]],
    annualization: AnnualizationStrategy | None = None,
) -> RiskEstimate:
    return RiskEngine(annualization).compute(weights, return_series)
