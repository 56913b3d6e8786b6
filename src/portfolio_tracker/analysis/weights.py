from collections.abc import Iterable, Sequence
from typing import Literal

from portfolio_tracker.models.holding import EnrichedHolding

WeightBasis = Literal["market_value", "cost_basis"]


def holding_value(holding: EnrichedHolding, basis: WeightBasis) -> float:
    if basis == "market_value":
        return holding.current_value
    if basis == "cost_basis":
        return holding.cost_basis
    raise ValueError(f"Unknown weight basis: {basis!r}")


def risk_weights(
    holdings: Sequence[EnrichedHolding],
    basis: WeightBasis = "market_value",
    tickers: Iterable[str] | None = None,
) -> dict[str, float]:
    """Fraction of total active value per ticker.

    The denominator covers every active holding, so weights restricted to
    ``tickers`` sum to less than 1 when some positions are excluded.
    Lots of the same ticker are summed.
    """
    active = [h for h in holdings if h.is_active]
    total = sum(holding_value(h, basis) for h in active)
    if total <= 0:
        return {}

    wanted = set(tickers) if tickers is not None else None
    weights: dict[str, float] = {}
    for h in active:
        if wanted is not None and h.ticker not in wanted:
            continue
        share = holding_value(h, basis) / total
        weights[h.ticker] = weights.get(h.ticker, 0.0) + share
    return weights
