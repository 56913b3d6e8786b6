from collections.abc import Sequence

from portfolio_tracker.models.holding import EnrichedHolding
from portfolio_tracker.models.metrics import RebalanceRow


def target_weight_total(holdings: Sequence[EnrichedHolding]) -> float:
    return sum(h.target_weight or 0.0 for h in holdings)


def compute_rebalance(
    holdings: Sequence[EnrichedHolding], total_value: float
) -> list[RebalanceRow]:
    """Drift of each holding's allocation from its target weight.

    Positive drift means overweight; ``drift_value`` is the USD amount to
    sell (or, when negative, buy) to get back on target.
    """
    rows: list[RebalanceRow] = []
    for h in holdings:
        target = h.target_weight or 0.0
        drift = h.allocation - target
        rows.append(
            RebalanceRow(
                holding_id=h.id,
                ticker=h.display_ticker,
                current_weight=h.allocation,
                target_weight=target,
                drift=drift,
                drift_value=drift / 100 * total_value,
            )
        )
    return rows
