from portfolio_tracker.models.holding import EnrichedHolding, Holding
from portfolio_tracker.models.metrics import (
    CorrelationMatrix,
    NavSnapshot,
    PortfolioMetrics,
    RebalanceRow,
    RiskEstimate,
    RiskMetrics,
)
from portfolio_tracker.models.quote import HistoryPoint, Quote

__all__ = [
    "CorrelationMatrix",
    "EnrichedHolding",
    "HistoryPoint",
    "Holding",
    "NavSnapshot",
    "PortfolioMetrics",
    "Quote",
    "RebalanceRow",
    "RiskEstimate",
    "RiskMetrics",
]
