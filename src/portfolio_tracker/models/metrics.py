from datetime import date

from pydantic import BaseModel


class PortfolioMetrics(BaseModel):
    total_value: float = 0.0
    total_cost: float = 0.0
    total_gain_loss: float = 0.0
    total_gain_loss_percent: float = 0.0
    today_change: float = 0.0
    today_change_percent: float = 0.0


class CorrelationMatrix(BaseModel):
    tickers: list[str] = []
    matrix: list[list[float]] = []

    def get(self, a: str, b: str) -> float:
        i = self.tickers.index(a)
        j = self.tickers.index(b)
        return self.matrix[i][j]

    def rows(self) -> list[dict[str, float | str]]:
        """Row-per-ticker records: {"ticker": t, <other>: value, ...}."""
        out: list[dict[str, float | str]] = []
        for t, row in zip(self.tickers, self.matrix):
            record: dict[str, float | str] = {"ticker": t}
            record.update(zip(self.tickers, row))
            out.append(record)
        return out


class RiskEstimate(BaseModel):
    """Engine output before presentation concerns (rounding, matrix)."""

    volatility: float = 0.0
    annualized_return: float = 0.0
    sharpe_ratio: float = 0.0
    daily_variance: float = 0.0
    tickers: list[str] = []


class RiskMetrics(BaseModel):
    sharpe_ratio: float = 0.0
    volatility: float = 0.0
    annualized_return: float = 0.0
    correlation_matrix: CorrelationMatrix = CorrelationMatrix()
    top_holdings: list[str] = []


class NavSnapshot(BaseModel):
    date: date
    value: float


class RebalanceRow(BaseModel):
    holding_id: str
    ticker: str
    current_weight: float
    target_weight: float
    drift: float
    drift_value: float
