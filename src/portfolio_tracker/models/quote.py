from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


class Quote(BaseModel):
    model_config = ConfigDict(frozen=True)

    ticker: str
    current_price: float
    change: float = 0.0
    change_percent: float = 0.0
    currency: str = "USD"
    exchange_rate: float | None = None
    sparkline: list[float] = []
    last_updated: datetime = Field(default_factory=lambda: datetime.now(UTC))


class HistoryPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    close: float | None = None
