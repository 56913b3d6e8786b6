from datetime import date

from pydantic import BaseModel, Field


class Holding(BaseModel):
    id: str
    ticker: str
    name: str = ""
    quantity: float = Field(ge=0.0)
    purchase_price: float = Field(ge=0.0)
    purchase_date: date
    target_weight: float | None = Field(default=None, ge=0.0, le=100.0)

    @property
    def display_ticker(self) -> str:
        return self.ticker.upper()

    @property
    def display_name(self) -> str:
        return self.name or self.display_ticker

    @property
    def is_active(self) -> bool:
        return self.quantity > 0

    @property
    def cost_basis(self) -> float:
        return self.quantity * self.purchase_price


class EnrichedHolding(Holding):
    """A holding valued against a quote. Derived fields are never persisted."""

    current_price: float = 0.0
    current_value: float = 0.0
    gain_loss: float = 0.0
    gain_loss_percent: float = 0.0
    allocation: float = 0.0
    price_change: float = 0.0
    price_change_percent: float = 0.0
    price_change_usd: float = 0.0
    currency: str = "USD"
    sparkline: list[float] = []
