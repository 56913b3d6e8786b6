import os
from typing import Literal

from pydantic import BaseModel, Field

# Engine constants. These are fixed and deliberately not part of TrackerConfig.
TRADING_DAYS_PER_YEAR = 252
RISK_FREE_RATE = 0.04
SHARPE_VOLATILITY_FLOOR = 0.01
MINOR_UNIT_DIVISOR = 100

BASE_CURRENCY = "USD"

# Currencies quoted in hundredths of their major unit, mapped to that unit.
MINOR_UNIT_CURRENCIES: dict[str, str] = {
    "GBp": "GBP",
    "GBX": "GBP",
    "ZAc": "ZAR",
    "ILA": "ILS",
}

MOCK_PRICES: dict[str, float] = {
    "AAPL": 185.92,
    "GOOGL": 142.38,
    "MSFT": 404.52,
    "AMZN": 174.42,
    "TSLA": 199.95,
    "NVDA": 726.13,
    "META": 468.12,
    "NFLX": 559.60,
    "BTC": 52145.20,
    "ETH": 2890.15,
}


class TrackerConfig(BaseModel):
    db_path: str = "data/portfolio.db"
    price_source: Literal["live", "mock"] = "live"

    cache_ttl_seconds: float = Field(default=60.0, ge=0.0)
    history_days: int = Field(default=30, ge=2)
    sparkline_days: int = Field(default=7, ge=1)
    correlation_top_k: int = Field(default=5, ge=1)
    nav_history_limit: int = Field(default=365, ge=2)
    max_workers: int = Field(default=4, ge=1)

    weight_basis: Literal["market_value", "cost_basis"] = "market_value"
    annualization: Literal["simple", "compound"] = "simple"

    @classmethod
    def from_env(cls, **overrides: object) -> "TrackerConfig":
        """Build a config from FOLIO_* environment variables (and .env)."""
        from dotenv import find_dotenv, load_dotenv

        load_dotenv(find_dotenv(usecwd=True))

        values: dict[str, object] = {}
        if db_path := os.environ.get("FOLIO_DB_PATH"):
            values["db_path"] = db_path
        if source := os.environ.get("FOLIO_PRICE_SOURCE"):
            values["price_source"] = source
        if ttl := os.environ.get("FOLIO_CACHE_TTL"):
            values["cache_ttl_seconds"] = ttl
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
