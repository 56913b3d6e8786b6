import logging
from datetime import date

import pandas as pd
import yfinance as yf

logger = logging.getLogger(__name__)


class YFinanceClient:
    def __init__(self, ticker: str) -> None:
        self.ticker_symbol = ticker
        self._ticker: yf.Ticker | None = None

    @property
    def ticker(self) -> yf.Ticker:
        if self._ticker is None:
            self._ticker = yf.Ticker(self.ticker_symbol)
        return self._ticker

    def get_quote(self) -> dict:
        try:
            info = dict(self.ticker.info)
        except Exception:
            logger.warning("Failed to fetch quote for %s", self.ticker_symbol)
            return {}
        info.setdefault("symbol", self.ticker_symbol)
        return info

    def get_history(self, start: date, interval: str = "1d") -> pd.DataFrame:
        try:
            df = self.ticker.history(start=start.isoformat(), interval=interval)
            if df.empty:
                logger.warning("Empty history for %s", self.ticker_symbol)
            return df
        except Exception:
            logger.warning("Failed to fetch history for %s", self.ticker_symbol)
            return pd.DataFrame()
