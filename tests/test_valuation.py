from datetime import date

import pytest

from portfolio_tracker.analysis.valuation import (
    aggregate,
    compute_metrics,
    enrich_holding,
    enrich_holdings,
    fallback_quote,
)
from portfolio_tracker.models.holding import Holding
from portfolio_tracker.models.quote import Quote


def make_holding(
    ticker: str = "AAPL",
    quantity: float = 10,
    price: float = 100.0,
    hid: str | None = None,
) -> Holding:
    return Holding(
        id=hid or ticker.lower(),
        ticker=ticker,
        name=ticker,
        quantity=quantity,
        purchase_price=price,
        purchase_date=date(2024, 1, 2),
    )


class TestEnrichHolding:
    def test_usd_gain(self):
        h = make_holding(quantity=10, price=100.0)
        e = enrich_holding(h, Quote(ticker="AAPL", current_price=120.0))
        assert e.current_value == pytest.approx(1200.0)
        assert e.gain_loss == pytest.approx(200.0)
        assert e.gain_loss_percent == pytest.approx(20.0)
        assert e.allocation == 0.0
        assert e.current_price == 120.0

    def test_zero_cost_basis(self):
        h = make_holding(price=0.0)
        e = enrich_holding(h, Quote(ticker="AAPL", current_price=50.0))
        assert e.gain_loss_percent == 0.0
        assert e.gain_loss == pytest.approx(500.0)

    def test_minor_unit_currency(self):
        h = make_holding("BP.L", quantity=100, price=3.0)
        quote = Quote(
            ticker="BP.L",
            current_price=250.0,
            change=10.0,
            currency="GBp",
            exchange_rate=1.25,
        )
        e = enrich_holding(h, quote)
        assert e.current_value == pytest.approx(312.5)
        assert e.price_change == 10.0
        assert e.price_change_usd == pytest.approx(0.125)
        assert e.currency == "GBp"

    def test_native_price_kept(self):
        h = make_holding("BBCA.JK", quantity=1000, price=0.6)
        quote = Quote(
            ticker="BBCA.JK",
            current_price=9500.0,
            currency="IDR",
            exchange_rate=1 / 15800,
        )
        e = enrich_holding(h, quote)
        assert e.current_price == 9500.0
        assert e.current_value == pytest.approx(9500.0 * 1000 / 15800)

    def test_fallback_quote_reports_no_gain(self):
        h = make_holding(price=87.5)
        e = enrich_holding(h, fallback_quote(h))
        assert e.gain_loss == 0.0
        assert e.current_value == pytest.approx(875.0)


class TestEnrichHoldings:
    def test_missing_quote_uses_fallback(self):
        holdings = [make_holding("AAPL"), make_holding("ZZZZ", price=5.0)]
        quotes = {"AAPL": Quote(ticker="AAPL", current_price=110.0)}
        enriched = enrich_holdings(holdings, quotes)
        assert len(enriched) == 2
        assert enriched[1].current_value == pytest.approx(50.0)
        assert enriched[1].gain_loss == 0.0

    def test_lookup_is_case_preserving(self):
        holdings = [make_holding("btc-usd", price=1.0, quantity=1)]
        quotes = {"btc-usd": Quote(ticker="BTC-USD", current_price=3.0)}
        enriched = enrich_holdings(holdings, quotes)
        assert enriched[0].current_value == pytest.approx(3.0)
        assert enriched[0].display_ticker == "BTC-USD"


class TestAggregate:
    def _portfolio(self):
        holdings = [
            make_holding("AAPL", quantity=10, price=100.0),
            make_holding("MSFT", quantity=5, price=300.0),
            make_holding("NVDA", quantity=2, price=500.0),
        ]
        quotes = {
            "AAPL": Quote(ticker="AAPL", current_price=120.0, change=2.0),
            "MSFT": Quote(ticker="MSFT", current_price=280.0, change=-4.0),
            "NVDA": Quote(ticker="NVDA", current_price=700.0, change=10.0),
        }
        return enrich_holdings(holdings, quotes)

    def test_totals(self):
        _, m = aggregate(self._portfolio())
        assert m.total_value == pytest.approx(1200 + 1400 + 1400)
        assert m.total_cost == pytest.approx(1000 + 1500 + 1000)
        assert m.total_gain_loss == pytest.approx(500.0)
        assert m.total_gain_loss_percent == pytest.approx(500 / 3500 * 100)

    def test_today_change(self):
        _, m = aggregate(self._portfolio())
        # 10*2 + 5*(-4) + 2*10
        assert m.today_change == pytest.approx(20.0)
        assert m.today_change_percent == pytest.approx(20.0 / (4000 - 20) * 100)

    def test_today_change_is_currency_normalized(self):
        h = make_holding("BP.L", quantity=100, price=3.0)
        quote = Quote(
            ticker="BP.L",
            current_price=250.0,
            change=10.0,
            currency="GBp",
            exchange_rate=1.25,
        )
        m = compute_metrics([enrich_holding(h, quote)])
        assert m.today_change == pytest.approx(12.5)

    def test_allocations_sum_to_100(self):
        holdings, _ = aggregate(self._portfolio())
        assert sum(h.allocation for h in holdings) == pytest.approx(100.0, rel=1e-9)
        assert holdings[0].allocation == pytest.approx(30.0)

    def test_zero_total_value(self):
        h = make_holding(price=0.0)
        e = enrich_holding(h, Quote(ticker="AAPL", current_price=0.0))
        holdings, m = aggregate([e, e.model_copy(update={"id": "other"})])
        assert all(x.allocation == 0 for x in holdings)
        assert m.total_value == 0
        assert m.total_cost == 0
        assert m.total_gain_loss == 0
        assert m.total_gain_loss_percent == 0
        assert m.today_change == 0
        assert m.today_change_percent == 0

    def test_empty_portfolio(self):
        holdings, m = aggregate([])
        assert holdings == []
        assert m.total_value == 0

    def test_deterministic_and_pure(self):
        enriched = self._portfolio()
        first = aggregate(enriched)
        second = aggregate(enriched)
        assert first == second
        assert all(h.allocation == 0.0 for h in enriched)
