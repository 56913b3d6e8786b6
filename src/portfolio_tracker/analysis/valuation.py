import logging
from collections.abc import Sequence

from portfolio_tracker.analysis.currency import to_usd
from portfolio_tracker.models.holding import EnrichedHolding, Holding
from portfolio_tracker.models.metrics import PortfolioMetrics
from portfolio_tracker.models.quote import Quote

logger = logging.getLogger(__name__)


def fallback_quote(holding: Holding) -> Quote:
    """Stand-in quote priced at cost so the holding reports zero gain."""
    return Quote(ticker=holding.ticker, current_price=holding.purchase_price)


def _pct(numerator: float, denominator: float) -> float:
    return numerator / denominator * 100 if denominator > 0 else 0.0


def enrich_holding(holding: Holding, quote: Quote) -> EnrichedHolding:
    # purchase_price is stored already normalized to USD.
    unit_value = to_usd(quote.current_price, quote.currency, quote.exchange_rate)
    current_value = holding.quantity * unit_value
    cost_basis = holding.cost_basis
    gain_loss = current_value - cost_basis

    return EnrichedHolding(
        **holding.model_dump(),
        current_price=quote.current_price,
        current_value=current_value,
        gain_loss=gain_loss,
        gain_loss_percent=_pct(gain_loss, cost_basis),
        allocation=0.0,
        price_change=quote.change,
        price_change_percent=quote.change_percent,
        price_change_usd=to_usd(quote.change, quote.currency, quote.exchange_rate),
        currency=quote.currency,
        sparkline=list(quote.sparkline),
    )


def enrich_holdings(
    holdings: Sequence[Holding], quotes: dict[str, Quote]
) -> list[EnrichedHolding]:
    enriched: list[EnrichedHolding] = []
    for h in holdings:
        quote = quotes.get(h.ticker)
        if quote is None:
            logger.info("No quote for %s, valuing at cost", h.ticker)
            quote = fallback_quote(h)
        enriched.append(enrich_holding(h, quote))
    return enriched


def compute_metrics(holdings: Sequence[EnrichedHolding]) -> PortfolioMetrics:
    total_value = sum(h.current_value for h in holdings)
    total_cost = sum(h.cost_basis for h in holdings)
    total_gain_loss = total_value - total_cost

    # Each holding contributes its own USD-normalized absolute move.
    today_change = sum(h.quantity * h.price_change_usd for h in holdings)
    yesterday_value = total_value - today_change

    return PortfolioMetrics(
        total_value=total_value,
        total_cost=total_cost,
        total_gain_loss=total_gain_loss,
        total_gain_loss_percent=_pct(total_gain_loss, total_cost),
        today_change=today_change,
        today_change_percent=_pct(today_change, yesterday_value),
    )


def compute_allocations(holdings: Sequence[EnrichedHolding]) -> list[EnrichedHolding]:
    total_value = sum(h.current_value for h in holdings)
    return [
        h.model_copy(update={"allocation": _pct(h.current_value, total_value)})
        for h in holdings
    ]


def aggregate(
    holdings: Sequence[EnrichedHolding],
) -> tuple[list[EnrichedHolding], PortfolioMetrics]:
    """Fill in allocations and roll holdings up into portfolio metrics.

    Pure: the input holdings are not mutated.
    """
    return compute_allocations(holdings), compute_metrics(holdings)
