"""Native-currency to USD conversion.

Exchange rates are always supplied by the caller as a multiplier converting
one unit of the quote's *major* currency into USD. Nothing here does I/O.
"""

from portfolio_tracker.config import (
    BASE_CURRENCY,
    MINOR_UNIT_CURRENCIES,
    MINOR_UNIT_DIVISOR,
)


def is_minor_unit(currency: str | None) -> bool:
    return currency in MINOR_UNIT_CURRENCIES


def major_currency(currency: str | None) -> str:
    """Map a minor-unit code (e.g. GBp) to its major unit (GBP)."""
    if not currency:
        return BASE_CURRENCY
    return MINOR_UNIT_CURRENCIES.get(currency, currency)


def fx_ticker(currency: str) -> str:
    """Synthetic USD->currency pair quoted by the price provider."""
    return f"{BASE_CURRENCY}{major_currency(currency)}=X"


def multiplier_from_quoted_rate(quoted_rate: float | None) -> float | None:
    """Invert a quoted USD->currency rate into a currency->USD multiplier."""
    if not quoted_rate:
        return None
    return 1.0 / quoted_rate


def effective_multiplier(currency: str | None, exchange_rate: float | None) -> float:
    if not currency or currency == BASE_CURRENCY:
        return 1.0
    if not exchange_rate:
        return 1.0
    if is_minor_unit(currency):
        return exchange_rate / MINOR_UNIT_DIVISOR
    return exchange_rate


def to_usd(
    native_price: float,
    currency: str | None = BASE_CURRENCY,
    exchange_rate: float | None = None,
) -> float:
    """Convert a native-currency amount to USD.

    A missing or zero ``exchange_rate`` means no conversion. Minor-unit
    currencies compose the major-unit rate with a further 1/100 scaling.
    """
    return native_price * effective_multiplier(currency, exchange_rate)
