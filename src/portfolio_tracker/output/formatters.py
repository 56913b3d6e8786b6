import math

SPARK_CHARS = "▁▂▃▄▅▆▇█"


def _missing(value: float | None) -> bool:
    return value is None or not math.isfinite(value)


def fmt_pct(value: float | None, decimals: int = 2) -> str:
    if _missing(value):
        return "N/A"
    return f"{value:+.{decimals}f}%"


def fmt_fraction_pct(value: float | None, decimals: int = 1) -> str:
    """0.153 -> '15.3%'."""
    if _missing(value):
        return "N/A"
    return f"{value * 100:.{decimals}f}%"


def fmt_number(value: float | None, decimals: int = 2) -> str:
    if _missing(value):
        return "N/A"
    return f"{value:,.{decimals}f}"


def fmt_usd(value: float | None) -> str:
    if _missing(value):
        return "N/A"
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def fmt_signed_usd(value: float | None) -> str:
    if _missing(value):
        return "N/A"
    sign = "-" if value < 0 else "+"
    return f"{sign}${abs(value):,.2f}"


def fmt_price(value: float | None, currency: str = "USD") -> str:
    if _missing(value):
        return "N/A"
    if currency == "USD":
        return fmt_usd(value)
    return f"{value:,.2f} {currency}"


def gain_color(value: float | None) -> str:
    if _missing(value) or value == 0:
        return "white"
    return "green" if value > 0 else "red"


def correlation_color(rho: float) -> str:
    if rho >= 0.8:
        return "bold red"
    if rho >= 0.5:
        return "orange3"
    if rho <= -0.5:
        return "cyan"
    return "white"


def sparkline(values: list[float]) -> str:
    if not values:
        return ""
    lo, hi = min(values), max(values)
    if hi == lo:
        return SPARK_CHARS[0] * len(values)
    scale = (len(SPARK_CHARS) - 1) / (hi - lo)
    return "".join(SPARK_CHARS[round((v - lo) * scale)] for v in values)
