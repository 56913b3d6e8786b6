import math
from collections.abc import Sequence

from portfolio_tracker.models.quote import HistoryPoint


class InsufficientDataError(ValueError):
    """Raised when a price series cannot yield any return."""


def _usable(value: float | None) -> bool:
    return value is not None and math.isfinite(value)


def to_returns(closes: Sequence[float | None]) -> list[float]:
    """Simple period returns from chronologically ascending closes.

    A return is produced only for adjacent pairs where both closes are
    present and the earlier one is non-zero; gaps are skipped, not
    zero-filled.
    """
    if sum(1 for c in closes if _usable(c)) < 2:
        raise InsufficientDataError(
            f"need at least 2 usable closes, got {len(closes)} points"
        )

    returns: list[float] = []
    for prev, cur in zip(closes, closes[1:]):
        if not (_usable(prev) and _usable(cur)) or prev == 0:
            continue
        returns.append(cur / prev - 1)

    if not returns:
        raise InsufficientDataError("no adjacent pair of usable closes")
    return returns


def returns_from_history(points: Sequence[HistoryPoint]) -> list[float]:
    ordered = sorted(points, key=lambda p: p.timestamp)
    return to_returns([p.close for p in ordered])
