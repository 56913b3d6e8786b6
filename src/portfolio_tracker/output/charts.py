from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

import matplotlib
import matplotlib.dates as mdates
import matplotlib.pyplot as plt

from portfolio_tracker.models.holding import EnrichedHolding
from portfolio_tracker.models.metrics import NavSnapshot

matplotlib.use("Agg")

logger = logging.getLogger(__name__)

COLORS = {
    "nav": "#1f77b4",
    "fill": "#aec7e8",
}

# Slices smaller than this share are folded into "Other".
MIN_SLICE_PCT = 2.0


def _apply_style(ax: plt.Axes) -> None:
    ax.set_facecolor("white")
    ax.grid(True, alpha=0.3, linestyle="--")
    ax.tick_params(labelsize=9)


def _save_figure(fig: plt.Figure, path: Path) -> None:
    fig.savefig(
        path,
        dpi=150,
        bbox_inches="tight",
        facecolor="white",
        edgecolor="none",
    )
    plt.close(fig)


def allocation_slices(
    holdings: Sequence[EnrichedHolding],
) -> tuple[list[str], list[float]]:
    by_ticker: dict[str, float] = {}
    for h in holdings:
        if h.allocation > 0:
            key = h.display_ticker
            by_ticker[key] = by_ticker.get(key, 0.0) + h.allocation

    labels: list[str] = []
    sizes: list[float] = []
    other = 0.0
    for ticker, pct in sorted(by_ticker.items(), key=lambda kv: -kv[1]):
        if pct < MIN_SLICE_PCT:
            other += pct
            continue
        labels.append(ticker)
        sizes.append(pct)
    if other > 0:
        labels.append("Other")
        sizes.append(other)
    return labels, sizes


def generate_allocation_chart(
    holdings: Sequence[EnrichedHolding], output_dir: Path
) -> Path | None:
    try:
        labels, sizes = allocation_slices(holdings)
        if not sizes:
            return None

        fig, ax = plt.subplots(figsize=(7, 7))
        ax.pie(
            sizes,
            labels=labels,
            autopct="%1.1f%%",
            startangle=90,
            counterclock=False,
            wedgeprops={"linewidth": 1, "edgecolor": "white"},
        )
        ax.set_title("Allocation by Value", fontsize=14, fontweight="bold")
        ax.axis("equal")

        path = output_dir / "allocation.png"
        _save_figure(fig, path)
        return path
    except Exception:
        logger.warning("Failed to generate allocation chart", exc_info=True)
        return None


def generate_nav_chart(
    history: Sequence[NavSnapshot], output_dir: Path
) -> Path | None:
    try:
        if len(history) < 2:
            return None

        dates = [s.date for s in history]
        values = [s.value for s in history]

        fig, ax = plt.subplots(figsize=(12, 5))
        fig.suptitle("Net Asset Value", fontsize=14, fontweight="bold")
        ax.plot(dates, values, color=COLORS["nav"], linewidth=1.5, label="NAV")
        ax.fill_between(dates, values, min(values), color=COLORS["fill"], alpha=0.4)
        ax.set_ylabel("USD", fontsize=10)
        ax.xaxis.set_major_formatter(mdates.DateFormatter("%Y-%m-%d"))
        fig.autofmt_xdate()
        _apply_style(ax)

        path = output_dir / "nav_history.png"
        _save_figure(fig, path)
        return path
    except Exception:
        logger.warning("Failed to generate NAV chart", exc_info=True)
        return None


def generate_all_charts(
    holdings: Sequence[EnrichedHolding],
    history: Sequence[NavSnapshot],
    output_dir: Path,
) -> dict[str, Path]:
    output_dir.mkdir(parents=True, exist_ok=True)
    charts: dict[str, Path] = {}

    allocation = generate_allocation_chart(holdings, output_dir)
    if allocation:
        charts["allocation"] = allocation
    nav = generate_nav_chart(history, output_dir)
    if nav:
        charts["nav"] = nav

    return charts
