from collections.abc import Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from portfolio_tracker.models.holding import EnrichedHolding
from portfolio_tracker.models.metrics import (
    PortfolioMetrics,
    RebalanceRow,
    RiskMetrics,
)
from portfolio_tracker.output.formatters import (
    correlation_color,
    fmt_fraction_pct,
    fmt_number,
    fmt_pct,
    fmt_price,
    fmt_signed_usd,
    fmt_usd,
    gain_color,
    sparkline,
)


class DashboardRenderer:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_summary(self, metrics: PortfolioMetrics) -> None:
        body = Text()
        body.append("Net worth  ", style="cyan")
        body.append(fmt_usd(metrics.total_value), style="bold")
        body.append("\nToday      ", style="cyan")
        body.append(
            f"{fmt_signed_usd(metrics.today_change)} "
            f"({fmt_pct(metrics.today_change_percent)})",
            style=gain_color(metrics.today_change),
        )
        body.append("\nTotal P/L  ", style="cyan")
        body.append(
            f"{fmt_signed_usd(metrics.total_gain_loss)} "
            f"({fmt_pct(metrics.total_gain_loss_percent)})",
            style=gain_color(metrics.total_gain_loss),
        )
        body.append("\nCost basis ", style="cyan")
        body.append(fmt_usd(metrics.total_cost))
        self.console.print()
        self.console.print(Panel(body, title="Portfolio", style="cyan"))

    def render_holdings(self, holdings: Sequence[EnrichedHolding]) -> None:
        table = Table(title="Holdings", show_header=True)
        table.add_column("ID", style="dim")
        table.add_column("Ticker", style="cyan")
        table.add_column("Name")
        table.add_column("Qty", justify="right")
        table.add_column("Price", justify="right")
        table.add_column("Day", justify="right")
        table.add_column("Value", justify="right")
        table.add_column("P/L", justify="right")
        table.add_column("Alloc", justify="right")
        table.add_column("Trend")

        ranked = sorted(holdings, key=lambda h: h.current_value, reverse=True)
        for h in ranked:
            table.add_row(
                h.id[:8],
                h.display_ticker,
                h.display_name,
                fmt_number(h.quantity, 4).rstrip("0").rstrip("."),
                fmt_price(h.current_price, h.currency),
                Text(
                    fmt_pct(h.price_change_percent),
                    style=gain_color(h.price_change),
                ),
                fmt_usd(h.current_value),
                Text(
                    f"{fmt_signed_usd(h.gain_loss)} ({fmt_pct(h.gain_loss_percent)})",
                    style=gain_color(h.gain_loss),
                ),
                f"{h.allocation:.1f}%",
                sparkline(h.sparkline),
            )
        self.console.print(table)

    def render_risk(self, risk: RiskMetrics) -> None:
        table = Table(title="Risk", show_header=True)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right")
        table.add_row("Sharpe ratio", f"{risk.sharpe_ratio:.2f}")
        table.add_row("Volatility (ann.)", fmt_fraction_pct(risk.volatility))
        table.add_row("Return (ann.)", fmt_fraction_pct(risk.annualized_return))
        verdict = "Optimal" if risk.sharpe_ratio > 1 else "Sub-Optimal"
        table.add_row("Risk-adjusted", verdict)
        self.console.print(table)
        self.render_correlation(risk)

    def render_correlation(self, risk: RiskMetrics) -> None:
        matrix = risk.correlation_matrix
        if not matrix.tickers:
            self.console.print("[yellow]No correlation data available[/yellow]")
            return

        table = Table(title="Correlation (top holdings)", show_header=True)
        table.add_column("", style="cyan")
        for t in matrix.tickers:
            table.add_column(t.upper(), justify="right")
        for t, row in zip(matrix.tickers, matrix.matrix):
            cells = [Text(f"{v:.2f}", style=correlation_color(v)) for v in row]
            table.add_row(t.upper(), *cells)
        self.console.print(table)

    def render_rebalance(
        self, rows: Sequence[RebalanceRow], target_total: float
    ) -> None:
        table = Table(title="Rebalancing", show_header=True)
        table.add_column("Ticker", style="cyan")
        table.add_column("Current", justify="right")
        table.add_column("Target", justify="right")
        table.add_column("Drift", justify="right")
        table.add_column("Action", justify="right")
        for r in rows:
            action = "Hold"
            if r.drift_value > 0:
                action = f"Sell {fmt_usd(r.drift_value)}"
            elif r.drift_value < 0:
                action = f"Buy {fmt_usd(-r.drift_value)}"
            table.add_row(
                r.ticker,
                f"{r.current_weight:.1f}%",
                f"{r.target_weight:.1f}%",
                Text(fmt_pct(r.drift, 1), style=gain_color(-abs(r.drift))),
                action,
            )
        self.console.print(table)
        if abs(target_total - 100) > 0.01:
            self.console.print(
                f"[yellow]Target weights sum to {target_total:.1f}%, not 100%[/yellow]"
            )
