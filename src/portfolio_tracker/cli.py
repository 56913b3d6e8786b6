import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path

from rich.console import Console

from portfolio_tracker.analysis.portfolio import (
    InsufficientHistoryError,
    PortfolioAnalyzer,
)
from portfolio_tracker.analysis.rebalance import compute_rebalance, target_weight_total
from portfolio_tracker.config import TrackerConfig
from portfolio_tracker.data.market_data import make_provider
from portfolio_tracker.db import HoldingNotFoundError, PortfolioDB
from portfolio_tracker.output.renderer import DashboardRenderer

logger = logging.getLogger(__name__)
console = Console()


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="folio",
        description="Track portfolio holdings, valuation and risk",
    )
    p.add_argument("--db", default=None, help="Path to the portfolio database")
    p.add_argument(
        "--mock",
        action="store_true",
        help="Use deterministic mock prices instead of live quotes",
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    sub = p.add_subparsers(dest="command")

    # --- holdings management ---
    add = sub.add_parser("add", help="Record a new holding")
    add.add_argument("ticker", help="Ticker symbol, e.g. AAPL or BP.L")
    add.add_argument("quantity", type=float, help="Units held")
    add.add_argument("price", type=float, help="Purchase price per unit (USD)")
    add.add_argument(
        "purchase_date",
        type=date.fromisoformat,
        help="Purchase date (YYYY-MM-DD)",
    )
    add.add_argument("--name", default="", help="Display name")
    add.add_argument("--target", type=float, default=None, help="Target weight %%")

    update = sub.add_parser("update", help="Edit an existing holding")
    update.add_argument("id", help="Holding id (or unique prefix)")
    update.add_argument("--quantity", type=float, default=None)
    update.add_argument("--price", type=float, default=None)
    update.add_argument("--name", default=None)
    update.add_argument("--target", type=float, default=None)

    remove = sub.add_parser("remove", help="Delete a holding")
    remove.add_argument("id", help="Holding id (or unique prefix)")

    sub.add_parser("list", help="List stored holdings without pricing")

    # --- dashboard ---
    sub.add_parser("show", help="Value holdings and record today's NAV")

    risk = sub.add_parser("risk", help="Volatility, Sharpe and correlations")
    risk.add_argument(
        "--require-history",
        action="store_true",
        help="Fail unless at least 2 days of NAV history exist",
    )

    sub.add_parser("rebalance", help="Drift from target weights")

    charts = sub.add_parser("charts", help="Write allocation and NAV charts")
    charts.add_argument("--out", type=Path, default=Path("reports") / "charts")

    return p


def _resolve_id(db: PortfolioDB, prefix: str) -> str:
    matches = [h.id for h in db.list_holdings() if h.id.startswith(prefix)]
    if len(matches) != 1:
        raise HoldingNotFoundError(prefix)
    return matches[0]


def _run_add(args: argparse.Namespace, db: PortfolioDB) -> None:
    holding = db.add_holding(
        ticker=args.ticker,
        quantity=args.quantity,
        purchase_price=args.price,
        purchase_date=args.purchase_date,
        name=args.name,
        target_weight=args.target,
    )
    console.print(f"[green]Added {holding.display_ticker} ({holding.id[:8]})[/green]")


def _run_update(args: argparse.Namespace, db: PortfolioDB) -> None:
    changes = {
        "quantity": args.quantity,
        "purchase_price": args.price,
        "name": args.name,
        "target_weight": args.target,
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        console.print("[yellow]Nothing to update[/yellow]")
        return
    holding = db.update_holding(_resolve_id(db, args.id), **changes)
    console.print(f"[green]Updated {holding.display_ticker}[/green]")


def _run_remove(args: argparse.Namespace, db: PortfolioDB) -> None:
    holding_id = _resolve_id(db, args.id)
    db.delete_holding(holding_id)
    console.print(f"[green]Removed {holding_id[:8]}[/green]")


def _run_list(db: PortfolioDB) -> None:
    holdings = db.list_holdings()
    if not holdings:
        console.print("[yellow]No holdings recorded[/yellow]")
        return
    for h in holdings:
        target = f"  target {h.target_weight:.1f}%" if h.target_weight else ""
        console.print(
            f"{h.id[:8]}  [cyan]{h.display_ticker:<8}[/cyan] "
            f"{h.quantity:>12g} @ ${h.purchase_price:,.2f} "
            f"on {h.purchase_date.isoformat()}{target}"
        )


async def run_dashboard(
    command: str,
    args: argparse.Namespace,
    config: TrackerConfig,
    db: PortfolioDB,
) -> None:
    holdings = db.list_holdings()
    if not holdings:
        console.print("[yellow]No holdings recorded. Use 'folio add'.[/yellow]")
        return

    renderer = DashboardRenderer(console)
    analyzer = PortfolioAnalyzer(make_provider(config), config)
    try:
        with console.status("[cyan]Fetching quotes..."):
            enriched, metrics = await analyzer.valuation(holdings)

        if command == "show":
            renderer.render_summary(metrics)
            renderer.render_holdings(enriched)
            if db.save_nav_snapshot(analyzer.nav_value(metrics)):
                logger.info("Recorded NAV %.2f", metrics.total_value)

        elif command == "risk":
            with console.status("[cyan]Computing risk metrics..."):
                risk = await analyzer.risk(
                    enriched,
                    nav_history=db.nav_history(),
                    require_nav_history=args.require_history,
                )
            renderer.render_risk(risk)

        elif command == "rebalance":
            rows = compute_rebalance(enriched, metrics.total_value)
            renderer.render_rebalance(rows, target_weight_total(enriched))

        elif command == "charts":
            from portfolio_tracker.output.charts import generate_all_charts

            paths = generate_all_charts(enriched, db.nav_history(), args.out)
            console.print(
                f"[green]Generated {len(paths)} chart(s) in {args.out}[/green]"
            )
    finally:
        analyzer.close()


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    db: PortfolioDB | None = None
    try:
        config = TrackerConfig.from_env(
            db_path=args.db,
            price_source="mock" if args.mock else None,
        )
        db = PortfolioDB(Path(config.db_path), nav_limit=config.nav_history_limit)

        if args.command == "add":
            _run_add(args, db)
        elif args.command == "update":
            _run_update(args, db)
        elif args.command == "remove":
            _run_remove(args, db)
        elif args.command == "list":
            _run_list(db)
        else:
            asyncio.run(run_dashboard(args.command, args, config, db))
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
        sys.exit(1)
    except HoldingNotFoundError as e:
        console.print(f"[red]No unique holding matches {e}[/red]")
        sys.exit(1)
    except InsufficientHistoryError as e:
        console.print(f"[yellow]{e}[/yellow]")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        if args.verbose:
            import traceback

            traceback.print_exc()
        sys.exit(1)
    finally:
        if db is not None:
            db.close()


if __name__ == "__main__":
    main()
