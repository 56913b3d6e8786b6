import logging
import sqlite3
import uuid
from datetime import date
from pathlib import Path

from portfolio_tracker.models.holding import Holding
from portfolio_tracker.models.metrics import NavSnapshot

logger = logging.getLogger(__name__)

SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS holdings (
    id TEXT PRIMARY KEY,
    ticker TEXT NOT NULL,
    name TEXT NOT NULL DEFAULT '',
    quantity REAL NOT NULL CHECK (quantity >= 0),
    purchase_price REAL NOT NULL CHECK (purchase_price >= 0),
    purchase_date TEXT NOT NULL,
    target_weight REAL,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS nav_snapshots (
    date TEXT PRIMARY KEY,
    value REAL NOT NULL
);
"""

DEFAULT_DB_PATH = Path("data") / "portfolio.db"
DEFAULT_NAV_LIMIT = 365

HOLDING_FIELDS = (
    "ticker",
    "name",
    "quantity",
    "purchase_price",
    "purchase_date",
    "target_weight",
)


class HoldingNotFoundError(KeyError):
    pass


def _row_to_holding(row: sqlite3.Row) -> Holding:
    data = dict(row)
    data.pop("created_at", None)
    return Holding(**data)


class PortfolioDB:
    """SQLite store for holdings and the daily NAV history."""

    def __init__(
        self, db_path: Path | None = None, nav_limit: int = DEFAULT_NAV_LIMIT
    ) -> None:
        self.db_path = db_path or DEFAULT_DB_PATH
        self.nav_limit = nav_limit
        self._conn: sqlite3.Connection | None = None

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self.db_path))
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._init_schema()
        return self._conn

    def _init_schema(self) -> None:
        cursor = self.conn.executescript(SCHEMA_SQL)
        cursor.close()
        self.conn.commit()

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # --- Holdings ---

    def list_holdings(self) -> list[Holding]:
        rows = self.conn.execute(
            "SELECT * FROM holdings ORDER BY created_at, rowid"
        ).fetchall()
        return [_row_to_holding(r) for r in rows]

    def get_holding(self, holding_id: str) -> Holding:
        row = self.conn.execute(
            "SELECT * FROM holdings WHERE id = ?", (holding_id,)
        ).fetchone()
        if row is None:
            raise HoldingNotFoundError(holding_id)
        return _row_to_holding(row)

    def add_holding(
        self,
        ticker: str,
        quantity: float,
        purchase_price: float,
        purchase_date: date,
        name: str = "",
        target_weight: float | None = None,
    ) -> Holding:
        # Zero quantity marks a closed position; those are deleted, not added.
        if quantity <= 0:
            raise ValueError(f"Quantity must be positive, got {quantity}")
        holding = Holding(
            id=uuid.uuid4().hex,
            ticker=ticker,
            name=name or ticker,
            quantity=quantity,
            purchase_price=purchase_price,
            purchase_date=purchase_date,
            target_weight=target_weight,
        )
        self.conn.execute(
            """INSERT INTO holdings
            (id, ticker, name, quantity, purchase_price, purchase_date,
             target_weight)
            VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                holding.id,
                holding.ticker,
                holding.name,
                holding.quantity,
                holding.purchase_price,
                holding.purchase_date.isoformat(),
                holding.target_weight,
            ),
        )
        self.conn.commit()
        logger.debug("Added holding %s (%s)", holding.id, holding.ticker)
        return holding

    def update_holding(self, holding_id: str, **changes: object) -> Holding:
        unknown = set(changes) - set(HOLDING_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")

        current = self.get_holding(holding_id)
        # Re-validate through the model before touching the table.
        updated = Holding(**{**current.model_dump(), **changes})
        self.conn.execute(
            """UPDATE holdings SET ticker = ?, name = ?, quantity = ?,
            purchase_price = ?, purchase_date = ?, target_weight = ?
            WHERE id = ?""",
            (
                updated.ticker,
                updated.name,
                updated.quantity,
                updated.purchase_price,
                updated.purchase_date.isoformat(),
                updated.target_weight,
                holding_id,
            ),
        )
        self.conn.commit()
        return updated

    def delete_holding(self, holding_id: str) -> None:
        cursor = self.conn.execute("DELETE FROM holdings WHERE id = ?", (holding_id,))
        self.conn.commit()
        if cursor.rowcount == 0:
            raise HoldingNotFoundError(holding_id)

    # --- NAV history ---

    def nav_history(self) -> list[NavSnapshot]:
        rows = self.conn.execute(
            "SELECT date, value FROM nav_snapshots ORDER BY date"
        ).fetchall()
        return [NavSnapshot(**dict(r)) for r in rows]

    def save_nav_snapshot(self, value: float, on: date | None = None) -> bool:
        """Upsert the snapshot for ``on`` (default today).

        Zero values are not recorded. Returns whether a row was written.
        """
        if value == 0:
            logger.debug("Skipping zero NAV snapshot")
            return False

        day = (on or date.today()).isoformat()
        self.conn.execute(
            """INSERT INTO nav_snapshots (date, value) VALUES (?, ?)
            ON CONFLICT(date) DO UPDATE SET value = excluded.value""",
            (day, value),
        )
        self.conn.execute(
            """DELETE FROM nav_snapshots WHERE date NOT IN (
                SELECT date FROM nav_snapshots ORDER BY date DESC LIMIT ?
            )""",
            (self.nav_limit,),
        )
        self.conn.commit()
        return True
