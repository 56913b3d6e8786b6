from datetime import date, timedelta
from pathlib import Path

import pytest
from pydantic import ValidationError

from portfolio_tracker.db import HoldingNotFoundError, PortfolioDB


class TestHoldings:
    def _make_db(self, tmp_path: Path) -> PortfolioDB:
        return PortfolioDB(tmp_path / "test.db")

    def test_schema_creation(self, tmp_path: Path) -> None:
        db = self._make_db(tmp_path)
        tables = db.conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
        ).fetchall()
        names = {r["name"] for r in tables}
        assert "holdings" in names
        assert "nav_snapshots" in names
        db.close()

    def test_add_and_list(self, tmp_path: Path) -> None:
        db = self._make_db(tmp_path)
        h1 = db.add_holding("AAPL", 10, 150.0, date(2024, 1, 2))
        h2 = db.add_holding("bp.l", 200, 6.1, date(2024, 2, 3), name="BP plc")

        holdings = db.list_holdings()
        assert [h.id for h in holdings] == [h1.id, h2.id]
        assert holdings[0].name == "AAPL"
        assert holdings[1].ticker == "bp.l"
        assert holdings[1].display_ticker == "BP.L"
        assert holdings[1].purchase_date == date(2024, 2, 3)
        assert h1.id != h2.id
        db.close()

    def test_target_weight_roundtrip(self, tmp_path: Path) -> None:
        db = self._make_db(tmp_path)
        h = db.add_holding("VTI", 3, 200.0, date(2024, 1, 1), target_weight=60.0)
        assert db.get_holding(h.id).target_weight == 60.0
        db.close()

    def test_update(self, tmp_path: Path) -> None:
        db = self._make_db(tmp_path)
        h = db.add_holding("AAPL", 10, 150.0, date(2024, 1, 2))
        updated = db.update_holding(h.id, quantity=12.5, target_weight=25.0)
        assert updated.quantity == 12.5
        stored = db.get_holding(h.id)
        assert stored.quantity == 12.5
        assert stored.target_weight == 25.0
        assert stored.purchase_price == 150.0
        db.close()

    def test_update_rejects_unknown_field(self, tmp_path: Path) -> None:
        db = self._make_db(tmp_path)
        h = db.add_holding("AAPL", 1, 1.0, date(2024, 1, 2))
        with pytest.raises(ValueError):
            db.update_holding(h.id, id="hijack")
        db.close()

    def test_update_validates(self, tmp_path: Path) -> None:
        db = self._make_db(tmp_path)
        h = db.add_holding("AAPL", 1, 1.0, date(2024, 1, 2))
        with pytest.raises(ValidationError):
            db.update_holding(h.id, quantity=-3)
        assert db.get_holding(h.id).quantity == 1
        db.close()

    def test_add_rejects_negative_price(self, tmp_path: Path) -> None:
        db = self._make_db(tmp_path)
        with pytest.raises(ValidationError):
            db.add_holding("AAPL", 1, -5.0, date(2024, 1, 2))
        assert db.list_holdings() == []
        db.close()

    def test_add_rejects_zero_quantity(self, tmp_path: Path) -> None:
        db = self._make_db(tmp_path)
        with pytest.raises(ValueError):
            db.add_holding("AAPL", 0, 150.0, date(2024, 1, 2))
        assert db.list_holdings() == []
        db.close()

    def test_update_can_close_position(self, tmp_path: Path) -> None:
        db = self._make_db(tmp_path)
        h = db.add_holding("AAPL", 1, 1.0, date(2024, 1, 2))
        assert not db.update_holding(h.id, quantity=0).is_active
        db.close()

    def test_delete(self, tmp_path: Path) -> None:
        db = self._make_db(tmp_path)
        h = db.add_holding("AAPL", 1, 1.0, date(2024, 1, 2))
        db.delete_holding(h.id)
        assert db.list_holdings() == []
        with pytest.raises(HoldingNotFoundError):
            db.delete_holding(h.id)
        db.close()

    def test_missing_holding(self, tmp_path: Path) -> None:
        db = self._make_db(tmp_path)
        with pytest.raises(HoldingNotFoundError):
            db.get_holding("nope")
        with pytest.raises(HoldingNotFoundError):
            db.update_holding("nope", quantity=1)
        db.close()

    def test_persists_across_connections(self, tmp_path: Path) -> None:
        db = self._make_db(tmp_path)
        db.add_holding("AAPL", 1, 1.0, date(2024, 1, 2))
        db.close()
        db2 = self._make_db(tmp_path)
        assert len(db2.list_holdings()) == 1
        db2.close()


class TestNavHistory:
    def test_upsert_same_day(self, tmp_path: Path) -> None:
        db = PortfolioDB(tmp_path / "nav.db")
        day = date(2025, 3, 14)
        assert db.save_nav_snapshot(1000.0, on=day)
        assert db.save_nav_snapshot(1050.0, on=day)
        history = db.nav_history()
        assert len(history) == 1
        assert history[0].value == 1050.0
        db.close()

    def test_appends_new_days_in_order(self, tmp_path: Path) -> None:
        db = PortfolioDB(tmp_path / "nav.db")
        db.save_nav_snapshot(110.0, on=date(2025, 3, 2))
        db.save_nav_snapshot(100.0, on=date(2025, 3, 1))
        history = db.nav_history()
        assert [s.date for s in history] == [date(2025, 3, 1), date(2025, 3, 2)]
        db.close()

    def test_zero_value_skipped(self, tmp_path: Path) -> None:
        db = PortfolioDB(tmp_path / "nav.db")
        assert db.save_nav_snapshot(0.0, on=date(2025, 3, 1)) is False
        assert db.nav_history() == []
        db.close()

    def test_pruned_to_limit(self, tmp_path: Path) -> None:
        db = PortfolioDB(tmp_path / "nav.db", nav_limit=3)
        start = date(2025, 1, 1)
        for i in range(5):
            db.save_nav_snapshot(100.0 + i, on=start + timedelta(days=i))
        history = db.nav_history()
        assert len(history) == 3
        assert history[0].date == start + timedelta(days=2)
        assert history[-1].value == 104.0
        db.close()
