import pytest
from pydantic import ValidationError

from portfolio_tracker.config import TrackerConfig


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ("FOLIO_DB_PATH", "FOLIO_PRICE_SOURCE", "FOLIO_CACHE_TTL"):
        monkeypatch.delenv(name, raising=False)
    # Keep load_dotenv away from any real .env file.
    monkeypatch.chdir(tmp_path)
    return monkeypatch


class TestTrackerConfig:
    def test_defaults(self):
        config = TrackerConfig()
        assert config.price_source == "live"
        assert config.cache_ttl_seconds == 60.0
        assert config.correlation_top_k == 5
        assert config.weight_basis == "market_value"
        assert config.annualization == "simple"

    def test_from_env(self, clean_env):
        clean_env.setenv("FOLIO_DB_PATH", "/tmp/folio.db")
        clean_env.setenv("FOLIO_PRICE_SOURCE", "mock")
        clean_env.setenv("FOLIO_CACHE_TTL", "15")
        config = TrackerConfig.from_env()
        assert config.db_path == "/tmp/folio.db"
        assert config.price_source == "mock"
        assert config.cache_ttl_seconds == 15.0

    def test_overrides_win(self, clean_env):
        clean_env.setenv("FOLIO_PRICE_SOURCE", "live")
        config = TrackerConfig.from_env(price_source="mock", db_path=None)
        assert config.price_source == "mock"
        assert config.db_path == "data/portfolio.db"

    def test_dotenv_file(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text("FOLIO_PRICE_SOURCE=mock\n")
        assert TrackerConfig.from_env().price_source == "mock"

    def test_invalid_source(self, clean_env):
        clean_env.setenv("FOLIO_PRICE_SOURCE", "bloomberg")
        with pytest.raises(ValidationError):
            TrackerConfig.from_env()
