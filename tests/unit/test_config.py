"""
Unit tests for configuration loading.
"""

from pathlib import Path

import pytest

from auctionhouse.core.config import AppConfig, EngineConfig, load_config

ENV_VARS = [
    "AUCTIONHOUSE_DATA_DIR",
    "AUCTIONHOUSE_DB_NAME",
    "AUCTIONHOUSE_LOG_DIR",
    "AUCTIONHOUSE_DECIMALS",
    "AUCTIONHOUSE_SYMBOL",
    "AUCTIONHOUSE_ALLOW_SELLER_BIDS",
    "AUCTIONHOUSE_MAX_DURATION",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        # setenv first so teardown also removes values loaded from .env files
        monkeypatch.setenv(name, "unset")
        monkeypatch.delenv(name)
    # Keep a stray .env in the working directory out of the picture
    monkeypatch.chdir(tmp_path)


class TestDefaults:
    def test_engine_defaults(self):
        config = EngineConfig()
        assert config.allow_seller_bids is True
        assert config.max_duration is None
        assert config.latest_limit == 10

    def test_app_defaults(self):
        config = load_config()
        assert config.db_name == "auctionhouse.db"
        assert config.decimals == 18
        assert config.symbol == "SHM"
        assert config.default_duration_minutes == 5
        assert config.default_reserve == "0.01"
        assert config.default_bid == "0.02"

    def test_ensure_dirs(self, tmp_path):
        config = AppConfig(data_dir=tmp_path / "data", log_dir=tmp_path / "logs")
        config.ensure_dirs()
        assert (tmp_path / "data").is_dir()
        assert (tmp_path / "logs").is_dir()
        assert config.db_path == tmp_path / "data" / "auctionhouse.db"


class TestEnvironment:
    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("AUCTIONHOUSE_DATA_DIR", "/tmp/ah")
        monkeypatch.setenv("AUCTIONHOUSE_SYMBOL", "ETH")
        monkeypatch.setenv("AUCTIONHOUSE_DECIMALS", "6")
        monkeypatch.setenv("AUCTIONHOUSE_ALLOW_SELLER_BIDS", "false")
        monkeypatch.setenv("AUCTIONHOUSE_MAX_DURATION", "3600")

        config = load_config()

        assert config.data_dir == Path("/tmp/ah")
        assert config.symbol == "ETH"
        assert config.decimals == 6
        assert config.engine.allow_seller_bids is False
        assert config.engine.max_duration == 3600

    def test_env_file(self, tmp_path, monkeypatch):
        env_file = tmp_path / "custom.env"
        env_file.write_text("AUCTIONHOUSE_DB_NAME=from_file.db\nAUCTIONHOUSE_SYMBOL=TST\n")
        monkeypatch.setenv("AUCTIONHOUSE_SYMBOL", "ENV")

        config = load_config(str(env_file))

        assert config.db_name == "from_file.db"
        # Process environment wins over the file
        assert config.symbol == "ENV"

    def test_bad_boolean(self, monkeypatch):
        monkeypatch.setenv("AUCTIONHOUSE_ALLOW_SELLER_BIDS", "maybe")
        with pytest.raises(ValueError):
            load_config()

    def test_bad_integer(self, monkeypatch):
        monkeypatch.setenv("AUCTIONHOUSE_MAX_DURATION", "soon")
        with pytest.raises(ValueError):
            load_config()
