"""
Configuration for the auction engine and its command line front end.

Engine policy lives in EngineConfig; paths and display defaults live in
AppConfig. load_config() reads overrides from the environment, after
loading an optional .env file.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

ENV_PREFIX = "AUCTIONHOUSE_"


@dataclass
class EngineConfig:
    """Auction rules that are a policy choice rather than a fixed invariant"""

    allow_seller_bids: bool = True          # Sellers may bid on their own auctions
    max_duration: Optional[int] = None      # Upper bound on duration (seconds), None = unbounded
    max_title_length: int = 256
    max_uri_length: int = 2048
    latest_limit: int = 10                  # Default page size of latest()


@dataclass
class AppConfig:
    """Application-wide settings"""

    # Paths
    data_dir: Path = Path("~/.auctionhouse")
    db_name: str = "auctionhouse.db"
    log_dir: Optional[Path] = None

    # Display
    decimals: int = 18
    symbol: str = "SHM"

    # CLI defaults
    default_duration_minutes: int = 5
    default_reserve: str = "0.01"
    default_bid: str = "0.02"

    engine: EngineConfig = field(default_factory=EngineConfig)

    def ensure_dirs(self) -> None:
        """Create data and log directories"""
        self.data_dir = self.data_dir.expanduser()
        self.data_dir.mkdir(exist_ok=True, parents=True)
        if self.log_dir:
            self.log_dir = self.log_dir.expanduser()
            self.log_dir.mkdir(exist_ok=True, parents=True)

    @property
    def db_path(self) -> Path:
        return self.data_dir.expanduser() / self.db_name


def _env(name: str) -> Optional[str]:
    value = os.environ.get(ENV_PREFIX + name)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{ENV_PREFIX}{name} must be a boolean, got {value!r}")


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {value!r}")


def load_config(env_file: Optional[str] = None) -> AppConfig:
    """
    Load configuration from the environment.

    Args:
        env_file: Optional path to a .env file. If None, a .env in the
            current directory is used when present. Variables already set
            in the process environment take precedence.

    Returns:
        AppConfig instance
    """
    load_dotenv(dotenv_path=env_file or find_dotenv(usecwd=True), override=False)

    cfg = AppConfig()

    value = _env("DATA_DIR")
    if value is not None:
        cfg.data_dir = Path(value)

    value = _env("DB_NAME")
    if value is not None:
        cfg.db_name = value

    value = _env("LOG_DIR")
    if value is not None:
        cfg.log_dir = Path(value)

    value = _env("DECIMALS")
    if value is not None:
        cfg.decimals = _parse_int("DECIMALS", value)

    value = _env("SYMBOL")
    if value is not None:
        cfg.symbol = value

    value = _env("ALLOW_SELLER_BIDS")
    if value is not None:
        cfg.engine.allow_seller_bids = _parse_bool("ALLOW_SELLER_BIDS", value)

    value = _env("MAX_DURATION")
    if value is not None:
        cfg.engine.max_duration = _parse_int("MAX_DURATION", value)

    return cfg
