"""TOML configuration loader."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from .ips import DEFAULT_CURRENCY
from .suf.patterns import ExtractionPatterns

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]

DEFAULT_DB_PATH = "~/.config/expendita/expendita.db"


@dataclass
class DatabaseConfig:
    path: str = DEFAULT_DB_PATH


@dataclass
class ScraperConfig:
    headless: bool = True
    settle_delay: float = 2.0  # seconds to wait after expanding the item table
    navigation_timeout: float = 0.0  # seconds, 0 = wait indefinitely
    browser: str = "chromium"


@dataclass
class IPSConfig:
    currency: str = DEFAULT_CURRENCY


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class ExpenditaConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    scraper: ScraperConfig = field(default_factory=ScraperConfig)
    patterns: ExtractionPatterns = field(default_factory=ExtractionPatterns)
    ips: IPSConfig = field(default_factory=IPSConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | Path | None = None) -> ExpenditaConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    The database path and log level can be set through the
    ``EXPENDITA_DB_PATH`` and ``EXPENDITA_LOG_LEVEL`` environment variables
    when the file leaves them unset.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    dbs = raw.get("database", {})
    scr = raw.get("scraper", {})
    pat = raw.get("patterns", {})
    ips = raw.get("ips", {})
    log = raw.get("logging", {})

    db_path = dbs.get("path", "") or os.environ.get(
        "EXPENDITA_DB_PATH", DEFAULT_DB_PATH
    )
    log_level = log.get("level", "") or os.environ.get(
        "EXPENDITA_LOG_LEVEL", "WARNING"
    )

    return ExpenditaConfig(
        database=DatabaseConfig(path=db_path),
        scraper=ScraperConfig(
            headless=scr.get("headless", True),
            settle_delay=float(scr.get("settle_delay", 2.0)),
            navigation_timeout=float(scr.get("navigation_timeout", 0.0)),
            browser=scr.get("browser", "chromium"),
        ),
        patterns=ExtractionPatterns.from_dict(pat),
        ips=IPSConfig(currency=ips.get("currency", DEFAULT_CURRENCY)),
        logging=LoggingConfig(level=log_level.upper()),
    )
