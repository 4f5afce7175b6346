"""Tests for config loading."""

import os
import tempfile
from decimal import Decimal

import pytest

from expendita.config import (
    DEFAULT_DB_PATH,
    DatabaseConfig,
    ExpenditaConfig,
    ScraperConfig,
    load_config,
)
from expendita.suf.patterns import DEFAULT_PATTERNS, extract_total


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("EXPENDITA_DB_PATH", raising=False)
    monkeypatch.delenv("EXPENDITA_LOG_LEVEL", raising=False)


def _load(toml_content: bytes) -> ExpenditaConfig:
    with tempfile.NamedTemporaryFile(suffix=".toml", delete=False) as f:
        f.write(toml_content)
        f.flush()
        config = load_config(f.name)

    os.unlink(f.name)
    return config


def test_load_config_defaults():
    """Loading with no path returns all defaults."""
    config = load_config()
    assert isinstance(config, ExpenditaConfig)
    assert config.database == DatabaseConfig(path=DEFAULT_DB_PATH)
    assert config.scraper == ScraperConfig()
    assert config.scraper.settle_delay == 2.0
    assert config.scraper.navigation_timeout == 0.0
    assert config.scraper.headless is True
    assert config.patterns == DEFAULT_PATTERNS
    assert config.ips.currency == "RSD"
    assert config.logging.level == "WARNING"


def test_load_config_nonexistent_file():
    """Loading a nonexistent file returns defaults."""
    config = load_config("/nonexistent/path.toml")
    assert config.database.path == DEFAULT_DB_PATH


def test_load_config_from_toml():
    """Loading a valid TOML file populates config."""
    config = _load(b"""\
[database]
path = "/var/lib/expendita/receipts.db"

[scraper]
headless = false
settle_delay = 3.5
navigation_timeout = 30
browser = "firefox"

[ips]
currency = "EUR"

[logging]
level = "debug"
""")

    assert config.database.path == "/var/lib/expendita/receipts.db"
    assert config.scraper.headless is False
    assert config.scraper.settle_delay == 3.5
    assert config.scraper.navigation_timeout == 30.0
    assert config.scraper.browser == "firefox"
    assert config.ips.currency == "EUR"
    assert config.logging.level == "DEBUG"


def test_load_config_env_override(monkeypatch):
    """Environment variables fill in unset values."""
    monkeypatch.setenv("EXPENDITA_DB_PATH", "/tmp/env.db")
    monkeypatch.setenv("EXPENDITA_LOG_LEVEL", "info")

    config = load_config()
    assert config.database.path == "/tmp/env.db"
    assert config.logging.level == "INFO"


def test_load_config_file_takes_precedence(monkeypatch):
    """Config file values take precedence over env vars."""
    monkeypatch.setenv("EXPENDITA_DB_PATH", "/tmp/env.db")

    config = _load(b"""\
[database]
path = "/tmp/file.db"
""")
    assert config.database.path == "/tmp/file.db"


def test_load_config_partial_toml():
    """Partial TOML uses defaults for missing sections."""
    config = _load(b"""\
[scraper]
settle_delay = 5
""")
    assert config.scraper.settle_delay == 5.0
    # Other sections use defaults
    assert config.scraper.browser == "chromium"
    assert config.database.path == DEFAULT_DB_PATH
    assert config.patterns == DEFAULT_PATTERNS


def test_load_config_patterns_section():
    """Extraction patterns can be overridden from the config file."""
    config = _load("""\
[patterns]
total_labels = ['Укупно за плаћање:?\\s*(?P<amount>[\\d.,]+)']
items_row_selector = "table#items tr"
total_column = 4
""".encode("utf-8"))

    assert config.patterns.items_row_selector == "table#items tr"
    assert config.patterns.total_column == 4
    assert config.patterns.merchant_anchor == DEFAULT_PATTERNS.merchant_anchor
    assert extract_total("Укупно за плаћање: 1.500,00", config.patterns) == Decimal(
        "1500.00"
    )
