"""Pattern based extraction of receipt fields from rendered page content.

The SUF/PURS page shows the fiscal journal as plain text, e.g.::

    ============ ФИСКАЛНИ РАЧУН ============
    106884584
    LC WAIKIKI Retail RS d.o.o.
    ...
    Укупан износ:                   2.184,00
    ...
    ПФР време:          17.1.2026. 13:56:17

Line items live in the "specification" table that is filled in after its
collapsed section is expanded. All patterns, selectors and column positions
are kept in :class:`ExtractionPatterns` so a layout change upstream can be
handled from the config file.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, fields, replace
from decimal import Decimal
from functools import cached_property
from typing import Any

from bs4 import BeautifulSoup

from ..localefmt import parse_number
from .models import ExtractedFields, ExtractedItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractionPatterns:
    # Header marker line, numeric tax id line, then the merchant name line
    merchant_anchor: str = (
        r"ФИСКАЛНИ РАЧУН[^\n]*\n[ \t]*\d+[ \t]*\n[ \t]*(?P<merchant>\S[^\n]*)"
    )
    merchant_label: str = r"Предузеће:?[ \t]*\n?[ \t]*(?P<merchant>\S[^\n]*)"
    total_labels: tuple[str, ...] = (
        r"Укупан износ:?\s*(?P<amount>\d[\d.]*,\d{2})",
        r"За уплату:?\s*(?P<amount>\d[\d.]*,\d{2})",
    )
    timestamp_label: str = (
        r"ПФР време:?\s*"
        r"(?P<timestamp>\d{1,2}\.\d{1,2}\.\d{4}\.\s+\d{1,2}:\d{2}:\d{2})"
    )
    expand_selector: str = (
        "a[href='#collapse-specs'], button[data-target='#collapse-specs']"
    )
    items_row_selector: str = "#collapse-specs table tbody tr"
    name_column: int = 0
    quantity_column: int = 2
    total_column: int = 3

    @cached_property
    def _compiled(self) -> dict[str, Any]:
        return {
            "merchant_anchor": re.compile(self.merchant_anchor),
            "merchant_label": re.compile(self.merchant_label),
            "total_labels": [re.compile(p) for p in self.total_labels],
            "timestamp_label": re.compile(self.timestamp_label),
        }

    def regex(self, name: str) -> Any:
        return self._compiled[name]

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ExtractionPatterns:
        """Build patterns from a config mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        overrides = {k: v for k, v in raw.items() if k in known}
        if "total_labels" in overrides:
            labels = overrides["total_labels"]
            if isinstance(labels, str):
                labels = [labels]
            elif not isinstance(labels, (list, tuple)):
                raise ValueError(
                    "patterns.total_labels must be a string or a list of strings"
                )
            overrides["total_labels"] = tuple(labels)
        patterns = replace(cls(), **overrides)
        # Fail early on a broken pattern in the config file
        patterns.regex("merchant_anchor")
        return patterns


DEFAULT_PATTERNS = ExtractionPatterns()


def clean_text(text: str) -> str:
    """Normalize line endings and non-breaking spaces of rendered text."""
    return text.replace("\r\n", "\n").replace("\r", "\n").replace("\xa0", " ")


def extract_merchant(text: str, patterns: ExtractionPatterns = DEFAULT_PATTERNS) -> str:
    match = patterns.regex("merchant_anchor").search(text)
    if match is None:
        logger.debug("Merchant anchor not found, trying label pattern")
        match = patterns.regex("merchant_label").search(text)
    if match is None:
        return ""
    return match.group("merchant").strip()


def extract_total(text: str, patterns: ExtractionPatterns = DEFAULT_PATTERNS) -> Decimal:
    for regex in patterns.regex("total_labels"):
        match = regex.search(text)
        if match is None:
            continue
        amount = parse_number(match.group("amount"))
        if amount is not None:
            return amount
    return Decimal(0)


def extract_timestamp(text: str, patterns: ExtractionPatterns = DEFAULT_PATTERNS) -> str:
    match = patterns.regex("timestamp_label").search(text)
    if match is None:
        return ""
    return match.group("timestamp").strip()


def extract_items(
    html: str, patterns: ExtractionPatterns = DEFAULT_PATTERNS
) -> list[ExtractedItem]:
    """Read line items from the specification table.

    Rows that are too short or whose numbers do not parse are skipped.
    """
    if not html:
        return []

    soup = BeautifulSoup(html, "html.parser")
    needed = max(
        patterns.name_column, patterns.quantity_column, patterns.total_column
    )

    items: list[ExtractedItem] = []
    for row in soup.select(patterns.items_row_selector):
        cells = [td.get_text(" ", strip=True) for td in row.find_all("td")]
        if len(cells) <= needed:
            continue

        name = cells[patterns.name_column]
        quantity = parse_number(cells[patterns.quantity_column])
        total_price = parse_number(cells[patterns.total_column])
        if not name or quantity is None or total_price is None:
            logger.debug("Skipping unparsable item row: %r", cells)
            continue
        if quantity < 0 or total_price < 0:
            logger.debug("Skipping negative item row: %r", cells)
            continue

        items.append(
            ExtractedItem(name=name, quantity=quantity, total_price=total_price)
        )
    return items


def parse_page(
    text: str, html: str = "", patterns: ExtractionPatterns = DEFAULT_PATTERNS
) -> ExtractedFields:
    """Extract every field from rendered page text and HTML."""
    text = clean_text(text)
    return ExtractedFields(
        merchant=extract_merchant(text, patterns),
        total=extract_total(text, patterns),
        timestamp=extract_timestamp(text, patterns),
        items=extract_items(html, patterns),
    )
