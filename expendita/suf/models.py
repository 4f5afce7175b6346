"""Data scraped from a SUF/PURS fiscal receipt verification page."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass
class ExtractedItem:
    """One row of the receipt specification table."""

    name: str
    quantity: Decimal
    total_price: Decimal


@dataclass
class ExtractedFields:
    """Best-effort page values. Any field may be empty if matching failed."""

    merchant: str = ""
    total: Decimal = Decimal(0)
    timestamp: str = ""  # raw "D.M.YYYY. HH:MM:SS" token
    items: list[ExtractedItem] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return (
            not self.merchant
            and self.total == 0
            and not self.timestamp
            and not self.items
        )
