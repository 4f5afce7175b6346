"""Canonical receipt records shared by the pipeline and the store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from .errors import ReceiptValidationError

# Raw source recorded for receipts typed in by hand
MANUAL_ENTRY = "manual-entry"


class QRFormat(str, Enum):
    DIRECT_PAYMENT_REQUEST = "nbs-ips"
    REMOTE_VERIFICATION = "suf-purs"
    UNRECOGNIZED = "unknown"


@dataclass
class LineItem:
    """A single article line of a receipt."""

    name: str
    quantity: Decimal
    total_price: Decimal
    id: int | None = None
    receipt_id: int | None = None


@dataclass
class Receipt:
    """A normalized receipt, whatever way it was captured."""

    merchant: str
    total: Decimal
    timestamp: datetime | None
    raw_data: str
    verification_url: str | None = None
    items: list[LineItem] = field(default_factory=list)
    id: int | None = None


def validate_receipt(receipt: Receipt) -> None:
    """Check the invariants every stored receipt must satisfy.

    Raises:
        ReceiptValidationError: On the first violated invariant.
    """
    validate_merchant(receipt.merchant)
    validate_total(receipt.total)
    if receipt.timestamp is None:
        raise ReceiptValidationError(
            "Receipt has no valid date and time", field="timestamp"
        )
    for item in receipt.items:
        if item.quantity < 0 or item.total_price < 0:
            raise ReceiptValidationError(
                f"Line item {item.name!r} has a negative quantity or price",
                field="items",
            )


def validate_merchant(merchant: str) -> None:
    if not merchant or not merchant.strip():
        raise ReceiptValidationError(
            "Please enter a company name", field="merchant"
        )


def validate_total(total: Decimal | None) -> None:
    if total is None or not total.is_finite() or total <= 0:
        raise ReceiptValidationError(
            "Total must be greater than 0 RSD", field="total"
        )
