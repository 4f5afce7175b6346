"""Manual receipt entry and editing."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from .errors import ReceiptValidationError
from .localefmt import (
    format_date_parts,
    format_number,
    format_total_input,
    parse_date_parts,
    parse_number,
)
from .models import MANUAL_ENTRY, Receipt, validate_merchant, validate_total

if TYPE_CHECKING:
    from .db import ReceiptDB


@dataclass
class ReceiptForm:
    """Editable receipt values as the user sees them."""

    merchant: str = ""
    total: str = ""  # Serbian formatted, e.g. "1.234,56"
    date: str = ""  # DD.MM.YYYY
    time: str = ""  # HH:MM

    @classmethod
    def blank(cls, now: datetime | None = None) -> ReceiptForm:
        """An empty form dated now."""
        date_text, time_text = format_date_parts(now or datetime.now().astimezone())
        return cls(date=date_text, time=time_text)

    @classmethod
    def from_receipt(cls, receipt: Receipt) -> ReceiptForm:
        date_text, time_text = ("", "")
        if receipt.timestamp is not None:
            date_text, time_text = format_date_parts(receipt.timestamp)
        return cls(
            merchant=receipt.merchant,
            total=format_number(receipt.total),
            date=date_text,
            time=time_text,
        )

    def type_total(self, text: str) -> str:
        """Apply a keystroke to the total field and return the new value."""
        self.total = format_total_input(text, self.total)
        return self.total

    def validated(self) -> dict[str, Any]:
        """Check the form and return merchant, total and timestamp.

        Raises:
            ReceiptValidationError: On the first invalid field.
        """
        validate_merchant(self.merchant)
        total = parse_number(self.total) if self.total else None
        validate_total(total)
        timestamp = parse_date_parts(self.date, self.time)
        return {
            "merchant": self.merchant.strip(),
            "total": total,
            "timestamp": timestamp,
        }

    def to_receipt(self) -> Receipt:
        values = self.validated()
        return Receipt(raw_data=MANUAL_ENTRY, verification_url=None, **values)


def add_manual_receipt(store: ReceiptDB, form: ReceiptForm) -> int:
    """Validate a manually entered receipt and store it."""
    return store.create(form.to_receipt())


def save_edit(store: ReceiptDB, receipt_id: int, form: ReceiptForm) -> bool:
    """Store the fields of ``form`` that differ from the saved receipt.

    Returns:
        True if the receipt was changed.

    Raises:
        ReceiptValidationError: If the receipt doesn't exist or a field is
            invalid.
    """
    current = store.get(receipt_id)
    if current is None:
        raise ReceiptValidationError(f"Receipt {receipt_id} not found", field="id")

    if form == ReceiptForm.from_receipt(current):
        return False

    values = form.validated()
    return store.update(receipt_id, **values)
