"""SQLite storage for receipts and their line items."""

from .receipts import ReceiptDB
from .schema import ensure_schema

__all__ = [
    "ReceiptDB",
    "ensure_schema",
]
