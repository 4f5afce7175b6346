"""Receipt CRUD operations."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from ..errors import StorageError
from ..localefmt import from_iso, to_iso
from ..models import LineItem, Receipt, validate_merchant, validate_receipt, validate_total
from .schema import ensure_schema

_CENT = Decimal("0.01")
_UNSET = object()


@contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as e:
        raise StorageError(f"Failed to {action}: {e}") from e


def _money(value: float) -> Decimal:
    return Decimal(str(value)).quantize(_CENT)


class ReceiptDB:
    """Manages the receipts and receipt_items tables."""

    def __init__(self, db_path: str | Path = "~/.config/expendita/expendita.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            with _storage_errors("open the receipt database"):
                self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> ReceiptDB:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def create(self, receipt: Receipt) -> int:
        """Insert a receipt and its line items.

        Returns:
            The id assigned to the new receipt.

        Raises:
            ReceiptValidationError: If the receipt breaks an invariant.
            StorageError: If the database rejects the write.
        """
        validate_receipt(receipt)
        conn = self._get_conn()
        with _storage_errors("save receipt"), conn:
            cur = conn.execute(
                """INSERT INTO receipts
                   (company_name, total, date_time, verification_url, raw_data)
                   VALUES (?, ?, ?, ?, ?)""",
                (
                    receipt.merchant.strip(),
                    float(receipt.total),
                    to_iso(receipt.timestamp),
                    receipt.verification_url,
                    receipt.raw_data,
                ),
            )
            receipt_id = cur.lastrowid
            conn.executemany(
                """INSERT INTO receipt_items
                   (receipt_id, name, quantity, total_price)
                   VALUES (?, ?, ?, ?)""",
                [
                    (receipt_id, item.name, float(item.quantity), float(item.total_price))
                    for item in receipt.items
                ],
            )
        return receipt_id

    def get_all(self, *, with_items: bool = False) -> list[Receipt]:
        """Return all receipts, newest first."""
        conn = self._get_conn()
        with _storage_errors("load receipts"):
            rows = conn.execute(
                "SELECT * FROM receipts ORDER BY date_time DESC, id DESC"
            ).fetchall()
        receipts = [self._row_to_receipt(r) for r in rows]
        if with_items:
            for receipt in receipts:
                receipt.items = self.get_items(receipt.id)
        return receipts

    def get(self, receipt_id: int) -> Receipt | None:
        """Return a receipt with its line items, or None if it doesn't exist."""
        conn = self._get_conn()
        with _storage_errors("load receipt"):
            row = conn.execute(
                "SELECT * FROM receipts WHERE id = ?", (receipt_id,)
            ).fetchone()
        if row is None:
            return None
        receipt = self._row_to_receipt(row)
        receipt.items = self.get_items(receipt_id)
        return receipt

    def get_items(self, receipt_id: int) -> list[LineItem]:
        conn = self._get_conn()
        with _storage_errors("load receipt items"):
            rows = conn.execute(
                "SELECT * FROM receipt_items WHERE receipt_id = ? ORDER BY id",
                (receipt_id,),
            ).fetchall()
        return [
            LineItem(
                id=r["id"],
                receipt_id=r["receipt_id"],
                name=r["name"],
                quantity=Decimal(str(r["quantity"])),
                total_price=_money(r["total_price"]),
            )
            for r in rows
        ]

    def update(
        self,
        receipt_id: int,
        *,
        merchant: str | None = None,
        total: Decimal | None = None,
        timestamp: datetime | None = None,
        verification_url: str | None | object = _UNSET,
        raw_data: str | None = None,
    ) -> bool:
        """Update the given fields of a receipt.

        Returns:
            True if a receipt was updated, False if the id is unknown or no
            field was given.

        Raises:
            ReceiptValidationError: If a new merchant or total is invalid.
        """
        assignments: list[str] = []
        values: list[object] = []

        if merchant is not None:
            validate_merchant(merchant)
            assignments.append("company_name = ?")
            values.append(merchant.strip())
        if total is not None:
            validate_total(total)
            assignments.append("total = ?")
            values.append(float(total))
        if timestamp is not None:
            assignments.append("date_time = ?")
            values.append(to_iso(timestamp))
        if verification_url is not _UNSET:
            assignments.append("verification_url = ?")
            values.append(verification_url)
        if raw_data is not None:
            assignments.append("raw_data = ?")
            values.append(raw_data)

        if not assignments:
            return False

        values.append(receipt_id)
        conn = self._get_conn()
        with _storage_errors("update receipt"), conn:
            cur = conn.execute(
                f"UPDATE receipts SET {', '.join(assignments)} WHERE id = ?",
                values,
            )
        return cur.rowcount > 0

    def delete(self, receipt_id: int) -> bool:
        """Delete a receipt; its line items are removed by cascade."""
        conn = self._get_conn()
        with _storage_errors("delete receipt"), conn:
            cur = conn.execute("DELETE FROM receipts WHERE id = ?", (receipt_id,))
        return cur.rowcount > 0

    def delete_all(self) -> int:
        """Delete every receipt.

        Returns:
            Number of receipts deleted.
        """
        conn = self._get_conn()
        with _storage_errors("delete receipts"), conn:
            cur = conn.execute("DELETE FROM receipts")
        return cur.rowcount

    @staticmethod
    def _row_to_receipt(row: sqlite3.Row) -> Receipt:
        return Receipt(
            id=row["id"],
            merchant=row["company_name"],
            total=_money(row["total"]),
            timestamp=from_iso(row["date_time"]),
            verification_url=row["verification_url"],
            raw_data=row["raw_data"],
        )
