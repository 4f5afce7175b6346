"""Conversion of decoded or scraped values into canonical receipts."""

from __future__ import annotations

from .ips import DirectFields
from .localefmt import parse_fiscal_timestamp
from .models import LineItem, QRFormat, Receipt
from .suf.models import ExtractedFields


def normalize(
    fmt: QRFormat,
    decoded: DirectFields | ExtractedFields,
    raw: str,
    url: str | None = None,
) -> Receipt:
    """Build a canonical receipt for a detected format.

    Invariants (positive total, merchant, timestamp) are not checked here; a
    receipt with a zero total is returned as is and must be rejected before
    it is stored.
    """
    match fmt:
        case QRFormat.DIRECT_PAYMENT_REQUEST:
            if not isinstance(decoded, DirectFields):
                raise TypeError(f"Expected DirectFields, got {type(decoded).__name__}")
            return Receipt(
                merchant=decoded.merchant,
                total=decoded.total,
                timestamp=decoded.timestamp,
                raw_data=raw,
                verification_url=None,
            )
        case QRFormat.REMOTE_VERIFICATION:
            if not isinstance(decoded, ExtractedFields):
                raise TypeError(
                    f"Expected ExtractedFields, got {type(decoded).__name__}"
                )
            return Receipt(
                merchant=decoded.merchant.strip(),
                total=decoded.total,
                timestamp=parse_fiscal_timestamp(decoded.timestamp),
                raw_data=raw,
                verification_url=url if url is not None else raw,
                items=[
                    LineItem(
                        name=item.name,
                        quantity=item.quantity,
                        total_price=item.total_price,
                    )
                    for item in decoded.items
                ],
            )
        case QRFormat.UNRECOGNIZED:
            raise ValueError("Cannot normalize a scan of unrecognized format")
