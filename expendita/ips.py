"""NBS IPS payment request decoding.

Payload example::

    K:PR|V:01|C:1|R:200220618010100048|N:JKP INFOSTAN TEHNOLOGIJE|I:RSD4142,74|SF:122|S:OBJEDINJENA NAPLATA|RO:11800577342080-25127-1

Field mapping:
    K   payload kind (PR = payment request)
    V   version
    C   character set
    R   payee account number
    N   payee name
    I   amount with currency, e.g. "RSD4142,74"
    SF  payment code
    S   payment purpose
    RO  payment reference
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from .localefmt import parse_number

UNKNOWN_MERCHANT = "Unknown"
DEFAULT_CURRENCY = "RSD"

_FIELD_SEPARATOR = "|"


@dataclass
class DirectFields:
    """Values decoded from a self-contained payment request."""

    merchant: str
    total: Decimal
    timestamp: datetime
    currency: str = DEFAULT_CURRENCY
    fields: dict[str, str] = field(default_factory=dict)


def split_fields(raw: str) -> dict[str, str]:
    """Split ``KEY:VALUE|KEY:VALUE`` into a dict.

    Only the first colon of each pair separates key from value. Later
    duplicates overwrite earlier ones.
    """
    fields: dict[str, str] = {}
    for pair in raw.split(_FIELD_SEPARATOR):
        key, _, value = pair.partition(":")
        fields[key] = value
    return fields


def parse_amount(value: str | None, currency: str = DEFAULT_CURRENCY) -> Decimal:
    """Parse ``<CURRENCY><number>`` (e.g. ``RSD4142,74``); 0 if it does not match."""
    if not value:
        return Decimal(0)
    match = re.search(re.escape(currency) + r"([\d.,]+)", value)
    if match is None:
        return Decimal(0)
    amount = parse_number(match.group(1))
    return amount if amount is not None else Decimal(0)


def decode_direct(
    raw: str,
    *,
    currency: str = DEFAULT_CURRENCY,
    clock: Callable[[], datetime] | None = None,
) -> DirectFields:
    """Decode an NBS IPS payload, falling back to safe defaults.

    The payload carries no date, so the time of decoding is used.
    """
    fields = split_fields(raw)
    now = clock() if clock is not None else datetime.now().astimezone()

    return DirectFields(
        merchant=fields.get("N") or UNKNOWN_MERCHANT,
        total=parse_amount(fields.get("I"), currency),
        timestamp=now,
        currency=currency,
        fields=fields,
    )
