"""Serbian number and date formatting.

Amounts use ``.`` as the thousands separator and ``,`` as the decimal
separator (``1234.56`` -> ``"1.234,56"``). Dates are edited as
``DD.MM.YYYY`` plus ``HH:MM`` in local clock time and stored as ISO-8601 in
UTC.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .errors import ReceiptValidationError

_CENT = Decimal("0.01")

_THOUSANDS_RE = re.compile(r"\B(?=(\d{3})+(?!\d))")
_DATE_RE = re.compile(r"^(\d{2})\.(\d{2})\.(\d{4})$")
_TIME_RE = re.compile(r"^(\d{2}):(\d{2})$")
# Fiscal journal time, e.g. "17.1.2026. 13:56:17"
_FISCAL_TIMESTAMP_RE = re.compile(
    r"^\s*(\d{1,2})\.(\d{1,2})\.(\d{4})\.?\s+(\d{1,2}):(\d{2}):(\d{2})\s*$"
)


def format_number(value: Decimal | int | float) -> str:
    """Format an amount as Serbian text with exactly two decimals."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    quantized = value.quantize(_CENT, rounding=ROUND_HALF_UP)
    # "1,234.56" -> "1.234,56"
    return f"{quantized:,.2f}".translate(str.maketrans(",.", ".,"))


def parse_number(text: str) -> Decimal | None:
    """Parse Serbian formatted text into a Decimal.

    Returns:
        The parsed value, or None if the text is not a finite number.
    """
    normalized = text.strip().replace(".", "").replace(",", ".")
    try:
        result = Decimal(normalized)
    except InvalidOperation:
        return None
    if not result.is_finite():
        return None
    return result


def group_thousands(digits: str) -> str:
    return _THOUSANDS_RE.sub(".", digits)


def format_total_input(text: str, previous_value: str) -> str:
    """Reformat an amount field while the user is typing.

    Keeps digits and a single comma, re-inserts thousands dots and limits the
    decimal part to two digits. A second comma is rejected by returning
    ``previous_value`` unchanged.
    """
    cleaned = re.sub(r"[^\d,]", "", text)
    if cleaned == "":
        return ""

    if cleaned.count(",") > 1:
        return previous_value

    integer_part, comma, decimal_part = cleaned.partition(",")

    # Drop leading zeros, but keep a lone "0" the user typed on purpose
    digits = integer_part.lstrip("0") or ("0" if integer_part == "0" else "")
    digits = group_thousands(digits)

    if comma:
        return f"{digits},{decimal_part[:2]}"
    return digits


def format_date_parts(instant: datetime) -> tuple[str, str]:
    """Split an instant into local ``("DD.MM.YYYY", "HH:MM")`` strings."""
    local = instant.astimezone() if instant.tzinfo is not None else instant
    date_text = f"{local.day:02d}.{local.month:02d}.{local.year:04d}"
    time_text = f"{local.hour:02d}:{local.minute:02d}"
    return date_text, time_text


def format_datetime(instant: datetime) -> str:
    """Readable form, e.g. ``"22.01.2026, 14:30"``."""
    date_text, time_text = format_date_parts(instant)
    return f"{date_text}, {time_text}"


def parse_date_parts(date_text: str, time_text: str) -> datetime:
    """Rebuild an aware local instant from ``DD.MM.YYYY`` and ``HH:MM``.

    Raises:
        ReceiptValidationError: If either part is malformed or out of range.
    """
    date_match = _DATE_RE.match(date_text.strip())
    if date_match is None:
        raise ReceiptValidationError(
            "Please enter a valid date (DD.MM.YYYY)", field="date"
        )
    time_match = _TIME_RE.match(time_text.strip())
    if time_match is None:
        raise ReceiptValidationError(
            "Please enter a valid time (HH:MM)", field="time"
        )

    day, month, year = (int(g) for g in date_match.groups())
    hour, minute = (int(g) for g in time_match.groups())
    try:
        naive = datetime(year, month, day, hour, minute)
    except ValueError as e:
        raise ReceiptValidationError(
            f"Invalid date or time: {e}", field="date"
        ) from e
    return naive.astimezone()


def parse_fiscal_timestamp(token: str) -> datetime | None:
    """Parse a ``D.M.YYYY. HH:MM:SS`` token read from a fiscal journal.

    The time is interpreted as local clock time. Returns None if the token
    is empty or malformed.
    """
    match = _FISCAL_TIMESTAMP_RE.match(token or "")
    if match is None:
        return None
    day, month, year, hour, minute, second = (int(g) for g in match.groups())
    try:
        naive = datetime(year, month, day, hour, minute, second)
    except ValueError:
        return None
    return naive.astimezone()


def to_iso(instant: datetime) -> str:
    """Storage form: ISO-8601 in UTC with second precision."""
    return instant.astimezone(timezone.utc).isoformat(timespec="seconds")


def from_iso(text: str) -> datetime:
    return datetime.fromisoformat(text)
