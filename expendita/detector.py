"""QR payload format detection."""

from __future__ import annotations

from collections.abc import Sequence

from .models import QRFormat

# Ordered (prefix, format) table; the first matching prefix wins.
DEFAULT_PREFIXES: tuple[tuple[str, QRFormat], ...] = (
    ("K:PR|", QRFormat.DIRECT_PAYMENT_REQUEST),
    ("https://suf.purs.gov.rs", QRFormat.REMOTE_VERIFICATION),
)


class FormatDetector:
    """Classifies a raw scan by literal prefix."""

    def __init__(
        self, prefixes: Sequence[tuple[str, QRFormat]] = DEFAULT_PREFIXES
    ) -> None:
        self._prefixes = tuple(prefixes)

    @property
    def prefixes(self) -> tuple[tuple[str, QRFormat], ...]:
        return self._prefixes

    def detect(self, raw: str) -> QRFormat:
        for prefix, fmt in self._prefixes:
            if raw.startswith(prefix):
                return fmt
        return QRFormat.UNRECOGNIZED

    def with_prefix(self, prefix: str, fmt: QRFormat) -> FormatDetector:
        """Return a detector that also recognizes ``prefix`` (checked last)."""
        return FormatDetector((*self._prefixes, (prefix, fmt)))


_default_detector = FormatDetector()


def detect(raw: str) -> QRFormat:
    """Detect the QR format of ``raw`` using the default prefix table."""
    return _default_detector.detect(raw)
