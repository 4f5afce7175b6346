"""SUF/PURS fiscal receipt verification page extraction."""

from .extractor import ReceiptPageExtractor
from .models import ExtractedFields, ExtractedItem
from .patterns import DEFAULT_PATTERNS, ExtractionPatterns, parse_page

__all__ = [
    "ReceiptPageExtractor",
    "ExtractedFields",
    "ExtractedItem",
    "ExtractionPatterns",
    "DEFAULT_PATTERNS",
    "parse_page",
]
