"""Fiscal receipt capture: QR detection, decoding, scraping and storage."""

from .config import ExpenditaConfig, load_config
from .db import ReceiptDB
from .detector import FormatDetector, detect
from .errors import (
    ExtractionLoadError,
    ExtractionParseError,
    FailureKind,
    IngestionError,
    ReceiptValidationError,
    StorageError,
    UnrecognizedFormatError,
)
from .ips import DirectFields, decode_direct
from .models import MANUAL_ENTRY, LineItem, QRFormat, Receipt
from .normalizer import normalize
from .orchestrator import IngestionOutcome, IngestionState, ScanOrchestrator
from .suf import ExtractedFields, ExtractionPatterns, ReceiptPageExtractor

__all__ = [
    "ExpenditaConfig",
    "load_config",
    "ReceiptDB",
    "FormatDetector",
    "detect",
    "FailureKind",
    "IngestionError",
    "UnrecognizedFormatError",
    "ExtractionLoadError",
    "ExtractionParseError",
    "ReceiptValidationError",
    "StorageError",
    "DirectFields",
    "decode_direct",
    "MANUAL_ENTRY",
    "LineItem",
    "QRFormat",
    "Receipt",
    "normalize",
    "IngestionOutcome",
    "IngestionState",
    "ScanOrchestrator",
    "ExtractedFields",
    "ExtractionPatterns",
    "ReceiptPageExtractor",
]
