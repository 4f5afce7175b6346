"""Failure taxonomy for receipt ingestion."""

from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    UNRECOGNIZED_FORMAT = "unrecognized_format"
    EXTRACTION_LOAD = "extraction_load"
    EXTRACTION_PARSE = "extraction_parse"
    VALIDATION = "validation"
    STORAGE = "storage"

    @property
    def retryable(self) -> bool:
        return self is FailureKind.STORAGE


class IngestionError(Exception):
    """Base class for every failure the ingestion pipeline can report."""

    kind: FailureKind = FailureKind.EXTRACTION_PARSE

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UnrecognizedFormatError(IngestionError):
    kind = FailureKind.UNRECOGNIZED_FORMAT


class ExtractionLoadError(IngestionError):
    """The verification page could not be loaded."""

    kind = FailureKind.EXTRACTION_LOAD


class ExtractionParseError(IngestionError):
    """Something unexpected happened while reading the rendered page."""

    kind = FailureKind.EXTRACTION_PARSE


class ReceiptValidationError(IngestionError, ValueError):
    """A receipt breaks one of the invariants required for storage."""

    kind = FailureKind.VALIDATION

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class StorageError(IngestionError):
    """The receipt store rejected the write or is unavailable."""

    kind = FailureKind.STORAGE
