"""Scan ingestion: detection, decoding or extraction, validation and storage."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from .detector import FormatDetector
from .errors import (
    FailureKind,
    IngestionError,
    StorageError,
    UnrecognizedFormatError,
)
from .ips import DEFAULT_CURRENCY, decode_direct
from .models import QRFormat, Receipt, validate_receipt
from .normalizer import normalize

if TYPE_CHECKING:
    from .suf.models import ExtractedFields

logger = logging.getLogger(__name__)


class IngestionState(str, Enum):
    IDLE = "idle"
    DETECTING = "detecting"
    DECODING = "decoding"
    EXTRACTING = "extracting"
    NORMALIZING = "normalizing"
    VALIDATING = "validating"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


# States in which a new scan is accepted
_READY_STATES = frozenset({IngestionState.IDLE, IngestionState.DONE})


class PageExtractor(Protocol):
    async def extract(self, url: str) -> ExtractedFields: ...


class ReceiptStore(Protocol):
    def create(self, receipt: Receipt) -> int: ...


@dataclass
class IngestionOutcome:
    """What the user gets told about one scan."""

    state: IngestionState
    format: QRFormat
    receipt_id: int | None = None
    receipt: Receipt | None = None
    failure: FailureKind | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.state is IngestionState.DONE

    @property
    def retryable(self) -> bool:
        return self.failure is not None and self.failure.retryable


class ScanOrchestrator:
    """Runs one scan at a time through the ingestion pipeline.

    Scans arriving while another is in flight, or while a failure has not
    been acknowledged, are ignored. Remote extraction is the only await
    point; :meth:`cancel` abandons it and its result is then dropped.
    """

    def __init__(
        self,
        store: ReceiptStore,
        extractor: PageExtractor,
        detector: FormatDetector | None = None,
        *,
        currency: str = DEFAULT_CURRENCY,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._extractor = extractor
        self._detector = detector or FormatDetector()
        self._currency = currency
        self._clock = clock
        self._state = IngestionState.IDLE
        self._attempt = 0
        self._extraction: asyncio.Future | None = None
        self._last_outcome: IngestionOutcome | None = None

    @property
    def state(self) -> IngestionState:
        return self._state

    @property
    def busy(self) -> bool:
        """True while new scans are ignored."""
        return self._state not in _READY_STATES

    @property
    def in_flight(self) -> bool:
        return self._state not in _READY_STATES and self._state is not IngestionState.FAILED

    @property
    def last_outcome(self) -> IngestionOutcome | None:
        return self._last_outcome

    def acknowledge(self) -> None:
        """Confirm a reported failure so that scanning can resume."""
        if self._state is IngestionState.FAILED:
            self._set_state(IngestionState.IDLE)

    def cancel(self) -> None:
        """Abandon the scan in flight, if it is waiting on the remote page."""
        if self._state is not IngestionState.EXTRACTING:
            return
        logger.info("Remote extraction abandoned")
        self._attempt += 1
        if self._extraction is not None:
            self._extraction.cancel()
        self._set_state(IngestionState.IDLE)

    async def handle_scan(self, raw: str) -> IngestionOutcome | None:
        """Ingest one raw QR payload.

        Returns:
            The outcome, or None if the scan was ignored because another one
            is in progress or was cancelled.
        """
        if self.busy:
            logger.debug("Scan ignored while %s", self._state.value)
            return None

        # Claim the orchestrator before the first await
        self._attempt += 1
        attempt = self._attempt
        self._set_state(IngestionState.DETECTING)

        fmt = QRFormat.UNRECOGNIZED
        try:
            fmt = self._detector.detect(raw)
            logger.debug("Detected format %s", fmt.value)
            receipt = await self._decode(fmt, raw, attempt)
            if receipt is None:
                return None
            receipt.id = self._persist(receipt)
            return self._succeed(fmt, receipt)
        except IngestionError as e:
            if attempt != self._attempt:
                return None
            return self._fail(fmt, e.kind, e.message)
        except Exception as e:
            if attempt != self._attempt:
                return None
            logger.exception("Unexpected error while ingesting scan")
            return self._fail(fmt, FailureKind.EXTRACTION_PARSE, str(e))
        finally:
            # Only reached in flight when the caller itself was cancelled
            if attempt == self._attempt and self.in_flight:
                self._set_state(IngestionState.IDLE)

    async def _decode(self, fmt: QRFormat, raw: str, attempt: int) -> Receipt | None:
        match fmt:
            case QRFormat.UNRECOGNIZED:
                raise UnrecognizedFormatError("This QR code format is not recognized")
            case QRFormat.DIRECT_PAYMENT_REQUEST:
                self._set_state(IngestionState.DECODING)
                decoded = decode_direct(raw, currency=self._currency, clock=self._clock)
                self._set_state(IngestionState.NORMALIZING)
                receipt = normalize(fmt, decoded, raw)
            case QRFormat.REMOTE_VERIFICATION:
                self._set_state(IngestionState.EXTRACTING)
                extraction = asyncio.ensure_future(self._extractor.extract(raw))
                self._extraction = extraction
                try:
                    extracted = await extraction
                except asyncio.CancelledError:
                    if attempt != self._attempt:
                        logger.debug("Dropping cancelled extraction")
                        return None
                    raise
                finally:
                    # A newer scan may already own the handle
                    if self._extraction is extraction:
                        self._extraction = None

                if attempt != self._attempt or self._state is not IngestionState.EXTRACTING:
                    logger.debug("Dropping late extraction result")
                    return None
                self._set_state(IngestionState.NORMALIZING)
                receipt = normalize(fmt, extracted, raw, url=raw)

        self._set_state(IngestionState.VALIDATING)
        validate_receipt(receipt)
        return receipt

    def _persist(self, receipt: Receipt) -> int:
        self._set_state(IngestionState.PERSISTING)
        try:
            return self._store.create(receipt)
        except IngestionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save receipt: {e}") from e

    def _succeed(self, fmt: QRFormat, receipt: Receipt) -> IngestionOutcome:
        logger.info(
            "Saved receipt %d from %s (%s)", receipt.id, receipt.merchant, fmt.value
        )
        self._set_state(IngestionState.DONE)
        outcome = IngestionOutcome(
            state=IngestionState.DONE,
            format=fmt,
            receipt_id=receipt.id,
            receipt=receipt,
        )
        self._last_outcome = outcome
        return outcome

    def _fail(self, fmt: QRFormat, kind: FailureKind, message: str) -> IngestionOutcome:
        logger.warning("Scan failed (%s): %s", kind.value, message)
        self._set_state(IngestionState.FAILED)
        outcome = IngestionOutcome(
            state=IngestionState.FAILED,
            format=fmt,
            failure=kind,
            message=message,
        )
        self._last_outcome = outcome
        return outcome

    def _set_state(self, state: IngestionState) -> None:
        if state is not self._state:
            logger.debug("Ingestion %s -> %s", self._state.value, state.value)
        self._state = state
