"""Headless browser extraction of SUF/PURS verification pages."""

from __future__ import annotations

import logging
from typing import Any

from ..errors import ExtractionLoadError, ExtractionParseError, IngestionError
from .models import ExtractedFields
from .patterns import DEFAULT_PATTERNS, ExtractionPatterns, parse_page

logger = logging.getLogger(__name__)


class ReceiptPageExtractor:
    """Loads a verification page in Playwright and scrapes the receipt.

    The specification table is filled in by page scripts after its section
    is expanded, and there is no signal when that is done. The extractor
    waits ``settle_delay`` seconds and reads whatever is there, so a slow page
    can yield empty fields instead of an error.
    """

    def __init__(
        self,
        patterns: ExtractionPatterns = DEFAULT_PATTERNS,
        *,
        headless: bool = True,
        settle_delay: float = 2.0,
        navigation_timeout: float = 0.0,
        browser: str = "chromium",
    ) -> None:
        self._patterns = patterns
        self._headless = headless
        self._settle_delay = settle_delay
        self._navigation_timeout = navigation_timeout
        self._browser = browser

    async def extract(self, url: str) -> ExtractedFields:
        """Load ``url`` and extract the receipt fields.

        Raises:
            ImportError: If playwright is not installed.
            ExtractionLoadError: If the browser or the page fails to load.
            ExtractionParseError: If anything goes wrong while reading the page.
        """
        try:
            from playwright.async_api import async_playwright
        except ImportError:
            raise ImportError(
                "playwright is required: pip install playwright && "
                "playwright install chromium"
            ) from None

        logger.info("Loading verification page %s", url)
        try:
            async with async_playwright() as p:
                browser = await getattr(p, self._browser).launch(
                    headless=self._headless
                )
                try:
                    page = await browser.new_page()
                    text, html = await self.read_page(page, url)
                finally:
                    try:
                        await browser.close()
                    except Exception as e:
                        logger.warning("Failed to close browser: %s", e)
        except IngestionError:
            raise
        except Exception as e:
            raise ExtractionLoadError(
                f"Failed to load verification page: {e}"
            ) from e

        return self.parse(text, html)

    async def read_page(self, page: Any, url: str) -> tuple[str, str]:
        """Navigate, expand the specification section and read the page.

        Returns:
            The rendered body text and the page HTML.
        """
        try:
            response = await page.goto(
                url,
                wait_until="load",
                timeout=self._navigation_timeout * 1000,
            )
        except Exception as e:
            raise ExtractionLoadError(
                f"Failed to load verification page: {e}"
            ) from e

        if response is not None and not response.ok:
            raise ExtractionLoadError(
                f"Verification page returned HTTP {response.status}"
            )

        try:
            toggle = await page.query_selector(self._patterns.expand_selector)
            if toggle is not None:
                await toggle.click()
                await page.wait_for_timeout(self._settle_delay * 1000)
            else:
                logger.debug("No specification toggle on %s", url)

            text = await page.inner_text("body")
            html = await page.content()
        except Exception as e:
            raise ExtractionParseError(str(e) or type(e).__name__) from e

        return text, html

    def parse(self, text: str, html: str) -> ExtractedFields:
        try:
            fields = parse_page(text, html, self._patterns)
        except Exception as e:
            raise ExtractionParseError(str(e) or type(e).__name__) from e

        if fields.is_empty:
            logger.warning("Verification page yielded no receipt data")
        else:
            logger.debug(
                "Extracted merchant=%r total=%s timestamp=%r items=%d",
                fields.merchant,
                fields.total,
                fields.timestamp,
                len(fields.items),
            )
        return fields
