#!/usr/bin/env python3
"""Debug run: load a SUF/PURS verification page and show every extraction step.

Useful when the page layout changes and the patterns in the config file need
adjusting. Settings come from the environment or a .env file:

    RECEIPT_URL       verification URL (or pass it as the first argument)
    EXPENDITA_CONFIG  config file with [scraper] / [patterns] overrides
    HEADLESS          "0" to watch the browser
    DUMP_DIR          where to save the rendered text and HTML
"""

import asyncio
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from expendita.config import load_config
from expendita.localefmt import parse_fiscal_timestamp
from expendita.suf import ReceiptPageExtractor
from expendita.suf.patterns import (
    clean_text,
    extract_items,
    extract_merchant,
    extract_timestamp,
    extract_total,
)

load_dotenv()


async def main():
    # ── Step 0: settings ──
    url = sys.argv[1] if len(sys.argv) > 1 else os.getenv("RECEIPT_URL", "").strip('"')
    if not url:
        print("[ERROR] RECEIPT_URL is not set")
        sys.exit(1)

    config = load_config(os.getenv("EXPENDITA_CONFIG") or None)
    headless = os.getenv("HEADLESS", "1") != "0"
    dump_dir = Path(os.getenv("DUMP_DIR", "/tmp/expendita-debug"))

    print("=" * 60)
    print("  Verification page debug run")
    print("=" * 60)
    print(f"[DEBUG] URL: {url}")
    print(f"[DEBUG] Settle delay: {config.scraper.settle_delay}s")
    print(f"[DEBUG] Headless: {headless}")
    print()

    # ── Step 1: page load ──
    print("── Step 1: Load page ──")
    from playwright.async_api import async_playwright

    extractor = ReceiptPageExtractor(
        config.patterns,
        headless=headless,
        settle_delay=config.scraper.settle_delay,
        navigation_timeout=config.scraper.navigation_timeout,
    )

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=headless)
        try:
            page = await browser.new_page()
            try:
                text, html = await extractor.read_page(page, url)
            except Exception as e:
                print(f"[ERROR] {type(e).__name__}: {e}")
                sys.exit(1)
        finally:
            await browser.close()

    dump_dir.mkdir(parents=True, exist_ok=True)
    (dump_dir / "page.txt").write_text(text, encoding="utf-8")
    (dump_dir / "page.html").write_text(html, encoding="utf-8")
    print(f"[OK] {len(text)} chars of text, {len(html)} chars of HTML")
    print(f"[DEBUG] Saved to {dump_dir}")
    print()

    # ── Step 2: text fields ──
    print("── Step 2: Extract fields ──")
    text = clean_text(text)
    patterns = config.patterns

    merchant = extract_merchant(text, patterns)
    print(f"  Merchant:  {merchant or '[NOT FOUND]'}")

    total = extract_total(text, patterns)
    print(f"  Total:     {total if total else '[NOT FOUND]'}")

    token = extract_timestamp(text, patterns)
    instant = parse_fiscal_timestamp(token)
    print(f"  Timestamp: {token or '[NOT FOUND]'} -> {instant}")
    print()

    # ── Step 3: item table ──
    print("── Step 3: Line items ──")
    items = extract_items(html, patterns)
    if not items:
        print("  [NOT FOUND] check items_row_selector / settle_delay")
    for item in items:
        print(f"  {item.name:<40} {item.quantity:>8} {item.total_price:>10}")

    print()
    print("=" * 60)
    print("  Done")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
