"""CLI entry point."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from .config import ExpenditaConfig, load_config
from .db import ReceiptDB
from .detector import detect
from .errors import IngestionError
from .localefmt import format_datetime, format_number, to_iso
from .manual import ReceiptForm, add_manual_receipt, save_edit
from .models import Receipt
from .orchestrator import ScanOrchestrator
from .suf import ReceiptPageExtractor

LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="expendita",
        description="Fiscal receipt scanning and bookkeeping",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to the configuration file (TOML)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    # scan
    scan_parser = sub.add_parser("scan", help="Ingest a scanned QR payload")
    scan_parser.add_argument(
        "payload", nargs="?", default=None,
        help="QR payload text (read from stdin if omitted)",
    )
    scan_parser.add_argument(
        "--image", type=str, default=None, help="Read the QR code from an image file"
    )
    scan_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # detect
    detect_parser = sub.add_parser("detect", help="Show the format of a QR payload")
    detect_parser.add_argument("payload")

    # add
    add_parser = sub.add_parser("add", help="Add a receipt manually")
    add_parser.add_argument("--merchant", required=True)
    add_parser.add_argument("--total", required=True, help='e.g. "1.234,56"')
    add_parser.add_argument("--date", default=None, help="DD.MM.YYYY (default: today)")
    add_parser.add_argument("--time", default=None, help="HH:MM (default: now)")

    # list
    list_parser = sub.add_parser("list", help="List receipts, newest first")
    list_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # show
    show_parser = sub.add_parser("show", help="Show a receipt with its items")
    show_parser.add_argument("id", type=int)
    show_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # edit
    edit_parser = sub.add_parser("edit", help="Edit a receipt")
    edit_parser.add_argument("id", type=int)
    edit_parser.add_argument("--merchant", default=None)
    edit_parser.add_argument("--total", default=None)
    edit_parser.add_argument("--date", default=None)
    edit_parser.add_argument("--time", default=None)

    # delete
    delete_parser = sub.add_parser("delete", help="Delete a receipt")
    delete_parser.add_argument("id", type=int)

    # clear
    clear_parser = sub.add_parser("clear", help="Delete all receipts")
    clear_parser.add_argument(
        "--yes", action="store_true", help="Confirm deleting every receipt"
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    config = load_config(args.config)
    _configure_logging(config, args.verbose)

    if args.command == "detect":
        print(detect(args.payload).value)
        return

    with ReceiptDB(config.database.path) as store:
        try:
            match args.command:
                case "scan":
                    ok = asyncio.run(_cmd_scan(config, args, store))
                case "add":
                    ok = _cmd_add(args, store)
                case "list":
                    ok = _cmd_list(args, store)
                case "show":
                    ok = _cmd_show(args, store)
                case "edit":
                    ok = _cmd_edit(args, store)
                case "delete":
                    ok = _cmd_delete(args, store)
                case "clear":
                    ok = _cmd_clear(args, store)
        except IngestionError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            ok = False

    if not ok:
        sys.exit(1)


def _configure_logging(config: ExpenditaConfig, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(
        logging, config.logging.level, logging.WARNING
    )
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def _receipt_to_dict(receipt: Receipt) -> dict:
    return {
        "id": receipt.id,
        "merchant": receipt.merchant,
        "total": str(receipt.total),
        "timestamp": to_iso(receipt.timestamp) if receipt.timestamp else None,
        "verification_url": receipt.verification_url,
        "raw_data": receipt.raw_data,
        "items": [
            {
                "name": item.name,
                "quantity": str(item.quantity),
                "total_price": str(item.total_price),
            }
            for item in receipt.items
        ],
    }


def _receipt_line(receipt: Receipt) -> str:
    when = format_datetime(receipt.timestamp) if receipt.timestamp else "-"
    return (
        f"{receipt.id:>5}  {when:<17}  {format_number(receipt.total):>12} RSD"
        f"  {receipt.merchant}"
    )


async def _cmd_scan(config: ExpenditaConfig, args, store: ReceiptDB) -> bool:
    if args.image:
        from .scanner import QRImageReader

        try:
            raw = QRImageReader().read(args.image)
        except (ImportError, FileNotFoundError, RuntimeError) as e:
            print(f"QR read error: {e}", file=sys.stderr)
            return False
    elif args.payload:
        raw = args.payload
    else:
        raw = sys.stdin.read().strip()

    extractor = ReceiptPageExtractor(
        config.patterns,
        headless=config.scraper.headless,
        settle_delay=config.scraper.settle_delay,
        navigation_timeout=config.scraper.navigation_timeout,
        browser=config.scraper.browser,
    )
    orchestrator = ScanOrchestrator(store, extractor, currency=config.ips.currency)

    outcome = await orchestrator.handle_scan(raw)
    if outcome is None:
        print("Scan was not processed.", file=sys.stderr)
        return False

    if args.json:
        data = {
            "state": outcome.state.value,
            "format": outcome.format.value,
            "failure": outcome.failure.value if outcome.failure else None,
            "message": outcome.message,
            "receipt": _receipt_to_dict(outcome.receipt) if outcome.receipt else None,
        }
        print(json.dumps(data, ensure_ascii=False, indent=2))
    elif outcome.ok:
        print(f"Saved receipt {outcome.receipt_id}:")
        print(_receipt_line(outcome.receipt))
    else:
        hint = " Please scan again." if outcome.retryable else ""
        print(f"Scan failed ({outcome.failure.value}): {outcome.message}.{hint}",
              file=sys.stderr)
    return outcome.ok


def _cmd_add(args, store: ReceiptDB) -> bool:
    form = ReceiptForm.blank()
    form.merchant = args.merchant
    form.type_total(args.total)
    if args.date:
        form.date = args.date
    if args.time:
        form.time = args.time

    receipt_id = add_manual_receipt(store, form)
    print(f"Added receipt {receipt_id}")
    return True


def _cmd_list(args, store: ReceiptDB) -> bool:
    receipts = store.get_all()
    if args.json:
        print(json.dumps([_receipt_to_dict(r) for r in receipts],
                         ensure_ascii=False, indent=2))
        return True
    if not receipts:
        print("No receipts yet.")
        return True
    for receipt in receipts:
        print(_receipt_line(receipt))
    return True


def _cmd_show(args, store: ReceiptDB) -> bool:
    receipt = store.get(args.id)
    if receipt is None:
        print(f"Receipt {args.id} not found", file=sys.stderr)
        return False

    if args.json:
        print(json.dumps(_receipt_to_dict(receipt), ensure_ascii=False, indent=2))
        return True

    print(_receipt_line(receipt))
    if receipt.verification_url:
        print(f"       {receipt.verification_url}")
    for item in receipt.items:
        print(f"       {item.name:<40} {item.quantity:>8} {format_number(item.total_price):>12}")
    return True


def _cmd_edit(args, store: ReceiptDB) -> bool:
    current = store.get(args.id)
    if current is None:
        print(f"Receipt {args.id} not found", file=sys.stderr)
        return False

    form = ReceiptForm.from_receipt(current)
    if args.merchant is not None:
        form.merchant = args.merchant
    if args.total is not None:
        form.total = ""
        form.type_total(args.total)
    if args.date is not None:
        form.date = args.date
    if args.time is not None:
        form.time = args.time

    if save_edit(store, args.id, form):
        print(f"Updated receipt {args.id}")
    else:
        print("Nothing to change.")
    return True


def _cmd_delete(args, store: ReceiptDB) -> bool:
    if not store.delete(args.id):
        print(f"Receipt {args.id} not found", file=sys.stderr)
        return False
    print(f"Deleted receipt {args.id}")
    return True


def _cmd_clear(args, store: ReceiptDB) -> bool:
    if not args.yes:
        print("Refusing to delete all receipts without --yes", file=sys.stderr)
        return False
    count = store.delete_all()
    print(f"Deleted {count} receipts")
    return True
