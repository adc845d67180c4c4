#!/usr/bin/env python
"""
Price a package selection from the command line.

Usage:
    python scripts/run_quote.py 2 --add 7 --set 5=13 --code WIOSNA10
"""
import argparse
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from booking_calculator.config.logging_setup import configure_logging
from booking_calculator.config.settings import get_settings
from booking_calculator.data.catalog import load_catalog
from booking_calculator.engine import PricingEngine
from booking_calculator.services.discount_service import DiscountService, DiscountValidationError


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Price a package selection")
    parser.add_argument("package_id", type=int)
    parser.add_argument("--add", type=int, action="append", default=[], metavar="ADDON_ID",
                        help="toggle an add-on (repeatable)")
    parser.add_argument("--set", action="append", default=[], metavar="ADDON_ID=VALUE",
                        help="set a quantity/range value (repeatable)")
    parser.add_argument("--code", help="discount code")
    parser.add_argument("--trace", action="store_true", help="print the resolution trace")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    engine = PricingEngine(load_catalog(settings), currency=settings.currency)
    try:
        package = engine.get_package(args.package_id)
    except KeyError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    selection = engine.start_selection(package)
    addons = engine.catalog.addon_lookup()

    for addon_id in args.add:
        addon = addons.get(addon_id)
        if addon is None:
            print(f"WARNING: unknown add-on {addon_id} ignored")
            continue
        if not selection.toggle(package, addon):
            print(f"WARNING: {addon.name} is locked in {package.name}")

    for pair in args.set:
        addon_id, _, raw = pair.partition("=")
        try:
            addon = addons.get(int(addon_id))
            requested = Decimal(raw.strip().replace(",", "."))
        except (ValueError, InvalidOperation):
            print(f"WARNING: malformed --set {pair!r} ignored (expected ADDON_ID=VALUE)")
            continue
        if addon is None:
            print(f"WARNING: unknown add-on {addon_id} ignored")
            continue
        stored = selection.set_value(addon, requested)
        if stored is not None and stored != requested:
            print(f"NOTE: {addon.name} clamped to {stored}")

    discount = None
    if args.code:
        try:
            discount = DiscountService(settings.discounts_csv).validate(args.code)
        except DiscountValidationError as e:
            print(f"WARNING: {e}")

    quote = engine.calculate(package, selection, discount)

    print(f"{package.name}: {engine.format_currency(quote.base_price)}")
    for line in quote.lines:
        marker = "🔒" if line.locked else ("•" if line.included else "+")
        print(f"  {marker} {line.label:<40} {engine.format_currency(line.amount)}")
    if quote.discount:
        print(f"  Discount {quote.discount.code} ({quote.discount.describe()}): "
              f"-{engine.format_currency(quote.discount_amount)}")
    print(f"Total: {engine.format_currency(quote.total)}")
    print(f"Deposit: {engine.format_currency(quote.deposit_amount)}")

    for warning in quote.warnings:
        print(f"WARNING: {warning}")
    if args.trace:
        print()
        print(quote.get_trace_text())


if __name__ == "__main__":
    main()
