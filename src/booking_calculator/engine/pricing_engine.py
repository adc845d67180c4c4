"""
Pricing Engine - resolves a package selection into a total with traceability.

Pipeline:
1. Start from the package base price
2. Add non-included static add-ons the customer switched on
3. Add quantity / range add-on costs for every active value
4. Deduct priced, unlocked inclusions the customer switched off
5. Clamp at zero and round half-up to the minor unit
6. Apply a confirmed discount (optional)

The engine is pure: every call recomputes from the full package, catalog
and selection snapshot and keeps no state between calls.
"""
import logging
import math
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from .discounts import apply_discount
from .models import (
    Addon,
    AddonKind,
    Catalog,
    Discount,
    LineItem,
    Package,
    PackageAddon,
    Quote,
)
from .money import ZERO, format_currency, quantize_money, to_decimal
from .selection import SelectionState, clamp_value

logger = logging.getLogger(__name__)


def dynamic_cost(addon: Addon, value: Decimal) -> Decimal:
    """
    Cost of a quantity or range add-on at the given value.

    Range add-ons bill every started block above the free allowance.
    Missing or mismatched config contributes nothing.
    """
    if addon.kind is AddonKind.STATIC:
        return ZERO
    elif addon.kind is AddonKind.QUANTITY:
        cfg = addon.quantity_config
        if cfg is None:
            return ZERO
        return value * to_decimal(cfg.price_per_unit)
    elif addon.kind is AddonKind.RANGE:
        cfg = addon.range_config
        if cfg is None or cfg.block_size <= 0:
            return ZERO
        extra = value - Decimal(cfg.included_amount)
        if extra <= 0:
            return ZERO
        blocks = math.ceil(extra / Decimal(cfg.block_size))
        return blocks * to_decimal(cfg.price_per_block)
    else:
        raise ValueError(f"Unhandled add-on kind: {addon.kind!r}")


def _build_lookup(package: Package, catalog: Iterable[Addon]) -> dict[int, Addon]:
    lookup = {addon.id: addon for addon in catalog}
    for item in package.included:
        lookup.setdefault(item.id, item.addon)
    return lookup


def _ordered_addons(package: Package, lookup: Mapping[int, Addon]) -> list[tuple[Addon, Optional[PackageAddon]]]:
    """Package inclusions first (in package order), then optional add-ons."""
    included_ids = package.included_ids()
    ordered = []
    seen = set()
    for item in package.included:
        if item.id in seen:
            continue
        seen.add(item.id)
        ordered.append((lookup[item.id], item))
    ordered.extend((addon, None) for addon_id, addon in lookup.items() if addon_id not in included_ids)
    return ordered


def price_selection(
    package: Package,
    static_selections: Iterable[int],
    dynamic_values: Mapping[int, object],
    catalog: Iterable[Addon],
    currency: str = "PLN",
) -> Quote:
    """
    Price a selection without any discount.

    Unknown add-on ids are skipped and reported as warnings; out-of-range
    values are clamped on read so a stale value cannot produce a negative
    or over-limit charge.
    """
    static_ids = set(static_selections)
    values = dict(dynamic_values)
    lookup = _build_lookup(package, catalog)

    base = to_decimal(package.base_price)
    quote = Quote(
        package_id=package.id,
        package_name=package.name,
        base_price=base,
        subtotal=ZERO,
        total=ZERO,
        currency=currency,
        deposit_amount=to_decimal(package.deposit_amount),
    )
    quote.add_trace("Package", f"{package.name} (#{package.id})", format_currency(base, currency))

    for addon_id in sorted(static_ids | set(values), key=str):
        if addon_id not in lookup:
            logger.debug("Skipping unknown add-on id %s for package %s", addon_id, package.id)
            quote.add_warning(f"Unknown add-on id {addon_id} skipped")
            quote.add_trace("Unknown Add-on", f"id {addon_id} not in catalog, skipped")

    total = base
    for addon, inclusion in _ordered_addons(package, lookup):
        in_static = addon.id in static_ids
        in_dynamic = addon.id in values
        included = inclusion is not None
        locked = bool(inclusion and inclusion.locked)

        if not (in_static or in_dynamic):
            if included and not locked and to_decimal(addon.base_price) > 0:
                price = to_decimal(addon.base_price)
                total -= price
                quote.add_trace("Deduction", f"{addon.name} removed from package", f"-{format_currency(price, currency)}")
            continue

        if addon.is_dynamic:
            if not in_dynamic:
                if included:
                    quote.lines.append(LineItem(addon.id, addon.name, addon.kind, ZERO, included=True, locked=locked))
                continue
            if addon.quantity_config is None and addon.range_config is None:
                logger.warning("Add-on %s (%s) has no usable %s config", addon.id, addon.name, addon.kind.value)
                quote.add_warning(f"Add-on '{addon.name}' has no pricing config; counted as 0")
            raw = to_decimal(values[addon.id], default=ZERO)
            value = clamp_value(addon, raw)
            if value != raw:
                quote.add_trace("Clamp", f"{addon.name} value {raw} outside bounds", str(value))
            cost = dynamic_cost(addon, value)
            total += cost
            unit = addon.config.unit_name if addon.config is not None else ""
            quote.lines.append(LineItem(
                addon.id, addon.name, addon.kind, cost,
                value=value, unit_name=unit, included=included, locked=locked,
            ))
            quote.add_trace("Add-on", f"{addon.name} × {value} {unit}".rstrip(), format_currency(cost, currency))
        else:
            if not in_static:
                # A static add-on cannot carry a value.
                continue
            if included:
                quote.lines.append(LineItem(addon.id, addon.name, addon.kind, ZERO, included=True, locked=locked))
                quote.add_trace("Included", f"{addon.name} is part of the package price")
            else:
                price = to_decimal(addon.base_price)
                total += price
                quote.lines.append(LineItem(addon.id, addon.name, addon.kind, price))
                quote.add_trace("Add-on", addon.name, format_currency(price, currency))

    if total < ZERO:
        quote.add_trace("Floor", f"Negative total {total:.2f} clamped", format_currency(ZERO, currency))
        total = ZERO
    quote.subtotal = quantize_money(total)
    quote.total = quote.subtotal
    quote.add_trace("Subtotal", "Package with add-ons", format_currency(quote.subtotal, currency))
    return quote


def compute_total(
    package: Package,
    static_selections: Iterable[int],
    dynamic_values: Mapping[int, object],
    catalog: Iterable[Addon],
) -> Decimal:
    """Total price of a package selection, rounded to 2 decimals."""
    return price_selection(package, static_selections, dynamic_values, catalog).total


class PricingEngine:
    """
    Prices package selections against a loaded offer catalog.

    Holds only the catalog; selections are passed in on every call.
    """

    def __init__(self, catalog: Catalog, currency: str = "PLN"):
        self.catalog = catalog
        self.currency = currency

    def get_package(self, package_id: int) -> Package:
        package = self.catalog.get_package(package_id)
        if package is None:
            raise KeyError(f"Package {package_id} not found in catalog")
        return package

    def available_addons(self, package: Package) -> list[Addon]:
        """Catalog add-ons the customer may add on top of the package."""
        included_ids = package.included_ids()
        return [addon for addon in self.catalog.all_addons if addon.id not in included_ids]

    def start_selection(self, package: Package) -> SelectionState:
        return SelectionState.for_package(package)

    def compute_total(self, package: Package, selection: SelectionState) -> Decimal:
        return compute_total(package, selection.static_ids, selection.dynamic_values, self.catalog.all_addons)

    def calculate(
        self,
        package: Package,
        selection: SelectionState,
        discount: Optional[Discount] = None,
    ) -> Quote:
        """
        Calculate a quote with full traceability.

        Args:
            package: The chosen package
            selection: Current customer selection
            discount: A discount already confirmed by the discount service

        Returns:
            Quote with lines, trace, warnings and the final total
        """
        quote = price_selection(
            package,
            selection.static_ids,
            selection.dynamic_values,
            self.catalog.all_addons,
            currency=self.currency,
        )
        if discount is not None:
            outcome = apply_discount(quote.subtotal, discount)
            quote.discount = discount
            quote.discount_amount = outcome.discount_amount
            quote.total = outcome.final_price
            for message in outcome.traces:
                quote.add_trace("Discount", message, format_currency(outcome.final_price, self.currency))
        quote.add_trace("Total", "Amount due", format_currency(quote.total, self.currency))
        return quote

    def selected_item_labels(self, package: Package, selection: SelectionState) -> list[str]:
        return self.calculate(package, selection).selected_item_labels()

    def format_currency(self, value: Decimal) -> str:
        return format_currency(value, self.currency)
