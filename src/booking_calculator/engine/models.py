"""
Data models for the pricing engine.

Uses dataclasses for structured, type-safe data representation.
All currency amounts are Decimal.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional, Union


class AddonKind(str, Enum):
    """How an add-on is priced."""
    STATIC = "static"
    QUANTITY = "quantity"
    RANGE = "range"


@dataclass(frozen=True)
class QuantityConfig:
    """Per-unit pricing, e.g. travel billed per km."""
    unit_name: str
    price_per_unit: Decimal


@dataclass(frozen=True)
class RangeConfig:
    """A free allowance plus block pricing above it, e.g. extra filming hours."""
    unit_name: str
    included_amount: int
    block_size: int
    price_per_block: Decimal
    max_amount: int


AddonConfig = Union[QuantityConfig, RangeConfig]


@dataclass(frozen=True)
class Addon:
    """A single add-on from the offer catalog."""
    id: int
    name: str
    base_price: Decimal
    kind: AddonKind = AddonKind.STATIC
    config: Optional[AddonConfig] = None
    category_ids: tuple[int, ...] = ()

    @property
    def is_dynamic(self) -> bool:
        return self.kind in (AddonKind.QUANTITY, AddonKind.RANGE)

    @property
    def quantity_config(self) -> Optional[QuantityConfig]:
        """Config when this is a well-formed quantity add-on, else None."""
        if self.kind is AddonKind.QUANTITY and isinstance(self.config, QuantityConfig):
            return self.config
        return None

    @property
    def range_config(self) -> Optional[RangeConfig]:
        """Config when this is a well-formed range add-on, else None."""
        if self.kind is AddonKind.RANGE and isinstance(self.config, RangeConfig):
            return self.config
        return None


@dataclass(frozen=True)
class PackageAddon:
    """An add-on bundled into a package; locked ones cannot be removed."""
    addon: Addon
    locked: bool = True

    @property
    def id(self) -> int:
        return self.addon.id


@dataclass(frozen=True)
class Category:
    id: int
    name: str
    description: str = ""
    icon_name: str = ""


@dataclass(frozen=True)
class Package:
    """A pre-priced bundle with its base inclusions."""
    id: int
    name: str
    base_price: Decimal
    description: str = ""
    included: tuple[PackageAddon, ...] = ()
    deposit_amount: Decimal = Decimal("0")  # informational, never added to totals
    category_id: Optional[int] = None
    is_published: bool = True

    def included_ids(self) -> set[int]:
        return {item.id for item in self.included}

    def locked_ids(self) -> set[int]:
        return {item.id for item in self.included if item.locked}

    def get_included(self, addon_id: int) -> Optional[PackageAddon]:
        for item in self.included:
            if item.id == addon_id:
                return item
        return None

    def is_locked(self, addon_id: int) -> bool:
        item = self.get_included(addon_id)
        return item is not None and item.locked


@dataclass
class Catalog:
    """The current offer: categories, published packages and every add-on."""
    categories: list[Category] = field(default_factory=list)
    packages: list[Package] = field(default_factory=list)
    all_addons: list[Addon] = field(default_factory=list)

    def addon_lookup(self) -> dict[int, Addon]:
        return {addon.id: addon for addon in self.all_addons}

    def get_addon(self, addon_id: int) -> Optional[Addon]:
        for addon in self.all_addons:
            if addon.id == addon_id:
                return addon
        return None

    def get_package(self, package_id: int) -> Optional[Package]:
        for package in self.packages:
            if package.id == package_id:
                return package
        return None

    def packages_in_category(self, category_id: int) -> list[Package]:
        return [p for p in self.packages if p.category_id == category_id]


class DiscountKind(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@dataclass(frozen=True)
class Discount:
    """A confirmed discount; validity is checked before it gets here."""
    code: str
    kind: DiscountKind
    value: Decimal

    def describe(self) -> str:
        if self.kind is DiscountKind.PERCENTAGE:
            return f"-{self.value}%"
        return f"-{self.value:.2f}"


@dataclass
class TraceStep:
    """A single step in the pricing resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class LineItem:
    """One priced add-on in a quote."""
    addon_id: int
    name: str
    kind: AddonKind
    amount: Decimal
    value: Optional[Decimal] = None
    unit_name: str = ""
    included: bool = False
    locked: bool = False

    @property
    def label(self) -> str:
        """Human-readable label used in the booking selection list."""
        if self.value is None:
            return self.name
        unit = f" {self.unit_name}" if self.unit_name else ""
        return f"{self.name}: {_format_value(self.value)}{unit}"


@dataclass
class Quote:
    """Complete result of pricing a package selection."""
    package_id: int
    package_name: str
    base_price: Decimal
    subtotal: Decimal
    total: Decimal
    currency: str = "PLN"
    deposit_amount: Decimal = Decimal("0")
    lines: list[LineItem] = field(default_factory=list)
    discount: Optional[Discount] = None
    discount_amount: Decimal = Decimal("0")
    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the quote-level trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        """Add a quote-level warning."""
        if warning not in self.warnings:
            self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"• {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"• {t.step}: {t.description}")
        return "\n".join(lines)

    def selected_item_labels(self) -> list[str]:
        return [line.label for line in self.lines]

    @property
    def discount_code(self) -> Optional[str]:
        return self.discount.code if self.discount else None


def _format_value(value: Decimal) -> str:
    if value == value.to_integral_value():
        return str(int(value))
    return str(value.normalize())
