"""Engine subpackage - core pricing logic, selection state and discounts."""
from .pricing_engine import PricingEngine, compute_total, dynamic_cost, price_selection
from .selection import SelectionState, clamp_value
from .discounts import apply_discount, DiscountOutcome
from .models import (
    Addon,
    AddonKind,
    Catalog,
    Category,
    Discount,
    DiscountKind,
    LineItem,
    Package,
    PackageAddon,
    QuantityConfig,
    Quote,
    RangeConfig,
)

__all__ = [
    'PricingEngine', 'compute_total', 'dynamic_cost', 'price_selection',
    'SelectionState', 'clamp_value', 'apply_discount', 'DiscountOutcome',
    'Addon', 'AddonKind', 'Catalog', 'Category', 'Discount', 'DiscountKind',
    'LineItem', 'Package', 'PackageAddon', 'QuantityConfig', 'Quote', 'RangeConfig',
]
