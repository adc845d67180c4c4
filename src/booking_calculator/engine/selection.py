"""
Selection state for a package being customized.

The state is owned by the caller (one per calculator session) and is
never persisted by the engine. Every write goes through the clamping
helpers so the stored values always satisfy the add-on's bounds.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

from .models import Addon, AddonKind, Package
from .money import ZERO, to_decimal

logger = logging.getLogger(__name__)


def value_floor(addon: Addon) -> Decimal:
    """Lowest value a dynamic add-on may hold."""
    cfg = addon.range_config
    if cfg is not None:
        return Decimal(cfg.included_amount)
    return ZERO


def clamp_value(addon: Addon, raw: Any) -> Decimal:
    """
    Clamp a raw numeric input into the add-on's allowed range.

    Range add-ons are held within [included_amount, max_amount], quantity
    add-ons at >= 0. Unparseable input falls back to the floor.
    """
    value = to_decimal(raw, default=value_floor(addon))

    if addon.kind is AddonKind.RANGE:
        cfg = addon.range_config
        if cfg is None:
            return max(ZERO, value)
        low = Decimal(cfg.included_amount)
        high = Decimal(max(cfg.max_amount, cfg.included_amount))
        return min(max(value, low), high)
    elif addon.kind is AddonKind.QUANTITY:
        return max(ZERO, value)
    elif addon.kind is AddonKind.STATIC:
        return ZERO
    else:
        raise ValueError(f"Unhandled add-on kind: {addon.kind!r}")


@dataclass
class SelectionState:
    """Static add-on toggles plus values for active quantity/range add-ons."""
    static_ids: set[int] = field(default_factory=set)
    dynamic_values: dict[int, Decimal] = field(default_factory=dict)

    @classmethod
    def for_package(cls, package: Package) -> 'SelectionState':
        """Start with every inclusion of the package active."""
        state = cls()
        for item in package.included:
            if item.addon.is_dynamic:
                state.dynamic_values[item.id] = value_floor(item.addon)
            else:
                state.static_ids.add(item.id)
        return state

    def copy(self) -> 'SelectionState':
        return SelectionState(set(self.static_ids), dict(self.dynamic_values))

    def is_selected(self, addon_id: int) -> bool:
        return addon_id in self.static_ids or addon_id in self.dynamic_values

    def toggle(self, package: Package, addon: Addon) -> bool:
        """
        Flip an add-on on or off.

        Locked inclusions cannot be toggled; returns False and leaves the
        state untouched. Returns True when the state changed.
        """
        if package.is_locked(addon.id):
            logger.debug("Ignoring toggle of locked add-on %s in package %s", addon.id, package.id)
            return False

        if addon.is_dynamic:
            if addon.id in self.dynamic_values:
                del self.dynamic_values[addon.id]
            else:
                self.dynamic_values[addon.id] = value_floor(addon)
        else:
            if addon.id in self.static_ids:
                self.static_ids.discard(addon.id)
            else:
                self.static_ids.add(addon.id)
        return True

    def set_value(self, addon: Addon, raw: Any) -> Optional[Decimal]:
        """
        Store a clamped value for a quantity/range add-on, activating it.

        Static add-ons carry no value; the call is ignored and None returned.
        """
        if not addon.is_dynamic:
            logger.debug("Ignoring value for static add-on %s", addon.id)
            return None
        value = clamp_value(addon, raw)
        self.dynamic_values[addon.id] = value
        return value
