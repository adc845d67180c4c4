import shutil
import sys
from decimal import Decimal
from pathlib import Path

import pytest

# Ensure `src` is importable when running tests from repo root.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

OFFER_DIR = SRC / "booking_calculator" / "data" / "offer"

from booking_calculator.config.settings import Settings
from booking_calculator.engine.models import (
    Addon,
    AddonKind,
    Catalog,
    Package,
    PackageAddon,
    QuantityConfig,
    RangeConfig,
)


@pytest.fixture
def static_addon():
    return Addon(id=10, name="Teledysk", base_price=Decimal("400"))


@pytest.fixture
def quantity_addon():
    return Addon(
        id=20,
        name="Dojazd",
        base_price=Decimal("0"),
        kind=AddonKind.QUANTITY,
        config=QuantityConfig(unit_name="km", price_per_unit=Decimal("50")),
    )


@pytest.fixture
def range_addon():
    return Addon(
        id=30,
        name="Godziny filmowania",
        base_price=Decimal("0"),
        kind=AddonKind.RANGE,
        config=RangeConfig(
            unit_name="godz.",
            included_amount=10,
            block_size=5,
            price_per_block=Decimal("100"),
            max_amount=40,
        ),
    )


@pytest.fixture
def pendrive_addon():
    return Addon(id=40, name="Pendrive", base_price=Decimal("150"))


@pytest.fixture
def basic_package():
    return Package(id=1, name="Srebrny", base_price=Decimal("3200"), deposit_amount=Decimal("500"))


@pytest.fixture
def package_with_inclusions(range_addon, pendrive_addon):
    """Range hours locked in, pendrive included but removable."""
    return Package(
        id=2,
        name="Złoty",
        base_price=Decimal("4500"),
        included=(
            PackageAddon(addon=range_addon, locked=True),
            PackageAddon(addon=pendrive_addon, locked=False),
        ),
    )


@pytest.fixture
def addon_catalog(static_addon, quantity_addon, range_addon, pendrive_addon):
    return [static_addon, quantity_addon, range_addon, pendrive_addon]


@pytest.fixture
def catalog(addon_catalog, basic_package, package_with_inclusions):
    return Catalog(packages=[basic_package, package_with_inclusions], all_addons=addon_catalog)


@pytest.fixture
def offer_settings(tmp_path):
    """Settings pointing at a private copy of the shipped offer tables."""
    data_dir = tmp_path / "offer"
    shutil.copytree(OFFER_DIR, data_dir)
    return Settings.load(project_root=ROOT, data_dir=data_dir)
