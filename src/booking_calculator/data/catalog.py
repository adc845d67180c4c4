"""
Catalog Loader - Builds the offer catalog from the CSV tables.

Tables mirror the offer database:
- categories.csv       id, name, description, icon_name
- packages.csv         id, name, description, price, deposit_amount, category_id, is_published
- addons.csv           id, name, price, kind, unit_name, price_per_unit,
                       included_amount, block_size, price_per_block, max_amount, category_ids
- package_addons.csv   package_id, addon_id, locked

Only published packages are offered, cheapest first.
"""
import hashlib
import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional

import pandas as pd

from ..config.settings import get_settings, Settings
from ..engine.models import (
    Addon,
    AddonKind,
    Catalog,
    Category,
    Package,
    PackageAddon,
    QuantityConfig,
    RangeConfig,
)
from ..engine.money import to_decimal

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {
    'packages': ['id', 'name', 'price'],
    'addons': ['id', 'name', 'price'],
    'package_addons': ['package_id', 'addon_id'],
}


def get_file_hash(path: Path) -> str:
    """Get SHA256 hash of a file."""
    if not path.exists():
        return ""
    with open(path, 'rb') as f:
        return hashlib.sha256(f.read()).hexdigest()[:12]


def parse_bool(value: str, default: bool = False) -> bool:
    """Parse a boolean from CSV string."""
    if value is None or str(value).strip() == '':
        return default
    return str(value).strip().lower() in ('true', '1', 'yes', 'on', 't')


def parse_optional_int(value: str) -> Optional[int]:
    """Parse optional integer (empty = None)."""
    if value is None or str(value).strip() == '':
        return None
    return int(float(str(value).strip()))


def parse_price(value: str, what: str) -> Decimal:
    """Parse a non-negative currency amount."""
    if value is None or str(value).strip() == '':
        raise ValueError(f"Missing price for {what}")
    price = to_decimal(value, default=Decimal("-1"))
    if price < 0:
        raise ValueError(f"Invalid price '{value}' for {what}")
    return price


def parse_id_list(value: str) -> tuple[int, ...]:
    """Parse a ';'-separated id list such as '1;3'."""
    if value is None or str(value).strip() == '':
        return ()
    return tuple(int(part) for part in str(value).split(';') if part.strip())


def _read_table(path: Path, table: str) -> pd.DataFrame:
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [c.strip() for c in df.columns]
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip()
    missing = [c for c in REQUIRED_COLUMNS.get(table, []) if c not in df.columns]
    if missing:
        raise ValueError(f"{path.name} is missing columns: {', '.join(missing)}")
    return df


def parse_addon_row(row: dict, warnings: list[str]) -> Addon:
    """Build an Addon from a CSV row; incomplete config is kept as None."""
    addon_id = int(row['id'])
    name = row.get('name', '')
    what = f"add-on {addon_id} ({name})"

    kind_raw = (row.get('kind') or 'static').strip().lower()
    try:
        kind = AddonKind(kind_raw)
    except ValueError:
        raise ValueError(f"Unknown add-on kind '{kind_raw}' for {what}") from None

    unit_name = row.get('unit_name', '')
    config = None

    if kind is AddonKind.QUANTITY:
        raw_unit_price = row.get('price_per_unit', '')
        if raw_unit_price:
            config = QuantityConfig(unit_name=unit_name, price_per_unit=parse_price(raw_unit_price, what))
        else:
            warnings.append(f"Quantity {what} has no price_per_unit; it will price at 0")

    elif kind is AddonKind.RANGE:
        included = parse_optional_int(row.get('included_amount'))
        block = parse_optional_int(row.get('block_size'))
        maximum = parse_optional_int(row.get('max_amount'))
        raw_block_price = row.get('price_per_block', '')
        if included is None or block is None or maximum is None or not raw_block_price:
            warnings.append(f"Range {what} has incomplete config; it will price at 0")
        elif block <= 0 or included < 0:
            warnings.append(f"Range {what} has invalid block_size/included_amount; it will price at 0")
        else:
            if maximum < included:
                warnings.append(f"Range {what} max_amount {maximum} below included_amount {included}; raised")
                maximum = included
            config = RangeConfig(
                unit_name=unit_name,
                included_amount=included,
                block_size=block,
                price_per_block=parse_price(raw_block_price, what),
                max_amount=maximum,
            )

    return Addon(
        id=addon_id,
        name=name,
        base_price=parse_price(row.get('price'), what),
        kind=kind,
        config=config,
        category_ids=parse_id_list(row.get('category_ids')),
    )


def build_catalog(settings: Optional[Settings] = None) -> tuple[Catalog, dict]:
    """
    Build the offer catalog from the CSV tables.

    Args:
        settings: Optional settings override

    Returns:
        (catalog, load report dictionary)
    """
    settings = settings or get_settings()

    report = {
        "timestamp": datetime.now().isoformat(),
        "status": "pending",
        "input_files": {},
        "metrics": {},
        "warnings": [],
        "errors": []
    }

    tables = {
        'packages': settings.packages_csv,
        'addons': settings.addons_csv,
        'package_addons': settings.package_addons_csv,
    }
    for table, path in tables.items():
        if not path.exists():
            raise FileNotFoundError(
                f"{path.name} not found at {path}. "
                "Point BOOKING_CALCULATOR_DATA_DIR at the offer tables."
            )
        report["input_files"][table] = {"path": str(path), "hash": get_file_hash(path)}

    categories = []
    if settings.categories_csv.exists():
        report["input_files"]["categories"] = {
            "path": str(settings.categories_csv),
            "hash": get_file_hash(settings.categories_csv)
        }
        for row in _read_table(settings.categories_csv, 'categories').to_dict(orient='records'):
            categories.append(Category(
                id=int(row['id']),
                name=row.get('name', ''),
                description=row.get('description', ''),
                icon_name=row.get('icon_name', ''),
            ))

    addons_df = _read_table(settings.addons_csv, 'addons')
    duplicates = int(addons_df['id'].duplicated().sum())
    if duplicates:
        report["warnings"].append(f"Removed {duplicates} duplicate add-on ids (kept first)")
        addons_df = addons_df.drop_duplicates('id')

    addons = [parse_addon_row(row, report["warnings"]) for row in addons_df.to_dict(orient='records')]
    addons.sort(key=lambda a: (a.name, a.id))
    addon_by_id = {a.id: a for a in addons}

    links_df = _read_table(settings.package_addons_csv, 'package_addons')
    repeated = int(links_df.duplicated(['package_id', 'addon_id']).sum())
    if repeated:
        report["warnings"].append(f"Removed {repeated} duplicate package inclusions (kept first)")
        links_df = links_df.drop_duplicates(['package_id', 'addon_id'])
    inclusions: dict[int, list[PackageAddon]] = {}
    for row in links_df.to_dict(orient='records'):
        package_id = int(row['package_id'])
        addon_id = int(row['addon_id'])
        addon = addon_by_id.get(addon_id)
        if addon is None:
            report["warnings"].append(f"Package {package_id} references unknown add-on {addon_id}; skipped")
            continue
        inclusions.setdefault(package_id, []).append(
            PackageAddon(addon=addon, locked=parse_bool(row.get('locked'), default=True))
        )

    packages_df = _read_table(settings.packages_csv, 'packages')
    packages = []
    unpublished = 0
    for row in packages_df.to_dict(orient='records'):
        if not parse_bool(row.get('is_published'), default=True):
            unpublished += 1
            continue
        package_id = int(row['id'])
        what = f"package {package_id} ({row.get('name', '')})"
        deposit = row.get('deposit_amount', '')
        packages.append(Package(
            id=package_id,
            name=row.get('name', ''),
            base_price=parse_price(row.get('price'), what),
            description=row.get('description', ''),
            included=tuple(inclusions.get(package_id, [])),
            deposit_amount=parse_price(deposit, what) if deposit else Decimal("0"),
            category_id=parse_optional_int(row.get('category_id')),
            is_published=True,
        ))
    packages.sort(key=lambda p: (p.base_price, p.id))

    known_packages = set(packages_df['id'].astype(int)) if len(packages_df) else set()
    for package_id in sorted(set(inclusions) - known_packages):
        report["warnings"].append(f"package_addons references unknown package {package_id}")

    report["metrics"] = {
        "categories": len(categories),
        "packages": len(packages),
        "unpublished_packages": unpublished,
        "addons": len(addons),
        "dynamic_addons": sum(1 for a in addons if a.is_dynamic),
        "inclusions": sum(len(v) for v in inclusions.values()),
    }
    report["status"] = "success"

    for warning in report["warnings"]:
        logger.warning(warning)
    logger.info(
        "Loaded catalog: %d packages, %d add-ons, %d categories",
        len(packages), len(addons), len(categories)
    )

    return Catalog(categories=categories, packages=packages, all_addons=addons), report


def load_catalog(settings: Optional[Settings] = None) -> Catalog:
    """Load the catalog, discarding the report."""
    catalog, _ = build_catalog(settings)
    return catalog
