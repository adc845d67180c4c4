#!/usr/bin/env python
"""
Build pipeline - loads the offer catalog and runs the golden tests.

Usage:
    python scripts/build_all.py
"""
import subprocess
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from booking_calculator.config.logging_setup import configure_logging
from booking_calculator.data.catalog import build_catalog


def main():
    configure_logging()

    print("=" * 60)
    print("BOOKING CALCULATOR BUILD PIPELINE")
    print("=" * 60)
    print()

    print("[1/2] Loading offer catalog...")
    try:
        catalog, report = build_catalog()
    except (FileNotFoundError, ValueError) as e:
        print(f"\n❌ CATALOG FAILED: {e}")
        sys.exit(1)

    for warning in report["warnings"]:
        print(f"  WARNING: {warning}")

    print()
    print("[2/2] Running golden tests...")

    test_result = subprocess.run(
        [sys.executable, '-m', 'pytest', 'tests/test_golden_cases.py', '-v', '--tb=short'],
        cwd=Path(__file__).parent.parent
    )

    if test_result.returncode != 0:
        print("\n❌ TESTS FAILED")
        sys.exit(1)

    print()
    print("=" * 60)
    print("✅ BUILD COMPLETE")
    print("=" * 60)
    print()
    print("Summary:")
    metrics = report['metrics']
    print(f"  Packages: {metrics['packages']} (unpublished skipped: {metrics['unpublished_packages']})")
    print(f"  Add-ons: {metrics['addons']} ({metrics['dynamic_addons']} quantity/range)")
    print(f"  Inclusions: {metrics['inclusions']}")
    print()
    print("Packages:")
    for package in catalog.packages:
        print(f"  #{package.id} {package.name}: {package.base_price:.2f} ({len(package.included)} included)")


if __name__ == "__main__":
    main()
