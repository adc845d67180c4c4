"""
Centralized settings and path configuration for the booking calculator.
"""
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


ENV_DATA_DIR = 'BOOKING_CALCULATOR_DATA_DIR'
ENV_CURRENCY = 'BOOKING_CALCULATOR_CURRENCY'
ENV_LOG_LEVEL = 'BOOKING_CALCULATOR_LOG_LEVEL'


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    project_root: Path
    data_dir: Path

    # Offer tables
    categories_csv: Path
    packages_csv: Path
    addons_csv: Path
    package_addons_csv: Path

    # Discount codes and booking ledger
    discounts_csv: Path
    bookings_csv: Path

    currency: str = 'PLN'
    log_level: str = 'INFO'

    @classmethod
    def load(cls, project_root: Optional[Path] = None, data_dir: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and environment."""
        root = project_root or get_project_root()

        if data_dir is None:
            env_dir = os.getenv(ENV_DATA_DIR)
            if env_dir:
                data_dir = Path(env_dir)
            else:
                data_dir = Path(__file__).resolve().parent.parent / 'data' / 'offer'

        return cls(
            project_root=root,
            data_dir=data_dir,
            categories_csv=data_dir / 'categories.csv',
            packages_csv=data_dir / 'packages.csv',
            addons_csv=data_dir / 'addons.csv',
            package_addons_csv=data_dir / 'package_addons.csv',
            discounts_csv=data_dir / 'discount_codes.csv',
            bookings_csv=data_dir / 'bookings.csv',
            currency=os.getenv(ENV_CURRENCY, 'PLN'),
            log_level=os.getenv(ENV_LOG_LEVEL, 'INFO').upper(),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
