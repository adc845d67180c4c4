"""
Discount Service - discount code storage and validation.
Handles reading/writing discount_codes.csv and resolving a code to a Discount.
"""
import csv
import logging
from pathlib import Path
from datetime import datetime
from decimal import Decimal
from typing import Optional
from dataclasses import dataclass, field

from ..engine.models import Discount, DiscountKind
from ..engine.money import to_decimal

logger = logging.getLogger(__name__)


class DiscountValidationError(ValueError):
    """Raised when a code is empty, unknown, expired or used up."""


def _to_local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Expiry times are compared as naive local time."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return _to_local_naive(datetime.fromisoformat(value.strip()))


def normalize_code(code: Optional[str]) -> str:
    return (code or '').strip().upper()


@dataclass
class DiscountCode:
    """A stored discount code."""
    id: int
    code: str
    kind: DiscountKind
    value: Decimal
    usage_limit: Optional[int] = None
    times_used: int = 0
    expires_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now

    def is_exhausted(self) -> bool:
        return self.usage_limit is not None and self.times_used >= self.usage_limit

    def to_discount(self) -> Discount:
        return Discount(code=self.code, kind=self.kind, value=self.value)

    def to_csv_row(self) -> dict:
        """Convert to CSV row format."""
        return {
            'id': str(self.id),
            'code': self.code,
            'type': self.kind.value,
            'value': str(self.value),
            'usage_limit': str(self.usage_limit) if self.usage_limit is not None else '',
            'times_used': str(self.times_used),
            'expires_at': self.expires_at.isoformat() if self.expires_at else '',
        }

    @classmethod
    def from_csv_row(cls, row: dict) -> 'DiscountCode':
        """Create DiscountCode from CSV row."""
        return cls(
            id=int(row.get('id') or 0),
            code=normalize_code(row.get('code')),
            kind=DiscountKind((row.get('type') or 'percentage').strip().lower()),
            value=to_decimal(row.get('value')),
            usage_limit=int(row['usage_limit']) if row.get('usage_limit') else None,
            times_used=int(row.get('times_used') or 0),
            expires_at=_parse_datetime(row.get('expires_at')),
        )


@dataclass
class ValidationResult:
    """Result of discount code validation before saving."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class DiscountService:
    """Service for managing and validating discount codes."""

    CSV_COLUMNS = ['id', 'code', 'type', 'value', 'usage_limit', 'times_used', 'expires_at']

    def __init__(self, discounts_csv_path: Path):
        self.discounts_csv_path = discounts_csv_path

    def list_codes(self) -> list[DiscountCode]:
        """List all codes from CSV."""
        codes = []
        if not self.discounts_csv_path.exists():
            return codes

        with open(self.discounts_csv_path, 'r', encoding='utf-8', newline='') as f:
            reader = csv.DictReader(f)
            for row in reader:
                if not row.get('code'):
                    continue
                codes.append(DiscountCode.from_csv_row(row))

        return codes

    def get_code(self, code: str) -> Optional[DiscountCode]:
        """Get a single code, case-insensitively."""
        wanted = normalize_code(code)
        for entry in self.list_codes():
            if entry.code == wanted:
                return entry
        return None

    def validate(self, code: str, now: Optional[datetime] = None) -> Discount:
        """
        Resolve a code to a confirmed Discount.

        Raises DiscountValidationError when the code is missing, unknown,
        expired or has reached its usage limit.
        """
        if not normalize_code(code):
            raise DiscountValidationError("No discount code given")

        now = _to_local_naive(now) or datetime.now()
        entry = self.get_code(code)
        if entry is None:
            logger.info("Rejected unknown discount code %r", code)
            raise DiscountValidationError(f"Discount code '{normalize_code(code)}' is invalid or expired")
        if entry.is_expired(now) or entry.is_exhausted():
            logger.info("Rejected inactive discount code %s", entry.code)
            raise DiscountValidationError(f"Discount code '{entry.code}' is invalid or expired")

        return entry.to_discount()

    def validate_code(self, entry: DiscountCode) -> ValidationResult:
        """Validate a code definition before saving."""
        result = ValidationResult(valid=True)

        if not entry.code:
            result.errors.append("Code is required")
            result.valid = False

        if entry.value <= 0:
            result.errors.append("Value must be greater than zero")
            result.valid = False

        if entry.kind is DiscountKind.PERCENTAGE and entry.value > 100:
            result.errors.append("Percentage discount cannot exceed 100")
            result.valid = False

        if entry.usage_limit is not None and entry.usage_limit < 0:
            result.errors.append("Usage limit cannot be negative")
            result.valid = False

        if entry.expires_at and entry.expires_at < datetime.now():
            result.warnings.append("Code has expired (expiry date is in the past)")

        if entry.code and self.get_code(entry.code) is not None:
            result.warnings.append(f"Code '{entry.code}' already exists")

        return result

    def create_code(
        self,
        code: str,
        kind: DiscountKind,
        value,
        usage_limit: Optional[int] = None,
        expires_at: Optional[datetime] = None,
    ) -> DiscountCode:
        """Create a new discount code."""
        codes = self.list_codes()
        entry = DiscountCode(
            id=max((c.id for c in codes), default=0) + 1,
            code=normalize_code(code),
            kind=DiscountKind(kind),
            value=to_decimal(value),
            usage_limit=usage_limit,
            expires_at=_to_local_naive(expires_at),
        )

        validation = self.validate_code(entry)
        if not validation.valid:
            raise ValueError("; ".join(validation.errors))
        if any(c.code == entry.code for c in codes):
            raise ValueError(f"Discount code '{entry.code}' already exists")

        codes.append(entry)
        self._write_codes(codes)
        logger.info("Created discount code %s (%s %s)", entry.code, entry.kind.value, entry.value)
        return entry

    def delete_code(self, code_id: int) -> bool:
        """Delete a code by id."""
        codes = self.list_codes()
        remaining = [c for c in codes if c.id != code_id]

        if len(remaining) == len(codes):
            raise ValueError(f"Discount code with ID '{code_id}' not found")

        self._write_codes(remaining)
        return True

    def record_usage(self, code: str) -> DiscountCode:
        """Count one redemption of a code."""
        wanted = normalize_code(code)
        codes = self.list_codes()
        for entry in codes:
            if entry.code == wanted:
                entry.times_used += 1
                self._write_codes(codes)
                return entry
        raise ValueError(f"Discount code '{wanted}' not found")

    def _write_codes(self, codes: list[DiscountCode]):
        """Write codes back to CSV."""
        self.discounts_csv_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.discounts_csv_path, 'w', encoding='utf-8', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=self.CSV_COLUMNS)
            writer.writeheader()
            for entry in codes:
                writer.writerow(entry.to_csv_row())

    def get_stats(self, now: Optional[datetime] = None) -> dict:
        """Get statistics about discount codes."""
        codes = self.list_codes()
        now = _to_local_naive(now) or datetime.now()

        expired = [c for c in codes if c.is_expired(now)]
        exhausted = [c for c in codes if c.is_exhausted()]
        by_kind = {}
        for c in codes:
            by_kind[c.kind.value] = by_kind.get(c.kind.value, 0) + 1

        return {
            'total': len(codes),
            'active': len([c for c in codes if not c.is_expired(now) and not c.is_exhausted()]),
            'expired': len(expired),
            'exhausted': len(exhausted),
            'redemptions': sum(c.times_used for c in codes),
            'by_kind': by_kind,
        }
