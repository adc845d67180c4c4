from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from booking_calculator.engine import DiscountKind
from booking_calculator.services.discount_service import (
    DiscountService,
    DiscountValidationError,
)


@pytest.fixture
def service(offer_settings):
    return DiscountService(offer_settings.discounts_csv)


def test_validate_active_code(service):
    discount = service.validate("wiosna10")

    assert discount.code == "WIOSNA10"
    assert discount.kind is DiscountKind.PERCENTAGE
    assert discount.value == Decimal("10")


@pytest.mark.parametrize("code", ["", "   ", None])
def test_validate_rejects_empty_code(service, code):
    with pytest.raises(DiscountValidationError, match="No discount code"):
        service.validate(code)


def test_validate_rejects_unknown_code(service):
    with pytest.raises(DiscountValidationError, match="invalid or expired"):
        service.validate("NIEMA")


def test_validate_rejects_expired_code(service):
    with pytest.raises(DiscountValidationError):
        service.validate("ZIMA2024", now=datetime(2026, 1, 1))


def test_expired_code_valid_before_expiry(service):
    discount = service.validate("ZIMA2024", now=datetime(2024, 2, 1))
    assert discount.value == Decimal("15")


def test_validate_rejects_exhausted_code(service):
    with pytest.raises(DiscountValidationError):
        service.validate("JEDEN")


def test_create_and_delete_code(service):
    created = service.create_code("lato", DiscountKind.FIXED, "250", usage_limit=5)

    assert created.id == 5
    assert service.validate("LATO").value == Decimal("250")

    service.delete_code(created.id)
    assert service.get_code("LATO") is None


def test_create_rejects_duplicates(service):
    with pytest.raises(ValueError, match="already exists"):
        service.create_code("WIOSNA10", DiscountKind.PERCENTAGE, 5)


def test_create_rejects_percentage_over_100(service):
    with pytest.raises(ValueError, match="cannot exceed 100"):
        service.create_code("ZA_DUZO", DiscountKind.PERCENTAGE, 120)


def test_validate_code_warns_about_past_expiry(service):
    from booking_calculator.services.discount_service import DiscountCode

    entry = DiscountCode(
        id=0,
        code="STARY",
        kind=DiscountKind.FIXED,
        value=Decimal("100"),
        expires_at=datetime.now() - timedelta(days=1),
    )
    result = service.validate_code(entry)

    assert result.valid
    assert any("expired" in w for w in result.warnings)


def test_record_usage_exhausts_limited_code(service):
    service.create_code("RAZ", DiscountKind.FIXED, 100, usage_limit=1)
    service.validate("RAZ")

    used = service.record_usage("raz")

    assert used.times_used == 1
    with pytest.raises(DiscountValidationError):
        service.validate("RAZ")


def test_record_usage_unknown_code(service):
    with pytest.raises(ValueError, match="not found"):
        service.record_usage("NIEMA")


def test_stats(service):
    stats = service.get_stats(now=datetime(2026, 1, 1))

    assert stats["total"] == 4
    assert stats["expired"] == 1
    assert stats["exhausted"] == 1
    assert stats["active"] == 2
    assert stats["redemptions"] == 4
    assert stats["by_kind"] == {"percentage": 2, "fixed": 2}


def test_missing_file_lists_nothing(tmp_path):
    service = DiscountService(tmp_path / "none.csv")
    assert service.list_codes() == []


def test_expiry_with_utc_offset_is_converted(offer_settings):
    with open(offer_settings.discounts_csv, 'a', encoding='utf-8') as f:
        f.write("5,TZ,fixed,100,,0,2025-06-01T00:00:00+02:00\n")
    service = DiscountService(offer_settings.discounts_csv)
    expiry = datetime(2025, 5, 31, 22, 0, tzinfo=timezone.utc)

    before = (expiry - timedelta(minutes=30)).astimezone().replace(tzinfo=None)
    after = (expiry + timedelta(minutes=30)).astimezone().replace(tzinfo=None)

    assert service.validate("TZ", now=before).value == Decimal("100")
    with pytest.raises(DiscountValidationError):
        service.validate("TZ", now=after)


def test_create_code_accepts_aware_expiry(service):
    expires = datetime.now(timezone.utc) + timedelta(days=30)

    created = service.create_code("JESIEN", DiscountKind.PERCENTAGE, 5, expires_at=expires)

    assert created.expires_at.tzinfo is None
    assert service.validate("JESIEN").value == Decimal("5")
