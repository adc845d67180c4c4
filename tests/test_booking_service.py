import json
import random
from decimal import Decimal

import pytest

from booking_calculator.data.catalog import load_catalog
from booking_calculator.engine import PricingEngine
from booking_calculator.services.booking_service import BookingService, BookingSubmissionError
from booking_calculator.services.discount_service import DiscountService


@pytest.fixture
def engine(offer_settings):
    return PricingEngine(load_catalog(offer_settings))


@pytest.fixture
def discounts(offer_settings):
    return DiscountService(offer_settings.discounts_csv)


@pytest.fixture
def bookings(offer_settings, discounts):
    return BookingService(offer_settings.bookings_csv, discounts, rng=random.Random(7))


def test_build_request_from_quote(engine, discounts):
    package = engine.get_package(2)
    selection = engine.start_selection(package)
    selection.toggle(package, engine.catalog.get_addon(2))
    selection.set_value(engine.catalog.get_addon(5), 12)

    quote = engine.calculate(package, selection, discounts.validate("RABAT500"))
    request = BookingService.build_request(package, quote)

    # 4500 + 600 drone + 350 for one started block = 5450, minus 500
    assert request.total_price == Decimal("4950.00")
    assert request.discount_code == "RABAT500"
    assert request.selected_items == [
        "Teledysk ślubny",
        "Godziny reportażu: 12 godz.",
        "Pendrive w pudełku",
        "Ujęcia z drona",
    ]


def test_build_request_rejects_foreign_quote(engine):
    srebrny = engine.get_package(1)
    zloty = engine.get_package(2)
    quote = engine.calculate(srebrny, engine.start_selection(srebrny))

    with pytest.raises(BookingSubmissionError):
        BookingService.build_request(zloty, quote)


def test_submit_records_booking_and_counts_discount(engine, bookings, discounts):
    package = engine.get_package(1)
    quote = engine.calculate(package, engine.start_selection(package), discounts.validate("RABAT500"))

    confirmation = bookings.submit(BookingService.build_request(package, quote))

    assert confirmation.booking_id == 1
    assert 1000 <= int(confirmation.client_id) <= 9999
    assert discounts.get_code("RABAT500").times_used == 4

    rows = bookings.list_bookings()
    assert len(rows) == 1
    assert rows[0]["total_price"] == "2700.00"
    assert json.loads(rows[0]["selected_items"]) == ["Godziny reportażu: 10 godz.", "Dojazd: 0 km"]


def test_client_ids_are_unique(engine, bookings):
    package = engine.get_package(1)
    quote = engine.calculate(package, engine.start_selection(package))
    request = BookingService.build_request(package, quote)

    confirmations = [bookings.submit(request) for _ in range(20)]

    assert [c.booking_id for c in confirmations] == list(range(1, 21))
    assert len({c.client_id for c in confirmations}) == 20


def test_submit_rejects_exhausted_code(engine, bookings):
    package = engine.get_package(1)
    quote = engine.calculate(package, engine.start_selection(package))
    request = BookingService.build_request(package, quote).model_copy(update={"discount_code": "JEDEN"})

    with pytest.raises(BookingSubmissionError):
        bookings.submit(request)
    assert bookings.list_bookings() == []
