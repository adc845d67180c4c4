from decimal import Decimal

import pytest
from pydantic import ValidationError

from booking_calculator.data.schemas import (
    BookingConfirmation,
    BookingRequest,
    CatalogPayload,
    DiscountPayload,
)
from booking_calculator.engine import AddonKind, DiscountKind, PricingEngine, SelectionState


OFFER = {
    "categories": [{"id": 1, "name": "Film", "description": None, "icon_name": "film"}],
    "packages": [
        {
            "id": 7,
            "name": "Złoty",
            "price": "4500.00",
            "description": "Film z teledyskiem",
            "depositAmount": "800.00",
            "category_id": 1,
            "included": [
                {"id": 1, "name": "Teledysk", "price": "400.00", "locked": True, "category_ids": [None]},
                {
                    "id": 5,
                    "name": "Godziny reportażu",
                    "price": "0",
                    "kind": "range",
                    "locked": True,
                    "config": {
                        "unitName": "godz.",
                        "includedAmount": 10,
                        "blockSize": 2,
                        "pricePerBlock": "350",
                        "maxAmount": 16,
                    },
                },
            ],
        },
        {"id": 8, "name": "Szkic", "price": "100", "is_published": False},
    ],
    "allAddons": [
        {"id": 1, "name": "Teledysk", "price": "400.00", "category_ids": [None]},
        {"id": 2, "name": "Dron", "basePrice": 600},
        {
            "id": 5,
            "name": "Godziny reportażu",
            "price": "0",
            "kind": "range",
            "config": {
                "unitName": "godz.",
                "includedAmount": 10,
                "blockSize": 2,
                "pricePerBlock": "350",
                "maxAmount": 16,
            },
        },
        {"id": 6, "name": "Dojazd", "price": 0, "kind": "quantity", "config": {"unitName": "km"}},
    ],
}


def test_catalog_payload_to_catalog():
    catalog = CatalogPayload.model_validate(OFFER).to_catalog()

    assert [p.id for p in catalog.packages] == [7]
    package = catalog.packages[0]
    assert package.deposit_amount == Decimal("800.00")
    assert package.locked_ids() == {1, 5}
    assert catalog.get_addon(1).category_ids == ()
    assert catalog.get_addon(2).base_price == Decimal("600")
    assert catalog.get_addon(5).range_config.max_amount == 16
    # quantity add-on without a unit price keeps no config
    assert catalog.get_addon(6).kind is AddonKind.QUANTITY
    assert catalog.get_addon(6).config is None


def test_catalog_payload_prices_selection():
    catalog = CatalogPayload.model_validate(OFFER).to_catalog()
    engine = PricingEngine(catalog)
    package = catalog.get_package(7)
    selection = SelectionState.for_package(package)
    selection.toggle(package, catalog.get_addon(2))
    selection.set_value(catalog.get_addon(5), 13)

    assert engine.compute_total(package, selection) == Decimal("5800.00")


def test_negative_price_rejected():
    with pytest.raises(ValidationError):
        CatalogPayload.model_validate({"allAddons": [{"id": 1, "name": "X", "price": -1}]})


def test_discount_payload_accepts_type_field():
    discount = DiscountPayload.model_validate({"code": "RABAT500", "type": "fixed", "value": "500.00"}).to_discount()

    assert discount.kind is DiscountKind.FIXED
    assert discount.value == Decimal("500.00")


def test_booking_request_serializes_with_aliases():
    request = BookingRequest(
        package_name="Złoty",
        total_price=Decimal("4410.00"),
        discount_code="WIOSNA10",
        selected_items=["Teledysk", "Godziny reportażu: 12 godz."],
    )

    payload = request.model_dump(by_alias=True)
    assert payload["packageName"] == "Złoty"
    assert payload["totalPrice"] == Decimal("4410.00")
    assert payload["discountCode"] == "WIOSNA10"
    assert payload["selectedItems"][1] == "Godziny reportażu: 12 godz."


def test_booking_confirmation_from_wire():
    confirmation = BookingConfirmation.model_validate({"bookingId": 12, "clientId": "4821"})
    assert confirmation.booking_id == 12
    assert confirmation.client_id == "4821"
