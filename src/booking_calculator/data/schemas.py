"""
Wire schemas for the collaborators around the engine.

- CatalogPayload: the offer document `{categories, packages, allAddons}`
- DiscountPayload: a confirmed discount code from the validator
- BookingRequest / BookingConfirmation: booking submission in and out
"""
from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..engine.models import (
    Addon,
    AddonKind,
    Catalog,
    Category,
    Discount,
    DiscountKind,
    Package,
    PackageAddon,
    QuantityConfig,
    RangeConfig,
)


class AddonConfigPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    unit_name: str = Field(default="", alias="unitName")
    price_per_unit: Optional[Decimal] = Field(default=None, alias="pricePerUnit", ge=0)
    included_amount: Optional[int] = Field(default=None, alias="includedAmount", ge=0)
    block_size: Optional[int] = Field(default=None, alias="blockSize", gt=0)
    price_per_block: Optional[Decimal] = Field(default=None, alias="pricePerBlock", ge=0)
    max_amount: Optional[int] = Field(default=None, alias="maxAmount", ge=0)


class AddonPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    price: Decimal = Field(ge=0, validation_alias=AliasChoices("price", "basePrice"))
    kind: AddonKind = AddonKind.STATIC
    config: Optional[AddonConfigPayload] = None
    category_ids: List[int] = Field(default_factory=list)

    @field_validator("category_ids", mode="before")
    @classmethod
    def _drop_null_categories(cls, value):
        # array_agg over a LEFT JOIN yields [null] for add-ons without categories
        if value is None:
            return []
        return [v for v in value if v is not None]

    def to_addon(self) -> Addon:
        config = None
        cfg = self.config
        if cfg is not None:
            if self.kind is AddonKind.QUANTITY and cfg.price_per_unit is not None:
                config = QuantityConfig(unit_name=cfg.unit_name, price_per_unit=cfg.price_per_unit)
            elif (
                self.kind is AddonKind.RANGE
                and cfg.included_amount is not None
                and cfg.block_size is not None
                and cfg.price_per_block is not None
                and cfg.max_amount is not None
            ):
                config = RangeConfig(
                    unit_name=cfg.unit_name,
                    included_amount=cfg.included_amount,
                    block_size=cfg.block_size,
                    price_per_block=cfg.price_per_block,
                    max_amount=max(cfg.max_amount, cfg.included_amount),
                )
        return Addon(
            id=self.id,
            name=self.name,
            base_price=self.price,
            kind=self.kind,
            config=config,
            category_ids=tuple(self.category_ids),
        )


class PackageAddonPayload(AddonPayload):
    locked: bool = True


class CategoryPayload(BaseModel):
    id: int
    name: str
    description: Optional[str] = ""
    icon_name: Optional[str] = ""


class PackagePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    price: Decimal = Field(ge=0, validation_alias=AliasChoices("price", "basePrice"))
    description: Optional[str] = ""
    included: List[PackageAddonPayload] = Field(default_factory=list)
    deposit_amount: Decimal = Field(default=Decimal("0"), ge=0, alias="depositAmount")
    category_id: Optional[int] = None
    is_published: bool = True


class CatalogPayload(BaseModel):
    """The offer document returned by the catalog provider."""
    model_config = ConfigDict(populate_by_name=True)

    categories: List[CategoryPayload] = Field(default_factory=list)
    packages: List[PackagePayload] = Field(default_factory=list)
    all_addons: List[AddonPayload] = Field(default_factory=list, alias="allAddons")

    def to_catalog(self) -> Catalog:
        addons = [a.to_addon() for a in self.all_addons]
        packages = [
            Package(
                id=p.id,
                name=p.name,
                base_price=p.price,
                description=p.description or "",
                included=tuple(PackageAddon(addon=i.to_addon(), locked=i.locked) for i in p.included),
                deposit_amount=p.deposit_amount,
                category_id=p.category_id,
                is_published=p.is_published,
            )
            for p in self.packages
            if p.is_published
        ]
        categories = [
            Category(id=c.id, name=c.name, description=c.description or "", icon_name=c.icon_name or "")
            for c in self.categories
        ]
        return Catalog(categories=categories, packages=packages, all_addons=addons)


class DiscountPayload(BaseModel):
    """A discount code as returned by the validator."""
    model_config = ConfigDict(populate_by_name=True)

    code: str
    kind: DiscountKind = Field(validation_alias=AliasChoices("kind", "type"))
    value: Decimal = Field(ge=0)

    def to_discount(self) -> Discount:
        return Discount(code=self.code, kind=self.kind, value=self.value)


class BookingRequest(BaseModel):
    """What the calculator submits once the customer confirms."""
    model_config = ConfigDict(populate_by_name=True)

    package_name: str = Field(alias="packageName")
    total_price: Decimal = Field(ge=0, alias="totalPrice")
    discount_code: Optional[str] = Field(default=None, alias="discountCode")
    selected_items: List[str] = Field(default_factory=list, alias="selectedItems")


class BookingConfirmation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    booking_id: int = Field(alias="bookingId")
    client_id: str = Field(alias="clientId")
