"""Immutable records passed between the resolver, catalog, builder and orchestrator."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class OrderLine:
    product_ref: str
    quantity: int


@dataclass(frozen=True)
class OrderRequest:
    order_name: str
    tracking_number: str
    line_items: tuple[OrderLine, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ShippingAddress:
    first_name: str | None = None
    last_name: str | None = None
    address1: str | None = None
    address2: str | None = None
    city: str | None = None
    province: str | None = None
    zip: str | None = None
    country_code: str | None = None


@dataclass(frozen=True)
class ShipmentRecord:
    external_id: str
    order_name: str
    shipping_address: ShippingAddress | None = None


@dataclass(frozen=True)
class CatalogEntry:
    internal_id: str
    regulatory_product_code: str
