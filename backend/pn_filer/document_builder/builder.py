"""
Document builder.

Combines orders, resolved shipments, catalog entries and operator settings
into filing documents in the shape of a chosen format version. Pure and
deterministic: the same inputs always produce the same documents in the
same order.

Skips are explicit. Every order either yields documents or a SkippedItem
with a reason, and every unresolvable line yields its own SkippedItem, so
callers can report exactly why an order did not make it into the batch.
"""

import enum
import logging
from dataclasses import dataclass, field
from datetime import date

from pn_filer.document_builder import fields as f
from pn_filer.document_builder.formats import (
    Cardinality,
    FormatSpec,
    FormatVersion,
    get_format_spec,
)
from pn_filer.domain import CatalogEntry, OrderLine, OrderRequest, ShipmentRecord

logger = logging.getLogger("pnfiler.builder")


class SkipReason(str, enum.Enum):
    SHIPMENT_NOT_FOUND = "shipment_not_found"
    NO_SHIPPING_ADDRESS = "no_shipping_address"
    PRODUCT_NOT_FOUND = "product_not_found"
    NO_RESOLVABLE_LINE_ITEMS = "no_resolvable_line_items"


@dataclass(frozen=True)
class SkippedItem:
    order_name: str
    reason: SkipReason
    product_ref: str | None = None

    @property
    def is_order_level(self) -> bool:
        return self.reason != SkipReason.PRODUCT_NOT_FOUND


@dataclass
class BuiltDocument:
    order_name: str
    tracking_number: str
    format_version: FormatVersion
    payload: dict
    line_count: int = 1


@dataclass
class BuildResult:
    documents: list[BuiltDocument] = field(default_factory=list)
    skipped: list[SkippedItem] = field(default_factory=list)

    @property
    def skipped_orders(self) -> list[SkippedItem]:
        return [s for s in self.skipped if s.is_order_level]

    @property
    def payloads(self) -> list[dict]:
        return [d.payload for d in self.documents]


@dataclass(frozen=True)
class _ResolvedLine:
    line: OrderLine
    entry: CatalogEntry


@dataclass(frozen=True)
class _OrderContext:
    """Fields shared by every document shape for one order."""

    order: OrderRequest
    consignee: f.Consignee
    reference_number: str
    arrival_date: str
    settings: dict[str, str]
    overrides: dict[str, str] | None
    spec: FormatSpec

    def value(self, key: str, default_name: str | None = None) -> str:
        default = self.spec.default(default_name) if default_name else ""
        return f.resolve_field(key, self.settings, default, self.overrides)


def build_documents(
    orders: list[OrderRequest],
    shipments: dict[str, ShipmentRecord],
    catalog: dict[str, CatalogEntry],
    settings: dict[str, str],
    arrival_date: date,
    format_version: FormatVersion | str,
    overrides: dict[str, str] | None = None,
) -> BuildResult:
    """Build filing documents for a batch of orders.

    Args:
        orders: Orders in submission order.
        shipments: Resolved shipment records keyed by order name.
        catalog: Catalog entries keyed by internal product id.
        settings: Operator settings map (missing keys fall back to defaults).
        arrival_date: Estimated date of arrival.
        format_version: Output shape; selects date format and cardinality.
        overrides: Literal per-request values that win over settings.

    Returns:
        BuildResult with documents in input order and every skip recorded.
    """
    spec = get_format_spec(format_version)
    formatted_date = spec.format_date(arrival_date)
    result = BuildResult()

    for order in orders:
        shipment = shipments.get(order.order_name)
        if shipment is None:
            logger.warning("Order not found in Shopify: %s", order.order_name)
            result.skipped.append(SkippedItem(order.order_name, SkipReason.SHIPMENT_NOT_FOUND))
            continue
        if shipment.shipping_address is None:
            logger.warning("Order has no shipping address: %s", order.order_name)
            result.skipped.append(SkippedItem(order.order_name, SkipReason.NO_SHIPPING_ADDRESS))
            continue

        lines: list[_ResolvedLine] = []
        for line in order.line_items:
            entry = catalog.get(line.product_ref)
            if entry is None:
                logger.warning("Product not found: %s (order %s)", line.product_ref, order.order_name)
                result.skipped.append(
                    SkippedItem(order.order_name, SkipReason.PRODUCT_NOT_FOUND, line.product_ref)
                )
                continue
            lines.append(_ResolvedLine(line, entry))

        if not lines:
            result.skipped.append(SkippedItem(order.order_name, SkipReason.NO_RESOLVABLE_LINE_ITEMS))
            continue

        ctx = _OrderContext(
            order=order,
            consignee=f.build_consignee(shipment),
            reference_number=f.resolve_reference_number(order, settings, overrides),
            arrival_date=formatted_date,
            settings=settings,
            overrides=overrides,
            spec=spec,
        )

        if spec.cardinality == Cardinality.PER_LINE:
            for resolved in lines:
                result.documents.append(
                    BuiltDocument(order.order_name, order.tracking_number, spec.version, _flat_row(ctx, resolved))
                )
        else:
            shape = _abi_document if spec.version == FormatVersion.ABI_DOCUMENT else _fda_pn_document
            result.documents.append(
                BuiltDocument(
                    order.order_name,
                    order.tracking_number,
                    spec.version,
                    shape(ctx, lines),
                    line_count=len(lines),
                )
            )

    return result


# ── Flat file: one row per order line ──


def _flat_row(ctx: _OrderContext, resolved: _ResolvedLine) -> dict:
    order = ctx.order
    c = ctx.consignee
    tiers = {t.tier: t for t in f.build_packaging_tiers(resolved.line.quantity, ctx.settings, ctx.overrides)}

    def uom(tier: int) -> str:
        return tiers[tier].unit_of_measure if tier in tiers else ""

    def qty(tier: int) -> str:
        return str(tiers[tier].quantity) if tier in tiers else ""

    return {
        "Entry Type": ctx.value(f.ENTRY_TYPE, "entry_type"),
        "Reference Qualifier": ctx.value(f.REFERENCE_QUALIFIER, "reference_qualifier"),
        "Reference Number": ctx.reference_number,
        "Mode of Transport": ctx.value(f.MODE_OF_TRANSPORT, "mode_of_transport"),
        "I dont have a Tracking Number": ctx.value(f.NO_TRACKING_NUMBER, "no_tracking_number"),
        "Bill Type": ctx.value(f.BILL_TYPE, "bill_type"),
        "MBOL/TRIP Number": order.order_name,
        "HBOL/ Shipment Control Number": order.tracking_number,
        "Estimate Date of Arrival": ctx.arrival_date,
        "Time of Arrival": ctx.value(f.TIME_OF_ARRIVAL, "time_of_arrival"),
        "US Port of Arrival": ctx.value(f.PORT_OF_ARRIVAL, "port_of_arrival"),
        "Equipment Number": ctx.value(f.EQUIPMENT_NUMBER),
        "Shipper Name": ctx.value(f.SHIPPER_NAME),
        "Shipper Address": ctx.value(f.SHIPPER_ADDRESS),
        "Shipper City": ctx.value(f.SHIPPER_CITY),
        "Shipper Country": ctx.value(f.SHIPPER_COUNTRY),
        "Consignee Name": c.name,
        "Consignee Address": c.address,
        "Consignee City": c.city,
        "Consignee State or Province": c.state,
        "Consignee Postal Code": c.postal_code,
        "Consignee Country": c.country,
        "Description": ctx.value(f.DESCRIPTION),
        "Product ID": resolved.entry.regulatory_product_code,
        "PGA Product Base UOM": uom(0),
        "PGA Product Base Quantity": qty(0),
        "PGA Product Packaging UOM 1": uom(1),
        "PGA Product Quantity 1": qty(1),
        "PGA Product Base UOM 2": uom(2),
        "PGA Product Base Quantity 2": qty(2),
        "PGA Product Packaging UOM 3": uom(3),
        "PGA Product Quantity 3": qty(3),
        "PGA Product Packaging UOM 4": uom(4),
        "PGA Product Quantity 4": qty(4),
        "PGA Product Packaging UOM 5": uom(5),
        "PGA Product Quantity 5": qty(5),
        "Carrier Name": ctx.value(f.CARRIER_NAME, "carrier_name"),
        "Vessel Name": ctx.value(f.VESSEL_NAME),
        "Voyage Trip Flight Number": order.tracking_number,
        "Rail Car Number": ctx.value(f.RAIL_CAR_NUMBER),
    }


# ── ABI document: one per order, flat tier fields per product ──

_ABI_TIER_FIELDS = {
    1: ("pgaProductPackagingUOM1", "pgaProductQuantity1"),
    2: ("pgaProductBaseUOM2", "pgaProductBaseQuantity2"),
    3: ("pgaProductPackagingUOM3", "pgaProductQuantity3"),
    4: ("pgaProductPackagingUOM4", "pgaProductQuantity4"),
    5: ("pgaProductPackagingUOM5", "pgaProductQuantity5"),
}


def _abi_product(ctx: _OrderContext, resolved: _ResolvedLine) -> dict:
    product = {
        "description": ctx.value(f.DESCRIPTION),
        "productId": resolved.entry.regulatory_product_code,
    }
    for tier in f.build_packaging_tiers(resolved.line.quantity, ctx.settings, ctx.overrides):
        if tier.tier == 0:
            product["pgaProductBaseUOM"] = tier.unit_of_measure
            product["pgaProductBaseQuantity"] = str(tier.quantity)
        else:
            uom_field, qty_field = _ABI_TIER_FIELDS[tier.tier]
            product[uom_field] = tier.unit_of_measure
            product[qty_field] = str(tier.quantity)
    return product


def _abi_document(ctx: _OrderContext, lines: list[_ResolvedLine]) -> dict:
    order = ctx.order
    c = ctx.consignee
    return {
        "entryType": ctx.value(f.ENTRY_TYPE, "entry_type"),
        "referenceQualifier": ctx.value(f.REFERENCE_QUALIFIER, "reference_qualifier"),
        "referenceNumber": ctx.reference_number,
        "modeOfTransport": ctx.value(f.MODE_OF_TRANSPORT, "mode_of_transport"),
        "noTrackingNumber": ctx.value(f.NO_TRACKING_NUMBER, "no_tracking_number"),
        "billType": ctx.value(f.BILL_TYPE, "bill_type"),
        "mbolTripNumber": order.order_name,
        "hbolShipmentControlNumber": order.tracking_number,
        "estimatedDateOfArrival": ctx.arrival_date,
        "timeOfArrival": ctx.value(f.TIME_OF_ARRIVAL, "time_of_arrival"),
        "usPortOfArrival": ctx.value(f.PORT_OF_ARRIVAL, "port_of_arrival"),
        "equipmentNumber": ctx.value(f.EQUIPMENT_NUMBER),
        "shipper": {
            "name": ctx.value(f.SHIPPER_NAME),
            "address": ctx.value(f.SHIPPER_ADDRESS),
            "city": ctx.value(f.SHIPPER_CITY),
            "country": ctx.value(f.SHIPPER_COUNTRY),
        },
        "consignee": {
            "name": c.name,
            "address": c.address,
            "city": c.city,
            "stateOrProvince": c.state,
            "postalCode": c.postal_code,
            "country": c.country,
        },
        "products": [_abi_product(ctx, resolved) for resolved in lines],
        "carrier": {
            "name": ctx.value(f.CARRIER_NAME, "carrier_name"),
            "vesselName": ctx.value(f.VESSEL_NAME),
            "voyageTripFlightNumber": order.tracking_number,
            "railCarNumber": ctx.value(f.RAIL_CAR_NUMBER),
        },
    }


# ── FDA PN: one envelope per order, nested items with packaging lists ──


def _or_none(value: str) -> str | None:
    return value or None


def _fda_pn_item(ctx: _OrderContext, resolved: _ResolvedLine, line_number: int) -> dict:
    c = ctx.consignee
    description = ctx.value(f.DESCRIPTION)
    shipper_country = ctx.value(f.SHIPPER_COUNTRY)
    item = {
        "pgaLineNumber": line_number,
        "productCode": resolved.entry.regulatory_product_code,
        "ultimateConsigneeName": c.name,
        "ultimateConsigneeFeiOrDunsCode": None,
        "ultimateConsigneeFeiOrDuns": None,
        "ultimateConsigneeAddress": c.address,
        "ultimateConsigneeAddress2": None,
        "ultimateConsigneeUnitNumber": None,
        "ultimateConsigneeCountry": c.country,
        "ultimateConsigneeStateOrProvince": c.state,
        "ultimateConsigneeCity": c.city,
        "ultimateConsigneeZipPostalCode": c.postal_code,
        "shipperName": ctx.value(f.SHIPPER_NAME),
        "shipperFeiOrDunsCode": None,
        "shipperFeiOrDuns": None,
        "shipperAddress": ctx.value(f.SHIPPER_ADDRESS),
        "shipperAddress2": None,
        "shipperUnitNumber": None,
        "shipperCountry": shipper_country,
        "shipperStateOrProvince": None,
        "shipperCity": ctx.value(f.SHIPPER_CITY),
        "shipperZipPostalCode": None,
        "packaging": [
            {"quantity": tier.quantity, "unitOfMeasure": tier.unit_of_measure}
            for tier in f.build_packaging_tiers(resolved.line.quantity, ctx.settings, ctx.overrides)
        ],
    }
    if description:
        item["productDescription"] = description
        item["itemDescription"] = description
    if shipper_country:
        item["countryOfShipment"] = shipper_country
    return item


def _fda_pn_document(ctx: _OrderContext, lines: list[_ResolvedLine]) -> dict:
    order = ctx.order
    description = ctx.value(f.DESCRIPTION)
    body = {
        "pncNumber": None,
        "entryType": ctx.value(f.ENTRY_TYPE, "entry_type"),
        "referenceQualifier": ctx.value(f.REFERENCE_QUALIFIER, "reference_qualifier"),
        "modeOfTransport": ctx.value(f.MODE_OF_TRANSPORT, "mode_of_transport"),
        "referenceNumber": _or_none(ctx.reference_number),
        "entryNumber": None,
        "ftzAdmission": None,
        "inbondNumber": None,
        "billType": ctx.value(f.BILL_TYPE, "bill_type"),
        "MBOLNumber": order.order_name,
        "HBOLNumber": order.tracking_number,
        "trip": None,
        "scnBol": None,
        "consolidationId": None,
        "expressCarrierTrackingNumber": None,
        "importingCarrier": None,
        "dateOfArrival": ctx.arrival_date,
        "timeOfArrival": ctx.value(f.TIME_OF_ARRIVAL, "time_of_arrival"),
        "portOfArrival": ctx.value(f.PORT_OF_ARRIVAL, "port_of_arrival"),
        "equipmentNumber": _or_none(ctx.value(f.EQUIPMENT_NUMBER)),
        "carrierName": ctx.value(f.CARRIER_NAME, "carrier_name"),
        "vesselName": _or_none(ctx.value(f.VESSEL_NAME)),
        "voyageNumber": order.tracking_number,
        "railCarNumber": _or_none(ctx.value(f.RAIL_CAR_NUMBER)),
        "items": [_fda_pn_item(ctx, resolved, n) for n, resolved in enumerate(lines, start=1)],
    }
    if description:
        body["oiDescription"] = description
    return {
        "type": "fda-pn",
        "send": False,
        "sendAs": "add",
        "body": [body],
    }
