"""
Pure field-resolution helpers for the document builder, no I/O.

Operator settings are stored under the keys the settings page has always
used (csv_ prefix), so existing settings rows keep working.
"""

from dataclasses import dataclass

from pn_filer.domain import OrderRequest, ShipmentRecord

# Settings keys
ENTRY_TYPE = "csv_entryType"
REFERENCE_QUALIFIER = "csv_referenceQualifier"
REFERENCE_NUMBER = "csv_referenceNumber"
MODE_OF_TRANSPORT = "csv_modeOfTransport"
NO_TRACKING_NUMBER = "csv_noTrackingNumber"
BILL_TYPE = "csv_billType"
TIME_OF_ARRIVAL = "csv_timeOfArrival"
PORT_OF_ARRIVAL = "csv_usPortOfArrival"
EQUIPMENT_NUMBER = "csv_equipmentNumber"
SHIPPER_NAME = "csv_shipperName"
SHIPPER_ADDRESS = "csv_shipperAddress"
SHIPPER_CITY = "csv_shipperCity"
SHIPPER_COUNTRY = "csv_shipperCountry"
DESCRIPTION = "csv_description"
BASE_UOM = "csv_pgaProductBaseUOM"
CARRIER_NAME = "csv_carrierName"
VESSEL_NAME = "csv_vesselName"
RAIL_CAR_NUMBER = "csv_railCarNumber"

# (uom key, quantity key) per packaging tier. Tier 2 uses the "Base" naming
# of the PN upload template.
PACKAGING_TIER_KEYS: dict[int, tuple[str, str]] = {
    1: ("csv_pgaProductPackagingUOM1", "csv_pgaProductQuantity1"),
    2: ("csv_pgaProductBaseUOM2", "csv_pgaProductBaseQuantity2"),
    3: ("csv_pgaProductPackagingUOM3", "csv_pgaProductQuantity3"),
    4: ("csv_pgaProductPackagingUOM4", "csv_pgaProductQuantity4"),
    5: ("csv_pgaProductPackagingUOM5", "csv_pgaProductQuantity5"),
}

TRACKING_REFERENCE = "tracking"


@dataclass(frozen=True)
class Consignee:
    name: str
    address: str
    city: str
    state: str
    postal_code: str
    country: str


@dataclass(frozen=True)
class PackagingTier:
    tier: int  # 0 is the base tier
    unit_of_measure: str
    quantity: int


def _present(value: str | None) -> bool:
    return value is not None and str(value).strip() != ""


def resolve_field(
    key: str,
    settings: dict[str, str],
    default: str = "",
    overrides: dict[str, str] | None = None,
) -> str:
    """Resolve one field: literal override, then settings value, then default.

    Blank strings count as absent at every level.
    """
    if overrides and _present(overrides.get(key)):
        return str(overrides[key])
    if _present(settings.get(key)):
        return str(settings[key])
    return default


def resolve_reference_number(
    order: OrderRequest,
    settings: dict[str, str],
    overrides: dict[str, str] | None = None,
) -> str:
    configured = resolve_field(REFERENCE_NUMBER, settings, "", overrides)
    if configured.strip().lower() == TRACKING_REFERENCE:
        return order.tracking_number
    return configured


def build_consignee(shipment: ShipmentRecord) -> Consignee:
    addr = shipment.shipping_address
    if addr is None:
        return Consignee("", "", "", "", "", "")

    name = f"{addr.first_name or ''} {addr.last_name or ''}".strip()
    address = " ".join(part for part in (addr.address1, addr.address2) if _present(part))
    return Consignee(
        name=name,
        address=address,
        city=addr.city or "",
        state=addr.province or "",
        postal_code=addr.zip or "",
        country=addr.country_code or "",
    )


def _parse_quantity(raw: str | None) -> int | None:
    if not _present(raw):
        return None
    try:
        value = int(str(raw).strip())
    except ValueError:
        return None
    return value if value > 0 else None


def build_packaging_tiers(
    line_quantity: int,
    settings: dict[str, str],
    overrides: dict[str, str] | None = None,
) -> list[PackagingTier]:
    """Base tier plus every configured tier from 1 to 5, keeping tier numbers.

    A tier is emitted only when its unit of measure is set and its quantity
    parses as a positive integer; anything else is treated as unset.
    """
    tiers = [
        PackagingTier(
            tier=0,
            unit_of_measure=resolve_field(BASE_UOM, settings, "", overrides),
            quantity=line_quantity,
        )
    ]
    for tier, (uom_key, qty_key) in PACKAGING_TIER_KEYS.items():
        uom = resolve_field(uom_key, settings, "", overrides)
        quantity = _parse_quantity(resolve_field(qty_key, settings, "", overrides))
        if uom and quantity is not None:
            tiers.append(PackagingTier(tier=tier, unit_of_measure=uom, quantity=quantity))
    return tiers
