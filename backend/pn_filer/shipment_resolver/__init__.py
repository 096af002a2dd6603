from pn_filer.shipment_resolver.service import ShipmentResolver

__all__ = ["ShipmentResolver"]
