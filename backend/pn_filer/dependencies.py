from collections.abc import AsyncIterator

from fastapi import Depends

from pn_filer.config import settings
from pn_filer.database import get_db
from pn_filer.reconciliation_worker.service import ReconciliationWorker
from pn_filer.services.customscity_client import CustomsCityClient
from pn_filer.services.shopify_client import ShopifyClient
from pn_filer.shipment_resolver.service import ShipmentResolver
from pn_filer.submission_orchestrator.service import SubmissionOrchestrator

# Re-export get_db for use in Depends()
get_db = get_db


async def get_shopify_client() -> AsyncIterator[ShopifyClient]:
    client = ShopifyClient(settings)
    try:
        yield client
    finally:
        await client.aclose()


async def get_customscity_client() -> AsyncIterator[CustomsCityClient]:
    client = CustomsCityClient(settings)
    try:
        yield client
    finally:
        await client.aclose()


def get_shipment_resolver(
    client: ShopifyClient = Depends(get_shopify_client),
) -> ShipmentResolver:
    return ShipmentResolver(settings, client)


def get_submission_orchestrator(
    resolver: ShipmentResolver = Depends(get_shipment_resolver),
    client: CustomsCityClient = Depends(get_customscity_client),
) -> SubmissionOrchestrator:
    return SubmissionOrchestrator(settings, resolver, client)


def get_reconciliation_worker(
    client: CustomsCityClient = Depends(get_customscity_client),
) -> ReconciliationWorker:
    return ReconciliationWorker(settings, client)
