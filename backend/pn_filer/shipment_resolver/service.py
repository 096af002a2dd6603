"""ShipmentResolver: batched Shopify lookups with per-order failure isolation.

Flow:
1. De-duplicate order names, keeping first-seen order
2. Look up each batch concurrently (batch size bounds in-flight requests)
3. Pause between batches to stay under Shopify's rate limits
4. Drop orders that are missing, lack a shipping address, or whose lookup
   failed after retries; each drop is logged, none fails the batch
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from pn_filer.config import Settings
from pn_filer.domain import ShipmentRecord
from pn_filer.errors import UpstreamError
from pn_filer.services.shopify_client import ShopifyClient

logger = logging.getLogger("pnfiler.shipment_resolver")


class ShipmentResolver:
    """Resolve order names to shipment records."""

    def __init__(
        self,
        settings: Settings,
        client: ShopifyClient,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.batch_size = max(settings.shopify_batch_size, 1)
        self.batch_delay = settings.shopify_batch_delay_seconds
        self.sleep = sleep

    def ensure_configured(self) -> None:
        self.client.ensure_configured()

    async def _lookup(self, order_name: str) -> ShipmentRecord | None:
        try:
            return await self.client.fetch_order_by_name(order_name)
        except UpstreamError as e:
            logger.warning("Shopify lookup failed for %s: %s", order_name, e)
            return None

    async def resolve_shipments(self, order_names: list[str]) -> dict[str, ShipmentRecord]:
        """Resolve order names to shipment records.

        Returns a map keyed by the requested order name. Orders with no
        usable record are simply absent.
        """
        unique_names = list(dict.fromkeys(n for n in order_names if n))
        shipments: dict[str, ShipmentRecord] = {}

        for start in range(0, len(unique_names), self.batch_size):
            batch = unique_names[start:start + self.batch_size]
            records = await asyncio.gather(*(self._lookup(name) for name in batch))

            for name, record in zip(batch, records):
                if record is None:
                    logger.warning("Order not found in Shopify: %s", name)
                elif record.shipping_address is None:
                    logger.warning("Order %s has no shipping address, skipping", name)
                else:
                    shipments[name] = record

            if start + self.batch_size < len(unique_names):
                await self.sleep(self.batch_delay)

        logger.info("Resolved %d of %d orders from Shopify", len(shipments), len(unique_names))
        return shipments
