"""
Shopify Admin GraphQL client: order lookup by human-readable name.

Returns at most one ShipmentRecord per order name. Rate limiting (429) and
transient failures are retried through the shared RetryPolicy; anything
that still fails surfaces as an UpstreamError for the caller to absorb.
"""

import logging

import httpx

from pn_filer.config import Settings
from pn_filer.domain import ShipmentRecord, ShippingAddress
from pn_filer.errors import ConfigurationError, TransientUpstreamError
from pn_filer.services.http import parse_body, raise_for_upstream_status
from pn_filer.services.retry import RetryPolicy

logger = logging.getLogger("pnfiler.shopify")

SERVICE = "shopify"

ORDER_BY_NAME_QUERY = """
query getOrder($query: String!) {
  orders(first: 1, query: $query) {
    edges {
      node {
        id
        name
        shippingAddress {
          firstName
          lastName
          address1
          address2
          city
          province
          zip
          countryCodeV2
        }
      }
    }
  }
}
"""


def _parse_order_node(node: dict) -> ShipmentRecord:
    addr = node.get("shippingAddress")
    shipping_address = None
    if addr:
        shipping_address = ShippingAddress(
            first_name=addr.get("firstName"),
            last_name=addr.get("lastName"),
            address1=addr.get("address1"),
            address2=addr.get("address2"),
            city=addr.get("city"),
            province=addr.get("province"),
            zip=addr.get("zip"),
            country_code=addr.get("countryCodeV2"),
        )
    return ShipmentRecord(
        external_id=str(node.get("id") or ""),
        order_name=str(node.get("name") or ""),
        shipping_address=shipping_address,
    )


class ShopifyClient:
    """Query orders from the Shopify Admin GraphQL API."""

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
        retry_policy: RetryPolicy | None = None,
    ):
        self.store_domain = settings.shopify_store_domain
        self.access_token = settings.shopify_access_token
        self.api_version = settings.shopify_api_version
        self.http = http_client or httpx.AsyncClient(timeout=settings.http_timeout_seconds)
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=settings.shopify_max_attempts,
            backoff_base=settings.shopify_backoff_base_seconds,
            default_retry_after=settings.shopify_default_retry_after_seconds,
            max_rate_limit_waits=settings.shopify_max_rate_limit_waits,
        )

    @property
    def graphql_url(self) -> str:
        return f"https://{self.store_domain}/admin/api/{self.api_version}/graphql.json"

    def ensure_configured(self) -> None:
        if not self.store_domain or not self.access_token:
            raise ConfigurationError("Shopify store domain and access token must be configured")

    async def aclose(self) -> None:
        await self.http.aclose()

    async def _post_graphql(self, query: str, variables: dict) -> dict:
        try:
            response = await self.http.post(
                self.graphql_url,
                json={"query": query, "variables": variables},
                headers={
                    "Content-Type": "application/json",
                    "X-Shopify-Access-Token": self.access_token,
                },
            )
        except httpx.TransportError as e:
            raise TransientUpstreamError(f"Shopify request failed: {e}", SERVICE) from e

        raise_for_upstream_status(response, SERVICE)
        return parse_body(response)

    async def fetch_order_by_name(self, order_name: str) -> ShipmentRecord | None:
        """Look up one order by name. None when Shopify has no match."""
        self.ensure_configured()
        data = await self.retry_policy.run(
            lambda: self._post_graphql(ORDER_BY_NAME_QUERY, {"query": f"name:{order_name}"}),
            description=f"Shopify lookup {order_name}",
        )

        if data.get("errors"):
            logger.error("Shopify API errors for %s: %s", order_name, data["errors"])
            return None

        edges = ((data.get("data") or {}).get("orders") or {}).get("edges") or []
        if not edges:
            return None
        return _parse_order_node(edges[0].get("node") or {})
