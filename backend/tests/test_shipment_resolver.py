import pytest

from pn_filer.domain import ShipmentRecord, ShippingAddress
from pn_filer.errors import ConfigurationError, RetryExhaustedError
from pn_filer.services.shopify_client import ShopifyClient
from pn_filer.shipment_resolver.service import ShipmentResolver


def shipment(name: str, with_address: bool = True) -> ShipmentRecord:
    address = ShippingAddress(first_name="Jane", last_name="Doe", city="Toronto") if with_address else None
    return ShipmentRecord(external_id=f"gid://shopify/Order/{name}", order_name=name, shipping_address=address)


class FakeShopifyClient:
    def __init__(self, records: dict[str, ShipmentRecord], failing: set[str] = frozenset()):
        self.records = records
        self.failing = failing
        self.calls: list[str] = []

    def ensure_configured(self) -> None:
        pass

    async def fetch_order_by_name(self, order_name: str) -> ShipmentRecord | None:
        self.calls.append(order_name)
        if order_name in self.failing:
            raise RetryExhaustedError("failed after 3 attempts", "shopify", 503)
        return self.records.get(order_name)


class TestResolveShipments:
    @pytest.mark.asyncio
    async def test_duplicates_queried_once(self, test_settings, sleeper):
        client = FakeShopifyClient({"#1001": shipment("#1001")})
        resolver = ShipmentResolver(test_settings, client, sleep=sleeper)

        result = await resolver.resolve_shipments(["#1001", "#1001", "#1001"])

        assert list(result) == ["#1001"]
        assert client.calls == ["#1001"]

    @pytest.mark.asyncio
    async def test_missing_failed_and_addressless_orders_are_absent(self, test_settings, sleeper):
        client = FakeShopifyClient(
            {"#1001": shipment("#1001"), "#1003": shipment("#1003", with_address=False)},
            failing={"#1004"},
        )
        resolver = ShipmentResolver(test_settings, client, sleep=sleeper)

        result = await resolver.resolve_shipments(["#1001", "#1002", "#1003", "#1004"])

        assert set(result) == {"#1001"}
        assert client.calls == ["#1001", "#1002", "#1003", "#1004"]

    @pytest.mark.asyncio
    async def test_pauses_between_batches_only(self, test_settings, sleeper):
        settings = test_settings.model_copy(
            update={"shopify_batch_size": 2, "shopify_batch_delay_seconds": 0.5}
        )
        names = [f"#{n}" for n in range(1001, 1006)]
        client = FakeShopifyClient({n: shipment(n) for n in names})
        resolver = ShipmentResolver(settings, client, sleep=sleeper)

        result = await resolver.resolve_shipments(names)

        assert len(result) == 5
        # Three batches, two gaps
        assert sleeper.calls == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_single_batch_does_not_sleep(self, test_settings, sleeper):
        client = FakeShopifyClient({"#1001": shipment("#1001")})
        resolver = ShipmentResolver(test_settings, client, sleep=sleeper)

        await resolver.resolve_shipments(["#1001"])
        assert sleeper.calls == []

    @pytest.mark.asyncio
    async def test_empty_input(self, test_settings, sleeper):
        client = FakeShopifyClient({})
        resolver = ShipmentResolver(test_settings, client, sleep=sleeper)

        assert await resolver.resolve_shipments([]) == {}
        assert client.calls == []


class TestConfiguration:
    def test_missing_store_domain(self, test_settings):
        settings = test_settings.model_copy(update={"shopify_store_domain": ""})
        resolver = ShipmentResolver(settings, ShopifyClient(settings))

        with pytest.raises(ConfigurationError):
            resolver.ensure_configured()
