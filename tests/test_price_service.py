import unittest

from grix_errors import ApiError, AuthenticationError, InvalidParameterError
from grix_service import GrixService
from price_service import format_usd


class MockClient:
    def __init__(self, price=42150.25, error=None):
        self.price = price
        self.error = error
        self.calls = []

    async def fetch_asset_price(self, asset_name):
        self.calls.append(asset_name)
        if self.error:
            raise self.error
        return self.price

    async def aclose(self):
        pass


def build_service(client, api_key="test-key"):
    async def factory(_api_key):
        return client

    return GrixService(api_key, client_factory=factory)


class PriceServiceTests(unittest.IsolatedAsyncioTestCase):
    async def test_get_price_maps_asset_and_formats(self):
        client = MockClient(price=42150.25)
        service = build_service(client)

        result = await service.get_price("btc")

        self.assertEqual(client.calls, ["bitcoin"])
        self.assertEqual(result["asset"], "BTC")
        self.assertEqual(result["price"], 42150.25)
        self.assertEqual(result["formattedPrice"], "$42,150.25")
        self.assertIsInstance(result["timestamp"], int)

    async def test_eth_uses_ethereum_feed_name(self):
        client = MockClient(price=2245.8)
        service = build_service(client)

        result = await service.get_price("ETH")

        self.assertEqual(client.calls, ["ethereum"])
        self.assertEqual(result["formattedPrice"], "$2,245.80")

    async def test_every_call_reaches_the_remote_api(self):
        client = MockClient()
        service = build_service(client)

        await service.get_price("BTC")
        await service.get_price("BTC")

        self.assertEqual(len(client.calls), 2)

    async def test_unsupported_asset_fails_before_remote_call(self):
        client = MockClient()
        service = build_service(client)

        with self.assertRaises(InvalidParameterError):
            await service.get_price("DOGE")
        self.assertEqual(client.calls, [])
        self.assertFalse(service.scope.initialized)

    async def test_missing_credential(self):
        service = build_service(MockClient(), api_key="")

        with self.assertRaises(AuthenticationError):
            await service.get_price("BTC")

    async def test_remote_failure_is_wrapped(self):
        service = build_service(MockClient(error=RuntimeError("feed down")))

        with self.assertRaises(ApiError) as ctx:
            await service.get_price("BTC")
        self.assertEqual(ctx.exception.code, 500)
        self.assertIn("price fetch for BTC", str(ctx.exception))
        self.assertIn("feed down", str(ctx.exception))


class FormatUsdTests(unittest.TestCase):
    def test_format_usd(self):
        self.assertEqual(format_usd(0), "$0.00")
        self.assertEqual(format_usd(1234567.891), "$1,234,567.89")
        self.assertEqual(format_usd(-3.1), "-$3.10")
        self.assertEqual(GrixService.format_price(99.5), "$99.50")


if __name__ == "__main__":
    unittest.main()
