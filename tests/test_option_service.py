import asyncio
import unittest

from grix_errors import ApiError, InvalidParameterError
from grix_service import GrixService
from option_service import format_option_symbol, format_locale_number

EXPIRY = "2025-03-28T08:00:00Z"


def build_board(asset):
    if asset == "ETH":
        return [
            {
                "optionId": 201,
                "type": "call",
                "expiry": EXPIRY,
                "strike": 4000,
                "protocol": "AEVO",
                "contractPrice": 88.1,
                "availableAmount": "40",
            }
        ]
    return [
        {
            "optionId": 101,
            "type": "call",
            "expiry": EXPIRY,
            "strike": 90000,
            "protocol": "DERIVE",
            "contractPrice": 1250.5,
            "availableAmount": "10.5",
        },
        {
            "optionId": 102,
            "type": "call",
            "expiry": EXPIRY,
            "strike": 95000,
            "protocol": "ZOMMA",
            "contractPrice": 980.25,
            "availableAmount": "5.2",
        },
    ]


class MockClient:
    def __init__(self, boards=None):
        self.boards = boards
        self.calls = []

    async def get_options_market_board(self, asset, option_type, position_type):
        self.calls.append((asset, option_type, position_type))
        await asyncio.sleep(0)
        if self.boards is not None:
            return self.boards
        return build_board(asset)

    async def aclose(self):
        pass


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def build_service(client, clock=None):
    async def factory(_api_key):
        return client

    return GrixService("test-key", client_factory=factory, clock=clock or FakeClock())


class OptionServiceTests(unittest.IsolatedAsyncioTestCase):
    async def test_btc_calls_grouped_by_expiry_and_symbol(self):
        client = MockClient()
        service = build_service(client)

        result = await service.get_options(asset="BTC", option_type="call")

        self.assertEqual(result["asset"], "BTC")
        self.assertEqual(result["optionType"], "call")
        self.assertEqual(len(result["options"]), 2)
        self.assertEqual(
            result["options"][0],
            {
                "optionId": 101,
                "expiry": EXPIRY,
                "strike": 90000.0,
                "price": 1250.5,
                "protocol": "DERIVE",
                "available": 10.5,
                "type": "call",
            },
        )

        formatted = result["formattedOptions"]
        self.assertEqual(formatted.count("Expiry:"), 1)
        self.assertEqual(
            formatted,
            "Expiry: 2025-03-28T08:00:00Z\n"
            "\n"
            "BTC-28MAR25-90000-C\n"
            "Protocol: DERIVE\n"
            "Available: 10.5 contracts\n"
            "Price: $1,250.5\n"
            "------------------------\n"
            "\n"
            "BTC-28MAR25-95000-C\n"
            "Protocol: ZOMMA\n"
            "Available: 5.2 contracts\n"
            "Price: $980.25\n"
            "------------------------",
        )

    async def test_position_type_defaults_to_short(self):
        client = MockClient()
        service = build_service(client)

        await service.get_options(asset="btc", option_type="CALL")
        await service.get_options(asset="btc", option_type="call", position_type="long")

        self.assertEqual(client.calls, [("BTC", "call", "short"), ("BTC", "call", "long")])

    async def test_queries_inside_window_fetch_once(self):
        clock = FakeClock()
        client = MockClient()
        service = build_service(client, clock)

        await service.get_options(asset="BTC", option_type="call")
        clock.now += 30
        await service.get_options(asset="BTC", option_type="call")
        clock.now += 30  # exactly at the window edge is still fresh
        await service.get_options(asset="BTC", option_type="call")

        self.assertEqual(len(client.calls), 1)

    async def test_queries_past_window_fetch_again(self):
        clock = FakeClock()
        client = MockClient()
        service = build_service(client, clock)

        await service.get_options(asset="BTC", option_type="call")
        clock.now += 61
        await service.get_options(asset="BTC", option_type="call")

        self.assertEqual(len(client.calls), 2)

    async def test_other_asset_gets_its_own_fetch(self):
        client = MockClient()
        service = build_service(client)

        await service.get_options(asset="BTC", option_type="call")
        result = await service.get_options(asset="ETH", option_type="call")

        self.assertEqual([call[0] for call in client.calls], ["BTC", "ETH"])
        self.assertEqual([opt["optionId"] for opt in result["options"]], [201])
        self.assertNotIn("BTC-", result["formattedOptions"])
        self.assertIn("ETH-28MAR25-4000-C", result["formattedOptions"])

    async def test_refresh_replaces_entries(self):
        clock = FakeClock()
        client = MockClient()
        service = build_service(client, clock)

        await service.get_options(asset="BTC", option_type="call")
        client.boards = [build_board("BTC")[1]]
        clock.now += 120
        result = await service.get_options(asset="BTC", option_type="call")

        self.assertEqual([opt["optionId"] for opt in result["options"]], [102])

    async def test_concurrent_queries_share_one_refresh(self):
        client = MockClient()
        service = build_service(client)

        results = await asyncio.gather(
            service.get_options(asset="BTC", option_type="call"),
            service.get_options(asset="BTC", option_type="call"),
        )

        self.assertEqual(len(client.calls), 1)
        self.assertEqual(results[0]["options"], results[1]["options"])

    async def test_entries_of_other_type_are_filtered_out(self):
        board = build_board("BTC") + [
            {
                "optionId": 103,
                "type": "PUT",
                "expiry": EXPIRY,
                "strike": 80000,
                "protocol": "DERIVE",
                "contractPrice": 700,
                "availableAmount": "1",
            }
        ]
        service = build_service(MockClient(boards=board))

        result = await service.get_options(asset="BTC", option_type="call")

        self.assertEqual([opt["optionId"] for opt in result["options"]], [101, 102])

    async def test_empty_board_is_not_an_error(self):
        for board in ([], {"unexpected": True}):
            with self.subTest(board=board):
                service = build_service(MockClient(boards=board))

                result = await service.get_options(asset="ETH", option_type="put")

                self.assertEqual(result["options"], [])
                self.assertEqual(result["formattedOptions"], "No options available")

    async def test_strike_and_expiry_are_accepted_but_not_applied(self):
        service = build_service(MockClient())

        result = await service.get_options(
            asset="BTC",
            option_type="call",
            strike=90000,
            expiry="2030-01-01",
        )

        self.assertEqual(len(result["options"]), 2)

    async def test_invalid_parameters_fail_before_remote_call(self):
        client = MockClient()
        service = build_service(client)

        for kwargs in (
            {"asset": "SOL", "option_type": "call"},
            {"asset": "BTC", "option_type": "straddle"},
            {"asset": "BTC", "option_type": "call", "position_type": "flat"},
        ):
            with self.subTest(**kwargs):
                with self.assertRaises(InvalidParameterError):
                    await service.get_options(**kwargs)

        self.assertEqual(client.calls, [])

    async def test_remote_failure_is_wrapped(self):
        class FailingClient(MockClient):
            async def get_options_market_board(self, asset, option_type, position_type):
                raise KeyError("board")

        service = build_service(FailingClient())

        with self.assertRaises(ApiError) as ctx:
            await service.get_options(asset="BTC", option_type="call")
        self.assertIn("options fetch", str(ctx.exception))

    async def test_cache_helpers(self):
        service = build_service(MockClient())
        await service.get_options(asset="BTC", option_type="call")
        await service.get_options(asset="ETH", option_type="call")
        options = service.option_service

        self.assertEqual(await options.get_expiry_dates(), [EXPIRY])
        self.assertEqual(await options.get_strike_prices(asset="BTC"), [90000.0, 95000.0])
        self.assertEqual(await options.get_strike_prices(expiry="2000-01-01"), [])
        self.assertEqual(await options.get_protocols(), ["DERIVE", "ZOMMA", "AEVO"])
        self.assertEqual(await options.get_protocols(asset="eth"), ["AEVO"])

        options.clear_cache()
        self.assertEqual(await options.get_protocols(), [])


class OptionFormattingTests(unittest.TestCase):
    def test_option_symbol(self):
        self.assertEqual(format_option_symbol("ETH", "2025-12-05", 3500.0, "PUT"), "ETH-05DEC25-3500-P")
        self.assertEqual(format_option_symbol("BTC", EXPIRY, 92500.5, "call"), "BTC-28MAR25-92500.5-C")

    def test_unparseable_expiry_is_kept_verbatim(self):
        self.assertEqual(format_option_symbol("BTC", "soon", 1.0, "call"), "BTC-soon-1-C")

    def test_locale_number(self):
        self.assertEqual(format_locale_number(1250.5), "1,250.5")
        self.assertEqual(format_locale_number(1000000), "1,000,000")
        self.assertEqual(format_locale_number(0.12345), "0.123")


if __name__ == "__main__":
    unittest.main()
