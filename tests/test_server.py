import unittest

from fastapi.testclient import TestClient

from grix_config import Settings
from grix_service import GrixServiceRegistry
from server import create_app


class MockProvider:
    def __init__(self, response):
        self.response = response

    async def generate_with_json(self, user_prompt, *, system_prompt=None):
        return self.response


class MockRuntime:
    def __init__(self, settings, provider=None):
        self.settings = settings
        self.ai_provider = provider

    def get_setting(self, key):
        return self.settings.get(key)


class MockClient:
    async def fetch_asset_price(self, asset_name):
        return {"bitcoin": 42150.25, "ethereum": 2245.8}[asset_name]

    async def get_options_market_board(self, asset, option_type, position_type):
        return []

    async def get_perps_pairs(self, protocol, base_asset=None):
        return {"pairs": ["BTC-USD", "ETH-USD"]}

    async def aclose(self):
        pass


def build_client(settings=None, provider=None):
    async def factory(_api_key):
        return MockClient()

    runtime = MockRuntime(
        settings if settings is not None else {"GRIX_API_KEY": "g", "OPENAI_API_KEY": "o"},
        provider,
    )
    app = create_app(
        settings=Settings(),
        registry=GrixServiceRegistry(client_factory=factory),
        runtime=runtime,
    )
    return TestClient(app)


class ServerTests(unittest.TestCase):
    def test_status(self):
        client = build_client(provider=MockProvider({}))

        response = client.get("/status")

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "running")
        self.assertTrue(body["grix_configured"])
        self.assertTrue(body["ai_configured"])
        self.assertEqual(body["options_cache_ttl_seconds"], 60.0)

    def test_list_actions(self):
        response = build_client().get("/actions")

        names = [action["name"] for action in response.json()]
        self.assertIn("GET_PERP_PAIRS", names)
        self.assertIn("SHOW_GRIX_HELP", names)

    def test_price_query(self):
        response = build_client().post("/price", json={"asset": "eth"})

        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["data"]["asset"], "ETH")
        self.assertEqual(body["data"]["formattedPrice"], "$2,245.80")

    def test_query_errors_carry_kind(self):
        response = build_client().post("/price", json={"asset": "SOL"})

        body = response.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["error_kind"], "invalid_parameter")
        self.assertEqual(body["error"], "Invalid asset. Only BTC and ETH are supported.")

    def test_missing_credential_is_authentication_error(self):
        response = build_client(settings={}).post("/perps-pairs", json={})

        self.assertEqual(response.json()["error_kind"], "authentication")

    def test_options_query_accepts_camel_case(self):
        response = build_client().post("/options", json={"asset": "BTC", "optionType": "put"})

        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["data"]["optionType"], "put")
        self.assertEqual(body["data"]["formattedOptions"], "No options available")

    def test_run_action(self):
        client = build_client(provider=MockProvider({"asset": "BTC"}))

        response = client.post("/actions/CHECK_PRICE", json={"text": "btc price?"})

        self.assertEqual(
            response.json(),
            {
                "success": True,
                "action": "GET_ASSET_PRICE",
                "responses": ["The current BTC price is $42,150.25"],
            },
        )

    def test_run_action_without_configuration(self):
        client = build_client(settings={})

        response = client.post("/actions/GET_ASSET_PRICE", json={"text": "btc price?"})

        body = response.json()
        self.assertFalse(body["success"])
        self.assertTrue(body["responses"][0].startswith("Grix is not configured"))

    def test_unknown_action_is_404(self):
        response = build_client().post("/actions/NOPE", json={"text": "hi"})

        self.assertEqual(response.status_code, 404)


if __name__ == "__main__":
    unittest.main()
