import asyncio
import unittest

from grix_errors import (
    ApiError,
    AuthenticationError,
    ErrorKind,
    GrixError,
    InvalidParameterError,
    ServiceUnavailableError,
    SignalTimeoutError,
    normalize_error,
)
from service_base import ClientScope


class FakeClient:
    async def aclose(self):
        self.closed = True


class ErrorNormalizationTests(unittest.TestCase):
    def test_domain_errors_pass_through_unchanged(self):
        for error in (
            AuthenticationError(),
            InvalidParameterError("bad"),
            ServiceUnavailableError(),
            ApiError("boom", 418, response={"detail": "teapot"}),
            SignalTimeoutError(agent_id=7, attempts=10),
        ):
            with self.subTest(error=type(error).__name__):
                self.assertIs(normalize_error(error, "ctx"), error)

    def test_unknown_errors_become_api_errors(self):
        wrapped = normalize_error(RuntimeError("socket closed"), "price fetch for BTC")

        self.assertIsInstance(wrapped, ApiError)
        self.assertEqual(wrapped.code, 500)
        self.assertEqual(wrapped.kind, ErrorKind.API)
        self.assertEqual(wrapped.context, "price fetch for BTC")
        self.assertEqual(str(wrapped), "Grix API error during price fetch for BTC: socket closed")

    def test_kinds_are_distinct(self):
        self.assertEqual(GrixError("x").kind, ErrorKind.DOMAIN)
        self.assertEqual(SignalTimeoutError().kind, ErrorKind.DOMAIN)
        self.assertEqual(AuthenticationError().kind, ErrorKind.AUTHENTICATION)
        self.assertEqual(ServiceUnavailableError().kind, ErrorKind.SERVICE_UNAVAILABLE)


class ClientScopeTests(unittest.IsolatedAsyncioTestCase):
    async def test_missing_credential_fails_with_authentication_error(self):
        calls = []

        async def factory(api_key):
            calls.append(api_key)
            return FakeClient()

        for api_key in (None, "", "   "):
            scope = ClientScope(api_key, factory)
            with self.assertRaises(AuthenticationError):
                await scope.ensure_client()
        self.assertEqual(calls, [])

    async def test_client_is_created_once_and_reused(self):
        calls = []

        async def factory(api_key):
            calls.append(api_key)
            return FakeClient()

        scope = ClientScope("secret", factory)
        first = await scope.ensure_client()
        second = await scope.ensure_client()

        self.assertIs(first, second)
        self.assertEqual(calls, ["secret"])
        self.assertTrue(scope.initialized)

    async def test_concurrent_first_calls_share_one_client(self):
        calls = []

        async def slow_factory(api_key):
            calls.append(api_key)
            await asyncio.sleep(0)
            return FakeClient()

        scope = ClientScope("secret", slow_factory)
        first, second = await asyncio.gather(scope.ensure_client(), scope.ensure_client())

        self.assertIs(first, second)
        self.assertEqual(calls, ["secret"])

    async def test_initialization_failure_is_normalized(self):
        async def factory(api_key):
            raise ConnectionResetError("reset by peer")

        scope = ClientScope("secret", factory)
        with self.assertRaises(ApiError) as ctx:
            await scope.ensure_client()

        self.assertEqual(ctx.exception.code, 500)
        self.assertIn("SDK initialization", str(ctx.exception))
        self.assertFalse(scope.initialized)

    async def test_initialization_domain_error_passes_through(self):
        async def factory(api_key):
            raise ServiceUnavailableError()

        scope = ClientScope("secret", factory)
        with self.assertRaises(ServiceUnavailableError):
            await scope.ensure_client()

    async def test_aclose_releases_the_client(self):
        client = FakeClient()

        async def factory(api_key):
            return client

        scope = ClientScope("secret", factory)
        await scope.ensure_client()
        await scope.aclose()

        self.assertTrue(client.closed)
        self.assertFalse(scope.initialized)


if __name__ == "__main__":
    unittest.main()
