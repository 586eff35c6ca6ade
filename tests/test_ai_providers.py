import unittest

from ai_providers import (
    AnthropicProvider,
    OpenAIProvider,
    _is_retryable,
    _retry_with_backoff,
    extract_json_text,
    get_provider,
    parse_json_reply,
)


class RateLimitError(Exception):
    status_code = 429


class JsonReplyTests(unittest.TestCase):
    def test_fenced_json_is_unwrapped(self):
        self.assertEqual(extract_json_text('```json\n{"asset": "BTC"}\n```'), '{"asset": "BTC"}')
        self.assertEqual(extract_json_text('```\n{"asset": "ETH"}\n```'), '{"asset": "ETH"}')
        self.assertEqual(extract_json_text('  {"a": 1}  '), '{"a": 1}')

    def test_unterminated_fence(self):
        self.assertEqual(extract_json_text('```json\n{"a": 1}'), '{"a": 1}')

    def test_parse_requires_an_object(self):
        self.assertEqual(parse_json_reply('{"optionType": "put"}'), {"optionType": "put"})
        with self.assertRaises(ValueError):
            parse_json_reply("[1, 2]")
        with self.assertRaises(ValueError):
            parse_json_reply("not json")


class RetryTests(unittest.IsolatedAsyncioTestCase):
    def test_retryable_classification(self):
        self.assertTrue(_is_retryable(RateLimitError()))
        self.assertTrue(_is_retryable(TimeoutError()))
        self.assertFalse(_is_retryable(ValueError("bad")))

    async def test_transient_failure_is_retried(self):
        calls = []

        async def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RateLimitError()
            return "ok"

        result = await _retry_with_backoff(flaky, base_delay=0.1, jitter=0.0)

        self.assertEqual(result, "ok")
        self.assertEqual(len(calls), 2)

    async def test_permanent_failure_is_raised_immediately(self):
        calls = []

        async def broken():
            calls.append(1)
            raise ValueError("bad request")

        with self.assertRaises(ValueError):
            await _retry_with_backoff(broken)
        self.assertEqual(len(calls), 1)


class ProviderFactoryTests(unittest.TestCase):
    def test_factory_selects_provider_and_default_model(self):
        openai_provider = get_provider(api_key="k")
        anthropic_provider = get_provider(api_key="k", provider="Anthropic")

        self.assertIsInstance(openai_provider, OpenAIProvider)
        self.assertEqual(openai_provider.model, "gpt-4o-mini")
        self.assertIsInstance(anthropic_provider, AnthropicProvider)
        self.assertEqual(anthropic_provider.model, "claude-haiku-4-5")
        self.assertEqual(get_provider(api_key="k", model="gpt-4o").model, "gpt-4o")


if __name__ == "__main__":
    unittest.main()
