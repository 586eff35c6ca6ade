"""
Language-model providers used to pull structured parameters out of chat text.

Both providers share exponential backoff with jitter for transient failures
and the same JSON unwrapping of fenced replies.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional
import asyncio
import json
import logging
import random

from openai import AsyncOpenAI
from anthropic import AsyncAnthropic

logger = logging.getLogger(__name__)

# ─── Retry Configuration ───────────────────────────────────────────

EXTRACTION_MAX_RETRIES = 2
EXTRACTION_BASE_DELAY = 0.5     # seconds
EXTRACTION_MAX_DELAY = 4.0      # seconds
EXTRACTION_JITTER = 0.25        # ±25% jitter

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_ANTHROPIC_MODEL = "claude-haiku-4-5"

# Extraction replies are small JSON objects
EXTRACTION_MAX_TOKENS = 512

JSON_ONLY_INSTRUCTION = "Respond with valid JSON only."

_TRANSIENT_STATUS_CODES = frozenset({408, 409, 429, 500, 502, 503, 504, 529})
_TRANSIENT_NAME_HINTS = ("timeout", "connection", "overloaded", "ratelimit")


def _is_retryable(exc: Exception) -> bool:
    status = getattr(exc, "status_code", None)
    if status is None:
        status = getattr(getattr(exc, "response", None), "status_code", None)
    if status in _TRANSIENT_STATUS_CODES:
        return True
    name = type(exc).__name__.lower()
    return any(hint in name for hint in _TRANSIENT_NAME_HINTS)


async def _retry_with_backoff(
    fn,
    *,
    max_retries: int = EXTRACTION_MAX_RETRIES,
    base_delay: float = EXTRACTION_BASE_DELAY,
    max_delay: float = EXTRACTION_MAX_DELAY,
    jitter: float = EXTRACTION_JITTER,
):
    """
    Await `fn()`, doubling the delay after each transient failure.
    Anything else is raised on the first attempt.
    """
    attempt = 0
    while True:
        try:
            return await fn()
        except Exception as exc:
            if attempt >= max_retries or not _is_retryable(exc):
                raise
            delay = min(base_delay * 2 ** attempt, max_delay)
            delay = max(0.1, delay * random.uniform(1.0 - jitter, 1.0 + jitter))
            attempt += 1
            logger.warning(
                "Parameter extraction failed (try %d of %d): %s; retrying in %.1fs",
                attempt, max_retries + 1, exc, delay,
            )
            await asyncio.sleep(delay)


def extract_json_text(response_text: str) -> str:
    """Strip a ```json fence (or any ``` fence) around a model reply."""
    for fence in ("```json", "```"):
        start = response_text.find(fence)
        if start != -1:
            start += len(fence)
            end = response_text.find("```", start)
            return response_text[start:end if end != -1 else None].strip()
    return response_text.strip()


def parse_json_reply(response_text: Optional[str]) -> Dict[str, Any]:
    parsed = json.loads(extract_json_text(response_text or ""))
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


class AIProvider(ABC):
    """Extracts a JSON object of parameters from a prompt."""

    model: str

    @abstractmethod
    async def generate_with_json(
        self,
        user_prompt: str,
        *,
        system_prompt: Optional[str] = None
    ) -> Dict[str, Any]:
        pass


class OpenAIProvider(AIProvider):
    """Chat completions in JSON mode"""

    def __init__(self, api_key: str, model: str = DEFAULT_OPENAI_MODEL):
        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model

    async def generate_with_json(
        self,
        user_prompt: str,
        *,
        system_prompt: Optional[str] = None
    ) -> Dict[str, Any]:
        messages: List[Dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": f"{system_prompt}\n\n{JSON_ONLY_INSTRUCTION}"})
        else:
            user_prompt = f"{JSON_ONLY_INSTRUCTION}\n\n{user_prompt}"
        messages.append({"role": "user", "content": user_prompt})

        async def _call() -> Optional[str]:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=0,
                response_format={"type": "json_object"},
            )
            return completion.choices[0].message.content

        return parse_json_reply(await _retry_with_backoff(_call))


class AnthropicProvider(AIProvider):
    """Claude messages API; JSON is requested through the system prompt"""

    def __init__(self, api_key: str, model: str = DEFAULT_ANTHROPIC_MODEL):
        self.client = AsyncAnthropic(api_key=api_key)
        self.model = model

    async def generate_with_json(
        self,
        user_prompt: str,
        *,
        system_prompt: Optional[str] = None
    ) -> Dict[str, Any]:
        system = f"{system_prompt}\n\n{JSON_ONLY_INSTRUCTION}" if system_prompt else JSON_ONLY_INSTRUCTION

        async def _call() -> str:
            reply = await self.client.messages.create(
                model=self.model,
                max_tokens=EXTRACTION_MAX_TOKENS,
                temperature=0,
                system=system,
                messages=[{"role": "user", "content": user_prompt}],
            )
            return "".join(block.text for block in reply.content if getattr(block, "type", "") == "text")

        return parse_json_reply(await _retry_with_backoff(_call))


PROVIDERS = {
    "openai": (OpenAIProvider, DEFAULT_OPENAI_MODEL),
    "anthropic": (AnthropicProvider, DEFAULT_ANTHROPIC_MODEL),
}


def get_provider(api_key: str, model: Optional[str] = None, provider: str = "openai") -> AIProvider:
    """Build the provider named by ``provider``; unknown names fall back to OpenAI."""
    provider_cls, default_model = PROVIDERS.get(provider.lower(), PROVIDERS["openai"])
    return provider_cls(api_key=api_key, model=model or default_model)
