"""
Agent actions exposing the Grix queries to a chat runtime.

Each action is self-describing (name, similes, description, examples) and
offers an async ``validate`` and an async ``handler``. The handler extracts
parameters from the user's message with the runtime's language model,
normalizes them, calls the facade and delivers the reply text through the
optional callback.

The runtime only needs ``get_setting(key)`` and an ``ai_provider``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Tuple, Union
import logging

from pydantic import BaseModel

from action_prompts import (
    ASSET_PRICE_TEMPLATE,
    EXTRACTION_SYSTEM_PROMPT,
    HELP_TEXT,
    OPTION_PRICE_TEMPLATE,
    PERPS_PAIRS_TEMPLATE,
    TRADING_SIGNAL_TEMPLATE,
    build_extraction_prompt,
)
from ai_providers import AIProvider
from formatters import (
    format_options_reply,
    format_pairs_list,
    format_pairs_reply,
    format_price_reply,
    format_signals_reply,
)
from grix_config import ConfigurationError, validate_grix_config
from grix_constants import ONE_WEEK_MS
from grix_service import GrixService, GrixServiceRegistry

logger = logging.getLogger(__name__)

DEFAULT_ASSET = "BTC"
DEFAULT_OPTION_TYPE = "call"
DEFAULT_POSITION_TYPE = "long"
DEFAULT_PROTOCOL = "hyperliquid"
DEFAULT_BUDGET_USD = 10000
DEFAULT_RISK_LEVEL = "moderate"
DEFAULT_STRATEGY_FOCUS = "growth"

RISK_LEVEL_ALIASES = {
    "safe": "conservative",
    "low": "conservative",
    "normal": "moderate",
    "medium": "moderate",
    "risky": "aggressive",
    "high": "aggressive",
}

STRATEGY_FOCUS_ALIASES = {
    "safety": "hedging",
    "protection": "hedging",
    "hedge": "hedging",
    "yield": "income",
    "profit": "growth",
}

# Shared across actions so caches survive between messages
default_registry = GrixServiceRegistry()


class Content(BaseModel):
    text: str = ""
    action: Optional[str] = None


class Memory(BaseModel):
    content: Content


class AgentRuntime(Protocol):
    ai_provider: Optional[AIProvider]

    def get_setting(self, key: str) -> Optional[str]:
        ...


HandlerCallback = Callable[[Dict[str, Any]], Awaitable[Any]]
MessageLike = Union[Memory, Dict[str, Any], str]


def message_text(message: MessageLike) -> str:
    if isinstance(message, Memory):
        return message.content.text
    if isinstance(message, dict):
        content = message.get("content") or {}
        return str(content.get("text", "")) if isinstance(content, dict) else str(content)
    return str(message or "")


def parse_amount(value: Any) -> Optional[float]:
    """Accept 5000, "5000", "$5,000" or "10k"."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        cleaned = value.strip().lower().replace("$", "").replace(",", "")
        multiplier = 1.0
        if cleaned.endswith("k"):
            cleaned, multiplier = cleaned[:-1], 1000.0
        elif cleaned.endswith("m"):
            cleaned, multiplier = cleaned[:-1], 1_000_000.0
        try:
            return float(cleaned) * multiplier
        except ValueError:
            return None
    return None


def _lower(value: Any, default: str) -> str:
    return (str(value).strip() if value else default).lower()


class GrixAction(ABC):
    """Base for the actions backed by the Grix facade."""

    name: str = ""
    description: str = ""
    similes: List[str] = []
    examples: List[List[Dict[str, Any]]] = []
    template: str = ""
    failure_text: str = "complete the request"

    def __init__(self, registry: Optional[GrixServiceRegistry] = None):
        self.registry = registry or default_registry

    async def validate(self, runtime: AgentRuntime) -> bool:
        try:
            validate_grix_config(runtime)
            return True
        except ConfigurationError:
            return False

    async def extract_parameters(self, runtime: AgentRuntime, message: MessageLike) -> Dict[str, Any]:
        if runtime.ai_provider is None:
            raise ConfigurationError("No language model provider configured for parameter extraction")
        prompt = build_extraction_prompt(self.template, message_text(message))
        extracted = await runtime.ai_provider.generate_with_json(
            user_prompt=prompt,
            system_prompt=EXTRACTION_SYSTEM_PROMPT,
        )
        logger.info("Extracted %s parameters: %s", self.name, extracted)
        return extracted or {}

    @abstractmethod
    def normalize_parameters(self, extracted: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def run(self, service: GrixService, params: Dict[str, Any]) -> Tuple[str, str]:
        """Return (reply text, text stored in the shared state)."""
        pass

    async def handler(
        self,
        runtime: AgentRuntime,
        message: MessageLike,
        state: Optional[Dict[str, Any]] = None,
        options: Optional[Dict[str, Any]] = None,
        callback: Optional[HandlerCallback] = None,
    ) -> bool:
        try:
            config = validate_grix_config(runtime)
            service = self.registry.for_credential(config.grix_api_key)

            extracted = await self.extract_parameters(runtime, message)
            params = self.normalize_parameters(extracted)
            logger.info("Normalized %s parameters: %s", self.name, params)

            response_text, state_text = await self.run(service, params)

            if callback is not None:
                await callback({"text": response_text})

            if state is not None:
                state["responseData"] = {"text": state_text, "action": self.name}

            return True
        except Exception as exc:
            logger.error("Error in %s action handler: %s", self.name, exc)
            if callback is not None:
                await callback({"text": f"Sorry, I couldn't {self.failure_text}. Error: {exc}"})
            return False


class GetAssetPriceAction(GrixAction):
    name = "GET_ASSET_PRICE"
    similes = ["CHECK_PRICE", "PRICE_CHECK", "TOKEN_PRICE", "CRYPTO_PRICE"]
    description = "Get current price for a cryptocurrency"
    template = ASSET_PRICE_TEMPLATE
    failure_text = "get the price"
    examples = [
        [
            {"user": "{{user1}}", "content": {"text": "What's the current Bitcoin price?"}},
            {
                "user": "{{agent}}",
                "content": {"text": "I'll check the current Bitcoin price for you.", "action": "GET_ASSET_PRICE"},
            },
            {"user": "{{agent}}", "content": {"text": "The current BTC price is $42,150.25"}},
        ],
        [
            {"user": "{{user1}}", "content": {"text": "How much is ETH worth right now?"}},
            {
                "user": "{{agent}}",
                "content": {"text": "I'll check the current Ethereum price for you.", "action": "GET_ASSET_PRICE"},
            },
            {"user": "{{agent}}", "content": {"text": "The current ETH price is $2,245.80"}},
        ],
    ]

    def normalize_parameters(self, extracted: Dict[str, Any]) -> Dict[str, Any]:
        return {"asset": str(extracted.get("asset") or DEFAULT_ASSET).strip().upper()}

    async def run(self, service: GrixService, params: Dict[str, Any]) -> Tuple[str, str]:
        result = await service.get_price(params["asset"])
        return format_price_reply(result), result["formattedPrice"]


class GetOptionPriceAction(GrixAction):
    name = "GET_OPTION_PRICE"
    similes = ["CHECK_OPTIONS", "OPTION_PRICE", "OPTION_CHECK", "OPTIONS_DATA"]
    description = "Get current option prices for a cryptocurrency"
    template = OPTION_PRICE_TEMPLATE
    failure_text = "get the option prices"
    examples = [
        [
            {"user": "{{user1}}", "content": {"text": "Show me Bitcoin call options"}},
            {
                "user": "{{agent}}",
                "content": {"text": "I'll check the current Bitcoin call options for you.", "action": "GET_OPTION_PRICE"},
            },
            {
                "user": "{{agent}}",
                "content": {
                    "text": (
                        "Available Options:\n\n"
                        "Expiry: 2025-03-28T08:00:00Z\n\n"
                        "BTC-28MAR25-90000-C\n"
                        "Protocol: DERIVE\n"
                        "Available: 10.5 contracts\n"
                        "Price: $1,250.5\n"
                        "------------------------"
                    )
                },
            },
        ],
    ]

    def normalize_parameters(self, extracted: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "asset": str(extracted.get("asset") or DEFAULT_ASSET).strip().upper(),
            "option_type": _lower(extracted.get("optionType"), DEFAULT_OPTION_TYPE),
            "position_type": _lower(extracted.get("positionType"), DEFAULT_POSITION_TYPE),
        }

    async def run(self, service: GrixService, params: Dict[str, Any]) -> Tuple[str, str]:
        result = await service.get_options(**params)
        logger.info("Got %d %s options", len(result["options"]), result["asset"])
        text = format_options_reply(result)
        return text, text


class GetPerpsPairsAction(GrixAction):
    name = "GET_PERP_PAIRS"
    similes = [
        "FETCH_TRADING_PAIRS",
        "LIST_PAIRS",
        "SHOW_PERP_PAIRS",
        "MARKET_PAIRS",
        "AVAILABLE_PAIRS",
        "TRADING_PAIRS",
        "WHAT_CAN_I_TRADE",
        "PERPETUAL_PAIRS",
    ]
    description = "Get available perpetual trading pairs for a protocol"
    template = PERPS_PAIRS_TEMPLATE
    failure_text = "fetch the trading pairs"
    examples = [
        [
            {"user": "{{user1}}", "content": {"text": "What trading pairs are available on Hyperliquid?"}},
            {
                "user": "{{agent}}",
                "content": {"text": "I'll check the available pairs on Hyperliquid for you.", "action": "GET_PERP_PAIRS"},
            },
            {
                "user": "{{agent}}",
                "content": {"text": "Available trading pairs for HYPERLIQUID:\n- BTC/USD\n- ETH/USD\n- LINK/USD"},
            },
        ],
    ]

    def normalize_parameters(self, extracted: Dict[str, Any]) -> Dict[str, Any]:
        base_asset = extracted.get("baseAsset")
        return {
            "protocol_name": _lower(extracted.get("protocol"), DEFAULT_PROTOCOL),
            "asset": str(base_asset).strip() if base_asset else None,
        }

    async def run(self, service: GrixService, params: Dict[str, Any]) -> Tuple[str, str]:
        result = await service.get_perps_pairs(**params)
        reply = format_pairs_reply(result, params["protocol_name"], params["asset"])
        return reply, format_pairs_list(result["pairs"])


class GetTradingSignalAction(GrixAction):
    name = "GET_TRADING_SIGNAL"
    similes = ["generate signals", "trading advice", "options strategy", "investment ideas"]
    description = "Generate trading signals based on market conditions"
    template = TRADING_SIGNAL_TEMPLATE
    failure_text = "generate trading signals"
    examples = [
        [
            {"user": "{{user1}}", "content": {"text": "Generate trading signals for BTC with $25,000 budget"}},
            {
                "user": "{{agent}}",
                "content": {
                    "text": "I'll generate Bitcoin trading signals for a $25,000 budget.",
                    "action": "GET_TRADING_SIGNAL",
                },
            },
            {
                "user": "{{agent}}",
                "content": {
                    "text": (
                        "Here are my recommended trading signals based on a budget of $25,000:\n\n"
                        "1. OPEN LONG position on BTC-27JUN25-100000-C at $1,250\n"
                        "   Reason: Bullish momentum with strong support at current levels\n\n"
                        "These signals are based on current market conditions and should be "
                        "considered as suggestions, not financial advice."
                    )
                },
            },
        ],
    ]

    def __init__(self, registry: Optional[GrixServiceRegistry] = None, trade_window_ms: int = ONE_WEEK_MS):
        super().__init__(registry)
        self.trade_window_ms = trade_window_ms

    def normalize_parameters(self, extracted: Dict[str, Any]) -> Dict[str, Any]:
        budget = parse_amount(extracted.get("budget_usd"))
        risk_level = _lower(extracted.get("risk_level"), DEFAULT_RISK_LEVEL)
        strategy_focus = _lower(extracted.get("strategy_focus"), DEFAULT_STRATEGY_FOCUS)
        return {
            "asset": str(extracted.get("asset") or DEFAULT_ASSET).strip().upper(),
            "budget_usd": budget if budget else DEFAULT_BUDGET_USD,
            "risk_level": RISK_LEVEL_ALIASES.get(risk_level, risk_level),
            "strategy_focus": STRATEGY_FOCUS_ALIASES.get(strategy_focus, strategy_focus),
            "trade_window_ms": self.trade_window_ms,
        }

    async def run(self, service: GrixService, params: Dict[str, Any]) -> Tuple[str, str]:
        result = await service.generate_signals(**params)
        text = format_signals_reply(result, params["budget_usd"])
        return text, text


class ShowGrixHelpAction:
    """Lists what the assistant can do. Needs no configuration."""

    name = "SHOW_GRIX_HELP"
    description = "Shows available Grix commands and examples"
    similes = [
        "grix help",
        "trading help",
        "options help",
        "show commands",
        "menu",
        "what can you do",
        "show me what you can do",
    ]
    examples = [
        [
            {"user": "{{user1}}", "content": {"text": "Show me what you can do"}},
            {"user": "{{agent}}", "content": {"text": "Here's what I can help you with:", "action": "SHOW_GRIX_HELP"}},
            {"user": "{{agent}}", "content": {"text": HELP_TEXT}},
        ],
    ]

    async def validate(self, runtime: AgentRuntime) -> bool:
        return True

    async def handler(
        self,
        runtime: AgentRuntime,
        message: MessageLike,
        state: Optional[Dict[str, Any]] = None,
        options: Optional[Dict[str, Any]] = None,
        callback: Optional[HandlerCallback] = None,
    ) -> bool:
        if callback is not None:
            await callback({"text": HELP_TEXT})
        if state is not None:
            state["responseData"] = {"text": HELP_TEXT, "action": self.name}
        return True


get_asset_price_action = GetAssetPriceAction()
get_option_price_action = GetOptionPriceAction()
get_perps_pairs_action = GetPerpsPairsAction()
get_trading_signal_action = GetTradingSignalAction()
show_grix_help_action = ShowGrixHelpAction()
