"""
Static values shared by the Grix services: API defaults, the supported
enumerations, fixed error messages and the trade-agent template.
"""

from __future__ import annotations

from typing import Any, Dict

API_DEFAULTS: Dict[str, Any] = {
    "base_url": "https://api.grix.finance",
    "timeout_ms": 30000,
    "api_key_header": "x-api-key",
}

# Remote endpoints, one per client call
API_PATHS = {
    "asset_price": "/assetPrice",
    "options_market_board": "/optionsMarketBoard",
    "perps_pairs": "/perps/pairs",
    "trade_agents": "/tradeAgents",
    "trade_agent_signals": "/tradeAgents/{agent_id}/signals",
    "trade_signals": "/tradeSignals",
}

SUPPORTED_ASSETS = ("BTC", "ETH")
OPTION_TYPES = ("call", "put")
POSITION_TYPES = ("long", "short")
PERPS_PROTOCOLS = ("hyperliquid",)
RISK_LEVELS = ("conservative", "moderate", "aggressive")
STRATEGY_FOCUSES = ("income", "growth", "hedging")

# Asset names expected by the price feed
PRICE_ASSET_NAMES = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
}

DEFAULT_POSITION_TYPE = "short"

OPTIONS_CACHE_TTL_SECONDS = 60.0

SIGNAL_MAX_ATTEMPTS = 10
SIGNAL_POLL_INTERVAL_SECONDS = 2.0

ONE_WEEK_MS = 7 * 24 * 60 * 60 * 1000

SIGNAL_PROTOCOLS = ["derive", "aevo", "premia", "moby", "ithaca", "zomma", "deribit"]
SIGNAL_INPUT_DATA = ["marketData", "assetPrices"]

DEFAULT_AGENT_CONFIG: Dict[str, Any] = {
    "agent_name": "OS-E",
    "is_simulation": True,
    "signal_request_config": {
        "protocols": SIGNAL_PROTOCOLS,
        "input_data": SIGNAL_INPUT_DATA,
        "context_window_ms": ONE_WEEK_MS,
    },
}

ERROR_MESSAGES = {
    "INVALID_CREDENTIALS": "Invalid API credentials. Please check your API key.",
    "INVALID_ASSET": "Invalid asset. Only BTC and ETH are supported.",
    "INVALID_OPTION_TYPE": "Invalid option type. Only 'call' and 'put' are supported.",
    "INVALID_POSITION_TYPE": "Invalid position type. Only 'long' and 'short' are supported.",
    "INVALID_PROTOCOL": "Invalid protocol: {protocol}. Supported protocols: " + ", ".join(PERPS_PROTOCOLS) + ".",
    "INVALID_RISK_LEVEL": "Invalid risk level. Must be one of: " + ", ".join(RISK_LEVELS),
    "INVALID_STRATEGY_FOCUS": "Invalid strategy focus. Must be one of: " + ", ".join(STRATEGY_FOCUSES),
    "INVALID_BUDGET": "Budget must be greater than zero",
    "INVALID_TRADE_WINDOW": "Trading window must be greater than zero",
    "SERVICE_UNAVAILABLE": "The Grix service is currently unavailable. Please try again later.",
    "OPTION_FETCH_ERROR": "Failed to fetch options data for {asset}",
    "PRICE_FETCH_ERROR": "Failed to fetch price for {asset}",
    "PERPS_PAIRS_FETCH_ERROR": "Failed to fetch perps pairs for {protocol}",
    "SIGNAL_GENERATION_ERROR": "signal generation for {asset}",
}
