EXTRACTION_SYSTEM_PROMPT = """
You extract query parameters for a crypto options and trading assistant.

Rules:
- Return a single valid JSON object and nothing else.
- Use only the keys listed in the request.
- Omit a key (or use null) when the user did not mention it.
- Never invent assets other than BTC or ETH.
"""

ASSET_PRICE_TEMPLATE = """
Extract the cryptocurrency from the user's request.
If not specified, default to BTC.

Examples of user requests and their parameters:
- "What's the current Bitcoin price?" -> {"asset": "BTC"}
- "Show me ETH price" -> {"asset": "ETH"}
- "How much is Ethereum worth?" -> {"asset": "ETH"}
- "Check BTC price" -> {"asset": "BTC"}
- "What's the price right now?" -> {"asset": "BTC"}

Look for these indicators:
- BTC/Bitcoin/btc
- ETH/Ethereum/eth

User's request: "{user_request}"

Return ONLY a JSON object with the parameter:
{
    "asset": "BTC" or "ETH"
}
"""

OPTION_PRICE_TEMPLATE = """
Extract the cryptocurrency and option type from the user's request.
If option type is not specified, default to "call".

Examples:
- "give me btc call options" -> {"asset": "BTC", "optionType": "call", "positionType": "long"}
- "show eth put options" -> {"asset": "ETH", "optionType": "put", "positionType": "long"}
- "check bitcoin options" -> {"asset": "BTC", "optionType": "call", "positionType": "long"}
- "I want to sell eth calls" -> {"asset": "ETH", "optionType": "call", "positionType": "short"}

User's request: "{user_request}"

Return ONLY a JSON object with the parameters:
{
    "asset": "BTC" or "ETH",
    "optionType": "call" (default) or "put",
    "positionType": "long" (default) or "short"
}
"""

PERPS_PAIRS_TEMPLATE = """
Extract the protocol and optional base asset from the user's request.
If protocol is not specified, default to "hyperliquid".

Examples of user requests and their parameters:
- "What trading pairs are available on Hyperliquid?" -> {"protocol": "hyperliquid"}
- "What are the available pairs on Hyperliquid for ETH?" -> {"protocol": "hyperliquid", "baseAsset": "ETH"}
- "List all perp pairs" -> {"protocol": "hyperliquid"}
- "Show me BTC perps" -> {"protocol": "hyperliquid", "baseAsset": "BTC"}

Look for these indicators:
- Protocol: Hyperliquid, hyperliquid, etc.
- Base assets: BTC, ETH, etc.

User's request: "{user_request}"

Return ONLY a JSON object with the parameters:
{
    "protocol": "protocol_name",
    "baseAsset": "ASSET_SYMBOL" (optional)
}
"""

TRADING_SIGNAL_TEMPLATE = """
Extract trading parameters from the user's request.
If parameters are not specified, use defaults.

Examples with their expected parameters:
- "Generate BTC trading signals with $5000 budget" ->
  {"asset": "BTC", "budget_usd": 5000, "risk_level": "moderate", "strategy_focus": "growth"}
- "Give me conservative ETH signals for $10000" ->
  {"asset": "ETH", "budget_usd": 10000, "risk_level": "conservative", "strategy_focus": "hedging"}
- "What should I trade with $25000?" ->
  {"asset": "BTC", "budget_usd": 25000, "risk_level": "moderate", "strategy_focus": "growth"}
- "I want some yield on my ETH, 3k budget" ->
  {"asset": "ETH", "budget_usd": 3000, "risk_level": "moderate", "strategy_focus": "income"}

Look for these indicators:
- Asset: BTC/Bitcoin or ETH/Ethereum
- Budget: Dollar amounts like $5000, 10k, etc. (as a plain number)
- Risk Level: conservative/safe, moderate/normal, aggressive/risky
- Strategy: growth/profit, hedging/safety/protection, income/yield

Defaults:
- asset: "BTC"
- budget_usd: 10000
- risk_level: "moderate"
- strategy_focus: "growth"

User's request: "{user_request}"

Return ONLY a JSON object with the parameters:
{
    "asset": "BTC" or "ETH",
    "budget_usd": number (default: 10000),
    "risk_level": "conservative" or "moderate" or "aggressive",
    "strategy_focus": "growth" or "hedging" or "income"
}
"""

HELP_TEXT = """# 🤖 Grix Trading Assistant

Here are some examples of what you can ask me:

## 📊 Price Information
- "What's the current BTC price?"
- "Show me ETH price"

## 📈 Options Trading
- "Find me BTC calls"
- "Show ETH put options"
- "What are the best BTC options right now?"

## 🔁 Perpetual Pairs
- "What trading pairs are available on Hyperliquid?"
- "Show me Hyperliquid pairs for ETH"

## 🎯 Trading Signals
- "Generate BTC trading signals with a $5,000 budget"
- "Give me conservative ETH hedging ideas for $10,000"

*Just type any of these questions or ask in your own words!*"""


def build_extraction_prompt(template: str, user_request: str) -> str:
    return template.replace("{user_request}", (user_request or "").strip())
