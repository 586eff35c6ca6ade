"""
Reply text for each action. Pure presentation over the facade's results.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from option_service import format_locale_number

DISCLAIMER = (
    "These signals are based on current market conditions and should be "
    "considered as suggestions, not financial advice."
)


def format_price_reply(result: Dict[str, Any]) -> str:
    return f"The current {result['asset']} price is {result['formattedPrice']}"


def format_options_reply(result: Dict[str, Any]) -> str:
    if not result.get("options"):
        return f"No options data available for {result['asset']} {result['optionType']} options."
    return f"Available Options:\n\n{result['formattedOptions']}"


def format_pairs_list(pairs: List[Dict[str, Any]]) -> str:
    return "".join(f"- {pair['baseAsset']}/{pair['quoteAsset']}\n" for pair in pairs)


def format_pairs_reply(result: Dict[str, Any], protocol: str, asset: Optional[str] = None) -> str:
    header = f"Available trading pairs for {protocol.upper()}"
    if asset:
        header += f" with {asset}"
    return f"{header}:\n{format_pairs_list(result.get('pairs', []))}"


def format_signals_reply(result: Dict[str, Any], budget: float) -> str:
    text = f"Here are my recommended trading signals based on a budget of ${format_locale_number(budget)}:\n\n"

    signals = result.get("signals") or []
    if not signals:
        return text + "No viable trading signals found for the current market conditions."

    for index, signal in enumerate(signals, start=1):
        price = signal.get("expected_instrument_price_usd")
        price_text = format_locale_number(price) if isinstance(price, (int, float)) else str(price)
        text += (
            f"{index}. {str(signal.get('action_type', '')).upper()} "
            f"{str(signal.get('position_type', '')).upper()} position on "
            f"{signal.get('instrument')} at ${price_text}\n"
        )
        text += f"   Reason: {signal.get('reason')}\n\n"

    return text + DISCLAIMER
