"""
Grix Finance plugin descriptor: crypto price feeds, options data, perpetual
pairs and trading signals for a chat agent runtime.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from actions import (
    GetAssetPriceAction,
    GetOptionPriceAction,
    GetPerpsPairsAction,
    GetTradingSignalAction,
    ShowGrixHelpAction,
    get_asset_price_action,
    get_option_price_action,
    get_perps_pairs_action,
    get_trading_signal_action,
    show_grix_help_action,
)
from grix_constants import ONE_WEEK_MS
from grix_service import GrixServiceRegistry


@dataclass
class GrixPlugin:
    name: str
    description: str
    actions: List[Any] = field(default_factory=list)

    def find_action(self, name: str) -> Optional[Any]:
        """Resolve an action by its name or one of its similes, case-insensitively."""
        wanted = name.strip().lower()
        for action in self.actions:
            if action.name.lower() == wanted:
                return action
        for action in self.actions:
            if any(simile.lower() == wanted for simile in action.similes):
                return action
        return None


PLUGIN_NAME = "grixv2"
PLUGIN_DESCRIPTION = "Grix Finance Plugin v2 - Advanced crypto options trading insights and signals"


def build_plugin(
    registry: Optional[GrixServiceRegistry] = None,
    trade_window_ms: int = ONE_WEEK_MS,
) -> GrixPlugin:
    """Plugin whose actions share the given service registry."""
    return GrixPlugin(
        name=PLUGIN_NAME,
        description=PLUGIN_DESCRIPTION,
        actions=[
            GetAssetPriceAction(registry),
            GetOptionPriceAction(registry),
            GetPerpsPairsAction(registry),
            GetTradingSignalAction(registry, trade_window_ms=trade_window_ms),
            ShowGrixHelpAction(),
        ],
    )


GRIX_PLUGIN = GrixPlugin(
    name=PLUGIN_NAME,
    description=PLUGIN_DESCRIPTION,
    actions=[
        get_asset_price_action,
        get_option_price_action,
        get_perps_pairs_action,
        get_trading_signal_action,
        show_grix_help_action,
    ],
)
