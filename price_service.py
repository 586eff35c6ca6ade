"""
Spot price lookup for the supported assets. Uncached.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict
import logging

from grix_constants import PRICE_ASSET_NAMES
from grix_validation import validate_asset
from service_base import BaseService

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(datetime.now(tz=timezone.utc).timestamp() * 1000)


def format_usd(price: float) -> str:
    """Format like en-US currency: $42,150.25, -$3.10."""
    sign = "-" if price < 0 else ""
    return f"{sign}${abs(price):,.2f}"


class PriceService(BaseService):
    async def get_price(self, asset: str) -> Dict[str, Any]:
        try:
            normalized_asset = validate_asset(asset)
            client = await self.get_client()

            asset_name = PRICE_ASSET_NAMES[normalized_asset]
            logger.info("Fetching %s price (%s)", normalized_asset, asset_name)
            price = await client.fetch_asset_price(asset_name)

            return {
                "asset": normalized_asset,
                "price": price,
                "formattedPrice": format_usd(price),
                "timestamp": _now_ms(),
            }
        except Exception as exc:
            raise self.handle_error(exc, f"price fetch for {asset}")
