"""
Perpetual trading pairs available on a supported protocol.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
import logging

from grix_constants import ERROR_MESSAGES
from grix_validation import validate_protocol
from service_base import BaseService

logger = logging.getLogger(__name__)

FILTERABLE_ASSETS = {"btc": "BTC", "eth": "ETH"}


def split_pair(pair: str) -> Dict[str, Optional[str]]:
    parts = str(pair).split("-")
    return {
        "baseAsset": parts[0],
        "quoteAsset": parts[1] if len(parts) > 1 else None,
    }


class PerpsPairsService(BaseService):
    async def get_perps_pairs(self, protocol_name: str, asset: Optional[str] = None) -> Dict[str, Any]:
        try:
            protocol = validate_protocol(protocol_name)
            client = await self.get_client()

            base_asset = None
            if isinstance(asset, str):
                base_asset = FILTERABLE_ASSETS.get(asset.strip().lower())
            if base_asset is None:
                logger.info("No supported asset provided (%r), fetching all pairs", asset)

            response = await client.get_perps_pairs(protocol=protocol, base_asset=base_asset)
            raw_pairs: List[str] = (response or {}).get("pairs", []) if isinstance(response, dict) else []

            return {"pairs": [split_pair(pair) for pair in raw_pairs]}
        except Exception as exc:
            raise self.handle_error(exc, ERROR_MESSAGES["PERPS_PAIRS_FETCH_ERROR"].format(protocol=protocol_name))
