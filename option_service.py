"""
Options market board lookup with a short-lived in-memory cache.

The cache is keyed by (asset, option type, position type). Each key has its
own freshness timer and is replaced wholesale on refresh; refreshes of one
key are serialized by a per-key lock.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple
import asyncio
import logging
import time

from grix_constants import DEFAULT_POSITION_TYPE, OPTIONS_CACHE_TTL_SECONDS
from grix_validation import validate_asset, validate_option_type, validate_position_type
from service_base import BaseService, ClientScope

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str, str]

MONTH_ABBREVIATIONS = (
    "JAN", "FEB", "MAR", "APR", "MAY", "JUN",
    "JUL", "AUG", "SEP", "OCT", "NOV", "DEC",
)

SEPARATOR = "------------------------"


@dataclass
class OptionEntry:
    """One cached option instrument."""

    option_id: Any
    symbol: str
    type: str
    expiry: str
    strike: float
    protocol: str
    price: float
    available: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "optionId": self.option_id,
            "expiry": self.expiry,
            "strike": self.strike,
            "price": self.price,
            "protocol": self.protocol,
            "available": self.available,
            "type": self.type,
        }


@dataclass
class _CacheSlot:
    entries: List[OptionEntry] = field(default_factory=list)
    fetched_at: Optional[float] = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class OptionsCache:
    """Per-key option boards with independent freshness windows."""

    def __init__(
        self,
        ttl_seconds: float = OPTIONS_CACHE_TTL_SECONDS,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock or time.monotonic
        self._slots: Dict[CacheKey, _CacheSlot] = {}

    def is_stale(self, key: CacheKey) -> bool:
        slot = self._slots.get(key)
        if slot is None or slot.fetched_at is None:
            return True
        return self._clock() - slot.fetched_at > self.ttl_seconds

    async def get_or_refresh(
        self,
        key: CacheKey,
        loader: Callable[[], Awaitable[List[OptionEntry]]],
    ) -> List[OptionEntry]:
        slot = self._slots.setdefault(key, _CacheSlot())
        if self.is_stale(key):
            async with slot.lock:
                # another caller may have refreshed while we waited
                if self.is_stale(key):
                    entries = await loader()
                    slot.entries = list(entries)
                    slot.fetched_at = self._clock()
                    logger.info("Options cache refreshed for %s (%d entries)", key, len(slot.entries))
        return list(slot.entries)

    def entries(self, asset: Optional[str] = None) -> List[OptionEntry]:
        result: List[OptionEntry] = []
        for key, slot in self._slots.items():
            if asset is None or key[0] == asset.upper():
                result.extend(slot.entries)
        return result

    def clear(self) -> None:
        self._slots.clear()


def _to_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip().replace(",", ""))
        except ValueError:
            return default
    return default


def format_number(value: Any) -> str:
    """Plain number text: 50000.0 -> "50000", 12.5 -> "12.5"."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_locale_number(value: float) -> str:
    """Grouped number with up to three decimals: 1250.5 -> "1,250.5"."""
    text = f"{value:,.3f}".rstrip("0").rstrip(".")
    return text or "0"


def _parse_expiry(expiry: Any) -> Optional[datetime]:
    if isinstance(expiry, bool):
        return None
    if isinstance(expiry, (int, float)):
        seconds = expiry / 1000.0 if expiry > 1e11 else float(expiry)
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    if isinstance(expiry, str) and expiry.strip():
        try:
            parsed = datetime.fromisoformat(expiry.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc)
        return parsed
    return None


def format_option_symbol(asset: str, expiry: Any, strike: Any, option_type: str) -> str:
    """Instrument symbol ``ASSET-DDMMMYY-STRIKE-C|P``."""
    parsed = _parse_expiry(expiry)
    if parsed is not None:
        date_part = f"{parsed.day:02d}{MONTH_ABBREVIATIONS[parsed.month - 1]}{parsed.year % 100:02d}"
    else:
        date_part = str(expiry)
    type_letter = (option_type or "?")[0].upper()
    return f"{asset}-{date_part}-{format_number(strike)}-{type_letter}"


def format_options_board(options: List[OptionEntry]) -> str:
    if not options:
        return "No options available"

    grouped: "OrderedDict[str, OrderedDict[str, List[OptionEntry]]]" = OrderedDict()
    for opt in options:
        by_symbol = grouped.setdefault(str(opt.expiry), OrderedDict())
        symbol = format_option_symbol(opt.symbol, opt.expiry, opt.strike, opt.type)
        by_symbol.setdefault(symbol, []).append(opt)

    lines: List[str] = []
    for expiry, by_symbol in grouped.items():
        lines.append(f"Expiry: {expiry}")
        lines.append("")
        for symbol, symbol_options in by_symbol.items():
            lines.append(symbol)
            for opt in symbol_options:
                lines.append(f"Protocol: {opt.protocol}")
                lines.append(f"Available: {format_number(opt.available)} contracts")
                lines.append(f"Price: ${format_locale_number(opt.price)}")
            lines.append(SEPARATOR)
            lines.append("")

    return "\n".join(lines).strip()


class OptionService(BaseService):
    def __init__(
        self,
        scope: ClientScope,
        cache_ttl_seconds: float = OPTIONS_CACHE_TTL_SECONDS,
        clock: Optional[Callable[[], float]] = None,
    ):
        super().__init__(scope)
        self.cache = OptionsCache(ttl_seconds=cache_ttl_seconds, clock=clock)

    async def get_options(
        self,
        asset: str,
        option_type: str,
        position_type: Optional[str] = None,
        strike: Optional[float] = None,
        expiry: Optional[str] = None,
    ) -> Dict[str, Any]:
        try:
            normalized_asset = validate_asset(asset)
            normalized_type = validate_option_type(option_type)
            normalized_position = validate_position_type(position_type)
            if normalized_position != "long":
                normalized_position = DEFAULT_POSITION_TYPE

            if strike is not None or expiry is not None:
                # accepted for forward compatibility, not used for filtering
                logger.info("Ignoring strike=%s expiry=%s filters", strike, expiry)

            key: CacheKey = (normalized_asset, normalized_type, normalized_position)

            async def _load() -> List[OptionEntry]:
                client = await self.get_client()
                logger.info("Fetching options board for %s", key)
                board = await client.get_options_market_board(
                    asset=normalized_asset,
                    option_type=normalized_type,
                    position_type=normalized_position,
                )
                return self.transform_options_data(board, normalized_asset)

            cached = await self.cache.get_or_refresh(key, _load)
            filtered = [opt for opt in cached if str(opt.type).lower() == normalized_type]
            logger.info("Returning %d %s %s options", len(filtered), normalized_asset, normalized_type)

            return {
                "asset": normalized_asset,
                "optionType": normalized_type,
                "formattedOptions": format_options_board(filtered),
                "options": [opt.to_dict() for opt in filtered],
                "timestamp": int(time.time() * 1000),
            }
        except Exception as exc:
            raise self.handle_error(exc, "options fetch")

    @staticmethod
    def transform_options_data(board: Any, asset: str) -> List[OptionEntry]:
        if not isinstance(board, list):
            logger.warning("Options board response is not a list: %s", type(board).__name__)
            return []

        return [
            OptionEntry(
                option_id=item.get("optionId"),
                symbol=asset,
                type=str(item.get("type", "")),
                expiry=item.get("expiry"),
                strike=_to_float(item.get("strike")),
                protocol=str(item.get("protocol", "")),
                price=_to_float(item.get("contractPrice")),
                available=_to_float(item.get("availableAmount")),
            )
            for item in board
            if isinstance(item, dict)
        ]

    async def get_expiry_dates(self, asset: Optional[str] = None) -> List[str]:
        return sorted({str(opt.expiry) for opt in self.cache.entries(asset)})

    async def get_strike_prices(self, expiry: Optional[str] = None, asset: Optional[str] = None) -> List[float]:
        options = self.cache.entries(asset)
        if expiry:
            options = [opt for opt in options if opt.expiry == expiry]
        return sorted({opt.strike for opt in options})

    async def get_protocols(self, asset: Optional[str] = None) -> List[str]:
        return list(OrderedDict.fromkeys(opt.protocol for opt in self.cache.entries(asset)))

    def clear_cache(self) -> None:
        self.cache.clear()
