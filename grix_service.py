"""
Request facade composing the price, options, perps-pairs and signal services
around one shared client scope.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Optional
import logging

from grix_constants import (
    API_DEFAULTS,
    OPTIONS_CACHE_TTL_SECONDS,
    SIGNAL_MAX_ATTEMPTS,
    SIGNAL_POLL_INTERVAL_SECONDS,
)
from option_service import OptionService
from perps_pairs_service import PerpsPairsService
from price_service import PriceService, format_usd
from service_base import ClientFactory, ClientScope
from signal_service import SignalService

logger = logging.getLogger(__name__)


class GrixService:
    """Single entry point for the four Grix queries."""

    def __init__(
        self,
        api_key: Optional[str],
        *,
        client_factory: Optional[ClientFactory] = None,
        base_url: Optional[str] = None,
        timeout_ms: int = API_DEFAULTS["timeout_ms"],
        options_cache_ttl: float = OPTIONS_CACHE_TTL_SECONDS,
        signal_max_attempts: int = SIGNAL_MAX_ATTEMPTS,
        signal_poll_interval: float = SIGNAL_POLL_INTERVAL_SECONDS,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        self.scope = ClientScope(
            api_key,
            client_factory,
            base_url=base_url,
            timeout_ms=timeout_ms,
        )
        self.price_service = PriceService(self.scope)
        self.option_service = OptionService(self.scope, cache_ttl_seconds=options_cache_ttl, clock=clock)
        self.signal_service = SignalService(
            self.scope,
            max_attempts=signal_max_attempts,
            poll_interval=signal_poll_interval,
            sleep=sleep,
        )
        self.perps_pairs_service = PerpsPairsService(self.scope)

    @staticmethod
    def format_price(price: float) -> str:
        return format_usd(price)

    async def get_price(self, asset: str) -> Dict[str, Any]:
        return await self.price_service.get_price(asset)

    async def get_options(
        self,
        asset: str,
        option_type: str,
        position_type: Optional[str] = None,
        strike: Optional[float] = None,
        expiry: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self.option_service.get_options(
            asset=asset,
            option_type=option_type,
            position_type=position_type,
            strike=strike,
            expiry=expiry,
        )

    async def generate_signals(
        self,
        asset: str,
        budget_usd: float,
        trade_window_ms: int,
        risk_level: str,
        strategy_focus: str,
    ) -> Dict[str, Any]:
        return await self.signal_service.generate_signals(
            asset=asset,
            budget_usd=budget_usd,
            trade_window_ms=trade_window_ms,
            risk_level=risk_level,
            strategy_focus=strategy_focus,
        )

    async def get_perps_pairs(self, protocol_name: str, asset: Optional[str] = None) -> Dict[str, Any]:
        return await self.perps_pairs_service.get_perps_pairs(protocol_name=protocol_name, asset=asset)

    async def aclose(self) -> None:
        await self.scope.aclose()


class GrixServiceRegistry:
    """
    Construct-or-reuse one GrixService per credential.

    Keeps the options cache and the client handle alive across action
    invocations for the lifetime of the process.
    """

    def __init__(self, **service_kwargs: Any):
        self._service_kwargs = service_kwargs
        self._services: Dict[str, GrixService] = {}

    def for_credential(self, api_key: str) -> GrixService:
        service = self._services.get(api_key)
        if service is None:
            logger.info("Creating Grix service for a new credential")
            service = GrixService(api_key, **self._service_kwargs)
            self._services[api_key] = service
        return service

    async def aclose(self) -> None:
        for service in self._services.values():
            await service.aclose()
        self._services.clear()
