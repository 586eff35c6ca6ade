"""
Remote client for the Grix finance API.

``GrixClient`` names the six remote calls the services rely on. The HTTP
implementation talks to the hosted API with aiohttp and maps transport
failures into the error taxonomy; it never retries.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
import asyncio
import logging

import aiohttp

from grix_constants import API_DEFAULTS, API_PATHS, ERROR_MESSAGES
from grix_errors import ApiError, AuthenticationError, ServiceUnavailableError

logger = logging.getLogger(__name__)


class GrixClient(ABC):
    """Abstract interface for the remote finance API"""

    @abstractmethod
    async def fetch_asset_price(self, asset_name: str) -> float:
        """Spot price in USD for a price-feed asset name ("bitcoin", "ethereum")."""
        pass

    @abstractmethod
    async def get_options_market_board(
        self,
        asset: str,
        option_type: str,
        position_type: str,
    ) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def get_perps_pairs(self, protocol: str, base_asset: Optional[str] = None) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def create_trade_agent(self, request: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def request_trade_agent_signals(self, agent_id: int, request: Dict[str, Any]) -> Any:
        pass

    @abstractmethod
    async def get_trade_signals(self, agent_id: str) -> Dict[str, Any]:
        pass

    async def aclose(self) -> None:
        """Release transport resources. Optional for implementations."""
        return None


class GrixHttpClient(GrixClient):
    """aiohttp-backed client, one session per instance."""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout_ms: Optional[int] = None,
    ):
        self.api_key = api_key
        self.base_url = (base_url or API_DEFAULTS["base_url"]).rstrip("/")
        self.timeout_ms = int(timeout_ms or API_DEFAULTS["timeout_ms"])
        self._session: Optional[aiohttp.ClientSession] = None

    @classmethod
    async def initialize(
        cls,
        api_key: str,
        base_url: Optional[str] = None,
        timeout_ms: Optional[int] = None,
    ) -> "GrixHttpClient":
        client = cls(api_key, base_url=base_url, timeout_ms=timeout_ms)
        await client._ensure_session()
        return client

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={
                    API_DEFAULTS["api_key_header"]: self.api_key,
                    "Accept": "application/json",
                    "User-Agent": "grix-agent-plugin/1.0",
                },
                timeout=aiohttp.ClientTimeout(total=self.timeout_ms / 1000.0),
            )
        return self._session

    async def aclose(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()

    @staticmethod
    async def _read_payload(response: aiohttp.ClientResponse) -> Any:
        try:
            return await response.json(content_type=None)
        except (aiohttp.ContentTypeError, ValueError):
            return await response.text()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        session = await self._ensure_session()
        url = f"{self.base_url}{path}"
        logger.debug("%s %s params=%s", method, url, params)
        try:
            async with session.request(method, url, params=params, json=json_body) as r:
                payload = await self._read_payload(r)
                if r.status in (401, 403):
                    raise AuthenticationError(ERROR_MESSAGES["INVALID_CREDENTIALS"])
                if r.status == 503:
                    raise ServiceUnavailableError()
                if r.status >= 400:
                    raise ApiError(
                        f"Grix API returned HTTP {r.status} for {path}",
                        r.status,
                        response=payload,
                        context=path,
                    )
                return payload
        except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as exc:
            logger.error("Grix API unreachable (%s %s): %s", method, path, exc)
            raise ServiceUnavailableError() from exc

    async def fetch_asset_price(self, asset_name: str) -> float:
        payload = await self._request("GET", API_PATHS["asset_price"], params={"asset": asset_name})
        if isinstance(payload, dict):
            payload = payload.get("price")
        return float(payload)

    async def get_options_market_board(
        self,
        asset: str,
        option_type: str,
        position_type: str,
    ) -> List[Dict[str, Any]]:
        payload = await self._request(
            "GET",
            API_PATHS["options_market_board"],
            params={"asset": asset, "optionType": option_type, "positionType": position_type},
        )
        if isinstance(payload, dict):
            payload = payload.get("data", [])
        return payload

    async def get_perps_pairs(self, protocol: str, base_asset: Optional[str] = None) -> Dict[str, Any]:
        params = {"protocol": protocol}
        if base_asset:
            params["baseAsset"] = base_asset
        return await self._request("GET", API_PATHS["perps_pairs"], params=params)

    async def create_trade_agent(self, request: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", API_PATHS["trade_agents"], json_body=request)

    async def request_trade_agent_signals(self, agent_id: int, request: Dict[str, Any]) -> Any:
        path = API_PATHS["trade_agent_signals"].format(agent_id=agent_id)
        return await self._request("POST", path, json_body=request)

    async def get_trade_signals(self, agent_id: str) -> Dict[str, Any]:
        return await self._request("GET", API_PATHS["trade_signals"], params={"agentId": agent_id})
