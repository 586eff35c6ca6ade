"""
Remote Client Adapter.

A ``ClientScope`` owns the credential and lazily acquires one client handle,
which every service sharing the scope reuses. Services receive the scope
explicitly so tests can swap the client factory.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional
import asyncio
import functools
import logging

from grix_client import GrixClient, GrixHttpClient
from grix_constants import API_DEFAULTS
from grix_errors import AuthenticationError, GrixError, normalize_error

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], Awaitable[GrixClient]]


class ClientScope:
    """Construct-or-reuse holder for the remote client of one credential."""

    def __init__(
        self,
        api_key: Optional[str],
        client_factory: Optional[ClientFactory] = None,
        *,
        base_url: Optional[str] = None,
        timeout_ms: Optional[int] = None,
    ):
        self.api_key = api_key
        self.timeout_ms = int(timeout_ms or API_DEFAULTS["timeout_ms"])
        self._client_factory = client_factory or functools.partial(
            GrixHttpClient.initialize,
            base_url=base_url,
            timeout_ms=self.timeout_ms,
        )
        self._client: Optional[GrixClient] = None
        self._lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return self._client is not None

    def validate_api_key(self) -> None:
        if not self.api_key or not str(self.api_key).strip():
            raise AuthenticationError()

    async def ensure_client(self) -> GrixClient:
        if self._client is not None:
            return self._client

        self.validate_api_key()
        async with self._lock:
            # a concurrent caller may have finished creating it
            if self._client is None:
                logger.info("Initializing Grix client...")
                try:
                    self._client = await self._client_factory(self.api_key)
                except Exception as exc:
                    raise normalize_error(exc, "SDK initialization")
                logger.info("Grix client initialized")
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class BaseService:
    """Shared plumbing for the query services."""

    def __init__(self, scope: ClientScope):
        self.scope = scope

    async def get_client(self) -> GrixClient:
        return await self.scope.ensure_client()

    @staticmethod
    def handle_error(error: BaseException, context: Optional[str] = None) -> GrixError:
        return normalize_error(error, context)
