"""
Trading-signal generation through a remote trade agent.

One request walks a single agent through

    CREATED -> REQUESTED -> POLLING -> COMPLETED | TIMED_OUT

Polling is sequential: fetch status, and if not done, sleep and fetch again,
up to ``max_attempts`` fetches. A local timeout does not cancel the remote job.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional
import asyncio
import logging
import time

from grix_client import GrixClient
from grix_constants import (
    DEFAULT_AGENT_CONFIG,
    ERROR_MESSAGES,
    ONE_WEEK_MS,
    SIGNAL_INPUT_DATA,
    SIGNAL_MAX_ATTEMPTS,
    SIGNAL_POLL_INTERVAL_SECONDS,
    SIGNAL_PROTOCOLS,
)
from grix_errors import GrixError, SignalTimeoutError
from grix_validation import (
    validate_asset,
    validate_positive,
    validate_risk_level,
    validate_strategy_focus,
)
from option_service import format_number
from service_base import BaseService, ClientScope

logger = logging.getLogger(__name__)

SIGNAL_FIELDS = (
    "action_type",
    "position_type",
    "instrument",
    "instrument_type",
    "size",
    "expected_instrument_price_usd",
    "expected_total_price_usd",
    "reason",
    "target_position_id",
)


class SignalJobState(str, Enum):
    CREATED = "created"
    REQUESTED = "requested"
    POLLING = "polling"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"


_TRANSITIONS = {
    SignalJobState.CREATED: {SignalJobState.REQUESTED},
    SignalJobState.REQUESTED: {SignalJobState.POLLING},
    SignalJobState.POLLING: {SignalJobState.COMPLETED, SignalJobState.TIMED_OUT},
    SignalJobState.COMPLETED: set(),
    SignalJobState.TIMED_OUT: set(),
}


@dataclass
class SignalJob:
    agent_id: Any
    state: SignalJobState = SignalJobState.CREATED
    attempts: int = 0

    def transition(self, new_state: SignalJobState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise GrixError(f"Invalid signal job transition: {self.state.value} -> {new_state.value}")
        logger.debug("Signal job %s: %s -> %s", self.agent_id, self.state.value, new_state.value)
        self.state = new_state


def _first_signal_request(result: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(result, dict):
        return None
    agents = result.get("personalAgents") or []
    if not agents or not isinstance(agents[0], dict):
        return None
    requests = agents[0].get("signal_requests") or []
    if not requests or not isinstance(requests[0], dict):
        return None
    return requests[0]


def map_signal(record: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten one remote signal record."""
    signal = record.get("signal") or {}
    mapped: Dict[str, Any] = {"id": record.get("id")}
    for name in SIGNAL_FIELDS:
        mapped[name] = signal.get(name)
    mapped["created_at"] = record.get("created_at")
    mapped["updated_at"] = record.get("updated_at")
    return mapped


class SignalService(BaseService):
    def __init__(
        self,
        scope: ClientScope,
        max_attempts: int = SIGNAL_MAX_ATTEMPTS,
        poll_interval: float = SIGNAL_POLL_INTERVAL_SECONDS,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        super().__init__(scope)
        self.max_attempts = max(1, int(max_attempts))
        self.poll_interval = max(0.0, float(poll_interval))
        self._sleep = sleep or asyncio.sleep

    @staticmethod
    def build_agent_request(asset: str, budget_usd: float, trade_window_ms: int) -> Dict[str, Any]:
        config = deepcopy(DEFAULT_AGENT_CONFIG)
        config["signal_request_config"].update(
            {
                "budget_usd": format_number(budget_usd),
                "assets": [asset],
                "trade_window_ms": trade_window_ms,
            }
        )
        return {"ownerAddress": "default", "config": config}

    @staticmethod
    def build_signal_request(
        asset: str,
        budget_usd: float,
        trade_window_ms: int,
        risk_level: str,
        strategy_focus: str,
    ) -> Dict[str, Any]:
        return {
            "config": {
                "budget_usd": format_number(budget_usd),
                "assets": [asset],
                "trade_window_ms": trade_window_ms,
                "context_window_ms": ONE_WEEK_MS,
                "input_data": list(SIGNAL_INPUT_DATA),
                "protocols": list(SIGNAL_PROTOCOLS),
                "user_prompt": f"Generate {risk_level} {strategy_focus} strategies",
            }
        }

    async def wait_for_signals(self, client: GrixClient, job: SignalJob) -> List[Dict[str, Any]]:
        job.transition(SignalJobState.POLLING)

        for attempt in range(1, self.max_attempts + 1):
            job.attempts = attempt
            result = await client.get_trade_signals(str(job.agent_id))

            signal_request = _first_signal_request(result)
            if signal_request and signal_request.get("progress") == "completed" and signal_request.get("signals"):
                logger.info("Signals generated successfully for agent %s", job.agent_id)
                job.transition(SignalJobState.COMPLETED)
                return signal_request["signals"]

            logger.info("Waiting for signals... (attempt %d/%d)", attempt, self.max_attempts)
            if attempt < self.max_attempts:
                await self._sleep(self.poll_interval)

        job.transition(SignalJobState.TIMED_OUT)
        raise SignalTimeoutError(agent_id=job.agent_id, attempts=job.attempts)

    async def generate_signals(
        self,
        asset: str,
        budget_usd: float,
        trade_window_ms: int,
        risk_level: str,
        strategy_focus: str,
    ) -> Dict[str, Any]:
        try:
            normalized_asset = validate_asset(asset)
            validate_positive(budget_usd, ERROR_MESSAGES["INVALID_BUDGET"])
            validate_positive(trade_window_ms, ERROR_MESSAGES["INVALID_TRADE_WINDOW"])
            normalized_risk = validate_risk_level(risk_level)
            normalized_focus = validate_strategy_focus(strategy_focus)

            client = await self.get_client()

            create_request = self.build_agent_request(normalized_asset, budget_usd, trade_window_ms)
            logger.info("Creating trade agent for %s (budget %s)", normalized_asset, budget_usd)
            created = await client.create_trade_agent(create_request)
            agent_id = created.get("agentId") if isinstance(created, dict) else None
            if agent_id is None:
                raise GrixError("Trade agent creation returned no agent id")
            job = SignalJob(agent_id=agent_id)
            logger.info("Created trade agent with ID: %s", agent_id)

            signal_request = self.build_signal_request(
                normalized_asset,
                budget_usd,
                trade_window_ms,
                normalized_risk,
                normalized_focus,
            )
            await client.request_trade_agent_signals(int(agent_id), signal_request)
            job.transition(SignalJobState.REQUESTED)
            logger.info("Requested signals for agent %s", agent_id)

            records = await self.wait_for_signals(client, job)

            return {
                "signals": [map_signal(record) for record in records],
                "timestamp": int(time.time() * 1000),
            }
        except Exception as exc:
            raise self.handle_error(exc, ERROR_MESSAGES["SIGNAL_GENERATION_ERROR"].format(asset=asset))
