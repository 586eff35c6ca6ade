"""
FastAPI host for the Grix plugin

Endpoints:
- GET /status - Health check
- GET /actions - List the plugin's actions
- POST /actions/{name} - Run an action on a free-text message
- POST /price - Spot price for BTC or ETH
- POST /options - Options market board
- POST /perps-pairs - Perpetual pairs for a protocol
- POST /signals - Generate trading signals
"""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import Dict, Any, Optional, List, Mapping
import logging
import os
from dotenv import load_dotenv

from ai_providers import AIProvider, get_provider
from grix_config import AI_KEY_SETTINGS, Settings, load_settings
from grix_errors import GrixError
from grix_service import GrixServiceRegistry
from plugin import build_plugin

from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)


# ============================================================================
# RUNTIME
# ============================================================================

class EnvRuntime:
    """Agent runtime backed by the process environment."""

    def __init__(
        self,
        settings: Settings,
        environ: Optional[Mapping[str, str]] = None,
        ai_provider: Optional[AIProvider] = None,
    ):
        self._env = os.environ if environ is None else environ
        self.settings = settings
        self.ai_provider = ai_provider or self._build_provider()

    def get_setting(self, key: str) -> Optional[str]:
        return self._env.get(key)

    def _build_provider(self) -> Optional[AIProvider]:
        api_key = self._env.get(AI_KEY_SETTINGS[self.settings.ai_provider])
        if not api_key:
            logger.warning("No %s set; free-text actions are disabled", AI_KEY_SETTINGS[self.settings.ai_provider])
            return None
        return get_provider(api_key=api_key, model=self.settings.ai_model, provider=self.settings.ai_provider)


# ============================================================================
# REQUEST / RESPONSE MODELS
# ============================================================================

class StatusResponse(BaseModel):
    """Status check response"""
    status: str
    grix_base_url: str
    grix_configured: bool
    ai_provider: str
    ai_configured: bool
    options_cache_ttl_seconds: float
    signal_max_attempts: int


class ActionInfo(BaseModel):
    name: str
    description: str
    similes: List[str]


class ActionRequest(BaseModel):
    """Free-text message for an action"""
    text: str = Field(..., description="User message")

    class Config:
        json_schema_extra = {
            "example": {
                "text": "Show me Bitcoin call options"
            }
        }


class ActionResponse(BaseModel):
    success: bool
    action: str
    responses: List[str] = []


class PriceRequest(BaseModel):
    asset: str = Field(..., description="BTC or ETH")


class OptionsRequest(BaseModel):
    asset: str
    optionType: str = Field(..., description="call or put")
    positionType: Optional[str] = Field(None, description="long or short (default short)")
    strike: Optional[float] = None
    expiry: Optional[str] = None


class PerpsPairsRequest(BaseModel):
    protocolName: str = Field("hyperliquid", description="Perpetuals protocol")
    asset: Optional[str] = None


class SignalsRequest(BaseModel):
    asset: str
    budget_usd: float
    trade_window_ms: int
    risk_level: str = Field(..., description="conservative, moderate or aggressive")
    strategy_focus: str = Field(..., description="income, growth or hedging")

    class Config:
        json_schema_extra = {
            "example": {
                "asset": "BTC",
                "budget_usd": 5000,
                "trade_window_ms": 604800000,
                "risk_level": "moderate",
                "strategy_focus": "growth",
            }
        }


class QueryResponse(BaseModel):
    success: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None


# ============================================================================
# APP FACTORY
# ============================================================================

def create_app(
    settings: Optional[Settings] = None,
    registry: Optional[GrixServiceRegistry] = None,
    runtime: Optional[Any] = None,
) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    registry = registry or GrixServiceRegistry(
        base_url=settings.grix_base_url,
        timeout_ms=settings.grix_timeout_ms,
        options_cache_ttl=settings.options_cache_ttl_seconds,
        signal_max_attempts=settings.signal_max_attempts,
        signal_poll_interval=settings.signal_poll_interval_seconds,
    )
    runtime = runtime or EnvRuntime(settings)
    plugin = build_plugin(registry, trade_window_ms=settings.signal_trade_window_ms)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup/shutdown events"""
        print("=" * 60)
        print("🚀 Grix Agent Plugin")
        print("=" * 60)
        print(f"Grix API: {settings.grix_base_url}")
        print(f"Grix key: {'set' if runtime.get_setting('GRIX_API_KEY') else 'MISSING'}")
        print(f"Provider: {settings.ai_provider.upper()}")
        print(f"Actions: {', '.join(action.name for action in plugin.actions)}")
        print("=" * 60)
        yield
        await registry.aclose()

    app = FastAPI(
        title="Grix Agent Plugin",
        description="Crypto prices, options boards, perpetual pairs and trading signals for chat agents",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _service():
        return registry.for_credential(runtime.get_setting("GRIX_API_KEY") or "")

    async def _run_query(query) -> QueryResponse:
        try:
            return QueryResponse(success=True, data=await query())
        except GrixError as e:
            return QueryResponse(success=False, error=str(e), error_kind=e.kind.value)

    # ------------------------------------------------------------------------
    # ENDPOINTS
    # ------------------------------------------------------------------------

    @app.get("/status", response_model=StatusResponse)
    async def status():
        """Health check endpoint"""
        return StatusResponse(
            status="running",
            grix_base_url=settings.grix_base_url,
            grix_configured=bool(runtime.get_setting("GRIX_API_KEY")),
            ai_provider=settings.ai_provider,
            ai_configured=runtime.ai_provider is not None,
            options_cache_ttl_seconds=settings.options_cache_ttl_seconds,
            signal_max_attempts=settings.signal_max_attempts,
        )

    @app.get("/actions", response_model=List[ActionInfo])
    async def list_actions():
        return [
            ActionInfo(name=action.name, description=action.description, similes=list(action.similes))
            for action in plugin.actions
        ]

    @app.post("/actions/{action_name}", response_model=ActionResponse)
    async def run_action(action_name: str, request: ActionRequest):
        """
        Run one action on a free-text message, collecting every reply the
        handler delivers through its callback.
        """
        action = plugin.find_action(action_name)
        if action is None:
            raise HTTPException(status_code=404, detail=f"Unknown action: {action_name}")

        responses: List[str] = []

        async def _collect(content: Dict[str, Any]) -> None:
            responses.append(content.get("text", ""))

        state: Dict[str, Any] = {}
        success = False
        if await action.validate(runtime):
            success = await action.handler(
                runtime,
                {"content": {"text": request.text}},
                state=state,
                callback=_collect,
            )
        else:
            responses.append("Grix is not configured. Set GRIX_API_KEY and a language model API key.")

        return ActionResponse(success=success, action=action.name, responses=responses)

    @app.post("/price", response_model=QueryResponse)
    async def price(request: PriceRequest):
        return await _run_query(lambda: _service().get_price(request.asset))

    @app.post("/options", response_model=QueryResponse)
    async def options(request: OptionsRequest):
        return await _run_query(lambda: _service().get_options(
            asset=request.asset,
            option_type=request.optionType,
            position_type=request.positionType,
            strike=request.strike,
            expiry=request.expiry,
        ))

    @app.post("/perps-pairs", response_model=QueryResponse)
    async def perps_pairs(request: PerpsPairsRequest):
        return await _run_query(lambda: _service().get_perps_pairs(
            protocol_name=request.protocolName,
            asset=request.asset,
        ))

    @app.post("/signals", response_model=QueryResponse)
    async def signals(request: SignalsRequest):
        return await _run_query(lambda: _service().generate_signals(
            asset=request.asset,
            budget_usd=request.budget_usd,
            trade_window_ms=request.trade_window_ms,
            risk_level=request.risk_level,
            strategy_focus=request.strategy_focus,
        ))

    return app


# Load environment variables
load_dotenv()

app = create_app()


# ============================================================================
# STARTUP
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    _settings = load_settings()
    uvicorn.run(
        "server:app",
        host=_settings.host,
        port=_settings.port,
        reload=True
    )
