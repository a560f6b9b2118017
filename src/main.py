"""CulturePrism FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml``, configures
structured logging, and exposes the ASGI ``app`` for uvicorn.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    validation_exception_handler,
)
from src.api.routes import router as api_router
from src.config.loader import config_value, load_config
from src.config.settings import Settings
from src.interfaces.cache_store import ICulturalCacheStore
from src.pipeline.insight_orchestrator import InsightGenerationPipeline
from src.pipeline.live_discovery import LiveDiscoveryPipeline
from src.pipeline.market_fit import MarketFitPipeline
from src.providers.auth.supabase_auth_provider import SupabaseAuthProvider
from src.providers.cache.memory_cache import MemoryCulturalCacheStore
from src.providers.cultural_graph.qloo_provider import QlooProvider
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.providers.storage.sqlite_cache_store import SQLiteCulturalCacheStore
from src.providers.storage.sqlite_conversation_store import SQLiteConversationStore
from src.providers.storage.sqlite_insights_store import SQLiteInsightsStore
from src.providers.storage.sqlite_project_store import SQLiteProjectStore
from src.services.conversation_service import ConversationalPlanner
from src.services.cultural_cache import CulturalDataCache
from src.utils.errors import ConfigurationError
from src.utils.logging import configure_logging, get_logger
from src.utils.retry import RetryPolicy

_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Component construction
# ---------------------------------------------------------------------------


def _build_cache_store(app_settings: Settings, app_config: dict[str, Any]) -> ICulturalCacheStore:
    """Select the cultural-data cache backend (``sqlite`` or ``memory``)."""
    backend = config_value(app_config, "cache.backend", app_settings.cache_backend)
    ttl_minutes = int(config_value(app_config, "cache.ttl_minutes", app_settings.cache_ttl_minutes))
    if backend == "memory":
        return MemoryCulturalCacheStore(
            max_size=int(config_value(app_config, "cache.max_entries", 1000)),
            ttl=ttl_minutes * 60,
        )
    if backend == "sqlite":
        return SQLiteCulturalCacheStore(db_path=app_settings.database_path)
    raise ConfigurationError(message=f"Unknown cache backend: {backend!r}")


def _build_all(app_settings: Settings, app_config: dict[str, Any]) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=app_settings.upstream_timeout_seconds)
    retry_policy = RetryPolicy(
        max_attempts=int(config_value(app_config, "retry.max_attempts", app_settings.retry_max_attempts)),
        base_delay=float(
            config_value(app_config, "retry.base_delay_seconds", app_settings.retry_base_delay_seconds)
        ),
    )

    # -- Upstream gateways --
    cultural_graph = QlooProvider(settings=app_settings, http_client=http_client, retry_policy=retry_policy)
    llm = OpenAILLMProvider(settings=app_settings, retry_policy=retry_policy)
    auth_provider = SupabaseAuthProvider(settings=app_settings, http_client=http_client)

    # -- Persistence --
    project_store = SQLiteProjectStore(db_path=app_settings.database_path)
    insights_store = SQLiteInsightsStore(db_path=app_settings.database_path)
    conversation_store = SQLiteConversationStore(db_path=app_settings.database_path)
    cache_store = _build_cache_store(app_settings, app_config)
    cache = CulturalDataCache(
        cache_store,
        ttl_minutes=int(config_value(app_config, "cache.ttl_minutes", app_settings.cache_ttl_minutes)),
    )

    # -- Orchestrators --
    models = config_value(app_config, "llm.models", {}) or {}
    insight_pipeline = InsightGenerationPipeline(
        project_store=project_store,
        insights_store=insights_store,
        cache=cache,
        cultural_graph=cultural_graph,
        llm=llm,
        model=models.get("insights", app_settings.openai_insights_model),
    )
    live_pipeline = LiveDiscoveryPipeline(
        cultural_graph=cultural_graph,
        llm=llm,
        model=models.get("live", app_settings.openai_live_model),
    )
    market_fit_pipeline = MarketFitPipeline(
        llm=llm,
        model=models.get("market_fit", app_settings.openai_market_fit_model),
    )
    planner = ConversationalPlanner(
        llm=llm,
        conversation_store=conversation_store,
        model=models.get("chat", app_settings.openai_chat_model),
    )

    return {
        "http_client": http_client,
        "llm": llm,
        "auth_provider": auth_provider,
        "project_store": project_store,
        "insights_store": insights_store,
        "conversation_store": conversation_store,
        "cache_store": cache_store,
        "cache_backend": cache_store.get_provider_name(),
        "insight_pipeline": insight_pipeline,
        "live_pipeline": live_pipeline,
        "market_fit_pipeline": market_fit_pipeline,
        "planner": planner,
        "provider_registry": app_settings.get_available_providers(),
    }


async def _initialize_storage(components: dict[str, Any]) -> None:
    """Create tables for every SQLite-backed component."""
    for key in ("project_store", "insights_store", "conversation_store", "cache_store"):
        initialize = getattr(components[key], "initialize", None)
        if initialize is not None:
            await initialize()


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    components = _build_all(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    await _initialize_storage(components)

    _logger.info(
        "app_startup",
        version=_VERSION,
        environment=settings.app_env,
        providers=components["provider_registry"],
        cache_backend=components["cache_backend"],
        database=settings.database_path,
    )

    yield

    # -- Shutdown: close shared clients --
    await components["llm"].close()
    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP clients closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="CulturePrism API",
        version=_VERSION,
        description=(
            "Audience personas, cultural trends and content suggestions generated "
            "from Qloo cultural intelligence and OpenAI, with caching, retries "
            "and deterministic fallbacks."
        ),
        lifespan=_lifespan,
    )

    application.add_exception_handler(RequestValidationError, validation_exception_handler)

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=settings.get_cors_origins())

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def run() -> None:
    """Serve the application with uvicorn."""
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )


if __name__ == "__main__":
    run()
