"""FastAPI API routes for CulturePrism.

Provides the three insight entrypoints, conversational planning, owner-scoped
project CRUD and a health check.  Service dependencies are resolved from
``app.state`` via FastAPI's ``Depends`` using the ``Annotated`` pattern.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                                   Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/generate-insights                  POST    Deep insights for a project
# /api/v1/live-discovery                     POST    Quick, unpersisted insights
# /api/v1/market-fit-analysis                POST    Product-market fit analysis
# /api/v1/conversational-planning            POST    Planning chat reply
# /api/v1/projects                           POST    Create a project
# /api/v1/projects                           GET     List the caller's projects
# /api/v1/projects/{id}                      GET     Fetch one project
# /api/v1/projects/{id}                      PATCH   Partially update a project
# /api/v1/projects/{id}                      DELETE  Delete (cascades)
# /api/v1/projects/{id}/insights/latest      GET     Most recent insights
# /api/v1/health                             GET     Health + provider status
#
# Every route except /health requires ``Authorization: Bearer <token>``.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Header, Request, Response
from fastapi.responses import JSONResponse

from src.api.schemas import (
    GenerateInsightsRequest,
    HealthResponse,
    InsightsResponse,
    LiveDiscoveryResponse,
    MarketFitErrorResponse,
)
from src.interfaces.auth_provider import AuthenticatedUser, IAuthProvider
from src.interfaces.insights_store import IInsightsStore
from src.interfaces.project_store import IProjectStore
from src.models.conversation import ConversationMessage, ConversationRequest
from src.models.live import LiveDiscoveryRequest
from src.models.market_fit import MarketFitRequest
from src.models.project import Project, ProjectCreate, ProjectUpdate
from src.pipeline.insight_orchestrator import InsightGenerationPipeline
from src.pipeline.live_discovery import LiveDiscoveryPipeline
from src.pipeline.market_fit import MarketFitPipeline
from src.services.conversation_service import ConversationalPlanner
from src.utils.errors import AuthError, CulturePrismError, InputValidationError, NotFoundError
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Dependency helpers
# ---------------------------------------------------------------------------


def _get_auth_provider(request: Request) -> IAuthProvider:
    return request.app.state.auth_provider


def _get_project_store(request: Request) -> IProjectStore:
    return request.app.state.project_store


def _get_insights_store(request: Request) -> IInsightsStore:
    return request.app.state.insights_store


def _get_insight_pipeline(request: Request) -> InsightGenerationPipeline:
    return request.app.state.insight_pipeline


def _get_live_pipeline(request: Request) -> LiveDiscoveryPipeline:
    return request.app.state.live_pipeline


def _get_market_fit_pipeline(request: Request) -> MarketFitPipeline:
    return request.app.state.market_fit_pipeline


def _get_planner(request: Request) -> ConversationalPlanner:
    return request.app.state.planner


async def get_current_user(
    auth_provider: Annotated[IAuthProvider, Depends(_get_auth_provider)],
    authorization: Annotated[str | None, Header()] = None,
) -> AuthenticatedUser:
    """Verify the bearer token and return the calling user.

    Raises
    ------
    AuthError
        If the header is missing, is not a bearer token, or the token is
        rejected by the identity service.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthError(message="Missing or invalid authorization header")
    token = authorization.removeprefix("Bearer ").strip()
    if not token:
        raise AuthError(message="Missing or invalid authorization header")
    return await auth_provider.verify_token(token)


CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]


# ---------------------------------------------------------------------------
# Insight entrypoints
# ---------------------------------------------------------------------------


@router.post(
    "/generate-insights",
    response_model=InsightsResponse,
    response_model_exclude_none=True,
    summary="Generate deep audience insights for a project",
)
async def generate_insights(
    body: GenerateInsightsRequest,
    user: CurrentUser,
    pipeline: Annotated[InsightGenerationPipeline, Depends(_get_insight_pipeline)],
) -> InsightsResponse:
    result = await pipeline.generate_insights(user, body.project_id)
    return InsightsResponse(data=result.to_response(), warning=result.warning)


@router.post(
    "/live-discovery",
    response_model=LiveDiscoveryResponse,
    summary="Generate quick insights from a free-form description",
)
async def live_discovery(
    body: LiveDiscoveryRequest,
    user: CurrentUser,
    pipeline: Annotated[LiveDiscoveryPipeline, Depends(_get_live_pipeline)],
) -> LiveDiscoveryResponse:
    insights = await pipeline.discover(body)
    return LiveDiscoveryResponse(data=insights)


@router.post(
    "/market-fit-analysis",
    summary="Analyse product-market fit",
    responses={500: {"model": MarketFitErrorResponse}},
)
async def market_fit_analysis(
    body: MarketFitRequest,
    user: CurrentUser,
    pipeline: Annotated[MarketFitPipeline, Depends(_get_market_fit_pipeline)],
) -> Any:
    """Return the raw analysis object; failures answer ``{error, details}``."""
    try:
        return await pipeline.analyze(body)
    except InputValidationError:
        raise
    except CulturePrismError as exc:
        _logger.error("market_fit_failed", error=str(exc), error_type=type(exc).__name__)
        details = exc.message
    except Exception as exc:
        _logger.exception("market_fit_failed", error_type=type(exc).__name__)
        details = str(exc) or type(exc).__name__

    body_out = MarketFitErrorResponse(error="Failed to generate market fit analysis", details=details)
    return JSONResponse(status_code=500, content=body_out.model_dump())


@router.post(
    "/conversational-planning",
    response_model=ConversationMessage,
    summary="Reply to a campaign-planning chat message",
)
async def conversational_planning(
    body: ConversationRequest,
    user: CurrentUser,
    planner: Annotated[ConversationalPlanner, Depends(_get_planner)],
    projects: Annotated[IProjectStore, Depends(_get_project_store)],
) -> ConversationMessage:
    project_id = body.project_id
    if project_id and await projects.get(project_id, user.id) is None:
        raise NotFoundError(message="Project not found")
    return await planner.reply(body.message, body.chat_history, project_id=project_id)


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


@router.post("/projects", response_model=Project, status_code=201, summary="Create a project")
async def create_project(
    body: ProjectCreate,
    user: CurrentUser,
    projects: Annotated[IProjectStore, Depends(_get_project_store)],
) -> Project:
    project = await projects.create(user.id, body)
    _logger.info("project_created", project_id=project.id, user_id=user.id)
    return project


@router.get("/projects", response_model=list[Project], summary="List the caller's projects")
async def list_projects(
    user: CurrentUser,
    projects: Annotated[IProjectStore, Depends(_get_project_store)],
) -> list[Project]:
    return await projects.list_for_user(user.id)


@router.get("/projects/{project_id}", response_model=Project, summary="Fetch a project")
async def get_project(
    project_id: str,
    user: CurrentUser,
    projects: Annotated[IProjectStore, Depends(_get_project_store)],
) -> Project:
    project = await projects.get(project_id, user.id)
    if project is None:
        raise NotFoundError(message="Project not found")
    return project


@router.patch("/projects/{project_id}", response_model=Project, summary="Update a project")
async def update_project(
    project_id: str,
    body: ProjectUpdate,
    user: CurrentUser,
    projects: Annotated[IProjectStore, Depends(_get_project_store)],
) -> Project:
    project = await projects.update(project_id, user.id, body)
    if project is None:
        raise NotFoundError(message="Project not found")
    return project


@router.delete("/projects/{project_id}", status_code=204, summary="Delete a project")
async def delete_project(
    project_id: str,
    user: CurrentUser,
    projects: Annotated[IProjectStore, Depends(_get_project_store)],
) -> Response:
    if not await projects.delete(project_id, user.id):
        raise NotFoundError(message="Project not found")
    _logger.info("project_deleted", project_id=project_id, user_id=user.id)
    return Response(status_code=204)


@router.get(
    "/projects/{project_id}/insights/latest",
    response_model=InsightsResponse,
    response_model_exclude_none=True,
    summary="Most recent insights for a project",
)
async def latest_insights(
    project_id: str,
    user: CurrentUser,
    projects: Annotated[IProjectStore, Depends(_get_project_store)],
    insights: Annotated[IInsightsStore, Depends(_get_insights_store)],
) -> InsightsResponse:
    if await projects.get(project_id, user.id) is None:
        raise NotFoundError(message="Project not found")
    result = await insights.latest_for_project(project_id)
    if result is None:
        raise NotFoundError(message="No insights generated for this project yet")
    return InsightsResponse(data=result.to_response(), warning=result.warning)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability.

    ``degraded`` means the service runs but at least one upstream is
    unconfigured, so responses may contain fallback data.
    """
    providers: dict[str, Any] = dict(getattr(request.app.state, "provider_registry", {}))
    providers["cache_backend"] = getattr(request.app.state, "cache_backend", None)

    upstreams_ok = providers.get("qloo", False) and providers.get("openai", False)
    status = "healthy" if upstreams_ok and providers.get("auth", False) else "degraded"
    return HealthResponse(status=status, version=_VERSION, providers=providers)
