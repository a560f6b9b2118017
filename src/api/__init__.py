"""CulturePrism API layer — routes, schemas, and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    validation_exception_handler,
)
from src.api.routes import router
from src.api.schemas import (
    ErrorResponse,
    GenerateInsightsRequest,
    HealthResponse,
    InsightsResponse,
    LiveDiscoveryResponse,
    MarketFitErrorResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "validation_exception_handler",
    "router",
    "ErrorResponse",
    "GenerateInsightsRequest",
    "HealthResponse",
    "InsightsResponse",
    "LiveDiscoveryResponse",
    "MarketFitErrorResponse",
]
