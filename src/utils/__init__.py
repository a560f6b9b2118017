"""Utility modules for CulturePrism.

- **errors** -- Domain exception hierarchy rooted at CulturePrismError; each
  class carries the HTTP status the API layer answers with.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **retry** -- Outcome classification and the exponential-backoff executor
  shared by the Qloo and OpenAI gateways.
"""

# -- Domain exception hierarchy --------------------------------------------
from src.utils.errors import (
    AuthError,
    ConfigurationError,
    CulturePrismError,
    InputValidationError,
    NotFoundError,
    OutputShapeError,
    PersistenceError,
    UpstreamClientError,
    UpstreamCredentialError,
    UpstreamError,
    UpstreamRateLimitedError,
    UpstreamTransientError,
)

# -- Structured logging setup ----------------------------------------------
from src.utils.logging import configure_logging, get_logger

# -- Retry / backoff -------------------------------------------------------
from src.utils.retry import RetryExecutor, RetryPolicy, UpstreamResponse

__all__ = [
    "AuthError",
    "ConfigurationError",
    "CulturePrismError",
    "InputValidationError",
    "NotFoundError",
    "OutputShapeError",
    "PersistenceError",
    "RetryExecutor",
    "RetryPolicy",
    "UpstreamClientError",
    "UpstreamCredentialError",
    "UpstreamError",
    "UpstreamRateLimitedError",
    "UpstreamResponse",
    "UpstreamTransientError",
    "configure_logging",
    "get_logger",
]
