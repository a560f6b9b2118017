"""Custom exception hierarchy for CulturePrism.

All application exceptions inherit from :class:`CulturePrismError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "qloo", "openai", "supabase") caused the failure,
and a class-level ``status_code`` that the API layer uses when turning the
exception into an HTTP response.

    CulturePrismError  (base -- 500)
    +-- AuthError                  401  missing / invalid bearer token
    +-- NotFoundError              404  project absent or not owned
    +-- InputValidationError       400  missing request fields
    +-- ConfigurationError         500  startup / missing config
    +-- PersistenceError           500  save or load failure
    +-- UpstreamError              500  any failure talking to a provider
        +-- UpstreamClientError    500  non-retryable 4xx
        |   +-- UpstreamCredentialError  401  provider rejected our API key
        +-- UpstreamRateLimitedError     429  429 after the retry budget
        +-- UpstreamTransientError       500  5xx / network after retries
        +-- OutputShapeError             500  LLM output unparseable / invalid

Only ``UpstreamRateLimitedError`` and ``UpstreamTransientError`` are ever
retried, and only inside :class:`~src.utils.retry.RetryExecutor`.
"""

from __future__ import annotations


class CulturePrismError(Exception):
    """Base exception for all CulturePrism errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name``.  ``__str__`` prefixes the provider name in brackets
    for log output, e.g. ``[openai] Rate limit exceeded``.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Request errors
# ---------------------------------------------------------------------------

class AuthError(CulturePrismError):
    """Raised when the bearer token is missing, malformed, or rejected."""

    status_code = 401

    def __init__(
        self,
        message: str = "Missing or invalid authorization header",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NotFoundError(CulturePrismError):
    """Raised when a project does not exist or belongs to another user."""

    status_code = 404

    def __init__(
        self,
        message: str = "Project not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class InputValidationError(CulturePrismError):
    """Raised when a request body is missing required fields."""

    status_code = 400

    def __init__(
        self,
        message: str = "Invalid request",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Infrastructure errors
# ---------------------------------------------------------------------------

class ConfigurationError(CulturePrismError):
    """Raised when configuration is invalid or a required key is missing."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PersistenceError(CulturePrismError):
    """Raised when the persistence layer fails to read or write.

    Never retried and never replaced with fallback data: a generated result
    that cannot be saved is reported as a failure.
    """

    def __init__(
        self,
        message: str = "Persistence operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Upstream provider errors
# ---------------------------------------------------------------------------

class UpstreamError(CulturePrismError):
    """Base class for failures while talking to the Qloo or OpenAI APIs."""

    status_code = 500

    def __init__(
        self,
        message: str = "Upstream service error",
        provider_name: str | None = None,
        upstream_status: int | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._upstream_status = upstream_status

    @property
    def upstream_status(self) -> int | None:
        """The HTTP status returned by the provider, when there was one."""
        return self._upstream_status


class UpstreamClientError(UpstreamError):
    """A 4xx (other than 429) from a provider.  Never retried."""

    def __init__(
        self,
        message: str = "Upstream client error",
        provider_name: str | None = None,
        upstream_status: int | None = None,
    ) -> None:
        super().__init__(
            message=message,
            provider_name=provider_name,
            upstream_status=upstream_status,
        )


class UpstreamCredentialError(UpstreamClientError):
    """The provider rejected our API key (HTTP 401 from upstream)."""

    status_code = 401

    def __init__(
        self,
        message: str = "Invalid upstream API key",
        provider_name: str | None = None,
        upstream_status: int | None = 401,
    ) -> None:
        super().__init__(
            message=message,
            provider_name=provider_name,
            upstream_status=upstream_status,
        )


class UpstreamRateLimitedError(UpstreamError):
    """The provider kept answering 429 until the retry budget ran out."""

    status_code = 429

    def __init__(
        self,
        message: str = "API rate limit exceeded. Please try again later.",
        provider_name: str | None = None,
        upstream_status: int | None = 429,
    ) -> None:
        super().__init__(
            message=message,
            provider_name=provider_name,
            upstream_status=upstream_status,
        )


class UpstreamTransientError(UpstreamError):
    """5xx or network failure that persisted through every retry."""

    def __init__(
        self,
        message: str = "Upstream service unavailable after retries",
        provider_name: str | None = None,
        upstream_status: int | None = None,
    ) -> None:
        super().__init__(
            message=message,
            provider_name=provider_name,
            upstream_status=upstream_status,
        )


class OutputShapeError(UpstreamError):
    """LLM output could not be parsed as JSON or failed schema validation.

    ``errors`` holds the individual validation messages (empty for plain
    JSON decode failures).
    """

    def __init__(
        self,
        message: str = "LLM returned output in an unexpected shape",
        provider_name: str | None = None,
        errors: list[str] | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._errors = list(errors or [])

    @property
    def errors(self) -> list[str]:
        return list(self._errors)
