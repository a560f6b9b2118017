"""Request lifecycle models shared by the insight orchestrators.

Every orchestrated request walks the same stage sequence and ends in one of
a handful of terminal outcomes.  Stages are logged as they are entered so a
single ``request_id`` can be followed through the structured log.

    RECEIVED → AUTHENTICATED → INPUT_VALIDATED → CACHE_CHECK →
    UPSTREAM_CULTURAL_CALL → PROMPT_BUILT → LLM_CALL → OUTPUT_VALIDATED →
    PERSISTED → RESPONDED

Live discovery skips CACHE_CHECK and PERSISTED; market fit also skips
UPSTREAM_CULTURAL_CALL.
"""

from __future__ import annotations

from enum import Enum


class RequestStage(str, Enum):  # noqa: UP042
    """Stages of one orchestrated request."""

    RECEIVED = "RECEIVED"
    AUTHENTICATED = "AUTHENTICATED"
    INPUT_VALIDATED = "INPUT_VALIDATED"
    CACHE_CHECK = "CACHE_CHECK"
    UPSTREAM_CULTURAL_CALL = "UPSTREAM_CULTURAL_CALL"
    PROMPT_BUILT = "PROMPT_BUILT"
    LLM_CALL = "LLM_CALL"
    OUTPUT_VALIDATED = "OUTPUT_VALIDATED"
    PERSISTED = "PERSISTED"
    RESPONDED = "RESPONDED"


class RequestOutcome(str, Enum):  # noqa: UP042
    """Terminal outcome of an orchestrated request."""

    OK = "OK"
    OK_WITH_WARNING = "OK_WITH_WARNING"
    CLIENT_ERROR = "CLIENT_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    RATE_LIMITED = "RATE_LIMITED"
    FAILED = "FAILED"
