"""Supabase GoTrue token verification over ``httpx``.

Calls ``GET {SUPABASE_URL}/auth/v1/user`` with the caller's bearer token and
the project's anon key; a 200 answer identifies the user.
"""

from __future__ import annotations

import httpx
import structlog

from src.config.settings import Settings
from src.interfaces.auth_provider import AuthenticatedUser, IAuthProvider
from src.utils.errors import AuthError

logger = structlog.get_logger(logger_name=__name__)


class SupabaseAuthProvider(IAuthProvider):
    """Verifies access tokens against a Supabase project."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient) -> None:
        self._base_url = settings.supabase_url.rstrip("/")
        self._anon_key = settings.supabase_anon_key
        self._timeout = settings.upstream_timeout_seconds
        self._http = http_client

    async def verify_token(self, token: str) -> AuthenticatedUser:
        if not token:
            raise AuthError()
        if not self._base_url:
            raise AuthError(message="Authentication is not configured", provider_name="supabase")

        try:
            response = await self._http.get(
                f"{self._base_url}/auth/v1/user",
                headers={"apikey": self._anon_key, "Authorization": f"Bearer {token}"},
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.error("auth_verification_failed", error=str(exc))
            raise AuthError(message="Unable to verify token", provider_name="supabase") from exc

        if response.status_code != 200:
            logger.warning("auth_token_rejected", status=response.status_code)
            raise AuthError(message="Invalid token", provider_name="supabase")

        try:
            data = response.json()
            user_id = data["id"]
        except (ValueError, KeyError, TypeError) as exc:
            raise AuthError(message="Invalid token", provider_name="supabase") from exc

        return AuthenticatedUser(id=str(user_id), email=data.get("email"))

    def get_provider_name(self) -> str:
        return "supabase"
