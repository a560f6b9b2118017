"""Unit tests for SupabaseAuthProvider (httpx.MockTransport)."""

from __future__ import annotations

from typing import Callable

import httpx
import pytest

from src.config.settings import Settings
from src.providers.auth.supabase_auth_provider import SupabaseAuthProvider
from src.utils.errors import AuthError


def _provider(
    settings: Settings, handler: Callable[[httpx.Request], httpx.Response]
) -> tuple[SupabaseAuthProvider, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def recording_handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
    return SupabaseAuthProvider(settings, client), seen


@pytest.mark.asyncio
async def test_valid_token(settings: Settings) -> None:
    provider, seen = _provider(
        settings, lambda r: httpx.Response(200, json={"id": "user-42", "email": "a@b.c"})
    )

    user = await provider.verify_token("good-token")

    assert user.id == "user-42"
    assert user.email == "a@b.c"
    request = seen[0]
    assert str(request.url) == "https://auth.test/auth/v1/user"
    assert request.headers["Authorization"] == "Bearer good-token"
    assert request.headers["apikey"] == "anon-test-key"


@pytest.mark.asyncio
async def test_rejected_token(settings: Settings) -> None:
    provider, _ = _provider(settings, lambda r: httpx.Response(401, json={"msg": "bad jwt"}))
    with pytest.raises(AuthError) as exc_info:
        await provider.verify_token("expired")
    assert exc_info.value.message == "Invalid token"
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_empty_token_makes_no_request(settings: Settings) -> None:
    provider, seen = _provider(settings, lambda r: httpx.Response(200, json={"id": "x"}))
    with pytest.raises(AuthError):
        await provider.verify_token("")
    assert seen == []


@pytest.mark.asyncio
async def test_unconfigured(settings: Settings) -> None:
    provider, seen = _provider(
        settings.model_copy(update={"supabase_url": ""}),
        lambda r: httpx.Response(200, json={"id": "x"}),
    )
    with pytest.raises(AuthError, match="not configured"):
        await provider.verify_token("token")
    assert seen == []


@pytest.mark.asyncio
async def test_network_failure(settings: Settings) -> None:
    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    provider, _ = _provider(settings, boom)
    with pytest.raises(AuthError, match="Unable to verify"):
        await provider.verify_token("token")


@pytest.mark.asyncio
async def test_body_without_id(settings: Settings) -> None:
    provider, _ = _provider(settings, lambda r: httpx.Response(200, json={"email": "a@b.c"}))
    with pytest.raises(AuthError):
        await provider.verify_token("token")


def test_provider_name(settings: Settings) -> None:
    provider, _ = _provider(settings, lambda r: httpx.Response(200))
    assert provider.get_provider_name() == "supabase"
