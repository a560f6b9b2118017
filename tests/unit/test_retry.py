"""Unit tests for the retry / backoff executor."""

from __future__ import annotations

import httpx
import pytest

from src.utils.errors import (
    OutputShapeError,
    UpstreamClientError,
    UpstreamCredentialError,
    UpstreamRateLimitedError,
    UpstreamTransientError,
)
from src.utils.retry import (
    Outcome,
    RetryExecutor,
    RetryPolicy,
    UpstreamResponse,
    classify_status,
)


class _ScriptedSend:
    """Returns (or raises) the scripted items in order and counts calls."""

    def __init__(self, *items) -> None:
        self._items = list(items)
        self.calls = 0

    async def __call__(self) -> UpstreamResponse:
        item = self._items[min(self.calls, len(self._items) - 1)]
        self.calls += 1
        if isinstance(item, BaseException):
            raise item
        return item


def _executor(sleep_recorder, label: str = "Qloo") -> RetryExecutor:
    return RetryExecutor(RetryPolicy(), "qloo", provider_label=label, sleep=sleep_recorder)


# ======================================================================
# Classification
# ======================================================================


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (200, Outcome.SUCCESS),
        (201, Outcome.SUCCESS),
        (429, Outcome.RATE_LIMITED),
        (400, Outcome.CLIENT_ERROR),
        (401, Outcome.CLIENT_ERROR),
        (404, Outcome.CLIENT_ERROR),
        (500, Outcome.TRANSIENT),
        (503, Outcome.TRANSIENT),
    ],
)
def test_classify_status(status: int, expected: Outcome) -> None:
    assert classify_status(status) is expected


def test_delay_doubles_per_attempt() -> None:
    policy = RetryPolicy(max_attempts=3, base_delay=1.0)
    assert [policy.delay_for(n) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]


# ======================================================================
# Execution
# ======================================================================


class TestRetryExecutor:
    @pytest.mark.asyncio
    async def test_success_applies_parse(self, sleep_recorder) -> None:
        send = _ScriptedSend(UpstreamResponse(200, body={"ok": True}))
        result = await _executor(sleep_recorder).execute(send, parse=lambda body: body["ok"])
        assert result is True
        assert send.calls == 1
        assert sleep_recorder.delays == []

    @pytest.mark.asyncio
    async def test_three_server_errors_exhaust_with_increasing_delays(self, sleep_recorder) -> None:
        send = _ScriptedSend(UpstreamResponse(503, text="unavailable"))
        with pytest.raises(UpstreamTransientError) as exc_info:
            await _executor(sleep_recorder).execute(send)
        assert send.calls == 3
        assert sleep_recorder.delays == [1.0, 2.0]
        assert exc_info.value.upstream_status == 503
        assert "3 attempts" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failure(self, sleep_recorder) -> None:
        send = _ScriptedSend(UpstreamResponse(502), UpstreamResponse(200, body={"v": 1}))
        result = await _executor(sleep_recorder).execute(send)
        assert result == {"v": 1}
        assert send.calls == 2
        assert sleep_recorder.delays == [1.0]

    @pytest.mark.asyncio
    async def test_rate_limit_surfaces_after_budget(self, sleep_recorder) -> None:
        send = _ScriptedSend(UpstreamResponse(429))
        with pytest.raises(UpstreamRateLimitedError) as exc_info:
            await _executor(sleep_recorder).execute(send)
        assert send.calls == 3
        assert sleep_recorder.delays == [1.0, 2.0]
        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_unauthorized_is_not_retried(self, sleep_recorder) -> None:
        send = _ScriptedSend(UpstreamResponse(401, text="bad key"))
        with pytest.raises(UpstreamCredentialError) as exc_info:
            await _executor(sleep_recorder, label="OpenAI").execute(send)
        assert send.calls == 1
        assert sleep_recorder.delays == []
        assert "OpenAI" in exc_info.value.message
        assert exc_info.value.status_code == 401

    @pytest.mark.parametrize(("status", "fragment"), [(400, "Invalid request"), (403, "forbidden"), (404, "not found")])
    @pytest.mark.asyncio
    async def test_client_errors_map_by_status(self, sleep_recorder, status: int, fragment: str) -> None:
        send = _ScriptedSend(UpstreamResponse(status))
        with pytest.raises(UpstreamClientError) as exc_info:
            await _executor(sleep_recorder).execute(send)
        assert send.calls == 1
        assert exc_info.value.upstream_status == status
        assert fragment in exc_info.value.message

    @pytest.mark.asyncio
    async def test_network_error_is_transient(self, sleep_recorder) -> None:
        send = _ScriptedSend(httpx.ConnectError("refused"), UpstreamResponse(200, body="ok"))
        assert await _executor(sleep_recorder).execute(send) == "ok"
        assert sleep_recorder.delays == [1.0]

    @pytest.mark.asyncio
    async def test_client_error_raised_by_send_propagates(self, sleep_recorder) -> None:
        send = _ScriptedSend(UpstreamClientError("nope", provider_name="qloo", upstream_status=400))
        with pytest.raises(UpstreamClientError):
            await _executor(sleep_recorder).execute(send)
        assert send.calls == 1

    @pytest.mark.asyncio
    async def test_rejected_output_is_resent_without_delay(self, sleep_recorder) -> None:
        send = _ScriptedSend(UpstreamResponse(200, body="bad"), UpstreamResponse(200, body="good"))

        def parse(body: str) -> str:
            if body == "bad":
                raise OutputShapeError("invalid", provider_name="openai")
            return body

        assert await _executor(sleep_recorder).execute(send, parse=parse) == "good"
        assert send.calls == 2
        assert sleep_recorder.delays == []

    @pytest.mark.asyncio
    async def test_rejected_output_exhausts_with_last_shape_error(self, sleep_recorder) -> None:
        send = _ScriptedSend(UpstreamResponse(200, body="bad"))

        def parse(body: str) -> str:
            raise OutputShapeError("invalid", provider_name="openai", errors=[f"call {send.calls}"])

        with pytest.raises(OutputShapeError) as exc_info:
            await _executor(sleep_recorder).execute(send, parse=parse)
        assert send.calls == 3
        assert exc_info.value.errors == ["call 3"]
