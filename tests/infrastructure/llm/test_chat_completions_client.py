"""Tests for ChatCompletionsClient over httpx.MockTransport."""

import asyncio
import json
import time
from collections.abc import Awaitable, Callable

import httpx
import pytest
from loguru import logger

from agentpair.domain.cancellation import CancellationToken
from agentpair.domain.ports.chat_client_port import (
    ChatMessage,
    HttpStatusError,
    InvalidResponseError,
    RateLimitedError,
    RawCompletion,
    RequestCancelledError,
    TransportError,
)
from agentpair.domain.value_objects import ErrorKind, RetryPolicy
from agentpair.infrastructure.llm import ChatCompletionsClient

API_KEY = "sk-test-0123456789abcdef0123"
BASE_URL = "https://api.example.test"

Handler = Callable[[httpx.Request], httpx.Response | Awaitable[httpx.Response]]

MESSAGES = [
    ChatMessage(role="system", content="Answer in JSON."),
    ChatMessage(role="user", content='{"task": "ping"}'),
]


def ok_body(content: str = '{"ok": true}') -> dict[str, object]:
    return {
        "id": "cmpl-1",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 11, "completion_tokens": 7, "total_tokens": 18},
    }


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_client(
    handler: Handler,
    sleep: Callable[[float], Awaitable[None]] | None = None,
    policy: RetryPolicy | None = None,
    json_mode: bool = True,
) -> ChatCompletionsClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ChatCompletionsClient(
        api_key=API_KEY,
        base_url=BASE_URL + "/",
        retry_policy=policy or RetryPolicy(),
        json_mode=json_mode,
        http_client=http,
        sleep=sleep or SleepRecorder(),
    )


async def send(client: ChatCompletionsClient, **kwargs: object) -> RawCompletion:
    params: dict[str, object] = {
        "model": "deepseek-chat",
        "max_tokens": 256,
        "temperature": 0.2,
        "timeout": 5.0,
    }
    params.update(kwargs)
    return await client.send_messages_raw(MESSAGES, **params)  # type: ignore[arg-type]


class TestRequest:
    @pytest.mark.asyncio
    async def test_body_headers_and_url(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=ok_body())

        async with make_client(handler) as client:
            completion = await send(client)

        assert completion.content == '{"ok": true}'
        assert completion.usage.prompt_tokens == 11
        assert completion.usage.completion_tokens == 7

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == f"{BASE_URL}/chat/completions"
        assert request.headers["Authorization"] == f"Bearer {API_KEY}"
        assert json.loads(request.content) == {
            "model": "deepseek-chat",
            "messages": [
                {"role": "system", "content": "Answer in JSON."},
                {"role": "user", "content": '{"task": "ping"}'},
            ],
            "max_tokens": 256,
            "temperature": 0.2,
            "response_format": {"type": "json_object"},
        }

    @pytest.mark.asyncio
    async def test_json_mode_off_omits_response_format(self) -> None:
        bodies: list[dict[str, object]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json=ok_body())

        async with make_client(handler, json_mode=False) as client:
            await send(client)

        assert "response_format" not in bodies[0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"model": " "},
            {"max_tokens": 0},
            {"temperature": 2.5},
            {"temperature": -0.1},
            {"timeout": 0},
        ],
    )
    async def test_invalid_inputs_fail_before_network(self, kwargs: dict[str, object]) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(200, json=ok_body())

        async with make_client(handler) as client:
            with pytest.raises(ValueError):
                await send(client, **kwargs)
        assert calls == 0

    @pytest.mark.asyncio
    async def test_empty_messages_rejected(self) -> None:
        async with make_client(lambda r: httpx.Response(200, json=ok_body())) as client:
            with pytest.raises(ValueError, match="messages"):
                await client.send_messages_raw([], "m", 10, 0.2, 5.0)


class TestRetry:
    @pytest.mark.asyncio
    async def test_two_503_then_success(self) -> None:
        statuses = iter([503, 503, 200])
        sleep = SleepRecorder()

        def handler(request: httpx.Request) -> httpx.Response:
            status = next(statuses)
            if status == 200:
                return httpx.Response(200, json=ok_body("done"))
            return httpx.Response(status, text="Server busy")

        async with make_client(handler, sleep=sleep) as client:
            completion = await send(client)

        assert completion.content == "done"
        assert len(sleep.delays) == 2
        assert sleep.delays[0] <= sleep.delays[1]
        policy = RetryPolicy()
        assert policy.base_delay <= sleep.delays[0] <= policy.base_delay + policy.jitter

    @pytest.mark.asyncio
    async def test_429_every_attempt(self) -> None:
        attempts = 0
        policy = RetryPolicy(max_attempts=4, base_delay=0.1, max_delay=1.0, jitter=0.05)

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal attempts
            attempts += 1
            return httpx.Response(429, text="Too many requests")

        async with make_client(handler, policy=policy) as client:
            with pytest.raises(RateLimitedError) as exc_info:
                await send(client)

        assert attempts == policy.max_attempts
        assert exc_info.value.kind == ErrorKind.RATE_LIMITED
        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_5xx_past_budget_is_http_error(self) -> None:
        async with make_client(lambda r: httpx.Response(502, text="Bad gateway")) as client:
            with pytest.raises(HttpStatusError) as exc_info:
                await send(client)

        assert exc_info.value.status_code == 502
        assert exc_info.value.kind == ErrorKind.HTTP
        assert exc_info.value.body == "Bad gateway"

    @pytest.mark.asyncio
    async def test_4xx_fails_immediately(self) -> None:
        attempts = 0
        sleep = SleepRecorder()

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal attempts
            attempts += 1
            return httpx.Response(401, json={"error": {"message": "Authentication Fails"}})

        async with make_client(handler, sleep=sleep) as client:
            with pytest.raises(HttpStatusError) as exc_info:
                await send(client)

        assert attempts == 1
        assert sleep.delays == []
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_transport_failure_retried_then_reported(self) -> None:
        attempts = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal attempts
            attempts += 1
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await send(client)

        assert attempts == 3
        assert exc_info.value.kind == ErrorKind.TRANSPORT

    @pytest.mark.asyncio
    async def test_transport_failure_then_success(self) -> None:
        attempts = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                raise httpx.ReadError("reset by peer", request=request)
            return httpx.Response(200, json=ok_body())

        async with make_client(handler) as client:
            completion = await send(client)

        assert attempts == 2
        assert completion.usage.total_tokens == 18

    @pytest.mark.asyncio
    async def test_timeout_is_transport_error(self) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200, json=ok_body())

        policy = RetryPolicy(max_attempts=1)
        async with make_client(handler, policy=policy) as client:
            with pytest.raises(TransportError, match="timed out"):
                await send(client, timeout=0.05)

    @pytest.mark.asyncio
    async def test_error_body_is_redacted(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, text=f"bad key {API_KEY}")

        warnings: list[str] = []
        sink_id = logger.add(warnings.append, level="WARNING", format="{message}")
        try:
            async with make_client(handler) as client:
                with pytest.raises(HttpStatusError) as exc_info:
                    await send(client)
        finally:
            logger.remove(sink_id)

        assert API_KEY not in exc_info.value.body
        assert API_KEY not in str(exc_info.value)
        assert any("Credentials masked in the 400 error body" in w for w in warnings)


class TestInvalidResponse:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="<html>gateway</html>"),
            httpx.Response(200, json={"choices": [], "usage": {"prompt_tokens": 1, "completion_tokens": 1}}),
            httpx.Response(200, json={"choices": [{"message": {"content": "x"}}]}),
            httpx.Response(
                200,
                json={
                    "choices": [{"message": {"content": None}}],
                    "usage": {"prompt_tokens": 1, "completion_tokens": 1},
                },
            ),
        ],
        ids=["not-json", "no-choices", "no-usage", "null-content"],
    )
    async def test_shape_deviation_not_retried(self, response: httpx.Response) -> None:
        attempts = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal attempts
            attempts += 1
            return response

        async with make_client(handler) as client:
            with pytest.raises(InvalidResponseError) as exc_info:
                await send(client)

        assert attempts == 1
        assert exc_info.value.kind == ErrorKind.INVALID_RESPONSE


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancel_during_backoff_returns_promptly(self) -> None:
        token = CancellationToken()
        first_request = asyncio.Event()
        policy = RetryPolicy(max_attempts=5, base_delay=30.0, max_delay=60.0, jitter=0.0)

        def handler(request: httpx.Request) -> httpx.Response:
            first_request.set()
            return httpx.Response(503, text="busy")

        async with make_client(handler, sleep=asyncio.sleep, policy=policy) as client:
            call = asyncio.create_task(send(client, cancel=token))
            await first_request.wait()
            await asyncio.sleep(0.01)

            started = time.monotonic()
            token.cancel("user pressed Ctrl+C")
            with pytest.raises(RequestCancelledError) as exc_info:
                async with asyncio.timeout(1):
                    await call

        assert time.monotonic() - started < 1.0
        assert exc_info.value.kind == ErrorKind.CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_in_flight_aborts_request(self) -> None:
        token = CancellationToken()
        entered = asyncio.Event()
        aborted = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            entered.set()
            try:
                await asyncio.sleep(60)
            except asyncio.CancelledError:
                aborted.set()
                raise
            return httpx.Response(200, json=ok_body())

        async with make_client(handler) as client:
            call = asyncio.create_task(send(client, cancel=token))
            await entered.wait()
            token.cancel()
            with pytest.raises(RequestCancelledError):
                await call

        assert aborted.is_set()

    @pytest.mark.asyncio
    async def test_already_cancelled_sends_nothing(self) -> None:
        token = CancellationToken()
        token.cancel()
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(200, json=ok_body())

        async with make_client(handler) as client:
            with pytest.raises(RequestCancelledError):
                await send(client, cancel=token)
        assert calls == 0


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_caller_owned_http_client_stays_open(self) -> None:
        http = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=ok_body())))
        client = ChatCompletionsClient(api_key=API_KEY, http_client=http)
        await client.aclose()
        assert not http.is_closed
        await http.aclose()

    def test_empty_api_key_rejected(self) -> None:
        with pytest.raises(ValueError, match="api_key"):
            ChatCompletionsClient(api_key="")
