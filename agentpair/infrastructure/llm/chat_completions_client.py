import asyncio
from collections.abc import Awaitable, Callable
from types import TracebackType
from typing import Any, Self

import httpx
from loguru import logger
from pydantic import ValidationError
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential_jitter

from agentpair import __version__
from agentpair.domain.cancellation import (
    CancellationToken,
    OperationCancelledError,
    race_cancellation,
)
from agentpair.domain.ports.chat_client_port import (
    ChatClientPort,
    ChatMessage,
    HttpStatusError,
    InvalidResponseError,
    RateLimitedError,
    RawCompletion,
    RequestCancelledError,
    TransportError,
)
from agentpair.domain.services.secret_redactor import SecretRedactor
from agentpair.domain.value_objects.provenance import TokenUsage
from agentpair.domain.value_objects.retry_policy import RetryPolicy
from agentpair.infrastructure.llm.wire import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    ResponseFormat,
)

DEFAULT_BASE_URL = "https://api.deepseek.com"

SleepFn = Callable[[float], Awaitable[None]]

# Error bodies are kept for diagnostics but never in full
_MAX_BODY_CHARS = 2000


def _is_retryable_error(e: BaseException) -> bool:
    """Transport failures, 429 and 5xx are transient; everything else is final."""
    if isinstance(e, TransportError | RateLimitedError):
        return True
    return isinstance(e, HttpStatusError) and e.status_code is not None and e.status_code >= 500


def _log_retry(retry_state: Any) -> None:
    exc = retry_state.outcome.exception()
    delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
    logger.warning(
        f"[CLIENT] Attempt {retry_state.attempt_number} failed ({exc.kind.value}): "
        f"{str(exc)[:200]}; retrying in {delay:.2f}s"
    )


def _validate_inputs(
    messages: list[ChatMessage],
    model: str,
    max_tokens: int,
    temperature: float,
    timeout: float,
) -> None:
    if not messages:
        raise ValueError("messages must not be empty")
    if not model.strip():
        raise ValueError("model must not be empty")
    if max_tokens <= 0:
        raise ValueError(f"max_tokens must be positive, got {max_tokens}")
    if not 0.0 <= temperature <= 2.0:
        raise ValueError(f"temperature must be within [0, 2], got {temperature}")
    if timeout <= 0:
        raise ValueError(f"timeout must be positive, got {timeout}")


class ChatCompletionsClient(ChatClientPort):
    """Retrying JSON-over-HTTP client for an OpenAI-compatible chat endpoint.

    One ``httpx.AsyncClient`` is pooled for the lifetime of the instance.
    Pass ``http_client`` to share a client (or a mock transport) and
    ``sleep`` to control backoff waits; neither is closed or replaced here
    when supplied by the caller.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        retry_policy: RetryPolicy | None = None,
        json_mode: bool = True,
        http_client: httpx.AsyncClient | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        if not api_key:
            raise ValueError("api_key must not be empty")
        self._api_key = api_key
        self._url = f"{base_url.rstrip('/')}/chat/completions"
        self._policy = retry_policy or RetryPolicy()
        self._json_mode = json_mode
        self._sleep = sleep
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient()
        self._redact = SecretRedactor(known_secrets=[api_key])

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def send_messages_raw(
        self,
        messages: list[ChatMessage],
        model: str,
        max_tokens: int,
        temperature: float,
        timeout: float,
        cancel: CancellationToken | None = None,
    ) -> RawCompletion:
        _validate_inputs(messages, model, max_tokens, temperature, timeout)

        request = ChatCompletionRequest(
            model=model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
            response_format=ResponseFormat() if self._json_mode else None,
        )
        body = request.to_body()

        async def backoff_sleep(seconds: float) -> None:
            await race_cancellation(self._sleep(seconds), cancel)

        retrying = AsyncRetrying(
            retry=retry_if_exception(_is_retryable_error),
            stop=stop_after_attempt(self._policy.max_attempts),
            wait=wait_exponential_jitter(
                initial=self._policy.base_delay,
                max=self._policy.max_delay,
                jitter=self._policy.jitter,
            ),
            sleep=backoff_sleep,
            before_sleep=_log_retry,
            reraise=True,
        )

        logger.debug(
            f"[CLIENT] POST {self._url} model={model} messages={len(messages)} "
            f"max_tokens={max_tokens}"
        )
        try:
            return await retrying(self._attempt, body, timeout, cancel)
        except OperationCancelledError as e:
            logger.info(f"[CLIENT] Request cancelled: {e}")
            raise RequestCancelledError(f"Request cancelled: {e}") from e

    async def _attempt(
        self,
        body: dict[str, object],
        timeout: float,
        cancel: CancellationToken | None,
    ) -> RawCompletion:
        """Single POST; raises a ChatClientError subclass classified for retry."""
        if cancel is not None:
            cancel.raise_if_cancelled()

        try:
            response = await race_cancellation(self._post(body, timeout), cancel)
        except TimeoutError as e:
            raise TransportError(f"Request timed out after {timeout:g} seconds") from e
        except httpx.TransportError as e:
            raise TransportError(
                f"Network connection failed: {self._redact(str(e)) or type(e).__name__}"
            ) from e

        return self._parse_response(response)

    async def _post(self, body: dict[str, object], timeout: float) -> httpx.Response:
        async with asyncio.timeout(timeout):
            return await self._http.post(
                self._url,
                json=body,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Accept": "application/json",
                    "User-Agent": f"agentpair/{__version__}",
                },
                timeout=timeout,
            )

    def _parse_response(self, response: httpx.Response) -> RawCompletion:
        status = response.status_code
        if status == 429:
            raise RateLimitedError(self._error_body(response))
        if not response.is_success:
            raise HttpStatusError(status, self._error_body(response))

        try:
            payload = ChatCompletionResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise InvalidResponseError(
                f"Failed to parse response: {e.error_count()} problem(s), first: "
                f"{e.errors()[0]['msg']} at {'.'.join(str(p) for p in e.errors()[0]['loc'])}"
            ) from e

        usage = TokenUsage(
            prompt_tokens=payload.usage.prompt_tokens,
            completion_tokens=payload.usage.completion_tokens,
        )
        logger.debug(
            f"[CLIENT] Response {status}: prompt_tokens={usage.prompt_tokens}, "
            f"completion_tokens={usage.completion_tokens}"
        )
        return RawCompletion(content=payload.choices[0].message.content, usage=usage)

    def _error_body(self, response: httpx.Response) -> str:
        result = self._redact.redact_secrets(response.text[:_MAX_BODY_CHARS])
        if result.had_secrets:
            logger.warning(f"[CLIENT] Credentials masked in the {response.status_code} error body")
        return result.redacted_text
