from abc import ABC, abstractmethod
from typing import Literal

from pydantic import BaseModel

from agentpair.domain.cancellation import CancellationToken
from agentpair.domain.value_objects.error_kind import ErrorKind
from agentpair.domain.value_objects.provenance import TokenUsage

ChatRole = Literal["system", "user", "assistant"]


class ChatMessage(BaseModel, frozen=True):
    role: ChatRole
    content: str


class RawCompletion(BaseModel, frozen=True):
    """Raw text of the first choice plus the API's token counters."""

    content: str
    usage: TokenUsage


class ChatClientError(Exception):
    """Base class for chat-completion failures."""

    kind: ErrorKind = ErrorKind.TRANSPORT

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class TransportError(ChatClientError):
    """Network failure or timeout, after retries were exhausted."""

    kind = ErrorKind.TRANSPORT


class HttpStatusError(ChatClientError):
    """Non-2xx response that was not retried, or 5xx past the retry budget."""

    kind = ErrorKind.HTTP

    def __init__(self, status_code: int, body: str) -> None:
        self.body = body
        super().__init__(f"API error ({status_code}): {body}", status_code=status_code)


class RateLimitedError(ChatClientError):
    """HTTP 429 on the final attempt."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(self, body: str) -> None:
        self.body = body
        super().__init__(f"Rate limit exceeded: {body}", status_code=429)


class InvalidResponseError(ChatClientError):
    """Response body does not match the chat-completion shape."""

    kind = ErrorKind.INVALID_RESPONSE


class RequestCancelledError(ChatClientError):
    """Caller cancelled the request during the call or a backoff wait."""

    kind = ErrorKind.CANCELLED


class ChatClientPort(ABC):
    """Port for one chat-completion exchange."""

    @abstractmethod
    async def send_messages_raw(
        self,
        messages: list[ChatMessage],
        model: str,
        max_tokens: int,
        temperature: float,
        timeout: float,
        cancel: CancellationToken | None = None,
    ) -> RawCompletion:
        """Send messages and return the first choice's raw content.

        Args:
            messages: Non-empty ordered conversation.
            model: Model identifier.
            max_tokens: Positive completion token bound.
            temperature: Sampling temperature.
            timeout: Seconds allowed for the whole exchange.
            cancel: Optional token that aborts the call or a backoff wait.

        Raises:
            ChatClientError: One of its subclasses, by failure kind.
        """
