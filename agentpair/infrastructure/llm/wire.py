"""Request and response bodies of the chat-completions endpoint."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from agentpair.domain.ports.chat_client_port import ChatMessage


class ResponseFormat(BaseModel, frozen=True):
    type: Literal["json_object", "text"] = "json_object"


class ChatCompletionRequest(BaseModel, frozen=True):
    model: str
    messages: list[ChatMessage]
    max_tokens: int
    temperature: float
    response_format: ResponseFormat | None = None

    def to_body(self) -> dict[str, object]:
        return self.model_dump(mode="json", exclude_none=True)


class _WireModel(BaseModel):
    # Providers add fields freely; only the ones read here are checked
    model_config = ConfigDict(extra="ignore", frozen=True)


class ResponseMessage(_WireModel):
    content: str


class Choice(_WireModel):
    message: ResponseMessage


class Usage(_WireModel):
    prompt_tokens: int = Field(ge=0)
    completion_tokens: int = Field(ge=0)


class ChatCompletionResponse(_WireModel):
    choices: list[Choice] = Field(min_length=1)
    usage: Usage
