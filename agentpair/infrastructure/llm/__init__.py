from agentpair.infrastructure.llm.chat_completions_client import (
    DEFAULT_BASE_URL,
    ChatCompletionsClient,
)

__all__ = ["DEFAULT_BASE_URL", "ChatCompletionsClient"]
