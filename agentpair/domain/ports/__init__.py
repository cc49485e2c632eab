from agentpair.domain.ports.artifact_store_port import ArtifactStorePort
from agentpair.domain.ports.chat_client_port import (
    ChatClientError,
    ChatClientPort,
    ChatMessage,
    HttpStatusError,
    InvalidResponseError,
    RateLimitedError,
    RawCompletion,
    RequestCancelledError,
    TransportError,
)

__all__ = [
    # Artifact store port
    "ArtifactStorePort",
    # Chat client port
    "ChatClientError",
    "ChatClientPort",
    "ChatMessage",
    "HttpStatusError",
    "InvalidResponseError",
    "RateLimitedError",
    "RawCompletion",
    "RequestCancelledError",
    "TransportError",
]
