from enum import Enum


class ErrorKind(str, Enum):
    # Raised by the chat client
    TRANSPORT = "transport"
    HTTP = "http"
    RATE_LIMITED = "rate_limited"
    INVALID_RESPONSE = "invalid_response"
    CANCELLED = "cancelled"

    # Raised by agents
    SCHEMA_VIOLATION = "schema_violation"
