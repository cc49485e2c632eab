import re
from collections.abc import Iterable
from dataclasses import dataclass

SECRET_PATTERNS = [
    # Provider API keys
    r"sk-[a-zA-Z0-9\-_]{16,}",
    r"(?i)bearer\s+[a-zA-Z0-9\-_\.]{16,}",
    # key=value / "key": "value" forms
    r"(?i)(api_key|apikey|access_token|auth_token)[\"']?\s*[=:]\s*[\"']?[a-zA-Z0-9\-_\.]{16,}[\"']?",
]

REDACTED = "[REDACTED]"


@dataclass
class RedactionResult:
    redacted_text: str
    had_secrets: bool


class SecretRedactor:
    """Masks credentials in text that may reach logs or the console.

    Known secrets (the configured API key) are replaced verbatim before the
    generic patterns run, so keys without a recognizable prefix are caught too.
    """

    def __init__(
        self,
        known_secrets: Iterable[str] = (),
        patterns: list[str] | None = None,
    ) -> None:
        self._known = [s for s in known_secrets if s]
        self._patterns = [re.compile(p) for p in (patterns or SECRET_PATTERNS)]

    def redact_secrets(self, text: str) -> RedactionResult:
        redacted = text
        for secret in self._known:
            redacted = redacted.replace(secret, REDACTED)

        for pattern in self._patterns:
            redacted = pattern.sub(REDACTED, redacted)

        return RedactionResult(redacted_text=redacted, had_secrets=redacted != text)

    def __call__(self, text: str) -> str:
        return self.redact_secrets(text).redacted_text
