"""Domain services."""

from agentpair.domain.services.criteria_coverage import find_uncovered_criteria
from agentpair.domain.services.secret_redactor import SecretRedactor

__all__ = ["SecretRedactor", "find_uncovered_criteria"]
