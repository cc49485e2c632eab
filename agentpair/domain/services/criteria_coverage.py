from collections.abc import Sequence

from agentpair.domain.entities.validation import CheckResult


def _normalize(text: str) -> str:
    return " ".join(text.lower().replace("≤", "<=").split())


def _covers(criterion: str, check_criterion: str) -> bool:
    if not criterion or not check_criterion:
        return False
    return criterion == check_criterion or criterion in check_criterion or check_criterion in criterion


def find_uncovered_criteria(
    acceptance_criteria: Sequence[str],
    checks: Sequence[CheckResult],
) -> list[str]:
    """Return acceptance criteria that no audit check refers to.

    Matching is case- and whitespace-insensitive; a check covers a criterion
    when either text contains the other. Order of ``acceptance_criteria`` is
    preserved.
    """
    check_texts = [_normalize(c.criterion) for c in checks]
    uncovered: list[str] = []
    for criterion in acceptance_criteria:
        key = _normalize(criterion)
        if not any(_covers(key, text) for text in check_texts):
            uncovered.append(criterion)
    return uncovered
