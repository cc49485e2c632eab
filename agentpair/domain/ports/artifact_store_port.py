from abc import ABC, abstractmethod
from pathlib import Path

from agentpair.domain.entities.solution import Solution
from agentpair.domain.entities.validation import Validation


class ArtifactStorePort(ABC):
    """Port for persisting pipeline artifacts."""

    @abstractmethod
    async def save_solution(self, solution: Solution) -> Path:
        """Persist the Solution and return where it was written."""

    @abstractmethod
    async def save_validation(self, validation: Validation) -> Path:
        """Persist the Validation and return where it was written."""

    @abstractmethod
    async def load_solution(self) -> Solution | None:
        """Load a previously saved Solution, or None."""

    @abstractmethod
    async def load_validation(self) -> Validation | None:
        """Load a previously saved Validation, or None."""

    @abstractmethod
    async def discard_validation(self) -> None:
        """Remove a stored Validation so it cannot pair with a newer Solution."""
