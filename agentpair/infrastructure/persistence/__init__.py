from agentpair.infrastructure.persistence.json_artifact_store import (
    SOLUTION_FILE,
    VALIDATION_FILE,
    JsonArtifactStore,
)

__all__ = ["SOLUTION_FILE", "VALIDATION_FILE", "JsonArtifactStore"]
