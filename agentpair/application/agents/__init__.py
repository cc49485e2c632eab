from agentpair.application.agents.agent import (
    Agent,
    AgentError,
    AuditInput,
    SchemaViolationError,
    create_agent,
)
from agentpair.application.agents.profiles import AgentProfile, build_profile

__all__ = [
    "Agent",
    "AgentError",
    "AgentProfile",
    "AuditInput",
    "SchemaViolationError",
    "build_profile",
    "create_agent",
]
