from dataclasses import dataclass

from agentpair.application.prompts import AUDITOR_SYSTEM_PROMPT, PRODUCER_SYSTEM_PROMPT
from agentpair.config import AppConfig
from agentpair.domain.entities.solution import Solution
from agentpair.domain.entities.validation import Validation
from agentpair.domain.value_objects.agent_role import AgentRole
from agentpair.domain.value_objects.provenance import ModelUsed


@dataclass(frozen=True)
class AgentProfile:
    """Everything that distinguishes one agent role from the other."""

    role: AgentRole
    system_prompt: str
    model: str
    temperature: float
    max_tokens: int
    timeout: float
    artifact: type[Solution] | type[Validation]

    @property
    def tag(self) -> str:
        return f"[{self.role.name}]"

    @property
    def model_used(self) -> ModelUsed:
        return ModelUsed(name=self.model, temperature=self.temperature)


def build_profile(role: AgentRole, config: AppConfig) -> AgentProfile:
    match role:
        case AgentRole.PRODUCER:
            return AgentProfile(
                role=role,
                system_prompt=PRODUCER_SYSTEM_PROMPT,
                model=config.model,
                temperature=config.temperature,
                max_tokens=config.max_tokens,
                timeout=config.timeout,
                artifact=Solution,
            )
        case AgentRole.AUDITOR:
            return AgentProfile(
                role=role,
                system_prompt=AUDITOR_SYSTEM_PROMPT,
                model=config.auditor_model,
                temperature=config.temperature,
                max_tokens=config.max_tokens,
                timeout=config.timeout,
                artifact=Validation,
            )
        case _:
            raise ValueError(f"Unsupported agent role: {role}")
