from enum import Enum


class AgentRole(str, Enum):
    PRODUCER = "producer"
    AUDITOR = "auditor"
