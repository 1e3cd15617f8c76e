"""
AgentBoard Persistence Layer

SQLite-backed store for projects, agents, tasks, insights and the
knowledge base.
"""

from agentboard.persistence.models import (
    Agent,
    DocumentSource,
    Insight,
    KnowledgeBaseDocument,
    Project,
    Tag,
    Task,
    TaskPriority,
    TaskStatus,
)
from agentboard.persistence.repository import BoardRepository

__all__ = [
    # Enums
    "TaskStatus",
    "TaskPriority",
    "DocumentSource",
    # Entities
    "Project",
    "Agent",
    "Task",
    "Insight",
    "KnowledgeBaseDocument",
    "Tag",
    # Repository
    "BoardRepository",
]
