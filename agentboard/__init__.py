"""
AgentBoard - multi-agent project board.

Scans local git repositories into projects and runs a panel of LLM agent
personas (marketing, SEO, technical reviewer, project manager, ...) over each
one to produce prioritized tasks, insights and knowledge-base documents.
"""

__version__ = "0.1.0"

from agentboard.exceptions import (
    AgentBoardError,
    ConfigError,
    GenerationError,
    PersistenceError,
    ProjectNotFoundError,
)

__all__ = [
    "__version__",
    "AgentBoardError",
    "ConfigError",
    "GenerationError",
    "PersistenceError",
    "ProjectNotFoundError",
]
