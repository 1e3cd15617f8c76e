"""
Agent personas and the multi-agent analysis pipeline.

The runner, aggregator and orchestrator live in their own modules
(task_generator, aggregator, orchestrator) and are imported from there.
"""

from agentboard.agents.definitions import (
    AGENT_DEFINITIONS,
    get_agent_definition,
    get_all_agent_definitions,
)
from agentboard.agents.types import (
    AgentAnalysis,
    AgentDefinition,
    AgentPersona,
    GeneratedTask,
    ProjectAnalysis,
    ProjectContext,
)

__all__ = [
    "AGENT_DEFINITIONS",
    "AgentAnalysis",
    "AgentDefinition",
    "AgentPersona",
    "GeneratedTask",
    "ProjectAnalysis",
    "ProjectContext",
    "get_agent_definition",
    "get_all_agent_definitions",
]
