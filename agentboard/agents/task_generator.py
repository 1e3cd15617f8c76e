"""
Agent Runner

Builds one prompt per persona, runs every persona concurrently against the
generation client and parses each reply into an AgentAnalysis.

Parsing never raises: a reply without a usable JSON object becomes a
degraded analysis with a single warning insight. Generation failures are
all-or-nothing by default; with isolate_failures=True each persona's
failure is captured and the rest still come back.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any

from agentboard.agents.types import AgentAnalysis, AgentPersona, GeneratedTask, ProjectContext
from agentboard.ai.client import GenerationClient
from agentboard.ai.parser import parse_json_object, string_list
from agentboard.ai.prompts import (
    AGENT_RESPONSE_FORMAT,
    GENERAL_CLOSING,
    TECHNICAL_ANALYSIS_GUIDANCE,
    TECHNICAL_CLOSING,
)
from agentboard.exceptions import AgentRunError, GenerationError
from agentboard.persistence.models import TaskPriority

logger = logging.getLogger(__name__)

AGENT_MAX_TOKENS = 3000
README_PROMPT_CHARS = 3000
MANIFEST_PROMPT_CHARS = 2000
MAX_PROMPT_ITEMS = 5

DEGRADED_INSIGHT = "Analysis completed but response format was unexpected"


@dataclass
class ParseResult:
    """Outcome of parsing one persona reply: structured, or degraded with a warning."""

    analysis: AgentAnalysis
    degraded: bool = False
    warning: str | None = None

    @property
    def ok(self) -> bool:
        return not self.degraded


class AgentRunResults(dict[str, AgentAnalysis]):
    """Persona type -> analysis, in persona order, plus any captured failures."""

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.failures: dict[str, str] = {}

    @property
    def total_tasks(self) -> int:
        return sum(len(analysis.tasks) for analysis in self.values())

    @property
    def total_insights(self) -> int:
        return sum(len(analysis.insights) for analysis in self.values())


def build_prompt_for_agent(agent: AgentPersona, context: ProjectContext) -> str:
    """Render the user prompt for one persona."""
    sections = [
        "Analyze this project from your expertise perspective:\n\n"
        f"**Project:** {context.name}\n"
        f"**Description:** {context.description or 'Not provided'}\n"
        f"**Repository:** {context.repo_url or 'Not provided'}\n\n"
    ]

    if context.readme:
        sections.append(f"**README:**\n{context.readme[:README_PROMPT_CHARS]}\n\n")

    if context.tech_stack:
        sections.append(f"**Tech Stack:** {', '.join(context.tech_stack)}\n\n")

    if context.code_structure:
        sections.append(f"**Code Structure:**\n{context.code_structure}\n\n")

    if context.manifest:
        manifest_json = json.dumps(context.manifest, indent=2, default=str)
        sections.append(f"**Dependencies:**\n{manifest_json[:MANIFEST_PROMPT_CHARS]}\n\n")

    if context.open_prs:
        lines = "\n".join(f"- #{pr.number}: {pr.title}" for pr in context.open_prs[:MAX_PROMPT_ITEMS])
        sections.append(f"**Open Pull Requests ({len(context.open_prs)}):**\n{lines}\n\n")

    if context.open_issues:
        lines = "\n".join(
            f"- #{issue.number}: {issue.title}" for issue in context.open_issues[:MAX_PROMPT_ITEMS]
        )
        sections.append(f"**Open Issues ({len(context.open_issues)}):**\n{lines}\n\n")

    is_technical = agent.type == "technical"
    if is_technical:
        sections.append(TECHNICAL_ANALYSIS_GUIDANCE)

    sections.append(
        AGENT_RESPONSE_FORMAT.format(
            agent_name=agent.name,
            closing=TECHNICAL_CLOSING if is_technical else GENERAL_CLOSING,
        )
    )
    return "".join(sections)


def _parse_tasks(value: Any) -> list[GeneratedTask]:
    if not isinstance(value, list):
        return []

    tasks = []
    for item in value:
        if not isinstance(item, dict):
            continue
        title = str(item.get("title") or "").strip()
        if not title:
            continue
        tasks.append(
            GeneratedTask(
                title=title,
                description=str(item.get("description") or ""),
                priority=TaskPriority.coerce(item.get("priority")),
                reasoning=str(item.get("reasoning") or ""),
            )
        )
    return tasks


def parse_agent_response(agent_type: str, response: str) -> ParseResult:
    """
    Parse a persona reply.

    Missing insights/tasks/recommendations default to empty lists; tasks
    without a title are dropped and unknown priorities become medium.
    """
    data = parse_json_object(response)
    if data is None:
        logger.warning(f"Failed to parse {agent_type} agent response ({len(response)} chars)")
        return ParseResult(
            analysis=AgentAnalysis(agent_type=agent_type, insights=[DEGRADED_INSIGHT]),
            degraded=True,
            warning="No JSON object found in response",
        )

    return ParseResult(
        analysis=AgentAnalysis(
            agent_type=agent_type,
            insights=string_list(data.get("insights")),
            tasks=_parse_tasks(data.get("tasks")),
            recommendations=string_list(data.get("recommendations")),
        )
    )


async def generate_tasks_with_agent(
    agent: AgentPersona,
    context: ProjectContext,
    client: GenerationClient,
) -> AgentAnalysis:
    """Run one persona. Generation errors propagate; parse failures degrade."""
    response = await client.generate(
        agent.system_prompt,
        build_prompt_for_agent(agent, context),
        max_tokens=AGENT_MAX_TOKENS,
        method=f"agent:{agent.type}",
    )
    return parse_agent_response(agent.type, response.text).analysis


async def generate_all_agent_tasks(
    agents: list[AgentPersona],
    context: ProjectContext,
    client: GenerationClient,
    isolate_failures: bool = False,
) -> AgentRunResults:
    """
    Run every persona concurrently.

    Args:
        agents: Personas to run; result order follows this list
        context: Shared project context
        client: Generation client
        isolate_failures: Capture per-persona generation failures instead
            of failing the whole run

    Returns:
        AgentRunResults keyed by persona type

    Raises:
        GenerationError: First persona failure, when not isolating
        AgentRunError: When isolating and every persona failed
    """
    results = AgentRunResults()

    if not isolate_failures:
        analyses = await asyncio.gather(
            *(generate_tasks_with_agent(agent, context, client) for agent in agents)
        )
        for agent, analysis in zip(agents, analyses):
            results[agent.type] = analysis
        return results

    async def run_isolated(agent: AgentPersona) -> AgentAnalysis | GenerationError:
        try:
            return await generate_tasks_with_agent(agent, context, client)
        except GenerationError as e:
            logger.error(f"Agent {agent.type} failed: {e}")
            return e

    outcomes = await asyncio.gather(*(run_isolated(agent) for agent in agents))
    for agent, outcome in zip(agents, outcomes):
        if isinstance(outcome, GenerationError):
            results.failures[agent.type] = str(outcome)
        else:
            results[agent.type] = outcome

    if agents and len(results.failures) == len(agents):
        raise AgentRunError("All agents failed", results.failures)

    return results
