"""Value types passed between the context builder, agent runner and aggregator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from agentboard.integrations.github import IssueInfo, PullRequestInfo
from agentboard.persistence.models import Agent, TaskPriority


@dataclass(frozen=True)
class AgentDefinition:
    """A built-in persona from the catalog."""

    type: str
    name: str
    description: str
    system_prompt: str
    task_categories: tuple[str, ...] = ()


@dataclass
class AgentPersona:
    """The persona fields the runner needs, detached from storage."""

    type: str
    name: str
    description: str
    system_prompt: str
    task_categories: list[str] = field(default_factory=list)

    @classmethod
    def from_agent(cls, agent: Agent) -> AgentPersona:
        return cls(
            type=agent.type,
            name=agent.name,
            description=agent.description,
            system_prompt=agent.system_prompt,
            task_categories=list(agent.task_categories),
        )

    @classmethod
    def from_definition(cls, definition: AgentDefinition) -> AgentPersona:
        return cls(
            type=definition.type,
            name=definition.name,
            description=definition.description,
            system_prompt=definition.system_prompt,
            task_categories=list(definition.task_categories),
        )


@dataclass
class GeneratedTask:
    """A task proposed by one persona."""

    title: str
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    reasoning: str = ""


@dataclass
class AgentAnalysis:
    """Structured result of one persona's pass over a project."""

    agent_type: str
    insights: list[str] = field(default_factory=list)
    tasks: list[GeneratedTask] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


@dataclass
class ProjectContext:
    """Everything about a project that goes into the persona prompts."""

    name: str
    description: str | None = None
    repo_url: str | None = None
    readme: str | None = None
    tech_stack: list[str] = field(default_factory=list)
    code_structure: str | None = None
    manifest: dict[str, Any] | None = None
    open_prs: list[PullRequestInfo] = field(default_factory=list)
    open_issues: list[IssueInfo] = field(default_factory=list)


@dataclass
class ProjectAnalysis:
    """Top-level project analysis returned by analyze_project."""

    summary: str
    tech_stack: list[str] = field(default_factory=list)
    project_type: str = "unknown"
    strengths: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "techStack": self.tech_stack,
            "projectType": self.project_type,
            "strengths": self.strengths,
            "recommendations": self.recommendations,
        }
