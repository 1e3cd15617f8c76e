"""
Single-call analyses

- analyze_project: top-level summary, tech stack and project type
- summarize_document: short knowledge-base summary (best-effort)
- enrich_task: description/reasoning for a markdown-mined task (best-effort)
"""

import logging
import re
from dataclasses import dataclass

from agentboard.agents.types import ProjectAnalysis, ProjectContext
from agentboard.ai.client import GenerationClient
from agentboard.ai.parser import parse_json_object, string_list
from agentboard.ai.prompts import (
    DOCUMENT_SUMMARY_PROMPT,
    DOCUMENT_SUMMARY_SYSTEM_PROMPT,
    PROJECT_ANALYSIS_PROMPT,
    PROJECT_ANALYSIS_SYSTEM_PROMPT,
    TASK_ENRICHMENT_PROMPT,
    TASK_ENRICHMENT_SYSTEM_PROMPT,
)
from agentboard.exceptions import GenerationError
from agentboard.markdown.task_extractor import ExtractedTask
from agentboard.persistence.models import TaskPriority

logger = logging.getLogger(__name__)

SUMMARY_MAX_TOKENS = 200
ENRICHMENT_MAX_TOKENS = 300

DESCRIPTION_PATTERN = re.compile(r"DESCRIPTION:\s*(.+?)(?=REASONING:|$)", re.DOTALL)
REASONING_PATTERN = re.compile(r"REASONING:\s*(.+?)$", re.DOTALL)


@dataclass
class EnrichedTask:
    """A markdown task with generated description and reasoning."""

    title: str
    description: str
    reasoning: str
    priority: TaskPriority


async def analyze_project(client: GenerationClient, context: ProjectContext) -> ProjectAnalysis:
    """
    Run the top-level project analysis.

    Generation failures propagate. A response without a JSON object falls
    back to its first 500 characters as the summary.
    """
    prompt = PROJECT_ANALYSIS_PROMPT.format(
        name=context.name,
        description=context.description or "Not provided",
        repo_url=context.repo_url or "Not provided",
        readme=context.readme or "No README available",
        code_structure=context.code_structure or "Not analyzed",
    )
    response = await client.generate(
        PROJECT_ANALYSIS_SYSTEM_PROMPT, prompt, method="analyze_project"
    )

    data = parse_json_object(response.text)
    if data is None:
        logger.warning(f"Project analysis for {context.name} was not JSON, keeping raw summary")
        return ProjectAnalysis(summary=response.text[:500])

    return ProjectAnalysis(
        summary=str(data.get("summary") or ""),
        tech_stack=string_list(data.get("techStack")),
        project_type=str(data.get("projectType") or "unknown"),
        strengths=string_list(data.get("strengths")),
        recommendations=string_list(data.get("recommendations")),
    )


def fallback_summary(content: str) -> str:
    """First non-heading line longer than 20 characters, else "Documentation"."""
    for line in content.split("\n"):
        if line.strip() and not line.startswith("#") and len(line) > 20:
            return line[:200]
    return "Documentation"


async def summarize_document(client: GenerationClient, title: str, content: str) -> str:
    """Summarize a document in 2-3 sentences, falling back to its first paragraph line."""
    prompt = DOCUMENT_SUMMARY_PROMPT.format(title=title, content=content[:3000])
    try:
        response = await client.generate(
            DOCUMENT_SUMMARY_SYSTEM_PROMPT,
            prompt,
            max_tokens=SUMMARY_MAX_TOKENS,
            method="summarize_document",
        )
        return response.text.strip()
    except GenerationError as e:
        logger.warning(f"Failed to summarize {title}: {e}")
        return fallback_summary(content)


async def enrich_task(
    client: GenerationClient,
    task: ExtractedTask,
    context: ProjectContext,
    markdown_context: str = "",
) -> EnrichedTask:
    """
    Expand a bare markdown task into description and reasoning.

    Never raises for generation failures; the task's own text is used instead.
    """
    prompt = TASK_ENRICHMENT_PROMPT.format(
        name=context.name,
        description_line=f"Description: {context.description}" if context.description else "",
        tech_stack_line=f"Tech Stack: {', '.join(context.tech_stack)}" if context.tech_stack else "",
        title=task.title,
        source=task.source,
        original_description=task.description or "None",
        markdown_context=markdown_context[:1000],
    )

    try:
        response = await client.generate(
            TASK_ENRICHMENT_SYSTEM_PROMPT,
            prompt,
            max_tokens=ENRICHMENT_MAX_TOKENS,
            method="enrich_task",
        )
    except GenerationError as e:
        logger.warning(f"Failed to enrich task {task.title!r}: {e}")
        return EnrichedTask(
            title=task.title,
            description=task.description or f"Extracted from {task.source}",
            reasoning=f"Task extracted from {task.source} as part of project development.",
            priority=task.priority,
        )

    description_match = DESCRIPTION_PATTERN.search(response.text)
    reasoning_match = REASONING_PATTERN.search(response.text)

    return EnrichedTask(
        title=task.title,
        description=(
            description_match.group(1).strip()
            if description_match
            else f"{task.title}. Extracted from {task.source}."
        ),
        reasoning=(
            reasoning_match.group(1).strip()
            if reasoning_match
            else f"Task identified in {task.source} as part of project development goals."
        ),
        priority=task.priority,
    )
