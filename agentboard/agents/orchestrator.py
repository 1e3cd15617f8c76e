"""
Orchestration Driver

One analysis run over a project:

    fetch project -> build context -> project analysis -> save analysis
    -> run active personas -> save insights -> rank/dedup/save persona tasks
    -> mine/enrich/dedup/save markdown tasks (if the cap allows)
    -> mine/summarize/save knowledge-base documents -> summary

Markdown and knowledge-base stages degrade to zero results on failure;
every earlier stage propagates its error. Overlapping runs on the same
project are rejected with AnalysisInProgressError.
"""

import asyncio
import logging
import sqlite3
import time
import uuid
from pathlib import Path
from typing import Any

from agentboard.agents.aggregator import (
    TaskWriter,
    persist_ranked_tasks,
    rank_agent_tasks,
    select_markdown_tasks,
)
from agentboard.agents.context import build_project_context
from agentboard.agents.defaults import slugify
from agentboard.agents.task_generator import generate_all_agent_tasks
from agentboard.agents.types import AgentPersona, ProjectContext
from agentboard.ai.analysis import analyze_project, enrich_task, summarize_document
from agentboard.ai.client import GenerationClient
from agentboard.config import DEFAULT_TASK_CAP
from agentboard.exceptions import AgentBoardError, AnalysisInProgressError, ProjectNotFoundError
from agentboard.integrations.github import GitHubClient
from agentboard.logging import OrchestrationLogEntry, now_iso, orchestration_logger
from agentboard.markdown.kb_extractor import extract_kb_documents_from_project
from agentboard.markdown.task_extractor import extract_tasks_from_project
from agentboard.persistence import BoardRepository, DocumentSource

logger = logging.getLogger(__name__)

MARKDOWN_AGENT_TYPE = "pm"
DEFAULT_MORE_TASKS = 20

# Per-project guards for the current process
_project_locks: dict[str, asyncio.Lock] = {}


def _project_lock(project_id: str) -> asyncio.Lock:
    lock = _project_locks.get(project_id)
    if lock is None:
        lock = _project_locks[project_id] = asyncio.Lock()
    return lock


def _active_personas(repo: BoardRepository, project_id: str) -> list[AgentPersona]:
    return [AgentPersona.from_agent(agent) for agent in repo.list_agents(project_id, active_only=True)]


async def orchestrate_project_analysis(
    project_id: str,
    repo: BoardRepository,
    client: GenerationClient,
    github: GitHubClient | None = None,
    task_cap: int = DEFAULT_TASK_CAP,
    isolate_failures: bool = False,
) -> dict[str, Any]:
    """
    Analyze a project with every active persona and fill its board.

    Args:
        project_id: Project to analyze
        repo: Open repository
        client: Generation client
        github: GitHub client (a default gh-backed one if omitted)
        task_cap: Most tasks created by this run
        isolate_failures: Keep successful personas when others fail

    Returns:
        Summary with analysis, agentCount, totalTasks, tasksCreated,
        tasksAvailable, taskLimitReached, agentTasks, markdownTasks,
        kbDocuments, totalInsights (and failedAgents when isolating)

    Raises:
        ProjectNotFoundError: If the project does not exist
        AnalysisInProgressError: If this project is already being analyzed
        GenerationError: If the project analysis or a persona call fails
    """
    lock = _project_lock(project_id)
    if lock.locked():
        raise AnalysisInProgressError(project_id)

    try:
        async with lock:
            return await _run_analysis(project_id, repo, client, github, task_cap, isolate_failures)
    finally:
        if not lock.locked() and _project_locks.get(project_id) is lock:
            del _project_locks[project_id]


async def _run_analysis(
    project_id: str,
    repo: BoardRepository,
    client: GenerationClient,
    github: GitHubClient | None,
    task_cap: int,
    isolate_failures: bool,
) -> dict[str, Any]:
    start_time = time.monotonic()
    log_entry = OrchestrationLogEntry(timestamp=now_iso(), run_id=str(uuid.uuid4()), project_id=project_id)

    try:
        log_entry.stage = "context"
        project = repo.get_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        log_entry.project_name = project.name
        logger.info(f"Starting analysis for project {project.name}")

        context = await build_project_context(project, repo, github)

        log_entry.stage = "analysis"
        analysis = await analyze_project(client, context)
        repo.update_project_analysis(project_id, analysis.summary, analysis.tech_stack)

        log_entry.stage = "agents"
        personas = _active_personas(repo, project_id)
        log_entry.agent_count = len(personas)
        logger.info(f"Running {len(personas)} agents")
        analyses = await generate_all_agent_tasks(personas, context, client, isolate_failures=isolate_failures)
        log_entry.failed_agents = sorted(analyses.failures)

        for agent_type, agent_analysis in analyses.items():
            for insight in agent_analysis.insights:
                repo.create_insight(project_id, agent_type, insight)
        log_entry.insights = analyses.total_insights

        log_entry.stage = "agent_tasks"
        writer = TaskWriter(repo, project_id)
        agent_tasks = persist_ranked_tasks(writer, rank_agent_tasks(analyses, task_cap))
        log_entry.agent_tasks = len(agent_tasks)

        log_entry.stage = "markdown_tasks"
        remaining = task_cap - len(agent_tasks)
        if remaining > 0:
            markdown_count = await _create_markdown_tasks(writer, project.path, context, client, remaining)
        else:
            logger.info("Task limit reached, skipping markdown task extraction")
            markdown_count = 0
        log_entry.markdown_tasks = markdown_count

        log_entry.stage = "kb_documents"
        kb_count = await _create_kb_documents(repo, project_id, project.path, client)
        log_entry.kb_documents = kb_count

        log_entry.stage = "complete"
        log_entry.success = True

    except (AgentBoardError, sqlite3.Error) as e:
        log_entry.error = str(e)[:500]
        log_entry.error_type = type(e).__name__
        raise
    finally:
        log_entry.duration_ms = int((time.monotonic() - start_time) * 1000)
        if log_entry.success:
            orchestration_logger.info(log_entry.to_json())
        else:
            orchestration_logger.error(log_entry.to_json())

    tasks_available = analyses.total_tasks
    summary: dict[str, Any] = {
        "analysis": analysis.to_dict(),
        "agentCount": len(personas),
        "totalTasks": len(agent_tasks) + markdown_count,
        "tasksCreated": len(agent_tasks) + markdown_count,
        "tasksAvailable": tasks_available,
        "taskLimitReached": tasks_available > task_cap,
        "agentTasks": len(agent_tasks),
        "markdownTasks": markdown_count,
        "kbDocuments": kb_count,
        "totalInsights": analyses.total_insights,
    }
    if isolate_failures:
        summary["failedAgents"] = dict(analyses.failures)

    logger.info(f"Analysis complete for project {project.name}")
    return summary


def _read_source(project_path: str, source: str, cache: dict[str, str]) -> str:
    if source not in cache:
        try:
            cache[source] = (Path(project_path) / source).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            cache[source] = ""
    return cache[source]


async def _create_markdown_tasks(
    writer: TaskWriter,
    project_path: str,
    context: ProjectContext,
    client: GenerationClient,
    remaining: int,
) -> int:
    """Enrich and save up to min(remaining, 10) open markdown tasks; 0 on failure."""
    created = 0
    try:
        mined = await asyncio.to_thread(extract_tasks_from_project, project_path)
        logger.info(f"Found {len(mined)} potential markdown tasks")

        sources: dict[str, str] = {}
        for markdown_task in select_markdown_tasks(mined, remaining):
            if writer.is_duplicate(markdown_task.title):
                logger.info(f"Skipping duplicate task: {markdown_task.title}")
                continue

            markdown_context = _read_source(project_path, markdown_task.source, sources)
            enriched = await enrich_task(client, markdown_task, context, markdown_context)
            task = writer.write(
                title=enriched.title,
                description=enriched.description,
                priority=enriched.priority,
                agent_type=MARKDOWN_AGENT_TYPE,
                reasoning=enriched.reasoning,
            )
            if task is not None:
                created += 1
    except (AgentBoardError, OSError, sqlite3.Error) as e:
        logger.warning(f"Failed to extract markdown tasks: {e}")

    logger.info(f"Created {created} enriched tasks from markdown files")
    return created


async def _create_kb_documents(
    repo: BoardRepository,
    project_id: str,
    project_path: str,
    client: GenerationClient,
) -> int:
    """Summarize and save mined documents; stops (keeping what was saved) on failure."""
    created = 0
    try:
        documents = await asyncio.to_thread(extract_kb_documents_from_project, project_path)
        logger.info(f"Found {len(documents)} knowledge base documents to process")

        for document in documents:
            slug = repo.unique_slug(slugify(document.title) or "document")
            summary = await summarize_document(client, document.title, document.content)
            repo.create_document(
                title=document.title,
                content=document.content,
                slug=slug,
                summary=summary,
                source=DocumentSource.MARKDOWN,
                project_id=project_id,
                tags=document.tags,
            )
            created += 1
    except (AgentBoardError, OSError, sqlite3.Error) as e:
        logger.warning(f"Failed to extract knowledge base documents: {e}")

    return created


async def generate_more_tasks(
    project_id: str,
    repo: BoardRepository,
    client: GenerationClient,
    count: int = DEFAULT_MORE_TASKS,
    isolate_failures: bool = False,
) -> dict[str, int]:
    """
    Ask the active personas for more tasks from a name + description context.

    The top `count` by priority are deduplicated and appended to the board.

    Returns:
        {"tasksGenerated": created, "totalTasks": tasks on the board now}

    Raises:
        ProjectNotFoundError: If the project does not exist
    """
    project = repo.get_project(project_id)
    if project is None:
        raise ProjectNotFoundError(project_id)

    existing_count = repo.count_tasks(project_id)
    context = ProjectContext(name=project.name, description=project.description)

    logger.info(f"Generating {count} more tasks for project {project.name}")
    analyses = await generate_all_agent_tasks(
        _active_personas(repo, project_id), context, client, isolate_failures=isolate_failures
    )

    ranked = rank_agent_tasks(analyses, count)
    created = persist_ranked_tasks(TaskWriter(repo, project_id), ranked)
    logger.info(f"Generated {len(created)} additional tasks ({len(ranked) - len(created)} duplicates skipped)")

    return {"tasksGenerated": len(created), "totalTasks": existing_count + len(created)}
