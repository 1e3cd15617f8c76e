"""
Task Aggregator

Ranks persona tasks by priority, applies the task cap and writes the
survivors to the board after duplicate filtering.
"""

import logging
from dataclasses import dataclass

from agentboard.agents.similarity import TaskDeduplicator
from agentboard.agents.types import AgentAnalysis, GeneratedTask
from agentboard.markdown.task_extractor import ExtractedTask
from agentboard.persistence import BoardRepository, Task, TaskPriority, TaskStatus

logger = logging.getLogger(__name__)

MAX_MARKDOWN_TASKS = 10


@dataclass
class RankedTask:
    """A persona task with its ranking score."""

    agent_type: str
    task: GeneratedTask

    @property
    def score(self) -> int:
        return self.task.priority.score


def rank_agent_tasks(analyses: dict[str, AgentAnalysis], limit: int) -> list[RankedTask]:
    """
    Flatten all persona tasks, highest priority first, truncated to limit.

    The sort is stable: equal priorities keep persona order, then the
    order each persona listed them.
    """
    candidates = [
        RankedTask(agent_type=agent_type, task=task)
        for agent_type, analysis in analyses.items()
        for task in analysis.tasks
    ]
    candidates.sort(key=lambda ranked: ranked.score, reverse=True)
    return candidates[:limit]


def select_markdown_tasks(
    tasks: list[ExtractedTask],
    remaining: int,
    limit: int = MAX_MARKDOWN_TASKS,
) -> list[ExtractedTask]:
    """Uncompleted tasks, highest priority first, at most min(remaining, limit)."""
    if remaining <= 0:
        return []
    open_tasks = [task for task in tasks if not task.is_completed]
    open_tasks.sort(key=lambda task: task.priority.score, reverse=True)
    return open_tasks[: min(remaining, limit)]


class TaskWriter:
    """
    Appends tasks to a project's board.

    Orders continue from the highest existing order and every accepted
    title is checked against the board (and this batch) first.
    """

    def __init__(
        self,
        repo: BoardRepository,
        project_id: str,
        deduplicator: TaskDeduplicator | None = None,
    ):
        self.repo = repo
        self.project_id = project_id
        self.deduplicator = deduplicator or TaskDeduplicator(repo.list_task_titles(project_id))
        self.next_order = repo.next_task_order(project_id)
        self.created: list[Task] = []
        self.skipped: list[str] = []

    def is_duplicate(self, title: str) -> bool:
        return self.deduplicator.is_duplicate(title)

    def write(
        self,
        title: str,
        description: str | None,
        priority: TaskPriority,
        agent_type: str | None,
        reasoning: str | None,
    ) -> Task | None:
        """Create the task, or return None if it duplicates an existing one."""
        if self.deduplicator.is_duplicate(title):
            logger.info(f"Skipping duplicate task: {title}")
            self.skipped.append(title)
            return None

        task = self.repo.create_task(
            project_id=self.project_id,
            title=title,
            description=description,
            priority=priority,
            status=TaskStatus.TODO,
            agent_type=agent_type,
            ai_reasoning=reasoning,
            order=self.next_order,
        )
        self.next_order += 1
        self.deduplicator.add(title)
        self.created.append(task)
        return task


def persist_ranked_tasks(writer: TaskWriter, ranked: list[RankedTask]) -> list[Task]:
    """Write ranked persona tasks in rank order; returns those actually created."""
    created = []
    for item in ranked:
        task = writer.write(
            title=item.task.title,
            description=item.task.description,
            priority=item.task.priority,
            agent_type=item.agent_type,
            reasoning=item.task.reasoning,
        )
        if task is not None:
            created.append(task)
    return created
