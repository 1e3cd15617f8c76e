"""Seeding built-in personas into a project, and adding custom ones."""

import logging
import re

from agentboard.agents.definitions import DEFAULT_ICON, get_agent_icon, get_all_agent_definitions
from agentboard.exceptions import PersistenceError
from agentboard.persistence import Agent, BoardRepository

logger = logging.getLogger(__name__)


def slugify(text: str) -> str:
    """Lowercase, runs of non-alphanumerics to "-", edges stripped."""
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def create_default_agents_for_project(repo: BoardRepository, project_id: str) -> list[Agent]:
    """
    Give a project one agent per built-in persona it does not already have.

    Returns:
        The agents created (empty if all personas were present)
    """
    created: list[Agent] = []
    for definition in get_all_agent_definitions():
        if repo.get_agent_by_type(project_id, definition.type) is not None:
            continue
        agent = repo.create_agent(
            Agent(
                project_id=project_id,
                type=definition.type,
                name=definition.name,
                icon=get_agent_icon(definition.type),
                description=definition.description,
                system_prompt=definition.system_prompt,
                task_categories=list(definition.task_categories),
                is_default=True,
                is_active=True,
            )
        )
        created.append(agent)

    if created:
        logger.info(f"Seeded {len(created)} default agents for project {project_id[:8]}")
    return created


def create_custom_agent(
    repo: BoardRepository,
    project_id: str,
    name: str,
    system_prompt: str,
    description: str = "",
    task_categories: list[str] | None = None,
    icon: str | None = None,
    agent_type: str | None = None,
) -> Agent:
    """
    Add a user-defined persona to a project.

    The type defaults to a slug of the name.

    Raises:
        DuplicateAgentError: If the project already has an agent of that type
        PersistenceError: If the name yields an empty type
    """
    resolved_type = slugify(agent_type or name)
    if not resolved_type:
        raise PersistenceError("Agent type cannot be empty", {"name": name})

    return repo.create_agent(
        Agent(
            project_id=project_id,
            type=resolved_type,
            name=name,
            icon=icon or DEFAULT_ICON,
            description=description,
            system_prompt=system_prompt,
            task_categories=task_categories or [],
            is_default=False,
            is_active=True,
        )
    )
