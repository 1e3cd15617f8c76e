"""
MCP server exposing the board to coding agents.

Agents working in a repository can read projects and tasks, pick the next
task, update or add tasks, and file knowledge-base documents. Documents
created here are stored with source "mcp".

Run with `agentboard mcp` (stdio transport).
"""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from agentboard.config import load_config
from agentboard.exceptions import DocumentNotFoundError, ProjectNotFoundError
from agentboard.persistence import (
    BoardRepository,
    DocumentSource,
    Insight,
    KnowledgeBaseDocument,
    Task,
    TaskPriority,
    TaskStatus,
)
from agentboard.projects import create_kb_document

mcp = FastMCP("agentboard")


def _repository() -> BoardRepository:
    return BoardRepository(load_config().db_path)


def _iso(value: Any) -> str | None:
    return value.isoformat() if value is not None else None


def _task(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "projectId": task.project_id,
        "title": task.title,
        "description": task.description,
        "priority": task.priority.value,
        "status": task.status.value,
        "agentType": task.agent_type,
        "aiReasoning": task.ai_reasoning,
        "order": task.order,
        "tags": task.tags,
        "createdAt": _iso(task.created_at),
        "updatedAt": _iso(task.updated_at),
    }


def _insight(insight: Insight) -> dict[str, Any]:
    return {
        "id": insight.id,
        "agentType": insight.agent_type,
        "content": insight.content,
        "priority": insight.priority.value,
        "createdAt": _iso(insight.created_at),
    }


def _document(document: KnowledgeBaseDocument, project_name: str | None) -> dict[str, Any]:
    return {
        "id": document.id,
        "title": document.title,
        "slug": document.slug,
        "tags": document.tags,
        "project": project_name,
        "source": document.source.value,
        "createdAt": _iso(document.created_at),
        "updatedAt": _iso(document.updated_at),
    }


def _project_name(repo: BoardRepository, project_id: str | None) -> str | None:
    if not project_id:
        return None
    project = repo.get_project(project_id)
    return project.name if project else None


def _require_project(repo: BoardRepository, project_id: str) -> None:
    if repo.get_project(project_id) is None:
        raise ProjectNotFoundError(project_id)


@mcp.tool()
def list_projects() -> list[dict[str, Any]]:
    """List every project on the board with task counts."""
    with _repository() as repo:
        summaries = []
        for project in repo.list_projects():
            tasks = repo.list_tasks(project.id)
            summaries.append(
                {
                    "id": project.id,
                    "name": project.name,
                    "description": project.description,
                    "path": project.path,
                    "repoUrl": project.repo_url,
                    "taskCount": len(tasks),
                    "completedTasks": sum(1 for task in tasks if task.status == TaskStatus.DONE),
                }
            )
        return summaries


@mcp.tool()
def get_project(project_id: str) -> dict[str, Any]:
    """Get one project with its tasks (board order) and insights (newest first)."""
    with _repository() as repo:
        project = repo.get_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return {
            "id": project.id,
            "name": project.name,
            "description": project.description,
            "path": project.path,
            "repoUrl": project.repo_url,
            "aiAnalysis": project.ai_analysis,
            "techStack": project.tech_stack,
            "lastAnalyzedAt": _iso(project.last_analyzed_at),
            "tasks": [_task(task) for task in repo.list_tasks(project.id)],
            "insights": [_insight(insight) for insight in repo.list_insights(project.id)],
        }


@mcp.tool()
def get_project_tasks(
    project_id: str,
    status: str | None = None,
    agent_type: str | None = None,
) -> list[dict[str, Any]]:
    """Get a project's tasks, optionally filtered by status (todo, in_progress, done) or agent type."""
    with _repository() as repo:
        tasks = repo.list_tasks(
            project_id,
            status=TaskStatus(status) if status else None,
            agent_type=agent_type,
        )
        return [_task(task) for task in tasks]


@mcp.tool()
def get_next_task(project_id: str, agent_type: str | None = None) -> dict[str, Any] | None:
    """Next task to work on: in-progress first, then highest priority, then board order."""
    with _repository() as repo:
        task = repo.get_next_task(project_id, agent_type=agent_type)
        return _task(task) if task else None


@mcp.tool()
def update_task(
    task_id: str,
    status: str | None = None,
    description: str | None = None,
    priority: str | None = None,
) -> dict[str, Any]:
    """Update a task's status, description or priority."""
    fields: dict[str, Any] = {}
    if status:
        fields["status"] = TaskStatus(status)
    if description:
        fields["description"] = description
    if priority:
        fields["priority"] = TaskPriority.coerce(priority)

    with _repository() as repo:
        return _task(repo.update_task(task_id, **fields))


@mcp.tool()
def create_task(
    project_id: str,
    title: str,
    description: str | None = None,
    priority: str = "medium",
    agent_type: str | None = None,
) -> dict[str, Any]:
    """Add a todo task to the end of a project's board."""
    with _repository() as repo:
        _require_project(repo, project_id)
        task = repo.create_task(
            project_id,
            title,
            description=description,
            priority=priority,
            agent_type=agent_type,
        )
        return _task(task)


@mcp.tool()
def create_knowledge_base_document(
    title: str,
    content: str,
    tags: list[str] | None = None,
    project_id: str | None = None,
) -> dict[str, Any]:
    """File a markdown document in the knowledge base."""
    with _repository() as repo:
        document = create_kb_document(
            repo,
            title,
            content,
            project_id=project_id,
            tags=tags or [],
            source=DocumentSource.MCP,
        )
        return {
            "success": True,
            "message": "Knowledge base document created successfully",
            "document": _document(document, _project_name(repo, project_id)),
        }


@mcp.tool()
def list_knowledge_base(
    project_id: str | None = None,
    tags: list[str] | None = None,
    search: str | None = None,
) -> list[dict[str, Any]]:
    """List knowledge-base documents, most recently updated first."""
    with _repository() as repo:
        documents = repo.list_documents(project_id=project_id, tags=tags or [], search=search)
        return [_document(document, _project_name(repo, document.project_id)) for document in documents]


@mcp.tool()
def get_knowledge_base_document(slug: str) -> dict[str, Any]:
    """Get one knowledge-base document, content included."""
    with _repository() as repo:
        document = repo.get_document(slug)
        if document is None:
            raise DocumentNotFoundError(f"Document not found: {slug}")
        return {
            **_document(document, _project_name(repo, document.project_id)),
            "content": document.content,
            "summary": document.summary,
        }


def main() -> None:
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
