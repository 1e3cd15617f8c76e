"""
AgentBoard Persistence Models

Dataclasses that map to SQLite tables. Each entity converts to and from a
database row tuple whose column order matches schema.sql.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


# ============================================================================
# ENUMS - Type-safe status values matching SQL schema
# ============================================================================


class TaskStatus(str, Enum):
    """Kanban column of a task."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class TaskPriority(str, Enum):
    """Priority label shared by tasks and insights."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def score(self) -> int:
        """Ranking score: high=3, medium=2, low=1."""
        return PRIORITY_SCORES[self.value]

    @classmethod
    def coerce(cls, value: Any) -> TaskPriority:
        """Parse a loose priority value, defaulting to medium."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.MEDIUM


PRIORITY_SCORES = {"high": 3, "medium": 2, "low": 1}


class DocumentSource(str, Enum):
    """Where a knowledge-base document came from."""

    MANUAL = "manual"
    UPLOAD = "upload"
    MARKDOWN = "markdown"
    MCP = "mcp"


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================


def generate_id() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


def now_iso() -> str:
    """Get current datetime as ISO string."""
    return datetime.now().isoformat()


def parse_json_or_list(value: str | list | None) -> list:
    """Parse JSON string to list, or return empty list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    try:
        result = json.loads(value)
        return result if isinstance(result, list) else []
    except (json.JSONDecodeError, TypeError):
        return []


def to_json(value: list | dict | None) -> str | None:
    """Convert list or dict to JSON string."""
    if value is None:
        return None
    return json.dumps(value)


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """Parse ISO datetime string to datetime object."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(value)
    except (ValueError, TypeError):
        return None


def _iso(value: datetime | str | None) -> str | None:
    if value is None:
        return None
    return value.isoformat() if isinstance(value, datetime) else value


# ============================================================================
# ENTITIES
# ============================================================================


@dataclass
class Project:
    """
    A scanned repository tracked on the board.

    Maps to: projects table
    """

    id: str = field(default_factory=generate_id)
    name: str = ""
    path: str = ""
    description: str | None = None
    repo_url: str | None = None
    github_owner: str | None = None
    github_repo: str | None = None
    ai_analysis: str | None = None
    tech_stack: list[str] = field(default_factory=list)
    last_analyzed_at: datetime | None = None
    repositories: list[dict[str, Any]] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_row(cls, row: tuple) -> Project:
        """Create from database row."""
        return cls(
            id=row[0],
            name=row[1],
            path=row[2],
            description=row[3],
            repo_url=row[4],
            github_owner=row[5],
            github_repo=row[6],
            ai_analysis=row[7],
            tech_stack=parse_json_or_list(row[8]),
            last_analyzed_at=parse_datetime(row[9]),
            repositories=parse_json_or_list(row[10]),
            created_at=parse_datetime(row[11]) or datetime.now(),
            updated_at=parse_datetime(row[12]) or datetime.now(),
        )

    def to_row(self) -> tuple:
        """Convert to database row for INSERT."""
        return (
            self.id,
            self.name,
            self.path,
            self.description,
            self.repo_url,
            self.github_owner,
            self.github_repo,
            self.ai_analysis,
            to_json(self.tech_stack) if self.tech_stack else None,
            _iso(self.last_analyzed_at),
            to_json(self.repositories) if self.repositories else None,
            _iso(self.created_at),
            _iso(self.updated_at),
        )


@dataclass
class Agent:
    """
    A persona configuration owned by a project.

    Maps to: agents table (unique per project_id + type)
    """

    id: str = field(default_factory=generate_id)
    project_id: str = ""
    type: str = ""
    name: str = ""
    icon: str = ""
    description: str = ""
    system_prompt: str = ""
    task_categories: list[str] = field(default_factory=list)
    is_default: bool = False
    is_active: bool = True
    created_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_row(cls, row: tuple) -> Agent:
        """Create from database row."""
        return cls(
            id=row[0],
            project_id=row[1],
            type=row[2],
            name=row[3],
            icon=row[4] or "",
            description=row[5] or "",
            system_prompt=row[6] or "",
            task_categories=parse_json_or_list(row[7]),
            is_default=bool(row[8]),
            is_active=bool(row[9]),
            created_at=parse_datetime(row[10]) or datetime.now(),
        )

    def to_row(self) -> tuple:
        """Convert to database row."""
        return (
            self.id,
            self.project_id,
            self.type,
            self.name,
            self.icon,
            self.description,
            self.system_prompt,
            to_json(self.task_categories),
            1 if self.is_default else 0,
            1 if self.is_active else 0,
            _iso(self.created_at),
        )


@dataclass
class Task:
    """
    A unit of work on the project board.

    Maps to: tasks table
    """

    id: str = field(default_factory=generate_id)
    project_id: str = ""
    title: str = ""
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.TODO
    agent_type: str | None = None
    ai_reasoning: str | None = None
    order: int = 0
    tags: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_row(cls, row: tuple) -> Task:
        """Create from database row."""
        return cls(
            id=row[0],
            project_id=row[1],
            title=row[2],
            description=row[3],
            priority=TaskPriority.coerce(row[4]),
            status=TaskStatus(row[5]) if row[5] else TaskStatus.TODO,
            agent_type=row[6],
            ai_reasoning=row[7],
            order=row[8] or 0,
            tags=parse_json_or_list(row[9]),
            created_at=parse_datetime(row[10]) or datetime.now(),
            updated_at=parse_datetime(row[11]) or datetime.now(),
        )

    def to_row(self) -> tuple:
        """Convert to database row."""
        return (
            self.id,
            self.project_id,
            self.title,
            self.description,
            self.priority.value,
            self.status.value,
            self.agent_type,
            self.ai_reasoning,
            self.order,
            to_json(self.tags) if self.tags else None,
            _iso(self.created_at),
            _iso(self.updated_at),
        )


@dataclass
class Insight:
    """
    A free-text observation from one agent persona.

    Maps to: insights table
    """

    id: str = field(default_factory=generate_id)
    project_id: str = ""
    agent_type: str = ""
    title: str = ""
    content: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    created_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_row(cls, row: tuple) -> Insight:
        """Create from database row."""
        return cls(
            id=row[0],
            project_id=row[1],
            agent_type=row[2],
            title=row[3],
            content=row[4],
            priority=TaskPriority.coerce(row[5]),
            created_at=parse_datetime(row[6]) or datetime.now(),
        )

    def to_row(self) -> tuple:
        """Convert to database row."""
        return (
            self.id,
            self.project_id,
            self.agent_type,
            self.title,
            self.content,
            self.priority.value,
            _iso(self.created_at),
        )


@dataclass
class KnowledgeBaseDocument:
    """
    A markdown document in the knowledge base.

    Maps to: kb_documents table; tags live in kb_document_tags.
    """

    id: str = field(default_factory=generate_id)
    title: str = ""
    slug: str = ""
    content: str = ""
    summary: str | None = None
    source: DocumentSource = DocumentSource.MANUAL
    project_id: str | None = None
    tags: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_row(cls, row: tuple, tags: list[str] | None = None) -> KnowledgeBaseDocument:
        """Create from database row plus its tag names."""
        return cls(
            id=row[0],
            title=row[1],
            slug=row[2],
            content=row[3],
            summary=row[4],
            source=DocumentSource(row[5]) if row[5] else DocumentSource.MANUAL,
            project_id=row[6],
            tags=tags or [],
            created_at=parse_datetime(row[7]) or datetime.now(),
            updated_at=parse_datetime(row[8]) or datetime.now(),
        )

    def to_row(self) -> tuple:
        """Convert to database row (tags excluded)."""
        return (
            self.id,
            self.title,
            self.slug,
            self.content,
            self.summary,
            self.source.value,
            self.project_id,
            _iso(self.created_at),
            _iso(self.updated_at),
        )


@dataclass
class Tag:
    """A shared knowledge-base tag."""

    id: str = field(default_factory=generate_id)
    name: str = ""

    @classmethod
    def from_row(cls, row: tuple) -> Tag:
        """Create from database row."""
        return cls(id=row[0], name=row[1])
