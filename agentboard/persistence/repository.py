"""
AgentBoard Repository - Database access layer

Provides all database operations for AgentBoard over a single SQLite
connection. Deleting a project cascades to its agents, tasks, insights and
knowledge-base documents through foreign keys.

Thread Safety:
- SQLite in WAL mode for concurrent reads
- Use separate BoardRepository instances per thread
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from agentboard.config import DEFAULT_DB_PATH
from agentboard.exceptions import (
    AgentNotFoundError,
    DuplicateAgentError,
    DuplicateProjectError,
    PersistenceError,
    TaskNotFoundError,
)
from agentboard.persistence.models import (
    Agent,
    DocumentSource,
    Insight,
    KnowledgeBaseDocument,
    Project,
    Tag,
    Task,
    TaskPriority,
    TaskStatus,
    generate_id,
    now_iso,
    parse_json_or_list,
    to_json,
)

logger = logging.getLogger(__name__)

# Columns callers may change through update_task / update_agent
TASK_UPDATE_COLUMNS = {
    "title": "title",
    "description": "description",
    "priority": "priority",
    "status": "status",
    "ai_reasoning": "ai_reasoning",
    "order": "sort_order",
    "tags": "tags",
}
AGENT_UPDATE_COLUMNS = {"name", "icon", "description", "system_prompt", "task_categories", "is_active"}


class BoardRepository:
    """
    Repository for all AgentBoard persistence operations.

    Usage:
        with BoardRepository(db_path) as repo:
            project = repo.create_project("myproject", "/path/to/project")
            repo.create_task(project.id, "Write the README")
    """

    def __init__(self, db_path: Path | str | None = None):
        """
        Initialize repository.

        Args:
            db_path: Path to SQLite database file. If None, uses default location.
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
        self._conn: sqlite3.Connection | None = None
        self._initialized = False

    def __enter__(self) -> BoardRepository:
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def conn(self) -> sqlite3.Connection:
        """Get database connection, initializing if needed."""
        if self._conn is None:
            self.initialize()
        return self._conn  # type: ignore

    def initialize(self) -> None:
        """
        Initialize database connection and schema.

        Creates database file and parent directories if they don't exist.
        """
        if self._initialized and self._conn:
            return

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(
            self.db_path,
            check_same_thread=False,
            isolation_level=None,  # Autocommit mode, explicit transactions below
        )

        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._conn.execute("PRAGMA synchronous=NORMAL")

        self._apply_schema()
        self._initialized = True

        logger.info(f"Initialized AgentBoard database at {self.db_path}")

    def _apply_schema(self) -> None:
        """Apply the database schema from schema.sql."""
        schema_path = Path(__file__).parent / "schema.sql"

        if not schema_path.exists():
            logger.error(f"Schema file not found: {schema_path}")
            raise FileNotFoundError(f"Schema file not found: {schema_path}")

        self._conn.executescript(schema_path.read_text())  # type: ignore
        logger.debug("Database schema applied")

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
            self._initialized = False

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Cursor, None, None]:
        """
        Execute operations in a transaction.

        Usage:
            with repo.transaction() as cursor:
                cursor.execute(...)
        """
        cursor = self.conn.cursor()
        try:
            cursor.execute("BEGIN")
            yield cursor
            cursor.execute("COMMIT")
        except Exception:
            cursor.execute("ROLLBACK")
            raise
        finally:
            cursor.close()

    # =========================================================================
    # PROJECT OPERATIONS
    # =========================================================================

    def create_project(
        self,
        name: str,
        path: str,
        description: str | None = None,
        repo_url: str | None = None,
    ) -> Project:
        """
        Create a project.

        Raises:
            DuplicateProjectError: If the path is already registered
        """
        project = Project(name=name, path=path, description=description, repo_url=repo_url)
        try:
            self.conn.execute(
                "INSERT INTO projects VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                project.to_row(),
            )
        except sqlite3.IntegrityError as e:
            raise DuplicateProjectError(f"Project path already registered: {path}", {"error": str(e)})

        logger.info(f"Created project {name} ({project.id[:8]})")
        return project

    def get_project(self, project_id: str) -> Project | None:
        """Get project by ID."""
        row = self.conn.execute("SELECT * FROM projects WHERE id = ?", (project_id,)).fetchone()
        return Project.from_row(row) if row else None

    def get_project_by_path(self, path: str) -> Project | None:
        """Get project by filesystem path."""
        row = self.conn.execute("SELECT * FROM projects WHERE path = ?", (path,)).fetchone()
        return Project.from_row(row) if row else None

    def list_projects(self) -> list[Project]:
        """List all projects, most recently updated first."""
        rows = self.conn.execute("SELECT * FROM projects ORDER BY updated_at DESC").fetchall()
        return [Project.from_row(row) for row in rows]

    def update_project_analysis(
        self,
        project_id: str,
        summary: str,
        tech_stack: list[str],
    ) -> None:
        """Store the top-level AI analysis for a project."""
        now = now_iso()
        self.conn.execute(
            """UPDATE projects
               SET ai_analysis = ?, tech_stack = ?, last_analyzed_at = ?, updated_at = ?
               WHERE id = ?""",
            (summary, to_json(tech_stack), now, now, project_id),
        )

    def set_github_identifiers(self, project_id: str, owner: str, repo: str) -> None:
        """Record the parsed GitHub owner/repo for a project."""
        self.conn.execute(
            "UPDATE projects SET github_owner = ?, github_repo = ?, updated_at = ? WHERE id = ?",
            (owner, repo, now_iso(), project_id),
        )

    def delete_project(self, project_id: str) -> bool:
        """Delete a project and everything it owns. Returns False if absent."""
        cursor = self.conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
        if cursor.rowcount:
            logger.info(f"Deleted project {project_id[:8]}")
        return cursor.rowcount > 0

    def absorb_project(
        self,
        target_id: str,
        source_id: str,
        repositories: list[dict[str, Any]],
        repository_tag: str,
    ) -> int:
        """
        Fold a source project into a target in one transaction.

        Updates the target's repository list, moves the source's tasks (adding
        repository_tag to each) and insights to the target, then deletes the
        source project.

        Returns:
            Number of tasks moved
        """
        now = now_iso()
        with self.transaction() as cursor:
            cursor.execute(
                "UPDATE projects SET repositories = ?, updated_at = ? WHERE id = ?",
                (to_json(repositories), now, target_id),
            )

            cursor.execute("SELECT id, tags FROM tasks WHERE project_id = ?", (source_id,))
            moved = cursor.fetchall()
            for task_id, raw_tags in moved:
                tags = parse_json_or_list(raw_tags)
                if repository_tag not in tags:
                    tags.append(repository_tag)
                cursor.execute(
                    "UPDATE tasks SET project_id = ?, tags = ?, updated_at = ? WHERE id = ?",
                    (target_id, to_json(tags), now, task_id),
                )

            cursor.execute(
                "UPDATE insights SET project_id = ? WHERE project_id = ?",
                (target_id, source_id),
            )
            cursor.execute("DELETE FROM projects WHERE id = ?", (source_id,))

        logger.info(f"Merged project {source_id[:8]} into {target_id[:8]} ({len(moved)} tasks)")
        return len(moved)

    # =========================================================================
    # AGENT OPERATIONS
    # =========================================================================

    def create_agent(self, agent: Agent) -> Agent:
        """
        Insert an agent persona.

        Raises:
            DuplicateAgentError: If the project already has an agent of this type
        """
        try:
            self.conn.execute(
                "INSERT INTO agents VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                agent.to_row(),
            )
        except sqlite3.IntegrityError as e:
            raise DuplicateAgentError(
                f"Agent type '{agent.type}' already exists for this project",
                {"project_id": agent.project_id, "error": str(e)},
            )
        return agent

    def get_agent(self, agent_id: str) -> Agent | None:
        """Get agent by ID."""
        row = self.conn.execute("SELECT * FROM agents WHERE id = ?", (agent_id,)).fetchone()
        return Agent.from_row(row) if row else None

    def get_agent_by_type(self, project_id: str, agent_type: str) -> Agent | None:
        """Get the agent of a given type for a project."""
        row = self.conn.execute(
            "SELECT * FROM agents WHERE project_id = ? AND type = ?",
            (project_id, agent_type),
        ).fetchone()
        return Agent.from_row(row) if row else None

    def list_agents(self, project_id: str, active_only: bool = False) -> list[Agent]:
        """List a project's agents in creation order."""
        query = "SELECT * FROM agents WHERE project_id = ?"
        if active_only:
            query += " AND is_active = 1"
        query += " ORDER BY created_at ASC, rowid ASC"
        rows = self.conn.execute(query, (project_id,)).fetchall()
        return [Agent.from_row(row) for row in rows]

    def update_agent(self, agent_id: str, **fields: Any) -> Agent:
        """
        Update agent fields.

        Raises:
            AgentNotFoundError: If the agent does not exist
            PersistenceError: If an unknown field is given
        """
        unknown = set(fields) - AGENT_UPDATE_COLUMNS
        if unknown:
            raise PersistenceError("Unknown agent fields", {"fields": sorted(unknown)})

        if fields:
            values = []
            for name, value in fields.items():
                if name == "task_categories":
                    value = to_json(list(value))
                elif name == "is_active":
                    value = 1 if value else 0
                values.append(value)
            assignments = ", ".join(f"{name} = ?" for name in fields)
            self.conn.execute(f"UPDATE agents SET {assignments} WHERE id = ?", (*values, agent_id))

        agent = self.get_agent(agent_id)
        if agent is None:
            raise AgentNotFoundError(f"Agent {agent_id} not found")
        return agent

    def delete_agent(self, agent_id: str) -> bool:
        """Delete an agent. Returns False if absent."""
        cursor = self.conn.execute("DELETE FROM agents WHERE id = ?", (agent_id,))
        return cursor.rowcount > 0

    # =========================================================================
    # TASK OPERATIONS
    # =========================================================================

    def next_task_order(self, project_id: str) -> int:
        """Order value following the highest existing one (0 for an empty board)."""
        row = self.conn.execute(
            "SELECT COALESCE(MAX(sort_order) + 1, 0) FROM tasks WHERE project_id = ?",
            (project_id,),
        ).fetchone()
        return row[0]

    def create_task(
        self,
        project_id: str,
        title: str,
        description: str | None = None,
        priority: TaskPriority | str = TaskPriority.MEDIUM,
        status: TaskStatus = TaskStatus.TODO,
        agent_type: str | None = None,
        ai_reasoning: str | None = None,
        order: int | None = None,
        tags: list[str] | None = None,
    ) -> Task:
        """Create a task, appending it to the board when no order is given."""
        task = Task(
            project_id=project_id,
            title=title,
            description=description,
            priority=TaskPriority.coerce(priority),
            status=status,
            agent_type=agent_type,
            ai_reasoning=ai_reasoning,
            order=self.next_task_order(project_id) if order is None else order,
            tags=tags or [],
        )
        self.conn.execute(
            "INSERT INTO tasks VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            task.to_row(),
        )
        return task

    def get_task(self, task_id: str) -> Task | None:
        """Get task by ID."""
        row = self.conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
        return Task.from_row(row) if row else None

    def list_tasks(
        self,
        project_id: str,
        status: TaskStatus | None = None,
        agent_type: str | None = None,
    ) -> list[Task]:
        """List a project's tasks in board order, optionally one column or one agent."""
        query = "SELECT * FROM tasks WHERE project_id = ?"
        params: list[Any] = [project_id]
        if status is not None:
            query += " AND status = ?"
            params.append(status.value)
        if agent_type:
            query += " AND agent_type = ?"
            params.append(agent_type)

        rows = self.conn.execute(query + " ORDER BY sort_order ASC", params).fetchall()
        return [Task.from_row(row) for row in rows]

    def get_next_task(self, project_id: str, agent_type: str | None = None) -> Task | None:
        """
        The open task to work on next.

        In-progress tasks come before todo ones, then higher priority, then
        lower board order. Done tasks are never returned.
        """
        query = """
            SELECT * FROM tasks
            WHERE project_id = ? AND status IN ('todo', 'in_progress')
        """
        params: list[Any] = [project_id]
        if agent_type:
            query += " AND agent_type = ?"
            params.append(agent_type)
        query += """
            ORDER BY
                CASE status WHEN 'in_progress' THEN 0 ELSE 1 END,
                CASE priority WHEN 'high' THEN 0 WHEN 'medium' THEN 1 ELSE 2 END,
                sort_order ASC
            LIMIT 1
        """
        row = self.conn.execute(query, params).fetchone()
        return Task.from_row(row) if row else None

    def list_task_titles(self, project_id: str) -> list[str]:
        """Titles of every task in a project."""
        rows = self.conn.execute("SELECT title FROM tasks WHERE project_id = ?", (project_id,)).fetchall()
        return [row[0] for row in rows]

    def count_tasks(self, project_id: str) -> int:
        """Number of tasks in a project."""
        row = self.conn.execute("SELECT COUNT(*) FROM tasks WHERE project_id = ?", (project_id,)).fetchone()
        return row[0]

    def update_task(self, task_id: str, **fields: Any) -> Task:
        """
        Update task fields (title, description, priority, status, ai_reasoning, order, tags).

        Raises:
            TaskNotFoundError: If the task does not exist
            PersistenceError: If an unknown field is given
        """
        unknown = set(fields) - set(TASK_UPDATE_COLUMNS)
        if unknown:
            raise PersistenceError("Unknown task fields", {"fields": sorted(unknown)})

        if fields:
            values = []
            for name, value in fields.items():
                if name == "priority":
                    value = TaskPriority.coerce(value).value
                elif name == "status":
                    value = TaskStatus(value).value
                elif name == "tags":
                    value = to_json(list(value))
                values.append(value)
            assignments = ", ".join(f"{TASK_UPDATE_COLUMNS[name]} = ?" for name in fields)
            self.conn.execute(
                f"UPDATE tasks SET {assignments}, updated_at = ? WHERE id = ?",
                (*values, now_iso(), task_id),
            )

        task = self.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(f"Task {task_id} not found")
        return task

    def delete_task(self, task_id: str) -> bool:
        """Delete a task. Returns False if absent."""
        cursor = self.conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        return cursor.rowcount > 0

    # =========================================================================
    # INSIGHT OPERATIONS
    # =========================================================================

    def create_insight(
        self,
        project_id: str,
        agent_type: str,
        content: str,
        priority: TaskPriority = TaskPriority.MEDIUM,
    ) -> Insight:
        """Store an agent insight; the title is the first 100 characters."""
        insight = Insight(
            project_id=project_id,
            agent_type=agent_type,
            title=content[:100],
            content=content,
            priority=priority,
        )
        self.conn.execute("INSERT INTO insights VALUES (?, ?, ?, ?, ?, ?, ?)", insight.to_row())
        return insight

    def list_insights(self, project_id: str) -> list[Insight]:
        """List a project's insights, newest first."""
        rows = self.conn.execute(
            "SELECT * FROM insights WHERE project_id = ? ORDER BY created_at DESC, rowid DESC",
            (project_id,),
        ).fetchall()
        return [Insight.from_row(row) for row in rows]

    # =========================================================================
    # KNOWLEDGE BASE OPERATIONS
    # =========================================================================

    def unique_slug(self, base: str) -> str:
        """Return base, or base-1, base-2, ... whichever is free first."""
        candidate = base
        suffix = 0
        while self.conn.execute("SELECT 1 FROM kb_documents WHERE slug = ?", (candidate,)).fetchone():
            suffix += 1
            candidate = f"{base}-{suffix}"
        return candidate

    def _get_or_create_tag(self, cursor: sqlite3.Cursor, name: str) -> str:
        cursor.execute("INSERT OR IGNORE INTO kb_tags (id, name) VALUES (?, ?)", (generate_id(), name))
        cursor.execute("SELECT id FROM kb_tags WHERE name = ?", (name,))
        return cursor.fetchone()[0]

    def create_document(
        self,
        title: str,
        content: str,
        slug: str,
        summary: str | None = None,
        source: DocumentSource = DocumentSource.MANUAL,
        project_id: str | None = None,
        tags: Iterable[str] = (),
    ) -> KnowledgeBaseDocument:
        """Create a knowledge-base document and link its tags (created on demand)."""
        tag_names = list(dict.fromkeys(t for t in tags if t))
        document = KnowledgeBaseDocument(
            title=title,
            slug=slug,
            content=content,
            summary=summary,
            source=source,
            project_id=project_id,
            tags=tag_names,
        )

        with self.transaction() as cursor:
            try:
                cursor.execute(
                    "INSERT INTO kb_documents VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    document.to_row(),
                )
            except sqlite3.IntegrityError as e:
                raise PersistenceError(f"Slug already in use: {slug}", {"error": str(e)})

            for name in tag_names:
                tag_id = self._get_or_create_tag(cursor, name)
                cursor.execute(
                    "INSERT OR IGNORE INTO kb_document_tags (document_id, tag_id) VALUES (?, ?)",
                    (document.id, tag_id),
                )

        return document

    def _document_tags(self, document_id: str) -> list[str]:
        rows = self.conn.execute(
            """SELECT t.name FROM kb_tags t
               JOIN kb_document_tags dt ON dt.tag_id = t.id
               WHERE dt.document_id = ? ORDER BY t.name""",
            (document_id,),
        ).fetchall()
        return [row[0] for row in rows]

    def get_document(self, slug: str) -> KnowledgeBaseDocument | None:
        """Get a document by slug."""
        row = self.conn.execute("SELECT * FROM kb_documents WHERE slug = ?", (slug,)).fetchone()
        return KnowledgeBaseDocument.from_row(row, self._document_tags(row[0])) if row else None

    def list_documents(
        self,
        project_id: str | None = None,
        tags: Iterable[str] = (),
        search: str | None = None,
    ) -> list[KnowledgeBaseDocument]:
        """
        List documents, most recently updated first.

        Args:
            project_id: Only documents owned by this project
            tags: Only documents carrying at least one of these tags
            search: Case-insensitive substring of title or content
        """
        clauses: list[str] = []
        params: list[Any] = []

        if project_id:
            clauses.append("d.project_id = ?")
            params.append(project_id)

        tag_list = list(tags)
        if tag_list:
            placeholders = ", ".join("?" for _ in tag_list)
            clauses.append(
                f"""d.id IN (SELECT dt.document_id FROM kb_document_tags dt
                    JOIN kb_tags t ON t.id = dt.tag_id WHERE t.name IN ({placeholders}))"""
            )
            params.extend(tag_list)

        if search:
            clauses.append("(d.title LIKE ? OR d.content LIKE ?)")
            params.extend([f"%{search}%", f"%{search}%"])

        query = "SELECT d.* FROM kb_documents d"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY d.updated_at DESC, d.rowid DESC"

        rows = self.conn.execute(query, params).fetchall()
        return [KnowledgeBaseDocument.from_row(row, self._document_tags(row[0])) for row in rows]

    def delete_document(self, slug: str) -> bool:
        """Delete a document by slug. Returns False if absent."""
        cursor = self.conn.execute("DELETE FROM kb_documents WHERE slug = ?", (slug,))
        return cursor.rowcount > 0

    def list_tags(self) -> list[Tag]:
        """List every knowledge-base tag by name."""
        rows = self.conn.execute("SELECT * FROM kb_tags ORDER BY name").fetchall()
        return [Tag.from_row(row) for row in rows]
