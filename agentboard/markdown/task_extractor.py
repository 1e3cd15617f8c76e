"""
Markdown task mining

Pulls actionable items out of a project's markdown files:
- unchecked checklist items (- [ ] ...)
- checked checklist items (- [x] ...), flagged as completed
- TODO/FIXME/NOTE/HACK comments (FIXME is high priority)

Vague or placeholder lines are dropped by is_valuable_task().
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from agentboard.persistence.models import TaskPriority

logger = logging.getLogger(__name__)

PRIORITY_KEYWORDS: dict[TaskPriority, tuple[str, ...]] = {
    TaskPriority.HIGH: ("urgent", "critical", "important", "asap", "priority", "!!!", "bug", "fix"),
    TaskPriority.MEDIUM: ("should", "improve", "enhance", "update", "refactor"),
    TaskPriority.LOW: ("nice to have", "maybe", "consider", "optional", "minor"),
}

FLUFF_PATTERNS = [
    re.compile(r"^(add|update|improve|fix|enhance)\s*(more|some|the|a)?\s*$", re.IGNORECASE),
    re.compile(r"^(tbd|tba|placeholder|example)$", re.IGNORECASE),
    re.compile(r"^[\w\s]{1,5}$", re.IGNORECASE),
    re.compile(r"^(test|testing)$", re.IGNORECASE),
    re.compile(r"\?\?\?"),
    re.compile(r"^\s*$"),
]

VALUABLE_KEYWORDS = (
    "implement", "create", "build", "develop", "design", "integrate",
    "migrate", "deploy", "setup", "configure", "optimize", "refactor",
    "api", "endpoint", "database", "authentication", "security",
    "performance", "bug", "fix", "issue", "feature", "functionality",
)

CONCRETE_DETAIL_PATTERN = re.compile(r"\b(file|function|component|module|class|method)\b", re.IGNORECASE)
TECHNOLOGY_PATTERN = re.compile(r"\b(react|node|python|typescript|docker|kubernetes|redis|postgres)\b")

UNCHECKED_PATTERN = re.compile(r"^[\s-]*\[[ ]\]\s+(.+)$", re.MULTILINE)
CHECKED_PATTERN = re.compile(r"^[\s-]*\[x\]\s+(.+)$", re.MULTILINE | re.IGNORECASE)
COMMENT_PATTERN = re.compile(r"(TODO|FIXME|NOTE|HACK):\s*(.+)$", re.MULTILINE | re.IGNORECASE)

# Checked in this order; every other root .md file is appended after them
COMMON_TASK_FILES = (
    "README.md",
    "TODO.md",
    "TASKS.md",
    "CONTRIBUTING.md",
    "ROADMAP.md",
    "CHANGELOG.md",
    ".github/ISSUE_TEMPLATE.md",
    "docs/TODO.md",
    "docs/ROADMAP.md",
)


@dataclass
class ExtractedTask:
    """A candidate task mined from a markdown file."""

    title: str
    priority: TaskPriority
    source: str
    is_completed: bool = False
    description: str | None = None


def is_valuable_task(text: str) -> bool:
    """Return True if text is concrete enough to become a task."""
    trimmed = text.strip()

    if any(pattern.search(trimmed) for pattern in FLUFF_PATTERNS):
        return False

    if len(trimmed) < 10:
        return False

    lower_text = trimmed.lower()
    has_valuable_keyword = any(keyword in lower_text for keyword in VALUABLE_KEYWORDS)
    has_concrete_detail = CONCRETE_DETAIL_PATTERN.search(trimmed) is not None
    has_technology = TECHNOLOGY_PATTERN.search(lower_text) is not None
    is_high_priority = any(keyword in lower_text for keyword in PRIORITY_KEYWORDS[TaskPriority.HIGH])

    return has_valuable_keyword or has_concrete_detail or has_technology or is_high_priority


def infer_priority(text: str) -> TaskPriority:
    """High keywords win over low ones; anything else is medium."""
    lower_text = text.lower()
    if any(keyword in lower_text for keyword in PRIORITY_KEYWORDS[TaskPriority.HIGH]):
        return TaskPriority.HIGH
    if any(keyword in lower_text for keyword in PRIORITY_KEYWORDS[TaskPriority.LOW]):
        return TaskPriority.LOW
    return TaskPriority.MEDIUM


def extract_tasks_from_markdown(content: str, filename: str) -> list[ExtractedTask]:
    """
    Extract tasks from one markdown document.

    Args:
        content: Markdown text
        filename: Source label stored on each task (path relative to the project)

    Returns:
        Unchecked items, then checked items, then comment tasks, in document order
    """
    tasks: list[ExtractedTask] = []

    for match in UNCHECKED_PATTERN.finditer(content):
        text = match.group(1).strip()
        if is_valuable_task(text):
            tasks.append(ExtractedTask(title=text, priority=infer_priority(text), source=filename))

    for match in CHECKED_PATTERN.finditer(content):
        text = match.group(1).strip()
        if is_valuable_task(text):
            tasks.append(
                ExtractedTask(title=text, priority=infer_priority(text), source=filename, is_completed=True)
            )

    for match in COMMENT_PATTERN.finditer(content):
        keyword = match.group(1).upper()
        text = match.group(2).strip()
        if is_valuable_task(text):
            tasks.append(
                ExtractedTask(
                    title=text,
                    priority=TaskPriority.HIGH if keyword == "FIXME" else TaskPriority.MEDIUM,
                    source=filename,
                    description=f"From {keyword} in {filename}",
                )
            )

    return tasks


def find_markdown_files(project_path: Path) -> list[Path]:
    """Common task files that exist, followed by the remaining non-hidden root .md files."""
    files = [project_path / name for name in COMMON_TASK_FILES if (project_path / name).is_file()]

    try:
        entries = sorted(project_path.iterdir())
    except OSError as e:
        logger.warning(f"Could not list {project_path}: {e}")
        return files

    for entry in entries:
        if entry.is_file() and entry.name.endswith(".md") and not entry.name.startswith("."):
            if entry not in files:
                files.append(entry)
    return files


def extract_tasks_from_project(project_path: str | Path) -> list[ExtractedTask]:
    """
    Mine tasks from every task-bearing markdown file of a project.

    Unreadable files are logged and skipped.
    """
    root = Path(project_path)
    tasks: list[ExtractedTask] = []

    for file_path in find_markdown_files(root):
        try:
            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read {file_path}: {e}")
            continue
        tasks.extend(extract_tasks_from_markdown(content, file_path.relative_to(root).as_posix()))

    return tasks
