"""
Markdown knowledge-base mining

Finds documentation worth keeping in the knowledge base: canonical root
files (README, ARCHITECTURE, API, ...) plus anything under docs/,
documentation/ or wiki/ up to three levels deep.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)

KB_FILE_PATTERNS = (
    "README.md",
    "CONTRIBUTING.md",
    "CHANGELOG.md",
    "ARCHITECTURE.md",
    "API.md",
    "SETUP.md",
    "DEPLOYMENT.md",
    "TROUBLESHOOTING.md",
    "FAQ.md",
    "GUIDE.md",
    "TUTORIAL.md",
)

KB_DIRECTORIES = ("docs", "documentation", "wiki")
MAX_DEPTH = 3
MIN_CONTENT_LENGTH = 50

# Filename fragment -> tag
FILENAME_TAGS = (
    ("readme", "getting-started"),
    ("api", "api"),
    ("guide", "guide"),
    ("tutorial", "tutorial"),
    ("setup", "setup"),
    ("deploy", "deployment"),
    ("troubleshoot", "troubleshooting"),
    ("faq", "faq"),
    ("contributing", "contributing"),
    ("changelog", "changelog"),
    ("architecture", "architecture"),
)

CODE_LANGUAGES = frozenset(
    {"javascript", "typescript", "python", "go", "rust", "java", "ruby", "php", "c", "cpp", "csharp"}
)

H1_PATTERN = re.compile(r"^#\s+(.+)$", re.MULTILINE)
CODE_FENCE_PATTERN = re.compile(r"```(\w+)")


@dataclass
class ExtractedDocument:
    """A markdown file selected for the knowledge base."""

    title: str
    content: str
    source: str
    filename: str
    tags: list[str] = field(default_factory=list)


def extract_title(content: str, filename: str) -> str:
    """First H1 heading, else the filename without .md and with -/_ as spaces."""
    match = H1_PATTERN.search(content)
    if match:
        return match.group(1).strip()
    return re.sub(r"[-_]", " ", re.sub(r"\.md$", "", filename, flags=re.IGNORECASE))


def extract_tags(content: str, filename: str, relative_path: str) -> list[str]:
    """Tags from the top-level directory, filename keywords and code fence languages."""
    tags: dict[str, None] = {}

    parent = PurePosixPath(relative_path).parent.as_posix()
    if parent not in (".", "/"):
        tags[parent.split("/")[0]] = None

    lower_filename = filename.lower()
    for fragment, tag in FILENAME_TAGS:
        if fragment in lower_filename:
            tags[tag] = None

    for match in CODE_FENCE_PATTERN.finditer(content):
        language = match.group(1).lower()
        if language in CODE_LANGUAGES:
            tags[language] = None

    return list(tags)


def _find_markdown_recursive(directory: Path, max_depth: int, depth: int = 0) -> list[Path]:
    if depth >= max_depth:
        return []

    try:
        entries = sorted(directory.iterdir())
    except OSError as e:
        logger.warning(f"Could not list {directory}: {e}")
        return []

    files: list[Path] = []
    for entry in entries:
        if entry.name.startswith("."):
            continue
        if entry.is_dir():
            files.extend(_find_markdown_recursive(entry, max_depth, depth + 1))
        elif entry.is_file() and entry.name.endswith(".md"):
            files.append(entry)
    return files


def find_kb_markdown_files(project_path: Path) -> list[Path]:
    """Canonical root documents that exist, then markdown under the doc directories."""
    files = [project_path / name for name in KB_FILE_PATTERNS if (project_path / name).is_file()]
    for directory in KB_DIRECTORIES:
        if (project_path / directory).is_dir():
            files.extend(_find_markdown_recursive(project_path / directory, MAX_DEPTH))
    return files


def extract_kb_documents_from_project(project_path: str | Path) -> list[ExtractedDocument]:
    """
    Build knowledge-base documents from a project's markdown.

    Files shorter than 50 characters after trimming are skipped; unreadable
    files are logged and skipped.
    """
    root = Path(project_path)
    documents: list[ExtractedDocument] = []

    for file_path in find_kb_markdown_files(root):
        try:
            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read {file_path}: {e}")
            continue

        if len(content.strip()) < MIN_CONTENT_LENGTH:
            continue

        relative_path = file_path.relative_to(root).as_posix()
        documents.append(
            ExtractedDocument(
                title=extract_title(content, file_path.name),
                content=content,
                source=relative_path,
                filename=file_path.name,
                tags=extract_tags(content, file_path.name, relative_path),
            )
        )

    return documents
