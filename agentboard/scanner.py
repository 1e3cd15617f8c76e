"""
Project discovery

Finds git repositories on disk and turns them into projects. A directory
that is itself a repository yields just itself; otherwise each non-hidden
child directory containing .git is a candidate.
"""

import logging
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from agentboard.integrations.github import GITHUB_URL_PATTERN
from agentboard.persistence import BoardRepository, Project
from agentboard.projects import create_project

logger = logging.getLogger(__name__)

README_NAMES = ("README.md", "readme.md", "README.MD", "README", "readme")

CHILD_REPO_INDICATORS = (
    "web", "frontend", "client", "ui", "app",
    "api", "backend", "server", "services",
    "mobile", "ios", "android",
    "docs", "documentation",
    "infra", "infrastructure", "terraform", "k8s", "deployment",
    "shared", "common", "lib", "packages",
    "admin", "dashboard",
)

GENERIC_PARENT_NAMES = {"projects", "code", "repos", "git", "workspace", "dev", "work"}


@dataclass
class ScannedProject:
    """A repository found on disk."""

    name: str
    path: str
    description: str | None = None
    repo_url: str | None = None
    has_git: bool = True
    readme_content: str | None = None
    suggested_parent_name: str | None = None
    is_likely_child_repo: bool = False


@dataclass
class RegistrationResult:
    """Outcome of registering scanned projects."""

    created: list[Project] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def is_git_repo(path: Path) -> bool:
    return (path / ".git").exists()


def normalize_remote_url(url: str) -> str:
    """git@host:owner/repo.git -> https://host/owner/repo; trailing .git removed."""
    url = url.strip()
    if url.startswith("git@"):
        url = re.sub(r"^git@([^:]+):", r"https://\1/", url)
    return re.sub(r"\.git$", "", url)


def get_git_remote_url(path: Path) -> str | None:
    """Normalized origin URL, or None if there is no origin or git is unavailable."""
    try:
        result = subprocess.run(
            ["git", "remote", "get-url", "origin"],
            cwd=path,
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        logger.debug(f"git remote lookup failed for {path}: {e}")
        return None

    if result.returncode != 0 or not result.stdout.strip():
        return None
    return normalize_remote_url(result.stdout)


def read_readme(path: Path) -> str | None:
    for name in README_NAMES:
        try:
            return (path / name).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            continue
    return None


def extract_description(readme: str | None) -> str | None:
    """First non-heading, non-image line within the first 20 lines, cut to 200 chars."""
    if not readme:
        return None
    for line in readme.split("\n")[:20]:
        line = line.strip()
        if line and not line.startswith("#") and not line.startswith("!"):
            return line[:200]
    return None


def detect_multi_repo_structure(
    name: str,
    parent_dir_name: str,
    repo_url: str | None,
) -> tuple[str | None, bool]:
    """
    Guess whether a repository is one part of a multi-repo product.

    Returns:
        (suggested parent name, is likely a child repo)
    """
    lower_name = name.lower()
    is_child_name = any(
        lower_name == indicator or f"-{indicator}" in lower_name or f"_{indicator}" in lower_name
        for indicator in CHILD_REPO_INDICATORS
    )

    parent_from_url = None
    if repo_url:
        match = GITHUB_URL_PATTERN.search(repo_url)
        if match:
            repo_name = match.group(2)
            for indicator in CHILD_REPO_INDICATORS:
                if repo_name.endswith(f"-{indicator}"):
                    parent_from_url = repo_name[: -len(indicator) - 1]
                    break

    parent_is_generic = parent_dir_name.lower() in GENERIC_PARENT_NAMES
    suggested = parent_from_url or (None if parent_is_generic else parent_dir_name)
    return suggested, is_child_name or parent_from_url is not None


def inspect_project(path: Path, name: str | None = None) -> ScannedProject:
    """Collect metadata for one repository directory."""
    name = name or path.name
    has_git = is_git_repo(path)
    readme = read_readme(path)
    repo_url = get_git_remote_url(path) if has_git else None
    suggested_parent, is_child = detect_multi_repo_structure(name, path.parent.name, repo_url)

    return ScannedProject(
        name=name,
        path=str(path),
        description=extract_description(readme),
        repo_url=repo_url,
        has_git=has_git,
        readme_content=readme,
        suggested_parent_name=suggested_parent,
        is_likely_child_repo=is_child,
    )


def scan_directory(dir_path: str | Path) -> list[ScannedProject]:
    """
    Find repositories at or directly below dir_path.

    Returns an empty list if the directory cannot be read.
    """
    root = Path(dir_path).expanduser().resolve()

    if is_git_repo(root):
        return [inspect_project(root)]

    try:
        entries = sorted(root.iterdir())
    except OSError as e:
        logger.error(f"Error scanning directory {root}: {e}")
        return []

    return [
        inspect_project(entry)
        for entry in entries
        if entry.is_dir() and not entry.name.startswith(".") and is_git_repo(entry)
    ]


def register_scanned_projects(repo: BoardRepository, scanned: list[ScannedProject]) -> RegistrationResult:
    """Create projects (with default agents) for new paths; already-known paths are skipped."""
    result = RegistrationResult()
    for item in scanned:
        if repo.get_project_by_path(item.path) is not None:
            result.skipped.append(item.path)
            continue
        project = create_project(
            repo, item.name, item.path, description=item.description, repo_url=item.repo_url
        )
        result.created.append(project)
    return result
