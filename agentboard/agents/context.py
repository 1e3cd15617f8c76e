"""
Context Builder

Assembles the project context fed into every persona prompt. Each source
(README, manifest, directory listing, GitHub) is best-effort: a missing or
unreadable one leaves its field empty.
"""

import asyncio
import json
import logging
import tomllib
from pathlib import Path
from typing import Any

from agentboard.agents.types import ProjectContext
from agentboard.integrations.github import GitHubClient, parse_github_url
from agentboard.persistence import BoardRepository, Project

logger = logging.getLogger(__name__)

SKIPPED_DIRECTORIES = {"node_modules"}
MAX_SUBENTRIES = 10


def read_readme(project_path: Path) -> str | None:
    try:
        return (project_path / "README.md").read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def read_manifest(project_path: Path) -> dict[str, Any] | None:
    """First readable dependency manifest: package.json, then pyproject.toml."""
    try:
        data = json.loads((project_path / "package.json").read_text(encoding="utf-8"))
        if isinstance(data, dict):
            return data
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        pass

    try:
        with open(project_path / "pyproject.toml", "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return None


def get_code_structure(project_path: Path) -> str:
    """
    Two-level listing of a project directory.

    Hidden entries and node_modules are skipped at the top level; each
    subdirectory shows at most its first 10 entries, minus hidden ones.
    """
    try:
        entries = sorted(project_path.iterdir(), key=lambda p: p.name)
    except OSError:
        return "Unable to read project structure"

    lines: list[str] = []
    for entry in entries:
        if entry.name.startswith(".") or entry.name in SKIPPED_DIRECTORIES:
            continue

        if entry.is_dir():
            lines.append(f"📁 {entry.name}/")
            try:
                children = sorted(entry.iterdir(), key=lambda p: p.name)[:MAX_SUBENTRIES]
            except OSError:
                continue
            for child in children:
                if not child.name.startswith("."):
                    lines.append(f"  {'📁' if child.is_dir() else '📄'} {child.name}")
        else:
            lines.append(f"📄 {entry.name}")

    return "\n".join(lines)


async def build_project_context(
    project: Project,
    repo: BoardRepository,
    github: GitHubClient | None = None,
) -> ProjectContext:
    """
    Build the context bundle for a stored project.

    When the project's repository URL parses as GitHub, the owner/repo are
    saved on the project first, then PRs, issues and repo metadata are
    fetched concurrently. Repo topics replace the tech stack; the repo
    description fills in a missing project description.
    """
    project_path = Path(project.path)
    context = ProjectContext(
        name=project.name,
        description=project.description,
        repo_url=project.repo_url,
        readme=read_readme(project_path),
        manifest=read_manifest(project_path),
        code_structure=get_code_structure(project_path),
    )

    if not project.repo_url:
        return context

    identifiers = parse_github_url(project.repo_url)
    if identifiers is None:
        logger.debug(f"Not a GitHub URL, skipping enrichment: {project.repo_url}")
        return context

    owner, name = identifiers
    repo.set_github_identifiers(project.id, owner, name)

    github = github or GitHubClient()
    prs, issues, repo_info = await asyncio.gather(
        github.get_open_prs(owner, name),
        github.get_open_issues(owner, name),
        github.get_repo_info(owner, name),
    )
    context.open_prs = prs
    context.open_issues = issues

    if repo_info is not None:
        if not context.description and repo_info.description:
            context.description = repo_info.description
        if repo_info.topics:
            context.tech_stack = list(repo_info.topics)

    return context
