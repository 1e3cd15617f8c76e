"""
Project services

Operations that span several store calls: project creation with its
default agents, folding one project into another as a repository, and
knowledge-base document creation.
"""

import logging
from pathlib import Path

from agentboard.agents.defaults import create_default_agents_for_project, slugify
from agentboard.ai.analysis import summarize_document
from agentboard.ai.client import GenerationClient
from agentboard.exceptions import InvalidDocumentError, ProjectNotFoundError, RepositoryMergeError
from agentboard.markdown.kb_extractor import MIN_CONTENT_LENGTH, extract_tags, extract_title
from agentboard.persistence import BoardRepository, DocumentSource, KnowledgeBaseDocument, Project

logger = logging.getLogger(__name__)

UPLOAD_SUFFIXES = (".md", ".markdown")


def create_project(
    repo: BoardRepository,
    name: str,
    path: str,
    description: str | None = None,
    repo_url: str | None = None,
) -> Project:
    """Create a project and seed its default agents."""
    project = repo.create_project(name=name, path=path, description=description, repo_url=repo_url)
    create_default_agents_for_project(repo, project.id)
    return project


def add_repository(repo: BoardRepository, target_id: str, source_id: str) -> Project:
    """
    Merge a source project into a target as one of its repositories.

    The source's tasks (tagged with the source name) and insights move to
    the target and the source project is deleted.

    Raises:
        ProjectNotFoundError: If either project is missing
        RepositoryMergeError: If the projects are the same or the name is taken
    """
    if target_id == source_id:
        raise RepositoryMergeError("Cannot merge a project into itself", {"project_id": target_id})

    target = repo.get_project(target_id)
    if target is None:
        raise ProjectNotFoundError(target_id)
    source = repo.get_project(source_id)
    if source is None:
        raise ProjectNotFoundError(source_id)

    repositories = list(target.repositories)
    if any(entry.get("name") == source.name for entry in repositories):
        raise RepositoryMergeError(
            "Repository with this name already exists in the project",
            {"name": source.name},
        )

    entry: dict[str, str] = {"name": source.name, "path": source.path}
    if source.repo_url:
        entry["repoUrl"] = source.repo_url
    if source.description:
        entry["description"] = source.description
    repositories.append(entry)

    moved = repo.absorb_project(target_id, source_id, repositories, repository_tag=source.name)
    logger.info(f"Merged {source.name} into {target.name} as a repository ({moved} tasks moved)")

    merged = repo.get_project(target_id)
    if merged is None:
        raise ProjectNotFoundError(target_id)
    return merged


def create_kb_document(
    repo: BoardRepository,
    title: str,
    content: str,
    project_id: str | None = None,
    tags: list[str] | tuple[str, ...] = (),
    source: DocumentSource = DocumentSource.MANUAL,
    summary: str | None = None,
) -> KnowledgeBaseDocument:
    """Store a document under a slug of its title, suffixed -1, -2, ... if taken."""
    if project_id is not None and repo.get_project(project_id) is None:
        raise ProjectNotFoundError(project_id)

    slug = repo.unique_slug(slugify(title) or "document")
    return repo.create_document(
        title=title,
        content=content,
        slug=slug,
        summary=summary,
        source=source,
        project_id=project_id,
        tags=tags,
    )


async def upload_kb_document(
    repo: BoardRepository,
    client: GenerationClient,
    file_path: str | Path,
    project_id: str | None = None,
) -> KnowledgeBaseDocument:
    """
    Store a markdown file as an uploaded document.

    Title comes from the first H1 or the filename; tags from the filename
    and code fences. The summary is generated, with a plain-text fallback.

    Raises:
        InvalidDocumentError: If the file is not markdown, unreadable or too short
    """
    path = Path(file_path)
    if path.suffix.lower() not in UPLOAD_SUFFIXES:
        raise InvalidDocumentError(
            "Only markdown files (.md, .markdown) are supported", {"file": path.name}
        )

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise InvalidDocumentError(f"Could not read {path}: {e}")

    if len(content.strip()) < MIN_CONTENT_LENGTH:
        raise InvalidDocumentError(
            f"File content is too short (minimum {MIN_CONTENT_LENGTH} characters)", {"file": path.name}
        )

    title = extract_title(content, path.name)
    summary = await summarize_document(client, title, content)
    return create_kb_document(
        repo,
        title=title,
        content=content,
        project_id=project_id,
        tags=extract_tags(content, path.name, path.name),
        source=DocumentSource.UPLOAD,
        summary=summary,
    )
