"""Tests for project services: creation, repository merge and knowledge-base uploads."""

import pytest

from agentboard.exceptions import InvalidDocumentError, ProjectNotFoundError, RepositoryMergeError
from agentboard.persistence import DocumentSource
from agentboard.projects import add_repository, create_kb_document, create_project, upload_kb_document

from conftest import scripted_client

DOC = "# Release Process\n\nTag the commit, build the wheel and publish.\n\n```python\nrelease()\n```\n"


class TestCreateProject:
    """Tests for create_project."""

    def test_seeds_agents(self, repo):
        project = create_project(repo, "widgets", "/src/widgets", description="Widgets")
        assert len(repo.list_agents(project.id, active_only=True)) == 7


class TestAddRepository:
    """Tests for merging one project into another."""

    def test_merge(self, repo):
        target = create_project(repo, "shop", "/src/shop")
        source = create_project(
            repo, "shop-api", "/src/shop-api", description="API", repo_url="https://github.com/acme/shop-api"
        )
        repo.create_task(source.id, "Add rate limiting")

        merged = add_repository(repo, target.id, source.id)

        assert merged.repositories == [
            {
                "name": "shop-api",
                "path": "/src/shop-api",
                "repoUrl": "https://github.com/acme/shop-api",
                "description": "API",
            }
        ]
        assert repo.get_project(source.id) is None
        assert repo.list_tasks(target.id)[0].tags == ["shop-api"]

    def test_self_merge(self, repo):
        project = create_project(repo, "shop", "/src/shop")
        with pytest.raises(RepositoryMergeError):
            add_repository(repo, project.id, project.id)

    def test_name_taken(self, repo):
        target = create_project(repo, "shop", "/src/shop")
        first = create_project(repo, "web", "/src/one/web")
        second = create_project(repo, "web", "/src/two/web")
        add_repository(repo, target.id, first.id)

        with pytest.raises(RepositoryMergeError):
            add_repository(repo, target.id, second.id)
        assert repo.get_project(second.id) is not None

    def test_missing_source(self, repo):
        target = create_project(repo, "shop", "/src/shop")
        with pytest.raises(ProjectNotFoundError):
            add_repository(repo, target.id, "missing")


class TestKnowledgeBase:
    """Tests for document creation and upload."""

    def test_slug_suffixes(self, repo):
        first = create_kb_document(repo, "Release Process", DOC)
        second = create_kb_document(repo, "Release Process", DOC)
        assert (first.slug, second.slug) == ("release-process", "release-process-1")
        assert first.source == DocumentSource.MANUAL

    def test_unknown_project(self, repo):
        with pytest.raises(ProjectNotFoundError):
            create_kb_document(repo, "Doc", DOC, project_id="missing")

    @pytest.mark.asyncio
    async def test_upload(self, repo, tmp_path):
        path = tmp_path / "release-guide.md"
        path.write_text(DOC)
        client = scripted_client({"summarize_document": "How releases are cut."})

        document = await upload_kb_document(repo, client, path)

        assert document.title == "Release Process"
        assert document.source == DocumentSource.UPLOAD
        assert document.summary == "How releases are cut."
        assert set(document.tags) == {"guide", "python"}
        assert repo.get_document("release-process").summary == "How releases are cut."

    @pytest.mark.asyncio
    async def test_upload_rejects_non_markdown(self, repo, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text(DOC)
        with pytest.raises(InvalidDocumentError):
            await upload_kb_document(repo, scripted_client(), path)

    @pytest.mark.asyncio
    async def test_upload_rejects_short(self, repo, tmp_path):
        path = tmp_path / "tiny.md"
        path.write_text("# Tiny\n")
        with pytest.raises(InvalidDocumentError):
            await upload_kb_document(repo, scripted_client(), path)

    @pytest.mark.asyncio
    async def test_upload_missing_file(self, repo, tmp_path):
        with pytest.raises(InvalidDocumentError):
            await upload_kb_document(repo, scripted_client(), tmp_path / "gone.md")
