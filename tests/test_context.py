"""Tests for the project context builder."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from agentboard.agents.context import build_project_context, get_code_structure, read_manifest
from agentboard.integrations.github import IssueInfo, PullRequestInfo, RepoInfo


@pytest.fixture
def project_dir(tmp_path):
    root = tmp_path / "widgets"
    root.mkdir()
    (root / "README.md").write_text("# Widgets\nMakes widgets.")
    (root / "package.json").write_text(json.dumps({"name": "widgets", "dependencies": {"react": "18"}}))
    (root / "src").mkdir()
    for index in range(12):
        (root / "src" / f"file{index:02d}.ts").write_text("")
    (root / "src" / ".env").write_text("")
    (root / "node_modules").mkdir()
    (root / ".git").mkdir()
    return root


@pytest.fixture
def github():
    client = MagicMock()
    client.get_open_prs = AsyncMock(return_value=[PullRequestInfo(number=3, title="Add dark mode")])
    client.get_open_issues = AsyncMock(return_value=[IssueInfo(number=9, title="Crash")])
    client.get_repo_info = AsyncMock(
        return_value=RepoInfo(description="Widget factory", topics=["react", "typescript"])
    )
    return client


class TestCodeStructure:
    """Tests for get_code_structure."""

    def test_two_level_listing(self, project_dir):
        lines = get_code_structure(project_dir).split("\n")
        assert "📁 src/" in lines
        assert "📄 README.md" in lines
        assert not any("node_modules" in line or ".git" in line for line in lines)
        children = [line for line in lines if line.startswith("  ")]
        # first 10 entries of src, hidden .env among them is dropped
        assert children[0] == "  📄 file00.ts"
        assert len(children) == 9

    def test_unreadable_directory(self, tmp_path):
        assert get_code_structure(tmp_path / "missing") == "Unable to read project structure"


class TestReadManifest:
    """Tests for read_manifest."""

    def test_package_json(self, project_dir):
        assert read_manifest(project_dir)["dependencies"] == {"react": "18"}

    def test_pyproject_fallback(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "tool"\n')
        assert read_manifest(tmp_path) == {"project": {"name": "tool"}}

    def test_none(self, tmp_path):
        assert read_manifest(tmp_path) is None


class TestBuildProjectContext:
    """Tests for build_project_context."""

    @pytest.mark.asyncio
    async def test_local_only(self, repo, project_dir, github):
        project = repo.create_project("widgets", str(project_dir), description="Local")

        context = await build_project_context(project, repo, github)

        assert context.readme.startswith("# Widgets")
        assert context.manifest["name"] == "widgets"
        assert context.description == "Local"
        assert context.open_prs == []
        github.get_open_prs.assert_not_called()

    @pytest.mark.asyncio
    async def test_github_enrichment(self, repo, project_dir, github):
        project = repo.create_project(
            "widgets", str(project_dir), repo_url="https://github.com/acme/widgets"
        )

        context = await build_project_context(project, repo, github)

        github.get_open_prs.assert_awaited_once_with("acme", "widgets")
        assert [pr.number for pr in context.open_prs] == [3]
        assert [issue.number for issue in context.open_issues] == [9]
        assert context.description == "Widget factory"
        assert context.tech_stack == ["react", "typescript"]

        stored = repo.get_project(project.id)
        assert (stored.github_owner, stored.github_repo) == ("acme", "widgets")

    @pytest.mark.asyncio
    async def test_repo_description_does_not_override(self, repo, project_dir, github):
        project = repo.create_project(
            "widgets", str(project_dir), description="Mine", repo_url="git@github.com:acme/widgets.git"
        )
        context = await build_project_context(project, repo, github)
        assert context.description == "Mine"

    @pytest.mark.asyncio
    async def test_non_github_url(self, repo, project_dir, github):
        project = repo.create_project("widgets", str(project_dir), repo_url="https://gitlab.com/acme/widgets")
        context = await build_project_context(project, repo, github)
        assert context.repo_url == "https://gitlab.com/acme/widgets"
        github.get_repo_info.assert_not_called()
