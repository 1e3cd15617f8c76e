"""Tests for repository discovery."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from agentboard.projects import create_project
from agentboard.scanner import (
    ScannedProject,
    detect_multi_repo_structure,
    extract_description,
    get_git_remote_url,
    normalize_remote_url,
    register_scanned_projects,
    scan_directory,
)


def make_repo(path, readme=None):
    (path / ".git").mkdir(parents=True)
    if readme is not None:
        (path / "README.md").write_text(readme)
    return path


@pytest.fixture
def no_remote():
    with patch("agentboard.scanner.get_git_remote_url", return_value=None) as mock:
        yield mock


class TestRemoteUrl:
    """Tests for origin URL lookup."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("git@github.com:acme/widgets.git\n", "https://github.com/acme/widgets"),
            ("https://github.com/acme/widgets.git", "https://github.com/acme/widgets"),
            ("https://gitlab.com/acme/widgets", "https://gitlab.com/acme/widgets"),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_remote_url(raw) == expected

    def test_reads_origin(self, tmp_path):
        result = MagicMock(returncode=0, stdout="git@github.com:acme/widgets.git\n")
        with patch("agentboard.scanner.subprocess.run", return_value=result) as run:
            assert get_git_remote_url(tmp_path) == "https://github.com/acme/widgets"
        assert run.call_args.args[0] == ["git", "remote", "get-url", "origin"]

    def test_no_origin(self, tmp_path):
        result = MagicMock(returncode=2, stdout="")
        with patch("agentboard.scanner.subprocess.run", return_value=result):
            assert get_git_remote_url(tmp_path) is None

    def test_git_missing(self, tmp_path):
        with patch("agentboard.scanner.subprocess.run", side_effect=FileNotFoundError):
            assert get_git_remote_url(tmp_path) is None

    def test_timeout(self, tmp_path):
        with patch("agentboard.scanner.subprocess.run", side_effect=subprocess.TimeoutExpired("git", 10)):
            assert get_git_remote_url(tmp_path) is None


class TestExtractDescription:
    """Tests for README description extraction."""

    def test_skips_headings_and_badges(self):
        readme = "# Widgets\n![build](badge.svg)\n\nMakes widgets quickly.\nMore."
        assert extract_description(readme) == "Makes widgets quickly."

    def test_truncates(self):
        assert len(extract_description("x" * 500)) == 200

    def test_nothing_usable(self):
        assert extract_description("# Title\n## Sub") is None
        assert extract_description(None) is None


class TestMultiRepoDetection:
    """Tests for detect_multi_repo_structure."""

    def test_child_name_under_product_dir(self):
        assert detect_multi_repo_structure("acme-api", "acme", None) == ("acme", True)

    def test_parent_from_url(self):
        suggested, is_child = detect_multi_repo_structure(
            "something", "projects", "https://github.com/acme/shop-frontend"
        )
        assert suggested == "shop"
        assert is_child

    def test_generic_parent_ignored(self):
        assert detect_multi_repo_structure("widgets", "code", None) == (None, False)


class TestScanDirectory:
    """Tests for scan_directory."""

    def test_children(self, tmp_path, no_remote):
        make_repo(tmp_path / "beta", readme="# Beta\nBeta service.")
        make_repo(tmp_path / "alpha")
        make_repo(tmp_path / ".hidden")
        (tmp_path / "plain").mkdir()

        scanned = scan_directory(tmp_path)

        assert [s.name for s in scanned] == ["alpha", "beta"]
        assert scanned[1].description == "Beta service."
        assert scanned[1].readme_content.startswith("# Beta")

    def test_directory_is_repo(self, tmp_path, no_remote):
        root = make_repo(tmp_path / "solo")
        make_repo(root / "nested")

        scanned = scan_directory(root)

        assert [s.path for s in scanned] == [str(root.resolve())]

    def test_unreadable(self, tmp_path):
        assert scan_directory(tmp_path / "missing") == []


class TestRegisterScannedProjects:
    """Tests for register_scanned_projects."""

    def test_creates_and_skips_known(self, repo):
        repo.create_project("known", "/src/known")
        scanned = [
            ScannedProject(name="known", path="/src/known"),
            ScannedProject(name="fresh", path="/src/fresh", repo_url="https://github.com/acme/fresh"),
        ]

        result = register_scanned_projects(repo, scanned)

        assert [p.name for p in result.created] == ["fresh"]
        assert result.skipped == ["/src/known"]
        fresh = result.created[0]
        assert repo.get_project(fresh.id).repo_url == "https://github.com/acme/fresh"
        assert len(repo.list_agents(fresh.id)) == 7

    def test_uses_project_service(self, repo):
        """Registration goes through the same create path as manual adds."""
        scanned = [ScannedProject(name="fresh", path="/src/fresh", description="Fresh repo")]

        with patch("agentboard.scanner.create_project", wraps=create_project) as service:
            register_scanned_projects(repo, scanned)

        service.assert_called_once_with(repo, "fresh", "/src/fresh", description="Fresh repo", repo_url=None)
