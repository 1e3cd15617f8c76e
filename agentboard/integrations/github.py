"""
GitHub Integration

Read-only access to pull requests, issues and repository metadata through
the gh CLI's REST passthrough (gh api). Public fetchers are best-effort:
failures are logged and come back as an empty list or None.
"""

import asyncio
import json
import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from agentboard.exceptions import GitHubError

logger = logging.getLogger(__name__)

GITHUB_URL_PATTERN = re.compile(r"github\.com[/:]([^/]+)/([^/.]+)")
PER_PAGE = 50


@dataclass
class PullRequestInfo:
    """Information about a GitHub pull request."""

    number: int
    title: str
    state: str = "open"
    url: str = ""
    author: str = ""
    draft: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class IssueInfo:
    """Information about a GitHub issue."""

    number: int
    title: str
    state: str = "open"
    url: str = ""
    labels: list[str] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class RepoInfo:
    """Repository metadata used to enrich project context."""

    description: str | None = None
    stars: int = 0
    language: str | None = None
    topics: list[str] = field(default_factory=list)
    homepage: str | None = None


def parse_github_url(url: str) -> tuple[str, str] | None:
    """
    Extract (owner, repo) from an HTTPS or SSH GitHub URL.

    >>> parse_github_url("git@github.com:acme/widgets.git")
    ('acme', 'widgets')
    """
    match = GITHUB_URL_PATTERN.search(url)
    if not match:
        return None
    return match.group(1), match.group(2)


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _records(data: Any) -> list[dict[str, Any]]:
    """Dict items of a list payload; anything else yields nothing."""
    if not isinstance(data, list):
        return []
    return [item for item in data if isinstance(item, dict)]


class GitHubClient:
    """
    GitHub REST reads via the gh CLI.

    gh handles authentication; a configured token is passed through as GH_TOKEN.
    """

    def __init__(self, token: str | None = None, timeout: float = 30.0):
        self.token = token
        self.timeout = timeout

    async def _api(self, endpoint: str) -> Any:
        """
        Run `gh api <endpoint>` and decode its JSON output.

        Raises:
            GitHubError: If gh is missing, times out, fails or prints invalid JSON
        """
        env = dict(os.environ)
        if self.token:
            env["GH_TOKEN"] = self.token

        try:
            process = await asyncio.create_subprocess_exec(
                "gh",
                "api",
                "-H",
                "Accept: application/vnd.github+json",
                endpoint,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except FileNotFoundError:
            raise GitHubError("gh CLI not found")

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise GitHubError(f"gh api timed out after {self.timeout}s", {"endpoint": endpoint})

        if process.returncode != 0:
            raise GitHubError(
                f"gh api failed: {stderr.decode(errors='replace').strip()}",
                {"endpoint": endpoint, "returncode": process.returncode},
            )

        try:
            return json.loads(stdout.decode()) if stdout else None
        except json.JSONDecodeError as e:
            raise GitHubError(f"Invalid JSON from gh api: {e}", {"endpoint": endpoint})

    async def get_open_prs(self, owner: str, repo: str) -> list[PullRequestInfo]:
        """Open pull requests, or [] on any failure. Malformed items are skipped."""
        try:
            data = await self._api(f"repos/{owner}/{repo}/pulls?state=open&per_page={PER_PAGE}")
        except GitHubError as e:
            logger.error(f"Error fetching PRs for {owner}/{repo}: {e}")
            return []

        prs = []
        for item in _records(data):
            try:
                prs.append(
                    PullRequestInfo(
                        number=int(item["number"]),
                        title=str(item["title"]),
                        state=item.get("state", "open"),
                        url=item.get("html_url", ""),
                        author=(item.get("user") or {}).get("login", ""),
                        draft=bool(item.get("draft", False)),
                        created_at=_parse_timestamp(item.get("created_at")),
                        updated_at=_parse_timestamp(item.get("updated_at")),
                    )
                )
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Skipping malformed PR from {owner}/{repo}: {e}")
        return prs

    async def get_open_issues(self, owner: str, repo: str) -> list[IssueInfo]:
        """Open issues excluding pull requests, or [] on any failure. Malformed items are skipped."""
        try:
            data = await self._api(f"repos/{owner}/{repo}/issues?state=open&per_page={PER_PAGE}")
        except GitHubError as e:
            logger.error(f"Error fetching issues for {owner}/{repo}: {e}")
            return []

        issues = []
        for item in _records(data):
            # The issues endpoint also returns pull requests
            if "pull_request" in item:
                continue
            try:
                issues.append(
                    IssueInfo(
                        number=int(item["number"]),
                        title=str(item["title"]),
                        state=item.get("state", "open"),
                        url=item.get("html_url", ""),
                        labels=[label["name"] for label in item.get("labels") or []],
                        created_at=_parse_timestamp(item.get("created_at")),
                        updated_at=_parse_timestamp(item.get("updated_at")),
                    )
                )
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Skipping malformed issue from {owner}/{repo}: {e}")
        return issues

    async def get_repo_info(self, owner: str, repo: str) -> RepoInfo | None:
        """Repository metadata, or None on any failure."""
        try:
            data = await self._api(f"repos/{owner}/{repo}")
        except GitHubError as e:
            logger.error(f"Error fetching repo info for {owner}/{repo}: {e}")
            return None

        if not isinstance(data, dict) or not data:
            return None
        topics = data.get("topics")
        return RepoInfo(
            description=data.get("description"),
            stars=data.get("stargazers_count") or 0,
            language=data.get("language"),
            topics=[str(topic) for topic in topics] if isinstance(topics, list) else [],
            homepage=data.get("homepage"),
        )
