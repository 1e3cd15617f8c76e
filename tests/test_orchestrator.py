"""End-to-end tests for an analysis run over a project on disk."""

import json
import sqlite3
from unittest.mock import MagicMock, patch

import pytest

from agentboard.agents import orchestrator
from agentboard.agents.orchestrator import generate_more_tasks, orchestrate_project_analysis
from agentboard.exceptions import (
    AgentRunError,
    AnalysisInProgressError,
    GenerationConnectionError,
    ProjectNotFoundError,
)
from agentboard.logging import get_config
from agentboard.persistence import DocumentSource, TaskPriority
from agentboard.projects import create_project

from conftest import scripted_client

README = """# Widgets

Widget factory for small teams who need widgets fast.

- [ ] Implement OAuth login flow
- [x] Create database schema
"""

GUIDE = "# Deployment Guide\n\nRun the container behind a reverse proxy and set the env vars.\n"

ANALYSIS = json.dumps(
    {
        "summary": "A widget factory",
        "techStack": ["python", "sqlite"],
        "projectType": "web app",
        "strengths": ["small"],
        "recommendations": ["grow"],
    }
)

RESPONSES = {
    "analyze_project": ANALYSIS,
    "enrich_task": "DESCRIPTION: Add OAuth so teams can sign in.\nREASONING: Password login blocks adoption.",
    "summarize_document": "A short summary.",
}


@pytest.fixture
def project_dir(tmp_path):
    root = tmp_path / "widgets"
    (root / "docs").mkdir(parents=True)
    (root / "README.md").write_text(README)
    (root / "docs" / "deployment.md").write_text(GUIDE)
    return root


@pytest.fixture
def project(repo, project_dir):
    return create_project(repo, "widgets", str(project_dir), description="Widgets for teams")


@pytest.fixture
def github():
    return MagicMock()


def orchestration_log():
    lines = get_config().orchestration_log_path.read_text().splitlines()
    return [json.loads(line) for line in lines]


class TestOrchestrateProjectAnalysis:
    """Tests for a full analysis run."""

    @pytest.mark.asyncio
    async def test_full_run(self, repo, project, github):
        """Seven personas fill the board, then markdown and knowledge-base stages run."""
        client = scripted_client(RESPONSES)

        summary = await orchestrate_project_analysis(project.id, repo, client, github)

        assert summary["agentCount"] == 7
        assert summary["agentTasks"] == 14
        assert summary["markdownTasks"] == 1
        assert summary["totalTasks"] == 15
        assert summary["tasksCreated"] == 15
        assert summary["tasksAvailable"] == 14
        assert summary["taskLimitReached"] is False
        assert summary["kbDocuments"] == 2
        assert summary["totalInsights"] == 7
        assert summary["analysis"]["techStack"] == ["python", "sqlite"]
        assert "failedAgents" not in summary

        insights = repo.list_insights(project.id)
        assert len({insight.agent_type for insight in insights}) == 7

        stored = repo.get_project(project.id)
        assert stored.ai_analysis == "A widget factory"
        assert stored.tech_stack == ["python", "sqlite"]

    @pytest.mark.asyncio
    async def test_board_contents(self, repo, project, github):
        await orchestrate_project_analysis(project.id, repo, scripted_client(RESPONSES), github)

        tasks = repo.list_tasks(project.id)
        assert [task.order for task in tasks] == list(range(15))
        assert all(task.priority == TaskPriority.HIGH for task in tasks[:14])

        markdown_task = tasks[-1]
        assert markdown_task.title == "Implement OAuth login flow"
        assert markdown_task.agent_type == "pm"
        assert markdown_task.description == "Add OAuth so teams can sign in."
        assert markdown_task.ai_reasoning == "Password login blocks adoption."

        documents = {doc.slug: doc for doc in repo.list_documents(project_id=project.id)}
        assert set(documents) == {"widgets", "deployment-guide"}
        assert documents["widgets"].summary == "A short summary."
        assert documents["deployment-guide"].source == DocumentSource.MARKDOWN
        assert "docs" in documents["deployment-guide"].tags

    @pytest.mark.asyncio
    async def test_task_cap_skips_markdown(self, repo, project, github):
        client = scripted_client(RESPONSES)

        summary = await orchestrate_project_analysis(project.id, repo, client, github, task_cap=5)

        assert summary["agentTasks"] == 5
        assert summary["markdownTasks"] == 0
        assert summary["totalTasks"] == 5
        assert summary["tasksAvailable"] == 14
        assert summary["taskLimitReached"] is True
        assert repo.count_tasks(project.id) == 5
        methods = [call.kwargs["method"] for call in client.generate.call_args_list]
        assert "enrich_task" not in methods

    @pytest.mark.asyncio
    async def test_existing_board_titles_deduplicated(self, repo, project, github):
        repo.create_task(project.id, "marketing deliverable number 0 for launch")
        repo.create_task(project.id, "Implement OAuth login flow")

        summary = await orchestrate_project_analysis(project.id, repo, scripted_client(RESPONSES), github)

        assert summary["agentTasks"] == 13
        assert summary["markdownTasks"] == 0
        assert repo.count_tasks(project.id) == 15

    @pytest.mark.asyncio
    async def test_inactive_agents_skipped(self, repo, project, github):
        seo = repo.get_agent_by_type(project.id, "seo")
        repo.update_agent(seo.id, is_active=False)

        summary = await orchestrate_project_analysis(project.id, repo, scripted_client(RESPONSES), github)

        assert summary["agentCount"] == 6
        assert "seo" not in {insight.agent_type for insight in repo.list_insights(project.id)}

    @pytest.mark.asyncio
    async def test_persona_failure_fails_run(self, repo, project, github):
        client = scripted_client({**RESPONSES, "agent:pricing": GenerationConnectionError("down")})

        with pytest.raises(GenerationConnectionError):
            await orchestrate_project_analysis(project.id, repo, client, github)

        assert repo.count_tasks(project.id) == 0
        entry = orchestration_log()[-1]
        assert entry["success"] is False
        assert entry["stage"] == "agents"
        assert entry["error_type"] == "GenerationConnectionError"

    @pytest.mark.asyncio
    async def test_isolated_failure_keeps_others(self, repo, project, github):
        client = scripted_client({**RESPONSES, "agent:pricing": GenerationConnectionError("down")})

        summary = await orchestrate_project_analysis(
            project.id, repo, client, github, isolate_failures=True
        )

        assert list(summary["failedAgents"]) == ["pricing"]
        assert summary["agentTasks"] == 12
        assert summary["totalInsights"] == 6

    @pytest.mark.asyncio
    async def test_isolated_all_failed(self, repo, project, github):
        client = scripted_client({**RESPONSES, "agent:*": GenerationConnectionError("down")})
        with pytest.raises(AgentRunError):
            await orchestrate_project_analysis(project.id, repo, client, github, isolate_failures=True)

    @pytest.mark.asyncio
    async def test_unparseable_analysis_keeps_raw_text(self, repo, project, github):
        client = scripted_client({**RESPONSES, "analyze_project": "Just some prose about widgets."})

        summary = await orchestrate_project_analysis(project.id, repo, client, github)

        assert summary["analysis"]["summary"] == "Just some prose about widgets."
        assert summary["analysis"]["projectType"] == "unknown"

    @pytest.mark.asyncio
    async def test_markdown_stage_failure_degrades(self, repo, project, github):
        with patch.object(orchestrator, "extract_tasks_from_project", side_effect=OSError("disk")):
            summary = await orchestrate_project_analysis(
                project.id, repo, scripted_client(RESPONSES), github
            )

        assert summary["markdownTasks"] == 0
        assert summary["agentTasks"] == 14
        assert summary["kbDocuments"] == 2

    @pytest.mark.asyncio
    async def test_locked_database_in_kb_stage_degrades(self, repo, project, github):
        """A store error while saving documents leaves the run and its tasks intact."""
        with patch.object(repo, "create_document", side_effect=sqlite3.OperationalError("database is locked")):
            summary = await orchestrate_project_analysis(
                project.id, repo, scripted_client(RESPONSES), github
            )

        assert summary["kbDocuments"] == 0
        assert summary["agentTasks"] == 14
        assert summary["markdownTasks"] == 1
        assert orchestration_log()[-1]["success"] is True

    @pytest.mark.asyncio
    async def test_locked_database_in_markdown_stage_degrades(self, repo, project, github):
        with patch.object(
            orchestrator, "extract_tasks_from_project", side_effect=sqlite3.OperationalError("database is locked")
        ):
            summary = await orchestrate_project_analysis(
                project.id, repo, scripted_client(RESPONSES), github
            )

        assert summary["markdownTasks"] == 0
        assert summary["kbDocuments"] == 2

    @pytest.mark.asyncio
    async def test_store_error_before_agents_is_logged(self, repo, project, github):
        with patch.object(
            repo, "update_project_analysis", side_effect=sqlite3.OperationalError("database is locked")
        ):
            with pytest.raises(sqlite3.OperationalError):
                await orchestrate_project_analysis(project.id, repo, scripted_client(RESPONSES), github)

        entry = orchestration_log()[-1]
        assert entry["success"] is False
        assert entry["stage"] == "analysis"
        assert entry["error_type"] == "OperationalError"
        assert "database is locked" in entry["error"]

    @pytest.mark.asyncio
    async def test_summary_failure_uses_fallback(self, repo, project, github):
        client = scripted_client({**RESPONSES, "summarize_document": GenerationConnectionError("down")})

        await orchestrate_project_analysis(project.id, repo, client, github)

        guide = repo.get_document("deployment-guide")
        assert guide.summary.startswith("Run the container")

    @pytest.mark.asyncio
    async def test_success_logged(self, repo, project, github):
        await orchestrate_project_analysis(project.id, repo, scripted_client(RESPONSES), github)

        entry = orchestration_log()[-1]
        assert entry["success"] is True
        assert entry["stage"] == "complete"
        assert entry["agent_count"] == 7
        assert entry["project_name"] == "widgets"

    @pytest.mark.asyncio
    async def test_missing_project(self, repo, github):
        with pytest.raises(ProjectNotFoundError):
            await orchestrate_project_analysis("missing", repo, scripted_client(RESPONSES), github)

    @pytest.mark.asyncio
    async def test_overlapping_run_rejected(self, repo, project, github):
        async with orchestrator._project_lock(project.id):
            with pytest.raises(AnalysisInProgressError):
                await orchestrate_project_analysis(project.id, repo, scripted_client(RESPONSES), github)

        summary = await orchestrate_project_analysis(project.id, repo, scripted_client(RESPONSES), github)
        assert summary["agentCount"] == 7
        assert project.id not in orchestrator._project_locks

    @pytest.mark.asyncio
    async def test_guard_released_after_failed_run(self, repo, github):
        with pytest.raises(ProjectNotFoundError):
            await orchestrate_project_analysis("missing", repo, scripted_client(RESPONSES), github)
        assert "missing" not in orchestrator._project_locks


class TestGenerateMoreTasks:
    """Tests for generate_more_tasks."""

    @pytest.mark.asyncio
    async def test_adds_top_tasks(self, repo, project):
        repo.create_task(project.id, "Existing item on the board")
        client = scripted_client()

        result = await generate_more_tasks(project.id, repo, client, count=3)

        assert result == {"tasksGenerated": 3, "totalTasks": 4}
        assert [task.order for task in repo.list_tasks(project.id)] == [0, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_context_is_name_and_description(self, repo, project):
        client = scripted_client()

        await generate_more_tasks(project.id, repo, client, count=1)

        user_prompt = client.generate.call_args_list[0].args[1]
        assert "**Project:** widgets" in user_prompt
        assert "**Description:** Widgets for teams" in user_prompt
        assert "**README:**" not in user_prompt

    @pytest.mark.asyncio
    async def test_repeat_generation_deduplicates(self, repo, project):
        await generate_more_tasks(project.id, repo, scripted_client(), count=5)

        result = await generate_more_tasks(project.id, repo, scripted_client(), count=5)

        assert result == {"tasksGenerated": 0, "totalTasks": 5}

    @pytest.mark.asyncio
    async def test_missing_project(self, repo):
        with pytest.raises(ProjectNotFoundError):
            await generate_more_tasks("missing", repo, scripted_client())
