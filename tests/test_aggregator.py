"""Tests for ranking, capping and writing persona tasks."""

import pytest

from agentboard.agents.aggregator import (
    TaskWriter,
    persist_ranked_tasks,
    rank_agent_tasks,
    select_markdown_tasks,
)
from agentboard.agents.types import AgentAnalysis, GeneratedTask
from agentboard.markdown.task_extractor import ExtractedTask
from agentboard.persistence import TaskPriority, TaskStatus


def analysis(agent_type, *tasks):
    return AgentAnalysis(
        agent_type=agent_type,
        tasks=[GeneratedTask(title=title, priority=TaskPriority(priority)) for title, priority in tasks],
    )


class TestRankAgentTasks:
    """Tests for rank_agent_tasks."""

    def test_priority_order_stable_within_level(self):
        """High before medium before low; ties keep persona then list order."""
        analyses = {
            "marketing": analysis("marketing", ("m-low", "low"), ("m-high", "high")),
            "seo": analysis("seo", ("s-high", "high"), ("s-medium", "medium")),
        }
        ranked = rank_agent_tasks(analyses, limit=10)
        assert [r.task.title for r in ranked] == ["m-high", "s-high", "s-medium", "m-low"]
        assert [r.agent_type for r in ranked] == ["marketing", "seo", "seo", "marketing"]

    def test_limit_applied_after_sort(self):
        analyses = {
            "pm": analysis("pm", ("a", "low"), ("b", "low")),
            "technical": analysis("technical", ("c", "high")),
        }
        ranked = rank_agent_tasks(analyses, limit=1)
        assert [r.task.title for r in ranked] == ["c"]
        assert ranked[0].score == 3

    def test_empty(self):
        assert rank_agent_tasks({}, limit=50) == []


class TestSelectMarkdownTasks:
    """Tests for select_markdown_tasks."""

    def make(self, title, priority="medium", done=False):
        return ExtractedTask(title=title, priority=TaskPriority(priority), source="TODO.md", is_completed=done)

    def test_skips_completed_and_sorts(self):
        tasks = [self.make("a", "low"), self.make("b", "high", done=True), self.make("c", "high")]
        assert [t.title for t in select_markdown_tasks(tasks, remaining=5)] == ["c", "a"]

    def test_bounded_by_remaining_and_limit(self):
        tasks = [self.make(str(i)) for i in range(20)]
        assert len(select_markdown_tasks(tasks, remaining=3)) == 3
        assert len(select_markdown_tasks(tasks, remaining=30)) == 10

    def test_no_room(self):
        assert select_markdown_tasks([self.make("a")], remaining=0) == []


class TestTaskWriter:
    """Tests for TaskWriter against a real store."""

    @pytest.fixture
    def project(self, repo):
        return repo.create_project("widgets", "/tmp/widgets")

    def test_orders_continue_after_existing(self, repo, project):
        repo.create_task(project.id, "Existing board item", order=4)
        writer = TaskWriter(repo, project.id)

        task = writer.write("Write onboarding guide", "d", TaskPriority.HIGH, "blogging", "r")

        assert task is not None
        assert task.order == 5
        assert task.status == TaskStatus.TODO
        assert task.agent_type == "blogging"
        assert task.ai_reasoning == "r"

    def test_skips_duplicate_of_board(self, repo, project):
        repo.create_task(project.id, "Set up CI pipeline")
        writer = TaskWriter(repo, project.id)

        assert writer.write("set up CI pipeline", None, TaskPriority.LOW, "pm", None) is None
        assert writer.skipped == ["set up CI pipeline"]
        assert repo.count_tasks(project.id) == 1

    def test_skips_duplicate_within_batch(self, repo, project):
        writer = TaskWriter(repo, project.id)
        writer.write("Create pricing page", None, TaskPriority.HIGH, "pricing", None)
        assert writer.write("Create pricing page for teams", None, TaskPriority.HIGH, "seo", None) is None
        assert len(writer.created) == 1

    def test_persist_ranked_tasks(self, repo, project):
        analyses = {
            "marketing": analysis("marketing", ("Launch announcement on forums", "medium")),
            "technical": analysis(
                "technical", ("Add database indexes", "high"), ("Add database indexes", "high")
            ),
        }
        writer = TaskWriter(repo, project.id)
        created = persist_ranked_tasks(writer, rank_agent_tasks(analyses, limit=10))

        assert [t.title for t in created] == ["Add database indexes", "Launch announcement on forums"]
        assert [t.order for t in created] == [0, 1]
        assert [t.title for t in repo.list_tasks(project.id)] == [t.title for t in created]
