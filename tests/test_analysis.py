"""Tests for the single-call analyses."""

import pytest

from agentboard.agents.types import ProjectContext
from agentboard.ai.analysis import analyze_project, enrich_task, fallback_summary, summarize_document
from agentboard.exceptions import GenerationConnectionError
from agentboard.markdown.task_extractor import ExtractedTask
from agentboard.persistence import TaskPriority

from conftest import scripted_client


@pytest.fixture
def context():
    return ProjectContext(name="widgets", description="Widget factory", tech_stack=["python"])


@pytest.fixture
def task():
    return ExtractedTask(title="Implement search endpoint", priority=TaskPriority.HIGH, source="TODO.md")


class TestAnalyzeProject:
    """Tests for analyze_project."""

    @pytest.mark.asyncio
    async def test_structured(self, context):
        client = scripted_client(
            {"analyze_project": '```json\n{"summary": "S", "techStack": ["go"], "projectType": "CLI tool"}\n```'}
        )
        analysis = await analyze_project(client, context)
        assert analysis.summary == "S"
        assert analysis.tech_stack == ["go"]
        assert analysis.project_type == "CLI tool"
        assert analysis.strengths == []

    @pytest.mark.asyncio
    async def test_raw_fallback_truncated(self, context):
        client = scripted_client({"analyze_project": "p" * 800})
        analysis = await analyze_project(client, context)
        assert analysis.summary == "p" * 500
        assert analysis.tech_stack == []

    @pytest.mark.asyncio
    async def test_errors_propagate(self, context):
        client = scripted_client({"analyze_project": GenerationConnectionError("down")})
        with pytest.raises(GenerationConnectionError):
            await analyze_project(client, context)


class TestSummarizeDocument:
    """Tests for summarize_document."""

    @pytest.mark.asyncio
    async def test_generated(self):
        client = scripted_client({"summarize_document": "  Explains setup.  "})
        assert await summarize_document(client, "Setup", "content") == "Explains setup."
        assert client.generate.call_args.kwargs["max_tokens"] == 200

    @pytest.mark.asyncio
    async def test_fallback(self):
        client = scripted_client({"summarize_document": GenerationConnectionError("down")})
        content = "# Setup\nshort\nInstall the package with pip and run it."
        assert await summarize_document(client, "Setup", content) == "Install the package with pip and run it."

    def test_fallback_default(self):
        assert fallback_summary("# Only a heading\ntiny") == "Documentation"


class TestEnrichTask:
    """Tests for enrich_task."""

    @pytest.mark.asyncio
    async def test_parses_sections(self, context, task):
        client = scripted_client(
            {"enrich_task": "DESCRIPTION: Add a /search route.\nSpans lines.\nREASONING: Users need it."}
        )
        enriched = await enrich_task(client, task, context, "- [ ] Implement search endpoint")

        assert enriched.title == task.title
        assert enriched.description == "Add a /search route.\nSpans lines."
        assert enriched.reasoning == "Users need it."
        assert enriched.priority == TaskPriority.HIGH
        assert "Tech Stack: python" in client.generate.call_args.args[1]

    @pytest.mark.asyncio
    async def test_missing_sections(self, context, task):
        client = scripted_client({"enrich_task": "no markers here"})
        enriched = await enrich_task(client, task, context)
        assert enriched.description == "Implement search endpoint. Extracted from TODO.md."
        assert enriched.reasoning == "Task identified in TODO.md as part of project development goals."

    @pytest.mark.asyncio
    async def test_generation_failure(self, context, task):
        client = scripted_client({"enrich_task": GenerationConnectionError("down")})
        enriched = await enrich_task(client, task, context)
        assert enriched.description == "Extracted from TODO.md"
        assert enriched.reasoning == "Task extracted from TODO.md as part of project development."
