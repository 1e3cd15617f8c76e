"""Shared fixtures: isolated logs, a temporary board database, scripted generation."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from agentboard.ai.client import GenerationResponse
from agentboard.logging import LogConfig, set_config
from agentboard.persistence import BoardRepository


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path):
    """Keep JSONL logs out of the user's home directory."""
    set_config(LogConfig(log_dir=tmp_path / "logs"))
    yield


@pytest.fixture
def repo(tmp_path):
    """Fresh board database."""
    repository = BoardRepository(tmp_path / "board.db")
    repository.initialize()
    yield repository
    repository.close()


def make_response(text: str) -> GenerationResponse:
    return GenerationResponse(text=text, model="test-model", provider="openai")


def agent_reply(agent_type: str, tasks: int = 2, priority: str = "high") -> str:
    """A well-formed persona reply with one insight and distinct task titles."""
    return json.dumps(
        {
            "insights": [f"{agent_type} insight about positioning"],
            "tasks": [
                {
                    "title": f"{agent_type} deliverable number {index} for launch",
                    "description": f"Work item {index}",
                    "priority": priority,
                    "reasoning": "Needed",
                }
                for index in range(tasks)
            ],
            "recommendations": ["Keep going"],
        }
    )


def scripted_client(responses: dict | None = None, default: str = "") -> MagicMock:
    """
    Generation client double keyed by the `method` label.

    A value may be a string, an exception instance (raised), or a callable
    taking (system_prompt, user_prompt) and returning a string. Persona calls
    ("agent:<type>") fall back to agent_reply(<type>) when not scripted.
    """
    responses = responses or {}

    async def generate(system_prompt, user_prompt, max_tokens=None, model=None, method="generate"):
        value = responses.get(method)
        if value is None and method.startswith("agent:"):
            value = responses.get("agent:*", agent_reply(method.split(":", 1)[1]))
        if value is None:
            value = default
        if isinstance(value, BaseException):
            raise value
        if callable(value):
            value = value(system_prompt, user_prompt)
        return make_response(value)

    client = MagicMock()
    client.generate = AsyncMock(side_effect=generate)
    return client
