"""Records written to the generation and orchestration JSONL logs."""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime


def now_iso() -> str:
    return datetime.now().isoformat()


class _JSONEntry:
    def to_json(self) -> str:
        return json.dumps(asdict(self), default=str)


@dataclass
class GenerationLogEntry(_JSONEntry):
    """One model call. Prompts and replies are truncated by the caller."""

    timestamp: str
    request_id: str
    method: str  # "agent:technical", "analyze_project", "summarize_document", ...

    provider: str = ""
    model: str = ""
    system_prompt: str = ""
    user_prompt: str = ""
    max_tokens: int = 0
    response_content: str = ""
    finish_reason: str = ""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    latency_ms: int = 0

    error: str | None = None
    error_type: str | None = None


@dataclass
class OrchestrationLogEntry(_JSONEntry):
    """One analysis run over a project."""

    timestamp: str
    run_id: str
    project_id: str
    project_name: str = ""

    # Last stage reached: context, analysis, agents, agent_tasks,
    # markdown_tasks, kb_documents, complete
    stage: str = ""
    agent_count: int = 0
    failed_agents: list[str] = field(default_factory=list)
    agent_tasks: int = 0
    markdown_tasks: int = 0
    kb_documents: int = 0
    insights: int = 0

    duration_ms: int = 0
    success: bool = False
    error: str | None = None
    error_type: str | None = None
