"""Markdown mining: checklist/TODO tasks and knowledge-base documents."""

from agentboard.markdown.kb_extractor import ExtractedDocument, extract_kb_documents_from_project
from agentboard.markdown.task_extractor import ExtractedTask, extract_tasks_from_project

__all__ = [
    "ExtractedDocument",
    "ExtractedTask",
    "extract_kb_documents_from_project",
    "extract_tasks_from_project",
]
