"""
AgentBoard - Exception Hierarchy

All AgentBoard-specific exceptions inherit from AgentBoardError and carry an
optional details dict that is appended to the string form.
"""

from typing import Any


class AgentBoardError(Exception):
    """Base exception for all AgentBoard errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# Configuration Errors
class ConfigError(AgentBoardError):
    """Raised when configuration is invalid or missing."""

    pass


# Project Errors
class ProjectNotFoundError(AgentBoardError):
    """Raised when a project id does not exist in the store."""

    def __init__(self, project_id: str):
        super().__init__("Project not found", {"project_id": project_id})
        self.project_id = project_id


class AnalysisInProgressError(AgentBoardError):
    """Raised when an analysis is already running for the same project."""

    def __init__(self, project_id: str):
        super().__init__("Analysis already in progress", {"project_id": project_id})
        self.project_id = project_id


class RepositoryMergeError(AgentBoardError):
    """Raised when a project cannot be merged into another as a repository."""

    pass


# Generation (LLM provider) Errors
class GenerationError(AgentBoardError):
    """Base exception for text generation errors."""

    pass


class GenerationConnectionError(GenerationError):
    """Raised when the provider cannot be reached or returns an API error."""

    pass


class GenerationAuthError(GenerationError):
    """Raised when the provider rejects the API key."""

    pass


class GenerationRateLimitError(GenerationError):
    """Raised when the provider rate limit is hit."""

    def __init__(self, message: str, retry_after: int | None = None):
        super().__init__(message, {"retry_after": retry_after})
        self.retry_after = retry_after


class GenerationResponseError(GenerationError):
    """Raised when the provider returns a response without content."""

    pass


class AgentRunError(GenerationError):
    """Raised when every persona in an isolated agent run failed."""

    def __init__(self, message: str, failures: dict[str, str]):
        super().__init__(message, {"failures": failures})
        self.failures = failures


# Integration Errors
class GitHubError(AgentBoardError):
    """Base exception for GitHub CLI errors."""

    pass


# Persistence Errors
class PersistenceError(AgentBoardError):
    """Base exception for store errors."""

    pass


class DuplicateProjectError(PersistenceError):
    """Raised when a project path is already registered."""

    pass


class DuplicateAgentError(PersistenceError):
    """Raised when an agent type already exists for a project."""

    pass


class TaskNotFoundError(PersistenceError):
    """Raised when a task id does not exist."""

    pass


class AgentNotFoundError(PersistenceError):
    """Raised when an agent id does not exist."""

    pass


class DocumentNotFoundError(PersistenceError):
    """Raised when a knowledge-base slug does not exist."""

    pass


# Knowledge Base Errors
class InvalidDocumentError(AgentBoardError):
    """Raised when a document is rejected before storage (wrong type, too short)."""

    pass
