"""
AgentBoard - Configuration Management

Settings come from environment variables. Provider selection mirrors the
API-key settings screen: an explicit AI_PROVIDER wins, otherwise the provider
with a usable key is picked.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from agentboard.exceptions import ConfigError


# Configuration paths
CONFIG_DIR = Path.home() / ".config" / "agentboard"
DEFAULT_DB_PATH = CONFIG_DIR / "agentboard.db"

PROVIDERS = ("openai", "openrouter")
DEFAULT_MODELS = {
    "openai": "gpt-4o",
    "openrouter": "anthropic/claude-3.5-sonnet",
}
API_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
}
MODEL_ENV = {
    "openai": "OPENAI_MODEL",
    "openrouter": "OPENROUTER_MODEL",
}

DEFAULT_TASK_CAP = 50

# Values people paste from .env.example files
PLACEHOLDER_PREFIXES = ("your_", "replace_", "insert_", "add_")


def is_valid_api_key(key: str | None) -> bool:
    """Return True if key is non-empty and not a template placeholder."""
    if not key or not key.strip():
        return False
    return not key.lower().startswith(PLACEHOLDER_PREFIXES)


def mask_key(key: str) -> str:
    """Mask an API key for display, keeping the first and last 4 characters."""
    if len(key) <= 8:
        return "*" * len(key)
    return f"{key[:4]}{'*' * (len(key) - 8)}{key[-4:]}"


@dataclass
class BoardConfig:
    """Main configuration container for AgentBoard."""

    provider: str = "openai"
    api_keys: dict[str, str] = field(default_factory=dict)
    models: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_MODELS))
    github_token: str = ""
    db_path: Path = DEFAULT_DB_PATH
    task_cap: int = DEFAULT_TASK_CAP
    isolate_agent_failures: bool = False

    def api_key_for(self, provider: str) -> str:
        """Get the API key configured for a provider (may be empty)."""
        return self.api_keys.get(provider, "")

    def model_for(self, provider: str) -> str:
        """Get the model configured for a provider."""
        return self.models.get(provider) or DEFAULT_MODELS[provider]

    def fallback_provider(self) -> str | None:
        """Return the alternate provider if it has a usable key."""
        for candidate in PROVIDERS:
            if candidate != self.provider and is_valid_api_key(self.api_key_for(candidate)):
                return candidate
        return None

    def describe_api_keys(self) -> dict[str, str | None]:
        """Masked view of configured keys for the settings screen."""
        described: dict[str, str | None] = {}
        for provider in PROVIDERS:
            key = self.api_key_for(provider)
            described[API_KEY_ENV[provider]] = mask_key(key) if key else None
        described["GITHUB_TOKEN"] = mask_key(self.github_token) if self.github_token else None
        return described


def detect_provider(api_keys: dict[str, str], explicit: str | None = None) -> str:
    """
    Pick the generation provider.

    Args:
        api_keys: Provider name to key mapping
        explicit: Value of AI_PROVIDER, if any

    Returns:
        Provider name

    Raises:
        ConfigError: If an explicit provider is unknown
    """
    if explicit:
        explicit = explicit.lower()
        if explicit not in PROVIDERS:
            raise ConfigError(
                f"Unknown AI_PROVIDER '{explicit}'",
                {"supported": list(PROVIDERS)},
            )
        return explicit

    if not is_valid_api_key(api_keys.get("openai")) and is_valid_api_key(api_keys.get("openrouter")):
        return "openrouter"
    return "openai"


def _int_from_env(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    try:
        parsed = int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer", {"value": value})
    if parsed <= 0:
        raise ConfigError(f"{name} must be positive", {"value": value})
    return parsed


def load_config() -> BoardConfig:
    """
    Load configuration from the environment.

    Returns:
        BoardConfig with all settings loaded

    Raises:
        ConfigError: If configuration is invalid
    """
    api_keys = {provider: os.environ.get(env, "") for provider, env in API_KEY_ENV.items()}
    models = {
        provider: os.environ.get(env, "") or DEFAULT_MODELS[provider]
        for provider, env in MODEL_ENV.items()
    }

    config = BoardConfig(
        provider=detect_provider(api_keys, os.environ.get("AI_PROVIDER")),
        api_keys=api_keys,
        models=models,
        github_token=os.environ.get("GITHUB_TOKEN", ""),
        task_cap=_int_from_env("AGENTBOARD_TASK_CAP", DEFAULT_TASK_CAP),
        isolate_agent_failures=os.environ.get("AGENTBOARD_ISOLATE_AGENT_FAILURES", "") in ("1", "true", "yes"),
    )

    if db_path := os.environ.get("AGENTBOARD_DB_PATH"):
        config.db_path = Path(db_path).expanduser()

    return config
