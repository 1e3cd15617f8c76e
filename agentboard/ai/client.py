"""
Generation Client - OpenAI-compatible text generation

Provides the single async capability the rest of AgentBoard depends on:
generate(system_prompt, user_prompt) -> text. OpenAI is called directly,
OpenRouter through its OpenAI-compatible base URL. An authentication failure
on the configured provider is retried once on the alternate provider when
that one has a usable key.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime

from openai import AsyncOpenAI, AuthenticationError, OpenAIError, RateLimitError

from agentboard.config import BoardConfig, is_valid_api_key, load_config
from agentboard.exceptions import (
    GenerationAuthError,
    GenerationConnectionError,
    GenerationRateLimitError,
    GenerationResponseError,
)
from agentboard.logging import GenerationLogEntry, generation_logger, now_iso

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 4096

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
BASE_URLS: dict[str, str | None] = {
    "openai": None,
    "openrouter": OPENROUTER_BASE_URL,
}
OPENROUTER_HEADERS = {"X-Title": "AgentBoard"}


@dataclass
class GenerationResponse:
    """Response from a generation call."""

    text: str
    model: str
    provider: str
    usage: dict[str, int] = field(default_factory=dict)
    finish_reason: str = ""
    created_at: datetime = field(default_factory=datetime.now)


class GenerationClient:
    """
    Async text generation over an OpenAI-compatible chat completions API.

    Usage:
        client = GenerationClient(load_config())
        response = await client.generate(system_prompt, user_prompt, max_tokens=3000)
        print(response.text)
    """

    def __init__(self, config: BoardConfig | None = None, temperature: float = 0.4):
        """
        Initialize generation client.

        Args:
            config: Board configuration (loaded from environment if omitted)
            temperature: Sampling temperature for every call
        """
        self.config = config or load_config()
        self.temperature = temperature

        # One SDK client per provider, created lazily inside the running loop
        self._clients: dict[str, AsyncOpenAI] = {}
        self._client_loop: asyncio.AbstractEventLoop | None = None

        self.total_tokens_used = 0
        self.request_count = 0

    async def _get_client(self, provider: str) -> AsyncOpenAI:
        """Get or create the SDK client for a provider, recreating if the event loop changed."""
        current_loop = asyncio.get_running_loop()

        # asyncio.run() in a CLI command gives each call a fresh loop
        if self._client_loop is not current_loop:
            self._clients = {}
            self._client_loop = current_loop

        if provider not in self._clients:
            self._clients[provider] = AsyncOpenAI(
                api_key=self.config.api_key_for(provider),
                base_url=BASE_URLS[provider],
                default_headers=OPENROUTER_HEADERS if provider == "openrouter" else None,
            )
        return self._clients[provider]

    async def close(self) -> None:
        """Close SDK clients and release resources."""
        for client in self._clients.values():
            await client.close()
        self._clients = {}
        self._client_loop = None

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int | None = None,
        model: str | None = None,
        method: str = "generate",
    ) -> GenerationResponse:
        """
        Generate text for a system/user prompt pair.

        Args:
            system_prompt: Instruction text for the model
            user_prompt: The request itself
            max_tokens: Output token budget (default 4096)
            model: Override the configured model for the provider
            method: Caller label for the generation log

        Returns:
            GenerationResponse with the text and usage metadata

        Raises:
            GenerationAuthError: If no provider accepts its key
            GenerationRateLimitError: If rate limited
            GenerationConnectionError: On any other API or transport failure
            GenerationResponseError: If the response carries no choices
        """
        provider = self.config.provider
        try:
            return await self._complete(
                provider,
                system_prompt,
                user_prompt,
                max_tokens or DEFAULT_MAX_TOKENS,
                model or self.config.model_for(provider),
                method,
            )
        except GenerationAuthError:
            fallback = self.config.fallback_provider()
            if fallback is None or not is_valid_api_key(self.config.api_key_for(fallback)):
                raise GenerationAuthError(
                    "No valid API keys available. Set OPENAI_API_KEY or OPENROUTER_API_KEY",
                    {"provider": provider},
                )
            logger.warning(f"{provider} authentication failed, falling back to {fallback}")
            return await self._complete(
                fallback,
                system_prompt,
                user_prompt,
                max_tokens or DEFAULT_MAX_TOKENS,
                self.config.model_for(fallback),
                method,
            )

    async def _complete(
        self,
        provider: str,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        model: str,
        method: str,
    ) -> GenerationResponse:
        start_time = time.monotonic()
        log_entry = GenerationLogEntry(
            timestamp=now_iso(),
            request_id=str(uuid.uuid4()),
            method=method,
            provider=provider,
            model=model,
            system_prompt=system_prompt[:2000],  # Truncate for log size
            user_prompt=user_prompt[:5000],
            max_tokens=max_tokens,
        )

        try:
            client = await self._get_client(provider)
            response = await client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.temperature,
                max_tokens=max_tokens,
            )

            self.request_count += 1
            if response.usage:
                self.total_tokens_used += response.usage.total_tokens

            if not response.choices:
                raise GenerationResponseError("Empty response from provider", {"model": model})

            choice = response.choices[0]
            text = (choice.message.content if choice.message else None) or ""
            finish_reason = choice.finish_reason or ""
            usage = {
                "prompt_tokens": response.usage.prompt_tokens if response.usage else 0,
                "completion_tokens": response.usage.completion_tokens if response.usage else 0,
                "total_tokens": response.usage.total_tokens if response.usage else 0,
            }

            log_entry.response_content = text[:10000]
            log_entry.model = response.model or model
            log_entry.finish_reason = finish_reason
            log_entry.prompt_tokens = usage["prompt_tokens"]
            log_entry.completion_tokens = usage["completion_tokens"]
            log_entry.total_tokens = usage["total_tokens"]
            log_entry.latency_ms = int((time.monotonic() - start_time) * 1000)
            generation_logger.info(log_entry.to_json())

            if finish_reason == "length":
                logger.warning(f"{method}: response truncated at {max_tokens} tokens")

            return GenerationResponse(
                text=text,
                model=response.model or model,
                provider=provider,
                usage=usage,
                finish_reason=finish_reason,
            )

        except GenerationResponseError:
            log_entry.latency_ms = int((time.monotonic() - start_time) * 1000)
            log_entry.error_type = "GenerationResponseError"
            generation_logger.error(log_entry.to_json())
            raise
        except OpenAIError as e:
            error_msg = str(e)
            log_entry.error = error_msg[:500]
            log_entry.error_type = type(e).__name__
            log_entry.latency_ms = int((time.monotonic() - start_time) * 1000)
            generation_logger.error(log_entry.to_json())

            if isinstance(e, RateLimitError) or "rate_limit" in error_msg.lower():
                raise GenerationRateLimitError(f"Rate limited: {error_msg}")
            if isinstance(e, AuthenticationError) or "authentication" in error_msg.lower():
                raise GenerationAuthError(f"Authentication failed: {error_msg}", {"provider": provider})
            raise GenerationConnectionError(f"API error: {error_msg}", {"provider": provider})

    def get_usage_stats(self) -> dict[str, int | str]:
        """Get usage statistics for this client."""
        return {
            "provider": self.config.provider,
            "model": self.config.model_for(self.config.provider),
            "request_count": self.request_count,
            "total_tokens": self.total_tokens_used,
        }
