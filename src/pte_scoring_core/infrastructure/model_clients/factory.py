"""
Model client factory

Creates the appropriate client instance for a provider name.
"""

from __future__ import annotations

from pte_scoring_core.domain.constants import ProviderName
from pte_scoring_core.scoring_config import ScoringConfig, load_config
from pte_scoring_core.infrastructure.model_clients.base import ModelClient
from pte_scoring_core.infrastructure.model_clients.claude import ClaudeClient
from pte_scoring_core.infrastructure.model_clients.gemini import GeminiClient
from pte_scoring_core.infrastructure.model_clients.openai_client import OpenAIClient


def create_client(provider: str, config: ScoringConfig | None = None) -> ModelClient:
    """
    Create the appropriate client for a provider

    Args:
        provider: Provider name (openai, gemini, claude)
        config: ScoringConfig (loads from env if not provided)

    Returns:
        ModelClient: The appropriate client instance

    Raises:
        ValueError: When the provider is unknown or its credential is missing
    """
    if config is None:
        config = load_config()

    retries = config.providers.max_retries
    name = str(getattr(provider, "value", provider)).lower()

    if name == ProviderName.OPENAI.value:
        return OpenAIClient(
            config.openai.model,
            api_key=config.openai.api_key,
            base_url=config.openai.base_url,
            max_retries=retries,
        )
    elif name == ProviderName.GEMINI.value:
        return GeminiClient(
            config.gemini.model,
            api_key=config.gemini.api_key,
            fallback_model=config.gemini.fallback_model,
            max_retries=retries,
        )
    elif name == ProviderName.CLAUDE.value:
        return ClaudeClient(
            config.claude.model,
            api_key=config.claude.api_key,
            max_retries=retries,
        )
    raise ValueError(f"Unknown provider: {provider}")
