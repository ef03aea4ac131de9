"""
Provider factory

Builds provider adapters from configuration. A backend that cannot be
constructed (missing credential, unknown name) becomes an UnavailableProvider
instead of raising.
"""

from __future__ import annotations

import logging

from pte_scoring_core.scoring_config import ScoringConfig, load_config
from pte_scoring_core.infrastructure.model_clients.factory import create_client
from pte_scoring_core.infrastructure.providers.base import ProviderAdapter
from pte_scoring_core.infrastructure.providers.llm_adapter import LLMProviderAdapter
from pte_scoring_core.infrastructure.providers.unavailable import UnavailableProvider

logger = logging.getLogger(__name__)


def create_provider(name: str, config: ScoringConfig | None = None) -> ProviderAdapter:
    """
    Create the adapter for a provider name

    Args:
        name: Provider name (openai, gemini, claude)
        config: ScoringConfig (loads from env if not provided)

    Returns:
        LLMProviderAdapter, or UnavailableProvider when the backend is not configured
    """
    if config is None:
        config = load_config()
    try:
        client = create_client(name, config)
    except ValueError as e:
        logger.info("Provider %s unavailable: %s", name, e)
        return UnavailableProvider(name, str(e))
    return LLMProviderAdapter(name, client)


def create_providers(names: list[str], config: ScoringConfig | None = None) -> list[ProviderAdapter]:
    """Create adapters for each name, in order"""
    if config is None:
        config = load_config()
    return [create_provider(name, config) for name in names]
