"""
Provider adapter package

Provides the judgment-provider interface and its implementations.
"""

from pte_scoring_core.infrastructure.providers.base import ProviderAdapter, ProviderInput
from pte_scoring_core.infrastructure.providers.factory import create_provider, create_providers
from pte_scoring_core.infrastructure.providers.llm_adapter import LLMProviderAdapter
from pte_scoring_core.infrastructure.providers.unavailable import UnavailableProvider

__all__ = [
    "LLMProviderAdapter",
    "ProviderAdapter",
    "ProviderInput",
    "UnavailableProvider",
    "create_provider",
    "create_providers",
]
