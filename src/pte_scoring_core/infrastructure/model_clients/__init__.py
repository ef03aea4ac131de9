"""
Model client package

Provides a unified interface to each LLM backend.
"""

from pte_scoring_core.infrastructure.model_clients.base import ModelClient
from pte_scoring_core.infrastructure.model_clients.factory import create_client
from pte_scoring_core.domain.value_objects import ModelResponse

__all__ = ["ModelClient", "ModelResponse", "create_client"]
