"""
Domain Layer

Defines constants, entities, value objects, and errors that form the core of
the scoring logic. Has no dependencies on external libraries.
"""

from pte_scoring_core.domain.constants import (
    DEFAULT_TIMEOUT_MS,
    DEFAULT_WEIGHTS,
    SECTION_DIMENSIONS,
    ProviderName,
    Section,
)
from pte_scoring_core.domain.entities import (
    HealthStatus,
    ScoringRequest,
)
from pte_scoring_core.domain.errors import (
    ConfigurationError,
    InvalidRequest,
    MalformedProviderOutput,
    ProviderTimeout,
    ProviderUnavailable,
    ScoringError,
)
from pte_scoring_core.domain.value_objects import (
    CanonicalScore,
    ModelResponse,
    ProviderMeta,
    RawProviderResult,
)

__all__ = [
    # constants
    "DEFAULT_TIMEOUT_MS",
    "DEFAULT_WEIGHTS",
    "SECTION_DIMENSIONS",
    "ProviderName",
    "Section",
    # entities
    "HealthStatus",
    "ScoringRequest",
    # errors
    "ConfigurationError",
    "InvalidRequest",
    "MalformedProviderOutput",
    "ProviderTimeout",
    "ProviderUnavailable",
    "ScoringError",
    # value objects
    "CanonicalScore",
    "ModelResponse",
    "ProviderMeta",
    "RawProviderResult",
]
