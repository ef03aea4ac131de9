"""
Null-object provider for backends that are not configured
"""

from pte_scoring_core.domain.entities import HealthStatus
from pte_scoring_core.domain.errors import ProviderUnavailable
from pte_scoring_core.domain.value_objects import RawProviderResult
from pte_scoring_core.infrastructure.providers.base import ProviderAdapter, ProviderInput


class UnavailableProvider(ProviderAdapter):
    """Stands in for a provider whose credentials or SDK are missing"""

    def __init__(self, name: str, reason: str = "provider_unavailable") -> None:
        self.name = name
        self.reason = reason

    def health(self) -> HealthStatus:
        return HealthStatus(provider=self.name, ok=False, error=self.reason)

    def _unavailable(self) -> RawProviderResult:
        raise ProviderUnavailable(self.reason)

    def score_speaking(self, provider_input: ProviderInput) -> RawProviderResult:
        return self._unavailable()

    def score_writing(self, provider_input: ProviderInput) -> RawProviderResult:
        return self._unavailable()

    def score_reading(self, provider_input: ProviderInput) -> RawProviderResult:
        return self._unavailable()

    def score_listening(self, provider_input: ProviderInput) -> RawProviderResult:
        return self._unavailable()
