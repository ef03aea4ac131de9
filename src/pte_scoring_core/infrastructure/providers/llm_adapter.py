"""
LLM provider adapter

Wraps any ModelClient: builds rubric prompts, calls the backend with a bounded
token budget and timeout, and parses the strict-JSON reply.
"""

from __future__ import annotations

import logging
import time

from pte_scoring_core.domain.constants import (
    MAX_TOKENS_EXPLAIN,
    MAX_TOKENS_SPEAKING,
    MAX_TOKENS_WRITING,
    Section,
)
from pte_scoring_core.domain.entities import HealthStatus
from pte_scoring_core.domain.errors import MalformedProviderOutput
from pte_scoring_core.domain.value_objects import ModelResponse, ProviderMeta, RawProviderResult
from pte_scoring_core.infrastructure.model_clients.base import ModelClient
from pte_scoring_core.infrastructure.providers.base import ProviderAdapter, ProviderInput
from pte_scoring_core.rubric_catalog import (
    PROMPT_KIND_EXPLAIN,
    PROMPT_KIND_SCORE,
    build_prompt,
    dimensions_for,
)
from pte_scoring_core.scoring.judge_parser import parse_explanation, parse_judge_json

logger = logging.getLogger(__name__)

HEALTH_CHECK_SYSTEM = "Reply with only 'OK'."
HEALTH_CHECK_USER = "ping"
HEALTH_CHECK_TIMEOUT_SECONDS = 2.0


class LLMProviderAdapter(ProviderAdapter):
    """Provider backed by an LLM model client"""

    def __init__(self, name: str, client: ModelClient) -> None:
        self.name = name
        self._client = client

    def _meta(self, response: ModelResponse, error: str | None = None) -> ProviderMeta:
        return ProviderMeta(
            provider=self.name,
            model=response.model_name,
            latency_ms=response.latency_ms,
            request_id=response.request_id,
            finish_reason=response.finish_reason,
            error=error,
        )

    def health(self) -> HealthStatus:
        start = time.time()
        model = getattr(self._client, "model_name", None)
        try:
            self._client.generate(
                HEALTH_CHECK_SYSTEM,
                HEALTH_CHECK_USER,
                max_tokens=5,
                timeout_seconds=HEALTH_CHECK_TIMEOUT_SECONDS,
            )
        except Exception as e:
            return HealthStatus(
                provider=self.name,
                ok=False,
                latency_ms=int((time.time() - start) * 1000),
                model=model,
                error=str(e)[:200] or type(e).__name__,
            )
        return HealthStatus(
            provider=self.name,
            ok=True,
            latency_ms=int((time.time() - start) * 1000),
            model=model,
        )

    def _score(self, section: Section, provider_input: ProviderInput, max_tokens: int) -> RawProviderResult:
        prompt = build_prompt(section, PROMPT_KIND_SCORE, provider_input.prompt_args())
        response = self._client.generate(
            prompt.system,
            prompt.user,
            max_tokens=max_tokens,
            timeout_seconds=provider_input.timeout_seconds,
            json_mode=True,
        )
        try:
            return parse_judge_json(response.output, dimensions_for(section), self._meta(response))
        except MalformedProviderOutput as e:
            logger.warning("Provider %s returned malformed %s output: %s", self.name, section.value, e)
            return RawProviderResult(meta=self._meta(response, error="malformed_output"))

    def _explain(self, section: Section, provider_input: ProviderInput) -> RawProviderResult:
        prompt = build_prompt(section, PROMPT_KIND_EXPLAIN, provider_input.prompt_args())
        response = self._client.generate(
            prompt.system,
            prompt.user,
            max_tokens=MAX_TOKENS_EXPLAIN,
            timeout_seconds=provider_input.timeout_seconds,
        )
        return parse_explanation(response.output, self._meta(response))

    def score_speaking(self, provider_input: ProviderInput) -> RawProviderResult:
        return self._score(Section.SPEAKING, provider_input, MAX_TOKENS_SPEAKING)

    def score_writing(self, provider_input: ProviderInput) -> RawProviderResult:
        return self._score(Section.WRITING, provider_input, MAX_TOKENS_WRITING)

    def score_reading(self, provider_input: ProviderInput) -> RawProviderResult:
        return self._explain(Section.READING, provider_input)

    def score_listening(self, provider_input: ProviderInput) -> RawProviderResult:
        return self._explain(Section.LISTENING, provider_input)
