"""
Scoring Orchestration

Entry point of the engine. For one request:

    received -> deterministic scorer (if registered)
             -> provider(s) raced against the time budget (subjective sections)
             -> merge, or heuristic fallback
             -> CanonicalScore

Provider failures never reach the caller; only structurally invalid requests
raise (InvalidRequest).
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError

from pte_scoring_core.domain.constants import (
    LLM_PROVIDERS,
    SUBJECTIVE_SECTIONS,
    ProviderName,
    Section,
)
from pte_scoring_core.domain.entities import ScoringRequest
from pte_scoring_core.domain.errors import InvalidRequest, ProviderTimeout, ProviderUnavailable
from pte_scoring_core.domain.value_objects import CanonicalScore, ProviderMeta, RawProviderResult
from pte_scoring_core.infrastructure.providers.base import ProviderAdapter, ProviderInput
from pte_scoring_core.infrastructure.providers.factory import create_provider
from pte_scoring_core.rubric_catalog import get_weights
from pte_scoring_core.scoring.deterministic import find_deterministic_route
from pte_scoring_core.scoring.heuristics import heuristic_speaking, heuristic_writing
from pte_scoring_core.scoring.merger import combine_deterministic_and_llm, join_rationales, merge
from pte_scoring_core.scoring_config import (
    ScoringConfig,
    filter_provider_names,
    load_config,
    resolve_timeout_ms,
)

logger = logging.getLogger(__name__)

# Providers are not started with less than this much of the budget left
MIN_PROVIDER_BUDGET_SECONDS = 0.01


def call_with_timeout(provider: ProviderAdapter, provider_input: ProviderInput, timeout_seconds: float) -> RawProviderResult:
    """
    Race a provider call against a timer

    The call runs on a worker thread; if the timer wins, the call is abandoned
    (its eventual result is disregarded) and ProviderTimeout is raised without
    waiting for the worker.

    Raises:
        ProviderTimeout: When the call does not finish within timeout_seconds
        Exception: Whatever the provider raised
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"provider-{provider.name}")
    try:
        future = executor.submit(provider.score, provider_input)
        try:
            return future.result(timeout=max(0.0, timeout_seconds))
        except FuturesTimeoutError:
            future.cancel()
            raise ProviderTimeout(f"timeout_after_{int(timeout_seconds * 1000)}ms")
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def _payload_value(payload: dict, *keys):
    for key in keys:
        if payload.get(key) is not None:
            return payload[key]
    return None


class ScoreOrchestrator:
    """
    Selects scorers and providers for a request and returns a canonical score

    Args:
        config: ScoringConfig (loads from env if not provided)
        providers: Providers to use, in priority order. When omitted, one
            adapter per configured backend is built from config and ordered by
            the configured (or per-request) priority.
    """

    def __init__(
        self,
        config: ScoringConfig | None = None,
        providers: list[ProviderAdapter] | None = None,
    ) -> None:
        self.config = config if config is not None else load_config()
        self._injected = list(providers) if providers is not None else None
        self._by_name: dict[str, ProviderAdapter] = {}
        if self._injected is None:
            self._by_name = {
                p.value: create_provider(p.value, self.config) for p in LLM_PROVIDERS
            }

    # ------------------------------------------------------------------
    # Provider selection
    # ------------------------------------------------------------------

    def providers_for(self, request: ScoringRequest, explain: bool = False) -> list[ProviderAdapter]:
        """Providers for a request, in the order they should be tried"""
        if self._injected is not None:
            return list(self._injected)
        default = self.config.providers.explain_priority if explain else self.config.providers.priority
        names = filter_provider_names(request.provider_priority, default)
        return [self._by_name[n] for n in names if n in self._by_name]

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def score(self, request: ScoringRequest | dict) -> CanonicalScore:
        """
        Score one request

        Args:
            request: ScoringRequest, or a dict accepted by ScoringRequest.from_dict

        Returns:
            CanonicalScore

        Raises:
            InvalidRequest: When the request shape is invalid or no scoring
                path exists for its section / question type
        """
        start = time.monotonic()
        if isinstance(request, dict):
            request = ScoringRequest.from_dict(request)

        timeout_ms = resolve_timeout_ms(
            request.timeout_ms if request.timeout_ms is not None else self.config.timeout.timeout_ms
        )

        route = find_deterministic_route(request.section, request.normalized_question_type)
        if route is not None:
            result = route.extract(request.payload, request.section)
            if result is None:
                raise InvalidRequest(
                    f"{request.section.value}/{request.question_type} requires payload fields: "
                    + ", ".join(route.required)
                )
            if request.include_rationale:
                result = self._with_explanation(result, request, timeout_ms, start)
        elif request.section in SUBJECTIVE_SECTIONS:
            result = self._score_subjective(request, timeout_ms, start)
        else:
            raise InvalidRequest(
                f"No scoring path for {request.section.value}/{request.question_type}"
            )

        result.metadata["orchestratorLatencyMs"] = int((time.monotonic() - start) * 1000)
        return result

    # ------------------------------------------------------------------
    # Deterministic path
    # ------------------------------------------------------------------

    def _with_explanation(
        self,
        deterministic: CanonicalScore,
        request: ScoringRequest,
        timeout_ms: int,
        start: float,
    ) -> CanonicalScore:
        """Attach an LLM rationale to a deterministic result; numbers never change"""
        deadline = start + timeout_ms / 1000.0
        provider_input = ProviderInput.from_request(request, timeout_ms)
        for provider in self.providers_for(request, explain=True):
            remaining = deadline - time.monotonic()
            if remaining < MIN_PROVIDER_BUDGET_SECONDS:
                break
            provider_input.timeout_ms = max(1, int(remaining * 1000))
            try:
                raw = call_with_timeout(provider, provider_input, remaining)
            except Exception as e:
                logger.info("Explanation from %s failed: %s", provider.name, e)
                continue
            if raw.rationale:
                # Only the rationale is taken; deterministic numbers stand as computed
                explanation = merge(
                    [RawProviderResult(meta=raw.meta, rationale=raw.rationale)],
                    request.section,
                )
                return combine_deterministic_and_llm(
                    deterministic,
                    explanation,
                    weights=deterministic_weights(deterministic, request.section),
                )
        return deterministic

    # ------------------------------------------------------------------
    # Subjective path
    # ------------------------------------------------------------------

    def _validate_subjective(self, request: ScoringRequest) -> None:
        payload = request.payload
        if request.section == Section.SPEAKING:
            if not isinstance(payload.get("transcript"), str):
                raise InvalidRequest("speaking requests require payload.transcript")
        elif request.section == Section.WRITING:
            if not isinstance(_payload_value(payload, "text", "answer"), str):
                raise InvalidRequest("writing requests require payload.text")

    def _score_subjective(self, request: ScoringRequest, timeout_ms: int, start: float) -> CanonicalScore:
        self._validate_subjective(request)

        deadline = start + timeout_ms / 1000.0
        provider_input = ProviderInput.from_request(request, timeout_ms)
        errors: list[str] = []
        attempts: list[RawProviderResult] = []

        for provider in self.providers_for(request):
            remaining = deadline - time.monotonic()
            if remaining < MIN_PROVIDER_BUDGET_SECONDS:
                errors.append(f"{provider.name}: timeout budget exhausted")
                break
            provider_input.timeout_ms = max(1, int(remaining * 1000))
            try:
                raw = call_with_timeout(provider, provider_input, remaining)
            except ProviderUnavailable as e:
                logger.info("Provider %s unavailable: %s", provider.name, e)
                errors.append(f"{provider.name}: {e}")
                attempts.append(RawProviderResult(
                    meta=ProviderMeta(provider=ProviderName.UNAVAILABLE.value, error=f"{provider.name}: {e}"),
                ))
                continue
            except ProviderTimeout as e:
                logger.warning("Provider %s timed out: %s", provider.name, e)
                errors.append(f"{provider.name}: {e}")
                continue
            except Exception as e:
                logger.warning("Provider %s failed: %s", provider.name, e)
                errors.append(f"{provider.name}: {e}")
                continue

            if raw.has_signal:
                result = merge([raw], request.section)
                result.metadata["provider"] = provider.name
                return result
            attempts.append(raw)
            errors.append(f"{provider.name}: no usable score in response")

        if not errors:
            errors.append("no providers configured")
        return self._fallback(request, attempts, errors)

    def _fallback(
        self,
        request: ScoringRequest,
        attempts: list[RawProviderResult],
        errors: list[str],
    ) -> CanonicalScore:
        """Heuristic estimate annotated with the provider failures"""
        payload = request.payload
        if request.section == Section.SPEAKING:
            duration = _payload_value(payload, "durationMs", "duration_ms", "audioDurationMs")
            try:
                duration_ms = float(duration) if duration is not None else None
            except (TypeError, ValueError):
                duration_ms = None
            result = heuristic_speaking(
                payload.get("transcript", ""),
                reference_text=_payload_value(payload, "referenceText", "reference_text"),
                duration_ms=duration_ms,
            )
        else:
            result = heuristic_writing(
                _payload_value(payload, "text", "answer") or "",
                prompt=payload.get("prompt"),
            )

        ai_error = "; ".join(errors)
        logger.warning("Falling back to heuristic scoring for %s: %s", request.section.value, ai_error)
        # Provider rationales without numbers still reach the caller
        result.rationale = join_rationales([raw.rationale for raw in attempts] + [result.rationale])
        result.metadata["aiError"] = ai_error
        result.metadata["fallback"] = ProviderName.HEURISTIC.value
        result.metadata["providers"] = [raw.meta.to_dict() for raw in attempts] + [
            {"provider": ProviderName.HEURISTIC.value}
        ]
        return result


def deterministic_weights(result: CanonicalScore, section: Section) -> dict[str, float]:
    """Weights that reproduce a deterministic result's overall from its subscores"""
    if set(result.subscores) == {"correctness"}:
        return {"correctness": 1.0}
    return get_weights(section)


def score_with_orchestrator(
    request: ScoringRequest | dict,
    *,
    providers: list[ProviderAdapter] | None = None,
    config: ScoringConfig | None = None,
) -> CanonicalScore:
    """
    Score a request with a freshly built orchestrator

    Args:
        request: ScoringRequest or equivalent dict
        providers: Providers to use, in priority order (built from config if omitted)
        config: ScoringConfig (loads from env if not provided)

    Returns:
        CanonicalScore

    Raises:
        InvalidRequest: For structurally invalid requests only
    """
    return ScoreOrchestrator(config=config, providers=providers).score(request)
