"""
Result merging

Combines raw provider outputs (and optionally a deterministic result) into a
single CanonicalScore.
"""

from __future__ import annotations

from pte_scoring_core.domain.constants import (
    MAX_RATIONALE_CHARS,
    ProviderName,
    Section,
)
from pte_scoring_core.domain.value_objects import CanonicalScore, RawProviderResult
from pte_scoring_core.rubric_catalog import get_weights
from pte_scoring_core.scoring.scale_math import (
    clamp_canonical,
    to_canonical_float,
    weighted_average,
)


def join_rationales(rationales: list[str | None]) -> str | None:
    """Join non-blank rationales with newlines, truncated to the rationale cap"""
    parts = [r.strip() for r in rationales if isinstance(r, str) and r.strip()]
    if not parts:
        return None
    return "\n".join(parts)[:MAX_RATIONALE_CHARS]


def merge(
    raw_results: list[RawProviderResult],
    section: Section,
    weights: dict[str, float] | None = None,
) -> CanonicalScore:
    """
    Merge raw provider results into one canonical score

    1. Per dimension, values above 90 are rescaled from 0-100
    2. Per dimension, the mean across contributing providers is clamped
    3. Without any dimension, overall is the mean of the providers' own
       overall values (rescaled the same way), or 0
    4. Otherwise overall is the weighted average of the merged dimensions
    5. Rationales are joined with newlines (provider order kept) and truncated
    6. metadata.providers lists each input's ProviderMeta

    Args:
        raw_results: Provider outputs, in priority order
        section: Test section (selects default weights)
        weights: Dimension weights (section defaults when omitted)

    Returns:
        CanonicalScore
    """
    if weights is None:
        weights = get_weights(section)

    collected: dict[str, list[float]] = {}
    for raw in raw_results:
        for dim, value in (raw.subscores or {}).items():
            canonical = to_canonical_float(value)
            if canonical is not None:
                collected.setdefault(dim, []).append(canonical)

    subscores = {
        dim: clamp_canonical(sum(values) / len(values))
        for dim, values in collected.items()
    }

    if subscores:
        overall = weighted_average(subscores, weights)
    else:
        overalls = [
            v for v in (to_canonical_float(raw.overall) for raw in raw_results if raw.overall is not None)
            if v is not None
        ]
        overall = clamp_canonical(sum(overalls) / len(overalls)) if overalls else 0

    return CanonicalScore(
        overall=overall,
        subscores=subscores,
        rationale=join_rationales([raw.rationale for raw in raw_results]),
        metadata={
            "section": section.value,
            "providers": [raw.meta.to_dict() for raw in raw_results],
        },
    )


def combine_deterministic_and_llm(
    deterministic: CanonicalScore | None = None,
    llm: CanonicalScore | None = None,
    weights: dict[str, float] | None = None,
) -> CanonicalScore:
    """
    Combine an objective check with a subjective judgment

    Deterministic subscores win per dimension; LLM subscores only fill in
    dimensions the deterministic pass did not produce. Overall is recomputed
    from the combined dimension set.
    """
    if deterministic is None and llm is None:
        return CanonicalScore(overall=0, metadata={"providers": []})

    subscores: dict[str, int] = {}
    if llm is not None:
        subscores.update(llm.subscores)
    if deterministic is not None:
        subscores.update(deterministic.subscores)

    if subscores:
        overall = weighted_average(subscores, weights)
    else:
        source = deterministic if deterministic is not None else llm
        overall = clamp_canonical(source.overall)

    providers: list[dict] = []
    metadata: dict = {}
    for part in (llm, deterministic):
        if part is None:
            continue
        metadata.update({k: v for k, v in part.metadata.items() if k != "providers"})
    for part in (deterministic, llm):
        if part is None:
            continue
        part_providers = part.metadata.get("providers")
        if part_providers:
            providers.extend(part_providers)
        elif part.metadata.get("provider"):
            providers.append({"provider": part.metadata["provider"]})
    if deterministic is not None:
        metadata["provider"] = ProviderName.DETERMINISTIC.value
    metadata["providers"] = providers

    return CanonicalScore(
        overall=overall,
        subscores=subscores,
        rationale=join_rationales([
            deterministic.rationale if deterministic is not None else None,
            llm.rationale if llm is not None else None,
        ]),
        metadata=metadata,
    )
