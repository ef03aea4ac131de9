"""
Judge output parsing

Extracts the strict-JSON contract from free-text model output and maps it
onto a RawProviderResult.
"""

from __future__ import annotations

import json
import logging
import math
import re

from pte_scoring_core.domain.errors import MalformedProviderOutput
from pte_scoring_core.domain.value_objects import ProviderMeta, RawProviderResult

logger = logging.getLogger(__name__)

_CODE_BLOCK_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


def extract_json(raw: str) -> dict:
    """
    Extract a JSON object from model output

    Parse order:
    1. Contents of the first fenced code block, if any
    2. The span from the first "{" to the last "}"

    Args:
        raw: Raw model output

    Returns:
        Parsed JSON object

    Raises:
        MalformedProviderOutput: When no JSON object can be parsed
    """
    text = (raw or "").strip()
    match = _CODE_BLOCK_RE.search(text)
    candidate = match.group(1) if match else text

    first = candidate.find("{")
    last = candidate.rfind("}")
    if first != -1 and last > first:
        candidate = candidate[first:last + 1]

    try:
        data = json.loads(candidate)
    except (json.JSONDecodeError, ValueError, TypeError) as e:
        raise MalformedProviderOutput(f"Failed to parse JSON from provider response: {text[:200]}") from e

    if not isinstance(data, dict):
        raise MalformedProviderOutput(f"Provider response is not a JSON object: {text[:200]}")
    return data


def _as_number(value) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def parse_judge_json(
    raw: str,
    dimensions: tuple[str, ...],
    meta: ProviderMeta,
) -> RawProviderResult:
    """
    Map a scoring response onto a RawProviderResult

    Only the named dimensions are read; non-numeric values are dropped.
    Values are left in the provider's own range.

    Raises:
        MalformedProviderOutput: When the response is not a JSON object
    """
    data = extract_json(raw)
    subscores: dict[str, float] = {}
    for dim in dimensions:
        value = _as_number(data.get(dim))
        if value is not None:
            subscores[dim] = value

    rationale = data.get("rationale")
    return RawProviderResult(
        meta=meta,
        overall=_as_number(data.get("overall")),
        subscores=subscores,
        rationale=rationale.strip() if isinstance(rationale, str) and rationale.strip() else None,
    )


def parse_explanation(raw: str, meta: ProviderMeta, max_chars: int = 1000) -> RawProviderResult:
    """
    Map an explanation response onto a rationale-only RawProviderResult

    Falls back to the trimmed raw text when the response is not JSON.
    """
    try:
        data = extract_json(raw)
        rationale = data.get("rationale")
        rationale = rationale if isinstance(rationale, str) else ""
    except MalformedProviderOutput:
        logger.debug("Explanation was not JSON; using raw text")
        rationale = (raw or "").strip()
    rationale = rationale.strip()[:max_chars]
    return RawProviderResult(meta=meta, rationale=rationale or None)
