"""
Canonical scale math

Pure numeric utilities that map raw signals onto the 0-90 canonical scale.
Every function is total: bad input maps to a defined value instead of raising.
"""

from __future__ import annotations

import math

from pte_scoring_core.domain.constants import CANONICAL_MAX, CANONICAL_MIN


def _as_float(value) -> float | None:
    """Return value as a finite float, or None"""
    if isinstance(value, bool):
        return float(value)
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def clamp_canonical(n) -> int:
    """
    Round to the nearest integer (halves round up) and clamp to [0, 90]

    Args:
        n: Any value; non-numeric or non-finite input maps to 0

    Returns:
        Canonical integer score
    """
    f = _as_float(n)
    if f is None:
        return 0
    return int(max(CANONICAL_MIN, min(CANONICAL_MAX, math.floor(f + 0.5))))


def rescale(value, source_min: float, source_max: float) -> int:
    """
    Linearly map value from [source_min, source_max] to [0, 90], then clamp

    Falls back to clamp_canonical(value) when the source range is empty or inverted.
    """
    lo = _as_float(source_min)
    hi = _as_float(source_max)
    v = _as_float(value)
    if v is None:
        return 0
    if lo is None or hi is None or hi <= lo:
        return clamp_canonical(v)
    return clamp_canonical((v - lo) / (hi - lo) * CANONICAL_MAX)


def to_canonical_float(value) -> float | None:
    """
    Unrounded canonical value of a provider number whose range is unknown

    Values above 90 are taken as 0-100 and rescaled; anything else is kept as
    is. Non-numeric input (including bools) gives None.
    """
    if isinstance(value, bool):
        return None
    v = _as_float(value)
    if v is None:
        return None
    if v > CANONICAL_MAX:
        return v / 100.0 * CANONICAL_MAX
    return v


def infer_canonical(value) -> int:
    """Treat values above 90 as a 0-100 scale and rescale; clamp everything else"""
    return clamp_canonical(to_canonical_float(value))


def accuracy_to_canonical(value, is_percentage: bool = False) -> int:
    """
    Convert an accuracy ratio (0..1) or percentage (0..100) to the canonical scale

    Args:
        value: Accuracy ratio, or percentage when is_percentage is True
        is_percentage: Whether value is expressed in 0..100

    Returns:
        ratio * 90, clamped
    """
    v = _as_float(value)
    if v is None:
        return 0
    ratio = v / 100.0 if is_percentage else v
    return clamp_canonical(ratio * CANONICAL_MAX)


def edit_rate_to_canonical(rate) -> int:
    """
    Convert a normalized edit / word-error rate to the canonical scale

    score = 90 - min(1, rate) * 60 - max(0, rate - 1) * 30

    The first unit of error costs up to 60 points; error beyond 1.0 costs 30
    per unit. 0.0 (perfect) maps to 90 and 1.0 maps to 30.
    """
    r = _as_float(rate)
    if r is None:
        return 0
    r = max(0.0, r)
    return clamp_canonical(90 - min(1.0, r) * 60 - max(0.0, r - 1.0) * 30)


def weighted_average(subscores: dict, weights: dict | None = None) -> int:
    """
    Weighted mean over the dimensions present in subscores

    Dimensions missing from subscores contribute nothing (they are not zeros).
    Without weights, or when the present weights sum to 0, the unweighted mean
    of the present dimensions is used.

    Args:
        subscores: Dimension name -> score
        weights: Dimension name -> non-negative weight

    Returns:
        Canonical integer score (0 when no dimension is present)
    """
    present: dict[str, float] = {}
    for dim, value in (subscores or {}).items():
        f = _as_float(value)
        if f is not None:
            present[dim] = f
    if not present:
        return 0

    if weights:
        total_weight = 0.0
        total = 0.0
        for dim, value in present.items():
            w = _as_float(weights.get(dim))
            if w is None or w <= 0:
                continue
            total_weight += w
            total += value * w
        if total_weight > 0:
            return clamp_canonical(total / total_weight)

    return clamp_canonical(sum(present.values()) / len(present))

