"""
Scoring sub-package

Provides scale math, deterministic scorers, judge output parsing, result
merging, and heuristic fallback scoring.
"""

from pte_scoring_core.scoring.deterministic import (
    find_deterministic_route,
    score_dictation,
    score_fill_in_blanks,
    score_multi_select,
    score_reorder_paragraphs,
    score_single_select,
)
from pte_scoring_core.scoring.heuristics import heuristic_speaking, heuristic_writing
from pte_scoring_core.scoring.judge_parser import extract_json, parse_explanation, parse_judge_json
from pte_scoring_core.scoring.merger import combine_deterministic_and_llm, join_rationales, merge
from pte_scoring_core.scoring.scale_math import (
    accuracy_to_canonical,
    clamp_canonical,
    edit_rate_to_canonical,
    infer_canonical,
    rescale,
    to_canonical_float,
    weighted_average,
)

__all__ = [
    # deterministic
    "find_deterministic_route",
    "score_dictation",
    "score_fill_in_blanks",
    "score_multi_select",
    "score_reorder_paragraphs",
    "score_single_select",
    # heuristics
    "heuristic_speaking",
    "heuristic_writing",
    # judge output
    "extract_json",
    "parse_explanation",
    "parse_judge_json",
    # merger
    "combine_deterministic_and_llm",
    "join_rationales",
    "merge",
    # scale math
    "accuracy_to_canonical",
    "clamp_canonical",
    "edit_rate_to_canonical",
    "infer_canonical",
    "rescale",
    "to_canonical_float",
    "weighted_average",
]
