"""
Batch Scoring

Scores a list of requests and aggregates the results by section and
question type.
"""

from __future__ import annotations

import logging

import pandas as pd

from pte_scoring_core.domain.entities import ScoringRequest
from pte_scoring_core.domain.errors import InvalidRequest
from pte_scoring_core.domain.value_objects import CanonicalScore
from pte_scoring_core.use_cases.orchestrator import ScoreOrchestrator

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = [
    "section",
    "question_type",
    "count",
    "mean_overall",
    "min_overall",
    "max_overall",
    "heuristic_fallbacks",
    "invalid",
]


def score_batch(
    requests: list[ScoringRequest | dict],
    orchestrator: ScoreOrchestrator,
) -> list[CanonicalScore | InvalidRequest]:
    """
    Score each request independently.

    Invalid requests do not stop the batch; their InvalidRequest is returned
    in place of a score.

    Args:
        requests: Requests (ScoringRequest or dict)
        orchestrator: Orchestrator used for every request

    Returns:
        One CanonicalScore or InvalidRequest per request, in input order
    """
    results: list[CanonicalScore | InvalidRequest] = []
    for i, request in enumerate(requests):
        try:
            results.append(orchestrator.score(request))
        except InvalidRequest as e:
            logger.warning("Request %d is invalid: %s", i, e)
            results.append(e)
    return results


def results_to_frame(
    requests: list[ScoringRequest | dict],
    results: list[CanonicalScore | InvalidRequest],
) -> pd.DataFrame:
    """
    Flatten requests and results into one row per request.

    Subscores become "sub_<dimension>" columns.
    """
    rows = []
    for i, (request, result) in enumerate(zip(requests, results)):
        if isinstance(request, dict):
            section = str(request.get("section", ""))
            question_type = str(request.get("question_type", request.get("questionType", "")))
        else:
            section = request.section.value
            question_type = request.question_type

        row = {
            "index": i,
            "section": section.lower(),
            "question_type": question_type,
        }
        if isinstance(result, CanonicalScore):
            row["overall"] = result.overall
            row["provider"] = result.metadata.get("provider", "")
            row["fallback"] = result.metadata.get("fallback", "")
            row["ai_error"] = result.metadata.get("aiError", "")
            row["error"] = ""
            for dim, value in result.subscores.items():
                row[f"sub_{dim}"] = value
        else:
            row["overall"] = None
            row["provider"] = ""
            row["fallback"] = ""
            row["ai_error"] = ""
            row["error"] = str(result)
        rows.append(row)
    return pd.DataFrame(rows)


def summarize_scores(raw_df: pd.DataFrame) -> pd.DataFrame:
    """
    Aggregate per-request rows by section x question type.

    Args:
        raw_df: Output of results_to_frame

    Returns:
        pd.DataFrame with SUMMARY_COLUMNS
    """
    if raw_df.empty:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)

    summary_rows = []
    for (section, question_type), group in raw_df.groupby(["section", "question_type"]):
        scored = group[group["error"] == ""]
        overall = pd.to_numeric(scored["overall"], errors="coerce").dropna()
        summary_rows.append({
            "section": section,
            "question_type": question_type,
            "count": int(len(scored)),
            "mean_overall": float(overall.mean()) if not overall.empty else 0.0,
            "min_overall": int(overall.min()) if not overall.empty else 0,
            "max_overall": int(overall.max()) if not overall.empty else 0,
            "heuristic_fallbacks": int((scored["fallback"] == "heuristic").sum()),
            "invalid": int(len(group) - len(scored)),
        })
    return pd.DataFrame(summary_rows, columns=SUMMARY_COLUMNS)
