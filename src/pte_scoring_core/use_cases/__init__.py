"""
Use Cases Layer

Aggregates scoring logic and provides the entry points called from the runner
and from host applications.
"""

from pte_scoring_core.use_cases.batch import (
    results_to_frame,
    score_batch,
    summarize_scores,
)
from pte_scoring_core.use_cases.health_check import (
    health_check_provider,
    run_health_check,
)
from pte_scoring_core.use_cases.orchestrator import (
    ScoreOrchestrator,
    call_with_timeout,
    score_with_orchestrator,
)

__all__ = [
    # batch
    "results_to_frame",
    "score_batch",
    "summarize_scores",
    # health_check
    "health_check_provider",
    "run_health_check",
    # orchestrator
    "ScoreOrchestrator",
    "call_with_timeout",
    "score_with_orchestrator",
]
