"""
pte-scoring-core CLI Runner

Minimal CLI for scoring requests with the orchestrator.

Usage:
    python -m pte_scoring_core.runner --request request.json
    python -m pte_scoring_core.runner --batch requests.jsonl --output-dir results
    python -m pte_scoring_core.runner --health --providers gemini,claude

Override the time budget for one run:
    python -m pte_scoring_core.runner --request request.json --timeout-ms 3000
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

from pte_scoring_core.domain.errors import InvalidRequest
from pte_scoring_core.infrastructure.providers.factory import create_providers
from pte_scoring_core.scoring_config import (
    ScoringConfig,
    filter_provider_names,
    load_config,
    resolve_timeout_ms,
)
from pte_scoring_core.use_cases.batch import results_to_frame, score_batch, summarize_scores
from pte_scoring_core.use_cases.health_check import run_health_check
from pte_scoring_core.use_cases.orchestrator import ScoreOrchestrator


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="pte-scoring-core: Score PTE-style responses on the 0-90 scale",
    )
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument(
        "--request",
        help="Path to a single JSON request; the canonical score is printed as JSON",
    )
    mode.add_argument(
        "--batch",
        help="Path to a JSONL file with one request per line",
    )
    mode.add_argument(
        "--health",
        action="store_true",
        help="Check connectivity of the configured providers",
    )
    parser.add_argument(
        "--providers",
        default=None,
        help="Comma-separated provider priority (default: PTE_SCORING_PROVIDER_PRIORITY from .env)",
    )
    parser.add_argument(
        "--timeout-ms",
        type=int,
        default=None,
        help="Time budget in milliseconds (default: PTE_SCORING_TIMEOUT_MS from .env)",
    )
    parser.add_argument(
        "--output-dir",
        default="results",
        help="Directory for batch output CSV files (default: results)",
    )
    return parser.parse_args(argv)


def _apply_overrides(config: ScoringConfig, args: argparse.Namespace) -> ScoringConfig:
    """Apply --providers / --timeout-ms on top of the env configuration."""
    if args.providers:
        names = [n.strip() for n in args.providers.split(",") if n.strip()]
        config.providers.priority = filter_provider_names(names, config.providers.priority)
        config.providers.explain_priority = filter_provider_names(names, config.providers.explain_priority)
    if args.timeout_ms is not None:
        config.timeout.timeout_ms = resolve_timeout_ms(args.timeout_ms)
    return config


def load_requests(path: str | Path) -> list[dict]:
    """
    Load requests from a JSONL file (blank lines are skipped).

    Raises:
        InvalidRequest: When a line is not a JSON object
    """
    requests = []
    with open(path, encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as e:
                raise InvalidRequest(f"{path}:{line_no}: invalid JSON ({e.msg})")
            if not isinstance(data, dict):
                raise InvalidRequest(f"{path}:{line_no}: request must be a JSON object")
            requests.append(data)
    return requests


def _run_request(path: str, orchestrator: ScoreOrchestrator) -> int:
    with open(path, encoding="utf-8") as f:
        try:
            request = json.load(f)
        except json.JSONDecodeError as e:
            print(f"ERROR: {path}: invalid JSON ({e.msg})", file=sys.stderr)
            return 1
    try:
        result = orchestrator.score(request)
    except InvalidRequest as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    return 0


def _run_batch(path: str, output_dir: str, orchestrator: ScoreOrchestrator) -> int:
    run_id = datetime.now().strftime("%Y%m%d_%H%M%S")
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    raw_path = out / f"raw_scores_{run_id}.csv"
    summary_path = out / f"summary_{run_id}.csv"

    print(f"\n=== Loading requests: {path} ===\n")
    try:
        requests = load_requests(path)
    except InvalidRequest as e:
        print(f"ERROR: {e}")
        return 1
    print(f"  Requests: {len(requests)}")
    print(f"  Run ID: {run_id}")
    print()

    print(f"=== Scoring ({len(requests)} total) ===\n")
    results = score_batch(requests, orchestrator)
    for i, result in enumerate(results, start=1):
        if isinstance(result, InvalidRequest):
            print(f"[{i}/{len(results)}] INVALID: {result}")
            continue
        source = result.metadata.get("fallback") or result.metadata.get("provider", "")
        print(f"[{i}/{len(results)}] overall={result.overall} ({source})")
    print()

    raw_df = results_to_frame(requests, results)
    summary_df = summarize_scores(raw_df)

    print("=== Summary ===\n")
    print(f"  {'Section':<10} {'Question type':<28} {'count':>6} {'mean':>7} {'min':>5} {'max':>5} {'fallback':>9} {'invalid':>8}")
    print(f"  {'-'*10} {'-'*28} {'-'*6} {'-'*7} {'-'*5} {'-'*5} {'-'*9} {'-'*8}")
    for _, row in summary_df.iterrows():
        print(
            f"  {row['section']:<10} "
            f"{row['question_type']:<28} "
            f"{row['count']:>6} "
            f"{row['mean_overall']:>7.2f} "
            f"{row['min_overall']:>5} "
            f"{row['max_overall']:>5} "
            f"{row['heuristic_fallbacks']:>9} "
            f"{row['invalid']:>8}"
        )
    print()

    raw_df.to_csv(raw_path, index=False)
    summary_df.to_csv(summary_path, index=False)

    print("=== Output ===\n")
    print(f"  Raw scores: {raw_path}")
    print(f"  Summary:    {summary_path}")
    print()
    return 0


def main(argv: list[str] | None = None) -> None:
    load_dotenv()
    args = parse_args(argv)

    config = _apply_overrides(load_config(), args)

    if args.health:
        providers = create_providers(config.providers.priority, config)
        available, _ = run_health_check(providers)
        if not available:
            print("ERROR: No providers available. Subjective sections will use heuristic scoring.")
            sys.exit(1)
        return

    orchestrator = ScoreOrchestrator(config=config)
    if args.request:
        code = _run_request(args.request, orchestrator)
    else:
        code = _run_batch(args.batch, args.output_dir, orchestrator)
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
